"""External service clients for the dataset planner."""
