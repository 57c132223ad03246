"""Command-line interface for the dataset planner."""
