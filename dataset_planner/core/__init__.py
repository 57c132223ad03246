"""Core models, enums and configuration for the dataset planner."""
