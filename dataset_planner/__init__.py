"""Dataset Planner - turns dataset requests into ingestion plans."""

__version__ = "0.1.0"
