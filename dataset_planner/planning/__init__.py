"""
Dataset Planner Pipeline
========================

Turns a dataset request into ingestion strategies.

Pipeline Stages:
1. Discovery - LLM proposes candidate dataset URLs
2. Validation - Firecrawl crawl job confirms the URL is reachable (advisory)
3. Analysis - URL patterns or the LLM pick an access method
4. Strategy - LLM generates a method-specific snippet/config/schema
5. Refinement - optional cleaning steps for a chosen entry
"""

from dataset_planner.planning.activity import ActivityEmitter, ActivityLog
from dataset_planner.planning.pipeline import UrlOutcome, UrlPipeline
from dataset_planner.planning.planner import Planner, PlannerContext, sample_file
from dataset_planner.planning.retry import (
    RetryPolicy,
    is_rate_limit_error,
    retry_on_rate_limit,
    with_retry,
)
from dataset_planner.planning.scheduling import FixedDelaySequencer
from dataset_planner.planning.validation import ValidationPoller, ValidationResult

__all__ = [
    # Activity
    "ActivityEmitter",
    "ActivityLog",
    # Pipeline
    "UrlOutcome",
    "UrlPipeline",
    # Planner
    "Planner",
    "PlannerContext",
    "sample_file",
    # Retry
    "RetryPolicy",
    "is_rate_limit_error",
    "retry_on_rate_limit",
    "with_retry",
    # Scheduling
    "FixedDelaySequencer",
    # Validation
    "ValidationPoller",
    "ValidationResult",
]
