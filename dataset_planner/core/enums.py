"""Enums for ingestion plan fields and activity events."""

from enum import Enum


class AccessMethod(str, Enum):
    """How a discovered source's data should be ingested."""

    DIRECT_DOWNLOAD = "DIRECT_DOWNLOAD"
    API = "API"
    WEB_CRAWL = "WEB_CRAWL"
    LOCAL_FILE = "LOCAL_FILE"


# Methods the URL classifier is allowed to return
CLASSIFIABLE_METHODS = (
    AccessMethod.DIRECT_DOWNLOAD,
    AccessMethod.API,
    AccessMethod.WEB_CRAWL,
)


class ValidationStatus(str, Enum):
    """Outcome of crawl validation for a URL."""

    UNVALIDATED = "unvalidated"
    VALID = "valid"
    FAILED = "failed"


class AgentName(str, Enum):
    """Logical pipeline stage that emitted an activity event."""

    DISCOVERY = "discovery"
    VALIDATION = "validation"
    ANALYSIS = "analysis"
    STRATEGY = "strategy"
    REFINEMENT = "refinement"


class ActivityStatus(str, Enum):
    """Status carried by an activity event."""

    WORKING = "working"
    SUCCESS = "success"
    ERROR = "error"
