"""Canonical Pydantic v2 models for ingestion plans and activity events."""

import json
from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from dataset_planner.core.enums import (
    AccessMethod,
    ActivityStatus,
    AgentName,
    ValidationStatus,
)


def _utc_now() -> datetime:
    """Return current UTC datetime (timezone-aware)."""
    return datetime.now(UTC)


def _serialize_structured(value: Any) -> Any:
    """Serialize dict/list values to JSON text; pass strings and None through."""
    if value is None or isinstance(value, str):
        return value
    if isinstance(value, (dict, list)):
        return json.dumps(value, indent=2)
    return str(value)


class Strategy(BaseModel):
    """
    Generated, method-specific plan for acquiring data from a source.

    `config` and `schema` are serialized text. The generator may return them
    as nested JSON objects, in which case they are dumped to a string.
    """

    model_config = ConfigDict(populate_by_name=True)

    method: AccessMethod
    url: str
    config: str | None = None
    data_schema: str | None = Field(default=None, alias="schema")
    snippet: str | None = None
    headers: dict[str, str] | None = None
    params: dict[str, str] | None = None

    @field_validator("config", "data_schema", "snippet", mode="before")
    @classmethod
    def serialize_text_fields(cls, v: Any) -> Any:
        return _serialize_structured(v)

    @field_validator("headers", "params", mode="before")
    @classmethod
    def stringify_mapping(cls, v: Any) -> dict[str, str] | None:
        if not isinstance(v, dict):
            return None
        return {str(key): str(value) for key, value in v.items()}

    def to_context(self) -> str:
        """Render the strategy as indented JSON for use in prompts."""
        return json.dumps(
            self.model_dump(mode="json", by_alias=True, exclude_none=True),
            indent=2,
        )


class DiscoveredLink(BaseModel):
    """
    One planned data source.

    Instances are immutable. Refinement produces a new copy with
    `cleaning_strategy` set instead of mutating an existing link.
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    url: str
    access_method: AccessMethod = Field(alias="accessMethod")
    justification: str = ""
    strategy: Strategy
    cleaning_strategy: str | None = Field(default=None, alias="cleaningStrategy")
    validation_status: ValidationStatus = Field(
        default=ValidationStatus.UNVALIDATED, alias="validationStatus"
    )
    crawl_id: str | None = Field(default=None, alias="crawlId")

    @field_validator("url")
    @classmethod
    def url_not_empty(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("url cannot be empty")
        return v

    @model_validator(mode="after")
    def strategy_matches_method(self) -> "DiscoveredLink":
        """Ensure the strategy was generated for this link's access method."""
        if self.strategy.method != self.access_method:
            raise ValueError(
                f"strategy method {self.strategy.method.value} does not match "
                f"access method {self.access_method.value}"
            )
        return self


class ActivityDetails(BaseModel):
    """Contextual details attached to an activity event."""

    url: str | None = None
    progress: int | None = None
    total: int | None = None
    duration: int | None = None  # milliseconds


class AgentActivity(BaseModel):
    """A progress notification emitted at a stage transition."""

    agent: AgentName
    status: ActivityStatus
    message: str
    timestamp: datetime = Field(default_factory=_utc_now)
    details: ActivityDetails | None = None


class AnalysisResult(BaseModel):
    """Classification of a URL into an access method."""

    model_config = ConfigDict(populate_by_name=True)

    access_method: AccessMethod = Field(alias="accessMethod")
    target: str
    justification: str = ""
