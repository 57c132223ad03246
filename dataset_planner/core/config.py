"""
Planner Configuration Module
============================

Loads planner settings (rate limiting, crawl validation, sampling and LLM
provider) from a YAML file, using defaults for anything not specified.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml


@dataclass
class RateLimitConfig:
    """Retry and pacing configuration for external service calls."""

    delay_between_calls: float = 0.5
    max_retries: int = 3
    backoff_multiplier: float = 2.0

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> RateLimitConfig:
        """Create from dictionary, using defaults for missing values."""
        if data is None:
            return cls()
        return cls(
            delay_between_calls=float(data.get("delay_between_calls", 0.5)),
            max_retries=int(data.get("max_retries", 3)),
            backoff_multiplier=float(data.get("backoff_multiplier", 2.0)),
        )


@dataclass
class ValidationConfig:
    """Crawl validation (Firecrawl) configuration."""

    enabled: bool = True
    poll_interval: float = 2.0
    max_poll_attempts: int = 10
    crawl_limit: int = 10
    firecrawl_base_url: str = "https://api.firecrawl.dev"
    request_timeout: float = 30.0

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> ValidationConfig:
        """Create from dictionary, using defaults for missing values."""
        if data is None:
            return cls()
        return cls(
            enabled=bool(data.get("enabled", True)),
            poll_interval=float(data.get("poll_interval", 2.0)),
            max_poll_attempts=int(data.get("max_poll_attempts", 10)),
            crawl_limit=int(data.get("crawl_limit", 10)),
            firecrawl_base_url=data.get("firecrawl_base_url", "https://api.firecrawl.dev"),
            request_timeout=float(data.get("request_timeout", 30.0)),
        )


@dataclass
class SamplingConfig:
    """Limits on how much content is sent to the generator."""

    chunk_size: int = 2048
    context_limit: int = 800
    file_sample_limit: int = 1500

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> SamplingConfig:
        """Create from dictionary, using defaults for missing values."""
        if data is None:
            return cls()
        return cls(
            chunk_size=int(data.get("chunk_size", 2048)),
            context_limit=int(data.get("context_limit", 800)),
            file_sample_limit=int(data.get("file_sample_limit", 1500)),
        )


@dataclass
class PlannerConfig:
    """Top-level planner configuration."""

    provider: str = "gemini"
    model: str | None = None
    rate_limit: RateLimitConfig = field(default_factory=RateLimitConfig)
    validation: ValidationConfig = field(default_factory=ValidationConfig)
    sampling: SamplingConfig = field(default_factory=SamplingConfig)

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> PlannerConfig:
        """Create from dictionary."""
        if data is None:
            return cls()
        llm = data.get("llm") or {}
        return cls(
            provider=str(llm.get("provider", "gemini")).lower(),
            model=llm.get("model"),
            rate_limit=RateLimitConfig.from_dict(data.get("rate_limit")),
            validation=ValidationConfig.from_dict(data.get("validation")),
            sampling=SamplingConfig.from_dict(data.get("sampling")),
        )

    @classmethod
    def load(cls, config_path: Path | str) -> PlannerConfig:
        """
        Load configuration from a YAML file.

        Args:
            config_path: Path to the planner.yaml file

        Returns:
            The parsed PlannerConfig

        Raises:
            FileNotFoundError: If the file does not exist
        """
        config_path = Path(config_path).expanduser().resolve()
        if not config_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

        with open(config_path) as f:
            data = yaml.safe_load(f)

        return cls.from_dict(data or {})


# Global config instance
_default_config: PlannerConfig | None = None


def get_default_config() -> PlannerConfig:
    """
    Get the default planner configuration.

    Loads configuration from the path in the DATASET_PLANNER_CONFIG
    environment variable, or falls back to config/planner.yaml in the
    project root. Missing files yield the built-in defaults.

    Returns:
        The global PlannerConfig instance
    """
    global _default_config

    if _default_config is None:
        config_path = os.environ.get("DATASET_PLANNER_CONFIG")
        if config_path:
            path = Path(config_path)
        else:
            project_root = Path(__file__).parent.parent.parent
            path = project_root / "config" / "planner.yaml"

        if path.exists():
            _default_config = PlannerConfig.load(path)
        else:
            _default_config = PlannerConfig()

    return _default_config


def reset_default_config() -> None:
    """Reset the default configuration (useful for testing)."""
    global _default_config
    _default_config = None
