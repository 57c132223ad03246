"""Tests for the planner configuration module."""

from pathlib import Path

import pytest
import yaml

from dataset_planner.core.config import (
    PlannerConfig,
    RateLimitConfig,
    SamplingConfig,
    ValidationConfig,
    get_default_config,
    reset_default_config,
)


class TestRateLimitConfig:
    """Tests for RateLimitConfig."""

    def test_default_values(self) -> None:
        """Test default rate limit values."""
        config = RateLimitConfig()
        assert config.delay_between_calls == 0.5
        assert config.max_retries == 3
        assert config.backoff_multiplier == 2.0

    def test_from_dict(self) -> None:
        """Test creating from dictionary."""
        config = RateLimitConfig.from_dict({"delay_between_calls": 1, "max_retries": 5})
        assert config.delay_between_calls == 1.0
        assert config.max_retries == 5
        assert config.backoff_multiplier == 2.0

    def test_from_dict_none(self) -> None:
        """Test creating from None returns defaults."""
        assert RateLimitConfig.from_dict(None) == RateLimitConfig()


class TestValidationConfig:
    """Tests for ValidationConfig."""

    def test_default_values(self) -> None:
        """Test default validation values."""
        config = ValidationConfig()
        assert config.enabled is True
        assert config.poll_interval == 2.0
        assert config.max_poll_attempts == 10
        assert config.firecrawl_base_url == "https://api.firecrawl.dev"

    def test_from_dict(self) -> None:
        """Test disabling validation from a dictionary."""
        config = ValidationConfig.from_dict({"enabled": False, "crawl_limit": 3})
        assert config.enabled is False
        assert config.crawl_limit == 3


class TestPlannerConfig:
    """Tests for PlannerConfig."""

    def test_defaults(self) -> None:
        """Test top-level defaults."""
        config = PlannerConfig()
        assert config.provider == "gemini"
        assert config.model is None
        assert config.sampling == SamplingConfig()

    def test_from_dict(self) -> None:
        """Test reading the llm section and nested sections."""
        config = PlannerConfig.from_dict(
            {
                "llm": {"provider": "Claude", "model": "claude-test"},
                "rate_limit": {"max_retries": 1},
                "sampling": {"context_limit": 400},
            }
        )
        assert config.provider == "claude"
        assert config.model == "claude-test"
        assert config.rate_limit.max_retries == 1
        assert config.sampling.context_limit == 400
        assert config.validation == ValidationConfig()

    def test_load_from_file(self, tmp_path: Path) -> None:
        """Test loading configuration from YAML."""
        config_path = tmp_path / "planner.yaml"
        config_path.write_text(yaml.dump({"llm": {"provider": "openai"}}))

        config = PlannerConfig.load(config_path)
        assert config.provider == "openai"

    def test_load_empty_file(self, tmp_path: Path) -> None:
        """Test that an empty file yields defaults."""
        config_path = tmp_path / "planner.yaml"
        config_path.write_text("")

        assert PlannerConfig.load(config_path) == PlannerConfig()

    def test_load_missing_file(self, tmp_path: Path) -> None:
        """Test that a missing file raises FileNotFoundError."""
        with pytest.raises(FileNotFoundError):
            PlannerConfig.load(tmp_path / "nope.yaml")

    def test_bundled_config_parses(self) -> None:
        """Test that the shipped config/planner.yaml loads."""
        bundled = Path(__file__).parent.parent / "config" / "planner.yaml"
        config = PlannerConfig.load(bundled)
        assert config.provider == "gemini"
        assert config.rate_limit.delay_between_calls == 0.5


class TestDefaultConfig:
    """Tests for the cached default configuration."""

    def test_env_path(self, tmp_path: Path, monkeypatch) -> None:
        """Test that DATASET_PLANNER_CONFIG is honoured."""
        config_path = tmp_path / "custom.yaml"
        config_path.write_text(yaml.dump({"llm": {"provider": "qwen"}}))
        monkeypatch.setenv("DATASET_PLANNER_CONFIG", str(config_path))
        reset_default_config()

        assert get_default_config().provider == "qwen"

    def test_missing_env_path_uses_defaults(self) -> None:
        """Test that a missing configured file falls back to defaults."""
        assert get_default_config() == PlannerConfig()

    def test_cached(self) -> None:
        """Test that the same instance is returned until reset."""
        first = get_default_config()
        assert get_default_config() is first
        reset_default_config()
        assert get_default_config() is not first
