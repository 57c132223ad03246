"""Shared fixtures for dataset planner tests."""

from collections.abc import Callable
from typing import Any

import pytest

from dataset_planner.core.config import reset_default_config
from dataset_planner.services.ai.client import LLMClient, LLMProvider

Reply = str | Exception


class ScriptedLLM(LLMClient):
    """
    LLM client returning canned replies.

    Replies come from `handler(prompt)` when given, otherwise from the
    `replies` list in order. Exceptions are raised instead of returned.
    """

    provider = LLMProvider.GEMINI
    model = "test-model"

    def __init__(
        self,
        replies: list[Reply] | None = None,
        handler: Callable[[str], Reply] | None = None,
    ) -> None:
        self.replies = list(replies or [])
        self.handler = handler
        self.calls: list[dict[str, Any]] = []

    async def generate(
        self,
        prompt: str,
        system_prompt: str | None = None,
        temperature: float = 0.7,
        max_tokens: int = 4000,
    ) -> str:
        self.calls.append(
            {"prompt": prompt, "temperature": temperature, "max_tokens": max_tokens}
        )
        reply = self.handler(prompt) if self.handler else self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return reply


class RecordingSleep:
    """Async sleep replacement that records requested delays."""

    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


@pytest.fixture
def scripted_llm() -> type[ScriptedLLM]:
    """The ScriptedLLM class, for building clients in tests."""
    return ScriptedLLM


@pytest.fixture
def recording_sleep() -> RecordingSleep:
    """A fresh virtual-time sleep."""
    return RecordingSleep()


@pytest.fixture(autouse=True)
def isolated_environment(tmp_path, monkeypatch):
    """Keep tests away from real settings, config and API keys."""
    monkeypatch.setenv("DATASET_PLANNER_HOME", str(tmp_path / "home"))
    monkeypatch.setenv("DATASET_PLANNER_CONFIG", str(tmp_path / "missing.yaml"))
    for var in (
        "FIRECRAWL_API_KEY",
        "GEMINI_API_KEY",
        "OPENAI_API_KEY",
        "ANTHROPIC_API_KEY",
        "DEEPSEEK_API_KEY",
        "DASHSCOPE_API_KEY",
    ):
        monkeypatch.delenv(var, raising=False)
    reset_default_config()
    yield
    reset_default_config()
