"""LLM client interface and provider abstraction."""

import json
import os
import re
from abc import ABC, abstractmethod
from enum import Enum
from typing import Any

from dataset_planner.core.errors import GenerationError

_JSON_OBJECT_RE = re.compile(r"\{[\s\S]*\}")


def extract_json(raw_response: str) -> Any:
    """
    Parse a JSON object out of an LLM response.

    Strips markdown code fences and any prose around the outermost
    braces before parsing.

    Args:
        raw_response: The raw text returned by the model.

    Returns:
        The parsed JSON value.

    Raises:
        json.JSONDecodeError: If no valid JSON can be recovered.
    """
    json_str = raw_response.strip()
    if json_str.startswith("```json"):
        json_str = json_str[7:]
    if json_str.startswith("```"):
        json_str = json_str[3:]
    if json_str.endswith("```"):
        json_str = json_str[:-3]
    json_str = json_str.strip()

    match = _JSON_OBJECT_RE.search(json_str)
    if match:
        json_str = match.group(0)

    return json.loads(json_str)


class LLMProvider(str, Enum):
    """Supported LLM providers."""

    GEMINI = "gemini"
    OPENAI = "openai"
    CLAUDE = "claude"
    DEEPSEEK = "deepseek"
    QWEN = "qwen"


# Environment variable holding each provider's API key
PROVIDER_KEY_ENV = {
    LLMProvider.GEMINI: "GEMINI_API_KEY",
    LLMProvider.OPENAI: "OPENAI_API_KEY",
    LLMProvider.CLAUDE: "ANTHROPIC_API_KEY",
    LLMProvider.DEEPSEEK: "DEEPSEEK_API_KEY",
    LLMProvider.QWEN: "DASHSCOPE_API_KEY",
}


class LLMClient(ABC):
    """Abstract base class for LLM providers."""

    provider: LLMProvider
    model: str

    @abstractmethod
    async def generate(
        self,
        prompt: str,
        system_prompt: str | None = None,
        temperature: float = 0.7,
        max_tokens: int = 4000,
    ) -> str:
        """
        Generate text for a prompt.

        Args:
            prompt: The user prompt.
            system_prompt: Optional system instructions.
            temperature: Sampling temperature.
            max_tokens: Maximum tokens to generate.

        Returns:
            The generated text.

        Raises:
            GenerationError: If the provider call fails or returns no text.
                The message keeps the underlying cause so rate-limit
                markers (e.g. "429") remain detectable.
        """
        pass

    def _wrap_error(self, error: Exception) -> GenerationError:
        """Build a GenerationError that names the provider and keeps the cause."""
        return GenerationError(
            f"Failed to generate content with {self.provider.value}: {error}"
        )


def get_llm_client(
    provider: LLMProvider | str,
    api_key: str,
    model: str | None = None,
) -> LLMClient:
    """
    Factory function to get an LLM client for the specified provider.

    Args:
        provider: The LLM provider to use.
        api_key: The API key for the provider.
        model: Optional model name override.

    Returns:
        An LLMClient instance for the specified provider.

    Raises:
        ValueError: If the provider is not supported.
    """
    if isinstance(provider, str):
        provider = LLMProvider(provider.lower())

    if provider == LLMProvider.CLAUDE:
        from dataset_planner.services.ai.providers.anthropic import AnthropicClient

        return AnthropicClient(api_key=api_key, model=model)
    elif provider in (LLMProvider.OPENAI, LLMProvider.DEEPSEEK, LLMProvider.QWEN):
        from dataset_planner.services.ai.providers.openai import OpenAIClient

        return OpenAIClient(api_key=api_key, model=model, provider=provider)
    elif provider == LLMProvider.GEMINI:
        from dataset_planner.services.ai.providers.gemini import GeminiClient

        return GeminiClient(api_key=api_key, model=model)
    else:
        raise ValueError(f"Unsupported LLM provider: {provider}")


def create_client_from_env(
    provider: LLMProvider | str,
    model: str | None = None,
) -> LLMClient:
    """
    Create an LLM client using the provider's API key from the environment.

    Raises:
        ValueError: If the provider is unknown or its key is not set.
    """
    if isinstance(provider, str):
        try:
            provider = LLMProvider(provider.lower())
        except ValueError:
            raise ValueError(f"Unsupported LLM provider: {provider}")

    env_var = PROVIDER_KEY_ENV[provider]
    api_key = os.environ.get(env_var)
    if not api_key:
        raise ValueError(f"{env_var} environment variable is required")

    return get_llm_client(provider=provider, api_key=api_key, model=model)
