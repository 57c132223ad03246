"""LLM provider implementations."""

from dataset_planner.services.ai.providers.anthropic import AnthropicClient
from dataset_planner.services.ai.providers.gemini import GeminiClient
from dataset_planner.services.ai.providers.openai import OpenAIClient

__all__ = ["AnthropicClient", "GeminiClient", "OpenAIClient"]
