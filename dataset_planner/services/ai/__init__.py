"""LLM services for the dataset planner."""

from dataset_planner.services.ai.client import (
    LLMClient,
    LLMProvider,
    create_client_from_env,
    extract_json,
    get_llm_client,
)

__all__ = [
    "LLMClient",
    "LLMProvider",
    "create_client_from_env",
    "extract_json",
    "get_llm_client",
]
