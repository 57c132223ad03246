"""Strategy stage: generate a method-specific ingestion strategy."""

import logging
from typing import Any

from dataset_planner.core.enums import AccessMethod
from dataset_planner.core.schema import Strategy
from dataset_planner.planning.retry import is_rate_limit_error
from dataset_planner.services.ai.client import LLMClient, extract_json
from dataset_planner.services.ai.prompts import (
    build_file_strategy_prompt,
    build_strategy_prompt,
)

logger = logging.getLogger(__name__)

LINK_PLACEHOLDER_SNIPPET = "> Error generating strategy for this link."
FILE_PLACEHOLDER_SNIPPET = "> Error generating strategy for this file."

_STRATEGY_FIELDS = ("snippet", "config", "schema")


def parse_strategy_response(raw_response: str, method: AccessMethod, url: str) -> Strategy:
    """
    Build a Strategy from a generator response.

    `method` and `url` always come from the caller, never from the model.

    Raises:
        ValueError: If the response is not a JSON object with any strategy field.
    """
    data: Any = extract_json(raw_response)
    if not isinstance(data, dict) or not any(data.get(f) for f in _STRATEGY_FIELDS):
        raise ValueError("Strategy response has no snippet, config or schema")

    return Strategy(
        method=method,
        url=url,
        config=data.get("config"),
        data_schema=data.get("schema"),
        snippet=data.get("snippet"),
        headers=data.get("headers"),
        params=data.get("params"),
    )


async def generate_strategy(
    client: LLMClient,
    access_method: AccessMethod,
    target: str,
) -> Strategy:
    """
    Generate an ingestion strategy for a classified URL.

    Args:
        client: LLM client to query.
        access_method: The URL's access method.
        target: The URL the strategy should fetch.

    Returns:
        The generated Strategy, or one holding only a placeholder snippet
        when generation fails. Rate-limit errors propagate.
    """
    try:
        prompt = build_strategy_prompt(access_method, target)
        max_tokens = 300 if access_method == AccessMethod.DIRECT_DOWNLOAD else 1000
        response = await client.generate(prompt, temperature=0.3, max_tokens=max_tokens)
        return parse_strategy_response(response, access_method, target)
    except Exception as e:
        if is_rate_limit_error(e):
            raise
        logger.error(f"Error in strategy agent for {target}: {e}")
        return Strategy(method=access_method, url=target, snippet=LINK_PLACEHOLDER_SNIPPET)


async def generate_file_strategy(
    client: LLMClient,
    file_name: str,
    content_sample: str,
    sample_limit: int = 1500,
) -> Strategy:
    """
    Generate a read strategy for a local file from a content sample.

    Returns:
        A LOCAL_FILE Strategy, or a placeholder on failure. Rate-limit
        errors propagate.
    """
    try:
        prompt = build_file_strategy_prompt(file_name, content_sample, sample_limit)
        response = await client.generate(prompt, temperature=0.3, max_tokens=1200)
        return parse_strategy_response(response, AccessMethod.LOCAL_FILE, file_name)
    except Exception as e:
        if is_rate_limit_error(e):
            raise
        logger.error(f"Error in file strategy agent for {file_name}: {e}")
        return Strategy(
            method=AccessMethod.LOCAL_FILE,
            url=file_name,
            snippet=FILE_PLACEHOLDER_SNIPPET,
        )
