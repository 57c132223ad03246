"""Discovery stage: dataset description to candidate URLs."""

import logging

from dataset_planner.core.errors import DiscoveryError
from dataset_planner.planning.retry import is_rate_limit_error
from dataset_planner.services.ai.client import LLMClient, extract_json
from dataset_planner.services.ai.prompts import build_discovery_prompt

logger = logging.getLogger(__name__)

DISCOVERY_FAILED_MESSAGE = "Failed to discover dataset URLs. Try refining your description."


def parse_discovery_response(raw_response: str) -> list[str]:
    """
    Extract the URL list from a discovery response.

    Entries that are not non-blank strings are discarded. Order is kept and
    duplicates are not removed.

    Raises:
        DiscoveryError: If the response has no "urls" list.
    """
    try:
        data = extract_json(raw_response)
    except ValueError as e:
        raise DiscoveryError(f"Invalid JSON from discovery agent: {e}") from e

    if not isinstance(data, dict) or not isinstance(data.get("urls"), list):
        raise DiscoveryError("Invalid format from discovery agent.")

    return [u.strip() for u in data["urls"] if isinstance(u, str) and u.strip()]


async def find_dataset_urls(client: LLMClient, description: str) -> list[str]:
    """
    Ask the LLM for candidate dataset URLs.

    Args:
        client: LLM client to query.
        description: Natural-language description of the wanted dataset.

    Returns:
        Candidate URLs in the order the model returned them.

    Raises:
        GenerationError: Rate-limit failures, unchanged, so they can be retried.
        DiscoveryError: Any other failure, with a user-facing message.
    """
    prompt = build_discovery_prompt(description)
    try:
        response = await client.generate(prompt, temperature=0.5, max_tokens=800)
        urls = parse_discovery_response(response)
    except Exception as e:
        if is_rate_limit_error(e):
            raise
        logger.error(f"Error in discovery agent: {e}")
        raise DiscoveryError(DISCOVERY_FAILED_MESSAGE) from e

    logger.info(f"Discovery returned {len(urls)} URLs")
    return urls
