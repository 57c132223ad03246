"""Refinement stage: markdown cleaning steps for an existing strategy."""

import logging

from dataset_planner.core.errors import RefinementError
from dataset_planner.planning.retry import is_rate_limit_error
from dataset_planner.services.ai.client import LLMClient
from dataset_planner.services.ai.prompts import build_refinement_prompt

logger = logging.getLogger(__name__)


async def get_cleaning_steps(
    client: LLMClient,
    strategy_context: str,
    instructions: str,
    context_limit: int = 800,
) -> str:
    """
    Generate cleaning steps for a strategy.

    Args:
        client: LLM client to query.
        strategy_context: Serialized strategy, truncated to `context_limit`.
        instructions: Free-text cleaning instructions from the user.
        context_limit: Maximum characters of context sent to the model.

    Returns:
        Markdown text, verbatim from the model.

    Raises:
        GenerationError: Rate-limit failures, unchanged.
        RefinementError: Any other failure.
    """
    prompt = build_refinement_prompt(strategy_context, instructions, context_limit)
    try:
        return await client.generate(prompt, temperature=0.4, max_tokens=800)
    except Exception as e:
        if is_rate_limit_error(e):
            raise
        logger.error(f"Error in refinement agent: {e}")
        raise RefinementError("Failed to generate cleaning steps. Please try again.") from e
