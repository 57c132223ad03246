"""
Rate-Limit Retry Module
=======================

Retries async operations that fail with a rate-limit signal, waiting with
exponential backoff between attempts. Any other error propagates at once.
"""

from __future__ import annotations

import asyncio
import functools
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import ParamSpec, TypeVar

from dataset_planner.core.config import RateLimitConfig

logger = logging.getLogger(__name__)

T = TypeVar("T")
P = ParamSpec("P")

SleepFunc = Callable[[float], Awaitable[None]]

RATE_LIMIT_MARKERS = (
    "429",
    "rate limit",
    "rate_limit",
    "ratelimit",
    "too many requests",
    "quota",
)


def is_rate_limit_error(error: BaseException) -> bool:
    """Check whether an error message carries a rate-limit signal."""
    message = str(error).lower()
    return any(marker in message for marker in RATE_LIMIT_MARKERS)


@dataclass(frozen=True)
class RetryPolicy:
    """Backoff settings for rate-limited calls."""

    max_retries: int = 3
    base_delay: float = 0.5
    backoff_multiplier: float = 2.0

    @property
    def max_attempts(self) -> int:
        """Total calls allowed: the first attempt plus each retry."""
        return self.max_retries + 1

    @classmethod
    def from_config(cls, config: RateLimitConfig) -> RetryPolicy:
        return cls(
            max_retries=config.max_retries,
            base_delay=config.delay_between_calls,
            backoff_multiplier=config.backoff_multiplier,
        )


async def with_retry(
    operation: Callable[[], Awaitable[T]],
    max_attempts: int = 4,
    base_delay: float = 0.5,
    backoff_multiplier: float = 2.0,
    sleep: SleepFunc = asyncio.sleep,
) -> T:
    """
    Run an async operation, retrying when it is rate limited.

    Args:
        operation: Zero-argument callable returning an awaitable
        max_attempts: Total number of calls allowed
        base_delay: Seconds to wait after the first failure
        backoff_multiplier: Factor applied to the delay for each further failure
        sleep: Sleep function (injectable for virtual-time tests)

    Returns:
        The operation's result

    Raises:
        Exception: The operation's error, if it is not a rate-limit error or
            attempts are exhausted
    """
    attempt = 0
    while True:
        attempt += 1
        try:
            return await operation()
        except Exception as e:
            if not is_rate_limit_error(e) or attempt >= max_attempts:
                raise
            delay = base_delay * backoff_multiplier ** (attempt - 1)
            logger.warning(
                f"Rate limit hit, retrying in {delay:.2f}s "
                f"(attempt {attempt + 1}/{max_attempts})"
            )
            await sleep(delay)


def retry_on_rate_limit(
    policy: RetryPolicy | None = None,
    sleep: SleepFunc = asyncio.sleep,
) -> Callable[[Callable[P, Awaitable[T]]], Callable[P, Awaitable[T]]]:
    """
    Decorator form of with_retry.

    Example:
        @retry_on_rate_limit(RetryPolicy(max_retries=2))
        async def classify(url: str) -> AnalysisResult: ...
    """
    policy = policy or RetryPolicy()

    def decorator(func: Callable[P, Awaitable[T]]) -> Callable[P, Awaitable[T]]:
        @functools.wraps(func)
        async def wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
            return await with_retry(
                lambda: func(*args, **kwargs),
                max_attempts=policy.max_attempts,
                base_delay=policy.base_delay,
                backoff_multiplier=policy.backoff_multiplier,
                sleep=sleep,
            )

        return wrapper

    return decorator
