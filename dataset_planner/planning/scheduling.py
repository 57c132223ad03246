"""Fixed-delay pacing for sequential calls to rate-limited services."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable


class FixedDelaySequencer:
    """
    Paces sequential work items with a fixed delay.

    The first call to `wait_turn` returns immediately; every later call
    sleeps for `delay` seconds first.
    """

    def __init__(
        self,
        delay: float,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self.delay = delay
        self._sleep = sleep
        self._turns = 0

    @property
    def turns(self) -> int:
        """Number of turns granted so far."""
        return self._turns

    async def wait_turn(self) -> None:
        """Wait until the next work item may start."""
        if self._turns > 0 and self.delay > 0:
            await self._sleep(self.delay)
        self._turns += 1
