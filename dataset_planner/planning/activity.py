"""
Activity Events Module
======================

Single-subscriber sink for planner progress events. Events are delivered
synchronously to the registered observer; when no observer is registered
they are dropped, never queued.
"""

from __future__ import annotations

import logging
from collections import deque
from collections.abc import Callable

from dataset_planner.core.enums import ActivityStatus, AgentName
from dataset_planner.core.schema import ActivityDetails, AgentActivity

logger = logging.getLogger(__name__)

ActivityObserver = Callable[[AgentActivity], None]


class ActivityEmitter:
    """Publishes AgentActivity events to at most one observer."""

    def __init__(self, observer: ActivityObserver | None = None) -> None:
        self._observer = observer

    @property
    def observer(self) -> ActivityObserver | None:
        """The currently registered observer, if any."""
        return self._observer

    def set_observer(self, observer: ActivityObserver | None) -> None:
        """Register an observer, replacing any previous one. None unregisters."""
        self._observer = observer

    def emit(
        self,
        agent: AgentName,
        status: ActivityStatus,
        message: str,
        *,
        url: str | None = None,
        progress: int | None = None,
        total: int | None = None,
        duration: int | None = None,
    ) -> AgentActivity | None:
        """
        Publish an event to the current observer.

        The timestamp is taken at emission time. Observer errors are logged
        and never interrupt the planner.

        Returns:
            The delivered event, or None if no observer was registered
        """
        observer = self._observer
        if observer is None:
            return None

        details = None
        if any(v is not None for v in (url, progress, total, duration)):
            details = ActivityDetails(
                url=url, progress=progress, total=total, duration=duration
            )
        activity = AgentActivity(
            agent=agent,
            status=status,
            message=message,
            details=details,
        )

        try:
            observer(activity)
        except Exception:
            logger.exception("Activity observer raised; event dropped")
        return activity


class ActivityLog:
    """
    Observer that keeps the most recent events.

    Use as `emitter.set_observer(log)`.
    """

    def __init__(self, maxlen: int = 50) -> None:
        self._events: deque[AgentActivity] = deque(maxlen=maxlen)

    def __call__(self, activity: AgentActivity) -> None:
        self._events.append(activity)

    def __len__(self) -> int:
        return len(self._events)

    @property
    def events(self) -> list[AgentActivity]:
        """All retained events in emission order."""
        return list(self._events)

    def latest(self, n: int = 10) -> list[AgentActivity]:
        """The latest n events, newest first."""
        if n <= 0:
            return []
        return list(self._events)[-n:][::-1]

    def clear(self) -> None:
        self._events.clear()
