"""EventBus — in-process fan-out of run events to observability listeners."""

from __future__ import annotations

import logging
from collections.abc import Callable, Coroutine
from typing import Any

from autotube.domain.models import RunEvent
from autotube.domain.types import RunId

logger = logging.getLogger(__name__)

# Async listener receiving the owning run id and the event
EventListener = Callable[[RunId, RunEvent], Coroutine[Any, Any, None]]


class EventBus:
    """Publish-subscribe bus shared by all runs of one process.

    Listeners only observe; they never hold run state. A failing listener is
    logged and skipped so it cannot alter the event sequence a client sees.
    """

    def __init__(self) -> None:
        self._listeners: list[EventListener] = []

    def subscribe(self, listener: EventListener) -> None:
        """Register an async listener to receive every published event."""
        self._listeners.append(listener)

    def unsubscribe(self, listener: EventListener) -> None:
        """Remove a previously registered listener. Unknown listeners are ignored."""
        if listener in self._listeners:
            self._listeners.remove(listener)

    async def publish(self, run_id: RunId, event: RunEvent) -> None:
        """Dispatch ``event`` to each listener in subscription order."""
        for listener in self._listeners:
            try:
                await listener(run_id, event)
            except Exception:
                logger.exception(
                    "Listener %s failed for event %s of run %s",
                    getattr(listener, "__name__", repr(listener)),
                    event.id,
                    run_id,
                )

    @property
    def listener_count(self) -> int:
        return len(self._listeners)
