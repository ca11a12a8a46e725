"""Event transport — push (Server-Sent Events) and collect drivers over one run.

Both drivers consume the conductor's sequence in order, one event at a time,
and always close it on exit so the run's workspace is released.
"""

from __future__ import annotations

import json
import logging
from collections.abc import AsyncGenerator, AsyncIterator
from contextlib import aclosing
from datetime import UTC, datetime

from autotube.application.conductor import PipelineConductor
from autotube.application.event_bus import EventBus
from autotube.domain.enums import EventStatus
from autotube.domain.models import RunEvent, RunReport
from autotube.domain.types import EventId

logger = logging.getLogger(__name__)

SSE_DONE = "data: [DONE]\n\n"


def encode_sse(event: RunEvent) -> str:
    """One event as an SSE ``data:`` frame."""
    return f"data: {json.dumps(event.to_dict())}\n\n"


def fatal_event(exc: BaseException, run_id: str) -> RunEvent:
    """Terminal error for a failure that escaped the conductor itself."""
    return RunEvent(
        id=EventId(f"{run_id}-fatal"),
        status=EventStatus.ERROR,
        title="Fatal",
        timestamp=datetime.now(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z"),
        detail=str(exc) or type(exc).__name__,
        meta={"failure": type(exc).__name__, "terminal": True, "runId": run_id},
    )


class EventStream:
    """Push driver: forwards each event to the bus, then to the consumer."""

    def __init__(self, conductor: PipelineConductor, event_bus: EventBus | None = None) -> None:
        self._conductor = conductor
        self._event_bus = event_bus

    @property
    def run_id(self) -> str:
        return self._conductor.run_id

    def cancel(self) -> None:
        self._conductor.cancel()

    def __aiter__(self) -> AsyncIterator[RunEvent]:
        return self.events()

    async def events(self) -> AsyncGenerator[RunEvent, None]:
        async with aclosing(self._conductor.events()) as source:
            async for event in source:
                if self._event_bus is not None:
                    await self._event_bus.publish(self._conductor.run_id, event)
                yield event

    async def sse(self) -> AsyncGenerator[str, None]:
        """SSE frames for the whole run, ending with ``[DONE]``.

        A consumer that stops reading (client disconnect) closes this
        generator, which cancels the run and releases its workspace.
        """
        try:
            async with aclosing(self.events()) as events:
                async for event in events:
                    yield encode_sse(event)
        except GeneratorExit:
            self.cancel()
            raise
        except Exception as exc:
            logger.exception("Event stream for run %s failed", self.run_id)
            event = fatal_event(exc, self.run_id)
            if self._event_bus is not None:
                await self._event_bus.publish(self._conductor.run_id, event)
            yield encode_sse(event)
        yield SSE_DONE


async def collect_events(conductor: PipelineConductor, event_bus: EventBus | None = None) -> RunReport:
    """Collect driver: run to completion and return every event.

    ``ok`` is true only when the final event is ``success``.
    """
    stream = EventStream(conductor, event_bus)
    collected: list[RunEvent] = []
    try:
        async with aclosing(stream.events()) as events:
            async for event in events:
                collected.append(event)
    except Exception as exc:
        logger.exception("Run %s failed outside any stage", conductor.run_id)
        collected.append(fatal_event(exc, conductor.run_id))

    ok = bool(collected) and collected[-1].status == EventStatus.SUCCESS
    return RunReport(ok=ok, events=tuple(collected), run_id=conductor.run_id)
