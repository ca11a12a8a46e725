"""EventLogListener — mirror run events into the process log."""

from __future__ import annotations

import json
import logging

from autotube.domain.enums import EventStatus
from autotube.domain.models import RunEvent
from autotube.domain.types import RunId

logger = logging.getLogger(__name__)

# Meta keys worth a log line; descriptions and tag lists stay in the event stream
_LOGGED_META_KEYS = ("stage", "failure", "reason", "videoId", "url")


class EventLogListener:
    """Log one line per event: ``<run_id> | <status> | <title> | <detail> | <meta>``.

    Terminal errors log at ERROR, notify failures at WARNING, everything else
    at INFO.
    """

    def __init__(self, log: logging.Logger | None = None) -> None:
        self._log = log or logger

    async def __call__(self, run_id: RunId, event: RunEvent) -> None:
        if event.status == EventStatus.ERROR:
            level = logging.ERROR if event.is_terminal else logging.WARNING
        else:
            level = logging.INFO

        meta = {k: event.meta[k] for k in _LOGGED_META_KEYS if k in event.meta}
        self._log.log(
            level,
            "%s | %s | %s | %s | %s",
            run_id,
            event.status.value,
            event.title,
            event.detail or "-",
            json.dumps(meta, separators=(",", ":")),
        )
