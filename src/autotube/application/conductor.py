"""PipelineConductor — run the six stages in order and narrate progress as events.

One conductor represents exactly one run. It owns no global state: the run
id, artifacts, workspace, and cancellation flag all live on the instance.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import AsyncGenerator, Iterator
from dataclasses import dataclass, replace
from datetime import UTC, date, datetime
from typing import Any

from autotube.application.stages.base import Stage, StageContext
from autotube.application.workspace_manager import WorkspaceManager
from autotube.domain.enums import EventStatus, StageName
from autotube.domain.errors import PipelineError, StageFailure
from autotube.domain.models import RunArtifacts, RunConfig, RunEvent
from autotube.domain.types import EventId, RunId

logger = logging.getLogger(__name__)

# (status, title) emitted before each stage that announces itself
_START_EVENTS: dict[StageName, tuple[EventStatus, str]] = {
    StageName.SCRIPT: (EventStatus.INFO, "Generating script"),
    StageName.NARRATION: (EventStatus.INFO, "Synthesizing narration"),
    StageName.FOOTAGE: (EventStatus.INFO, "Sourcing stock footage"),
    StageName.RENDER: (EventStatus.INFO, "Rendering video"),
    StageName.PUBLISH: (EventStatus.UPLOADING, "Uploading to YouTube"),
    StageName.NOTIFY: (EventStatus.INFO, "Notifying webhook"),
}

_FAILURE_TITLES: dict[StageName, str] = {
    StageName.SCRIPT: "Script generation failed",
    StageName.NARRATION: "Narration failed",
    StageName.FOOTAGE: "Footage sourcing failed",
    StageName.RENDER: "Render failed",
    StageName.PUBLISH: "Upload failed",
    StageName.NOTIFY: "Webhook delivery failed",
}


@dataclass(frozen=True)
class PipelineStages:
    """The six stage instances a conductor drives, in execution order."""

    script: Stage
    narration: Stage
    footage: Stage
    render: Stage
    publish: Stage
    notify: Stage

    def core(self) -> Iterator[Stage]:
        """Stages whose failure ends the run."""
        yield from (self.script, self.narration, self.footage, self.render, self.publish)


def generate_run_id() -> RunId:
    ts = datetime.now(UTC).strftime("%Y%m%d-%H%M%S")
    return RunId(f"{ts}-{uuid.uuid4().hex[:6]}")


def _timestamp() -> str:
    return datetime.now(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


class PipelineConductor:
    """Drive Script → Narration → Footage → Render → Publish → Notify for one run.

    ``events()`` yields exactly one terminal event (``success`` or a terminal
    ``error``) unless the run is cancelled, after which nothing is emitted.
    Notify failures surface as a non-terminal ``error`` before ``success``.
    """

    def __init__(
        self,
        config: RunConfig,
        stages: PipelineStages,
        workspace_manager: WorkspaceManager,
        run_date: date | None = None,
    ) -> None:
        self._config = config
        self._stages = stages
        self._workspace_manager = workspace_manager
        self._run_id = generate_run_id()
        self._run_date = run_date or datetime.now(UTC).date()
        self._started = False
        self._cancelled = False
        self._event_seq = 0

    @property
    def run_id(self) -> RunId:
        return self._run_id

    @property
    def run_date(self) -> date:
        return self._run_date

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        """Stop before the next stage starts. An in-flight stage is not interrupted."""
        if not self._cancelled:
            logger.info("Run %s cancellation requested", self._run_id)
        self._cancelled = True

    def events(self) -> AsyncGenerator[RunEvent, None]:
        """Start the run and return its event sequence. May be called once."""
        if self._started:
            raise PipelineError(f"Run {self._run_id} has already been started")
        self._started = True
        return self._run()

    async def _run(self) -> AsyncGenerator[RunEvent, None]:
        config = self._config
        logger.info(
            "Run %s started: topic=%r preset=%s target=%.0fs",
            self._run_id,
            config.topic,
            config.preset.value,
            config.target_duration_seconds,
        )

        async with self._workspace_manager.managed_workspace(self._run_id) as workspace:
            context = StageContext(
                run_id=self._run_id,
                config=config,
                workspace=workspace,
                run_date=self._run_date,
            )
            artifacts = RunArtifacts()

            for stage in self._stages.core():
                if self._stop_requested(stage.name):
                    return
                status, title = _START_EVENTS[stage.name]
                yield self._event(status, title, meta={"stage": stage.name.value})
                if self._stop_requested(stage.name):
                    return

                try:
                    result = await stage.run(context, artifacts)
                except StageFailure as exc:
                    logger.error("Run %s: %s failed (%s): %s", self._run_id, stage.name.value, exc.kind, exc.message)
                    yield self._failure_event(stage.name, exc.message, exc.kind, exc.reason, terminal=True)
                    return
                except Exception as exc:
                    logger.exception("Run %s: unexpected error in %s stage", self._run_id, stage.name.value)
                    yield self._failure_event(stage.name, str(exc) or type(exc).__name__, "UnexpectedError", "", True)
                    return

                artifacts = replace(artifacts, **{stage.artifact_field: result})
                summary = stage.summarize(result)
                if summary is not None:
                    yield self._event(
                        EventStatus.PROGRESS,
                        summary.title,
                        detail=summary.detail,
                        meta={"stage": stage.name.value, **summary.meta},
                    )

            if self._stop_requested(StageName.NOTIFY):
                return
            notify = self._stages.notify
            if config.webhook_url:
                status, title = _START_EVENTS[StageName.NOTIFY]
                yield self._event(status, title, meta={"stage": notify.name.value})
                if self._stop_requested(StageName.NOTIFY):
                    return
            try:
                receipt = await notify.run(context, artifacts)
            except StageFailure as exc:
                logger.warning("Run %s: webhook delivery failed: %s", self._run_id, exc.message)
                yield self._failure_event(notify.name, exc.message, exc.kind, exc.reason, terminal=False)
            except Exception as exc:
                logger.exception("Run %s: unexpected error in notify stage", self._run_id)
                yield self._failure_event(notify.name, str(exc) or type(exc).__name__, "UnexpectedError", "", False)
            else:
                artifacts = replace(artifacts, notify=receipt)
                summary = notify.summarize(receipt)
                if summary is not None:
                    yield self._event(EventStatus.INFO, summary.title, detail=summary.detail, meta=dict(summary.meta))

            yield self._success_event(artifacts)
            logger.info("Run %s completed", self._run_id)

    def _stop_requested(self, next_stage: StageName) -> bool:
        if self._cancelled:
            logger.info("Run %s cancelled before %s stage", self._run_id, next_stage.value)
        return self._cancelled

    def _event(
        self,
        status: EventStatus,
        title: str,
        detail: str | None = None,
        meta: dict[str, Any] | None = None,
    ) -> RunEvent:
        self._event_seq += 1
        return RunEvent(
            id=EventId(f"{self._run_id}-{self._event_seq:03d}"),
            status=status,
            title=title,
            timestamp=_timestamp(),
            detail=detail,
            meta=meta or {},
        )

    def _failure_event(
        self,
        stage: StageName,
        message: str,
        failure: str,
        reason: str,
        terminal: bool,
    ) -> RunEvent:
        meta: dict[str, Any] = {
            "stage": stage.value,
            "failure": failure,
            "terminal": terminal,
            "runId": self._run_id,
        }
        if reason:
            meta["reason"] = reason
        return self._event(EventStatus.ERROR, _FAILURE_TITLES[stage], detail=message, meta=meta)

    def _success_event(self, artifacts: RunArtifacts) -> RunEvent:
        publish = artifacts.publish
        if publish is None:
            raise PipelineError(f"Run {self._run_id} finished without a publish result")
        return self._event(
            EventStatus.SUCCESS,
            "Video published",
            detail=publish.url,
            meta={
                "videoId": publish.video_id,
                "url": publish.url,
                "visibility": publish.visibility.value,
                "title": publish.title,
                "description": publish.description,
                "tags": list(publish.tags),
                "runId": self._run_id,
            },
        )
