"""Stage contract — shared context and summary types for the six pipeline stages."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import date
from pathlib import Path
from types import MappingProxyType
from typing import Any, Protocol, runtime_checkable

from autotube.domain.enums import StageName
from autotube.domain.models import RunArtifacts, RunConfig
from autotube.domain.types import RunId


@dataclass(frozen=True)
class StageContext:
    """Read-only inputs shared by every stage of one run."""

    run_id: RunId
    config: RunConfig
    workspace: Path
    run_date: date


@dataclass(frozen=True)
class StageSummary:
    """Human-readable result of a stage, rendered as a ``progress`` event."""

    title: str
    detail: str | None = None
    meta: Mapping[str, Any] = field(default_factory=lambda: MappingProxyType({}))


@runtime_checkable
class Stage(Protocol):
    """One pipeline step wrapping a single external capability.

    ``run`` receives the artifacts produced so far and returns this stage's
    artifact, or raises the stage's ``StageFailure`` subclass. The Conductor
    stores the result under ``artifact_field``.
    """

    name: StageName
    artifact_field: str

    async def run(self, context: StageContext, artifacts: RunArtifacts) -> Any: ...

    def summarize(self, artifact: Any) -> StageSummary | None: ...
