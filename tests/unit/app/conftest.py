"""Shared fixtures for app-layer tests: a services container whose stages never leave the process."""

from __future__ import annotations

from pathlib import Path
from typing import Any
from zoneinfo import ZoneInfo

import pytest

from autotube.app.bootstrap import PipelineServices
from autotube.app.run_request import RunDefaults
from autotube.app.settings import PipelineSettings
from autotube.application.conductor import PipelineStages
from autotube.application.event_bus import EventBus
from autotube.application.stages.base import StageContext, StageSummary
from autotube.application.workspace_manager import WorkspaceManager
from autotube.domain.enums import StageName
from autotube.domain.models import NotifyReceipt, PublishResult, RunArtifacts
from autotube.domain.types import VideoId


class StubStage:
    """Stage returning a canned artifact, or raising ``error``."""

    def __init__(self, name: StageName, result: Any = None, error: Exception | None = None) -> None:
        self.name = name
        self.artifact_field = name.value
        self.result = result if result is not None else f"{name.value}-artifact"
        self.error = error
        self.calls = 0

    async def run(self, context: StageContext, artifacts: RunArtifacts) -> Any:
        self.calls += 1
        if self.error is not None:
            raise self.error
        if self.name == StageName.PUBLISH:
            return PublishResult(
                video_id=VideoId("vid123"),
                url="https://www.youtube.com/watch?v=vid123",
                visibility=context.config.visibility,
                title=context.config.topic,
                description="",
            )
        return self.result

    def summarize(self, artifact: Any) -> StageSummary | None:
        if self.name in (StageName.PUBLISH, StageName.NOTIFY):
            return None
        return StageSummary(title=f"{self.name.value} ready")


def stub_stages(**overrides: StubStage) -> PipelineStages:
    stages: dict[str, Any] = {
        name.value: StubStage(name) for name in StageName if name != StageName.NOTIFY
    }
    stages["notify"] = StubStage(StageName.NOTIFY, result=NotifyReceipt(delivered=False, skipped=True))
    stages.update(overrides)
    return PipelineStages(**stages)


@pytest.fixture
def settings(tmp_path: Path) -> PipelineSettings:
    return PipelineSettings(
        _env_file=None,
        openai_api_key="sk-env",
        elevenlabs_api_key="el-env",
        pexels_api_key="px-env",
        youtube_client_id="cid-env",
        youtube_client_secret="secret-env",
        youtube_refresh_token="1//env",
        workspace_dir=tmp_path / "workspace",
    )


@pytest.fixture
def make_services(settings: PipelineSettings):
    def _make(stages: PipelineStages | None = None, app_settings: PipelineSettings | None = None) -> PipelineServices:
        active = app_settings or settings
        return PipelineServices(
            settings=active,
            defaults=RunDefaults.from_settings(active),
            stages=stages or stub_stages(),
            workspace_manager=WorkspaceManager(active.workspace_dir),
            event_bus=EventBus(),
            timezone=ZoneInfo("UTC"),
        )

    return _make


@pytest.fixture
def stub_stage() -> type[StubStage]:
    return StubStage


@pytest.fixture
def make_stages():
    return stub_stages
