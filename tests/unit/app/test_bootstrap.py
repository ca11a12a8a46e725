"""Tests for bootstrap — composition root wiring."""

from __future__ import annotations

from datetime import date
from pathlib import Path

import pytest

from autotube.app.bootstrap import PipelineServices, create_services
from autotube.app.settings import PipelineSettings
from autotube.application.conductor import PipelineConductor
from autotube.application.event_bus import EventBus
from autotube.application.stages.footage_stage import FootageStage
from autotube.application.stages.narration_stage import NarrationStage
from autotube.application.stages.notify_stage import NotifyStage
from autotube.application.stages.publish_stage import PublishStage
from autotube.application.stages.render_stage import RenderStage
from autotube.application.stages.script_stage import ScriptStage
from autotube.application.workspace_manager import WorkspaceManager
from autotube.domain.enums import Preset
from autotube.domain.errors import ConfigurationError
from autotube.domain.models import Credentials, RunConfig


def _settings(tmp_path: Path, **overrides: object) -> PipelineSettings:
    defaults: dict[str, object] = {"_env_file": None, "workspace_dir": tmp_path / "workspace"}
    defaults.update(overrides)
    return PipelineSettings(**defaults)


def _config() -> RunConfig:
    return RunConfig(
        topic="Solar power breakthroughs",
        target_duration_seconds=60.0,
        voice_id="voice-1",
        preset=Preset.NEWS,
        credentials=Credentials(
            openai_api_key="sk",
            elevenlabs_api_key="el",
            pexels_api_key="px",
            youtube_client_id="cid",
            youtube_client_secret="secret",
            youtube_refresh_token="1//r",
        ),
        title_template="Daily Briefing - {{date}}",
        description_template="",
    )


class TestCreateServices:
    def test_returns_services(self, tmp_path: Path) -> None:
        assert isinstance(create_services(_settings(tmp_path)), PipelineServices)

    def test_all_stages_wired(self, tmp_path: Path) -> None:
        services = create_services(_settings(tmp_path))
        assert isinstance(services.stages.script, ScriptStage)
        assert isinstance(services.stages.narration, NarrationStage)
        assert isinstance(services.stages.footage, FootageStage)
        assert isinstance(services.stages.render, RenderStage)
        assert isinstance(services.stages.publish, PublishStage)
        assert isinstance(services.stages.notify, NotifyStage)

    def test_event_log_listener_subscribed(self, tmp_path: Path) -> None:
        services = create_services(_settings(tmp_path))
        assert isinstance(services.event_bus, EventBus)
        assert services.event_bus.listener_count == 1

    def test_workspace_manager_uses_settings(self, tmp_path: Path) -> None:
        services = create_services(_settings(tmp_path))
        assert isinstance(services.workspace_manager, WorkspaceManager)
        assert services.workspace_manager.runs_dir == tmp_path / "workspace" / "runs"

    def test_defaults_from_settings(self, tmp_path: Path) -> None:
        services = create_services(_settings(tmp_path, default_topic="Ocean exploration", upload_tags="sea,fish"))
        assert services.defaults.topic == "Ocean exploration"
        assert services.defaults.tags == ("sea", "fish")


class TestValidation:
    def test_odd_render_size_rejected(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigurationError, match="even"):
            create_services(_settings(tmp_path, render_width=1919))

    def test_unknown_timezone_rejected(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigurationError, match="timezone"):
            create_services(_settings(tmp_path, timezone="Mars/Olympus_Mons"))

    def test_timezone_applied(self, tmp_path: Path) -> None:
        services = create_services(_settings(tmp_path, timezone="America/Sao_Paulo"))
        assert services.timezone.key == "America/Sao_Paulo"
        assert isinstance(services.run_date(), date)


class TestNewConductor:
    def test_fresh_conductor_per_run(self, tmp_path: Path) -> None:
        services = create_services(_settings(tmp_path))
        first = services.new_conductor(_config())
        second = services.new_conductor(_config())

        assert isinstance(first, PipelineConductor)
        assert first is not second
        assert first.run_id != second.run_id
        assert first.run_date == services.run_date()
