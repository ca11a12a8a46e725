"""Shared test fixtures for the autotube test suite."""

from datetime import date
from pathlib import Path

import pytest

from autotube.application.stages.base import StageContext
from autotube.domain.enums import Preset, Visibility
from autotube.domain.models import Credentials, RunConfig, Script, ScriptSegment
from autotube.domain.types import RunId


@pytest.fixture
def credentials() -> Credentials:
    return Credentials(
        openai_api_key="sk-test",
        elevenlabs_api_key="el-test",
        pexels_api_key="px-test",
        youtube_client_id="client-id",
        youtube_client_secret="client-secret",
        youtube_refresh_token="refresh-token",
    )


@pytest.fixture
def run_config(credentials: Credentials) -> RunConfig:
    """Factory for a typical 60-second news run."""
    return RunConfig(
        topic="Solar power breakthroughs",
        target_duration_seconds=60.0,
        voice_id="21m00Tcm4TlvDq8ikWAM",
        preset=Preset.NEWS,
        credentials=credentials,
        title_template="Daily Briefing - {{date}}",
        description_template="Automated summary for {{date}}.",
        tags=("news", "solar"),
        visibility=Visibility.UNLISTED,
    )


@pytest.fixture
def sample_script() -> Script:
    """Three segments of roughly 20 seconds each."""
    return Script(
        title="Solar power breakthroughs",
        segments=(
            ScriptSegment(text="Perovskite cells set a new efficiency record.", duration_seconds=20.0,
                          keywords=("solar panel", "laboratory")),
            ScriptSegment(text="Grid batteries smooth out the evening peak.", duration_seconds=20.0,
                          keywords=("battery", "power grid")),
            ScriptSegment(text="Rooftop installs doubled across Europe.", duration_seconds=20.0,
                          keywords=("rooftop", "city")),
        ),
        preset=Preset.NEWS,
    )


@pytest.fixture
def stage_context(run_config: RunConfig, tmp_path: Path) -> StageContext:
    workspace = tmp_path / "run"
    (workspace / "clips").mkdir(parents=True)
    return StageContext(
        run_id=RunId("20260301-120000-abc123"),
        config=run_config,
        workspace=workspace,
        run_date=date(2026, 3, 1),
    )
