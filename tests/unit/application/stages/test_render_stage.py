"""Tests for RenderStage — timeline hand-off, measurement, and input checks."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import AsyncMock

import pytest

from autotube.application.stages.base import StageContext
from autotube.application.stages.render_stage import RenderStage
from autotube.domain.enums import QualityTier
from autotube.domain.errors import RenderFailure
from autotube.domain.models import FootageCandidate, FootageClip, FootageSet, Narration, RunArtifacts


def _artifacts(tmp_path: Path, narration_seconds: float = 20.0) -> RunArtifacts:
    clips = tuple(
        FootageClip(
            candidate=FootageCandidate(
                clip_id=str(i),
                file_url=f"https://cdn.example.com/{i}.mp4",
                duration_seconds=12.0,
                width=1920,
                height=1080,
                quality=QualityTier.HD,
            ),
            path=tmp_path / f"{i}.mp4",
            query="q",
            allotted_seconds=10.0,
        )
        for i in range(2)
    )
    narration = Narration(audio_path=tmp_path / "narration.mp3", duration_seconds=narration_seconds, size_bytes=10)
    return RunArtifacts(narration=narration, footage=FootageSet(clips=clips))


def _renderer() -> AsyncMock:
    renderer = AsyncMock()

    async def _render(timeline, audio, output):
        output.write_bytes(b"\x00" * 2048)
        return output

    renderer.render.side_effect = _render
    return renderer


class TestRenderStage:
    async def test_renders_and_measures(self, stage_context: StageContext, tmp_path: Path) -> None:
        renderer = _renderer()
        probe = AsyncMock()
        probe.probe.return_value = 20.02
        stage = RenderStage(renderer, probe)

        video = await stage.run(stage_context, _artifacts(tmp_path))

        assert video.path == stage_context.workspace / "render.mp4"
        assert video.size_bytes == 2048
        assert video.duration_seconds == 20.02
        timeline, audio, _ = renderer.render.await_args.args
        assert sum(e.duration_seconds for e in timeline) == pytest.approx(20.0)
        assert audio == tmp_path / "narration.mp3"

    async def test_missing_footage_fails(self, stage_context: StageContext, tmp_path: Path) -> None:
        stage = RenderStage(_renderer(), AsyncMock())
        artifacts = _artifacts(tmp_path)
        with pytest.raises(RenderFailure) as exc_info:
            await stage.run(stage_context, RunArtifacts(narration=artifacts.narration))
        assert exc_info.value.reason == "empty_input"

    async def test_unmeasurable_output_fails(self, stage_context: StageContext, tmp_path: Path) -> None:
        probe = AsyncMock()
        probe.probe.return_value = None
        stage = RenderStage(_renderer(), probe)
        with pytest.raises(RenderFailure, match="measurable"):
            await stage.run(stage_context, _artifacts(tmp_path))

    async def test_encoder_failure_propagates(self, stage_context: StageContext, tmp_path: Path) -> None:
        renderer = AsyncMock()
        renderer.render.side_effect = RenderFailure("ffmpeg binary not found: ffmpeg", reason="missing_binary")
        stage = RenderStage(renderer, AsyncMock())
        with pytest.raises(RenderFailure, match="not found"):
            await stage.run(stage_context, _artifacts(tmp_path))

    async def test_footage_gap_beyond_tolerance_fails(self, stage_context: StageContext, tmp_path: Path) -> None:
        stage = RenderStage(_renderer(), AsyncMock(), loop_tolerance_seconds=1.0)
        with pytest.raises(RenderFailure, match="Footage covers"):
            await stage.run(stage_context, _artifacts(tmp_path, narration_seconds=40.0))
