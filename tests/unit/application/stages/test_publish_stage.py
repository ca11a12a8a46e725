"""Tests for PublishStage — metadata expansion, token exchange, and upload."""

from __future__ import annotations

from dataclasses import replace
from datetime import date
from pathlib import Path
from unittest.mock import AsyncMock

import pytest

from autotube.application.stages.base import StageContext
from autotube.application.stages.publish_stage import PublishStage, build_upload_metadata
from autotube.domain.enums import Visibility
from autotube.domain.errors import AuthFailure, UploadFailure
from autotube.domain.models import RenderedVideo, RunArtifacts, RunConfig
from autotube.domain.types import VideoId


def _stage(video_id: str = "abc123XYZ") -> tuple[PublishStage, AsyncMock, AsyncMock]:
    tokens = AsyncMock()
    tokens.refresh_access_token.return_value = "ya29.token"
    uploader = AsyncMock()
    uploader.upload.return_value = VideoId(video_id)
    return PublishStage(tokens, uploader), tokens, uploader


def _artifacts(tmp_path: Path) -> RunArtifacts:
    return RunArtifacts(render=RenderedVideo(path=tmp_path / "render.mp4", duration_seconds=60.0, size_bytes=1))


class TestBuildUploadMetadata:
    def test_expands_date(self, run_config: RunConfig) -> None:
        metadata = build_upload_metadata(run_config, date(2026, 3, 1))
        assert metadata.title == "Daily Briefing - 2026-03-01"
        assert metadata.description == "Automated summary for 2026-03-01."
        assert metadata.tags == ("news", "solar")
        assert metadata.visibility == Visibility.UNLISTED

    def test_empty_title_falls_back_to_topic(self, run_config: RunConfig) -> None:
        metadata = build_upload_metadata(replace(run_config, title_template="<>"), date(2026, 3, 1))
        assert metadata.title == "Solar power breakthroughs"

    def test_category_passed_through(self, run_config: RunConfig) -> None:
        assert build_upload_metadata(run_config, date(2026, 3, 1), category_id="25").category_id == "25"


class TestPublishStage:
    async def test_uploads_with_exchanged_token(self, stage_context: StageContext, tmp_path: Path) -> None:
        stage, tokens, uploader = _stage()

        result = await stage.run(stage_context, _artifacts(tmp_path))

        tokens.refresh_access_token.assert_awaited_once_with("client-id", "client-secret", "refresh-token")
        video, metadata, token = uploader.upload.await_args.args
        assert video == tmp_path / "render.mp4"
        assert metadata.title == "Daily Briefing - 2026-03-01"
        assert token == "ya29.token"
        assert result.video_id == "abc123XYZ"
        assert result.url == "https://www.youtube.com/watch?v=abc123XYZ"

    async def test_auth_failure_stops_before_upload(self, stage_context: StageContext, tmp_path: Path) -> None:
        stage, tokens, uploader = _stage()
        tokens.refresh_access_token.side_effect = AuthFailure("refresh token expired", reason="invalid_grant")

        with pytest.raises(AuthFailure):
            await stage.run(stage_context, _artifacts(tmp_path))
        uploader.upload.assert_not_awaited()

    async def test_missing_render_fails(self, stage_context: StageContext) -> None:
        stage, _, _ = _stage()
        with pytest.raises(UploadFailure):
            await stage.run(stage_context, RunArtifacts())

    def test_summary_is_none(self) -> None:
        stage, _, _ = _stage()
        assert stage.summarize(AsyncMock()) is None
