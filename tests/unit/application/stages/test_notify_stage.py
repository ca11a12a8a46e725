"""Tests for NotifyStage — webhook payload and skip behaviour."""

from __future__ import annotations

from dataclasses import replace
from pathlib import Path
from unittest.mock import AsyncMock

import pytest

from autotube.application.stages.base import StageContext
from autotube.application.stages.notify_stage import NotifyStage
from autotube.domain.enums import Visibility
from autotube.domain.errors import NotifyFailure
from autotube.domain.models import PublishResult, RenderedVideo, RunArtifacts
from autotube.domain.types import VideoId


def _artifacts(tmp_path: Path) -> RunArtifacts:
    return RunArtifacts(
        render=RenderedVideo(path=tmp_path / "render.mp4", duration_seconds=61.234, size_bytes=1),
        publish=PublishResult(
            video_id=VideoId("vid1"),
            url="https://www.youtube.com/watch?v=vid1",
            visibility=Visibility.UNLISTED,
            title="Daily Briefing - 2026-03-01",
            description="d",
        ),
    )


def _with_webhook(context: StageContext) -> StageContext:
    return replace(context, config=replace(context.config, webhook_url="https://hooks.example.com/x"))


class TestNotifyStage:
    async def test_skipped_without_webhook(self, stage_context: StageContext, tmp_path: Path) -> None:
        webhook = AsyncMock()
        receipt = await NotifyStage(webhook).run(stage_context, _artifacts(tmp_path))

        assert receipt.skipped
        assert not receipt.delivered
        webhook.post.assert_not_awaited()
        assert NotifyStage(webhook).summarize(receipt) is None

    async def test_posts_summary(self, stage_context: StageContext, tmp_path: Path) -> None:
        webhook = AsyncMock()
        webhook.post.return_value = 204

        receipt = await NotifyStage(webhook).run(_with_webhook(stage_context), _artifacts(tmp_path))

        assert receipt.delivered
        assert receipt.status_code == 204
        url, payload = webhook.post.await_args.args
        assert url == "https://hooks.example.com/x"
        assert payload["videoId"] == "vid1"
        assert payload["runId"] == stage_context.run_id
        assert payload["durationSeconds"] == 61.23
        assert payload["preset"] == "news"

    async def test_delivery_failure_propagates(self, stage_context: StageContext, tmp_path: Path) -> None:
        webhook = AsyncMock()
        webhook.post.side_effect = NotifyFailure("Webhook returned HTTP 500", reason="http_status")
        with pytest.raises(NotifyFailure):
            await NotifyStage(webhook).run(_with_webhook(stage_context), _artifacts(tmp_path))

    async def test_nothing_published_fails(self, stage_context: StageContext) -> None:
        with pytest.raises(NotifyFailure):
            await NotifyStage(AsyncMock()).run(_with_webhook(stage_context), RunArtifacts())
