"""Notify Stage — tell an external webhook about the published video."""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

from autotube.application.stages.base import StageContext, StageSummary
from autotube.domain.enums import StageName
from autotube.domain.errors import NotifyFailure
from autotube.domain.models import NotifyReceipt

if TYPE_CHECKING:
    from autotube.domain.models import RunArtifacts
    from autotube.domain.ports import WebhookPort

logger = logging.getLogger(__name__)


def build_webhook_payload(context: StageContext, artifacts: RunArtifacts) -> dict[str, Any]:
    publish = artifacts.publish
    if publish is None:
        raise NotifyFailure("Nothing was published to notify about", reason="missing_input")
    render = artifacts.render
    return {
        "event": "video.published",
        "runId": context.run_id,
        "videoId": publish.video_id,
        "url": publish.url,
        "title": publish.title,
        "visibility": publish.visibility.value,
        "topic": context.config.topic,
        "preset": context.config.preset.value,
        "durationSeconds": round(render.duration_seconds, 2) if render else None,
        "completedAt": datetime.now(UTC).isoformat(),
    }


class NotifyStage:
    """POST a JSON summary to the configured webhook, if any."""

    name = StageName.NOTIFY
    artifact_field = "notify"

    def __init__(self, webhook: WebhookPort) -> None:
        self._webhook = webhook

    async def run(self, context: StageContext, artifacts: RunArtifacts) -> NotifyReceipt:
        url = context.config.webhook_url
        if not url:
            logger.debug("No webhook configured for run %s", context.run_id)
            return NotifyReceipt(delivered=False, skipped=True)

        status = await self._webhook.post(url, build_webhook_payload(context, artifacts))
        logger.info("Webhook delivered (HTTP %d)", status)
        return NotifyReceipt(delivered=True, status_code=status)

    def summarize(self, artifact: NotifyReceipt) -> StageSummary | None:
        if artifact.skipped:
            return None
        return StageSummary(
            title="Webhook notified",
            detail=f"HTTP {artifact.status_code}",
            meta={"statusCode": artifact.status_code},
        )
