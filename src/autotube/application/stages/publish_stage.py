"""Publish Stage — expand upload metadata, authorize, and upload the render."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from autotube.application.stages.base import StageContext
from autotube.domain.enums import StageName
from autotube.domain.errors import UploadFailure
from autotube.domain.models import PublishResult, RunConfig, UploadMetadata
from autotube.domain.templates import expand_template, finalize_description, finalize_title, template_tokens

if TYPE_CHECKING:
    from datetime import date

    from autotube.domain.models import RunArtifacts
    from autotube.domain.ports import TokenExchangePort, VideoUploadPort

logger = logging.getLogger(__name__)

WATCH_URL = "https://www.youtube.com/watch?v={video_id}"


def build_upload_metadata(config: RunConfig, run_date: date, category_id: str = "28") -> UploadMetadata:
    """Expand title and description templates for one run.

    Falls back to the topic when the expanded title is empty after cleanup.
    """
    tokens = template_tokens(run_date, config.topic)
    title = finalize_title(expand_template(config.title_template, tokens)) or finalize_title(config.topic)
    description = finalize_description(expand_template(config.description_template, tokens))
    return UploadMetadata(
        title=title,
        description=description,
        tags=config.tags,
        visibility=config.visibility,
        category_id=category_id,
    )


class PublishStage:
    """Upload the rendered video with a freshly exchanged access token."""

    name = StageName.PUBLISH
    artifact_field = "publish"

    def __init__(self, tokens: TokenExchangePort, uploader: VideoUploadPort, category_id: str = "28") -> None:
        self._tokens = tokens
        self._uploader = uploader
        self._category_id = category_id

    async def run(self, context: StageContext, artifacts: RunArtifacts) -> PublishResult:
        render = artifacts.render
        if render is None:
            raise UploadFailure("No rendered video to publish", reason="missing_input")

        config = context.config
        metadata = build_upload_metadata(config, context.run_date, self._category_id)
        creds = config.credentials

        access_token = await self._tokens.refresh_access_token(
            creds.youtube_client_id,
            creds.youtube_client_secret,
            creds.youtube_refresh_token,
        )
        video_id = await self._uploader.upload(render.path, metadata, access_token)
        logger.info("Published video %s (%s)", video_id, metadata.visibility.value)

        return PublishResult(
            video_id=video_id,
            url=WATCH_URL.format(video_id=video_id),
            visibility=metadata.visibility,
            title=metadata.title,
            description=metadata.description,
            tags=metadata.tags,
        )

    def summarize(self, artifact: PublishResult) -> None:
        """Publish results travel on the terminal ``success`` event instead."""
        return None
