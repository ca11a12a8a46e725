"""Bootstrap — composition root wiring adapters to ports and stages."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from autotube.app.run_request import RunDefaults
from autotube.app.settings import PipelineSettings
from autotube.application.conductor import PipelineConductor, PipelineStages
from autotube.application.event_bus import EventBus
from autotube.application.stages.footage_stage import FootageStage
from autotube.application.stages.narration_stage import NarrationStage
from autotube.application.stages.notify_stage import NotifyStage
from autotube.application.stages.publish_stage import PublishStage
from autotube.application.stages.render_stage import RenderStage
from autotube.application.stages.script_stage import ScriptStage
from autotube.application.workspace_manager import WorkspaceManager
from autotube.domain.errors import ConfigurationError
from autotube.domain.models import RunConfig
from autotube.infrastructure.adapters.elevenlabs_speech_adapter import ElevenLabsSpeechAdapter
from autotube.infrastructure.adapters.ffmpeg_render_adapter import FFmpegRenderAdapter
from autotube.infrastructure.adapters.ffprobe_adapter import FfprobeAdapter
from autotube.infrastructure.adapters.google_oauth_adapter import GoogleOAuthAdapter
from autotube.infrastructure.adapters.openai_text_adapter import OpenAITextAdapter
from autotube.infrastructure.adapters.pexels_footage_adapter import PexelsFootageAdapter
from autotube.infrastructure.adapters.webhook_adapter import WebhookAdapter
from autotube.infrastructure.adapters.youtube_upload_adapter import YouTubeUploadAdapter
from autotube.infrastructure.listeners.event_log_listener import EventLogListener

logger = logging.getLogger(__name__)


@dataclass
class PipelineServices:
    """Container for process-wide components shared by every run.

    Holds only stateless adapters and configuration. Each run gets its own
    conductor from ``new_conductor``.
    """

    settings: PipelineSettings
    defaults: RunDefaults
    stages: PipelineStages
    workspace_manager: WorkspaceManager
    event_bus: EventBus
    timezone: ZoneInfo
    request_defaults: RunDefaults = field(default_factory=RunDefaults.for_requests)

    def run_date(self) -> date:
        return datetime.now(self.timezone).date()

    def new_conductor(self, config: RunConfig) -> PipelineConductor:
        return PipelineConductor(
            config=config,
            stages=self.stages,
            workspace_manager=self.workspace_manager,
            run_date=self.run_date(),
        )


def create_services(settings: PipelineSettings | None = None) -> PipelineServices:
    """Wire all adapters and return the services container.

    If no settings are provided, loads from environment/.env.
    """
    if settings is None:
        settings = PipelineSettings()

    timezone = _validate_settings(settings)

    probe = FfprobeAdapter()
    stages = PipelineStages(
        script=ScriptStage(
            OpenAITextAdapter(
                model=settings.openai_model,
                base_url=settings.openai_base_url,
                timeout_seconds=settings.http_timeout_seconds,
            )
        ),
        narration=NarrationStage(
            ElevenLabsSpeechAdapter(
                model_id=settings.elevenlabs_model_id,
                timeout_seconds=settings.http_timeout_seconds,
            ),
            probe,
        ),
        footage=FootageStage(PexelsFootageAdapter(timeout_seconds=settings.http_timeout_seconds)),
        render=RenderStage(
            FFmpegRenderAdapter(
                width=settings.render_width,
                height=settings.render_height,
                fps=settings.render_fps,
                threads=settings.ffmpeg_threads,
            ),
            probe,
            loop_tolerance_seconds=settings.loop_tolerance_seconds,
        ),
        publish=PublishStage(
            GoogleOAuthAdapter(timeout_seconds=settings.http_timeout_seconds),
            YouTubeUploadAdapter(),
            category_id=settings.youtube_category_id,
        ),
        notify=NotifyStage(WebhookAdapter(timeout_seconds=settings.webhook_timeout_seconds)),
    )

    event_bus = EventBus()
    event_bus.subscribe(EventLogListener())

    logger.info(
        "Services created: workspace=%s, render=%dx%d@%d, timezone=%s",
        settings.workspace_dir,
        settings.render_width,
        settings.render_height,
        settings.render_fps,
        settings.timezone,
    )

    return PipelineServices(
        settings=settings,
        defaults=RunDefaults.from_settings(settings),
        stages=stages,
        workspace_manager=WorkspaceManager(settings.workspace_dir, keep_workspaces=settings.keep_workspace),
        event_bus=event_bus,
        timezone=timezone,
    )


def _validate_settings(settings: PipelineSettings) -> ZoneInfo:
    """Validate settings that would only fail mid-run. Returns the run timezone.

    Raises ConfigurationError if the environment is not viable.
    """
    if settings.render_width % 2 or settings.render_height % 2:
        raise ConfigurationError(
            f"Render size must be even for yuv420p output, got {settings.render_width}x{settings.render_height}"
        )
    try:
        return ZoneInfo(settings.timezone)
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise ConfigurationError(f"Unknown timezone: {settings.timezone!r}") from exc
