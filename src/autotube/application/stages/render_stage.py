"""Render Stage — merge the footage timeline with the narration track."""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

from autotube.application.stages.base import StageContext, StageSummary
from autotube.application.timeline import DEFAULT_LOOP_TOLERANCE_SECONDS, plan_timeline
from autotube.domain.enums import StageName
from autotube.domain.errors import RenderFailure
from autotube.domain.models import RenderedVideo

if TYPE_CHECKING:
    from autotube.domain.models import RunArtifacts
    from autotube.domain.ports import MediaProbePort, VideoRenderPort

logger = logging.getLogger(__name__)

RENDER_FILENAME = "render.mp4"

# Deviation from the requested length worth a warning (fraction of target)
_DURATION_WARN_RATIO = 0.25


class RenderStage:
    """Plan cuts, encode, and measure the final video."""

    name = StageName.RENDER
    artifact_field = "render"

    def __init__(
        self,
        renderer: VideoRenderPort,
        probe: MediaProbePort,
        loop_tolerance_seconds: float = DEFAULT_LOOP_TOLERANCE_SECONDS,
    ) -> None:
        self._renderer = renderer
        self._probe = probe
        self._loop_tolerance = loop_tolerance_seconds

    async def run(self, context: StageContext, artifacts: RunArtifacts) -> RenderedVideo:
        narration, footage = artifacts.narration, artifacts.footage
        if narration is None or footage is None:
            raise RenderFailure("Render needs both narration and footage", reason="empty_input")

        timeline = plan_timeline(footage, narration.duration_seconds, self._loop_tolerance)
        output = context.workspace / RENDER_FILENAME
        await self._renderer.render(timeline, narration.audio_path, output)

        duration = await self._probe.probe(output)
        if duration is None or duration <= 0:
            raise RenderFailure(f"Rendered video has no measurable duration: {output.name}", reason="encoder")
        size = (await asyncio.to_thread(output.stat)).st_size

        target = context.config.target_duration_seconds
        if abs(duration - target) > target * _DURATION_WARN_RATIO:
            logger.warning("Rendered %.1fs against a %.0fs target", duration, target)
        logger.info("Render: %d cuts, %.2fs, %d bytes", len(timeline), duration, size)
        return RenderedVideo(path=output, duration_seconds=duration, size_bytes=size)

    def summarize(self, artifact: RenderedVideo) -> StageSummary:
        return StageSummary(
            title="Render complete",
            detail=f"{artifact.duration_seconds:.1f}s, {artifact.size_bytes / (1024 * 1024):.1f} MB",
            meta={
                "durationSeconds": round(artifact.duration_seconds, 2),
                "bytes": artifact.size_bytes,
            },
        )
