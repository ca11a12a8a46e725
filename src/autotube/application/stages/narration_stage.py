"""Narration Stage — synthesize the script to one audio file and measure it."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import aiofiles

from autotube.application.stages.base import StageContext, StageSummary
from autotube.domain.enums import StageName
from autotube.domain.errors import SynthesisFailure
from autotube.domain.models import Narration

if TYPE_CHECKING:
    from autotube.domain.models import RunArtifacts, Script
    from autotube.domain.ports import MediaProbePort, SpeechSynthesisPort

logger = logging.getLogger(__name__)

# Per-request character limit accepted by the synthesis service
MAX_BATCH_CHARS = 2500

NARRATION_FILENAME = "narration.mp3"


def batch_segments(script: Script, max_chars: int = MAX_BATCH_CHARS) -> list[str]:
    """Group segment texts into request-sized batches on segment boundaries.

    A single segment longer than ``max_chars`` is split on word boundaries.
    """
    batches: list[str] = []
    current = ""
    for segment in script.segments:
        for piece in _split_long(segment.text, max_chars):
            candidate = f"{current}\n\n{piece}" if current else piece
            if len(candidate) <= max_chars:
                current = candidate
                continue
            if current:
                batches.append(current)
            current = piece
    if current:
        batches.append(current)
    return batches


def _split_long(text: str, max_chars: int) -> list[str]:
    if len(text) <= max_chars:
        return [text]
    pieces: list[str] = []
    current = ""
    for word in text.split():
        candidate = f"{current} {word}" if current else word
        if len(candidate) > max_chars and current:
            pieces.append(current)
            current = word
        else:
            current = candidate
    if current:
        pieces.append(current)
    return pieces


class NarrationStage:
    """Stream synthesized speech into the run workspace."""

    name = StageName.NARRATION
    artifact_field = "narration"

    def __init__(self, speech: SpeechSynthesisPort, probe: MediaProbePort) -> None:
        self._speech = speech
        self._probe = probe

    async def run(self, context: StageContext, artifacts: RunArtifacts) -> Narration:
        script = artifacts.script
        if script is None:
            raise SynthesisFailure("No script available to narrate", reason="missing_input")

        config = context.config
        audio_path = context.workspace / NARRATION_FILENAME
        batches = batch_segments(script)
        size = 0

        async with aiofiles.open(audio_path, "wb") as f:
            for i, batch in enumerate(batches, start=1):
                logger.info("Synthesizing batch %d/%d (%d chars)", i, len(batches), len(batch))
                async for chunk in self._speech.stream_speech(
                    batch, config.voice_id, config.credentials.elevenlabs_api_key
                ):
                    if chunk:
                        await f.write(chunk)
                        size += len(chunk)

        if size == 0:
            raise SynthesisFailure("Voice synthesis returned no audio", reason="empty")

        duration = await self._probe.probe(audio_path)
        if duration is None or duration <= 0:
            raise SynthesisFailure("Synthesized audio has no measurable duration", reason="empty")

        logger.info("Narration: %.2fs, %d bytes", duration, size)
        return Narration(audio_path=audio_path, duration_seconds=duration, size_bytes=size)

    def summarize(self, artifact: Narration) -> StageSummary:
        return StageSummary(
            title="Narration ready",
            detail=f"{artifact.duration_seconds:.1f}s of audio",
            meta={
                "durationSeconds": round(artifact.duration_seconds, 2),
                "bytes": artifact.size_bytes,
            },
        )
