"""Script Stage — turn a topic into segmented narration text."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from autotube.application.script_prompt import build_system_prompt, build_user_prompt, parse_script
from autotube.application.stages.base import StageContext, StageSummary
from autotube.domain.enums import StageName
from autotube.domain.errors import GenerationFailure
from autotube.domain.presets import profile_for

if TYPE_CHECKING:
    from autotube.domain.models import RunArtifacts, Script
    from autotube.domain.ports import TextGenerationPort

logger = logging.getLogger(__name__)


class ScriptStage:
    """Ask the text-generation service for a script in the preset's voice."""

    name = StageName.SCRIPT
    artifact_field = "script"

    def __init__(self, text_generator: TextGenerationPort) -> None:
        self._text_generator = text_generator

    async def run(self, context: StageContext, artifacts: RunArtifacts) -> Script:
        config = context.config
        profile = profile_for(config.preset)

        raw = await self._text_generator.complete(
            build_system_prompt(profile),
            build_user_prompt(config, profile),
            config.credentials.openai_api_key,
        )
        if not raw.strip():
            raise GenerationFailure("Text generation returned empty content", reason="empty")

        script = parse_script(raw, config, profile)
        if script is None:
            raise GenerationFailure("Generated text contained no narration segments", reason="unsegmentable")

        logger.info(
            "Script '%s': %d segments, %d words, ~%.0fs",
            script.title,
            len(script.segments),
            script.word_count,
            script.estimated_duration_seconds,
        )
        return script

    def summarize(self, artifact: Script) -> StageSummary:
        return StageSummary(
            title="Script ready",
            detail=f"{len(artifact.segments)} segments, {artifact.word_count} words",
            meta={
                "title": artifact.title,
                "segments": len(artifact.segments),
                "words": artifact.word_count,
                "estimatedSeconds": round(artifact.estimated_duration_seconds, 1),
            },
        )
