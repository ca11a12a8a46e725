"""Domain errors — pipeline exception hierarchy and stage failure taxonomy."""

from __future__ import annotations

from collections.abc import Sequence

from autotube.domain.enums import StageName


class PipelineError(Exception):
    """Base error for all pipeline operations.

    Use ``raise PipelineError("msg") from cause`` for exception chaining.
    """

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ConfigurationError(PipelineError):
    """Invalid configuration, missing environment variables, or bad settings."""


class ValidationFailure(PipelineError):
    """Run input rejected before any stage executed.

    ``issues`` holds one ``{"field": ..., "message": ...}`` mapping per problem.
    """

    def __init__(self, message: str, issues: Sequence[dict[str, str]] = ()) -> None:
        super().__init__(message)
        self.issues: tuple[dict[str, str], ...] = tuple(issues)


class StageFailure(PipelineError):
    """A stage could not produce its artifact. Terminal for the run.

    ``reason`` is a short machine-readable tag (``auth``, ``quota``, ...)
    when the adapter can tell failure kinds apart.
    """

    stage: StageName

    def __init__(self, message: str, reason: str = "") -> None:
        super().__init__(message)
        self.reason = reason

    @property
    def kind(self) -> str:
        return type(self).__name__


class GenerationFailure(StageFailure):
    """Script text generation failed or produced nothing usable."""

    stage = StageName.SCRIPT


class SynthesisFailure(StageFailure):
    """Voice synthesis failed, or produced empty or zero-length audio."""

    stage = StageName.NARRATION


class SourcingFailure(StageFailure):
    """Not enough stock footage could be found to cover the narration."""

    stage = StageName.FOOTAGE


class RenderFailure(StageFailure):
    """Encoder error, missing tooling, or empty render inputs."""

    stage = StageName.RENDER


class AuthFailure(StageFailure):
    """Publishing credentials were rejected."""

    stage = StageName.PUBLISH


class QuotaFailure(StageFailure):
    """Platform rate limit or quota hit — retry later, configuration is fine."""

    stage = StageName.PUBLISH


class UploadFailure(StageFailure):
    """Upload rejected by the platform or lost in transport."""

    stage = StageName.PUBLISH


class NotifyFailure(StageFailure):
    """Webhook delivery failed. Never terminal."""

    stage = StageName.NOTIFY
