"""Domain ports — Protocol interfaces for hexagonal architecture boundaries.

Credentials are passed per call so adapters never hold run-scoped secrets.
"""

from __future__ import annotations

from collections.abc import AsyncIterator, Mapping, Sequence
from pathlib import Path
from typing import Any, Protocol, runtime_checkable

from autotube.domain.models import FootageCandidate, TimelineEntry, UploadMetadata
from autotube.domain.types import VideoId


@runtime_checkable
class TextGenerationPort(Protocol):
    """Generate script text from a system and user prompt."""

    async def complete(self, system_prompt: str, user_prompt: str, api_key: str) -> str: ...


@runtime_checkable
class SpeechSynthesisPort(Protocol):
    """Stream synthesized speech audio for a block of text."""

    def stream_speech(self, text: str, voice_id: str, api_key: str) -> AsyncIterator[bytes]: ...


@runtime_checkable
class FootageSearchPort(Protocol):
    """Search and fetch stock video clips."""

    async def search(self, query: str, api_key: str) -> list[FootageCandidate]: ...

    async def download(self, candidate: FootageCandidate, dest: Path, api_key: str) -> Path: ...


@runtime_checkable
class MediaProbePort(Protocol):
    """Measure media duration (ffprobe)."""

    async def probe(self, path: Path) -> float | None: ...


@runtime_checkable
class VideoRenderPort(Protocol):
    """Merge a footage timeline with a narration track into one container."""

    async def render(self, timeline: Sequence[TimelineEntry], audio: Path, output: Path) -> Path: ...


@runtime_checkable
class TokenExchangePort(Protocol):
    """Derive a short-lived access token from a long-lived refresh credential."""

    async def refresh_access_token(self, client_id: str, client_secret: str, refresh_token: str) -> str: ...


@runtime_checkable
class VideoUploadPort(Protocol):
    """Upload a rendered video to the publishing platform."""

    async def upload(self, video: Path, metadata: UploadMetadata, access_token: str) -> VideoId: ...


@runtime_checkable
class WebhookPort(Protocol):
    """Deliver a JSON payload to an external callback URL."""

    async def post(self, url: str, payload: Mapping[str, Any]) -> int: ...
