"""ElevenLabsSpeechAdapter — SpeechSynthesisPort over the ElevenLabs streaming TTS API."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from typing import TYPE_CHECKING, Any

import httpx

from autotube.domain.errors import SynthesisFailure

if TYPE_CHECKING:
    from autotube.domain.ports import SpeechSynthesisPort

logger = logging.getLogger(__name__)

_DEFAULT_BASE_URL = "https://api.elevenlabs.io"
_DEFAULT_MODEL_ID = "eleven_multilingual_v2"
_OUTPUT_FORMAT = "mp3_44100_128"

_QUOTA_STATUSES = frozenset({"quota_exceeded", "too_many_concurrent_requests"})


def _detail(response: httpx.Response) -> tuple[str, str]:
    """Return ``(status, message)`` from an ElevenLabs error body."""
    try:
        body: Any = response.json()
    except ValueError:
        return "", response.text[:200]
    detail = body.get("detail") if isinstance(body, dict) else None
    if isinstance(detail, dict):
        return str(detail.get("status", "")), str(detail.get("message", ""))[:200]
    return "", str(detail or "")[:200]


def classify_error(response: httpx.Response) -> SynthesisFailure:
    """Map an error response to a SynthesisFailure with an operator-facing reason."""
    status, message = _detail(response)
    if status in _QUOTA_STATUSES or response.status_code == 429:
        return SynthesisFailure(f"ElevenLabs quota exhausted: {message or status}", reason="quota")
    if response.status_code in (401, 403):
        return SynthesisFailure(f"ElevenLabs rejected the API key: {message or status}", reason="auth")
    return SynthesisFailure(f"ElevenLabs returned HTTP {response.status_code}: {message}", reason="service")


class ElevenLabsSpeechAdapter:
    """Stream MP3 audio for one text batch."""

    if TYPE_CHECKING:
        _protocol_check: SpeechSynthesisPort

    def __init__(
        self,
        model_id: str = _DEFAULT_MODEL_ID,
        base_url: str = _DEFAULT_BASE_URL,
        timeout_seconds: float = 120.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._model_id = model_id
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout_seconds
        self._transport = transport

    async def stream_speech(self, text: str, voice_id: str, api_key: str) -> AsyncIterator[bytes]:
        if not api_key:
            raise SynthesisFailure("ElevenLabs API key is missing", reason="auth")

        url = f"{self._base_url}/v1/text-to-speech/{voice_id}/stream"
        body = {
            "text": text,
            "model_id": self._model_id,
            "voice_settings": {"stability": 0.5, "similarity_boost": 0.75},
        }
        headers = {"xi-api-key": api_key, "Accept": "audio/mpeg"}
        try:
            async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
                async with client.stream(
                    "POST", url, json=body, headers=headers, params={"output_format": _OUTPUT_FORMAT}
                ) as response:
                    if response.is_error:
                        await response.aread()
                        raise classify_error(response)
                    async for chunk in response.aiter_bytes():
                        yield chunk
        except httpx.HTTPError as exc:
            raise SynthesisFailure(f"ElevenLabs request failed: {exc}", reason="service") from exc
