"""OpenAITextAdapter — TextGenerationPort over the OpenAI chat completions API."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

import httpx

from autotube.domain.errors import GenerationFailure

if TYPE_CHECKING:
    from autotube.domain.ports import TextGenerationPort

logger = logging.getLogger(__name__)

_DEFAULT_BASE_URL = "https://api.openai.com/v1"
_DEFAULT_MODEL = "gpt-4o-mini"


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text[:200]
    error = body.get("error") if isinstance(body, dict) else None
    if isinstance(error, dict):
        return str(error.get("message", ""))[:200]
    return response.text[:200]


class OpenAITextAdapter:
    """Request a JSON-formatted script from a chat completion model."""

    if TYPE_CHECKING:
        _protocol_check: TextGenerationPort

    def __init__(
        self,
        model: str = _DEFAULT_MODEL,
        base_url: str = _DEFAULT_BASE_URL,
        timeout_seconds: float = 60.0,
        temperature: float = 0.7,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._model = model
        self._url = f"{base_url.rstrip('/')}/chat/completions"
        self._timeout = timeout_seconds
        self._temperature = temperature
        self._transport = transport

    async def complete(self, system_prompt: str, user_prompt: str, api_key: str) -> str:
        if not api_key:
            raise GenerationFailure("OpenAI API key is missing", reason="auth")

        body: dict[str, Any] = {
            "model": self._model,
            "temperature": self._temperature,
            "response_format": {"type": "json_object"},
            "messages": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
        }
        try:
            async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
                response = await client.post(self._url, json=body, headers={"Authorization": f"Bearer {api_key}"})
        except httpx.HTTPError as exc:
            raise GenerationFailure(f"OpenAI request failed: {exc}", reason="service") from exc

        if response.status_code == 401:
            raise GenerationFailure("OpenAI rejected the API key", reason="auth")
        if response.status_code == 429:
            raise GenerationFailure(f"OpenAI rate limit or quota exceeded: {_error_message(response)}", reason="quota")
        if response.is_error:
            raise GenerationFailure(
                f"OpenAI returned HTTP {response.status_code}: {_error_message(response)}",
                reason="service",
            )

        try:
            content = response.json()["choices"][0]["message"]["content"]
        except (ValueError, KeyError, IndexError, TypeError) as exc:
            raise GenerationFailure("OpenAI response had no message content", reason="empty") from exc

        logger.debug("OpenAI completion: %d chars", len(content or ""))
        return content or ""
