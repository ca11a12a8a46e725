"""WebhookAdapter — WebhookPort implementation posting JSON with httpx."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

import httpx

from autotube.domain.errors import NotifyFailure

if TYPE_CHECKING:
    from autotube.domain.ports import WebhookPort

logger = logging.getLogger(__name__)


class WebhookAdapter:
    """One POST per call; any non-2xx response counts as a failed delivery."""

    if TYPE_CHECKING:
        _protocol_check: WebhookPort

    def __init__(self, timeout_seconds: float = 10.0, transport: httpx.AsyncBaseTransport | None = None) -> None:
        self._timeout = timeout_seconds
        self._transport = transport

    async def post(self, url: str, payload: Mapping[str, Any]) -> int:
        try:
            async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
                response = await client.post(url, json=dict(payload))
        except httpx.HTTPError as exc:
            raise NotifyFailure(f"Webhook request failed: {exc}", reason="transport") from exc

        if not response.is_success:
            raise NotifyFailure(f"Webhook returned HTTP {response.status_code}", reason="http_status")
        logger.debug("Webhook %s answered %d", httpx.URL(url).host, response.status_code)
        return response.status_code
