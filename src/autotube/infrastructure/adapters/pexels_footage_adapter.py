"""PexelsFootageAdapter — FootageSearchPort over the Pexels video API."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING, Any

import aiofiles
import httpx

from autotube.domain.enums import QualityTier
from autotube.domain.errors import SourcingFailure
from autotube.domain.models import FootageCandidate

if TYPE_CHECKING:
    from autotube.domain.ports import FootageSearchPort

logger = logging.getLogger(__name__)

_DEFAULT_BASE_URL = "https://api.pexels.com"
_KNOWN_TIERS = {t.value: t for t in QualityTier}


def _infer_tier(height: int) -> QualityTier:
    if height >= 2160:
        return QualityTier.UHD
    if height >= 720:
        return QualityTier.HD
    return QualityTier.SD


def _best_file(files: list[dict[str, Any]], max_width: int) -> tuple[dict[str, Any], QualityTier] | None:
    """Highest tier (then widest) mp4 rendition no wider than ``max_width``."""
    ranked: list[tuple[int, int, dict[str, Any], QualityTier]] = []
    for f in files:
        if f.get("file_type") != "video/mp4" or not f.get("link"):
            continue
        width, height = int(f.get("width") or 0), int(f.get("height") or 0)
        if width > max_width:
            continue
        tier = _KNOWN_TIERS.get(str(f.get("quality") or "")) or _infer_tier(height)
        ranked.append((tier.rank, width, f, tier))
    if not ranked:
        return None
    _, _, best, tier = max(ranked, key=lambda r: (r[0], r[1]))
    return best, tier


def parse_search_response(body: dict[str, Any], max_width: int) -> list[FootageCandidate]:
    """Convert a ``/videos/search`` response into candidates, one per video."""
    candidates: list[FootageCandidate] = []
    for video in body.get("videos") or []:
        duration = float(video.get("duration") or 0)
        if duration <= 0 or video.get("id") is None:
            continue
        picked = _best_file(video.get("video_files") or [], max_width)
        if picked is None:
            continue
        file, tier = picked
        candidates.append(
            FootageCandidate(
                clip_id=str(video["id"]),
                file_url=str(file["link"]),
                duration_seconds=duration,
                width=int(file.get("width") or 0),
                height=int(file.get("height") or 0),
                quality=tier,
                page_url=str(video.get("url") or ""),
            )
        )
    return candidates


class PexelsFootageAdapter:
    """Search landscape stock videos and download the chosen renditions."""

    if TYPE_CHECKING:
        _protocol_check: FootageSearchPort

    def __init__(
        self,
        base_url: str = _DEFAULT_BASE_URL,
        per_page: int = 15,
        max_width: int = 3840,
        timeout_seconds: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._search_url = f"{base_url.rstrip('/')}/videos/search"
        self._per_page = per_page
        self._max_width = max_width
        self._timeout = timeout_seconds
        self._transport = transport

    async def search(self, query: str, api_key: str) -> list[FootageCandidate]:
        if not api_key:
            raise SourcingFailure("Pexels API key is missing", reason="auth")

        params = {"query": query, "per_page": self._per_page, "orientation": "landscape"}
        try:
            async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
                response = await client.get(self._search_url, params=params, headers={"Authorization": api_key})
        except httpx.HTTPError as exc:
            raise SourcingFailure(f"Pexels search failed for {query!r}: {exc}", reason="service") from exc

        if response.status_code in (401, 403):
            raise SourcingFailure("Pexels rejected the API key", reason="auth")
        if response.status_code == 429:
            raise SourcingFailure("Pexels rate limit exceeded", reason="quota")
        if response.is_error:
            raise SourcingFailure(f"Pexels returned HTTP {response.status_code} for {query!r}", reason="service")

        try:
            body = response.json()
        except ValueError as exc:
            raise SourcingFailure(f"Pexels returned invalid JSON for {query!r}", reason="service") from exc

        candidates = parse_search_response(body, self._max_width)
        logger.info("Pexels %r: %d candidates", query, len(candidates))
        return candidates

    async def download(self, candidate: FootageCandidate, dest: Path, api_key: str) -> Path:
        """Stream the candidate's file to ``dest``."""
        dest.parent.mkdir(parents=True, exist_ok=True)
        size = 0
        try:
            async with httpx.AsyncClient(
                timeout=self._timeout, transport=self._transport, follow_redirects=True
            ) as client:
                async with client.stream("GET", candidate.file_url) as response:
                    if response.is_error:
                        raise SourcingFailure(
                            f"Download of clip {candidate.clip_id} failed: HTTP {response.status_code}",
                            reason="download",
                        )
                    async with aiofiles.open(dest, "wb") as f:
                        async for chunk in response.aiter_bytes():
                            await f.write(chunk)
                            size += len(chunk)
        except httpx.HTTPError as exc:
            raise SourcingFailure(f"Download of clip {candidate.clip_id} failed: {exc}", reason="download") from exc

        if size == 0:
            raise SourcingFailure(f"Clip {candidate.clip_id} downloaded empty", reason="download")
        logger.info("Downloaded clip %s (%d bytes)", candidate.clip_id, size)
        return dest
