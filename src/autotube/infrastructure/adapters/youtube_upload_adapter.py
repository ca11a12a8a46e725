"""YouTubeUploadAdapter — VideoUploadPort using the YouTube Data API v3."""

from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path
from typing import TYPE_CHECKING, Any

from autotube.domain.errors import AuthFailure, ConfigurationError, QuotaFailure, StageFailure, UploadFailure
from autotube.domain.types import VideoId

if TYPE_CHECKING:
    from autotube.domain.models import UploadMetadata
    from autotube.domain.ports import VideoUploadPort

logger = logging.getLogger(__name__)

_DEFAULT_CHUNK_SIZE = 8 * 1024 * 1024

_QUOTA_REASONS = frozenset(
    {
        "quotaExceeded",
        "dailyLimitExceeded",
        "rateLimitExceeded",
        "userRateLimitExceeded",
        "uploadLimitExceeded",
    }
)
_AUTH_REASONS = frozenset({"authError", "forbidden", "insufficientPermissions", "youtubeSignupRequired"})


def _error_reasons(content: bytes | str | None) -> set[str]:
    if not content:
        return set()
    try:
        body: Any = json.loads(content)
    except ValueError:
        return set()
    error = body.get("error") if isinstance(body, dict) else None
    if not isinstance(error, dict):
        return set()
    return {str(e.get("reason")) for e in error.get("errors") or [] if isinstance(e, dict) and e.get("reason")}


def classify_http_error(status: int, content: bytes | str | None) -> StageFailure:
    """Map a YouTube API error response to the publish failure taxonomy.

    401 is always an auth problem. 429, or a 403 carrying a quota/rate-limit
    reason, is a quota problem the operator should wait out. Everything else
    is an upload rejection.
    """
    reasons = _error_reasons(content)
    detail = ", ".join(sorted(reasons)) or f"HTTP {status}"
    if status == 401:
        return AuthFailure(f"YouTube rejected the access token ({detail})", reason="unauthorized")
    if status == 429 or (status == 403 and reasons & _QUOTA_REASONS):
        return QuotaFailure(f"YouTube quota or rate limit exceeded ({detail})", reason="quota")
    if status == 403 and reasons & _AUTH_REASONS:
        return AuthFailure(f"YouTube account not permitted to upload ({detail})", reason="forbidden")
    return UploadFailure(f"YouTube rejected the upload ({detail})", reason=f"http_{status}")


class YouTubeUploadAdapter:
    """Resumable video upload with an OAuth access token.

    The Google API client libraries are imported lazily; if they are not
    installed, upload() raises ConfigurationError. Blocking I/O runs in a
    worker thread.
    """

    if TYPE_CHECKING:
        _protocol_check: VideoUploadPort

    def __init__(self, chunk_size: int = _DEFAULT_CHUNK_SIZE) -> None:
        self._chunk_size = chunk_size

    async def upload(self, video: Path, metadata: UploadMetadata, access_token: str) -> VideoId:
        exists = await asyncio.to_thread(video.exists)
        if not exists:
            raise UploadFailure(f"Rendered video not found: {video}", reason="missing_input")
        return await asyncio.to_thread(self._upload_sync, video, metadata, access_token)

    @staticmethod
    def request_body(metadata: UploadMetadata) -> dict[str, Any]:
        return {
            "snippet": {
                "title": metadata.title,
                "description": metadata.description,
                "tags": list(metadata.tags),
                "categoryId": metadata.category_id,
            },
            "status": {
                "privacyStatus": metadata.visibility.value,
                "selfDeclaredMadeForKids": False,
            },
        }

    def _upload_sync(self, video: Path, metadata: UploadMetadata, access_token: str) -> VideoId:
        """Synchronous upload — runs in a thread."""
        try:
            from google.oauth2.credentials import Credentials  # type: ignore[import-not-found]
            from googleapiclient.discovery import build  # type: ignore[import-not-found]
            from googleapiclient.errors import HttpError  # type: ignore[import-not-found]
            from googleapiclient.http import MediaFileUpload  # type: ignore[import-not-found]
        except ImportError as exc:
            raise ConfigurationError(
                "google-api-python-client and google-auth are required for YouTube uploads. "
                "Install with: pip install google-api-python-client google-auth"
            ) from exc

        try:
            service = build("youtube", "v3", credentials=Credentials(token=access_token), cache_discovery=False)
            media = MediaFileUpload(str(video), mimetype="video/mp4", chunksize=self._chunk_size, resumable=True)
            request = service.videos().insert(part="snippet,status", body=self.request_body(metadata), media_body=media)

            response: dict[str, Any] | None = None
            while response is None:
                status, response = request.next_chunk()
                if status is not None:
                    logger.info("Upload of %s: %d%%", video.name, int(status.progress() * 100))
        except HttpError as exc:
            raise classify_http_error(int(exc.resp.status), exc.content) from exc
        except OSError as exc:
            raise UploadFailure(f"Upload of {video.name} interrupted: {exc}", reason="transport") from exc

        video_id = response.get("id") if isinstance(response, dict) else None
        if not video_id:
            raise UploadFailure("YouTube accepted the upload but returned no video id", reason="no_video_id")
        logger.info("Uploaded %s as video %s", video.name, video_id)
        return VideoId(str(video_id))
