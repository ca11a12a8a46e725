"""GoogleOAuthAdapter — TokenExchangePort refreshing stored YouTube credentials with google-auth."""

from __future__ import annotations

import asyncio
import functools
import logging
from typing import TYPE_CHECKING, Any

from autotube.domain.errors import AuthFailure, ConfigurationError, StageFailure, UploadFailure

if TYPE_CHECKING:
    from autotube.domain.ports import TokenExchangePort

logger = logging.getLogger(__name__)

TOKEN_URL = "https://oauth2.googleapis.com/token"
YOUTUBE_UPLOAD_SCOPE = "https://www.googleapis.com/auth/youtube.upload"


def classify_refresh_error(exc: Exception) -> StageFailure:
    """Map a google-auth ``RefreshError`` to the publish failure taxonomy.

    google-auth already retries transient token-endpoint errors; one still
    marked retryable means the endpoint is unavailable, anything else means
    the stored credential was rejected.
    """
    data = exc.args[1] if len(exc.args) > 1 else None
    error = str(data.get("error") or "") if isinstance(data, dict) else ""
    if getattr(exc, "retryable", False):
        return UploadFailure(f"Token endpoint unavailable: {exc}", reason="token_endpoint")
    return AuthFailure(f"Google rejected the refresh token: {exc}", reason=error or "refresh_rejected")


class GoogleOAuthAdapter:
    """Exchange a stored refresh token for a short-lived access token.

    No interactive consent: a revoked or expired refresh token surfaces as
    ``AuthFailure`` and must be replaced by the operator. google-auth is
    imported lazily and its blocking refresh runs in a worker thread.
    """

    if TYPE_CHECKING:
        _protocol_check: TokenExchangePort

    def __init__(self, token_url: str = TOKEN_URL, timeout_seconds: float = 30.0) -> None:
        self._token_url = token_url
        self._timeout = timeout_seconds

    async def refresh_access_token(self, client_id: str, client_secret: str, refresh_token: str) -> str:
        if not (client_id and client_secret and refresh_token):
            raise AuthFailure("YouTube OAuth credentials are incomplete", reason="missing_credentials")
        return await asyncio.to_thread(self._refresh_sync, client_id, client_secret, refresh_token)

    def _refresh_sync(self, client_id: str, client_secret: str, refresh_token: str) -> str:
        """Synchronous refresh — runs in a thread."""
        try:
            from google.auth.exceptions import RefreshError, TransportError  # type: ignore[import-not-found]
            from google.auth.transport.requests import Request  # type: ignore[import-not-found]
            from google.oauth2.credentials import Credentials  # type: ignore[import-not-found]
        except ImportError as exc:
            raise ConfigurationError(
                "google-auth with the requests transport is required for YouTube uploads. "
                "Install with: pip install 'google-auth[requests]'"
            ) from exc

        creds: Any = Credentials(
            token=None,
            refresh_token=refresh_token,
            client_id=client_id,
            client_secret=client_secret,
            token_uri=self._token_url,
            scopes=[YOUTUBE_UPLOAD_SCOPE],
        )
        try:
            creds.refresh(functools.partial(Request(), timeout=self._timeout))
        except RefreshError as exc:
            raise classify_refresh_error(exc) from exc
        except TransportError as exc:
            raise UploadFailure(f"Token exchange failed: {exc}", reason="transport") from exc

        if not creds.token:
            raise AuthFailure("Token endpoint returned no access token", reason="no_access_token")
        logger.info("Obtained YouTube access token (expires %s)", creds.expiry or "unknown")
        return str(creds.token)
