"""Google OAuth 2.0 endpoints used to connect a YouTube channel."""

from typing import Any
from urllib.parse import urlencode

import httpx
from loguru import logger

from simulcast.app_config import get_app_environ_config
from simulcast.utils.app_errors import AppError, AppErrorCode, ConfigurationError, HttpStatusCode

GOOGLE_AUTH_URL = "https://accounts.google.com/o/oauth2/v2/auth"
GOOGLE_TOKEN_URL = "https://oauth2.googleapis.com/token"
GOOGLE_REVOKE_URL = "https://oauth2.googleapis.com/revoke"


class GoogleOAuthClient:
    def __init__(
        self,
        client_id: str | None,
        client_secret: str | None,
        redirect_uri: str | None,
        scopes: list[str] | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.client_id = client_id
        self.client_secret = client_secret
        self.redirect_uri = redirect_uri
        self.scopes = scopes or []
        self._transport = transport

    def _require_config(self, need_secret: bool = True) -> None:
        missing = [
            name
            for name, value in (
                ("YOUTUBE_CLIENT_ID", self.client_id),
                ("YOUTUBE_CLIENT_SECRET", self.client_secret if need_secret else "-"),
                ("YOUTUBE_REDIRECT_URI", self.redirect_uri),
            )
            if not value
        ]
        if missing:
            raise ConfigurationError(f"YouTube OAuth is not configured. Set {', '.join(missing)}.")

    def authorization_url(self, state: str) -> str:
        self._require_config(need_secret=False)
        params = {
            "client_id": self.client_id,
            "redirect_uri": self.redirect_uri,
            "response_type": "code",
            "access_type": "offline",
            "prompt": "consent",
            "include_granted_scopes": "true",
            "scope": " ".join(self.scopes),
            "state": state,
        }
        return f"{GOOGLE_AUTH_URL}?{urlencode(params)}"

    async def _post_token(self, data: dict[str, str]) -> dict[str, Any]:
        try:
            async with httpx.AsyncClient(transport=self._transport, timeout=30) as client:
                response = await client.post(GOOGLE_TOKEN_URL, data=data)
        except httpx.HTTPError as e:
            raise AppError(
                errcode=AppErrorCode.E_TOKEN_EXCHANGE_FAILED,
                errmesg=f"Google token endpoint unreachable: {e}",
                status_code=HttpStatusCode.BAD_GATEWAY,
            ) from e

        if response.is_error:
            logger.warning(f"Google token endpoint returned {response.status_code}: {response.text[:200]}")
            raise AppError(
                errcode=AppErrorCode.E_TOKEN_EXCHANGE_FAILED,
                errmesg="Google rejected the token request.",
                status_code=HttpStatusCode.BAD_GATEWAY,
                details={"upstream_status": response.status_code},
            )
        return response.json()

    async def exchange_code(self, code: str) -> dict[str, Any]:
        self._require_config()
        return await self._post_token(
            {
                "code": code,
                "client_id": self.client_id,
                "client_secret": self.client_secret,
                "redirect_uri": self.redirect_uri,
                "grant_type": "authorization_code",
            }
        )

    async def refresh_access_token(self, refresh_token: str) -> dict[str, Any]:
        self._require_config()
        return await self._post_token(
            {
                "refresh_token": refresh_token,
                "client_id": self.client_id,
                "client_secret": self.client_secret,
                "grant_type": "refresh_token",
            }
        )

    async def revoke_token(self, token: str) -> bool:
        """Best-effort revocation. Returns False instead of raising."""
        try:
            async with httpx.AsyncClient(transport=self._transport, timeout=15) as client:
                response = await client.post(GOOGLE_REVOKE_URL, data={"token": token})
        except httpx.HTTPError as e:
            logger.warning(f"Google token revocation failed: {e}")
            return False
        if response.is_error:
            logger.warning(f"Google token revocation returned {response.status_code}")
            return False
        return True


def get_google_oauth_client() -> GoogleOAuthClient:
    config = get_app_environ_config()
    return GoogleOAuthClient(
        client_id=config.YOUTUBE_CLIENT_ID,
        client_secret=config.YOUTUBE_CLIENT_SECRET,
        redirect_uri=config.YOUTUBE_REDIRECT_URI,
        scopes=config.YOUTUBE_SCOPES,
    )
