"""Twitch OAuth and Helix calls needed to connect a channel and read its stream key."""

from typing import Any
from urllib.parse import urlencode

import httpx
from loguru import logger

from simulcast.app_config import get_app_environ_config
from simulcast.utils.app_errors import AppError, AppErrorCode, ConfigurationError, HttpStatusCode

TWITCH_AUTH_URL = "https://id.twitch.tv/oauth2/authorize"
TWITCH_TOKEN_URL = "https://id.twitch.tv/oauth2/token"
TWITCH_REVOKE_URL = "https://id.twitch.tv/oauth2/revoke"
TWITCH_HELIX_URL = "https://api.twitch.tv/helix"

TWITCH_SCOPES = ["user:read:email", "channel:read:stream_key", "channel:manage:broadcast"]


class TwitchClient:
    def __init__(
        self,
        client_id: str | None,
        client_secret: str | None,
        redirect_uri: str | None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.client_id = client_id
        self.client_secret = client_secret
        self.redirect_uri = redirect_uri
        self._transport = transport

    def _require_config(self) -> None:
        if not (self.client_id and self.client_secret and self.redirect_uri):
            raise ConfigurationError(
                "Twitch OAuth is not configured. Set TWITCH_CLIENT_ID, TWITCH_CLIENT_SECRET and TWITCH_REDIRECT_URI."
            )

    def authorization_url(self, state: str) -> str:
        self._require_config()
        params = {
            "client_id": self.client_id,
            "redirect_uri": self.redirect_uri,
            "response_type": "code",
            "scope": " ".join(TWITCH_SCOPES),
            "state": state,
        }
        return f"{TWITCH_AUTH_URL}?{urlencode(params)}"

    async def exchange_code(self, code: str) -> dict[str, Any]:
        self._require_config()
        try:
            async with httpx.AsyncClient(transport=self._transport, timeout=30) as client:
                response = await client.post(
                    TWITCH_TOKEN_URL,
                    data={
                        "client_id": self.client_id,
                        "client_secret": self.client_secret,
                        "code": code,
                        "grant_type": "authorization_code",
                        "redirect_uri": self.redirect_uri,
                    },
                )
        except httpx.HTTPError as e:
            raise AppError(
                errcode=AppErrorCode.E_TOKEN_EXCHANGE_FAILED,
                errmesg=f"Twitch token endpoint unreachable: {e}",
                status_code=HttpStatusCode.BAD_GATEWAY,
            ) from e
        if response.is_error:
            logger.warning(f"Twitch token endpoint returned {response.status_code}")
            raise AppError(
                errcode=AppErrorCode.E_TOKEN_EXCHANGE_FAILED,
                errmesg="Twitch rejected the token request.",
                status_code=HttpStatusCode.BAD_GATEWAY,
                details={"upstream_status": response.status_code},
            )
        return response.json()

    async def _helix_get(self, path: str, access_token: str, params: dict[str, str] | None = None) -> list[dict]:
        async with httpx.AsyncClient(transport=self._transport, timeout=30) as client:
            response = await client.get(
                f"{TWITCH_HELIX_URL}/{path}",
                params=params,
                headers={"Client-Id": self.client_id or "", "Authorization": f"Bearer {access_token}"},
            )
        if response.is_error:
            raise AppError(
                errcode=AppErrorCode.E_UPSTREAM,
                errmesg=f"Twitch helix/{path} failed with HTTP {response.status_code}",
                status_code=HttpStatusCode.BAD_GATEWAY,
            )
        return response.json().get("data") or []

    async def get_user(self, access_token: str) -> dict[str, Any] | None:
        users = await self._helix_get("users", access_token)
        return users[0] if users else None

    async def get_stream_key(self, access_token: str, broadcaster_id: str) -> str | None:
        keys = await self._helix_get("streams/key", access_token, {"broadcaster_id": broadcaster_id})
        return keys[0].get("stream_key") if keys else None

    async def revoke_token(self, token: str) -> bool:
        """Best-effort revocation. Returns False instead of raising."""
        try:
            async with httpx.AsyncClient(transport=self._transport, timeout=15) as client:
                response = await client.post(
                    TWITCH_REVOKE_URL, data={"client_id": self.client_id or "", "token": token}
                )
        except httpx.HTTPError as e:
            logger.warning(f"Twitch token revocation failed: {e}")
            return False
        if response.is_error:
            logger.warning(f"Twitch token revocation returned {response.status_code}")
            return False
        return True


def get_twitch_client() -> TwitchClient:
    config = get_app_environ_config()
    return TwitchClient(
        client_id=config.TWITCH_CLIENT_ID,
        client_secret=config.TWITCH_CLIENT_SECRET,
        redirect_uri=config.TWITCH_REDIRECT_URI,
    )
