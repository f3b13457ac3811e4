"""YouTube Data API v3 client for live streams and broadcasts."""

from datetime import datetime
from typing import Any

import httpx
from loguru import logger

YOUTUBE_API_BASE = "https://www.googleapis.com/youtube/v3"


class YouTubeApiError(Exception):
    """A failed YouTube Data API call.

    `status_code` is None when the request never produced an HTTP response
    (connection reset, timeout, DNS failure).
    """

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        reason: str | None = None,
        errors: list[dict[str, Any]] | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.reason = reason
        self.errors = errors or []

    def __repr__(self) -> str:
        return (
            f"YouTubeApiError(status_code={self.status_code}, reason={self.reason!r}, "
            f"message={self.message!r})"
        )

    @classmethod
    def from_response(cls, response: httpx.Response) -> "YouTubeApiError":
        message = f"YouTube API request failed with HTTP {response.status_code}"
        reason = None
        errors: list[dict[str, Any]] = []
        try:
            body = response.json()
        except ValueError:
            body = None
        error = (body.get("error") if isinstance(body, dict) else None) or {}
        if isinstance(error, dict):
            message = error.get("message") or message
            errors = error.get("errors") or []
            if errors and isinstance(errors[0], dict):
                reason = errors[0].get("reason")
            reason = reason or error.get("status")
        return cls(message, status_code=response.status_code, reason=reason, errors=errors)


class YouTubeClient:
    def __init__(
        self,
        access_token: str,
        base_url: str = YOUTUBE_API_BASE,
        transport: httpx.AsyncBaseTransport | None = None,
        timeout: float = 30,
    ):
        self.access_token = access_token
        self.base_url = base_url.rstrip("/")
        self._transport = transport
        self._timeout = timeout

    async def _request(
        self,
        method: str,
        path: str,
        params: dict[str, Any] | None = None,
        json: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        url = f"{self.base_url}/{path.lstrip('/')}"
        try:
            async with httpx.AsyncClient(transport=self._transport, timeout=self._timeout) as client:
                response = await client.request(
                    method,
                    url,
                    params=params,
                    json=json,
                    headers={"Authorization": f"Bearer {self.access_token}"},
                )
        except httpx.HTTPError as e:
            raise YouTubeApiError(f"YouTube API transport error: {e}") from e

        if response.is_error:
            error = YouTubeApiError.from_response(response)
            logger.warning(f"YouTube {method} {path} failed: {error!r}")
            raise error

        if response.status_code == 204 or not response.content:
            return {}
        return response.json()

    async def insert_stream(self, title: str) -> dict[str, Any]:
        return await self._request(
            "POST",
            "liveStreams",
            params={"part": "snippet,cdn,contentDetails,status"},
            json={
                "snippet": {"title": f"{title} • Stream"},
                "cdn": {
                    "ingestionType": "rtmp",
                    "frameRate": "variable",
                    "resolution": "variable",
                },
                "contentDetails": {"isReusable": False},
            },
        )

    async def insert_broadcast(
        self,
        title: str,
        scheduled_start: datetime,
        scheduled_end: datetime,
        privacy_status: str = "unlisted",
    ) -> dict[str, Any]:
        return await self._request(
            "POST",
            "liveBroadcasts",
            params={"part": "snippet,contentDetails,status"},
            json={
                "snippet": {
                    "title": title,
                    "scheduledStartTime": _isoformat(scheduled_start),
                    "scheduledEndTime": _isoformat(scheduled_end),
                },
                "contentDetails": {
                    "enableAutoStart": True,
                    "enableAutoStop": True,
                },
                "status": {
                    "privacyStatus": privacy_status,
                    "selfDeclaredMadeForKids": False,
                },
            },
        )

    async def bind_broadcast(self, broadcast_id: str, stream_id: str) -> dict[str, Any]:
        return await self._request(
            "POST",
            "liveBroadcasts/bind",
            params={"id": broadcast_id, "streamId": stream_id, "part": "id,contentDetails,status"},
        )

    async def get_broadcast(self, broadcast_id: str) -> dict[str, Any] | None:
        data = await self._request(
            "GET",
            "liveBroadcasts",
            params={"id": broadcast_id, "part": "id,status"},
        )
        items = data.get("items") or []
        return items[0] if items else None

    async def transition_broadcast(self, broadcast_id: str, status: str) -> dict[str, Any]:
        return await self._request(
            "POST",
            "liveBroadcasts/transition",
            params={"id": broadcast_id, "broadcastStatus": status, "part": "id,status"},
        )

    async def delete_broadcast(self, broadcast_id: str) -> None:
        await self._request("DELETE", "liveBroadcasts", params={"id": broadcast_id})

    async def delete_stream(self, stream_id: str) -> None:
        await self._request("DELETE", "liveStreams", params={"id": stream_id})

    async def get_my_channel(self) -> dict[str, Any] | None:
        data = await self._request("GET", "channels", params={"part": "snippet", "mine": "true"})
        items = data.get("items") or []
        return items[0] if items else None


def _isoformat(value: datetime) -> str:
    return value.isoformat(timespec="milliseconds").replace("+00:00", "Z")
