"""Connect and disconnect streaming platforms through OAuth."""

import time
from datetime import datetime, timedelta, timezone
from typing import Any
from urllib.parse import urlencode, urljoin

from loguru import logger

from simulcast.app_config import get_app_environ_config
from simulcast.domain.credentials.token_cipher import TokenCipher, get_token_cipher
from simulcast.schemas import PlatformId
from simulcast.services.integrations.google_oauth import GoogleOAuthClient, get_google_oauth_client
from simulcast.services.integrations.twitch_api import TwitchClient, get_twitch_client
from simulcast.services.integrations.youtube_client import YouTubeApiError, YouTubeClient
from simulcast.services.store.credential_store import CredentialStore, get_credential_store
from simulcast.utils.app_errors import AppError, AppErrorCode, ConfigurationError, HttpStatusCode

from .oauth_state import InvalidStateError, create_state_token, verify_state_token


def normalize_provider(provider: str) -> str:
    key = (provider or "").strip().lower()
    if key not in {p.value for p in PlatformId.oauth_providers()}:
        raise AppError(
            errcode=AppErrorCode.E_UNSUPPORTED_PROVIDER,
            errmesg=f"Unsupported provider '{provider}'.",
            status_code=HttpStatusCode.BAD_REQUEST,
        )
    return key


class ConnectionService:
    def __init__(
        self,
        store: CredentialStore | None = None,
        cipher: TokenCipher | None = None,
        google: GoogleOAuthClient | None = None,
        twitch: TwitchClient | None = None,
        youtube_client_factory=YouTubeClient,
    ):
        self._store = store
        self._cipher = cipher
        self._google = google
        self._twitch = twitch
        self.youtube_client_factory = youtube_client_factory

    @property
    def store(self) -> CredentialStore:
        return self._store or get_credential_store()

    @property
    def cipher(self) -> TokenCipher:
        return self._cipher or get_token_cipher()

    @property
    def google(self) -> GoogleOAuthClient:
        return self._google or get_google_oauth_client()

    @property
    def twitch(self) -> TwitchClient:
        return self._twitch or get_twitch_client()

    # ------------------------------------------------------------------
    # Authorization flow
    # ------------------------------------------------------------------

    def authorization_url(self, uid: str, provider: str) -> str:
        provider = normalize_provider(provider)
        state = create_state_token(uid, provider)
        if provider == PlatformId.YOUTUBE.value:
            return self.google.authorization_url(state)
        return self.twitch.authorization_url(state)

    def redirect_url(self, **params: str | None) -> str:
        config = get_app_environ_config()
        base = urljoin(config.APP_BASE_URL.rstrip("/") + "/", config.OAUTH_REDIRECT_PATH.lstrip("/"))
        query = urlencode({k: v for k, v in params.items() if v})
        return f"{base}?{query}" if query else base

    async def complete_authorization(
        self,
        provider: str,
        code: str | None,
        state: str | None,
        error: str | None = None,
    ) -> str:
        """Finish the OAuth callback and return the dashboard URL to redirect to.

        Provider and user errors end up in the redirect as `connectError` +
        `reason`; only configuration errors propagate.
        """
        provider = normalize_provider(provider)

        def failed(reason: str) -> str:
            logger.warning(f"OAuth callback for {provider} failed: {reason}")
            return self.redirect_url(connectError=provider, reason=reason)

        if error:
            return failed(error)
        if not code or not state:
            return failed("missing_code")

        try:
            payload = verify_state_token(state, provider)
        except InvalidStateError as e:
            return failed(e.reason)
        uid = payload["uid"]

        try:
            if provider == PlatformId.YOUTUBE.value:
                await self._connect_youtube(uid, code)
            else:
                await self._connect_twitch(uid, code)
        except ConfigurationError:
            raise
        except AppError as e:
            return failed(_reason_for(e))
        except Exception as e:
            logger.exception(f"Unable to persist {provider} connection for {uid}: {e!r}")
            return failed("persistence_failed")

        logger.info(f"🔗 {provider} connected for user {uid}")
        return self.redirect_url(connected=provider)

    async def _connect_youtube(self, uid: str, code: str) -> None:
        tokens = await self.google.exchange_code(code)
        access_token = tokens.get("access_token")
        refresh_token = tokens.get("refresh_token")
        if not access_token or not refresh_token:
            raise AppError(
                errcode=AppErrorCode.E_TOKEN_EXCHANGE_FAILED,
                errmesg="YouTube token payload missing access or refresh token.",
                details={"reason": "token_payload_missing"},
            )

        channel: dict[str, Any] = {"id": None, "title": "YouTube channel", "avatar": ""}
        try:
            item = await self.youtube_client_factory(access_token).get_my_channel()
        except YouTubeApiError as e:
            logger.warning(f"Unable to fetch YouTube channel metadata: {e!r}")
            item = None
        if item:
            snippet = item.get("snippet") or {}
            channel = {
                "id": item.get("id"),
                "title": snippet.get("title") or "YouTube channel",
                "avatar": ((snippet.get("thumbnails") or {}).get("default") or {}).get("url", ""),
            }

        await self._persist(uid, PlatformId.YOUTUBE.value, tokens, channel)

    async def _connect_twitch(self, uid: str, code: str) -> None:
        tokens = await self.twitch.exchange_code(code)
        access_token = tokens.get("access_token")
        if not access_token:
            raise AppError(
                errcode=AppErrorCode.E_TOKEN_EXCHANGE_FAILED,
                errmesg="Twitch token payload missing access token.",
                details={"reason": "token_payload_missing"},
            )

        user = await self.twitch.get_user(access_token) or {}
        stream_key = None
        if user.get("id"):
            stream_key = await self.twitch.get_stream_key(access_token, user["id"])

        channel = {
            "id": user.get("id"),
            "title": user.get("display_name") or "Twitch Channel",
            "avatar": user.get("profile_image_url") or "",
            "streamKey": stream_key,
        }
        await self._persist(uid, PlatformId.TWITCH.value, tokens, channel)

    async def _persist(self, uid: str, provider: str, tokens: dict[str, Any], channel: dict[str, Any]) -> None:
        scope = tokens.get("scope") or ""
        if isinstance(scope, list):
            scope = " ".join(scope)
        expires_in = tokens.get("expires_in")
        expires_at = (
            datetime.now(timezone.utc) + timedelta(seconds=int(expires_in)) if expires_in else None
        )

        await self.store.set_channel_connection(
            uid,
            provider,
            {
                "channel_id": channel.get("id"),
                "title": channel.get("title"),
                "avatar": channel.get("avatar"),
                "linked_at": datetime.now(timezone.utc),
            },
        )
        await self.store.set_secret(
            uid,
            provider,
            {
                "provider": provider,
                "access_token": tokens.get("access_token"),
                "refresh_token": tokens.get("refresh_token"),
                "scope": scope,
                "expires_at": expires_at,
            },
        )
        await self.store.set_destination(
            uid,
            provider,
            {
                "provider": provider,
                "channel": channel,
                "tokens": self.cipher.encrypt(
                    {
                        "accessToken": tokens.get("access_token"),
                        "refreshToken": tokens.get("refresh_token"),
                        "scope": scope,
                        "expiry": int((time.time() + int(expires_in)) * 1000) if expires_in else None,
                        "streamKey": channel.get("streamKey"),
                    }
                ),
            },
        )

    # ------------------------------------------------------------------
    # Disconnect / status
    # ------------------------------------------------------------------

    async def disconnect(self, uid: str, provider: str) -> dict[str, Any]:
        provider = normalize_provider(provider)

        secret = await self.store.get_secret(uid, provider) or {}
        token = secret.get("refresh_token") or secret.get("access_token")
        if token:
            if provider == PlatformId.YOUTUBE.value:
                revoked = await self.google.revoke_token(token)
            else:
                revoked = await self.twitch.revoke_token(token)
            logger.info(f"{provider} token revocation for {uid}: {'ok' if revoked else 'failed'}")

        for label, remove in (
            ("channel metadata", self.store.unset_channel_connection),
            ("secret record", self.store.delete_secret),
            ("destination", self.store.delete_destination),
        ):
            try:
                await remove(uid, provider)
            except Exception as e:
                logger.warning(f"Unable to remove {provider} {label} for {uid}: {e!r}")

        logger.info(f"🔌 {provider} disconnected for user {uid}")
        return {"disconnected": True, "provider": provider}

    async def status(self, uid: str) -> dict[str, dict[str, Any]]:
        destinations = await self.store.list_destinations(uid)
        results = {}
        for platform, doc in destinations.items():
            tokens = self.cipher.decrypt(doc.get("tokens"))
            channel = dict(doc.get("channel") or {})
            channel.pop("streamKey", None)
            results[platform] = {
                "channel": channel,
                "scope": tokens.get("scope") if tokens else None,
                "updated_at": doc.get("updated_at"),
            }
        return results


def _reason_for(error: AppError) -> str:
    if error.details and error.details.get("reason"):
        return str(error.details["reason"])
    if error.errcode == AppErrorCode.E_TOKEN_EXCHANGE_FAILED.value:
        return "token_exchange_failed"
    return error.errcode.lower()


connection_service = ConnectionService()


def get_connection_service() -> ConnectionService:
    return connection_service
