"""Signed, stateless OAuth `state` tokens.

Format: base64url(json payload) "." base64url(HMAC-SHA256(payload part)).
The payload carries its own expiry, so nothing is stored server side.
"""

import base64
import hashlib
import hmac
import secrets
import time
from typing import Any

import orjson

from simulcast.app_config import get_app_environ_config
from simulcast.utils.app_errors import AppError, AppErrorCode, ConfigurationError, HttpStatusCode


class InvalidStateError(AppError):
    def __init__(self, errmesg: str, reason: str = "invalid_state"):
        super().__init__(
            errcode=AppErrorCode.E_INVALID_STATE,
            errmesg=errmesg,
            status_code=HttpStatusCode.BAD_REQUEST,
        )
        self.reason = reason


def _b64encode(raw: bytes) -> str:
    return base64.urlsafe_b64encode(raw).rstrip(b"=").decode("ascii")


def _b64decode(value: str) -> bytes:
    return base64.urlsafe_b64decode(value + "=" * (-len(value) % 4))


def _get_secret() -> bytes:
    config = get_app_environ_config()
    secret = config.OAUTH_STATE_SECRET or config.TOKEN_ENCRYPTION_KEY
    if not secret:
        raise ConfigurationError("OAUTH_STATE_SECRET must be set for OAuth state signing.")
    return secret.encode("utf-8")


def _sign(body: str, secret: bytes) -> str:
    return _b64encode(hmac.new(secret, body.encode("utf-8"), hashlib.sha256).digest())


def create_state_token(uid: str, provider: str, ttl_seconds: int | None = None) -> str:
    ttl = ttl_seconds if ttl_seconds is not None else get_app_environ_config().OAUTH_STATE_TTL_SECONDS
    payload = {
        "uid": uid,
        "provider": provider,
        "nonce": secrets.token_hex(16),
        "exp": int(time.time()) + ttl,
    }
    body = _b64encode(orjson.dumps(payload))
    return f"{body}.{_sign(body, _get_secret())}"


def verify_state_token(token: str | None, provider: str) -> dict[str, Any]:
    """Return the state payload, or raise `InvalidStateError`.

    `reason` on the error is one of invalid_state, state_expired,
    state_provider_mismatch.
    """
    if not token or token.count(".") != 1:
        raise InvalidStateError("Malformed OAuth state.")

    body, signature = token.split(".")
    if not hmac.compare_digest(_sign(body, _get_secret()).encode(), signature.encode("utf-8")):
        raise InvalidStateError("OAuth state signature mismatch.")

    try:
        payload = orjson.loads(_b64decode(body))
    except (ValueError, orjson.JSONDecodeError) as e:
        raise InvalidStateError("OAuth state payload is unreadable.") from e
    if not isinstance(payload, dict) or not payload.get("uid"):
        raise InvalidStateError("OAuth state payload is incomplete.")

    if int(payload.get("exp") or 0) < int(time.time()):
        raise InvalidStateError("OAuth state has expired.", reason="state_expired")
    if payload.get("provider") != provider:
        raise InvalidStateError("OAuth state was issued for another provider.", reason="state_provider_mismatch")
    return payload
