"""Bearer ID token verification against the external identity provider."""

from functools import lru_cache
from typing import Any, Dict, Optional

import jwt
from fastapi import Request
from loguru import logger

from simulcast.app_config import get_app_environ_config

_USER_ID_CLAIMS = ("sub", "user_id", "uid")


@lru_cache(maxsize=4)
def _jwks_client(url: str) -> jwt.PyJWKClient:
    return jwt.PyJWKClient(url, cache_keys=True)


def extract_bearer_token(request: Request) -> Optional[str]:
    header = request.headers.get("authorization") or ""
    scheme, _, token = header.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


def decode_id_token(token: str) -> Dict[str, Any]:
    """Verify `token` and return its claims.

    RS256 keys come from AUTH_JWKS_URL when set, otherwise the token must be
    HS256-signed with AUTH_JWT_SECRET. Raises `jwt.PyJWTError` on failure.
    """
    config = get_app_environ_config()
    options = {"verify_aud": bool(config.AUTH_AUDIENCE)}
    kwargs: Dict[str, Any] = {"options": options}
    if config.AUTH_AUDIENCE:
        kwargs["audience"] = config.AUTH_AUDIENCE
    if config.AUTH_ISSUER:
        kwargs["issuer"] = config.AUTH_ISSUER

    if config.AUTH_JWKS_URL:
        signing_key = _jwks_client(config.AUTH_JWKS_URL).get_signing_key_from_jwt(token)
        return jwt.decode(token, signing_key.key, algorithms=["RS256"], **kwargs)

    if config.AUTH_JWT_SECRET:
        return jwt.decode(token, config.AUTH_JWT_SECRET, algorithms=["HS256"], **kwargs)

    raise jwt.InvalidTokenError("No identity provider key is configured")


async def verify_token(request: Request) -> Optional[Dict[str, Any]]:
    """Return `{"user_id": ..., "claims": ...}` for a valid bearer token, else None."""
    token = extract_bearer_token(request)
    if not token:
        logger.debug("missing bearer token path={}", request.url.path)
        return None

    try:
        claims = decode_id_token(token)
    except jwt.PyJWTError as e:
        logger.debug("invalid bearer token: {}", type(e).__name__)
        return None

    user_id = next((claims[c] for c in _USER_ID_CLAIMS if claims.get(c)), None)
    if not user_id:
        logger.debug("bearer token carries no user id claim")
        return None

    return {"user_id": str(user_id), "claims": claims}
