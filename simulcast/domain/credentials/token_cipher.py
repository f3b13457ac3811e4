"""
At-rest encryption for OAuth token blobs.

Blob layout: base64(iv[12] || tag[16] || ciphertext), AES-256-GCM over a JSON payload.
The key is SHA-256 of TOKEN_ENCRYPTION_KEY and is derived once per process.
"""

import base64
import hashlib
import os
from functools import lru_cache
from typing import Any

import orjson
from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from loguru import logger

from simulcast.app_config import get_app_environ_config

IV_SIZE = 12
TAG_SIZE = 16


class TokenCipher:
    def __init__(self, secret: str):
        self._aesgcm = AESGCM(hashlib.sha256(secret.encode("utf-8")).digest())

    def encrypt(self, payload: dict[str, Any]) -> str:
        iv = os.urandom(IV_SIZE)
        sealed = self._aesgcm.encrypt(iv, orjson.dumps(payload), None)
        # AESGCM appends the tag; stored blobs keep it ahead of the ciphertext.
        ciphertext, tag = sealed[:-TAG_SIZE], sealed[-TAG_SIZE:]
        return base64.b64encode(iv + tag + ciphertext).decode("ascii")

    def decrypt(self, blob: str | None) -> dict[str, Any] | None:
        """Decrypt a token blob, returning None when it cannot be read.

        Callers must check for None; a bad blob never raises.
        """
        if not blob:
            return None
        try:
            raw = base64.b64decode(blob, validate=True)
            if len(raw) <= IV_SIZE + TAG_SIZE:
                return None
            iv = raw[:IV_SIZE]
            tag = raw[IV_SIZE : IV_SIZE + TAG_SIZE]
            ciphertext = raw[IV_SIZE + TAG_SIZE :]
            plain = self._aesgcm.decrypt(iv, ciphertext + tag, None)
            payload = orjson.loads(plain)
        except (ValueError, InvalidTag, orjson.JSONDecodeError) as e:
            logger.warning(f"Token blob decryption failed: {type(e).__name__}")
            return None
        return payload if isinstance(payload, dict) else None


@lru_cache(maxsize=1)
def get_token_cipher() -> TokenCipher:
    return TokenCipher(get_app_environ_config().TOKEN_ENCRYPTION_KEY or "local-dev-key")
