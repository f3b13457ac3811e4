"""Tests for the AES-GCM token cipher."""

import base64

from simulcast.domain.credentials.token_cipher import IV_SIZE, TAG_SIZE, TokenCipher


def test_encrypt_then_decrypt_returns_payload(cipher):
    blob = cipher.encrypt({"accessToken": "a", "refreshToken": "r", "expiry": 123})
    assert cipher.decrypt(blob) == {"accessToken": "a", "refreshToken": "r", "expiry": 123}


def test_blob_layout_is_iv_tag_ciphertext(cipher):
    blob = cipher.encrypt({"k": "v"})
    raw = base64.b64decode(blob)
    assert len(raw) > IV_SIZE + TAG_SIZE


def test_each_encryption_uses_a_fresh_iv(cipher):
    assert cipher.encrypt({"k": "v"}) != cipher.encrypt({"k": "v"})


def test_wrong_key_returns_none(cipher):
    blob = cipher.encrypt({"k": "v"})
    assert TokenCipher("another-key").decrypt(blob) is None


def test_tampered_blob_returns_none(cipher):
    raw = bytearray(base64.b64decode(cipher.encrypt({"k": "v"})))
    raw[-1] ^= 0x01
    assert cipher.decrypt(base64.b64encode(bytes(raw)).decode()) is None


def test_garbage_and_empty_return_none(cipher):
    assert cipher.decrypt("not base64 at all!!") is None
    assert cipher.decrypt(base64.b64encode(b"short").decode()) is None
    assert cipher.decrypt(None) is None
    assert cipher.decrypt("") is None
