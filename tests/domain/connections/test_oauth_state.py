"""Tests for signed OAuth state tokens."""

import pytest

from simulcast.domain.connections.oauth_state import (
    InvalidStateError,
    create_state_token,
    verify_state_token,
)


class TestStateToken:
    def test_valid_token_round_trips_payload(self):
        token = create_state_token("user-1", "youtube")

        payload = verify_state_token(token, "youtube")

        assert payload["uid"] == "user-1"
        assert payload["provider"] == "youtube"
        assert len(payload["nonce"]) == 32

    def test_tokens_are_unique_per_call(self):
        assert create_state_token("user-1", "youtube") != create_state_token("user-1", "youtube")

    def test_expired_token_is_rejected(self):
        token = create_state_token("user-1", "youtube", ttl_seconds=-5)

        with pytest.raises(InvalidStateError) as exc_info:
            verify_state_token(token, "youtube")
        assert exc_info.value.reason == "state_expired"

    def test_provider_mismatch_is_rejected(self):
        token = create_state_token("user-1", "youtube")

        with pytest.raises(InvalidStateError) as exc_info:
            verify_state_token(token, "twitch")
        assert exc_info.value.reason == "state_provider_mismatch"

    def test_tampered_signature_is_rejected(self):
        body, signature = create_state_token("user-1", "youtube").split(".")
        forged = f"{body}.{'A' * len(signature)}"

        with pytest.raises(InvalidStateError) as exc_info:
            verify_state_token(forged, "youtube")
        assert exc_info.value.reason == "invalid_state"

    @pytest.mark.parametrize("token", [None, "", "no-dot", "a.b.c", "abc.ünïcode"])
    def test_malformed_tokens_are_rejected(self, token):
        with pytest.raises(InvalidStateError) as exc_info:
            verify_state_token(token, "youtube")
        assert exc_info.value.status_code == 400
