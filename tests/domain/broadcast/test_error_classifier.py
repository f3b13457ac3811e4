"""Tests for YouTube error classification."""

import pytest

from simulcast.domain.broadcast.error_classifier import (
    ErrorDisposition,
    classify_youtube_error,
    message_suggests_not_ready,
)
from simulcast.services.integrations.youtube_client import YouTubeApiError
from simulcast.utils.app_errors import AppErrorCode, ConfigurationError


class TestClassifyYouTubeError:
    @pytest.mark.parametrize("status", [429, 500, 502, 503, 504])
    def test_transient_status_is_retryable(self, status):
        err = YouTubeApiError("upstream hiccup", status_code=status)
        assert classify_youtube_error(err) is ErrorDisposition.RETRYABLE

    @pytest.mark.parametrize("reason", ["backendError", "quotaExceeded", "rateLimitExceeded"])
    def test_transient_reason_is_retryable(self, reason):
        err = YouTubeApiError("try later", status_code=403, reason=reason)
        assert classify_youtube_error(err) is ErrorDisposition.RETRYABLE

    def test_network_error_without_status_is_retryable(self):
        err = YouTubeApiError("connection reset")
        assert classify_youtube_error(err) is ErrorDisposition.RETRYABLE

    def test_unexpected_exception_is_retryable(self):
        assert classify_youtube_error(RuntimeError("boom")) is ErrorDisposition.RETRYABLE

    def test_not_ready_rejection_needs_reconciliation(self):
        err = YouTubeApiError(
            "Invalid transition. The broadcast is not in the required state yet.",
            status_code=403,
            reason="invalidTransition",
        )
        assert classify_youtube_error(err) is ErrorDisposition.NEEDS_RECONCILIATION

    def test_bare_invalid_transition_is_permanent(self):
        err = YouTubeApiError("Invalid transition", status_code=403, reason="invalidTransition")
        assert classify_youtube_error(err) is ErrorDisposition.PERMANENT

    def test_forbidden_with_unrelated_message_is_permanent(self):
        err = YouTubeApiError("Live streaming is not enabled for this channel.", status_code=403, reason="forbidden")
        assert classify_youtube_error(err) is ErrorDisposition.PERMANENT

    def test_client_error_is_permanent(self):
        err = YouTubeApiError("Invalid value", status_code=400, reason="invalidValue")
        assert classify_youtube_error(err) is ErrorDisposition.PERMANENT

    def test_application_error_is_permanent(self):
        err = ConfigurationError("missing ingestion", errcode=AppErrorCode.E_YOUTUBE_INGESTION_MISSING)
        assert classify_youtube_error(err) is ErrorDisposition.PERMANENT


class TestMessageSuggestsNotReady:
    @pytest.mark.parametrize(
        "message",
        [
            "The broadcast is not in the correct status",
            "Stream is inactive",
            "Broadcast not yet ready",
        ],
    )
    def test_matches_not_ready_wording(self, message):
        assert message_suggests_not_ready(message)

    def test_ignores_other_messages(self):
        assert not message_suggests_not_ready("Quota exceeded")
        assert not message_suggests_not_ready("Invalid transition")
        assert not message_suggests_not_ready(None)
