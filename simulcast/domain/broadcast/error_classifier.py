"""Classify YouTube API failures into retry dispositions."""

import re
from enum import Enum

from simulcast.services.integrations.youtube_client import YouTubeApiError
from simulcast.utils.app_errors import AppError

RETRYABLE_STATUS_CODES = frozenset({429, 500, 502, 503, 504})
RETRYABLE_REASONS = frozenset({"backendError", "quotaExceeded", "rateLimitExceeded", "internalError"})
RECONCILABLE_REASONS = frozenset({"forbidden", "invalidTransition"})

# Fallback heuristic: YouTube words "not ready yet" rejections inconsistently,
# so the reason code alone is not enough to tell them from real refusals.
_NOT_READY_PATTERN = re.compile(
    r"(not\s+in\s+(the\s+)?(required|correct|expected)\s+(state|status)"
    r"|not\s+(yet\s+)?ready"
    r"|stream\s+is\s+(inactive|not\s+active))",
    re.IGNORECASE,
)


class ErrorDisposition(str, Enum):
    RETRYABLE = "retryable"
    PERMANENT = "permanent"
    NEEDS_RECONCILIATION = "needs_reconciliation"

    def __str__(self) -> str:
        return self.value


def message_suggests_not_ready(message: str | None) -> bool:
    return bool(message and _NOT_READY_PATTERN.search(message))


def classify_youtube_error(exc: BaseException) -> ErrorDisposition:
    """Map a failure raised while talking to YouTube onto a disposition.

    - transient HTTP status, transient reason, or no status at all → RETRYABLE
    - forbidden / invalidTransition whose message says the object is not in the
      required state yet → NEEDS_RECONCILIATION
    - application errors (configuration, validation) and everything else → PERMANENT
    """
    if isinstance(exc, AppError):
        return ErrorDisposition.PERMANENT

    if not isinstance(exc, YouTubeApiError):
        return ErrorDisposition.RETRYABLE

    if exc.reason in RECONCILABLE_REASONS and message_suggests_not_ready(exc.message):
        return ErrorDisposition.NEEDS_RECONCILIATION

    if exc.status_code is None:
        return ErrorDisposition.RETRYABLE
    if exc.status_code in RETRYABLE_STATUS_CODES or exc.reason in RETRYABLE_REASONS:
        return ErrorDisposition.RETRYABLE
    return ErrorDisposition.PERMANENT
