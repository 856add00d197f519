"""Error taxonomy shared by the attempt client, availability service and orchestrator."""

from __future__ import annotations

from enum import Enum
from typing import Any

from daily_quiz.constants.network_constants import NETWORK_FAILURE_STATUS, TIMEOUT_STATUS
from daily_quiz.constants.quiz_constants import NETWORK_RETRY_SECONDS


class DailyQuizErrorType(str, Enum):
    """Closed set of failure categories surfaced to callers."""

    NOT_YET_AVAILABLE = "NOT_YET_AVAILABLE"
    WINDOW_EXPIRED = "WINDOW_EXPIRED"
    TEMPLATE_NOT_READY = "TEMPLATE_NOT_READY"
    NO_QUIZ_TODAY = "NO_QUIZ_TODAY"
    NO_UPCOMING_QUIZ = "NO_UPCOMING_QUIZ"
    ALREADY_ATTEMPTED = "ALREADY_ATTEMPTED"
    ATTEMPT_EXPIRED = "ATTEMPT_EXPIRED"
    ATTEMPT_NOT_FOUND = "ATTEMPT_NOT_FOUND"
    SUBMISSION_FAILED = "SUBMISSION_FAILED"
    NETWORK_ERROR = "NETWORK_ERROR"
    CDN_ERROR = "CDN_ERROR"
    AUTHENTICATION_ERROR = "AUTHENTICATION_ERROR"
    UNKNOWN_ERROR = "UNKNOWN_ERROR"


_RETRYABLE_TYPES = frozenset(
    {
        DailyQuizErrorType.NOT_YET_AVAILABLE,
        DailyQuizErrorType.TEMPLATE_NOT_READY,
        DailyQuizErrorType.NETWORK_ERROR,
        DailyQuizErrorType.CDN_ERROR,
    }
)
_SITUATIONAL_TYPES = frozenset(
    {
        DailyQuizErrorType.UNKNOWN_ERROR,
        DailyQuizErrorType.SUBMISSION_FAILED,
    }
)


class DailyQuizError(Exception):
    """Typed error raised at every API boundary of the daily quiz client.

    ``silent`` only affects presentation: a silent error must not trigger a
    user-facing alert, but its ``type`` is unchanged.
    """

    def __init__(
        self,
        message: str,
        error_type: DailyQuizErrorType,
        status_code: int | None = None,
        retry_after: int | None = None,
        *,
        silent: bool = False,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.type = error_type
        self.status_code = status_code
        self.retry_after = retry_after
        self.silent = silent

    @property
    def is_retryable(self) -> bool:
        if self.type in _RETRYABLE_TYPES:
            return True
        if self.type in _SITUATIONAL_TYPES:
            return self.retry_after is not None
        return False

    def __repr__(self) -> str:
        return (
            f"DailyQuizError(type={self.type.value}, status_code={self.status_code}, "
            f"retry_after={self.retry_after}, message={self.message!r})"
        )


class ApiError(Exception):
    """Raised by the HTTP transport; never escapes the service layer."""

    def __init__(self, message: str, status: int | None = None, data: Any = None) -> None:
        super().__init__(message)
        self.message = message
        self.status = status
        self.data = data


def handle_api_error(error: ApiError) -> DailyQuizError:
    """Fallback mapping for statuses that no endpoint-specific rule covers."""
    if error.status in (NETWORK_FAILURE_STATUS, TIMEOUT_STATUS):
        return DailyQuizError(
            "Network connection failed",
            DailyQuizErrorType.NETWORK_ERROR,
            error.status,
            NETWORK_RETRY_SECONDS,
        )
    if error.status == 401:
        return DailyQuizError(
            "Please log in to continue",
            DailyQuizErrorType.AUTHENTICATION_ERROR,
            401,
        )
    return DailyQuizError(
        error.message or "An unexpected error occurred",
        DailyQuizErrorType.UNKNOWN_ERROR,
        error.status,
    )
