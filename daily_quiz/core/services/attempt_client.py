"""Client for the attempt lifecycle endpoints: status, start, answer, finish."""

from __future__ import annotations

import logging
import math
import time
from datetime import date, datetime
from typing import Any, Callable, Iterable, Mapping

from daily_quiz.constants.network_constants import (
    ATTEMPT_ANSWER_ENDPOINT_TEMPLATE,
    ATTEMPT_FINISH_ENDPOINT_TEMPLATE,
    ATTEMPTS_START_ENDPOINT,
    ATTEMPTS_TODAY_ENDPOINT,
    NETWORK_FAILURE_STATUS,
    TIMEOUT_STATUS,
)
from daily_quiz.core.errors import ApiError, DailyQuizError, DailyQuizErrorType, handle_api_error
from daily_quiz.core.models import Attempt, ScoreBreakdown, TodayAttemptStatus
from daily_quiz.core.services.http_client import ApiHttpClient
from daily_quiz.utils.time_utils import local_calendar_date, parse_timestamp, utc_now

logger = logging.getLogger(__name__)


def get_time_remaining(deadline: str | datetime, now: datetime | None = None) -> int:
    """Whole seconds until ``deadline``, never negative."""
    remaining = (parse_timestamp(deadline) - (now or utc_now())).total_seconds()
    return max(0, math.ceil(remaining))


def is_time_up(deadline: str | datetime, now: datetime | None = None) -> bool:
    return get_time_remaining(deadline, now) == 0


def format_time_remaining(seconds: int) -> str:
    """Format a countdown as ``MM:SS``."""
    minutes, remaining_seconds = divmod(max(0, int(seconds)), 60)
    return f"{minutes:02d}:{remaining_seconds:02d}"


def build_idempotency_key(attempt_id: str, question_id: str, now_ms: int) -> str:
    return f"{attempt_id}-{question_id}-{now_ms}"


def _malformed_response(exc: Exception) -> DailyQuizError:
    return DailyQuizError(
        f"Malformed server response: {exc}",
        DailyQuizErrorType.UNKNOWN_ERROR,
    )


class AttemptClient:
    """Wraps the four attempt lifecycle calls.

    The server owns every attempt state transition; this client only reports
    what it observes. ``expired`` is never set locally.

    Idempotency keys embed the current wall-clock time, so a retried
    submission of the same answer carries a new key. Duplicate answers for a
    question are resolved by the server overwriting the stored answer for
    that question with the latest one, not by key deduplication.
    """

    def __init__(
        self,
        http: ApiHttpClient,
        clock_ms: Callable[[], int] | None = None,
        today: Callable[[], date] | None = None,
    ) -> None:
        self._http = http
        self._clock_ms = clock_ms or (lambda: int(time.time() * 1000))
        self._today = today or date.today
        self._finished_attempts: set[str] = set()

    async def get_today_attempt_status(self) -> TodayAttemptStatus:
        try:
            payload = await self._http.get(ATTEMPTS_TODAY_ENDPOINT)
        except ApiError as exc:
            logger.warning("Failed to fetch today's attempt status: %s", exc.message)
            raise handle_api_error(exc) from exc
        try:
            return TodayAttemptStatus.from_payload(payload)
        except (AttributeError, KeyError, TypeError, ValueError) as exc:
            raise _malformed_response(exc) from exc

    async def start_attempt(self) -> Attempt:
        local_date = local_calendar_date(self._today())
        logger.info("Starting quiz attempt for local date %s", local_date)
        try:
            payload = await self._http.post(ATTEMPTS_START_ENDPOINT, {"localDate": local_date})
        except ApiError as exc:
            logger.warning("Failed to start attempt: %s (%s)", exc.message, exc.status)
            raise self._start_error(exc) from exc
        try:
            attempt = Attempt.from_payload(payload)
        except (AttributeError, KeyError, TypeError, ValueError) as exc:
            raise _malformed_response(exc) from exc
        logger.info("Attempt %s started, deadline %s", attempt.attempt_id, attempt.deadline.isoformat())
        return attempt

    async def submit_answer(
        self,
        attempt_id: str,
        question_id: str,
        answer: Mapping[str, Any],
        time_spent_ms: int,
    ) -> dict[str, Any]:
        if attempt_id in self._finished_attempts:
            raise DailyQuizError(
                "Attempt has already been finished",
                DailyQuizErrorType.SUBMISSION_FAILED,
            )
        body = {
            "questionId": question_id,
            "answer": answer,
            "idempotencyKey": build_idempotency_key(attempt_id, question_id, self._clock_ms()),
            "timeSpentMs": int(time_spent_ms),
        }
        endpoint = ATTEMPT_ANSWER_ENDPOINT_TEMPLATE.format(attempt_id=attempt_id)
        try:
            payload = await self._http.post(endpoint, body)
        except ApiError as exc:
            logger.warning("Failed to submit answer for question %s: %s", question_id, exc.message)
            raise self._attempt_scoped_error(exc, "Failed to submit answer") from exc
        logger.debug("Answer for question %s accepted", question_id)
        return payload if isinstance(payload, dict) else {"status": payload}

    async def finish_attempt(
        self,
        attempt_id: str,
        answers: Iterable[Mapping[str, Any]] | None = None,
    ) -> ScoreBreakdown:
        """Finish the attempt and return the server's score.

        ``answers`` optionally carries ``{"questionId", "answer"}`` items that
        the server stores before scoring.
        """
        body = {"answers": list(answers)} if answers else None
        endpoint = ATTEMPT_FINISH_ENDPOINT_TEMPLATE.format(attempt_id=attempt_id)
        try:
            payload = await self._http.post(endpoint, body)
        except ApiError as exc:
            logger.warning("Failed to finish attempt %s: %s", attempt_id, exc.message)
            raise self._attempt_scoped_error(exc, "Failed to finish quiz attempt", finishing=True) from exc
        try:
            result = ScoreBreakdown.from_payload(payload)
        except (AttributeError, KeyError, TypeError, ValueError) as exc:
            raise _malformed_response(exc) from exc
        self._finished_attempts.add(attempt_id)
        logger.info("Attempt %s finished with score %s", attempt_id, result.score)
        return result

    def is_finished(self, attempt_id: str) -> bool:
        return attempt_id in self._finished_attempts

    @staticmethod
    def get_time_remaining(deadline: str | datetime, now: datetime | None = None) -> int:
        return get_time_remaining(deadline, now)

    @staticmethod
    def is_time_up(deadline: str | datetime, now: datetime | None = None) -> bool:
        return is_time_up(deadline, now)

    @staticmethod
    def format_time_remaining(seconds: int) -> str:
        return format_time_remaining(seconds)

    @staticmethod
    def _start_error(exc: ApiError) -> DailyQuizError:
        if exc.status == 409:
            return DailyQuizError(
                "You have already attempted this quiz today",
                DailyQuizErrorType.ALREADY_ATTEMPTED,
                409,
            )
        if exc.status == 403:
            return DailyQuizError(
                exc.message or "Quiz is not available for attempts",
                DailyQuizErrorType.NOT_YET_AVAILABLE,
                403,
            )
        if exc.status == 410:
            return DailyQuizError(
                exc.message or "Daily quiz window has expired",
                DailyQuizErrorType.WINDOW_EXPIRED,
                410,
            )
        if exc.status == 404:
            return DailyQuizError(
                "No daily quiz available for today",
                DailyQuizErrorType.NO_QUIZ_TODAY,
                404,
            )
        return handle_api_error(exc)

    @staticmethod
    def _attempt_scoped_error(exc: ApiError, fallback: str, finishing: bool = False) -> DailyQuizError:
        if exc.status == 404:
            return DailyQuizError("Quiz attempt not found", DailyQuizErrorType.ATTEMPT_NOT_FOUND, 404)
        if exc.status in (410, 422):
            return DailyQuizError("Quiz attempt has expired", DailyQuizErrorType.ATTEMPT_EXPIRED, exc.status)
        if finishing and exc.status == 409:
            return DailyQuizError(
                "Quiz attempt has already been submitted",
                DailyQuizErrorType.ALREADY_ATTEMPTED,
                409,
            )
        if exc.status in (401, NETWORK_FAILURE_STATUS, TIMEOUT_STATUS):
            return handle_api_error(exc)
        return DailyQuizError(
            exc.message or fallback,
            DailyQuizErrorType.SUBMISSION_FAILED,
            exc.status,
        )
