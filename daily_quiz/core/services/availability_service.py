"""Answers "can the user start today's quiz right now?"."""

from __future__ import annotations

import logging

from daily_quiz.constants.network_constants import (
    DAILY_NEXT_ENDPOINT,
    DAILY_STATUS_ENDPOINT,
    DAILY_TODAY_ENDPOINT,
    DEFAULT_CDN_TIMEOUT_SECONDS,
    TIMEOUT_STATUS,
)
from daily_quiz.constants.quiz_constants import (
    CDN_RETRY_SECONDS,
    CDN_TIMEOUT_RETRY_SECONDS,
    REASON_NO_QUIZ_TODAY,
    REASON_NOT_YET_AVAILABLE,
    REASON_TEMPLATE_NOT_READY,
    REASON_UNKNOWN,
    REASON_WINDOW_EXPIRED,
    TEMPLATE_NOT_READY_RETRY_SECONDS,
)
from daily_quiz.core.errors import ApiError, DailyQuizError, DailyQuizErrorType, handle_api_error
from daily_quiz.core.models import AvailabilityDecision, DailyQuizStatus, NextQuizDrop, QuizTemplate, TodaysQuiz
from daily_quiz.core.services.collaborators import ErrorNotifier, LoggingErrorNotifier
from daily_quiz.core.services.http_client import ApiHttpClient
from daily_quiz.core.template_loader import TemplateFormatError, load_template

logger = logging.getLogger(__name__)

# Conditions that are routine while polling before the drop or after the window.
_EXPECTED_POLLING_ERRORS = frozenset(
    {DailyQuizErrorType.NOT_YET_AVAILABLE, DailyQuizErrorType.WINDOW_EXPIRED}
)
_MALFORMED = (AttributeError, KeyError, TypeError, ValueError)


class AvailabilityService:
    """Maps the ``/daily`` family of endpoints onto ``DailyQuizError`` types.

    Errors that are not silent are handed to the notifier once before being
    raised. ``can_start_quiz`` never raises.
    """

    def __init__(
        self,
        http: ApiHttpClient,
        notifier: ErrorNotifier | None = None,
        cdn_timeout: float = DEFAULT_CDN_TIMEOUT_SECONDS,
    ) -> None:
        self._http = http
        self._notifier = notifier or LoggingErrorNotifier()
        self._cdn_timeout = cdn_timeout

    async def get_next_quiz_drop_time(self, suppress_notifications: bool = False) -> NextQuizDrop:
        try:
            payload = await self._http.get(DAILY_NEXT_ENDPOINT)
        except ApiError as exc:
            if exc.status == 404:
                error = DailyQuizError(
                    "No upcoming quiz found",
                    DailyQuizErrorType.NO_UPCOMING_QUIZ,
                    404,
                )
            else:
                error = handle_api_error(exc)
            error.silent = suppress_notifications
            raise self._surface(error) from exc
        try:
            drop = NextQuizDrop.from_payload(payload)
        except _MALFORMED as exc:
            error = self._malformed(exc)
            error.silent = suppress_notifications
            raise self._surface(error) from exc
        logger.info("Next quiz drop at %s (today=%s)", drop.next_drop_time, drop.is_today)
        return drop

    async def get_todays_quiz(self, suppress_notifications: bool = False) -> TodaysQuiz:
        """Fetch today's quiz metadata; only served while the join window is open.

        With ``suppress_notifications`` the routine not-yet-available and
        window-expired outcomes come back as silent errors.
        """
        try:
            payload = await self._http.get(DAILY_TODAY_ENDPOINT)
        except ApiError as exc:
            error = self._todays_quiz_error(exc)
            if suppress_notifications and error.type in _EXPECTED_POLLING_ERRORS:
                error.silent = True
                logger.debug("Today's quiz unavailable: %s", error.type.value)
            raise self._surface(error) from exc
        try:
            quiz = TodaysQuiz.from_payload(payload)
        except _MALFORMED as exc:
            raise self._surface(self._malformed(exc)) from exc
        if not suppress_notifications:
            logger.info("Today's quiz %s fetched, template %s", quiz.local_date, quiz.template_url)
        return quiz

    async def get_daily_quiz_status(self) -> DailyQuizStatus:
        """Availability, timing and the user's attempt in one call."""
        try:
            payload = await self._http.get(DAILY_STATUS_ENDPOINT)
        except ApiError as exc:
            raise self._surface(handle_api_error(exc)) from exc
        try:
            return DailyQuizStatus.from_payload(payload)
        except _MALFORMED as exc:
            raise self._surface(self._malformed(exc)) from exc

    async def fetch_quiz_template(self, template_url: str) -> QuizTemplate:
        logger.info("Fetching quiz template from CDN: %s", template_url)
        try:
            document = await self._http.fetch_json(template_url, timeout=self._cdn_timeout)
            template = load_template(document)
        except ApiError as exc:
            if exc.status == TIMEOUT_STATUS:
                error = DailyQuizError(
                    "CDN request timed out",
                    DailyQuizErrorType.CDN_ERROR,
                    TIMEOUT_STATUS,
                    CDN_TIMEOUT_RETRY_SECONDS,
                )
            else:
                error = DailyQuizError(
                    exc.message or "Failed to load quiz content",
                    DailyQuizErrorType.CDN_ERROR,
                    exc.status or 0,
                    CDN_RETRY_SECONDS,
                )
            raise self._surface(error) from exc
        except TemplateFormatError as exc:
            error = DailyQuizError(
                str(exc),
                DailyQuizErrorType.CDN_ERROR,
                0,
                CDN_RETRY_SECONDS,
            )
            raise self._surface(error) from exc
        logger.info(
            "Quiz template %s fetched: %d questions, version %s",
            template.id,
            len(template.questions),
            template.version,
        )
        return template

    async def can_start_quiz(self) -> AvailabilityDecision:
        try:
            await self.get_todays_quiz(suppress_notifications=True)
        except DailyQuizError as error:
            return await self._decision_for(error)
        logger.info("Daily quiz is available and can be started")
        return AvailabilityDecision(can_start=True)

    async def _decision_for(self, error: DailyQuizError) -> AvailabilityDecision:
        if error.type is DailyQuizErrorType.NOT_YET_AVAILABLE:
            return AvailabilityDecision(
                can_start=False,
                reason=REASON_NOT_YET_AVAILABLE,
                next_available_time=await self._next_drop_time_or_none(),
            )
        if error.type is DailyQuizErrorType.WINDOW_EXPIRED:
            return AvailabilityDecision(
                can_start=False,
                reason=REASON_WINDOW_EXPIRED,
                next_available_time=await self._next_drop_time_or_none(),
            )
        if error.type is DailyQuizErrorType.TEMPLATE_NOT_READY:
            return AvailabilityDecision(can_start=False, reason=REASON_TEMPLATE_NOT_READY)
        if error.type is DailyQuizErrorType.NO_QUIZ_TODAY:
            return AvailabilityDecision(can_start=False, reason=REASON_NO_QUIZ_TODAY)
        logger.warning("Quiz availability check failed: %s", error.message)
        return AvailabilityDecision(can_start=False, reason=error.message or REASON_UNKNOWN)

    async def _next_drop_time_or_none(self) -> str | None:
        # Follows a silenced check, so its own failures stay silent too.
        try:
            drop = await self.get_next_quiz_drop_time(suppress_notifications=True)
        except DailyQuizError as error:
            logger.warning("Could not resolve next drop time: %s", error.message)
            return None
        return drop.next_drop_time

    @staticmethod
    def _todays_quiz_error(exc: ApiError) -> DailyQuizError:
        if exc.status == 404:
            return DailyQuizError(
                "No daily quiz available for today",
                DailyQuizErrorType.NO_QUIZ_TODAY,
                404,
            )
        if exc.status == 403:
            return DailyQuizError(
                exc.message or "Daily quiz is not yet available",
                DailyQuizErrorType.NOT_YET_AVAILABLE,
                403,
            )
        if exc.status == 410:
            return DailyQuizError(
                exc.message or "Daily quiz window has expired",
                DailyQuizErrorType.WINDOW_EXPIRED,
                410,
            )
        if exc.status == 503:
            return DailyQuizError(
                "Daily quiz template is not ready yet",
                DailyQuizErrorType.TEMPLATE_NOT_READY,
                503,
                TEMPLATE_NOT_READY_RETRY_SECONDS,
            )
        if exc.status == 409:
            return DailyQuizError(
                "You have already attempted this quiz today",
                DailyQuizErrorType.ALREADY_ATTEMPTED,
                409,
            )
        return handle_api_error(exc)

    @staticmethod
    def _malformed(exc: Exception) -> DailyQuizError:
        return DailyQuizError(f"Malformed server response: {exc}", DailyQuizErrorType.UNKNOWN_ERROR)

    def _surface(self, error: DailyQuizError) -> DailyQuizError:
        if not error.silent:
            self._notifier.notify(error)
        return error
