"""Business logic tying availability, template, attempt and answers into one quiz session."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable

from daily_quiz.constants.quiz_constants import AUTO_SUBMIT_LEAD_SECONDS
from daily_quiz.core.answer_codec import format_answer_for_submission, validate_answer
from daily_quiz.core.answers import Answer
from daily_quiz.core.errors import DailyQuizError, DailyQuizErrorType
from daily_quiz.core.models import (
    Attempt,
    Question,
    QuizSession,
    QuizTemplate,
    ScoreBreakdown,
    SessionAnswer,
    SessionStatus,
    StartedQuiz,
)
from daily_quiz.core.services.attempt_client import AttemptClient, get_time_remaining
from daily_quiz.core.services.availability_service import AvailabilityService
from daily_quiz.utils.time_utils import utc_now

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class SessionState:
    """Everything the orchestrator knows about the attempt being played."""

    session: QuizSession | None = None
    template: QuizTemplate | None = None
    attempt: Attempt | None = None

    def is_empty(self) -> bool:
        return self.session is None and self.attempt is None


class QuizOrchestrator:
    """Facade over the availability service and attempt client.

    The session state is only ever replaced as a whole, and only after every
    step that produced it succeeded.
    """

    def __init__(
        self,
        availability: AvailabilityService,
        attempts: AttemptClient,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._availability = availability
        self._attempts = attempts
        self._clock = clock or utc_now
        self._state = SessionState()
        # Keeps answers and the final finish call in submission order.
        self._submit_lock = asyncio.Lock()

    # --- Start ---

    async def start_quiz_attempt(self) -> StartedQuiz:
        """Run the start workflow: metadata, template, server attempt, session.

        Steps run one after another. A failure in any step propagates as a
        ``DailyQuizError`` and leaves the current state untouched, so no
        attempt is created for a template that failed validation.
        """
        quiz_info = await self._availability.get_todays_quiz()
        template = await self._availability.fetch_quiz_template(quiz_info.template_url)
        attempt = await self._attempts.start_attempt()

        session = QuizSession(
            attempt_id=attempt.attempt_id,
            quiz_id=template.id,
            start_time=self._clock(),
        )
        self._state = SessionState(session=session, template=template, attempt=attempt)
        logger.info(
            "Quiz session started: attempt %s, quiz %s, %d questions",
            attempt.attempt_id,
            template.id,
            len(template.questions),
        )
        return StartedQuiz(quiz_info=quiz_info, template=template, attempt=attempt, session=session)

    # --- Answers ---

    def submit_answer(self, question_id: str, answer: Answer, time_spent_ms: int) -> bool:
        """Record an answer in the session. Returns True if it's a new answer, False if update."""
        session = self._require_session()
        is_new = session.record_answer(
            SessionAnswer(
                question_id=question_id,
                answer=answer,
                time_spent_ms=int(time_spent_ms),
                answered_at=self._clock(),
            )
        )
        logger.debug("Answer recorded for question %s (new=%s)", question_id, is_new)
        return is_new

    async def send_answer(self, question: Question, answer: Answer, time_spent_ms: int) -> dict[str, Any]:
        """Validate, record and submit one answer to the server."""
        attempt = self._require_attempt()
        if not validate_answer(question, answer):
            raise DailyQuizError(
                f"Answer is not valid for question {question.id}",
                DailyQuizErrorType.SUBMISSION_FAILED,
            )
        payload = format_answer_for_submission(question, answer)
        self.submit_answer(question.id, answer, time_spent_ms)

        async with self._submit_lock:
            return await self._attempts.submit_answer(
                attempt.attempt_id,
                question.id,
                payload,
                time_spent_ms,
            )

    # --- Finish ---

    async def submit_quiz_attempt(self) -> ScoreBreakdown:
        """Finish the attempt with the session's answers and clear the session.

        A session the server already reported as expired is refused locally.
        """
        state = self._state
        if state.session is None or state.attempt is None:
            raise DailyQuizError(
                "No active quiz attempt to submit",
                DailyQuizErrorType.UNKNOWN_ERROR,
            )
        if state.session.status is SessionStatus.EXPIRED:
            raise DailyQuizError("Quiz attempt has expired", DailyQuizErrorType.ATTEMPT_EXPIRED)

        answers = self._finish_payload(state)
        logger.info("Submitting attempt %s with %d answers", state.attempt.attempt_id, len(answers))
        async with self._submit_lock:
            try:
                result = await self._attempts.finish_attempt(state.attempt.attempt_id, answers)
            except DailyQuizError as error:
                if error.type is DailyQuizErrorType.ATTEMPT_EXPIRED:
                    state.session.status = SessionStatus.EXPIRED
                raise

        state.session.status = SessionStatus.COMPLETED
        if self._state is state:
            self._state = SessionState()
        return result

    def time_remaining(self, now: datetime | None = None) -> int | None:
        """Seconds left on the current attempt, or None without one."""
        attempt = self._state.attempt
        if attempt is None:
            return None
        return get_time_remaining(attempt.deadline, now or self._clock())

    async def auto_submit_if_time_up(self, now: datetime | None = None) -> ScoreBreakdown | None:
        """Force-finish with whatever answers exist as the countdown runs out.

        Fires ``AUTO_SUBMIT_LEAD_SECONDS`` before the deadline so the finish
        still reaches the server in time. Does nothing once the session has
        left ``IN_PROGRESS``.
        """
        state = self._state
        if state.attempt is None or state.session is None:
            return None
        if state.session.status is not SessionStatus.IN_PROGRESS:
            return None
        seconds_left = (state.attempt.deadline - (now or self._clock())).total_seconds()
        if seconds_left > AUTO_SUBMIT_LEAD_SECONDS:
            return None
        logger.info("Time is up, auto-submitting attempt %s", state.attempt.attempt_id)
        return await self.submit_quiz_attempt()

    # --- State ---

    def get_current_session(self) -> QuizSession | None:
        return self._state.session

    def get_current_template(self) -> QuizTemplate | None:
        return self._state.template

    def get_current_attempt(self) -> Attempt | None:
        return self._state.attempt

    def has_active_session(self) -> bool:
        return not self._state.is_empty()

    def clear_current_session(self) -> None:
        self._state = SessionState()

    def _require_session(self) -> QuizSession:
        session = self._state.session
        if session is None or session.status is not SessionStatus.IN_PROGRESS:
            raise DailyQuizError(
                "No quiz session in progress",
                DailyQuizErrorType.SUBMISSION_FAILED,
            )
        return session

    def _require_attempt(self) -> Attempt:
        self._require_session()
        return self._state.attempt

    @staticmethod
    def _finish_payload(state: SessionState) -> list[dict[str, Any]]:
        answers: list[dict[str, Any]] = []
        for item in state.session.answers:
            question = state.template.get_question(item.question_id) if state.template else None
            payload = format_answer_for_submission(question, item.answer) if question else None
            if payload is None:
                logger.warning("Skipping answer for question %s: cannot be formatted", item.question_id)
                continue
            answers.append({"questionId": item.question_id, "answer": payload})
        return answers
