"""Domain models for the daily quiz client."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Mapping

from daily_quiz.utils.time_utils import parse_timestamp, utc_now


class QuestionType(str, Enum):
    """Question archetypes the client knows how to answer."""

    ALBUM_YEAR_GUESS = "album-year-guess"
    FILL_BLANK = "fill-blank"
    GUESS_BY_LYRIC = "guess-by-lyric"
    ODD_ONE_OUT = "odd-one-out"
    SONG_ALBUM_MATCH = "song-album-match"
    TIMELINE_ORDER = "timeline-order"
    OUTFIT_ERA = "outfit-era"
    AI_VISUAL = "ai-visual"
    SOUND_ALIKE_SNIPPET = "sound-alike-snippet"
    MOOD_MATCH = "mood-match"
    REVERSE_AUDIO = "reverse-audio"
    TRACKLIST_ORDER = "tracklist-order"
    LIFE_TRIVIA = "life-trivia"
    POPULARITY_MATCH = "popularity-match"
    LONGEST_SONG = "longest-song"
    INSPIRATION_MAP = "inspiration-map"
    LYRIC_MASHUP = "lyric-mashup"
    ONE_SECOND = "one-second"
    SPEED_TAP = "speed-tap"

    @classmethod
    def from_raw(cls, value: str | None) -> QuestionType | None:
        """Return the archetype for ``value`` or ``None`` when it is not recognised."""
        if value is None:
            return None
        try:
            return cls(value)
        except ValueError:
            return None


class Difficulty(str, Enum):
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"


class AttemptStatus(str, Enum):
    ACTIVE = "active"
    FINISHED = "finished"
    EXPIRED = "expired"


class SessionStatus(str, Enum):
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    EXPIRED = "expired"


def _require(payload: Mapping[str, Any], key: str) -> Any:
    if key not in payload or payload[key] is None:
        raise ValueError(f"Response is missing required field '{key}'.")
    return payload[key]


def _optional_timestamp(value: Any) -> datetime | None:
    return parse_timestamp(value) if value else None


@dataclass(frozen=True, slots=True)
class Question:
    """A single question from the daily template.

    ``question_type`` keeps the raw discriminant so templates containing
    archetypes this client does not know still load.
    """

    id: str
    question_type: str
    difficulty: str = Difficulty.MEDIUM.value
    themes: tuple[str, ...] = ()
    subjects: tuple[str, ...] = ()
    prompt: Any = None
    choices: tuple[Any, ...] | None = None
    media_refs: tuple[Any, ...] | None = None
    correct: Any = None
    scoring_hints: Any = None

    @property
    def archetype(self) -> QuestionType | None:
        return QuestionType.from_raw(self.question_type)


@dataclass(frozen=True, slots=True)
class QuizTemplate:
    """CDN-hosted document enumerating a quiz's questions."""

    id: str
    questions: tuple[Question, ...]
    version: int | None = None
    mode: str | None = None
    drop_time: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    def get_question(self, question_id: str) -> Question | None:
        return next((q for q in self.questions if q.id == question_id), None)


@dataclass(frozen=True, slots=True)
class Attempt:
    """One user's timed engagement with one day's quiz, as issued by the server."""

    attempt_id: str
    server_start_at: datetime
    deadline: datetime
    seed: int
    template_url: str = ""
    status: AttemptStatus = AttemptStatus.ACTIVE

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> Attempt:
        return cls(
            attempt_id=str(_require(payload, "attemptId")),
            server_start_at=parse_timestamp(_require(payload, "serverStartAt")),
            deadline=parse_timestamp(_require(payload, "deadline")),
            seed=int(payload.get("seed") or 0),
            template_url=payload.get("templateUrl") or "",
        )

    def observed_status(self, now: datetime | None = None) -> AttemptStatus:
        """Project ``expired`` for an active attempt past its deadline without changing it."""
        if self.status is AttemptStatus.ACTIVE and (now or utc_now()) >= self.deadline:
            return AttemptStatus.EXPIRED
        return self.status


@dataclass(frozen=True, slots=True)
class AttemptSummary:
    id: str
    status: AttemptStatus
    started_at: datetime | None = None
    finished_at: datetime | None = None
    score: int | None = None

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> AttemptSummary:
        return cls(
            id=str(_require(payload, "id")),
            status=AttemptStatus(_require(payload, "status")),
            started_at=_optional_timestamp(payload.get("startedAt")),
            finished_at=_optional_timestamp(payload.get("finishedAt")),
            score=payload.get("score"),
        )


@dataclass(frozen=True, slots=True)
class TodayAttemptStatus:
    has_attempt: bool
    attempt: AttemptSummary | None = None

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> TodayAttemptStatus:
        attempt_payload = payload.get("attempt")
        return cls(
            has_attempt=bool(_require(payload, "hasAttempt")),
            attempt=AttemptSummary.from_payload(attempt_payload) if attempt_payload else None,
        )


@dataclass(frozen=True, slots=True)
class NextQuizDrop:
    next_drop_time: str
    next_drop_time_local: str | None = None
    local_date: str | None = None
    tz: str | None = None
    is_today: bool = False
    time_until_drop: int = 0

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> NextQuizDrop:
        return cls(
            next_drop_time=str(_require(payload, "nextDropTime")),
            next_drop_time_local=payload.get("nextDropTimeLocal"),
            local_date=payload.get("localDate"),
            tz=payload.get("tz"),
            is_today=bool(payload.get("isToday", False)),
            time_until_drop=int(payload.get("timeUntilDrop") or 0),
        )


@dataclass(frozen=True, slots=True)
class QuizWindow:
    start: str
    end: str


@dataclass(frozen=True, slots=True)
class TodaysQuiz:
    """Metadata for today's quiz, only served during the drop window."""

    local_date: str
    template_url: str
    tz: str | None = None
    window: QuizWindow | None = None
    drop_at_local: str | None = None
    join_window_ends_at_local: str | None = None
    template_version: int | None = None

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> TodaysQuiz:
        window = payload.get("window")
        return cls(
            local_date=str(_require(payload, "localDate")),
            template_url=str(_require(payload, "templateUrl")),
            tz=payload.get("tz"),
            window=QuizWindow(start=window["start"], end=window["end"]) if window else None,
            drop_at_local=payload.get("dropAtLocal"),
            join_window_ends_at_local=payload.get("joinWindowEndsAtLocal"),
            template_version=payload.get("templateVersion"),
        )


@dataclass(frozen=True, slots=True)
class DailyQuizStatus:
    """Combined availability, timing and attempt view served by ``/daily/status``."""

    is_available: bool
    next_drop: NextQuizDrop | None = None
    quiz: TodaysQuiz | None = None
    attempt_id: str | None = None
    attempt_status: str | None = None
    attempt_score: int | None = None

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> DailyQuizStatus:
        quiz = payload.get("quiz")
        next_drop = payload.get("nextDrop")
        attempt = payload.get("attempt") or {}
        return cls(
            is_available=bool(_require(payload, "isAvailable")),
            next_drop=NextQuizDrop.from_payload(next_drop) if next_drop else None,
            quiz=TodaysQuiz.from_payload(quiz) if quiz else None,
            attempt_id=attempt.get("id"),
            attempt_status=attempt.get("status"),
            attempt_score=attempt.get("score"),
        )


@dataclass(frozen=True, slots=True)
class ScoreComponents:
    base: float = 0
    accuracy_bonus: float = 0
    speed_bonus: float = 0
    early_bonus: float = 0


@dataclass(frozen=True, slots=True)
class QuestionResult:
    question_id: str
    is_correct: bool
    time_spent_ms: int = 0
    accuracy_points: int = 0


@dataclass(frozen=True, slots=True)
class ScoreBreakdown:
    """Server-computed result of a finished attempt. Rendered, never recomputed."""

    score: int
    breakdown: ScoreComponents | None = None
    acc_points: int | None = None
    finish_time_sec: int | None = None
    questions: tuple[QuestionResult, ...] = ()

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> ScoreBreakdown:
        raw_breakdown = payload.get("breakdown")
        breakdown = None
        if isinstance(raw_breakdown, Mapping):
            breakdown = ScoreComponents(
                base=raw_breakdown.get("base") or 0,
                accuracy_bonus=raw_breakdown.get("accuracyBonus") or 0,
                speed_bonus=raw_breakdown.get("speedBonus") or 0,
                early_bonus=raw_breakdown.get("earlyBonus") or 0,
            )
        questions = tuple(
            QuestionResult(
                question_id=str(item.get("questionId")),
                is_correct=bool(item.get("isCorrect", False)),
                time_spent_ms=item.get("timeSpentMs") or 0,
                accuracy_points=item.get("accuracyPoints") or 0,
            )
            for item in payload.get("questions") or ()
        )
        return cls(
            score=_require(payload, "score"),
            breakdown=breakdown,
            acc_points=payload.get("accPoints"),
            finish_time_sec=payload.get("finishTimeSec"),
            questions=questions,
        )


@dataclass(slots=True)
class SessionAnswer:
    """An answer held client-side for the current session."""

    question_id: str
    answer: Any
    time_spent_ms: int
    answered_at: datetime = field(default_factory=utc_now)


@dataclass(slots=True)
class QuizSession:
    """In-memory tracking of the attempt being played."""

    attempt_id: str
    quiz_id: str
    start_time: datetime
    answers: list[SessionAnswer] = field(default_factory=list)
    status: SessionStatus = SessionStatus.IN_PROGRESS

    def record_answer(self, answer: SessionAnswer) -> bool:
        """Store ``answer``, replacing any earlier one for the same question.

        Returns True if it's a new answer, False if it replaced one.
        """
        existing_index = next(
            (i for i, a in enumerate(self.answers) if a.question_id == answer.question_id), -1
        )
        if existing_index >= 0:
            self.answers[existing_index] = answer
            return False
        self.answers.append(answer)
        return True

    def get_answer(self, question_id: str) -> SessionAnswer | None:
        return next((a for a in self.answers if a.question_id == question_id), None)


@dataclass(frozen=True, slots=True)
class AvailabilityDecision:
    can_start: bool
    reason: str | None = None
    next_available_time: str | None = None


@dataclass(frozen=True, slots=True)
class StartedQuiz:
    """Everything the start workflow produced."""

    quiz_info: TodaysQuiz
    template: QuizTemplate
    attempt: Attempt
    session: QuizSession
