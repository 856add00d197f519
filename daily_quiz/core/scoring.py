"""Display values for a finished attempt's score."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from daily_quiz.constants.quiz_constants import (
    SCORE_EXCELLENT_THRESHOLD,
    SCORE_GOOD_THRESHOLD,
    SCORE_GREAT_THRESHOLD,
)
from daily_quiz.core.models import ScoreBreakdown


class ScoreRating(str, Enum):
    EXCELLENT = "EXCELLENT"
    GREAT = "GREAT"
    GOOD = "GOOD"


@dataclass(slots=True)
class ScoreCategory:
    key: str
    label: str
    points: float


@dataclass(slots=True)
class ScoreSummary:
    """Immutable snapshot returned to the results screen."""

    final_score: int
    rating: ScoreRating
    performance_message: str
    categories: list[ScoreCategory] = field(default_factory=list)
    correct_answers: int = 0
    total_questions: int = 0
    accuracy_percentage: int = 0
    finish_time: str | None = None


def score_rating(score: float) -> ScoreRating:
    if score >= SCORE_EXCELLENT_THRESHOLD:
        return ScoreRating.EXCELLENT
    if score >= SCORE_GREAT_THRESHOLD:
        return ScoreRating.GREAT
    return ScoreRating.GOOD


def performance_message(score: float) -> str:
    if score >= SCORE_EXCELLENT_THRESHOLD:
        return "Outstanding Performance!"
    if score >= SCORE_GREAT_THRESHOLD:
        return "Great Job!"
    if score >= SCORE_GOOD_THRESHOLD:
        return "Good Effort!"
    return "Keep Practicing!"


def format_finish_time(seconds: int) -> str:
    minutes, remaining_seconds = divmod(int(seconds), 60)
    return f"{minutes}:{remaining_seconds:02d}"


def rank_categories(result: ScoreBreakdown) -> list[ScoreCategory]:
    """Return the bonus categories sorted by points, highest first.

    Ties keep the accuracy, speed, early order. Without a breakdown there is
    nothing to rank.
    """
    breakdown = result.breakdown
    if breakdown is None:
        return []
    categories = [
        ScoreCategory("accuracy", "Accuracy", breakdown.accuracy_bonus),
        ScoreCategory("speed", "Speed Bonus", breakdown.speed_bonus),
        ScoreCategory("early", "Early Bird", breakdown.early_bonus),
    ]
    return sorted(categories, key=lambda c: -c.points)


def present_score(result: ScoreBreakdown) -> ScoreSummary:
    """Map the server's score onto display values. The numbers are used verbatim."""
    total_questions = len(result.questions)
    correct_answers = sum(1 for q in result.questions if q.is_correct)
    accuracy_percentage = round(correct_answers / total_questions * 100) if total_questions else 0
    finish_time = (
        format_finish_time(result.finish_time_sec) if result.finish_time_sec is not None else None
    )
    return ScoreSummary(
        final_score=result.score,
        rating=score_rating(result.score),
        performance_message=performance_message(result.score),
        categories=rank_categories(result),
        correct_answers=correct_answers,
        total_questions=total_questions,
        accuracy_percentage=accuracy_percentage,
        finish_time=finish_time,
    )
