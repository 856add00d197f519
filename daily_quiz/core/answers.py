"""In-memory answer shapes, one per answer family."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from daily_quiz.constants.quiz_constants import (
    DEFAULT_SPEED_TAP_ROUND_SECONDS,
    UNSELECTED_CHOICE_INDEX,
)


class AnswerFamily(str, Enum):
    SINGLE_CHOICE = "single-choice"
    PAIRWISE_MATCH = "pairwise-match"
    ORDERING = "ordering"
    RANKING = "ranking"
    TIMED_MULTI_SELECT = "timed-multi-select"


class TapAction(str, Enum):
    TAP = "tap"
    UNDO = "undo"


@dataclass(slots=True)
class SingleChoiceAnswer:
    choice_index: int = UNSELECTED_CHOICE_INDEX


@dataclass(slots=True)
class MatchingAnswer:
    """Maps each left-hand item to the right-hand value the player paired it with."""

    pairs: dict[str, str] = field(default_factory=dict)


@dataclass(slots=True)
class OrderingAnswer:
    """Ordered item list. Used by both the ordering and the ranking families."""

    ordered_items: list[str] = field(default_factory=list)


@dataclass(slots=True)
class SpeedTapEvent:
    ts: int
    option: str
    action: TapAction = TapAction.TAP


@dataclass(slots=True)
class SpeedTapSummary:
    taps: int = 0
    correct: int = 0
    wrong: int = 0


@dataclass(slots=True)
class SpeedTapAnswer:
    round_seconds: int = DEFAULT_SPEED_TAP_ROUND_SECONDS
    events: list[SpeedTapEvent] = field(default_factory=list)
    client_summary: SpeedTapSummary = field(default_factory=SpeedTapSummary)

    def record(self, option: str, action: TapAction, ts: int) -> SpeedTapEvent:
        """Append an event to the log. Events are never rewritten; undo is its own event."""
        event = SpeedTapEvent(ts=ts, option=option, action=action)
        self.events.append(event)
        if action is TapAction.TAP:
            self.client_summary.taps += 1
        return event


Answer = SingleChoiceAnswer | MatchingAnswer | OrderingAnswer | SpeedTapAnswer
