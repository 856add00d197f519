"""Per-archetype answer defaults, completeness, validity and wire shaping.

Every archetype belongs to exactly one answer family:

    single-choice       {choiceIndex}           13 archetypes, see _FAMILY_BY_TYPE
    pairwise-match      {left: right, ...}      song-album-match, lyric-mashup
    ordering            {orderedItems}          timeline-order
                        {orderedTracks}         tracklist-order
    ranking             {orderedChoices}        popularity-match
    timed-multi-select  {roundSeconds, events, clientSummary}   speed-tap

The tracklist/timeline key divergence is part of the server contract.

Validation is structural only. Correctness is decided by the server, so the
question's ``correct`` field is never read here. Unknown archetypes produce
``None`` defaults and ``False`` from every predicate.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Callable

from daily_quiz.constants.quiz_constants import (
    DEFAULT_SPEED_TAP_ROUND_SECONDS,
    RANKING_PLACEHOLDER_TEMPLATE,
    UNSELECTED_CHOICE_INDEX,
)
from daily_quiz.core.answers import (
    Answer,
    AnswerFamily,
    MatchingAnswer,
    OrderingAnswer,
    SingleChoiceAnswer,
    SpeedTapAnswer,
    SpeedTapEvent,
    SpeedTapSummary,
    TapAction,
)
from daily_quiz.core.models import Question, QuestionType

_FAMILY_BY_TYPE: dict[QuestionType, AnswerFamily] = {
    QuestionType.ALBUM_YEAR_GUESS: AnswerFamily.SINGLE_CHOICE,
    QuestionType.FILL_BLANK: AnswerFamily.SINGLE_CHOICE,
    QuestionType.GUESS_BY_LYRIC: AnswerFamily.SINGLE_CHOICE,
    QuestionType.ODD_ONE_OUT: AnswerFamily.SINGLE_CHOICE,
    QuestionType.AI_VISUAL: AnswerFamily.SINGLE_CHOICE,
    QuestionType.SOUND_ALIKE_SNIPPET: AnswerFamily.SINGLE_CHOICE,
    QuestionType.MOOD_MATCH: AnswerFamily.SINGLE_CHOICE,
    QuestionType.INSPIRATION_MAP: AnswerFamily.SINGLE_CHOICE,
    QuestionType.LIFE_TRIVIA: AnswerFamily.SINGLE_CHOICE,
    QuestionType.LONGEST_SONG: AnswerFamily.SINGLE_CHOICE,
    QuestionType.OUTFIT_ERA: AnswerFamily.SINGLE_CHOICE,
    QuestionType.REVERSE_AUDIO: AnswerFamily.SINGLE_CHOICE,
    QuestionType.ONE_SECOND: AnswerFamily.SINGLE_CHOICE,
    QuestionType.SONG_ALBUM_MATCH: AnswerFamily.PAIRWISE_MATCH,
    QuestionType.LYRIC_MASHUP: AnswerFamily.PAIRWISE_MATCH,
    QuestionType.TIMELINE_ORDER: AnswerFamily.ORDERING,
    QuestionType.TRACKLIST_ORDER: AnswerFamily.ORDERING,
    QuestionType.POPULARITY_MATCH: AnswerFamily.RANKING,
    QuestionType.SPEED_TAP: AnswerFamily.TIMED_MULTI_SELECT,
}

_ANSWER_CLASS_BY_FAMILY: dict[AnswerFamily, type] = {
    AnswerFamily.SINGLE_CHOICE: SingleChoiceAnswer,
    AnswerFamily.PAIRWISE_MATCH: MatchingAnswer,
    AnswerFamily.ORDERING: OrderingAnswer,
    AnswerFamily.RANKING: OrderingAnswer,
    AnswerFamily.TIMED_MULTI_SELECT: SpeedTapAnswer,
}

# Wire key for the ordered list, per archetype.
_ORDERED_LIST_KEYS: dict[QuestionType, str] = {
    QuestionType.TIMELINE_ORDER: "orderedItems",
    QuestionType.TRACKLIST_ORDER: "orderedTracks",
    QuestionType.POPULARITY_MATCH: "orderedChoices",
}

# Prompt field that seeds the default order.
_PROMPT_ITEM_KEYS: dict[QuestionType, str] = {
    QuestionType.TIMELINE_ORDER: "items",
    QuestionType.TRACKLIST_ORDER: "tracks",
}


def answer_family(question: Question) -> AnswerFamily | None:
    archetype = question.archetype
    if archetype is None:
        return None
    return _FAMILY_BY_TYPE.get(archetype)


def supported_question_types() -> frozenset[QuestionType]:
    return frozenset(_FAMILY_BY_TYPE)


def _family_and_answer(question: Question, answer: Any) -> AnswerFamily | None:
    """Return the family when ``answer`` has the shape that family expects."""
    family = answer_family(question)
    if family is None or answer is None:
        return None
    if not isinstance(answer, _ANSWER_CLASS_BY_FAMILY[family]):
        return None
    return family


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _prompt_value(question: Question, key: str) -> Any:
    if isinstance(question.prompt, Mapping):
        return question.prompt.get(key)
    return None


# --- Defaults ---


def _default_single_choice(question: Question) -> SingleChoiceAnswer:
    return SingleChoiceAnswer(choice_index=UNSELECTED_CHOICE_INDEX)


def _default_matching(question: Question) -> MatchingAnswer:
    return MatchingAnswer()


def _default_ordering(question: Question) -> OrderingAnswer:
    items = _prompt_value(question, _PROMPT_ITEM_KEYS[question.archetype]) or []
    return OrderingAnswer(ordered_items=list(items))


def _default_ranking(question: Question) -> OrderingAnswer:
    choices = question.choices or ()
    return OrderingAnswer(
        ordered_items=[RANKING_PLACEHOLDER_TEMPLATE.format(index=i) for i in range(len(choices))]
    )


def _default_speed_tap(question: Question) -> SpeedTapAnswer:
    round_seconds = _prompt_value(question, "roundSeconds") or DEFAULT_SPEED_TAP_ROUND_SECONDS
    return SpeedTapAnswer(round_seconds=round_seconds)


_DEFAULTS: dict[AnswerFamily, Callable[[Question], Answer]] = {
    AnswerFamily.SINGLE_CHOICE: _default_single_choice,
    AnswerFamily.PAIRWISE_MATCH: _default_matching,
    AnswerFamily.ORDERING: _default_ordering,
    AnswerFamily.RANKING: _default_ranking,
    AnswerFamily.TIMED_MULTI_SELECT: _default_speed_tap,
}


def get_default_answer(question: Question) -> Answer | None:
    """Return a fresh value to seed the answer UI for ``question``."""
    family = answer_family(question)
    if family is None:
        return None
    return _DEFAULTS[family](question)


# --- Completeness ---


_COMPLETENESS: dict[AnswerFamily, Callable[[Any], bool]] = {
    AnswerFamily.SINGLE_CHOICE: lambda a: _is_int(a.choice_index) and a.choice_index >= 0,
    AnswerFamily.PAIRWISE_MATCH: lambda a: len(a.pairs) > 0,
    AnswerFamily.ORDERING: lambda a: len(a.ordered_items) > 0,
    AnswerFamily.RANKING: lambda a: len(a.ordered_items) > 0,
    AnswerFamily.TIMED_MULTI_SELECT: lambda a: len(a.events) > 0,
}


def is_answer_complete(question: Question, answer: Answer | None) -> bool:
    """Whether ``answer`` is far enough along to enable the submit control."""
    family = _family_and_answer(question, answer)
    if family is None:
        return False
    return _COMPLETENESS[family](answer)


# --- Structural validity ---


def _valid_single_choice(question: Question, answer: SingleChoiceAnswer) -> bool:
    if not _is_int(answer.choice_index):
        return False
    return 0 <= answer.choice_index < len(question.choices or ())


def _valid_matching(question: Question, answer: MatchingAnswer) -> bool:
    if not isinstance(answer.pairs, Mapping):
        return False
    return all(isinstance(k, str) and isinstance(v, str) for k, v in answer.pairs.items())


def _valid_ordering(question: Question, answer: OrderingAnswer) -> bool:
    if not isinstance(answer.ordered_items, list):
        return False
    return all(isinstance(item, str) for item in answer.ordered_items)


def _valid_speed_tap(question: Question, answer: SpeedTapAnswer) -> bool:
    if not _is_int(answer.round_seconds) or answer.round_seconds <= 0:
        return False
    if not isinstance(answer.events, list):
        return False
    for event in answer.events:
        if not isinstance(event, SpeedTapEvent):
            return False
        if not _is_number(event.ts) or not isinstance(event.option, str):
            return False
        if not isinstance(event.action, TapAction):
            return False
    summary = answer.client_summary
    return isinstance(summary, SpeedTapSummary) and all(
        _is_int(v) and v >= 0 for v in (summary.taps, summary.correct, summary.wrong)
    )


_VALIDATORS: dict[AnswerFamily, Callable[[Question, Any], bool]] = {
    AnswerFamily.SINGLE_CHOICE: _valid_single_choice,
    AnswerFamily.PAIRWISE_MATCH: _valid_matching,
    AnswerFamily.ORDERING: _valid_ordering,
    AnswerFamily.RANKING: _valid_ordering,
    AnswerFamily.TIMED_MULTI_SELECT: _valid_speed_tap,
}


def validate_answer(question: Question, answer: Answer | None) -> bool:
    """Structural check (type, shape, bounds) run before network submission."""
    family = _family_and_answer(question, answer)
    if family is None:
        return False
    return _VALIDATORS[family](question, answer)


# --- Wire shaping ---


def _format_single_choice(question: Question, answer: SingleChoiceAnswer) -> dict[str, Any]:
    return {"choiceIndex": answer.choice_index}


def _format_matching(question: Question, answer: MatchingAnswer) -> dict[str, Any]:
    return dict(answer.pairs)


def _format_ordering(question: Question, answer: OrderingAnswer) -> dict[str, Any]:
    return {_ORDERED_LIST_KEYS[question.archetype]: list(answer.ordered_items)}


def _format_speed_tap(question: Question, answer: SpeedTapAnswer) -> dict[str, Any]:
    summary = answer.client_summary
    return {
        "roundSeconds": answer.round_seconds,
        "events": [
            {"ts": e.ts, "option": e.option, "action": e.action.value} for e in answer.events
        ],
        "clientSummary": {
            "taps": summary.taps,
            "correct": summary.correct,
            "wrong": summary.wrong,
        },
    }


_FORMATTERS: dict[AnswerFamily, Callable[[Question, Any], dict[str, Any]]] = {
    AnswerFamily.SINGLE_CHOICE: _format_single_choice,
    AnswerFamily.PAIRWISE_MATCH: _format_matching,
    AnswerFamily.ORDERING: _format_ordering,
    AnswerFamily.RANKING: _format_ordering,
    AnswerFamily.TIMED_MULTI_SELECT: _format_speed_tap,
}


def format_answer_for_submission(question: Question, answer: Answer | None) -> dict[str, Any] | None:
    """Return the JSON body the server expects under ``answer``."""
    family = _family_and_answer(question, answer)
    if family is None:
        return None
    return _FORMATTERS[family](question, answer)


# --- Decoding ---


def _parse_single_choice(question: Question, payload: Mapping[str, Any]) -> SingleChoiceAnswer | None:
    if "choiceIndex" not in payload:
        return None
    return SingleChoiceAnswer(choice_index=payload["choiceIndex"])


def _parse_matching(question: Question, payload: Mapping[str, Any]) -> MatchingAnswer | None:
    return MatchingAnswer(pairs=dict(payload))


def _parse_ordering(question: Question, payload: Mapping[str, Any]) -> OrderingAnswer | None:
    for key in (_ORDERED_LIST_KEYS[question.archetype], "orderedItems"):
        items = payload.get(key)
        if isinstance(items, list):
            return OrderingAnswer(ordered_items=list(items))
    return None


def _parse_speed_tap(question: Question, payload: Mapping[str, Any]) -> SpeedTapAnswer | None:
    events = payload.get("events")
    if not isinstance(events, list):
        return None
    try:
        parsed_events = [
            SpeedTapEvent(ts=e["ts"], option=e["option"], action=TapAction(e.get("action", "tap")))
            for e in events
        ]
    except (KeyError, TypeError, ValueError, AttributeError):
        return None
    summary = payload.get("clientSummary")
    if not isinstance(summary, Mapping):
        summary = {}
    return SpeedTapAnswer(
        round_seconds=payload.get("roundSeconds", DEFAULT_SPEED_TAP_ROUND_SECONDS),
        events=parsed_events,
        client_summary=SpeedTapSummary(
            taps=summary.get("taps", 0),
            correct=summary.get("correct", 0),
            wrong=summary.get("wrong", 0),
        ),
    )


_PARSERS: dict[AnswerFamily, Callable[[Question, Mapping[str, Any]], Answer | None]] = {
    AnswerFamily.SINGLE_CHOICE: _parse_single_choice,
    AnswerFamily.PAIRWISE_MATCH: _parse_matching,
    AnswerFamily.ORDERING: _parse_ordering,
    AnswerFamily.RANKING: _parse_ordering,
    AnswerFamily.TIMED_MULTI_SELECT: _parse_speed_tap,
}


def parse_answer(question: Question, payload: Any) -> Answer | None:
    """Decode a UI or wire mapping into the typed answer for ``question``."""
    family = answer_family(question)
    if family is None or not isinstance(payload, Mapping):
        return None
    return _PARSERS[family](question, payload)
