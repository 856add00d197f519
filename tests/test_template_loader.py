"""Tests for CDN template validation."""

from __future__ import annotations

import pytest

from daily_quiz.core.models import QuestionType
from daily_quiz.core.template_loader import TemplateFormatError, load_template


def test_flat_shape_loads() -> None:
    template = load_template(
        {
            "id": "dq-1",
            "version": 2,
            "questions": [
                {
                    "id": 7,
                    "questionType": "odd-one-out",
                    "difficulty": "hard",
                    "prompt": {"text": "Which one is not on Red?"},
                    "choices": ["22", "All Too Well", "Style"],
                    "mediaRefs": [{"type": "image", "url": "https://cdn.test/a.png"}],
                }
            ],
        }
    )
    question = template.questions[0]
    assert question.id == "7"
    assert question.archetype is QuestionType.ODD_ONE_OUT
    assert question.difficulty == "hard"
    assert question.media_refs == ({"type": "image", "url": "https://cdn.test/a.png"},)
    assert template.metadata == {}


def test_envelope_shape_is_flattened() -> None:
    template = load_template(
        {
            "dailyQuizId": "dq-2",
            "dropTime": "2026-10-18T18:00:00Z",
            "metadata": {"seasonId": "s3"},
            "questions": [
                {
                    "qid": "q1",
                    "type": "tracklist-order",
                    "difficulty": None,
                    "payload": {"prompt": {"tracks": ["a", "b"]}, "correct": {"orderedTracks": ["b", "a"]}},
                }
            ],
        }
    )
    question = template.get_question("q1")
    assert template.id == "dq-2"
    assert template.drop_time == "2026-10-18T18:00:00Z"
    assert template.metadata == {"seasonId": "s3"}
    assert question.prompt == {"tracks": ["a", "b"]}
    assert question.difficulty == "medium"
    assert question.themes == ()


def test_unknown_archetype_still_loads() -> None:
    template = load_template({"id": "dq", "questions": [{"id": "x", "questionType": "karaoke-duet"}]})
    assert template.questions[0].archetype is None
    assert template.questions[0].question_type == "karaoke-duet"


@pytest.mark.parametrize(
    "document",
    [
        None,
        [],
        {"questions": [{"id": "q1", "questionType": "fill-blank"}]},
        {"id": "dq", "questions": "q1"},
        {"id": "dq", "questions": [{"id": "", "questionType": "fill-blank"}]},
    ],
)
def test_structural_errors(document) -> None:
    with pytest.raises(TemplateFormatError):
        load_template(document)
