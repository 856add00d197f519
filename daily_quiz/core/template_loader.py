"""Structural validation of the CDN quiz template.

Two document shapes are accepted. The client shape lists questions flat:

    {"id": "...", "version": 3, "questions": [
        {"id": "q1", "questionType": "fill-blank", "prompt": {...}, "choices": [...]}
    ]}

The CDN envelope produced by the template composer wraps each question:

    {"dailyQuizId": "...", "version": 3, "questions": [
        {"qid": "q1", "type": "fill-blank", "payload": {"prompt": {...}, "choices": [...]}}
    ]}

Envelope payload fields are lifted to the question's top level. Anything that
fails validation raises TemplateFormatError and the template is not used.
"""

from __future__ import annotations

from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from daily_quiz.core.models import Difficulty, Question, QuizTemplate


class TemplateFormatError(Exception):
    """Raised when a quiz template does not have the expected structure."""


class TemplateQuestionPayload(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str = Field(min_length=1, validation_alias=AliasChoices("id", "qid"))
    question_type: str = Field(min_length=1, validation_alias=AliasChoices("questionType", "type"))
    difficulty: str = Difficulty.MEDIUM.value
    themes: list[str] = Field(default_factory=list)
    subjects: list[str] = Field(default_factory=list)
    prompt: Any = None
    choices: list[Any] | None = None
    media_refs: list[Any] | None = Field(default=None, validation_alias=AliasChoices("mediaRefs", "media"))
    correct: Any = None
    scoring_hints: Any = Field(default=None, validation_alias=AliasChoices("scoringHints"))

    @model_validator(mode="before")
    @classmethod
    def lift_envelope_payload(cls, data: Any) -> Any:
        if isinstance(data, dict) and isinstance(data.get("payload"), dict):
            flattened = {key: value for key, value in data.items() if key != "payload"}
            flattened.update(data["payload"])
            return flattened
        return data

    @field_validator("id", mode="before")
    @classmethod
    def coerce_id(cls, value: Any) -> Any:
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        return value

    @field_validator("difficulty", mode="before")
    @classmethod
    def default_difficulty(cls, value: Any) -> Any:
        return value or Difficulty.MEDIUM.value

    @field_validator("themes", "subjects", mode="before")
    @classmethod
    def default_tags(cls, value: Any) -> Any:
        return value or []

    def to_question(self) -> Question:
        return Question(
            id=self.id,
            question_type=self.question_type,
            difficulty=self.difficulty,
            themes=tuple(self.themes),
            subjects=tuple(self.subjects),
            prompt=self.prompt,
            choices=tuple(self.choices) if self.choices is not None else None,
            media_refs=tuple(self.media_refs) if self.media_refs is not None else None,
            correct=self.correct,
            scoring_hints=self.scoring_hints,
        )


class TemplatePayload(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str = Field(min_length=1, validation_alias=AliasChoices("id", "dailyQuizId"))
    version: int | None = None
    mode: str | None = None
    drop_time: str | None = Field(default=None, validation_alias=AliasChoices("dropTime"))
    metadata: dict[str, Any] | None = None
    questions: list[TemplateQuestionPayload] = Field(min_length=1)


def load_template(document: Any) -> QuizTemplate:
    """Validate a decoded CDN document and build the immutable template."""
    if not isinstance(document, dict):
        raise TemplateFormatError("Invalid template format received from CDN")
    try:
        payload = TemplatePayload.model_validate(document)
    except ValidationError as exc:
        raise TemplateFormatError(f"Invalid template format received from CDN: {exc}") from exc

    return QuizTemplate(
        id=payload.id,
        version=payload.version,
        mode=payload.mode,
        drop_time=payload.drop_time,
        metadata=dict(payload.metadata or {}),
        questions=tuple(q.to_question() for q in payload.questions),
    )
