"""Quiz Pydantic V2 schemas.

Covers quiz and question CRUD, AI generation, and learner submissions.
``answers`` maps question id → answer string; multi-select answers are
comma-separated option keys (``"A,C"``).
"""

from __future__ import annotations

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from learnix.models.enums import QuestionType, QuizStatus


# ---------------------------------------------------------------------------
# Questions
# ---------------------------------------------------------------------------


class QuestionInput(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    question_text: str = Field(min_length=1)
    options: list[str] = Field(default_factory=list, description="Empty for short_answer.")
    correct_answer: str = Field(min_length=1, description='Option key ("A"), keys ("A,C") or text.')
    explanation: str | None = None
    type: QuestionType = QuestionType.MULTIPLE_CHOICE
    image_url: str | None = Field(default=None, max_length=500)


class CreateQuestionRequest(QuestionInput):
    points: int | None = Field(default=None, ge=0)


class UpdateQuestionRequest(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    question_text: str | None = Field(default=None, min_length=1)
    options: list[str] | None = None
    correct_answer: str | None = Field(default=None, min_length=1)
    explanation: str | None = None
    type: QuestionType | None = None
    image_url: str | None = Field(default=None, max_length=500)
    points: int | None = Field(default=None, ge=0)
    position: int | None = Field(default=None, ge=0)


class QuestionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    quiz_id: UUID
    question_text: str
    options: list[str]
    correct_answer: str
    explanation: str | None = None
    type: QuestionType
    points: int
    position: int
    image_url: str | None = None
    created_at: datetime


# ---------------------------------------------------------------------------
# Quizzes
# ---------------------------------------------------------------------------


class CreateQuizRequest(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    title: str = Field(min_length=1, max_length=300)
    description: str | None = None
    course_id: UUID | None = None
    lesson_id: UUID | None = None
    questions: list[QuestionInput] = Field(default_factory=list)


class UpdateQuizRequest(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    title: str | None = Field(default=None, min_length=1, max_length=300)
    description: str | None = None
    status: QuizStatus | None = None


class GenerateQuizRequest(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    lesson_text: str = Field(min_length=1)
    number_of_questions: int = Field(default=5, ge=3, le=20)
    title: str | None = Field(default=None, max_length=300)
    course_id: UUID | None = None
    lesson_id: UUID | None = None


class ReorderQuestionsRequest(BaseModel):
    question_ids: list[UUID] = Field(min_length=1)


class QuizResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    title: str
    description: str | None = None
    course_id: UUID | None = None
    lesson_id: UUID | None = None
    status: QuizStatus
    created_by: UUID | None = None
    ai_generated: bool
    questions: list[QuestionResponse] = []
    created_at: datetime
    updated_at: datetime


class MessageResponse(BaseModel):
    message: str


# ---------------------------------------------------------------------------
# Submissions
# ---------------------------------------------------------------------------


class SubmitAnswersRequest(BaseModel):
    answers: dict[str, str] = Field(default_factory=dict, description="question id → answer")


class SubmissionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    quiz_id: UUID
    user_id: UUID
    score: float | None = None
    total_points: float | None = None
    percentage: float | None = None
    responses: dict[str, str]
    created_at: datetime
    completed_at: datetime | None = None


# ---------------------------------------------------------------------------
# AI model output
# ---------------------------------------------------------------------------


class GeneratedQuestion(BaseModel):
    """One question as the model returns it; snake_case and camelCase keys are accepted."""

    model_config = ConfigDict(populate_by_name=True, from_attributes=True)

    question_text: str = Field(validation_alias=AliasChoices("question_text", "questionText"))
    correct_answer: str = Field(validation_alias=AliasChoices("correct_answer", "correctAnswer"))
    type: QuestionType
    options: list[str] = Field(default_factory=list)
    explanation: str | None = None

    @field_validator("question_text", "correct_answer")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("must not be blank")
        return value

    @field_validator("options", mode="before")
    @classmethod
    def _options_as_strings(cls, value: Any) -> list[str]:
        if not isinstance(value, list):
            return []
        return [str(option) for option in value]

    @field_validator("explanation", mode="before")
    @classmethod
    def _text_or_none(cls, value: Any) -> str | None:
        return value if isinstance(value, str) else None


class GeneratedQuiz(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    title: str
    questions: list[GeneratedQuestion]


class GeneratedQuizPayload(BaseModel):
    """Top-level JSON object from the model; questions are validated one by one."""

    title: str | None = None
    questions: list[Any] = Field(default_factory=list)

    @field_validator("title", mode="before")
    @classmethod
    def _blank_title(cls, value: Any) -> str | None:
        return (value.strip() or None) if isinstance(value, str) else None

    @field_validator("questions", mode="before")
    @classmethod
    def _questions_list(cls, value: Any) -> list[Any]:
        return value if isinstance(value, list) else []
