from __future__ import annotations

from uuid import UUID

from fastapi import HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from learnix.exceptions import (
    AIGenerationError,
    AIServiceUnavailableError,
    CourseNotFoundError,
    LessonNotFoundError,
    QuestionNotFoundError,
    QuestionsNotInQuizError,
    QuizNotFoundError,
)
from learnix.quizzes import service
from learnix.quizzes.schemas import (
    CreateQuestionRequest,
    CreateQuizRequest,
    GenerateQuizRequest,
    MessageResponse,
    QuestionResponse,
    QuizResponse,
    ReorderQuestionsRequest,
    SubmissionResponse,
    SubmitAnswersRequest,
    UpdateQuestionRequest,
    UpdateQuizRequest,
)

# Columns that cannot be cleared with an explicit null
_REQUIRED_QUESTION_FIELDS = {"question_text", "options", "correct_answer", "type", "points", "position"}


def _handle_domain_error(exc: Exception) -> HTTPException:
    if isinstance(exc, (
        QuizNotFoundError,
        QuestionNotFoundError,
        QuestionsNotInQuizError,
        CourseNotFoundError,
        LessonNotFoundError,
    )):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=exc.message)
    if isinstance(exc, AIServiceUnavailableError):
        return HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=exc.message)
    if isinstance(exc, AIGenerationError):
        return HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=exc.message)
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Internal error.")


# ── Quizzes ───────────────────────────────────────────────────────────────────

async def create_quiz(db: AsyncSession, user_id: UUID, body: CreateQuizRequest) -> QuizResponse:
    try:
        quiz = await service.create_quiz(db, user_id, body)
        return QuizResponse.model_validate(quiz)
    except Exception as exc:
        raise _handle_domain_error(exc) from exc


async def update_quiz(db: AsyncSession, quiz_id: UUID, body: UpdateQuizRequest) -> QuizResponse:
    changes = {
        k: v for k, v in body.model_dump(exclude_unset=True).items()
        if v is not None or k == "description"
    }
    try:
        quiz = await service.update_quiz(db, quiz_id, changes)
        return QuizResponse.model_validate(quiz)
    except Exception as exc:
        raise _handle_domain_error(exc) from exc


async def get_quiz(db: AsyncSession, quiz_id: UUID) -> QuizResponse:
    try:
        return QuizResponse.model_validate(await service.get_quiz(db, quiz_id))
    except Exception as exc:
        raise _handle_domain_error(exc) from exc


async def get_quiz_by_lesson(db: AsyncSession, lesson_id: UUID) -> QuizResponse | None:
    quiz = await service.get_quiz_by_lesson(db, lesson_id)
    return QuizResponse.model_validate(quiz) if quiz else None


async def my_quizzes(db: AsyncSession, user_id: UUID) -> list[QuizResponse]:
    quizzes = await service.list_quizzes_by_creator(db, user_id)
    return [QuizResponse.model_validate(q) for q in quizzes]


async def approve_quiz(db: AsyncSession, quiz_id: UUID) -> QuizResponse:
    try:
        return QuizResponse.model_validate(await service.approve_quiz(db, quiz_id))
    except Exception as exc:
        raise _handle_domain_error(exc) from exc


async def generate_quiz(db: AsyncSession, user_id: UUID, body: GenerateQuizRequest) -> QuizResponse:
    try:
        quiz = await service.generate_quiz(db, user_id, body)
        return QuizResponse.model_validate(quiz)
    except Exception as exc:
        raise _handle_domain_error(exc) from exc


# ── Questions ─────────────────────────────────────────────────────────────────

async def add_question(
    db: AsyncSession, quiz_id: UUID, body: CreateQuestionRequest
) -> QuestionResponse:
    try:
        question = await service.add_question(db, quiz_id, body)
        return QuestionResponse.model_validate(question)
    except Exception as exc:
        raise _handle_domain_error(exc) from exc


async def update_question(
    db: AsyncSession, question_id: UUID, body: UpdateQuestionRequest
) -> QuestionResponse:
    changes = {
        k: v for k, v in body.model_dump(exclude_unset=True).items()
        if v is not None or k not in _REQUIRED_QUESTION_FIELDS
    }
    try:
        question = await service.update_question(db, question_id, changes)
        return QuestionResponse.model_validate(question)
    except Exception as exc:
        raise _handle_domain_error(exc) from exc


async def delete_question(db: AsyncSession, question_id: UUID) -> None:
    try:
        await service.delete_question(db, question_id)
    except Exception as exc:
        raise _handle_domain_error(exc) from exc


async def reorder_questions(
    db: AsyncSession, quiz_id: UUID, body: ReorderQuestionsRequest
) -> MessageResponse:
    try:
        await service.reorder_questions(db, quiz_id, body.question_ids)
    except Exception as exc:
        raise _handle_domain_error(exc) from exc
    return MessageResponse(message="Questions reordered successfully")


# ── Submissions ───────────────────────────────────────────────────────────────

async def save_progress(
    db: AsyncSession, user_id: UUID, quiz_id: UUID, body: SubmitAnswersRequest
) -> SubmissionResponse:
    try:
        submission = await service.save_progress(db, user_id, quiz_id, body.answers)
        return SubmissionResponse.model_validate(submission)
    except Exception as exc:
        raise _handle_domain_error(exc) from exc


async def submit_quiz(
    db: AsyncSession, user_id: UUID, quiz_id: UUID, body: SubmitAnswersRequest
) -> SubmissionResponse:
    try:
        submission = await service.submit_quiz(db, user_id, quiz_id, body.answers)
        return SubmissionResponse.model_validate(submission)
    except Exception as exc:
        raise _handle_domain_error(exc) from exc


async def get_submission(db: AsyncSession, user_id: UUID, quiz_id: UUID) -> SubmissionResponse | None:
    submission = await service.get_latest_submission(db, user_id, quiz_id)
    return SubmissionResponse.model_validate(submission) if submission else None
