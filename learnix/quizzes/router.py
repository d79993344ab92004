"""Quizzes router: authoring (instructor/admin) and taking quizzes (any signed-in user)."""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from learnix.database import get_db
from learnix.dependencies import CurrentUser, get_current_user, require_author
from learnix.quizzes import controller
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

router = APIRouter(prefix="/quizzes", tags=["Quizzes"])


# ======================================================================
# Authoring (instructor / admin)
# ======================================================================


@router.post(
    "",
    response_model=QuizResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a quiz",
    description="Creates a draft quiz, optionally with an initial list of questions.",
)
async def create_quiz(
    body: CreateQuizRequest,
    current_user: CurrentUser = Depends(require_author),
    db: AsyncSession = Depends(get_db),
) -> QuizResponse:
    return await controller.create_quiz(db, current_user.id, body)


@router.post(
    "/generate",
    response_model=QuizResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Generate a quiz from lesson text with AI",
    description="Asks the AI model for questions and stores them as an `ai_generated` quiz "
    "for the author to review.",
)
async def generate_quiz(
    body: GenerateQuizRequest,
    current_user: CurrentUser = Depends(require_author),
    db: AsyncSession = Depends(get_db),
) -> QuizResponse:
    return await controller.generate_quiz(db, current_user.id, body)


@router.get("/my-quizzes", response_model=list[QuizResponse], summary="Quizzes I created")
async def my_quizzes(
    current_user: CurrentUser = Depends(require_author),
    db: AsyncSession = Depends(get_db),
) -> list[QuizResponse]:
    return await controller.my_quizzes(db, current_user.id)


@router.get(
    "/by-lesson/{lesson_id}",
    response_model=QuizResponse | None,
    summary="Newest quiz attached to a lesson",
    description="Returns `null` when the lesson has no quiz.",
)
async def quiz_by_lesson(
    lesson_id: UUID,
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> QuizResponse | None:
    return await controller.get_quiz_by_lesson(db, lesson_id)


@router.patch("/questions/{question_id}", response_model=QuestionResponse, summary="Update a question")
async def update_question(
    question_id: UUID,
    body: UpdateQuestionRequest,
    current_user: CurrentUser = Depends(require_author),
    db: AsyncSession = Depends(get_db),
) -> QuestionResponse:
    return await controller.update_question(db, question_id, body)


@router.delete(
    "/questions/{question_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a question",
)
async def delete_question(
    question_id: UUID,
    current_user: CurrentUser = Depends(require_author),
    db: AsyncSession = Depends(get_db),
) -> None:
    await controller.delete_question(db, question_id)


@router.get("/{quiz_id}", response_model=QuizResponse, summary="Get a quiz with its questions")
async def get_quiz(
    quiz_id: UUID,
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> QuizResponse:
    return await controller.get_quiz(db, quiz_id)


@router.patch(
    "/{quiz_id}",
    response_model=QuizResponse,
    summary="Update quiz title, description or status",
    description="Renaming a quiz also renames the lesson it is attached to.",
)
async def update_quiz(
    quiz_id: UUID,
    body: UpdateQuizRequest,
    current_user: CurrentUser = Depends(require_author),
    db: AsyncSession = Depends(get_db),
) -> QuizResponse:
    return await controller.update_quiz(db, quiz_id, body)


@router.patch("/{quiz_id}/approve", response_model=QuizResponse, summary="Approve a quiz")
async def approve_quiz(
    quiz_id: UUID,
    current_user: CurrentUser = Depends(require_author),
    db: AsyncSession = Depends(get_db),
) -> QuizResponse:
    return await controller.approve_quiz(db, quiz_id)


@router.post(
    "/{quiz_id}/questions",
    response_model=QuestionResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Append a question",
)
async def add_question(
    quiz_id: UUID,
    body: CreateQuestionRequest,
    current_user: CurrentUser = Depends(require_author),
    db: AsyncSession = Depends(get_db),
) -> QuestionResponse:
    return await controller.add_question(db, quiz_id, body)


@router.patch(
    "/{quiz_id}/reorder-questions",
    response_model=MessageResponse,
    summary="Reorder questions",
    description="`question_ids` in the desired order; every id must belong to the quiz.",
)
async def reorder_questions(
    quiz_id: UUID,
    body: ReorderQuestionsRequest,
    current_user: CurrentUser = Depends(require_author),
    db: AsyncSession = Depends(get_db),
) -> MessageResponse:
    return await controller.reorder_questions(db, quiz_id, body)


# ======================================================================
# Taking quizzes
# ======================================================================


@router.post(
    "/{quiz_id}/save-progress",
    response_model=SubmissionResponse,
    summary="Save answers without submitting",
)
async def save_progress(
    quiz_id: UUID,
    body: SubmitAnswersRequest,
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> SubmissionResponse:
    return await controller.save_progress(db, current_user.id, quiz_id, body)


@router.post(
    "/{quiz_id}/submit",
    response_model=SubmissionResponse,
    summary="Submit answers for scoring",
)
async def submit_quiz(
    quiz_id: UUID,
    body: SubmitAnswersRequest,
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> SubmissionResponse:
    return await controller.submit_quiz(db, current_user.id, quiz_id, body)


@router.get(
    "/{quiz_id}/submission",
    response_model=SubmissionResponse | None,
    summary="My latest submission",
    description="Latest completed attempt, else the open one, else `null`.",
)
async def get_submission(
    quiz_id: UUID,
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> SubmissionResponse | None:
    return await controller.get_submission(db, current_user.id, quiz_id)
