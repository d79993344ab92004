"""
Quiz business logic: quiz and question CRUD, AI generation, learner progress
and submissions.  No FastAPI imports; callers own the transaction.
"""
from __future__ import annotations

import logging
from typing import Any
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from learnix.exceptions import (
    CourseNotFoundError,
    LessonNotFoundError,
    QuestionNotFoundError,
    QuestionsNotInQuizError,
    QuizNotFoundError,
)
from learnix.models import Course, Lesson, Question, Quiz, QuizStatus, QuizSubmission
from learnix.models.types import utcnow
from learnix.notifications import service as notifications
from learnix.quizzes import ai_generator
from learnix.quizzes.schemas import (
    CreateQuestionRequest,
    CreateQuizRequest,
    GenerateQuizRequest,
)
from learnix.quizzes.scoring import score_submission

logger = logging.getLogger(__name__)


# ── Lookups ───────────────────────────────────────────────────────────────────

async def get_quiz(db: AsyncSession, quiz_id: UUID) -> Quiz:
    """Quiz with its questions ordered by position."""
    result = await db.execute(
        select(Quiz).where(Quiz.id == quiz_id).execution_options(populate_existing=True)
    )
    quiz = result.scalar_one_or_none()
    if quiz is None:
        raise QuizNotFoundError()
    return quiz


async def get_quiz_by_lesson(db: AsyncSession, lesson_id: UUID) -> Quiz | None:
    result = await db.execute(
        select(Quiz)
        .where(Quiz.lesson_id == lesson_id)
        .order_by(Quiz.created_at.desc())
        .limit(1)
    )
    return result.scalar_one_or_none()


async def list_quizzes_by_creator(db: AsyncSession, user_id: UUID) -> list[Quiz]:
    result = await db.execute(
        select(Quiz).where(Quiz.created_by == user_id).order_by(Quiz.created_at.desc())
    )
    return list(result.scalars().all())


async def _check_links(db: AsyncSession, course_id: UUID | None, lesson_id: UUID | None) -> None:
    if course_id is not None and await db.get(Course, course_id) is None:
        raise CourseNotFoundError()
    if lesson_id is not None and await db.get(Lesson, lesson_id) is None:
        raise LessonNotFoundError()


# ── Quiz CRUD ─────────────────────────────────────────────────────────────────

async def create_quiz(db: AsyncSession, user_id: UUID, data: CreateQuizRequest) -> Quiz:
    await _check_links(db, data.course_id, data.lesson_id)
    quiz = Quiz(
        title=data.title,
        description=data.description,
        course_id=data.course_id,
        lesson_id=data.lesson_id,
        status=QuizStatus.DRAFT,
        created_by=user_id,
        ai_generated=False,
    )
    db.add(quiz)
    await db.flush()

    for index, q in enumerate(data.questions):
        db.add(Question(
            quiz_id=quiz.id,
            question_text=q.question_text,
            options=list(q.options),
            correct_answer=q.correct_answer,
            explanation=q.explanation,
            type=q.type,
            image_url=q.image_url,
            position=index,
            points=1,
        ))
    await db.flush()
    return await get_quiz(db, quiz.id)


async def update_quiz(db: AsyncSession, quiz_id: UUID, changes: dict[str, Any]) -> Quiz:
    """Apply title/description/status changes; a new title also renames the linked lesson."""
    quiz = await get_quiz(db, quiz_id)
    for field, value in changes.items():
        setattr(quiz, field, value)

    if changes.get("title") and quiz.lesson_id:
        await db.execute(
            update(Lesson).where(Lesson.id == quiz.lesson_id).values(title=changes["title"])
        )
    await db.flush()
    return await get_quiz(db, quiz_id)


async def approve_quiz(db: AsyncSession, quiz_id: UUID) -> Quiz:
    return await update_quiz(db, quiz_id, {"status": QuizStatus.APPROVED})


async def generate_quiz(
    db: AsyncSession,
    user_id: UUID,
    data: GenerateQuizRequest,
    generate=None,
) -> Quiz:
    """Generate questions with the AI model and store them as an ``ai_generated`` quiz."""
    await _check_links(db, data.course_id, data.lesson_id)
    generate = generate or ai_generator.generate_quiz_from_text
    generated = await generate(data.lesson_text, data.number_of_questions)

    quiz = Quiz(
        title=data.title or generated.title,
        description="AI-generated quiz",
        course_id=data.course_id,
        lesson_id=data.lesson_id,
        status=QuizStatus.AI_GENERATED,
        created_by=user_id,
        ai_generated=True,
    )
    db.add(quiz)
    await db.flush()

    for index, q in enumerate(generated.questions):
        db.add(Question(
            quiz_id=quiz.id,
            question_text=q.question_text,
            options=list(q.options),
            correct_answer=q.correct_answer,
            explanation=q.explanation,
            type=q.type,
            position=index,
            points=1,
        ))
    await db.flush()
    logger.info("AI quiz %s generated with %d questions", quiz.id, len(generated.questions))
    return await get_quiz(db, quiz.id)


# ── Questions ─────────────────────────────────────────────────────────────────

async def add_question(db: AsyncSession, quiz_id: UUID, data: CreateQuestionRequest) -> Question:
    await get_quiz(db, quiz_id)

    last = (
        await db.execute(
            select(Question.position)
            .where(Question.quiz_id == quiz_id)
            .order_by(Question.position.desc())
            .limit(1)
        )
    ).scalar_one_or_none()

    question = Question(
        quiz_id=quiz_id,
        question_text=data.question_text,
        options=list(data.options),
        correct_answer=data.correct_answer,
        explanation=data.explanation,
        type=data.type,
        image_url=data.image_url,
        points=data.points if data.points is not None else 1,
        position=(last or 0) + 1,
    )
    db.add(question)
    await db.flush()
    await db.refresh(question)
    return question


async def _require_question(db: AsyncSession, question_id: UUID) -> Question:
    question = await db.get(Question, question_id)
    if question is None:
        raise QuestionNotFoundError()
    return question


async def update_question(db: AsyncSession, question_id: UUID, changes: dict[str, Any]) -> Question:
    question = await _require_question(db, question_id)
    for field, value in changes.items():
        if field == "options" and value is not None:
            value = list(value)
        setattr(question, field, value)
    await db.flush()
    await db.refresh(question)
    return question


async def delete_question(db: AsyncSession, question_id: UUID) -> None:
    question = await _require_question(db, question_id)
    await db.delete(question)
    await db.flush()


async def reorder_questions(db: AsyncSession, quiz_id: UUID, question_ids: list[UUID]) -> None:
    quiz = await get_quiz(db, quiz_id)
    by_id = {q.id: q for q in quiz.questions}
    if any(qid not in by_id for qid in question_ids):
        raise QuestionsNotInQuizError()
    for index, qid in enumerate(question_ids):
        by_id[qid].position = index
    await db.flush()


# ── Submissions ───────────────────────────────────────────────────────────────

async def _pending_submission(db: AsyncSession, user_id: UUID, quiz_id: UUID) -> QuizSubmission | None:
    result = await db.execute(
        select(QuizSubmission)
        .where(
            QuizSubmission.user_id == user_id,
            QuizSubmission.quiz_id == quiz_id,
            QuizSubmission.completed_at.is_(None),
        )
        .order_by(QuizSubmission.created_at.desc())
        .limit(1)
    )
    return result.scalar_one_or_none()


async def save_progress(
    db: AsyncSession, user_id: UUID, quiz_id: UUID, answers: dict[str, str]
) -> QuizSubmission:
    """Merge *answers* into the caller's open attempt, starting one if needed."""
    await get_quiz(db, quiz_id)
    submission = await _pending_submission(db, user_id, quiz_id)
    if submission is None:
        submission = QuizSubmission(user_id=user_id, quiz_id=quiz_id, responses=dict(answers))
        db.add(submission)
    else:
        submission.responses = {**(submission.responses or {}), **answers}
    await db.flush()
    await db.refresh(submission)
    return submission


async def submit_quiz(
    db: AsyncSession, user_id: UUID, quiz_id: UUID, answers: dict[str, str]
) -> QuizSubmission:
    quiz = await get_quiz(db, quiz_id)
    score, total, percentage = score_submission(quiz.questions, answers)

    submission = await _pending_submission(db, user_id, quiz_id)
    if submission is None:
        submission = QuizSubmission(user_id=user_id, quiz_id=quiz_id)
        db.add(submission)
    submission.score = score
    submission.total_points = total
    submission.percentage = percentage
    submission.responses = dict(answers)
    submission.completed_at = utcnow()
    await db.flush()
    await db.refresh(submission)

    await notifications.notify_quiz_submitted(
        db, user_id, quiz.title, score, percentage, quiz.course_id, quiz.lesson_id
    )
    return submission


async def get_latest_submission(
    db: AsyncSession, user_id: UUID, quiz_id: UUID
) -> QuizSubmission | None:
    """Latest completed attempt, else the newest open one."""
    result = await db.execute(
        select(QuizSubmission)
        .where(QuizSubmission.user_id == user_id, QuizSubmission.quiz_id == quiz_id)
        .order_by(
            QuizSubmission.completed_at.is_(None),
            QuizSubmission.completed_at.desc(),
            QuizSubmission.created_at.desc(),
        )
        .limit(1)
    )
    return result.scalar_one_or_none()
