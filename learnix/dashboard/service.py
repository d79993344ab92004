"""
Per-role dashboard figures.

"Recent" means the last seven days.  Students only see courses that are still
public; lessons removed from a course no longer count towards progress.
"""
from __future__ import annotations

from datetime import datetime, timedelta, timezone
from uuid import UUID

from sqlalchemy import distinct, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from learnix.courses import service as courses_service
from learnix.dependencies import CurrentUser
from learnix.models import Course, Enrollment, QuizSubmission, User, UserRole
from learnix.users import service as users_service

RECENT_DAYS = 7
ACTIVITY_LIMIT = 5


def _last_week() -> datetime:
    return datetime.now(timezone.utc) - timedelta(days=RECENT_DAYS)


async def admin_stats(db: AsyncSession) -> dict:
    since = _last_week()
    active = await db.execute(
        select(func.count()).select_from(Enrollment).where(Enrollment.last_accessed_at >= since)
    )
    return {
        "total_users": await users_service.count_users(db),
        "total_courses": await courses_service.count_published(db),
        "total_enrollments": await courses_service.count_published_enrollments(db),
        "active_students": active.scalar_one(),
        "new_users_count": await users_service.count_users_since(db, since),
        "new_courses_count": await courses_service.count_published_since(db, since),
    }


async def _distinct_students(db: AsyncSession, instructor_id: UUID, *conditions) -> int:
    stmt = (
        select(func.count(distinct(Enrollment.user_id)))
        .join(Course, Course.id == Enrollment.course_id)
        .where(Course.instructor_id == instructor_id, Course.is_published.is_(True), *conditions)
    )
    return (await db.execute(stmt)).scalar_one()


async def instructor_stats(db: AsyncSession, instructor_id: UUID) -> dict:
    since = _last_week()
    created = await db.execute(
        select(func.count()).select_from(Course).where(Course.instructor_id == instructor_id)
    )
    return {
        "courses_created": created.scalar_one(),
        "total_students": await _distinct_students(db, instructor_id),
        "active_students": await _distinct_students(
            db, instructor_id, Enrollment.last_accessed_at >= since
        ),
        "new_students_count": await _distinct_students(
            db, instructor_id, Enrollment.enrolled_at >= since
        ),
    }


async def _public_enrollments(db: AsyncSession, user_id: UUID) -> list[Enrollment]:
    result = await db.execute(
        select(Enrollment)
        .join(Course, Course.id == Enrollment.course_id)
        .where(Enrollment.user_id == user_id, *courses_service.public_filter())
        .order_by(Enrollment.last_accessed_at.desc())
    )
    return list(result.scalars().all())


async def student_stats(db: AsyncSession, user_id: UUID) -> dict:
    enrollments = await _public_enrollments(db, user_id)
    seconds = 0
    for enrollment in enrollments:
        done = set(enrollment.completed_lesson_ids or [])
        seconds += sum(
            lesson.duration_seconds for lesson in enrollment.course.lessons if str(lesson.id) in done
        )

    avg = await db.execute(
        select(func.avg(QuizSubmission.percentage)).where(QuizSubmission.user_id == user_id)
    )
    average = avg.scalar_one()
    return {
        "courses_enrolled": len(enrollments),
        "hours_learned": round(seconds / 3600),
        "average_score": round(float(average)) if average is not None else 0,
    }


async def get_stats(db: AsyncSession, user: CurrentUser) -> dict:
    if user.role == UserRole.ADMIN:
        return await admin_stats(db)
    if user.role == UserRole.INSTRUCTOR:
        return await instructor_stats(db, user.id)
    return await student_stats(db, user.id)


async def get_progress(db: AsyncSession, user_id: UUID) -> list[dict]:
    items = []
    for enrollment in await _public_enrollments(db, user_id):
        course = enrollment.course
        progress, total, done = courses_service.course_progress(course, enrollment.completed_lesson_ids)
        items.append({
            "id": course.id,
            "title": course.title,
            "progress": progress,
            "total_lessons": total,
            "completed_lessons": done,
        })
    return items


async def get_activity(db: AsyncSession, user: CurrentUser) -> list[dict]:
    """Latest enrollments, created courses or registrations depending on role, newest first."""
    activities: list[dict] = []

    if user.role in (UserRole.STUDENT, None):
        result = await db.execute(
            select(Enrollment)
            .where(Enrollment.user_id == user.id)
            .order_by(Enrollment.enrolled_at.desc())
            .limit(ACTIVITY_LIMIT)
        )
        for enrollment in result.scalars().all():
            activities.append({
                "id": enrollment.id,
                "type": "enrollment",
                "title": f'Enrolled in "{enrollment.course.title}"',
                "course": enrollment.course.title,
                "timestamp": enrollment.enrolled_at,
            })

    if user.role == UserRole.INSTRUCTOR:
        result = await db.execute(
            select(Course)
            .where(Course.instructor_id == user.id)
            .order_by(Course.created_at.desc())
            .limit(ACTIVITY_LIMIT)
        )
        for course in result.scalars().all():
            activities.append({
                "id": course.id,
                "type": "course_created",
                "title": f'Created course "{course.title}"',
                "timestamp": course.created_at,
            })

    if user.role == UserRole.ADMIN:
        result = await db.execute(
            select(User).order_by(User.created_at.desc()).limit(ACTIVITY_LIMIT)
        )
        for registered in result.scalars().all():
            activities.append({
                "id": registered.id,
                "type": "user_registered",
                "title": f"New user registered: {registered.email}",
                "timestamp": registered.created_at,
            })

    activities.sort(key=lambda item: item["timestamp"], reverse=True)
    return activities
