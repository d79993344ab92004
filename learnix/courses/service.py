"""
Course business logic.

Catalog and visibility, enrollment and lesson progress, recommendations,
course authoring (sections, lessons, resources), moderation and the admin
statistics.  Pure async functions over an ``AsyncSession``; no FastAPI imports.

A course is public when ``is_published`` is set and its status is
``published``.  Anything else is visible only to its instructor or an admin;
everyone else gets ``CourseNotFoundError``.
"""
from __future__ import annotations

import logging
from collections import Counter
from datetime import datetime
from decimal import Decimal
from typing import Any
from uuid import UUID

from sqlalchemy import String, cast, delete, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from learnix.courses.schemas import (
    CreateCourseRequest,
    CreateLessonRequest,
    CreateResourceRequest,
    CreateSectionRequest,
    GenerateQuizPreviewRequest,
)
from learnix.dependencies import CurrentUser
from learnix.exceptions import (
    AlreadyEnrolledError,
    ArchiveStateError,
    CourseNotFoundError,
    EmptyLessonContentError,
    InvalidCourseStateError,
    InvalidReorderError,
    LessonNotFoundError,
    NotCourseOwnerError,
    NotEnrolledError,
    PermissionDeniedError,
    ResourceNotFoundError,
    SectionNotFoundError,
)
from learnix.models import (
    Course,
    CourseLevel,
    CourseSection,
    CourseStatus,
    Enrollment,
    Lesson,
    LessonResource,
)
from learnix.models.types import utcnow
from learnix.notifications import service as notifications
from learnix.quizzes import ai_generator
from learnix.stats import GROWTH_WINDOW_DAYS, daily_series, window_start
from learnix.users import service as users_service

logger = logging.getLogger(__name__)

# Statuses an admin may audit without enrolling
_ADMIN_AUDIT_STATUSES = {CourseStatus.DRAFT, CourseStatus.PENDING, CourseStatus.PUBLISHED}


def public_filter():
    return (Course.is_published.is_(True), Course.status == CourseStatus.PUBLISHED)


def can_view(course: Course, user: CurrentUser | None) -> bool:
    if course.is_public:
        return True
    if user is None:
        return False
    return user.id == course.instructor_id or user.is_admin


def course_progress(course: Course, completed_ids: list[str] | None) -> tuple[int, int, int]:
    """``(progress %, total lessons, completed lessons)`` counting only lessons that still exist."""
    lesson_ids = {str(lesson.id) for lesson in course.lessons}
    done = len({i for i in (completed_ids or []) if i in lesson_ids})
    total = len(lesson_ids)
    progress = min(100, round(done / total * 100)) if total else 0
    return progress, total, done


async def student_counts(db: AsyncSession, course_ids: list[UUID]) -> dict[UUID, int]:
    if not course_ids:
        return {}
    rows = await db.execute(
        select(Enrollment.course_id, func.count())
        .where(Enrollment.course_id.in_(course_ids))
        .group_by(Enrollment.course_id)
    )
    return {course_id: count for course_id, count in rows.all()}


# ── Catalog ───────────────────────────────────────────────────────────────────

def _escape_like(text: str) -> str:
    """Make ``%``, ``_`` and ``\\`` match literally in a LIKE pattern escaped with ``\\``."""
    return text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


async def list_public_courses(
    db: AsyncSession,
    *,
    page: int = 1,
    limit: int = 10,
    search: str | None = None,
    level: CourseLevel | None = None,
    tags: list[str] | None = None,
    sort: str = "date",
    order: str = "desc",
) -> tuple[list[Course], int]:
    """Public catalog page and the total number of matches."""
    stmt = select(Course).where(*public_filter())
    tags_text = func.lower(cast(Course.tags, String))

    if search:
        pattern = f"%{_escape_like(search.lower())}%"
        stmt = stmt.where(or_(
            func.lower(Course.title).like(pattern, escape="\\"),
            func.lower(Course.description).like(pattern, escape="\\"),
            tags_text.like(pattern, escape="\\"),
        ))
    if level:
        stmt = stmt.where(Course.level == level)
    if tags:
        stmt = stmt.where(or_(*[
            tags_text.like(f'%"{_escape_like(tag.lower())}"%', escape="\\") for tag in tags
        ]))

    total = (await db.execute(select(func.count()).select_from(stmt.subquery()))).scalar_one()

    column = Course.price if sort == "price" else Course.created_at
    stmt = stmt.order_by(column.asc() if order == "asc" else column.desc())
    rows = await db.execute(stmt.offset((page - 1) * limit).limit(limit))
    return list(rows.scalars().all()), total


async def list_public_tags(db: AsyncSession) -> list[str]:
    rows = await db.execute(select(Course.tags).where(*public_filter()))
    seen: dict[str, None] = {}
    for tags in rows.scalars().all():
        for tag in tags or []:
            seen.setdefault(tag, None)
    return list(seen)


async def _load_course(db: AsyncSession, course_id: UUID) -> Course | None:
    result = await db.execute(
        select(Course).where(Course.id == course_id).execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def get_course(db: AsyncSession, course_id: UUID, user: CurrentUser | None = None) -> Course:
    """Course with sections, lessons and resources, subject to the visibility rule."""
    course = await _load_course(db, course_id)
    if course is None or not can_view(course, user):
        raise CourseNotFoundError()
    return course


# ── Enrollment ────────────────────────────────────────────────────────────────

async def get_enrollment(db: AsyncSession, user_id: UUID, course_id: UUID) -> Enrollment | None:
    result = await db.execute(
        select(Enrollment).where(Enrollment.user_id == user_id, Enrollment.course_id == course_id)
    )
    return result.scalar_one_or_none()


async def create_enrollment(db: AsyncSession, user_id: UUID, course_id: UUID) -> Enrollment:
    if await get_enrollment(db, user_id, course_id) is not None:
        raise AlreadyEnrolledError()
    enrollment = Enrollment(user_id=user_id, course_id=course_id, completed_lesson_ids=[])
    db.add(enrollment)
    await db.flush()
    await db.refresh(enrollment)
    return enrollment


async def enroll(db: AsyncSession, user: CurrentUser, course_id: UUID) -> Enrollment:
    course = await get_course(db, course_id, user)
    enrollment = await create_enrollment(db, user.id, course.id)
    # Paid courses are announced by the payment flow
    if Decimal(course.price or 0) == 0:
        await notifications.notify_enrollment(db, user.id, course.title, course.id)
    return enrollment


async def check_course_access(db: AsyncSession, user: CurrentUser, course_id: UUID) -> dict[str, Any]:
    course = await _load_course(db, course_id)
    if course is None:
        raise CourseNotFoundError()
    enrollment = await get_enrollment(db, user.id, course_id)

    is_instructor = course.instructor_id == user.id
    has_admin_access = user.is_admin and course.status in _ADMIN_AUDIT_STATUSES

    completed_ids: list[str] = []
    if enrollment is not None:
        lesson_ids = {str(lesson.id) for lesson in course.lessons}
        completed_ids = [i for i in enrollment.completed_lesson_ids or [] if i in lesson_ids]

    return {
        "is_enrolled": enrollment is not None,
        "is_instructor": is_instructor,
        "is_admin": user.is_admin,
        "has_access": enrollment is not None or is_instructor or has_admin_access,
        "enrollment": enrollment,
        # Completed ids limited to lessons that still exist
        "completed_lesson_ids": completed_ids,
    }


async def _lesson_in_course(db: AsyncSession, course_id: UUID, lesson_id: UUID) -> Lesson:
    lesson = await db.get(Lesson, lesson_id)
    if lesson is None:
        raise LessonNotFoundError()
    if lesson.section.course_id != course_id:
        raise LessonNotFoundError("Lesson not found in this course")
    return lesson


async def get_lesson_for_user(
    db: AsyncSession, user: CurrentUser, course_id: UUID, lesson_id: UUID
) -> Lesson:
    lesson = await _lesson_in_course(db, course_id, lesson_id)
    course = lesson.section.course
    enrolled = await get_enrollment(db, user.id, course_id) is not None

    has_access = (
        enrolled
        or lesson.is_free_preview
        or course.instructor_id == user.id
        or (user.is_admin and course.status in _ADMIN_AUDIT_STATUSES)
    )
    if not has_access:
        raise PermissionDeniedError("You must enroll in this course to access this lesson")
    return lesson


async def complete_lesson(
    db: AsyncSession, user: CurrentUser, course_id: UUID, lesson_id: UUID
) -> Enrollment | None:
    """Mark a lesson done.  Instructors and admins without an enrollment get ``None``."""
    lesson = await _lesson_in_course(db, course_id, lesson_id)
    course = lesson.section.course

    enrollment = await get_enrollment(db, user.id, course_id)
    if enrollment is None:
        if course.instructor_id == user.id or user.is_admin:
            return None
        raise NotEnrolledError()

    completed = list(enrollment.completed_lesson_ids or [])
    if str(lesson_id) in completed:
        return enrollment

    completed.append(str(lesson_id))
    enrollment.completed_lesson_ids = completed
    enrollment.last_accessed_at = utcnow()

    course = await _load_course(db, course_id)
    all_ids = {str(lesson.id) for lesson in course.lessons}
    if all_ids and all_ids.issubset(completed) and enrollment.completed_at is None:
        enrollment.completed_at = utcnow()
        await db.flush()
        await notifications.notify_course_completed(db, user.id, course.title, course.id)

    await db.flush()
    await db.refresh(enrollment)
    return enrollment


async def list_enrolled_courses(
    db: AsyncSession, user_id: UUID, archived: bool = False, status: str = "all"
) -> list[dict[str, Any]]:
    result = await db.execute(
        select(Enrollment)
        .where(Enrollment.user_id == user_id, Enrollment.is_archived.is_(archived))
        .order_by(Enrollment.last_accessed_at.desc())
    )
    items = []
    for enrollment in result.scalars().all():
        course = enrollment.course
        progress, total, done = course_progress(course, enrollment.completed_lesson_ids)
        items.append({
            "id": course.id,
            "title": course.title,
            "description": course.description,
            "thumbnail_url": course.thumbnail_url,
            "level": course.level,
            "instructor": course.instructor,
            "progress": progress,
            "total_lessons": total,
            "completed_lessons": done,
            "status": "completed" if progress == 100 else "in-progress",
            "is_archived": enrollment.is_archived,
            "last_accessed_at": enrollment.last_accessed_at,
            "enrolled_at": enrollment.enrolled_at,
        })
    if status != "all":
        items = [item for item in items if item["status"] == status]
    return items


async def _require_enrollment(db: AsyncSession, user_id: UUID, course_id: UUID) -> Enrollment:
    enrollment = await get_enrollment(db, user_id, course_id)
    if enrollment is None:
        raise NotEnrolledError()
    return enrollment


async def archive_course(db: AsyncSession, user_id: UUID, course_id: UUID) -> Enrollment:
    enrollment = await _require_enrollment(db, user_id, course_id)
    if enrollment.is_archived:
        raise ArchiveStateError("Course is already archived")
    enrollment.is_archived = True
    enrollment.archived_at = utcnow()
    await db.flush()
    return enrollment


async def unarchive_course(db: AsyncSession, user_id: UUID, course_id: UUID) -> Enrollment:
    enrollment = await _require_enrollment(db, user_id, course_id)
    if not enrollment.is_archived:
        raise ArchiveStateError("Course is not archived")
    enrollment.is_archived = False
    enrollment.archived_at = None
    await db.flush()
    return enrollment


# ── Recommendations ───────────────────────────────────────────────────────────

async def _newest_public(db: AsyncSession, exclude: set[UUID], limit: int) -> list[Course]:
    stmt = select(Course).where(*public_filter())
    if exclude:
        stmt = stmt.where(Course.id.not_in(exclude))
    rows = await db.execute(stmt.order_by(Course.created_at.desc()).limit(limit))
    return list(rows.scalars().all())


async def recommend_courses(db: AsyncSession, user_id: UUID, limit: int = 6) -> list[dict[str, Any]]:
    """Rank public courses the user is not enrolled in by tags shared with their enrollments.

    Returns ``[{course, matching_tags, score}]``.  Without enrollments, or
    when the enrolled courses carry no tags, the newest public courses are
    returned with a score of 0.
    """
    result = await db.execute(select(Enrollment).where(Enrollment.user_id == user_id))
    enrollments = list(result.scalars().all())
    enrolled_ids = {e.course_id for e in enrollments}

    user_tags = {tag.lower() for e in enrollments for tag in (e.course.tags or [])}
    if not user_tags:
        newest = await _newest_public(db, enrolled_ids, limit)
        return [{"course": c, "matching_tags": [], "score": 0} for c in newest]

    stmt = select(Course).where(*public_filter())
    if enrolled_ids:
        stmt = stmt.where(Course.id.not_in(enrolled_ids))
    candidates = (await db.execute(stmt)).scalars().all()

    scored = []
    for course in candidates:
        matching = [t.lower() for t in (course.tags or []) if t.lower() in user_tags]
        if matching:
            scored.append({"course": course, "matching_tags": matching, "score": len(matching)})
    # list.sort is stable, so ties keep query order
    scored.sort(key=lambda item: item["score"], reverse=True)
    return scored[:limit]


# ── Instructor: courses ───────────────────────────────────────────────────────

async def list_instructor_courses(db: AsyncSession, instructor_id: UUID) -> list[Course]:
    result = await db.execute(
        select(Course).where(Course.instructor_id == instructor_id).order_by(Course.created_at.desc())
    )
    return list(result.scalars().all())


async def create_course(db: AsyncSession, instructor_id: UUID, data: CreateCourseRequest) -> Course:
    course = Course(
        title=data.title,
        description=data.description,
        level=data.level,
        price=Decimal(str(data.price)) if data.price is not None else Decimal("0.00"),
        tags=list(data.tags or []),
        thumbnail_url=data.thumbnail_url,
        instructor_id=instructor_id,
        status=CourseStatus.DRAFT,
        is_published=False,
    )
    db.add(course)
    await db.flush()
    return await _load_course(db, course.id)


async def _owned_course(
    db: AsyncSession, course_id: UUID, user: CurrentUser, message: str | None = None
) -> Course:
    course = await get_course(db, course_id, user)
    if course.instructor_id != user.id:
        raise NotCourseOwnerError(message)
    return course


async def update_course(
    db: AsyncSession, user: CurrentUser, course_id: UUID, changes: dict[str, Any]
) -> Course:
    course = await _owned_course(db, course_id, user)
    for field, value in changes.items():
        if field == "price" and value is not None:
            value = Decimal(str(value))
        elif field == "tags":
            value = list(value or [])
        setattr(course, field, value)
    await db.flush()
    return await _load_course(db, course_id)


async def unpublish_course(db: AsyncSession, user: CurrentUser, course_id: UUID) -> Course:
    course = await _owned_course(db, course_id, user, "You can only unpublish your own courses")
    if course.status != CourseStatus.PUBLISHED:
        raise InvalidCourseStateError("Course is not published")
    course.status = CourseStatus.DRAFT
    course.is_published = False
    await db.flush()
    return await _load_course(db, course_id)


async def delete_course(db: AsyncSession, user: CurrentUser, course_id: UUID) -> None:
    course = await _owned_course(db, course_id, user, "You can only delete your own courses")
    await db.execute(delete(Enrollment).where(Enrollment.course_id == course.id))
    await db.delete(course)
    await db.flush()


# ── Instructor: sections, lessons, resources ──────────────────────────────────

async def create_section(
    db: AsyncSession, user: CurrentUser, course_id: UUID, data: CreateSectionRequest
) -> CourseSection:
    await _owned_course(db, course_id, user, "You can only add sections to your own courses")
    section = CourseSection(course_id=course_id, title=data.title, order_index=data.order_index)
    db.add(section)
    await db.flush()
    await db.refresh(section)
    return section


async def _owned_section(db: AsyncSession, section_id: UUID, user_id: UUID) -> CourseSection:
    section = await db.get(CourseSection, section_id)
    if section is None:
        raise SectionNotFoundError()
    if section.course.instructor_id != user_id:
        raise PermissionDeniedError()
    return section


async def _owned_lesson(db: AsyncSession, lesson_id: UUID, user_id: UUID) -> Lesson:
    lesson = await db.get(Lesson, lesson_id)
    if lesson is None:
        raise LessonNotFoundError()
    if lesson.section.course.instructor_id != user_id:
        raise PermissionDeniedError()
    return lesson


async def delete_section(db: AsyncSession, user_id: UUID, section_id: UUID) -> None:
    section = await _owned_section(db, section_id, user_id)
    await db.delete(section)
    await db.flush()


async def create_lesson(
    db: AsyncSession, user_id: UUID, section_id: UUID, data: CreateLessonRequest
) -> Lesson:
    await _owned_section(db, section_id, user_id)
    payload = data.model_dump(mode="json")
    payload["type"] = data.type
    lesson = Lesson(section_id=section_id, **payload)
    db.add(lesson)
    await db.flush()
    await db.refresh(lesson)
    return lesson


async def update_lesson(
    db: AsyncSession, user_id: UUID, lesson_id: UUID, changes: dict[str, Any]
) -> Lesson:
    lesson = await _owned_lesson(db, lesson_id, user_id)
    for field, value in changes.items():
        setattr(lesson, field, value)
    await db.flush()
    await db.refresh(lesson)
    return lesson


async def delete_lesson(db: AsyncSession, user_id: UUID, lesson_id: UUID) -> None:
    lesson = await _owned_lesson(db, lesson_id, user_id)
    await db.delete(lesson)
    await db.flush()


async def add_resource(
    db: AsyncSession, user_id: UUID, lesson_id: UUID, data: CreateResourceRequest
) -> LessonResource:
    await _owned_lesson(db, lesson_id, user_id)
    resource = LessonResource(
        lesson_id=lesson_id,
        title=data.title,
        type=data.type,
        url=data.url,
        file_size=data.file_size,
    )
    db.add(resource)
    await db.flush()
    await db.refresh(resource)
    return resource


async def delete_resource(db: AsyncSession, user_id: UUID, resource_id: UUID) -> None:
    resource = await db.get(LessonResource, resource_id)
    if resource is None:
        raise ResourceNotFoundError()
    if resource.lesson.section.course.instructor_id != user_id:
        raise PermissionDeniedError()
    await db.delete(resource)
    await db.flush()


async def reorder_sections(
    db: AsyncSession, user_id: UUID, course_id: UUID, section_ids: list[UUID]
) -> None:
    course = await _load_course(db, course_id)
    if course is None:
        raise CourseNotFoundError()
    if course.instructor_id != user_id:
        raise PermissionDeniedError()

    by_id = {section.id: section for section in course.sections}
    for sid in section_ids:
        if sid not in by_id:
            raise InvalidReorderError(f"Section {sid} does not belong to course {course_id}")
    for index, sid in enumerate(section_ids):
        by_id[sid].order_index = index
    await db.flush()


async def reorder_lessons(
    db: AsyncSession, user_id: UUID, section_id: UUID, lesson_ids: list[UUID]
) -> None:
    await _owned_section(db, section_id, user_id)

    rows = await db.execute(select(Lesson).where(Lesson.id.in_(lesson_ids)))
    lessons = {lesson.id: lesson for lesson in rows.scalars().all()}
    for lid in lesson_ids:
        lesson = lessons.get(lid)
        if lesson is None:
            raise InvalidReorderError(f"Lesson {lid} not found")
        if lesson.section_id != section_id:
            raise InvalidReorderError(f"Lesson {lid} does not belong to section {section_id}")
    for index, lid in enumerate(lesson_ids):
        lessons[lid].order_index = index
    await db.flush()


# ── Moderation ────────────────────────────────────────────────────────────────

async def submit_for_approval(db: AsyncSession, user: CurrentUser, course_id: UUID) -> Course:
    course = await _owned_course(db, course_id, user)
    if course.status not in (CourseStatus.DRAFT, CourseStatus.REJECTED):
        raise InvalidCourseStateError("Only draft or rejected courses can be submitted")
    course.status = CourseStatus.PENDING
    await db.flush()

    admins = await users_service.find_all_admins(db)
    instructor_name = course.instructor.full_name if course.instructor else "Unknown Instructor"
    await notifications.notify_course_submitted(
        db, [a.id for a in admins], course.title, instructor_name, course.id
    )
    logger.info("Course %s submitted for approval", course.id)
    return await _load_course(db, course_id)


async def _pending_course(db: AsyncSession, course_id: UUID) -> Course:
    course = await _load_course(db, course_id)
    if course is None:
        raise CourseNotFoundError()
    if course.status != CourseStatus.PENDING:
        raise InvalidCourseStateError("Course is not pending approval")
    return course


async def approve_course(db: AsyncSession, course_id: UUID) -> Course:
    course = await _pending_course(db, course_id)
    course.status = CourseStatus.PUBLISHED
    course.is_published = True
    await db.flush()
    await notifications.notify_course_approved(db, course.instructor_id, course.title, course.id)
    logger.info("Course %s approved", course.id)
    return await _load_course(db, course_id)


async def reject_course(db: AsyncSession, course_id: UUID, reason: str | None = None) -> Course:
    course = await _pending_course(db, course_id)
    course.status = CourseStatus.REJECTED
    await db.flush()
    await notifications.notify_course_rejected(
        db, course.instructor_id, course.title, course.id, reason
    )
    logger.info("Course %s rejected", course.id)
    return await _load_course(db, course_id)


async def list_pending_courses(db: AsyncSession) -> list[Course]:
    result = await db.execute(
        select(Course).where(Course.status == CourseStatus.PENDING).order_by(Course.created_at.desc())
    )
    return list(result.scalars().all())


# ── AI quiz preview ───────────────────────────────────────────────────────────

def lessons_to_text(lessons: list[Lesson]) -> str:
    """Flatten text and video blocks into the prompt body for the quiz generator."""
    text = ""
    for lesson in lessons:
        for block in lesson.content or []:
            if block.get("type") == "text":
                text += f"{block.get('content', '')}\n\n"
            elif block.get("type") == "video":
                meta = block.get("metadata") or {}
                title = meta.get("caption") or meta.get("filename") or "Video"
                text += f"\n[Video Content: {title}]\n(Video URL: {block.get('content', '')})\n\n"
    return text


async def generate_quiz_preview(
    db: AsyncSession, data: GenerateQuizPreviewRequest, generate=None
) -> ai_generator.GeneratedQuiz:
    rows = await db.execute(select(Lesson).where(Lesson.id.in_(data.lesson_ids)))
    lessons = list(rows.scalars().all())
    if not lessons:
        raise LessonNotFoundError("Selected lessons not found")

    text = lessons_to_text(lessons)
    if not text.strip():
        raise EmptyLessonContentError(
            "Selected lessons contain no text content to generate quiz from."
        )
    if data.topic:
        text = f"TOPIC/FOCUS: {data.topic}\n\nLESSON CONTENT:\n{text}"

    generate = generate or ai_generator.generate_quiz_from_text
    types = [t.value for t in data.preferred_types] if data.preferred_types else None
    return await generate(text, data.count, types)


# ── Statistics ────────────────────────────────────────────────────────────────

async def count_published(db: AsyncSession) -> int:
    stmt = select(func.count()).select_from(Course).where(*public_filter())
    return (await db.execute(stmt)).scalar_one()


async def count_published_enrollments(db: AsyncSession) -> int:
    stmt = (
        select(func.count())
        .select_from(Enrollment)
        .join(Course, Course.id == Enrollment.course_id)
        .where(*public_filter())
    )
    return (await db.execute(stmt)).scalar_one()


async def course_growth(db: AsyncSession, days: int = GROWTH_WINDOW_DAYS) -> list[dict]:
    result = await db.execute(
        select(Course.created_at).where(Course.created_at >= window_start(days))
    )
    return daily_series((created_at, 1) for created_at in result.scalars().all())


async def enrollment_growth(db: AsyncSession, days: int = GROWTH_WINDOW_DAYS) -> list[dict]:
    result = await db.execute(
        select(Enrollment.enrolled_at).where(Enrollment.enrolled_at >= window_start(days))
    )
    return daily_series((enrolled_at, 1) for enrolled_at in result.scalars().all())


async def revenue_growth(db: AsyncSession, days: int = GROWTH_WINDOW_DAYS) -> list[dict]:
    rows = await db.execute(
        select(Enrollment.enrolled_at, Course.price)
        .join(Course, Course.id == Enrollment.course_id)
        .where(Enrollment.enrolled_at >= window_start(days))
    )
    return daily_series(rows.all())


async def average_completion_rate(db: AsyncSession) -> int:
    total = (await db.execute(select(func.count()).select_from(Enrollment))).scalar_one()
    if total == 0:
        return 0
    completed = (
        await db.execute(
            select(func.count()).select_from(Enrollment).where(Enrollment.completed_at.is_not(None))
        )
    ).scalar_one()
    return round(completed / total * 100)


async def total_revenue(db: AsyncSession) -> float:
    stmt = select(func.sum(Course.price)).select_from(Enrollment).join(
        Course, Course.id == Enrollment.course_id
    )
    return float((await db.execute(stmt)).scalar_one() or 0)


async def category_distribution(db: AsyncSession) -> list[dict]:
    rows = await db.execute(select(Course.level))
    counts = Counter(level.value for level in rows.scalars().all())
    return [{"name": name.capitalize(), "value": value} for name, value in counts.items()]


async def count_published_since(db: AsyncSession, since: datetime) -> int:
    stmt = select(func.count()).select_from(Course).where(*public_filter(), Course.created_at >= since)
    return (await db.execute(stmt)).scalar_one()
