"""
Courses controller (request orchestration layer).

Calls the service, attaches enrollment counts to course payloads and maps
domain exceptions to HTTPException.
"""
from __future__ import annotations

from uuid import UUID

from fastapi import HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from learnix.courses import service
from learnix.courses.schemas import (
    CourseAccessResponse,
    CourseDetailResponse,
    CourseListResponse,
    CourseResponse,
    CreateCourseRequest,
    CreateLessonRequest,
    CreateResourceRequest,
    CreateSectionRequest,
    EnrolledCourseResponse,
    EnrollmentResponse,
    GenerateQuizPreviewRequest,
    LessonAccessResponse,
    LessonResponse,
    QuizPreviewResponse,
    RecommendationResponse,
    RejectCourseRequest,
    ResourceResponse,
    SectionResponse,
    SuccessMessageResponse,
    UpdateCourseRequest,
    UpdateLessonRequest,
)
from learnix.dependencies import CurrentUser
from learnix.exceptions import (
    AIGenerationError,
    AIServiceUnavailableError,
    AlreadyEnrolledError,
    ArchiveStateError,
    CourseNotFoundError,
    EmptyLessonContentError,
    InvalidCourseStateError,
    InvalidReorderError,
    LessonNotFoundError,
    NotEnrolledError,
    PermissionDeniedError,
    ResourceNotFoundError,
    SectionNotFoundError,
)
from learnix.models import Course, LessonType
from learnix.pagination import PageMeta


def _handle_domain_error(exc: Exception) -> HTTPException:
    if isinstance(exc, (
        CourseNotFoundError,
        SectionNotFoundError,
        LessonNotFoundError,
        ResourceNotFoundError,
        NotEnrolledError,
    )):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=exc.message)
    if isinstance(exc, PermissionDeniedError):
        return HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=exc.message)
    if isinstance(exc, (AlreadyEnrolledError, ArchiveStateError, EmptyLessonContentError)):
        return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=exc.message)
    if isinstance(exc, (InvalidCourseStateError, InvalidReorderError)):
        return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=exc.message)
    if isinstance(exc, AIServiceUnavailableError):
        return HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=exc.message)
    if isinstance(exc, AIGenerationError):
        return HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=exc.message)
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Internal error.")


async def _course_list(db: AsyncSession, courses: list[Course]) -> list[CourseResponse]:
    counts = await service.student_counts(db, [c.id for c in courses])
    return [
        CourseResponse.model_validate(c).model_copy(update={"student_count": counts.get(c.id, 0)})
        for c in courses
    ]


async def _detail(db: AsyncSession, course: Course) -> CourseDetailResponse:
    counts = await service.student_counts(db, [course.id])
    return CourseDetailResponse.model_validate(course).model_copy(
        update={"student_count": counts.get(course.id, 0)}
    )


# ── Catalog ───────────────────────────────────────────────────────────────────

async def list_courses(
    db: AsyncSession,
    *,
    page: int,
    limit: int,
    search: str | None,
    level,
    tags: str | None,
    sort: str,
    order: str,
) -> CourseListResponse:
    tag_list = [t.strip() for t in tags.split(",") if t.strip()] if tags else None
    courses, total = await service.list_public_courses(
        db, page=page, limit=limit, search=search, level=level,
        tags=tag_list, sort=sort, order=order,
    )
    return CourseListResponse(
        data=await _course_list(db, courses),
        meta=PageMeta.build(total, page, limit),
    )


async def list_tags(db: AsyncSession) -> list[str]:
    return await service.list_public_tags(db)


async def get_course(db: AsyncSession, course_id: UUID, user: CurrentUser | None) -> CourseDetailResponse:
    try:
        course = await service.get_course(db, course_id, user)
        return await _detail(db, course)
    except Exception as exc:
        raise _handle_domain_error(exc) from exc


async def recommendations(db: AsyncSession, user_id: UUID, limit: int) -> list[RecommendationResponse]:
    items = await service.recommend_courses(db, user_id, limit)
    courses = await _course_list(db, [item["course"] for item in items])
    return [
        RecommendationResponse(course=course, matching_tags=item["matching_tags"], score=item["score"])
        for course, item in zip(courses, items)
    ]


# ── Enrollment ────────────────────────────────────────────────────────────────

async def enroll(db: AsyncSession, user: CurrentUser, course_id: UUID) -> EnrollmentResponse:
    try:
        enrollment = await service.enroll(db, user, course_id)
        return EnrollmentResponse.model_validate(enrollment)
    except Exception as exc:
        raise _handle_domain_error(exc) from exc


async def check_access(db: AsyncSession, user: CurrentUser, course_id: UUID) -> CourseAccessResponse:
    try:
        access = await service.check_course_access(db, user, course_id)
    except Exception as exc:
        raise _handle_domain_error(exc) from exc

    enrollment = None
    if access["enrollment"] is not None:
        enrollment = EnrollmentResponse.model_validate(access["enrollment"]).model_copy(
            update={"completed_lesson_ids": access["completed_lesson_ids"]}
        )
    return CourseAccessResponse(
        is_enrolled=access["is_enrolled"],
        is_instructor=access["is_instructor"],
        is_admin=access["is_admin"],
        has_access=access["has_access"],
        enrollment=enrollment,
    )


async def get_lesson(
    db: AsyncSession, user: CurrentUser, course_id: UUID, lesson_id: UUID
) -> LessonAccessResponse:
    try:
        lesson = await service.get_lesson_for_user(db, user, course_id, lesson_id)
        return LessonAccessResponse(lesson=LessonResponse.model_validate(lesson), has_access=True)
    except Exception as exc:
        raise _handle_domain_error(exc) from exc


async def complete_lesson(
    db: AsyncSession, user: CurrentUser, course_id: UUID, lesson_id: UUID
) -> EnrollmentResponse | None:
    try:
        enrollment = await service.complete_lesson(db, user, course_id, lesson_id)
    except Exception as exc:
        raise _handle_domain_error(exc) from exc
    return EnrollmentResponse.model_validate(enrollment) if enrollment else None


async def enrolled_courses(
    db: AsyncSession, user_id: UUID, archived: bool, status_filter: str
) -> list[EnrolledCourseResponse]:
    items = await service.list_enrolled_courses(db, user_id, archived, status_filter)
    return [EnrolledCourseResponse.model_validate(item) for item in items]


async def archive(db: AsyncSession, user_id: UUID, course_id: UUID) -> SuccessMessageResponse:
    try:
        await service.archive_course(db, user_id, course_id)
    except Exception as exc:
        raise _handle_domain_error(exc) from exc
    return SuccessMessageResponse(message="Course archived successfully")


async def unarchive(db: AsyncSession, user_id: UUID, course_id: UUID) -> SuccessMessageResponse:
    try:
        await service.unarchive_course(db, user_id, course_id)
    except Exception as exc:
        raise _handle_domain_error(exc) from exc
    return SuccessMessageResponse(message="Course unarchived successfully")


# ── Instructor: courses ───────────────────────────────────────────────────────

async def my_courses(db: AsyncSession, instructor_id: UUID) -> list[CourseDetailResponse]:
    courses = await service.list_instructor_courses(db, instructor_id)
    counts = await service.student_counts(db, [c.id for c in courses])
    return [
        CourseDetailResponse.model_validate(c).model_copy(update={"student_count": counts.get(c.id, 0)})
        for c in courses
    ]


async def create_course(db: AsyncSession, instructor_id: UUID, body: CreateCourseRequest) -> CourseDetailResponse:
    course = await service.create_course(db, instructor_id, body)
    return await _detail(db, course)


async def update_course(
    db: AsyncSession, user: CurrentUser, course_id: UUID, body: UpdateCourseRequest
) -> CourseDetailResponse:
    changes = {
        k: v for k, v in body.model_dump(exclude_unset=True).items()
        if v is not None or k == "thumbnail_url"
    }
    try:
        course = await service.update_course(db, user, course_id, changes)
        return await _detail(db, course)
    except Exception as exc:
        raise _handle_domain_error(exc) from exc


async def unpublish_course(db: AsyncSession, user: CurrentUser, course_id: UUID) -> CourseDetailResponse:
    try:
        course = await service.unpublish_course(db, user, course_id)
        return await _detail(db, course)
    except Exception as exc:
        raise _handle_domain_error(exc) from exc


async def delete_course(db: AsyncSession, user: CurrentUser, course_id: UUID) -> None:
    try:
        await service.delete_course(db, user, course_id)
    except Exception as exc:
        raise _handle_domain_error(exc) from exc


# ── Instructor: structure ─────────────────────────────────────────────────────

async def create_section(
    db: AsyncSession, user: CurrentUser, course_id: UUID, body: CreateSectionRequest
) -> SectionResponse:
    try:
        section = await service.create_section(db, user, course_id, body)
        return SectionResponse.model_validate(section)
    except Exception as exc:
        raise _handle_domain_error(exc) from exc


async def delete_section(db: AsyncSession, user_id: UUID, section_id: UUID) -> None:
    try:
        await service.delete_section(db, user_id, section_id)
    except Exception as exc:
        raise _handle_domain_error(exc) from exc


async def create_lesson(
    db: AsyncSession, user_id: UUID, section_id: UUID, body: CreateLessonRequest
) -> LessonResponse:
    try:
        lesson = await service.create_lesson(db, user_id, section_id, body)
        return LessonResponse.model_validate(lesson)
    except Exception as exc:
        raise _handle_domain_error(exc) from exc


async def update_lesson(
    db: AsyncSession, user_id: UUID, lesson_id: UUID, body: UpdateLessonRequest
) -> LessonResponse:
    changes = {
        k: v for k, v in body.model_dump(mode="json", exclude_unset=True).items()
        if v is not None or k == "ide_config"
    }
    if "type" in changes:
        changes["type"] = LessonType(changes["type"])
    try:
        lesson = await service.update_lesson(db, user_id, lesson_id, changes)
        return LessonResponse.model_validate(lesson)
    except Exception as exc:
        raise _handle_domain_error(exc) from exc


async def delete_lesson(db: AsyncSession, user_id: UUID, lesson_id: UUID) -> None:
    try:
        await service.delete_lesson(db, user_id, lesson_id)
    except Exception as exc:
        raise _handle_domain_error(exc) from exc


async def add_resource(
    db: AsyncSession, user_id: UUID, lesson_id: UUID, body: CreateResourceRequest
) -> ResourceResponse:
    try:
        resource = await service.add_resource(db, user_id, lesson_id, body)
        return ResourceResponse.model_validate(resource)
    except Exception as exc:
        raise _handle_domain_error(exc) from exc


async def delete_resource(db: AsyncSession, user_id: UUID, resource_id: UUID) -> None:
    try:
        await service.delete_resource(db, user_id, resource_id)
    except Exception as exc:
        raise _handle_domain_error(exc) from exc


async def reorder_sections(
    db: AsyncSession, user_id: UUID, course_id: UUID, section_ids: list[UUID]
) -> None:
    try:
        await service.reorder_sections(db, user_id, course_id, section_ids)
    except Exception as exc:
        raise _handle_domain_error(exc) from exc


async def reorder_lessons(
    db: AsyncSession, user_id: UUID, section_id: UUID, lesson_ids: list[UUID]
) -> None:
    try:
        await service.reorder_lessons(db, user_id, section_id, lesson_ids)
    except Exception as exc:
        raise _handle_domain_error(exc) from exc


# ── Moderation ────────────────────────────────────────────────────────────────

async def submit(db: AsyncSession, user: CurrentUser, course_id: UUID) -> CourseDetailResponse:
    try:
        course = await service.submit_for_approval(db, user, course_id)
        return await _detail(db, course)
    except Exception as exc:
        raise _handle_domain_error(exc) from exc


async def approve(db: AsyncSession, course_id: UUID) -> CourseDetailResponse:
    try:
        course = await service.approve_course(db, course_id)
        return await _detail(db, course)
    except Exception as exc:
        raise _handle_domain_error(exc) from exc


async def reject(db: AsyncSession, course_id: UUID, body: RejectCourseRequest) -> CourseDetailResponse:
    try:
        course = await service.reject_course(db, course_id, body.reason)
        return await _detail(db, course)
    except Exception as exc:
        raise _handle_domain_error(exc) from exc


async def pending(db: AsyncSession) -> list[CourseResponse]:
    return await _course_list(db, await service.list_pending_courses(db))


async def quiz_preview(db: AsyncSession, body: GenerateQuizPreviewRequest) -> QuizPreviewResponse:
    try:
        generated = await service.generate_quiz_preview(db, body)
        return QuizPreviewResponse.model_validate(generated)
    except Exception as exc:
        raise _handle_domain_error(exc) from exc
