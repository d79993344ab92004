"""Courses router: public catalog, learner enrollment, instructor authoring and admin moderation.

Static paths are declared before ``/{course_id}`` so they are matched first.
"""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from learnix.courses import controller
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
    ReorderLessonsRequest,
    ReorderSectionsRequest,
    ResourceResponse,
    SectionResponse,
    SuccessMessageResponse,
    UpdateCourseRequest,
    UpdateLessonRequest,
)
from learnix.database import get_db
from learnix.dependencies import (
    CurrentUser,
    get_current_user,
    get_current_user_optional,
    require_admin,
    require_instructor,
    require_learner,
)
from learnix.models import CourseLevel

router = APIRouter(prefix="/courses", tags=["Courses"])


# ======================================================================
# Catalog (public)
# ======================================================================


@router.get(
    "",
    response_model=CourseListResponse,
    summary="Browse published courses",
    description="Paginated public catalog. `search` matches title, description and tags; "
    "`tags` is a comma-separated list and matches any of them.",
)
async def list_courses(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    search: str | None = Query(None, max_length=200),
    level: CourseLevel | None = Query(None),
    tags: str | None = Query(None),
    sort: str = Query("date", pattern="^(date|price)$"),
    order: str = Query("desc", pattern="^(asc|desc|ASC|DESC)$"),
    db: AsyncSession = Depends(get_db),
) -> CourseListResponse:
    return await controller.list_courses(
        db, page=page, limit=limit, search=search, level=level,
        tags=tags, sort=sort, order=order.lower(),
    )


@router.get("/tags", response_model=list[str], summary="Tags used by published courses")
async def list_tags(db: AsyncSession = Depends(get_db)) -> list[str]:
    return await controller.list_tags(db)


@router.get(
    "/recommendations",
    response_model=list[RecommendationResponse],
    summary="Courses recommended from my enrollments",
    description="Ranks published courses by the number of tags shared with the courses "
    "the caller is enrolled in.",
)
async def recommendations(
    limit: int = Query(6, ge=1, le=50),
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> list[RecommendationResponse]:
    return await controller.recommendations(db, current_user.id, limit)


@router.get(
    "/enrolled",
    response_model=list[EnrolledCourseResponse],
    summary="My learning",
    description="Enrolled courses with progress, most recently accessed first.",
)
async def enrolled_courses(
    archived: bool = Query(False),
    status_filter: str = Query("all", alias="status", pattern="^(all|in-progress|completed)$"),
    current_user: CurrentUser = Depends(require_learner),
    db: AsyncSession = Depends(get_db),
) -> list[EnrolledCourseResponse]:
    return await controller.enrolled_courses(db, current_user.id, archived, status_filter)


@router.get(
    "/instructor/my-courses",
    response_model=list[CourseDetailResponse],
    summary="My courses (instructor)",
)
async def my_courses(
    current_user: CurrentUser = Depends(require_instructor),
    db: AsyncSession = Depends(get_db),
) -> list[CourseDetailResponse]:
    return await controller.my_courses(db, current_user.id)


@router.get(
    "/admin/pending",
    response_model=list[CourseResponse],
    summary="Courses awaiting review (admin)",
)
async def pending_courses(
    current_user: CurrentUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> list[CourseResponse]:
    return await controller.pending(db)


# ======================================================================
# Authoring (instructor)
# ======================================================================


@router.post(
    "",
    response_model=CourseDetailResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a course",
    description="New courses start as drafts.",
)
async def create_course(
    body: CreateCourseRequest,
    current_user: CurrentUser = Depends(require_instructor),
    db: AsyncSession = Depends(get_db),
) -> CourseDetailResponse:
    return await controller.create_course(db, current_user.id, body)


@router.delete(
    "/sections/{section_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a section and its lessons",
)
async def delete_section(
    section_id: UUID,
    current_user: CurrentUser = Depends(require_instructor),
    db: AsyncSession = Depends(get_db),
) -> None:
    await controller.delete_section(db, current_user.id, section_id)


@router.post(
    "/sections/{section_id}/lessons",
    response_model=LessonResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Add a lesson to a section",
)
async def create_lesson(
    section_id: UUID,
    body: CreateLessonRequest,
    current_user: CurrentUser = Depends(require_instructor),
    db: AsyncSession = Depends(get_db),
) -> LessonResponse:
    return await controller.create_lesson(db, current_user.id, section_id, body)


@router.post(
    "/sections/{section_id}/lessons/reorder",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Reorder lessons within a section",
)
async def reorder_lessons(
    section_id: UUID,
    body: ReorderLessonsRequest,
    current_user: CurrentUser = Depends(require_instructor),
    db: AsyncSession = Depends(get_db),
) -> None:
    await controller.reorder_lessons(db, current_user.id, section_id, body.lesson_ids)


@router.patch("/lessons/{lesson_id}", response_model=LessonResponse, summary="Update a lesson")
async def update_lesson(
    lesson_id: UUID,
    body: UpdateLessonRequest,
    current_user: CurrentUser = Depends(require_instructor),
    db: AsyncSession = Depends(get_db),
) -> LessonResponse:
    return await controller.update_lesson(db, current_user.id, lesson_id, body)


@router.delete(
    "/lessons/resources/{resource_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Remove a lesson resource",
)
async def delete_resource(
    resource_id: UUID,
    current_user: CurrentUser = Depends(require_instructor),
    db: AsyncSession = Depends(get_db),
) -> None:
    await controller.delete_resource(db, current_user.id, resource_id)


@router.delete(
    "/lessons/{lesson_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a lesson",
)
async def delete_lesson(
    lesson_id: UUID,
    current_user: CurrentUser = Depends(require_instructor),
    db: AsyncSession = Depends(get_db),
) -> None:
    await controller.delete_lesson(db, current_user.id, lesson_id)


# ======================================================================
# Single course
# ======================================================================


@router.get(
    "/{course_id}",
    response_model=CourseDetailResponse,
    summary="Course detail",
    description="Sections, lessons and resources in order. Unpublished courses are only "
    "visible to their instructor and admins.",
)
async def get_course(
    course_id: UUID,
    current_user: CurrentUser | None = Depends(get_current_user_optional),
    db: AsyncSession = Depends(get_db),
) -> CourseDetailResponse:
    return await controller.get_course(db, course_id, current_user)


@router.patch("/{course_id}", response_model=CourseDetailResponse, summary="Update my course")
async def update_course(
    course_id: UUID,
    body: UpdateCourseRequest,
    current_user: CurrentUser = Depends(require_instructor),
    db: AsyncSession = Depends(get_db),
) -> CourseDetailResponse:
    return await controller.update_course(db, current_user, course_id, body)


@router.delete(
    "/{course_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete my course",
)
async def delete_course(
    course_id: UUID,
    current_user: CurrentUser = Depends(require_instructor),
    db: AsyncSession = Depends(get_db),
) -> None:
    await controller.delete_course(db, current_user, course_id)


@router.patch(
    "/{course_id}/unpublish",
    response_model=CourseDetailResponse,
    summary="Take my published course back to draft",
)
async def unpublish_course(
    course_id: UUID,
    current_user: CurrentUser = Depends(require_instructor),
    db: AsyncSession = Depends(get_db),
) -> CourseDetailResponse:
    return await controller.unpublish_course(db, current_user, course_id)


@router.post(
    "/{course_id}/enroll",
    response_model=EnrollmentResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Enroll in a course",
)
async def enroll(
    course_id: UUID,
    current_user: CurrentUser = Depends(require_learner),
    db: AsyncSession = Depends(get_db),
) -> EnrollmentResponse:
    return await controller.enroll(db, current_user, course_id)


@router.get(
    "/{course_id}/enrollment",
    response_model=CourseAccessResponse,
    summary="My access to a course",
)
async def check_enrollment(
    course_id: UUID,
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> CourseAccessResponse:
    return await controller.check_access(db, current_user, course_id)


@router.get(
    "/{course_id}/lessons/{lesson_id}",
    response_model=LessonAccessResponse,
    summary="Lesson content",
    description="Available to enrolled learners, on free previews, to the instructor and "
    "to admins reviewing the course.",
)
async def get_lesson(
    course_id: UUID,
    lesson_id: UUID,
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> LessonAccessResponse:
    return await controller.get_lesson(db, current_user, course_id, lesson_id)


@router.post(
    "/{course_id}/lessons/{lesson_id}/complete",
    response_model=EnrollmentResponse | None,
    summary="Mark a lesson complete",
)
async def complete_lesson(
    course_id: UUID,
    lesson_id: UUID,
    current_user: CurrentUser = Depends(require_learner),
    db: AsyncSession = Depends(get_db),
) -> EnrollmentResponse | None:
    return await controller.complete_lesson(db, current_user, course_id, lesson_id)


@router.patch("/{course_id}/archive", response_model=SuccessMessageResponse, summary="Archive an enrollment")
async def archive(
    course_id: UUID,
    current_user: CurrentUser = Depends(require_learner),
    db: AsyncSession = Depends(get_db),
) -> SuccessMessageResponse:
    return await controller.archive(db, current_user.id, course_id)


@router.patch("/{course_id}/unarchive", response_model=SuccessMessageResponse, summary="Restore an enrollment")
async def unarchive(
    course_id: UUID,
    current_user: CurrentUser = Depends(require_learner),
    db: AsyncSession = Depends(get_db),
) -> SuccessMessageResponse:
    return await controller.unarchive(db, current_user.id, course_id)


@router.post(
    "/{course_id}/sections",
    response_model=SectionResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Add a section",
)
async def create_section(
    course_id: UUID,
    body: CreateSectionRequest,
    current_user: CurrentUser = Depends(require_instructor),
    db: AsyncSession = Depends(get_db),
) -> SectionResponse:
    return await controller.create_section(db, current_user, course_id, body)


@router.post(
    "/{course_id}/sections/reorder",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Reorder sections",
)
async def reorder_sections(
    course_id: UUID,
    body: ReorderSectionsRequest,
    current_user: CurrentUser = Depends(require_instructor),
    db: AsyncSession = Depends(get_db),
) -> None:
    await controller.reorder_sections(db, current_user.id, course_id, body.section_ids)


@router.post(
    "/{course_id}/lessons/{lesson_id}/resources",
    response_model=ResourceResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Attach a file or link to a lesson",
)
async def add_resource(
    course_id: UUID,
    lesson_id: UUID,
    body: CreateResourceRequest,
    current_user: CurrentUser = Depends(require_instructor),
    db: AsyncSession = Depends(get_db),
) -> ResourceResponse:
    return await controller.add_resource(db, current_user.id, lesson_id, body)


@router.post(
    "/{course_id}/sections/{section_id}/generate-quiz-preview",
    response_model=QuizPreviewResponse,
    summary="Draft quiz questions from lessons with AI",
    description="Nothing is stored; the author reviews the preview and saves it through "
    "the quizzes API.",
)
async def generate_quiz_preview(
    course_id: UUID,
    section_id: UUID,
    body: GenerateQuizPreviewRequest,
    current_user: CurrentUser = Depends(require_instructor),
    db: AsyncSession = Depends(get_db),
) -> QuizPreviewResponse:
    return await controller.quiz_preview(db, body)


# ======================================================================
# Moderation
# ======================================================================


@router.patch(
    "/{course_id}/submit",
    response_model=CourseDetailResponse,
    summary="Submit my course for review",
)
async def submit_course(
    course_id: UUID,
    current_user: CurrentUser = Depends(require_instructor),
    db: AsyncSession = Depends(get_db),
) -> CourseDetailResponse:
    return await controller.submit(db, current_user, course_id)


@router.patch("/{course_id}/approve", response_model=CourseDetailResponse, summary="Approve a course (admin)")
async def approve_course(
    course_id: UUID,
    current_user: CurrentUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> CourseDetailResponse:
    return await controller.approve(db, course_id)


@router.patch("/{course_id}/reject", response_model=CourseDetailResponse, summary="Reject a course (admin)")
async def reject_course(
    course_id: UUID,
    body: RejectCourseRequest | None = None,
    current_user: CurrentUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> CourseDetailResponse:
    return await controller.reject(db, course_id, body or RejectCourseRequest())
