"""Course domain Pydantic V2 schemas.

Covers the public catalog, course authoring (sections, lessons, resources),
enrollment progress, moderation and AI quiz previews.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from learnix.models.enums import (
    CourseLevel,
    CourseStatus,
    LessonType,
    QuestionType,
    ResourceType,
)
from learnix.pagination import PageMeta


# ---------------------------------------------------------------------------
# Sub-objects
# ---------------------------------------------------------------------------


class BlockType(str, Enum):
    TEXT = "text"
    VIDEO = "video"
    IMAGE = "image"
    CODE = "code"
    FILE = "file"


class ContentBlock(BaseModel):
    """One block of lesson content. ``content`` is text, markdown, code or a URL."""

    id: str = Field(min_length=1)
    type: BlockType
    content: str = ""
    metadata: dict[str, Any] | None = None
    order_index: int = 0


class IdeLanguage(BaseModel):
    language: str
    initial_code: str = ""
    expected_output: str | None = None
    unit_test_code: str | None = None


class IdeConfig(BaseModel):
    allowed_languages: list[IdeLanguage] = Field(default_factory=list)
    default_language: str
    instructions: str | None = None


class InstructorSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    full_name: str
    avatar_url: str | None = None


# ---------------------------------------------------------------------------
# Course requests
# ---------------------------------------------------------------------------


class CreateCourseRequest(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    title: str = Field(min_length=1, max_length=300)
    description: str = Field(min_length=1)
    level: CourseLevel
    price: float | None = Field(default=None, ge=0)
    tags: list[str] | None = None
    thumbnail_url: str | None = Field(default=None, max_length=500)


class UpdateCourseRequest(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    title: str | None = Field(default=None, min_length=1, max_length=300)
    description: str | None = None
    level: CourseLevel | None = None
    price: float | None = Field(default=None, ge=0)
    tags: list[str] | None = None
    thumbnail_url: str | None = Field(default=None, max_length=500)


class RejectCourseRequest(BaseModel):
    reason: str | None = Field(default=None, max_length=2000)


# ---------------------------------------------------------------------------
# Section / lesson / resource requests
# ---------------------------------------------------------------------------


class CreateSectionRequest(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    title: str = Field(min_length=1, max_length=300)
    order_index: int = Field(ge=0)


class CreateLessonRequest(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    title: str = Field(min_length=1, max_length=300)
    type: LessonType = LessonType.STANDARD
    content: list[ContentBlock] = Field(default_factory=list)
    duration_seconds: int = Field(default=0, ge=0)
    is_free_preview: bool = False
    ide_config: IdeConfig | None = None
    order_index: int = Field(ge=0)


class UpdateLessonRequest(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    title: str | None = Field(default=None, min_length=1, max_length=300)
    type: LessonType | None = None
    content: list[ContentBlock] | None = None
    duration_seconds: int | None = Field(default=None, ge=0)
    is_free_preview: bool | None = None
    ide_config: IdeConfig | None = None
    order_index: int | None = Field(default=None, ge=0)


class CreateResourceRequest(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    title: str = Field(min_length=1, max_length=300)
    type: ResourceType
    url: str = Field(min_length=1, max_length=1000)
    file_size: int | None = Field(default=None, ge=0)


class ReorderSectionsRequest(BaseModel):
    section_ids: list[UUID] = Field(min_length=1)


class ReorderLessonsRequest(BaseModel):
    lesson_ids: list[UUID] = Field(min_length=1)


class GenerateQuizPreviewRequest(BaseModel):
    lesson_ids: list[UUID] = Field(min_length=1)
    count: int = Field(default=5, ge=1, le=20)
    topic: str | None = None
    preferred_types: list[QuestionType] | None = None


# ---------------------------------------------------------------------------
# Responses
# ---------------------------------------------------------------------------


class ResourceResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    lesson_id: UUID
    title: str
    type: ResourceType
    url: str
    file_size: int | None = None
    created_at: datetime


class LessonResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    section_id: UUID
    title: str
    type: LessonType
    content: list[dict[str, Any]]
    ide_config: dict[str, Any] | None = None
    duration_seconds: int
    is_free_preview: bool
    order_index: int
    resources: list[ResourceResponse] = []
    created_at: datetime
    updated_at: datetime


class SectionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    course_id: UUID
    title: str
    order_index: int
    lessons: list[LessonResponse] = []
    created_at: datetime


class CourseResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    title: str
    description: str
    thumbnail_url: str | None = None
    price: float
    level: CourseLevel
    status: CourseStatus
    is_published: bool
    tags: list[str]
    instructor_id: UUID
    instructor: InstructorSummary | None = None
    student_count: int = 0
    created_at: datetime
    updated_at: datetime


class CourseDetailResponse(CourseResponse):
    sections: list[SectionResponse] = []


class CourseListResponse(BaseModel):
    data: list[CourseResponse]
    meta: PageMeta


class RecommendationResponse(BaseModel):
    course: CourseResponse
    matching_tags: list[str]
    score: int


class EnrollmentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    user_id: UUID
    course_id: UUID
    completed_lesson_ids: list[str]
    completed_at: datetime | None = None
    is_archived: bool
    archived_at: datetime | None = None
    enrolled_at: datetime
    last_accessed_at: datetime


class CourseAccessResponse(BaseModel):
    is_enrolled: bool
    is_instructor: bool
    is_admin: bool
    has_access: bool
    enrollment: EnrollmentResponse | None = None


class LessonAccessResponse(BaseModel):
    lesson: LessonResponse
    has_access: bool = True


class EnrolledCourseResponse(BaseModel):
    id: UUID
    title: str
    description: str
    thumbnail_url: str | None = None
    level: CourseLevel
    instructor: InstructorSummary | None = None
    progress: int
    total_lessons: int
    completed_lessons: int
    status: str = Field(description="in-progress or completed")
    is_archived: bool
    last_accessed_at: datetime
    enrolled_at: datetime


class GeneratedQuestionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    question_text: str
    options: list[str]
    correct_answer: str
    explanation: str | None = None
    type: QuestionType


class QuizPreviewResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    title: str
    questions: list[GeneratedQuestionResponse]


class SuccessMessageResponse(BaseModel):
    success: bool = True
    message: str
