import uuid
from datetime import datetime
from typing import Any

from sqlalchemy import Boolean, ForeignKey, Index, Integer, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from learnix.database import Base

from .enums import LessonType, lesson_type_enum
from .types import JSONType, UTCDateTime, utcnow


class Lesson(Base):
    __tablename__ = "lessons"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    section_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("course_sections.id", ondelete="CASCADE"), nullable=False
    )
    title: Mapped[str] = mapped_column(String(300), nullable=False)
    type: Mapped[LessonType] = mapped_column(
        lesson_type_enum, nullable=False, default=LessonType.STANDARD
    )
    # Ordered content blocks: [{id, type, content, metadata, order_index}]
    content: Mapped[list[dict[str, Any]]] = mapped_column(JSONType, nullable=False, default=list)
    # In-browser IDE setup: {allowed_languages: [...], default_language, instructions}
    ide_config: Mapped[dict[str, Any] | None] = mapped_column(JSONType, nullable=True)
    duration_seconds: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    is_free_preview: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    order_index: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        UTCDateTime, nullable=False, default=utcnow, onupdate=utcnow
    )

    section = relationship("CourseSection", back_populates="lessons", lazy="selectin")
    resources = relationship(
        "LessonResource",
        back_populates="lesson",
        lazy="selectin",
        order_by="LessonResource.created_at",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    __table_args__ = (Index("ix_lessons_section_id", "section_id"),)
