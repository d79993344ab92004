import uuid
from datetime import datetime
from decimal import Decimal

from sqlalchemy import Boolean, ForeignKey, Index, Numeric, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from learnix.database import Base

from .enums import CourseLevel, CourseStatus, course_level_enum, course_status_enum
from .types import JSONType, UTCDateTime, utcnow


class Course(Base):
    __tablename__ = "courses"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    title: Mapped[str] = mapped_column(String(300), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    thumbnail_url: Mapped[str | None] = mapped_column(String(500), nullable=True)
    price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False, default=Decimal("0.00"))
    level: Mapped[CourseLevel] = mapped_column(course_level_enum, nullable=False)
    status: Mapped[CourseStatus] = mapped_column(
        course_status_enum, nullable=False, default=CourseStatus.DRAFT
    )
    # Legacy flag, kept in step with status == PUBLISHED
    is_published: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    tags: Mapped[list[str]] = mapped_column(JSONType, nullable=False, default=list)
    instructor_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        UTCDateTime, nullable=False, default=utcnow, onupdate=utcnow
    )

    instructor = relationship("User", lazy="selectin")
    sections = relationship(
        "CourseSection",
        back_populates="course",
        lazy="selectin",
        order_by="CourseSection.order_index",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    __table_args__ = (
        Index("ix_courses_instructor_id", "instructor_id"),
        Index("ix_courses_status", "status"),
        Index("ix_courses_created_at", "created_at"),
    )

    @property
    def is_public(self) -> bool:
        return self.is_published and self.status == CourseStatus.PUBLISHED

    @property
    def lessons(self) -> list:
        """All lessons of the course in section order."""
        return [lesson for section in self.sections for lesson in section.lessons]
