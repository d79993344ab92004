import uuid
from datetime import datetime

from sqlalchemy import Float, ForeignKey, Index, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from learnix.database import Base

from .types import JSONType, UTCDateTime, utcnow


class QuizSubmission(Base):
    """A learner's attempt at a quiz. ``completed_at`` is null while in progress."""

    __tablename__ = "quiz_submissions"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    quiz_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("quizzes.id", ondelete="CASCADE"), nullable=False
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    score: Mapped[float | None] = mapped_column(Float, nullable=True)
    total_points: Mapped[float | None] = mapped_column(Float, nullable=True)
    percentage: Mapped[float | None] = mapped_column(Float, nullable=True)
    # {question_id: answer}
    responses: Mapped[dict[str, str]] = mapped_column(JSONType, nullable=False, default=dict)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False, default=utcnow)
    completed_at: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)

    __table_args__ = (
        Index("ix_quiz_submissions_quiz_user", "quiz_id", "user_id"),
    )
