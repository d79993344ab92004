import uuid
from datetime import datetime

from sqlalchemy import ForeignKey, String, Text, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from learnix.database import Base

from .enums import AuthProvider, auth_provider_enum
from .types import UTCDateTime, utcnow


class ExternalAuth(Base):
    """Link between a local user and an OAuth provider identity."""

    __tablename__ = "external_auths"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    provider: Mapped[AuthProvider] = mapped_column(auth_provider_enum, nullable=False)
    provider_id: Mapped[str] = mapped_column(String(255), nullable=False)
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    access_token: Mapped[str | None] = mapped_column(Text, nullable=True)
    refresh_token: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False, default=utcnow)

    user = relationship("User", lazy="selectin")

    __table_args__ = (
        UniqueConstraint("provider", "provider_id", name="uq_external_auths_provider_id"),
    )
