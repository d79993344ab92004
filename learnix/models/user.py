import uuid
from datetime import datetime

from sqlalchemy import Boolean, Index, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from learnix.database import Base

from .enums import UserRole, user_role_enum
from .types import UTCDateTime, utcnow


class User(Base):
    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    # Null for accounts created through OAuth only
    password_hash: Mapped[str | None] = mapped_column(String(255), nullable=True)
    full_name: Mapped[str] = mapped_column(String(150), nullable=False)
    # Null until the user picks a role after sign-up
    role: Mapped[UserRole | None] = mapped_column(user_role_enum, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    is_email_verified: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    activation_token: Mapped[str | None] = mapped_column(String(64), nullable=True)
    activation_token_expires_at: Mapped[datetime | None] = mapped_column(
        UTCDateTime, nullable=True
    )
    password_reset_token: Mapped[str | None] = mapped_column(String(64), nullable=True)
    password_reset_token_expires_at: Mapped[datetime | None] = mapped_column(
        UTCDateTime, nullable=True
    )
    avatar_url: Mapped[str | None] = mapped_column(String(500), nullable=True)
    # Last avatar reported by an OAuth provider, used as a fallback
    oauth_avatar_url: Mapped[str | None] = mapped_column(String(500), nullable=True)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        UTCDateTime, nullable=False, default=utcnow, onupdate=utcnow
    )

    __table_args__ = (
        Index("ix_users_role", "role"),
        Index("ix_users_activation_token", "activation_token"),
        Index("ix_users_password_reset_token", "password_reset_token"),
        Index("ix_users_created_at", "created_at"),
    )
