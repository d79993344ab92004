"""Public user shapes.  Hashes and one-time tokens are never serialised."""
from __future__ import annotations

from datetime import datetime
from enum import Enum
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from learnix.models.enums import UserRole


class UserResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    email: str
    full_name: str
    role: UserRole | None = None
    is_active: bool
    is_email_verified: bool
    avatar_url: str | None = None
    oauth_avatar_url: str | None = None
    created_at: datetime
    updated_at: datetime


class UserSortBy(str, Enum):
    CREATED_AT = "created_at"
    FULL_NAME = "full_name"
    EMAIL = "email"


class SortOrder(str, Enum):
    ASC = "asc"
    DESC = "desc"


class UserFilter(BaseModel):
    """Admin user-list filters."""

    role: UserRole | None = None
    is_active: bool | None = None
    is_email_verified: bool | None = None
    search: str | None = Field(default=None, max_length=200)
    sort_by: UserSortBy = UserSortBy.CREATED_AT
    sort_order: SortOrder = SortOrder.DESC
