from __future__ import annotations

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from learnix.models import NotificationLevel, NotificationType
from learnix.pagination import PageMeta


class NotificationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    id: UUID
    user_id: UUID
    title: str
    message: str
    type: NotificationLevel
    notification_type: NotificationType | None = None
    is_read: bool
    link: str | None = None
    # ORM attribute ``extra`` maps to the ``metadata`` column
    metadata: dict[str, Any] | None = Field(default=None, validation_alias="extra")
    created_at: datetime


class NotificationsPageResponse(BaseModel):
    items: list[NotificationResponse]
    meta: PageMeta
    unread_count: int


class UnreadCountResponse(BaseModel):
    count: int


class SuccessResponse(BaseModel):
    success: bool = True
