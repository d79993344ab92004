from __future__ import annotations

from uuid import UUID

from fastapi import HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from learnix.exceptions import NotificationNotFoundError
from learnix.notifications import service
from learnix.notifications.schemas import (
    NotificationResponse,
    NotificationsPageResponse,
    SuccessResponse,
    UnreadCountResponse,
)
from learnix.pagination import PageMeta


def _handle_domain_error(exc: Exception) -> HTTPException:
    if isinstance(exc, NotificationNotFoundError):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=exc.message)
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Internal error.")


async def get_notifications(
    db: AsyncSession, user_id: UUID, page: int, limit: int
) -> NotificationsPageResponse:
    items, total, unread = await service.list_notifications(db, user_id, page, limit)
    return NotificationsPageResponse(
        items=[NotificationResponse.model_validate(n) for n in items],
        meta=PageMeta.build(total, page, limit),
        unread_count=unread,
    )


async def get_unread_count(db: AsyncSession, user_id: UUID) -> UnreadCountResponse:
    return UnreadCountResponse(count=await service.get_unread_count(db, user_id))


async def mark_read(db: AsyncSession, user_id: UUID, notification_id: UUID) -> NotificationResponse:
    try:
        notification = await service.mark_as_read(db, user_id, notification_id)
        return NotificationResponse.model_validate(notification)
    except Exception as exc:
        raise _handle_domain_error(exc) from exc


async def mark_all_read(db: AsyncSession, user_id: UUID) -> SuccessResponse:
    await service.mark_all_as_read(db, user_id)
    return SuccessResponse(success=True)
