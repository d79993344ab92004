from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from learnix.database import get_db
from learnix.dependencies import CurrentUser, get_current_user
from learnix.notifications import controller
from learnix.notifications.schemas import (
    NotificationResponse,
    NotificationsPageResponse,
    SuccessResponse,
    UnreadCountResponse,
)

router = APIRouter(prefix="/notifications", tags=["Notifications"])


@router.get(
    "",
    response_model=NotificationsPageResponse,
    summary="List my notifications",
    description="Returns notifications for the authenticated user, newest first, "
    "with the current unread count.",
)
async def list_notifications(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> NotificationsPageResponse:
    return await controller.get_notifications(db, current_user.id, page, limit)


@router.get("/unread-count", response_model=UnreadCountResponse, summary="Unread notification count")
async def unread_count(
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> UnreadCountResponse:
    return await controller.get_unread_count(db, current_user.id)


@router.patch("/read-all", response_model=SuccessResponse, summary="Mark all my notifications as read")
async def mark_all_read(
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> SuccessResponse:
    return await controller.mark_all_read(db, current_user.id)


@router.patch(
    "/{notification_id}/read",
    response_model=NotificationResponse,
    summary="Mark a single notification as read",
)
async def mark_read(
    notification_id: UUID,
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> NotificationResponse:
    return await controller.mark_read(db, current_user.id, notification_id)
