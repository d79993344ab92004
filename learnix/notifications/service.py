"""
Notification persistence plus real-time push.

``create_notification`` writes the row and queues a push of the notification
and the new unread count to the owner's WebSocket room.  The push runs only
after the session commits and never fails the caller.  The ``notify_*``
helpers carry the user-facing wording for each domain event.
"""
from __future__ import annotations

import logging
from decimal import Decimal
from functools import partial
from typing import Any
from uuid import UUID

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from learnix.database import on_commit
from learnix.exceptions import NotificationNotFoundError
from learnix.models import Notification, NotificationLevel, NotificationType
from learnix.notifications.manager import ConnectionManager, manager
from learnix.notifications.schemas import NotificationResponse

logger = logging.getLogger(__name__)


# ── Core ──────────────────────────────────────────────────────────────────────

async def get_unread_count(db: AsyncSession, user_id: UUID) -> int:
    stmt = select(func.count()).select_from(Notification).where(
        Notification.user_id == user_id, Notification.is_read.is_(False)
    )
    return (await db.execute(stmt)).scalar_one()


async def _push(
    db: AsyncSession,
    notification: Notification,
    connections: ConnectionManager,
) -> None:
    try:
        payload = NotificationResponse.model_validate(notification).model_dump(mode="json")
        await connections.emit_to_user(notification.user_id, "notification", payload)
        count = await get_unread_count(db, notification.user_id)
        await connections.emit_to_user(notification.user_id, "unread-count", {"count": count})
    except Exception:
        logger.exception("Failed to push notification %s", notification.id)


async def create_notification(
    db: AsyncSession,
    user_id: UUID,
    title: str,
    message: str,
    *,
    level: NotificationLevel = NotificationLevel.INFO,
    notification_type: NotificationType,
    extra: dict[str, Any] | None = None,
    link: str | None = None,
    connections: ConnectionManager | None = None,
) -> Notification:
    notification = Notification(
        user_id=user_id,
        title=title,
        message=message,
        type=level,
        notification_type=notification_type,
        extra=extra,
        link=link,
        is_read=False,
    )
    db.add(notification)
    await db.flush()
    await db.refresh(notification)

    on_commit(db, partial(_push, db, notification, connections or manager))
    return notification


async def list_notifications(
    db: AsyncSession, user_id: UUID, page: int = 1, limit: int = 10
) -> tuple[list[Notification], int, int]:
    """Return ``(items, total, unread_count)``, newest first."""
    base = select(Notification).where(Notification.user_id == user_id)
    total = (
        await db.execute(select(func.count()).select_from(base.subquery()))
    ).scalar_one()
    rows = await db.execute(
        base.order_by(Notification.created_at.desc())
        .offset((page - 1) * limit)
        .limit(limit)
    )
    return list(rows.scalars().all()), total, await get_unread_count(db, user_id)


async def mark_as_read(db: AsyncSession, user_id: UUID, notification_id: UUID) -> Notification:
    result = await db.execute(
        select(Notification).where(
            Notification.id == notification_id, Notification.user_id == user_id
        )
    )
    notification = result.scalar_one_or_none()
    if notification is None:
        raise NotificationNotFoundError()
    notification.is_read = True
    await db.flush()
    await db.refresh(notification)
    return notification


async def mark_all_as_read(db: AsyncSession, user_id: UUID) -> None:
    await db.execute(
        update(Notification)
        .where(Notification.user_id == user_id, Notification.is_read.is_(False))
        .values(is_read=True)
    )


# ── Domain helpers ────────────────────────────────────────────────────────────

def _money(amount: Decimal | float) -> str:
    return f"${Decimal(str(amount)).quantize(Decimal('0.01'))}"


async def notify_enrollment(
    db: AsyncSession, user_id: UUID, course_title: str, course_id: UUID
) -> Notification:
    return await create_notification(
        db, user_id,
        "Enrolled Successfully! 🎉",
        f'You have successfully enrolled in "{course_title}". Start learning now!',
        level=NotificationLevel.SUCCESS,
        notification_type=NotificationType.ENROLLMENT,
        extra={"course_title": course_title, "course_id": str(course_id)},
        link=f"/courses/{course_id}/learn",
    )


async def notify_payment_success(
    db: AsyncSession,
    student_id: UUID,
    instructor_id: UUID,
    course_title: str,
    amount: Decimal | float,
    course_id: UUID,
) -> None:
    extra = {"course_title": course_title, "amount": float(amount), "course_id": str(course_id)}
    await create_notification(
        db, student_id,
        "Payment Successful! 🎉",
        f'Your payment of {_money(amount)} for "{course_title}" was successful. '
        "You are now enrolled!",
        level=NotificationLevel.SUCCESS,
        notification_type=NotificationType.PAYMENT_SUCCESS,
        extra=extra,
        link=f"/courses/{course_id}/learn",
    )
    await create_notification(
        db, instructor_id,
        "New Student Enrolled! 💰",
        f'A student has enrolled in your course "{course_title}". Payment: {_money(amount)}',
        level=NotificationLevel.INFO,
        notification_type=NotificationType.PAYMENT_SUCCESS,
        extra=extra,
        link=f"/instructor/courses/{course_id}/edit",
    )


async def notify_payment_failed(
    db: AsyncSession, user_id: UUID, course_title: str, course_id: UUID
) -> Notification:
    return await create_notification(
        db, user_id,
        "Payment Failed ❌",
        f'Your payment for "{course_title}" could not be processed. '
        "Please try again or use a different payment method.",
        level=NotificationLevel.ERROR,
        notification_type=NotificationType.PAYMENT_FAILED,
        extra={"course_title": course_title, "course_id": str(course_id)},
        link=f"/courses/{course_id}",
    )


async def notify_course_approved(
    db: AsyncSession, instructor_id: UUID, course_title: str, course_id: UUID
) -> Notification:
    return await create_notification(
        db, instructor_id,
        "Course Approved! 🎉",
        f'Congratulations! Your course "{course_title}" has been approved and is now published.',
        level=NotificationLevel.SUCCESS,
        notification_type=NotificationType.COURSE_APPROVED,
        extra={"course_title": course_title, "course_id": str(course_id)},
        link=f"/instructor/courses/{course_id}/edit",
    )


async def notify_course_rejected(
    db: AsyncSession,
    instructor_id: UUID,
    course_title: str,
    course_id: UUID,
    reason: str | None = None,
) -> Notification:
    if reason:
        message = (
            f'Your course "{course_title}" was not approved. Reason: {reason}. '
            "Please review and resubmit."
        )
    else:
        message = (
            f'Your course "{course_title}" was not approved. '
            "Please review the course content and resubmit."
        )
    return await create_notification(
        db, instructor_id,
        "Course Needs Revision",
        message,
        level=NotificationLevel.WARNING,
        notification_type=NotificationType.COURSE_REJECTED,
        extra={"course_title": course_title, "reason": reason, "course_id": str(course_id)},
        link=f"/instructor/courses/{course_id}/edit",
    )


async def notify_course_submitted(
    db: AsyncSession,
    admin_ids: list[UUID],
    course_title: str,
    instructor_name: str,
    course_id: UUID,
) -> list[Notification]:
    # Sequential: the session is not safe for concurrent use
    return [
        await create_notification(
            db, admin_id,
            "Course Pending Review 📋",
            f'"{course_title}" by {instructor_name} is awaiting your review.',
            level=NotificationLevel.INFO,
            notification_type=NotificationType.COURSE_SUBMITTED,
            extra={
                "course_title": course_title,
                "instructor_name": instructor_name,
                "course_id": str(course_id),
            },
            link="/admin/courses?pending=true",
        )
        for admin_id in admin_ids
    ]


async def notify_course_completed(
    db: AsyncSession, user_id: UUID, course_title: str, course_id: UUID
) -> Notification:
    return await create_notification(
        db, user_id,
        "Course Completed! 🏆",
        f'Congratulations! You have completed "{course_title}". Great job!',
        level=NotificationLevel.SUCCESS,
        notification_type=NotificationType.COURSE_COMPLETED,
        extra={"course_title": course_title, "course_id": str(course_id)},
        link=f"/courses/{course_id}",
    )


def quiz_result_emoji(percentage: float) -> str:
    if percentage >= 80:
        return "🌟"
    if percentage >= 60:
        return "👍"
    return "📝"


async def notify_quiz_submitted(
    db: AsyncSession,
    user_id: UUID,
    quiz_title: str,
    score: float,
    percentage: float,
    course_id: UUID | None,
    lesson_id: UUID | None,
) -> Notification:
    if course_id and lesson_id:
        link = f"/courses/{course_id}/learn?lesson={lesson_id}"
    elif course_id:
        link = f"/courses/{course_id}/learn"
    else:
        link = None
    return await create_notification(
        db, user_id,
        f"Quiz Completed {quiz_result_emoji(percentage)}",
        f'You scored {score:.1f} points ({percentage:.0f}%) on "{quiz_title}".',
        level=NotificationLevel.INFO,
        notification_type=NotificationType.QUIZ_SUBMITTED,
        extra={
            "quiz_title": quiz_title,
            "score": score,
            "percentage": percentage,
            "course_id": str(course_id) if course_id else None,
            "lesson_id": str(lesson_id) if lesson_id else None,
        },
        link=link,
    )
