"""
Mock payment gateway.

Checkout opens a pending payment for the course price.  Processing never talks
to a real provider: the card number ``4000000000000000`` is declined, anything
else is approved and the buyer is enrolled.
"""
from __future__ import annotations

import logging
import random
import time
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from learnix.courses import service as courses_service
from learnix.dependencies import CurrentUser
from learnix.exceptions import (
    AlreadyEnrolledError,
    PaymentAlreadyCompletedError,
    PaymentNotFoundError,
    PaymentRejectedError,
)
from learnix.models import Payment, PaymentStatus
from learnix.notifications import service as notifications
from learnix.payments.schemas import CardDetails

logger = logging.getLogger(__name__)

DECLINED_CARD_NUMBER = "4000000000000000"


def new_transaction_id() -> str:
    return f"txn_{int(time.time() * 1000)}_{random.randint(0, 999)}"


async def create_checkout(db: AsyncSession, user: CurrentUser, course_id: UUID) -> Payment:
    course = await courses_service.get_course(db, course_id, user)
    if await courses_service.get_enrollment(db, user.id, course.id) is not None:
        raise AlreadyEnrolledError("User is already enrolled in this course")

    payment = Payment(
        user_id=user.id,
        course_id=course.id,
        amount=course.price,
        currency="USD",
        status=PaymentStatus.PENDING,
    )
    db.add(payment)
    await db.flush()
    await db.refresh(payment)
    return payment


async def _get_user_payment(db: AsyncSession, user_id: UUID, payment_id: UUID) -> Payment:
    result = await db.execute(
        select(Payment).where(Payment.id == payment_id, Payment.user_id == user_id)
    )
    payment = result.scalar_one_or_none()
    if payment is None:
        raise PaymentNotFoundError()
    return payment


async def process_payment(
    db: AsyncSession, user_id: UUID, payment_id: UUID, card: CardDetails
) -> Payment:
    """Settle a pending payment.

    On a declined card the payment is marked failed, the buyer is notified and
    ``PaymentRejectedError`` is raised; the caller commits before responding so
    the failed status survives the error.
    """
    payment = await _get_user_payment(db, user_id, payment_id)
    if payment.status == PaymentStatus.COMPLETED:
        raise PaymentAlreadyCompletedError()
    course = payment.course

    if card.card_number == DECLINED_CARD_NUMBER:
        payment.status = PaymentStatus.FAILED
        await db.flush()
        await notifications.notify_payment_failed(db, user_id, course.title, course.id)
        logger.info("Payment %s declined for user %s", payment.id, user_id)
        raise PaymentRejectedError()

    payment.status = PaymentStatus.COMPLETED
    payment.transaction_id = new_transaction_id()
    payment.payment_method = "credit_card"
    await db.flush()

    if await courses_service.get_enrollment(db, user_id, course.id) is None:
        await courses_service.create_enrollment(db, user_id, course.id)
    await notifications.notify_payment_success(
        db, user_id, course.instructor_id, course.title, payment.amount, course.id
    )
    logger.info("Payment %s completed (%s)", payment.id, payment.transaction_id)
    await db.refresh(payment)
    return payment


async def list_user_payments(db: AsyncSession, user_id: UUID) -> list[Payment]:
    result = await db.execute(
        select(Payment)
        .where(Payment.user_id == user_id)
        .order_by(Payment.created_at.desc())
    )
    return list(result.scalars().all())
