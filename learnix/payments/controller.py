from __future__ import annotations

from uuid import UUID

from fastapi import HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from learnix.database import commit
from learnix.dependencies import CurrentUser
from learnix.exceptions import (
    AlreadyEnrolledError,
    CourseNotFoundError,
    PaymentAlreadyCompletedError,
    PaymentNotFoundError,
    PaymentRejectedError,
)
from learnix.payments import service
from learnix.payments.schemas import (
    CheckoutRequest,
    PaymentHistoryItem,
    PaymentResponse,
    ProcessPaymentRequest,
    ProcessPaymentResponse,
)


def _handle_domain_error(exc: Exception) -> HTTPException:
    if isinstance(exc, (CourseNotFoundError, PaymentNotFoundError)):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=exc.message)
    if isinstance(exc, (AlreadyEnrolledError, PaymentAlreadyCompletedError, PaymentRejectedError)):
        return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=exc.message)
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Internal error.")


async def checkout(db: AsyncSession, user: CurrentUser, body: CheckoutRequest) -> PaymentResponse:
    try:
        payment = await service.create_checkout(db, user, body.course_id)
        return PaymentResponse.model_validate(payment)
    except Exception as exc:
        raise _handle_domain_error(exc) from exc


async def process(db: AsyncSession, user_id: UUID, body: ProcessPaymentRequest) -> ProcessPaymentResponse:
    try:
        payment = await service.process_payment(db, user_id, body.payment_id, body.card_details)
    except PaymentRejectedError as exc:
        # Keep the failed status and notification; get_db rolls back on the HTTP error
        await commit(db)
        raise _handle_domain_error(exc) from exc
    except Exception as exc:
        raise _handle_domain_error(exc) from exc
    return ProcessPaymentResponse(success=True, payment=PaymentResponse.model_validate(payment))


async def history(db: AsyncSession, user_id: UUID) -> list[PaymentHistoryItem]:
    payments = await service.list_user_payments(db, user_id)
    return [PaymentHistoryItem.model_validate(p) for p in payments]
