"""Payments router: mock checkout for paid courses."""

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from learnix.database import get_db
from learnix.dependencies import CurrentUser, get_current_user
from learnix.payments import controller
from learnix.payments.schemas import (
    CheckoutRequest,
    PaymentHistoryItem,
    PaymentResponse,
    ProcessPaymentRequest,
    ProcessPaymentResponse,
)
from learnix.rate_limit import limiter

router = APIRouter(prefix="/payments", tags=["Payments"])


@router.post(
    "/checkout",
    response_model=PaymentResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Open a checkout session",
    description="Creates a pending payment for the course price. Fails with 400 when the "
    "caller is already enrolled.",
)
async def checkout(
    body: CheckoutRequest,
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> PaymentResponse:
    return await controller.checkout(db, current_user, body)


@router.post(
    "/process",
    response_model=ProcessPaymentResponse,
    summary="Pay for a checkout session",
    description="Mock gateway: card `4000000000000000` is declined, any other valid card "
    "is approved and enrolls the caller.",
)
@limiter.limit("10/minute")
async def process_payment(
    request: Request,
    body: ProcessPaymentRequest,
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> ProcessPaymentResponse:
    return await controller.process(db, current_user.id, body)


@router.get("/history", response_model=list[PaymentHistoryItem], summary="My payments")
async def payment_history(
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> list[PaymentHistoryItem]:
    return await controller.history(db, current_user.id)
