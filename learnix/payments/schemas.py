from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from learnix.models import PaymentStatus


class CheckoutRequest(BaseModel):
    course_id: UUID


class CardDetails(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    card_number: str = Field(pattern=r"^\d{16}$", description="16 digits, no spaces")
    expiry_date: str = Field(pattern=r"^(0[1-9]|1[0-2])/\d{2}$", description="MM/YY")
    cvc: str = Field(pattern=r"^\d{3,4}$")
    card_holder_name: str = Field(min_length=1, max_length=200)


class ProcessPaymentRequest(BaseModel):
    payment_id: UUID
    card_details: CardDetails


class PaymentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    user_id: UUID
    course_id: UUID
    amount: float
    currency: str
    status: PaymentStatus
    transaction_id: str | None = None
    payment_method: str
    created_at: datetime
    updated_at: datetime


class ProcessPaymentResponse(BaseModel):
    success: bool
    payment: PaymentResponse


class PaymentCourseSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    title: str
    thumbnail_url: str | None = None


class PaymentHistoryItem(PaymentResponse):
    course: PaymentCourseSummary | None = None
