import re
import uuid

import pytest
from httpx import AsyncClient
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from learnix.models import (
    CourseStatus,
    Enrollment,
    Notification,
    NotificationType,
    Payment,
    PaymentStatus,
)
from learnix.payments.service import DECLINED_CARD_NUMBER, new_transaction_id

API = "/api/v1/payments"

CARD = {
    "card_number": "4242424242424242",
    "expiry_date": "12/30",
    "cvc": "123",
    "card_holder_name": "Sam Student",
}


async def _checkout(client: AsyncClient, course, user, headers) -> dict:
    resp = await client.post(f"{API}/checkout", json={"course_id": str(course.id)}, headers=headers(user))
    assert resp.status_code == 201, resp.text
    return resp.json()


def test_transaction_id_format() -> None:
    assert re.fullmatch(r"txn_\d{13}_\d{1,3}", new_transaction_id())


@pytest.mark.asyncio
async def test_checkout_opens_pending_payment(
    client: AsyncClient, make_course, instructor, student, headers
) -> None:
    course = await make_course(instructor, price="19.99")
    payment = await _checkout(client, course, student, headers)
    assert payment["status"] == "pending"
    assert payment["amount"] == 19.99
    assert payment["currency"] == "USD"
    assert payment["transaction_id"] is None


@pytest.mark.asyncio
async def test_checkout_hidden_course(client: AsyncClient, make_course, instructor, student, headers) -> None:
    draft = await make_course(instructor, price=10, status=CourseStatus.DRAFT)
    resp = await client.post(f"{API}/checkout", json={"course_id": str(draft.id)}, headers=headers(student))
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_successful_payment_enrolls(
    client: AsyncClient, db: AsyncSession, make_course, instructor, student, headers
) -> None:
    course = await make_course(instructor, price=25)
    payment = await _checkout(client, course, student, headers)

    resp = await client.post(
        f"{API}/process",
        json={"payment_id": payment["id"], "card_details": CARD},
        headers=headers(student),
    )
    assert resp.status_code == 200
    body = resp.json()
    assert body["success"] is True
    assert body["payment"]["status"] == "completed"
    assert body["payment"]["transaction_id"].startswith("txn_")

    enrollment = (await db.execute(
        select(Enrollment).where(Enrollment.user_id == student.id, Enrollment.course_id == course.id)
    )).scalar_one_or_none()
    assert enrollment is not None

    rows = await db.execute(
        select(Notification.user_id).where(Notification.notification_type == NotificationType.PAYMENT_SUCCESS)
    )
    assert sorted(str(u) for u in rows.scalars().all()) == sorted([str(student.id), str(instructor.id)])

    paid_again = await client.post(
        f"{API}/process",
        json={"payment_id": payment["id"], "card_details": CARD},
        headers=headers(student),
    )
    assert paid_again.status_code == 400

    second_checkout = await client.post(
        f"{API}/checkout", json={"course_id": str(course.id)}, headers=headers(student)
    )
    assert second_checkout.status_code == 400
    assert second_checkout.json()["detail"] == "User is already enrolled in this course"


@pytest.mark.asyncio
async def test_declined_card_keeps_failed_status(
    client: AsyncClient, db: AsyncSession, make_course, instructor, student, headers
) -> None:
    course = await make_course(instructor, price=25)
    payment = await _checkout(client, course, student, headers)

    resp = await client.post(
        f"{API}/process",
        json={"payment_id": payment["id"], "card_details": {**CARD, "card_number": DECLINED_CARD_NUMBER}},
        headers=headers(student),
    )
    assert resp.status_code == 400
    assert resp.json()["detail"] == "Payment rejected by card issuer"

    stored = (await db.execute(select(Payment).where(Payment.id == uuid.UUID(payment["id"])))).scalar_one()
    assert stored.status == PaymentStatus.FAILED
    failed = await db.execute(
        select(Notification).where(Notification.notification_type == NotificationType.PAYMENT_FAILED)
    )
    assert failed.scalar_one().user_id == student.id
    enrolled = await db.execute(select(Enrollment).where(Enrollment.user_id == student.id))
    assert enrolled.scalar_one_or_none() is None

    # A failed payment can be retried with another card
    retry = await client.post(
        f"{API}/process",
        json={"payment_id": payment["id"], "card_details": CARD},
        headers=headers(student),
    )
    assert retry.status_code == 200


@pytest.mark.asyncio
async def test_cannot_process_someone_elses_payment(
    client: AsyncClient, make_course, make_user, instructor, student, headers
) -> None:
    course = await make_course(instructor, price=25)
    payment = await _checkout(client, course, student, headers)
    intruder = await make_user(email="intruder@example.com")
    resp = await client.post(
        f"{API}/process",
        json={"payment_id": payment["id"], "card_details": CARD},
        headers=headers(intruder),
    )
    assert resp.status_code == 404


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "override",
    [{"card_number": "4242 4242 4242 4242"}, {"expiry_date": "13/30"}, {"cvc": "12"}],
)
async def test_card_details_are_validated(
    client: AsyncClient, make_course, instructor, student, headers, override
) -> None:
    course = await make_course(instructor, price=25)
    payment = await _checkout(client, course, student, headers)
    resp = await client.post(
        f"{API}/process",
        json={"payment_id": payment["id"], "card_details": {**CARD, **override}},
        headers=headers(student),
    )
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_history_includes_course(
    client: AsyncClient, make_course, instructor, student, headers
) -> None:
    first = await make_course(instructor, title="First", price=5)
    second = await make_course(instructor, title="Second", price=15)
    await _checkout(client, first, student, headers)
    await _checkout(client, second, student, headers)

    resp = await client.get(f"{API}/history", headers=headers(student))
    assert resp.status_code == 200
    titles = {item["course"]["title"] for item in resp.json()}
    assert titles == {"First", "Second"}
    assert (await client.get(f"{API}/history")).status_code == 401
