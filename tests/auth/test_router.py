from datetime import datetime, timedelta, timezone

import pytest
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from learnix.models import UserRole
from learnix.users import service as users_service

API = "/api/v1/auth"


async def _register(client: AsyncClient, email: str = "new@example.com") -> dict:
    resp = await client.post(
        f"{API}/register",
        json={"email": email, "password": "password123", "full_name": "New Person"},
    )
    assert resp.status_code == 201, resp.text
    return resp.json()


@pytest.mark.asyncio
async def test_register_creates_unverified_user_without_role(client: AsyncClient) -> None:
    data = await _register(client)
    assert data["user"]["email"] == "new@example.com"
    assert data["user"]["role"] is None
    assert data["user"]["is_email_verified"] is False
    assert "password_hash" not in data["user"]


@pytest.mark.asyncio
async def test_register_duplicate_email_conflicts(client: AsyncClient) -> None:
    await _register(client, "dup@example.com")
    resp = await client.post(
        f"{API}/register",
        json={"email": "DUP@example.com", "password": "password123", "full_name": "Again"},
    )
    assert resp.status_code == 409


@pytest.mark.asyncio
async def test_register_rejects_short_password(client: AsyncClient) -> None:
    resp = await client.post(
        f"{API}/register",
        json={"email": "short@example.com", "password": "123", "full_name": "Short"},
    )
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_login_requires_activation(client: AsyncClient, db: AsyncSession) -> None:
    await _register(client, "pending@example.com")
    resp = await client.post(
        f"{API}/login", json={"email": "pending@example.com", "password": "password123"}
    )
    assert resp.status_code == 401

    user = await users_service.get_user_by_email(db, "pending@example.com")
    activate = await client.get(f"{API}/activate", params={"token": user.activation_token})
    assert activate.status_code == 200
    assert activate.json()["already_activated"] is False

    again = await client.get(f"{API}/activate", params={"token": user.activation_token})
    assert again.status_code == 200
    assert again.json()["already_activated"] is True

    login = await client.post(
        f"{API}/login", json={"email": "pending@example.com", "password": "password123"}
    )
    assert login.status_code == 200
    assert login.json()["message"] == "Login successful"
    assert "access_token" in login.cookies
    client.cookies.clear()


@pytest.mark.asyncio
async def test_activate_with_unknown_token(client: AsyncClient) -> None:
    resp = await client.get(f"{API}/activate", params={"token": "f" * 64})
    assert resp.status_code == 400


@pytest.mark.asyncio
async def test_login_wrong_password(client: AsyncClient, student) -> None:
    resp = await client.post(
        f"{API}/login", json={"email": student.email, "password": "not-it"}
    )
    assert resp.status_code == 401


@pytest.mark.asyncio
async def test_login_blocked_user(client: AsyncClient, db: AsyncSession, student) -> None:
    await users_service.update_status(db, student.id, False)
    await db.commit()
    resp = await client.post(
        f"{API}/login", json={"email": student.email, "password": "password123"}
    )
    assert resp.status_code == 401


@pytest.mark.asyncio
async def test_me_requires_authentication(client: AsyncClient) -> None:
    resp = await client.get(f"{API}/me")
    assert resp.status_code == 401


@pytest.mark.asyncio
async def test_me_returns_profile(client: AsyncClient, student, headers) -> None:
    resp = await client.get(f"{API}/me", headers=headers(student))
    assert resp.status_code == 200
    assert resp.json()["email"] == student.email
    assert resp.json()["role"] == "student"


@pytest.mark.asyncio
async def test_select_role_reissues_token(client: AsyncClient, make_user, headers) -> None:
    user = await make_user(None, email="norole@example.com")
    resp = await client.post(
        f"{API}/select-role", json={"role": "instructor"}, headers=headers(user)
    )
    assert resp.status_code == 200
    body = resp.json()
    assert body["user"]["role"] == "instructor"
    client.cookies.clear()

    me = await client.get(
        f"{API}/me", headers={"Authorization": f"Bearer {body['access_token']}"}
    )
    assert me.json()["role"] == "instructor"


@pytest.mark.asyncio
async def test_select_role_cannot_pick_admin(client: AsyncClient, student, headers) -> None:
    resp = await client.post(f"{API}/select-role", json={"role": "admin"}, headers=headers(student))
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_change_password(client: AsyncClient, student, headers) -> None:
    wrong = await client.post(
        f"{API}/change-password",
        json={"current_password": "nope", "new_password": "brand-new-1"},
        headers=headers(student),
    )
    assert wrong.status_code == 400

    ok = await client.post(
        f"{API}/change-password",
        json={"current_password": "password123", "new_password": "brand-new-1"},
        headers=headers(student),
    )
    assert ok.status_code == 200

    login = await client.post(
        f"{API}/login", json={"email": student.email, "password": "brand-new-1"}
    )
    assert login.status_code == 200
    client.cookies.clear()


@pytest.mark.asyncio
async def test_forgot_and_reset_password(client: AsyncClient, db: AsyncSession, student) -> None:
    student_id = student.id
    unknown = await client.post(f"{API}/forgot-password", json={"email": "ghost@example.com"})
    assert unknown.status_code == 200

    resp = await client.post(f"{API}/forgot-password", json={"email": student.email})
    assert resp.status_code == 200
    assert resp.json()["message"] == unknown.json()["message"]

    db.expire_all()
    user = await users_service.get_user_by_id(db, student_id)
    token = user.password_reset_token
    assert token

    reset = await client.post(
        f"{API}/reset-password", json={"token": token, "new_password": "after-reset"}
    )
    assert reset.status_code == 200

    reused = await client.post(
        f"{API}/reset-password", json={"token": token, "new_password": "again-reset"}
    )
    assert reused.status_code == 400


@pytest.mark.asyncio
async def test_delete_account_requires_confirmation(
    client: AsyncClient, db: AsyncSession, student, headers
) -> None:
    student_id = student.id
    bad = await client.request(
        "DELETE",
        f"{API}/account",
        json={"confirmation": "delete", "password": "password123"},
        headers=headers(student),
    )
    assert bad.status_code == 400

    ok = await client.request(
        "DELETE",
        f"{API}/account",
        json={"confirmation": "DELETE", "password": "password123"},
        headers=headers(student),
    )
    assert ok.status_code == 200
    db.expire_all()
    assert await users_service.get_user_by_id(db, student_id) is None


@pytest.mark.asyncio
async def test_dev_promote_outside_production(client: AsyncClient, student, headers) -> None:
    resp = await client.get(f"{API}/dev/promote", headers=headers(student))
    assert resp.status_code == 200
    assert resp.json()["user"]["role"] == UserRole.INSTRUCTOR.value
    client.cookies.clear()


@pytest.mark.asyncio
async def test_expired_activation_token(client: AsyncClient, db: AsyncSession) -> None:
    await _register(client, "late@example.com")
    user = await users_service.get_user_by_email(db, "late@example.com")
    user.activation_token_expires_at = datetime.now(timezone.utc) - timedelta(minutes=1)
    await db.commit()

    resp = await client.get(f"{API}/activate", params={"token": user.activation_token})
    assert resp.status_code == 400
    assert resp.json()["detail"] == "Activation token has expired. Please register again."


@pytest.mark.asyncio
async def test_resend_activation(client: AsyncClient, db: AsyncSession, student) -> None:
    student_email = student.email
    await _register(client, "resend@example.com")
    first = await users_service.get_user_by_email(db, "resend@example.com")
    old_token = first.activation_token

    resp = await client.post(f"{API}/resend-activation", json={"email": "resend@example.com"})
    assert resp.status_code == 200
    unknown = await client.post(f"{API}/resend-activation", json={"email": "ghost@example.com"})
    assert unknown.json()["message"] == resp.json()["message"]

    db.expire_all()
    user = await users_service.get_user_by_email(db, "resend@example.com")
    assert user.activation_token and user.activation_token != old_token
    stale = await client.get(f"{API}/activate", params={"token": old_token})
    assert stale.status_code == 400

    verified = await client.post(f"{API}/resend-activation", json={"email": student_email})
    assert verified.status_code == 400
    assert verified.json()["detail"] == "This account is already activated. Please login."


@pytest.mark.asyncio
async def test_expired_reset_token(client: AsyncClient, db: AsyncSession, student) -> None:
    student_id = student.id
    student_email = student.email
    await client.post(f"{API}/forgot-password", json={"email": student_email})

    db.expire_all()
    user = await users_service.get_user_by_id(db, student_id)
    token = user.password_reset_token
    user.password_reset_token_expires_at = datetime.now(timezone.utc) - timedelta(seconds=1)
    await db.commit()

    resp = await client.post(
        f"{API}/reset-password", json={"token": token, "new_password": "after-reset"}
    )
    assert resp.status_code == 400
    assert resp.json()["detail"] == "This password reset link has expired. Please request a new one."
