"""
User persistence and account-state transitions.

Used by auth, admin, courses and the notification gateway.  No FastAPI imports;
every function takes the request's AsyncSession and flushes, leaving the commit
to ``get_db``.
"""
from __future__ import annotations

import secrets
import uuid
from datetime import datetime, timedelta, timezone

from sqlalchemy import delete, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from learnix.exceptions import (
    EmailAlreadyExistsError,
    IncorrectPasswordError,
    PasswordNotSetError,
    UserNotFoundError,
)
from learnix.models import ExternalAuth, User, UserRole
from learnix.security import hash_password, verify_password
from learnix.stats import daily_series, window_start
from learnix.users.schemas import SortOrder, UserFilter, UserSortBy

ACTIVATION_TOKEN_TTL = timedelta(hours=24)
# Duplicate clicks on the activation link keep working for a short while
ACTIVATION_GRACE_PERIOD = timedelta(minutes=5)
PASSWORD_RESET_TOKEN_TTL = timedelta(hours=1)


def _now() -> datetime:
    return datetime.now(timezone.utc)


def generate_action_token() -> str:
    """64 hex chars, used for activation and password-reset links."""
    return secrets.token_hex(32)


# ── Queries ───────────────────────────────────────────────────────────────────

async def get_user_by_id(db: AsyncSession, user_id: uuid.UUID) -> User | None:
    result = await db.execute(select(User).where(User.id == user_id))
    return result.scalar_one_or_none()


async def get_user_by_email(db: AsyncSession, email: str) -> User | None:
    result = await db.execute(
        select(User).where(func.lower(User.email) == email.strip().lower())
    )
    return result.scalar_one_or_none()


async def _require_user(db: AsyncSession, user_id: uuid.UUID) -> User:
    user = await get_user_by_id(db, user_id)
    if user is None:
        raise UserNotFoundError()
    return user


async def find_all_admins(db: AsyncSession) -> list[User]:
    result = await db.execute(select(User).where(User.role == UserRole.ADMIN))
    return list(result.scalars().all())


async def has_password(db: AsyncSession, user_id: uuid.UUID) -> bool:
    user = await get_user_by_id(db, user_id)
    return bool(user and user.password_hash)


# ── Creation ──────────────────────────────────────────────────────────────────

async def create_user(
    db: AsyncSession,
    *,
    email: str,
    full_name: str,
    password: str | None = None,
    role: UserRole | None = None,
    is_email_verified: bool = False,
    avatar_url: str | None = None,
) -> User:
    if await get_user_by_email(db, email) is not None:
        raise EmailAlreadyExistsError()

    user = User(
        email=email.strip().lower(),
        full_name=full_name,
        password_hash=hash_password(password) if password else None,
        role=role,
        is_active=True,
        is_email_verified=is_email_verified,
        avatar_url=avatar_url,
    )
    db.add(user)
    await db.flush()
    await db.refresh(user)
    return user


async def create_with_activation_token(
    db: AsyncSession,
    *,
    email: str,
    password: str,
    full_name: str,
) -> tuple[User, str]:
    """Create an unverified account with no role.  Returns ``(user, activation_token)``."""
    user = await create_user(db, email=email, full_name=full_name, password=password)
    token = generate_action_token()
    user.activation_token = token
    user.activation_token_expires_at = _now() + ACTIVATION_TOKEN_TTL
    await db.flush()
    return user, token


# ── Activation ────────────────────────────────────────────────────────────────

async def find_by_activation_token(db: AsyncSession, token: str) -> User | None:
    result = await db.execute(select(User).where(User.activation_token == token))
    return result.scalar_one_or_none()


async def activate_user(db: AsyncSession, user_id: uuid.UUID) -> User:
    user = await _require_user(db, user_id)
    user.is_email_verified = True
    user.activation_token_expires_at = _now() + ACTIVATION_GRACE_PERIOD
    await db.flush()
    await db.refresh(user)
    return user


async def regenerate_activation_token(db: AsyncSession, user_id: uuid.UUID) -> tuple[User, str]:
    user = await _require_user(db, user_id)
    token = generate_action_token()
    user.activation_token = token
    user.activation_token_expires_at = _now() + ACTIVATION_TOKEN_TTL
    await db.flush()
    return user, token


# ── Passwords ─────────────────────────────────────────────────────────────────

async def create_password_reset_token(db: AsyncSession, user_id: uuid.UUID) -> str:
    user = await _require_user(db, user_id)
    token = generate_action_token()
    user.password_reset_token = token
    user.password_reset_token_expires_at = _now() + PASSWORD_RESET_TOKEN_TTL
    await db.flush()
    return token


async def find_by_password_reset_token(db: AsyncSession, token: str) -> User | None:
    result = await db.execute(select(User).where(User.password_reset_token == token))
    return result.scalar_one_or_none()


async def reset_password(db: AsyncSession, user_id: uuid.UUID, new_password: str) -> User:
    user = await _require_user(db, user_id)
    user.password_hash = hash_password(new_password)
    user.password_reset_token = None
    user.password_reset_token_expires_at = None
    await db.flush()
    return user


async def change_password(
    db: AsyncSession,
    user_id: uuid.UUID,
    current_password: str,
    new_password: str,
) -> User:
    user = await _require_user(db, user_id)
    if not user.password_hash:
        raise PasswordNotSetError(
            "Cannot change password for OAuth-only accounts. Please set a password first."
        )
    if not verify_password(current_password, user.password_hash):
        raise IncorrectPasswordError()

    user.password_hash = hash_password(new_password)
    await db.flush()
    return user


# ── Profile / admin mutations ─────────────────────────────────────────────────

async def update_profile(db: AsyncSession, user_id: uuid.UUID, changes: dict) -> User:
    """Apply ``full_name``/``avatar_url`` from *changes*; a None avatar clears it."""
    user = await _require_user(db, user_id)
    if changes.get("full_name") is not None:
        user.full_name = changes["full_name"]
    if "avatar_url" in changes:
        user.avatar_url = changes["avatar_url"]
    await db.flush()
    await db.refresh(user)
    return user


async def update_oauth_avatar(db: AsyncSession, user_id: uuid.UUID, avatar_url: str) -> None:
    user = await _require_user(db, user_id)
    user.oauth_avatar_url = avatar_url
    await db.flush()


async def update_role(db: AsyncSession, user_id: uuid.UUID, role: UserRole) -> User:
    user = await _require_user(db, user_id)
    user.role = role
    await db.flush()
    await db.refresh(user)
    return user


async def update_status(db: AsyncSession, user_id: uuid.UUID, is_active: bool) -> User:
    user = await _require_user(db, user_id)
    user.is_active = is_active
    await db.flush()
    await db.refresh(user)
    return user


async def delete_user(db: AsyncSession, user_id: uuid.UUID) -> None:
    user = await _require_user(db, user_id)
    await db.execute(delete(ExternalAuth).where(ExternalAuth.user_id == user_id))
    await db.delete(user)
    await db.flush()


# ── Listing and stats ─────────────────────────────────────────────────────────

_SORT_COLUMNS = {
    UserSortBy.CREATED_AT: User.created_at,
    UserSortBy.FULL_NAME: User.full_name,
    UserSortBy.EMAIL: User.email,
}


async def list_users(db: AsyncSession, filters: UserFilter | None = None) -> list[User]:
    filters = filters or UserFilter()
    stmt = select(User)
    if filters.role is not None:
        stmt = stmt.where(User.role == filters.role)
    if filters.is_active is not None:
        stmt = stmt.where(User.is_active == filters.is_active)
    if filters.is_email_verified is not None:
        stmt = stmt.where(User.is_email_verified == filters.is_email_verified)
    if filters.search:
        pattern = f"%{filters.search.lower()}%"
        stmt = stmt.where(
            or_(func.lower(User.full_name).like(pattern), func.lower(User.email).like(pattern))
        )

    column = _SORT_COLUMNS[filters.sort_by]
    stmt = stmt.order_by(column.asc() if filters.sort_order == SortOrder.ASC else column.desc())
    result = await db.execute(stmt)
    return list(result.scalars().all())


async def count_users(db: AsyncSession) -> int:
    return (await db.execute(select(func.count()).select_from(User))).scalar_one()


async def count_active_instructors(db: AsyncSession) -> int:
    stmt = select(func.count()).select_from(User).where(
        User.role == UserRole.INSTRUCTOR, User.is_active.is_(True)
    )
    return (await db.execute(stmt)).scalar_one()


async def count_users_since(db: AsyncSession, since: datetime) -> int:
    stmt = select(func.count()).select_from(User).where(User.created_at >= since)
    return (await db.execute(stmt)).scalar_one()


async def user_growth(db: AsyncSession, days: int = 30) -> list[dict]:
    result = await db.execute(
        select(User.created_at).where(User.created_at >= window_start(days))
    )
    return daily_series((created_at, 1) for created_at in result.scalars().all())
