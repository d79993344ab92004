"""
Authentication flows: credentials, activation, password reset, OAuth linking.

Rules:
  - Zero FastAPI imports.
  - Returns users and one-time tokens; the controller decides which e-mails
    to queue.
"""
from __future__ import annotations

import uuid
from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from learnix.auth.oauth import OAuthProfile
from learnix.config import Settings
from learnix.exceptions import (
    AccountBlockedError,
    ActionTokenExpiredError,
    AlreadyVerifiedError,
    EmailNotVerifiedError,
    IncorrectPasswordError,
    InvalidActionTokenError,
    InvalidConfirmationError,
    InvalidCredentialsError,
    UserNotFoundError,
)
from learnix.models import ExternalAuth, User
from learnix.security import create_access_token, verify_password
from learnix.users import service as users_service

DELETE_CONFIRMATION = "DELETE"


def issue_token(user: User, settings: Settings) -> str:
    return create_access_token(
        user.id, user.email, user.role.value if user.role else None, settings
    )


def _is_expired(expires_at: datetime | None) -> bool:
    return expires_at is not None and datetime.now(timezone.utc) > expires_at


# ── Credentials ──────────────────────────────────────────────────────────────

async def authenticate_user(db: AsyncSession, email: str, password: str) -> User:
    """Check order: credentials, then e-mail verification, then blocked state."""
    user = await users_service.get_user_by_email(db, email)
    if user is None or not user.password_hash:
        raise InvalidCredentialsError()
    if not verify_password(password, user.password_hash):
        raise InvalidCredentialsError()
    if not user.is_email_verified:
        raise EmailNotVerifiedError()
    if not user.is_active:
        raise AccountBlockedError()
    return user


async def get_active_user(db: AsyncSession, user_id: uuid.UUID) -> User:
    user = await users_service.get_user_by_id(db, user_id)
    if user is None:
        raise UserNotFoundError()
    if not user.is_active:
        raise AccountBlockedError("Your account has been blocked.")
    return user


async def register(
    db: AsyncSession, *, email: str, password: str, full_name: str
) -> tuple[User, str]:
    return await users_service.create_with_activation_token(
        db, email=email, password=password, full_name=full_name
    )


# ── Activation ───────────────────────────────────────────────────────────────

async def activate_account(db: AsyncSession, token: str) -> tuple[User, bool]:
    """Return ``(user, already_activated)``."""
    user = await users_service.find_by_activation_token(db, token)
    if user is None:
        raise InvalidActionTokenError(
            "This activation link has already been used or is invalid. "
            "If you already activated your account, please log in."
        )
    if user.is_email_verified:
        return user, True
    if _is_expired(user.activation_token_expires_at):
        raise ActionTokenExpiredError("Activation token has expired. Please register again.")

    user = await users_service.activate_user(db, user.id)
    return user, False


async def resend_activation(db: AsyncSession, email: str) -> tuple[User, str] | None:
    """None when no account matches, so callers can answer generically."""
    user = await users_service.get_user_by_email(db, email)
    if user is None:
        return None
    if user.is_email_verified:
        raise AlreadyVerifiedError("This account is already activated. Please login.")
    return await users_service.regenerate_activation_token(db, user.id)


# ── Password reset ───────────────────────────────────────────────────────────

async def forgot_password(db: AsyncSession, email: str) -> tuple[User, str] | None:
    user = await users_service.get_user_by_email(db, email)
    if user is None or not user.password_hash:
        return None
    token = await users_service.create_password_reset_token(db, user.id)
    return user, token


async def reset_password(db: AsyncSession, token: str, new_password: str) -> User:
    user = await users_service.find_by_password_reset_token(db, token)
    if user is None:
        raise InvalidActionTokenError(
            "This password reset link is invalid or has already been used."
        )
    if _is_expired(user.password_reset_token_expires_at):
        raise ActionTokenExpiredError(
            "This password reset link has expired. Please request a new one."
        )
    return await users_service.reset_password(db, user.id, new_password)


# ── Account deletion ─────────────────────────────────────────────────────────

async def delete_account(
    db: AsyncSession,
    user_id: uuid.UUID,
    confirmation: str,
    password: str | None,
) -> None:
    if confirmation != DELETE_CONFIRMATION:
        raise InvalidConfirmationError()

    user = await users_service.get_user_by_id(db, user_id)
    if user is None:
        raise UserNotFoundError()
    if user.password_hash:
        if not password:
            raise IncorrectPasswordError("Password is required to delete your account.")
        if not verify_password(password, user.password_hash):
            raise IncorrectPasswordError("Incorrect password.")

    await users_service.delete_user(db, user_id)


# ── OAuth ────────────────────────────────────────────────────────────────────

async def validate_oauth_login(
    db: AsyncSession, profile: OAuthProfile, settings: Settings
) -> tuple[User, str]:
    """
    Resolve an OAuth profile to a local user and issue a JWT.

    A known provider identity refreshes the stored avatar and tokens.  Otherwise
    the profile e-mail is matched against existing accounts, and a verified,
    password-less account is created when nothing matches.  Blocked accounts are
    rejected before anything about them is written.
    """
    result = await db.execute(
        select(ExternalAuth).where(
            ExternalAuth.provider == profile.provider,
            ExternalAuth.provider_id == profile.provider_id,
        )
    )
    link = result.scalar_one_or_none()
    user = link.user if link is not None else await users_service.get_user_by_email(db, profile.email)

    if user is not None and not user.is_active:
        raise AccountBlockedError()

    if link is not None:
        link.access_token = profile.access_token or link.access_token
        link.refresh_token = profile.refresh_token or link.refresh_token
    else:
        if user is None:
            user = await users_service.create_user(
                db,
                email=profile.email,
                full_name=profile.full_name,
                is_email_verified=True,
                avatar_url=profile.avatar_url,
            )
        db.add(ExternalAuth(
            provider=profile.provider,
            provider_id=profile.provider_id,
            user_id=user.id,
            access_token=profile.access_token,
            refresh_token=profile.refresh_token,
        ))
    if profile.avatar_url and user.oauth_avatar_url != profile.avatar_url:
        user.oauth_avatar_url = profile.avatar_url
    await db.flush()
    return user, issue_token(user, settings)
