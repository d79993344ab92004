"""
Auth controller (request orchestration layer).

Responsibilities:
  - Call service functions (which own business logic).
  - Queue transactional e-mails on BackgroundTasks.
  - Set or clear the session cookie on the outgoing response.
  - Map domain exceptions to HTTPException.
"""
from __future__ import annotations

import logging
import uuid
from urllib.parse import urlencode

from fastapi import BackgroundTasks, HTTPException, Response, status
from fastapi.responses import RedirectResponse
from sqlalchemy.ext.asyncio import AsyncSession

from learnix.auth import oauth, service
from learnix.auth.cookies import (
    auth_cookie_value,
    clear_auth_cookie,
    set_auth_cookie,
    write_auth_cookie,
)
from learnix.auth.schemas import (
    ActivationResponse,
    ChangePasswordRequest,
    DeleteAccountRequest,
    HasPasswordResponse,
    LoginRequest,
    MessageResponse,
    RegisterRequest,
    ResetPasswordRequest,
    SelectRoleRequest,
    SelectRoleResponse,
    UpdateProfileRequest,
    UserMessageResponse,
)
from learnix.config import Settings
from learnix.exceptions import (
    AccountBlockedError,
    ActionTokenExpiredError,
    AlreadyVerifiedError,
    DevToolsDisabledError,
    EmailAlreadyExistsError,
    EmailNotVerifiedError,
    IncorrectPasswordError,
    InvalidActionTokenError,
    InvalidConfirmationError,
    InvalidCredentialsError,
    OAuthError,
    PasswordNotSetError,
    TokenInvalidError,
    UserNotFoundError,
)
from learnix.mail import send as mail
from learnix.models import AuthProvider, UserRole
from learnix.users import service as users_service
from learnix.users.schemas import UserResponse

logger = logging.getLogger(__name__)

RESEND_ACTIVATION_MESSAGE = (
    "If an account exists with this email, an activation link has been sent."
)
FORGOT_PASSWORD_MESSAGE = (
    "If an account exists with this email, a password reset link has been sent."
)


def _handle_domain_error(exc: Exception) -> HTTPException:
    if isinstance(exc, HTTPException):
        return exc
    if isinstance(exc, (
        InvalidCredentialsError,
        EmailNotVerifiedError,
        AccountBlockedError,
        UserNotFoundError,
        TokenInvalidError,
        DevToolsDisabledError,
    )):
        return HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=exc.message)
    if isinstance(exc, EmailAlreadyExistsError):
        return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=exc.message)
    if isinstance(exc, (
        InvalidActionTokenError,
        ActionTokenExpiredError,
        AlreadyVerifiedError,
        PasswordNotSetError,
        IncorrectPasswordError,
        InvalidConfirmationError,
        OAuthError,
    )):
        return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=exc.message)
    logger.exception("Unhandled error in auth controller", exc_info=exc)
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Internal error.")


# ── Register / login / logout ─────────────────────────────────────────────────

async def register(
    db: AsyncSession,
    body: RegisterRequest,
    settings: Settings,
    background_tasks: BackgroundTasks,
) -> UserMessageResponse:
    try:
        user, token = await service.register(
            db, email=body.email, password=body.password, full_name=body.full_name
        )
    except Exception as exc:
        raise _handle_domain_error(exc) from exc

    background_tasks.add_task(
        mail.send_activation_email, user.email, user.full_name, token, settings
    )
    return UserMessageResponse(
        user=UserResponse.model_validate(user),
        message="Registration successful. Please check your email to activate your account.",
    )


async def login(
    db: AsyncSession,
    body: LoginRequest,
    response: Response,
    settings: Settings,
) -> UserMessageResponse:
    try:
        user = await service.authenticate_user(db, body.email, body.password)
    except Exception as exc:
        raise _handle_domain_error(exc) from exc

    set_auth_cookie(response, service.issue_token(user, settings), settings)
    return UserMessageResponse(user=UserResponse.model_validate(user), message="Login successful")


def logout(response: Response, settings: Settings) -> MessageResponse:
    clear_auth_cookie(response, settings)
    return MessageResponse(message="Logout successful")


# ── Activation ────────────────────────────────────────────────────────────────

async def activate(
    db: AsyncSession,
    token: str,
    settings: Settings,
    background_tasks: BackgroundTasks,
) -> ActivationResponse:
    try:
        user, already_activated = await service.activate_account(db, token)
    except Exception as exc:
        raise _handle_domain_error(exc) from exc

    if already_activated:
        return ActivationResponse(
            message="Account is already activated. You can now log in.",
            already_activated=True,
        )
    background_tasks.add_task(mail.send_welcome_email, user.email, user.full_name, settings)
    return ActivationResponse(message="Account activated successfully. You can now log in.")


async def resend_activation(
    db: AsyncSession,
    email: str,
    settings: Settings,
    background_tasks: BackgroundTasks,
) -> MessageResponse:
    try:
        result = await service.resend_activation(db, email)
    except Exception as exc:
        raise _handle_domain_error(exc) from exc

    if result is not None:
        user, token = result
        background_tasks.add_task(
            mail.send_activation_email, user.email, user.full_name, token, settings
        )
    return MessageResponse(message=RESEND_ACTIVATION_MESSAGE)


# ── Current user ──────────────────────────────────────────────────────────────

async def get_me(db: AsyncSession, user_id: uuid.UUID) -> UserResponse:
    try:
        user = await service.get_active_user(db, user_id)
        return UserResponse.model_validate(user)
    except Exception as exc:
        raise _handle_domain_error(exc) from exc


async def select_role(
    db: AsyncSession,
    user_id: uuid.UUID,
    body: SelectRoleRequest,
    response: Response,
    settings: Settings,
) -> SelectRoleResponse:
    try:
        user = await users_service.update_role(db, user_id, body.role)
    except Exception as exc:
        raise _handle_domain_error(exc) from exc

    token = service.issue_token(user, settings)
    set_auth_cookie(response, token, settings)
    return SelectRoleResponse(
        user=UserResponse.model_validate(user),
        access_token=token,
        message=f"Role selected successfully. You can now access {body.role.value} features.",
    )


async def update_profile(
    db: AsyncSession, user_id: uuid.UUID, body: UpdateProfileRequest
) -> UserMessageResponse:
    try:
        user = await users_service.update_profile(db, user_id, body.model_dump(exclude_unset=True))
    except Exception as exc:
        raise _handle_domain_error(exc) from exc
    return UserMessageResponse(
        user=UserResponse.model_validate(user), message="Profile updated successfully"
    )


async def has_password(db: AsyncSession, user_id: uuid.UUID) -> HasPasswordResponse:
    return HasPasswordResponse(has_password=await users_service.has_password(db, user_id))


async def dev_promote(
    db: AsyncSession,
    user_id: uuid.UUID,
    response: Response,
    settings: Settings,
) -> UserMessageResponse:
    try:
        if settings.is_production:
            raise DevToolsDisabledError()
        user = await users_service.update_role(db, user_id, UserRole.INSTRUCTOR)
    except Exception as exc:
        raise _handle_domain_error(exc) from exc

    set_auth_cookie(response, service.issue_token(user, settings), settings)
    return UserMessageResponse(
        user=UserResponse.model_validate(user),
        message="Successfully promoted to Instructor. Please return to the app.",
    )


# ── Passwords ─────────────────────────────────────────────────────────────────

async def forgot_password(
    db: AsyncSession,
    email: str,
    settings: Settings,
    background_tasks: BackgroundTasks,
) -> MessageResponse:
    result = await service.forgot_password(db, email)
    if result is not None:
        user, token = result
        background_tasks.add_task(
            mail.send_password_reset_email, user.email, user.full_name, token, settings
        )
    return MessageResponse(message=FORGOT_PASSWORD_MESSAGE)


async def reset_password(
    db: AsyncSession,
    body: ResetPasswordRequest,
    settings: Settings,
    background_tasks: BackgroundTasks,
) -> MessageResponse:
    try:
        user = await service.reset_password(db, body.token, body.new_password)
    except Exception as exc:
        raise _handle_domain_error(exc) from exc

    background_tasks.add_task(mail.send_password_changed_email, user.email, user.full_name, settings)
    return MessageResponse(message="Password has been reset successfully. You can now log in.")


async def change_password(
    db: AsyncSession,
    user_id: uuid.UUID,
    body: ChangePasswordRequest,
    settings: Settings,
    background_tasks: BackgroundTasks,
) -> MessageResponse:
    try:
        user = await users_service.change_password(
            db, user_id, body.current_password, body.new_password
        )
    except Exception as exc:
        raise _handle_domain_error(exc) from exc

    background_tasks.add_task(mail.send_password_changed_email, user.email, user.full_name, settings)
    return MessageResponse(message="Password changed successfully.")


async def delete_account(
    db: AsyncSession,
    user_id: uuid.UUID,
    body: DeleteAccountRequest,
    response: Response,
    settings: Settings,
) -> MessageResponse:
    try:
        await service.delete_account(db, user_id, body.confirmation, body.password)
    except Exception as exc:
        raise _handle_domain_error(exc) from exc

    clear_auth_cookie(response, settings)
    return MessageResponse(message="Account deleted successfully.")


# ── OAuth ─────────────────────────────────────────────────────────────────────

def oauth_authorize_url(provider: AuthProvider, settings: Settings, state: str) -> str:
    if provider == AuthProvider.GOOGLE:
        return oauth.google_authorize_url(settings, state)
    return oauth.github_authorize_url(settings, state)


async def oauth_callback(
    db: AsyncSession,
    provider: AuthProvider,
    code: str | None,
    state: str | None,
    expected_state: str | None,
    settings: Settings,
) -> RedirectResponse:
    """Finish the provider round-trip; every outcome is a redirect to the SPA."""
    failure_url = f"{settings.frontend_url}/login?error=oauth_failed"
    if not code or not state or state != expected_state:
        logger.warning("OAuth %s callback rejected: missing code or state mismatch", provider.value)
        return RedirectResponse(failure_url)

    try:
        if provider == AuthProvider.GOOGLE:
            profile = await oauth.exchange_google_code(code, settings)
        else:
            profile = await oauth.exchange_github_code(code, settings)
        _, jwt_token = await service.validate_oauth_login(db, profile, settings)
    except AccountBlockedError:
        return RedirectResponse(f"{settings.frontend_url}/blocked")
    except Exception:
        logger.exception("OAuth %s login failed", provider.value)
        return RedirectResponse(failure_url)

    cookie_value = auth_cookie_value(jwt_token, settings)
    redirect = RedirectResponse(
        f"{settings.frontend_url}/auth/callback?{urlencode({'token': cookie_value})}"
    )
    write_auth_cookie(redirect, cookie_value, settings)
    return redirect
