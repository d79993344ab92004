"""Auth router: HTTP layer only.  Cookie handling and e-mails live in the controller."""
from fastapi import APIRouter, BackgroundTasks, Depends, Query, Request, Response, status
from fastapi.responses import RedirectResponse
from sqlalchemy.ext.asyncio import AsyncSession

from learnix.auth import controller
from learnix.auth.cookies import set_oauth_state_cookie
from learnix.auth.oauth import OAUTH_STATE_COOKIE, new_state
from learnix.auth.schemas import (
    ActivationResponse,
    ChangePasswordRequest,
    DeleteAccountRequest,
    EmailRequest,
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
from learnix.config import Settings, get_settings
from learnix.database import get_db
from learnix.dependencies import CurrentUser, get_current_user
from learnix.models import AuthProvider
from learnix.rate_limit import limiter
from learnix.users.schemas import UserResponse

router = APIRouter(prefix="/auth", tags=["auth"])


# ── Email + Password ──────────────────────────────────────────────────────────

@router.post(
    "/register",
    response_model=UserMessageResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register a new account (email + password)",
    description="Creates an unverified account with no role and e-mails an activation link.",
)
@limiter.limit("5/minute")
async def register(
    request: Request,
    body: RegisterRequest,
    background_tasks: BackgroundTasks,
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> UserMessageResponse:
    return await controller.register(db, body, settings, background_tasks)


@router.post(
    "/login",
    response_model=UserMessageResponse,
    summary="Log in with email + password",
    description="Sets the encrypted `access_token` cookie on success.",
)
@limiter.limit("10/minute")
async def login(
    request: Request,
    body: LoginRequest,
    response: Response,
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> UserMessageResponse:
    return await controller.login(db, body, response, settings)


@router.post("/logout", response_model=MessageResponse, summary="Clear the session cookie")
async def logout(
    response: Response,
    settings: Settings = Depends(get_settings),
) -> MessageResponse:
    return controller.logout(response, settings)


# ── Activation ────────────────────────────────────────────────────────────────

@router.get(
    "/activate",
    response_model=ActivationResponse,
    summary="Activate an account from the e-mailed link",
    description="Idempotent: a second click within the grace window reports `already_activated`.",
)
async def activate(
    background_tasks: BackgroundTasks,
    token: str = Query(..., min_length=1),
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> ActivationResponse:
    return await controller.activate(db, token, settings, background_tasks)


@router.post(
    "/resend-activation",
    response_model=MessageResponse,
    summary="Send a fresh activation link",
)
@limiter.limit("3/minute")
async def resend_activation(
    request: Request,
    body: EmailRequest,
    background_tasks: BackgroundTasks,
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> MessageResponse:
    return await controller.resend_activation(db, body.email, settings, background_tasks)


# ── OAuth ─────────────────────────────────────────────────────────────────────

def _oauth_redirect(provider: AuthProvider, settings: Settings) -> RedirectResponse:
    state = new_state()
    redirect = RedirectResponse(controller.oauth_authorize_url(provider, settings, state))
    set_oauth_state_cookie(redirect, state, settings)
    return redirect


async def _oauth_callback(
    provider: AuthProvider,
    request: Request,
    code: str | None,
    state: str | None,
    db: AsyncSession,
    settings: Settings,
) -> RedirectResponse:
    redirect = await controller.oauth_callback(
        db, provider, code, state, request.cookies.get(OAUTH_STATE_COOKIE), settings
    )
    redirect.delete_cookie(OAUTH_STATE_COOKIE, path="/")
    return redirect


@router.get("/google", summary="Start Google sign-in")
async def google_login(settings: Settings = Depends(get_settings)) -> RedirectResponse:
    return _oauth_redirect(AuthProvider.GOOGLE, settings)


@router.get("/google/callback", summary="Google OAuth callback")
async def google_callback(
    request: Request,
    code: str | None = None,
    state: str | None = None,
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> RedirectResponse:
    return await _oauth_callback(AuthProvider.GOOGLE, request, code, state, db, settings)


@router.get("/github", summary="Start GitHub sign-in")
async def github_login(settings: Settings = Depends(get_settings)) -> RedirectResponse:
    return _oauth_redirect(AuthProvider.GITHUB, settings)


@router.get("/github/callback", summary="GitHub OAuth callback")
async def github_callback(
    request: Request,
    code: str | None = None,
    state: str | None = None,
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> RedirectResponse:
    return await _oauth_callback(AuthProvider.GITHUB, request, code, state, db, settings)


# ── Current user ──────────────────────────────────────────────────────────────

@router.get("/me", response_model=UserResponse, summary="Fresh profile of the caller")
async def me(
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> UserResponse:
    return await controller.get_me(db, current_user.id)


@router.post(
    "/select-role",
    response_model=SelectRoleResponse,
    summary="Pick student or instructor after sign-up",
    description="Re-issues the JWT and cookie so the new role applies immediately.",
)
async def select_role(
    body: SelectRoleRequest,
    response: Response,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
    settings: Settings = Depends(get_settings),
) -> SelectRoleResponse:
    return await controller.select_role(db, current_user.id, body, response, settings)


@router.patch("/profile", response_model=UserMessageResponse, summary="Update name or avatar")
async def update_profile(
    body: UpdateProfileRequest,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> UserMessageResponse:
    return await controller.update_profile(db, current_user.id, body)


@router.get("/has-password", response_model=HasPasswordResponse)
async def has_password(
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> HasPasswordResponse:
    return await controller.has_password(db, current_user.id)


@router.delete(
    "/account",
    response_model=MessageResponse,
    summary="Delete the caller's account",
    description='Body must carry `confirmation: "DELETE"`, plus the password when one is set.',
)
async def delete_account(
    body: DeleteAccountRequest,
    response: Response,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
    settings: Settings = Depends(get_settings),
) -> MessageResponse:
    return await controller.delete_account(db, current_user.id, body, response, settings)


@router.get(
    "/dev/promote",
    response_model=UserMessageResponse,
    summary="Promote the caller to instructor (non-production only)",
)
async def dev_promote(
    response: Response,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
    settings: Settings = Depends(get_settings),
) -> UserMessageResponse:
    return await controller.dev_promote(db, current_user.id, response, settings)


# ── Passwords ─────────────────────────────────────────────────────────────────

@router.post("/forgot-password", response_model=MessageResponse, summary="Request a reset link")
@limiter.limit("3/minute")
async def forgot_password(
    request: Request,
    body: EmailRequest,
    background_tasks: BackgroundTasks,
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> MessageResponse:
    return await controller.forgot_password(db, body.email, settings, background_tasks)


@router.post("/reset-password", response_model=MessageResponse, summary="Set a new password")
async def reset_password(
    body: ResetPasswordRequest,
    background_tasks: BackgroundTasks,
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> MessageResponse:
    return await controller.reset_password(db, body, settings, background_tasks)


@router.post("/change-password", response_model=MessageResponse, summary="Change password")
async def change_password(
    body: ChangePasswordRequest,
    background_tasks: BackgroundTasks,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
    settings: Settings = Depends(get_settings),
) -> MessageResponse:
    return await controller.change_password(db, current_user.id, body, settings, background_tasks)
