"""Request-level auth dependencies shared by every router."""
from __future__ import annotations

from uuid import UUID

from fastapi import Depends, HTTPException, Request, status
from pydantic import BaseModel, ConfigDict

from learnix.config import get_settings
from learnix.exceptions import TokenInvalidError
from learnix.models.enums import UserRole
from learnix.security import decode_access_token, extract_token


class CurrentUser(BaseModel):
    """User context read from the JWT."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    id: UUID
    email: str
    role: UserRole | None = None

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN


def _payload_to_user(payload: dict) -> CurrentUser:
    role = payload.get("role")
    return CurrentUser(
        id=UUID(payload["sub"]),
        email=payload.get("email") or "",
        role=UserRole(role) if role else None,
    )


async def get_current_user_optional(request: Request) -> CurrentUser | None:
    settings = get_settings()
    token = extract_token(request, settings)
    if not token:
        return None
    try:
        return _payload_to_user(decode_access_token(token, settings))
    except (TokenInvalidError, ValueError, KeyError):
        return None


async def get_current_user(
    user: CurrentUser | None = Depends(get_current_user_optional),
) -> CurrentUser:
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user


# ── Role guards ───────────────────────────────────────────────────────────────

def require_roles(*roles: UserRole):
    """Dependency factory: 403 unless the caller holds one of *roles*."""
    allowed = set(roles)

    def _guard(current_user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
        if current_user.role not in allowed:
            current = current_user.role.value if current_user.role else "none"
            required = " or ".join(r.value for r in roles)
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=(
                    f'Insufficient permissions. Your current role is "{current}". '
                    f"Required: {required}"
                ),
            )
        return current_user

    return _guard


require_admin = require_roles(UserRole.ADMIN)
require_instructor = require_roles(UserRole.INSTRUCTOR)
require_learner = require_roles(UserRole.STUDENT, UserRole.INSTRUCTOR)
require_author = require_roles(UserRole.INSTRUCTOR, UserRole.ADMIN)
