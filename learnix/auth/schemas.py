"""
Pydantic V2 request/response schemas for the auth domain.

  - *Request  models:  input from the client (strict extra="forbid")
  - *Response models:  output to the client (no hashes or one-time tokens)
"""
from __future__ import annotations

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from learnix.models import UserRole
from learnix.users.schemas import UserResponse


class _Base(BaseModel):
    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)


# ── Email + password ─────────────────────────────────────────────────────────

class RegisterRequest(_Base):
    email: EmailStr
    password: str = Field(min_length=6, max_length=128)
    full_name: str = Field(min_length=1, max_length=150)
    # Accepted for client compatibility; the role is picked later via select-role
    role: UserRole | None = None


class LoginRequest(_Base):
    email: EmailStr
    password: str = Field(min_length=1, max_length=128)


class EmailRequest(_Base):
    """Body for resend-activation and forgot-password."""

    email: EmailStr


class ResetPasswordRequest(_Base):
    token: str = Field(min_length=1, max_length=128)
    new_password: str = Field(min_length=6, max_length=128)


class ChangePasswordRequest(_Base):
    current_password: str = Field(min_length=1, max_length=128)
    new_password: str = Field(min_length=6, max_length=128)


class SelectRoleRequest(_Base):
    role: UserRole

    @field_validator("role")
    @classmethod
    def _not_admin(cls, value: UserRole) -> UserRole:
        if value == UserRole.ADMIN:
            raise ValueError("role must be student or instructor")
        return value


class UpdateProfileRequest(_Base):
    full_name: str | None = Field(default=None, min_length=1, max_length=150)
    # Explicit null clears the custom avatar so the OAuth one is used
    avatar_url: str | None = Field(default=None, max_length=500)


class DeleteAccountRequest(_Base):
    confirmation: str
    password: str | None = None


# ── Responses ────────────────────────────────────────────────────────────────

class MessageResponse(BaseModel):
    message: str


class UserMessageResponse(BaseModel):
    user: UserResponse
    message: str


class ActivationResponse(BaseModel):
    message: str
    already_activated: bool = False


class SelectRoleResponse(BaseModel):
    user: UserResponse
    access_token: str
    message: str


class HasPasswordResponse(BaseModel):
    has_password: bool
