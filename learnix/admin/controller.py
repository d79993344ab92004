from __future__ import annotations

from uuid import UUID

from fastapi import HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from learnix.admin import service
from learnix.admin.schemas import AdminStatsResponse, UpdateRoleRequest, UpdateStatusRequest
from learnix.exceptions import UserNotFoundError
from learnix.users import service as users_service
from learnix.users.schemas import UserFilter, UserResponse


def _handle_domain_error(exc: Exception) -> HTTPException:
    if isinstance(exc, UserNotFoundError):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=exc.message)
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Internal error.")


async def list_users(db: AsyncSession, filters: UserFilter) -> list[UserResponse]:
    users = await users_service.list_users(db, filters)
    return [UserResponse.model_validate(u) for u in users]


async def update_role(db: AsyncSession, user_id: UUID, body: UpdateRoleRequest) -> UserResponse:
    try:
        user = await users_service.update_role(db, user_id, body.role)
        return UserResponse.model_validate(user)
    except Exception as exc:
        raise _handle_domain_error(exc) from exc


async def update_status(db: AsyncSession, user_id: UUID, body: UpdateStatusRequest) -> UserResponse:
    try:
        user = await users_service.update_status(db, user_id, body.is_active)
        return UserResponse.model_validate(user)
    except Exception as exc:
        raise _handle_domain_error(exc) from exc


async def stats(db: AsyncSession) -> AdminStatsResponse:
    return AdminStatsResponse(**await service.get_system_stats(db))
