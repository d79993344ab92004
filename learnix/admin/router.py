"""Admin router: user management and platform statistics. Admin role only."""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from learnix.admin import controller
from learnix.admin.schemas import AdminStatsResponse, UpdateRoleRequest, UpdateStatusRequest
from learnix.database import get_db
from learnix.dependencies import require_admin
from learnix.models.enums import UserRole
from learnix.users.schemas import SortOrder, UserFilter, UserResponse, UserSortBy

router = APIRouter(prefix="/admin", tags=["Admin"], dependencies=[Depends(require_admin)])


@router.get(
    "/users",
    response_model=list[UserResponse],
    summary="List users",
    description="`search` matches full name or e-mail, case-insensitively.",
)
async def list_users(
    role: UserRole | None = Query(None),
    is_active: bool | None = Query(None),
    is_email_verified: bool | None = Query(None),
    search: str | None = Query(None, max_length=200),
    sort_by: UserSortBy = Query(UserSortBy.CREATED_AT),
    sort_order: SortOrder = Query(SortOrder.DESC),
    db: AsyncSession = Depends(get_db),
) -> list[UserResponse]:
    filters = UserFilter(
        role=role,
        is_active=is_active,
        is_email_verified=is_email_verified,
        search=search,
        sort_by=sort_by,
        sort_order=sort_order,
    )
    return await controller.list_users(db, filters)


@router.patch("/users/{user_id}/role", response_model=UserResponse, summary="Change a user's role")
async def update_role(
    user_id: UUID,
    body: UpdateRoleRequest,
    db: AsyncSession = Depends(get_db),
) -> UserResponse:
    return await controller.update_role(db, user_id, body)


@router.patch(
    "/users/{user_id}/status",
    response_model=UserResponse,
    summary="Block or unblock a user",
)
async def update_status(
    user_id: UUID,
    body: UpdateStatusRequest,
    db: AsyncSession = Depends(get_db),
) -> UserResponse:
    return await controller.update_status(db, user_id, body)


@router.get("/stats", response_model=AdminStatsResponse, summary="Platform statistics")
async def stats(db: AsyncSession = Depends(get_db)) -> AdminStatsResponse:
    return await controller.stats(db)
