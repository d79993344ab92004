"""Dashboard router: figures for the signed-in user's home page."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from learnix.dashboard import controller
from learnix.dashboard.schemas import ActivityResponse, DashboardStats, ProgressResponse
from learnix.database import get_db
from learnix.dependencies import CurrentUser, get_current_user

router = APIRouter(prefix="/dashboard", tags=["Dashboard"])


@router.get(
    "/stats",
    response_model=DashboardStats,
    summary="Headline numbers for my role",
    description="Admins get platform totals, instructors figures for their own courses and "
    "everyone else their learning totals.",
)
async def stats(
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> DashboardStats:
    return await controller.stats(db, current_user)


@router.get("/progress", response_model=ProgressResponse, summary="Progress in my current courses")
async def progress(
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> ProgressResponse:
    return await controller.progress(db, current_user)


@router.get("/activity", response_model=ActivityResponse, summary="My recent activity")
async def activity(
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> ActivityResponse:
    return await controller.activity(db, current_user)
