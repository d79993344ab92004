from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncSession

from learnix.dashboard import service
from learnix.dashboard.schemas import (
    ActivityItem,
    ActivityResponse,
    AdminDashboardStats,
    CourseProgressItem,
    DashboardStats,
    InstructorDashboardStats,
    ProgressResponse,
    StudentDashboardStats,
)
from learnix.dependencies import CurrentUser
from learnix.models import UserRole


async def stats(db: AsyncSession, user: CurrentUser) -> DashboardStats:
    data = await service.get_stats(db, user)
    if user.role == UserRole.ADMIN:
        return AdminDashboardStats(**data)
    if user.role == UserRole.INSTRUCTOR:
        return InstructorDashboardStats(**data)
    return StudentDashboardStats(**data)


async def progress(db: AsyncSession, user: CurrentUser) -> ProgressResponse:
    items = await service.get_progress(db, user.id)
    return ProgressResponse(current_courses=[CourseProgressItem(**item) for item in items])


async def activity(db: AsyncSession, user: CurrentUser) -> ActivityResponse:
    items = await service.get_activity(db, user)
    return ActivityResponse(activities=[ActivityItem(**item) for item in items])
