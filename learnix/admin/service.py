"""Platform-wide statistics for the admin panel."""
from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncSession

from learnix.courses import service as courses_service
from learnix.users import service as users_service


async def get_system_stats(db: AsyncSession) -> dict:
    return {
        "total_users": await users_service.count_users(db),
        "total_courses": await courses_service.count_published(db),
        "total_enrollments": await courses_service.count_published_enrollments(db),
        "user_growth": await users_service.user_growth(db),
        "course_growth": await courses_service.course_growth(db),
        "enrollment_growth": await courses_service.enrollment_growth(db),
        "revenue_growth": await courses_service.revenue_growth(db),
        "avg_completion_rate": await courses_service.average_completion_rate(db),
        "total_revenue": await courses_service.total_revenue(db),
        "active_instructors": await users_service.count_active_instructors(db),
        "category_distribution": await courses_service.category_distribution(db),
    }
