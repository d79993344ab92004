from __future__ import annotations

from pydantic import BaseModel

from learnix.models.enums import UserRole


class UpdateRoleRequest(BaseModel):
    role: UserRole


class UpdateStatusRequest(BaseModel):
    is_active: bool


class GrowthPoint(BaseModel):
    date: str
    count: float


class CategoryCount(BaseModel):
    name: str
    value: int


class AdminStatsResponse(BaseModel):
    total_users: int
    total_courses: int
    total_enrollments: int
    user_growth: list[GrowthPoint]
    course_growth: list[GrowthPoint]
    enrollment_growth: list[GrowthPoint]
    revenue_growth: list[GrowthPoint]
    avg_completion_rate: int
    total_revenue: float
    active_instructors: int
    category_distribution: list[CategoryCount]
