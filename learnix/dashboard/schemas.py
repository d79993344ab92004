from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel


class AdminDashboardStats(BaseModel):
    total_users: int
    total_courses: int
    total_enrollments: int
    active_students: int
    new_users_count: int
    new_courses_count: int


class InstructorDashboardStats(BaseModel):
    courses_created: int
    total_students: int
    active_students: int
    new_students_count: int


class StudentDashboardStats(BaseModel):
    courses_enrolled: int
    hours_learned: int
    average_score: int


DashboardStats = AdminDashboardStats | InstructorDashboardStats | StudentDashboardStats


class CourseProgressItem(BaseModel):
    id: UUID
    title: str
    progress: int
    total_lessons: int
    completed_lessons: int


class ProgressResponse(BaseModel):
    current_courses: list[CourseProgressItem]


class ActivityItem(BaseModel):
    id: UUID
    type: str
    title: str
    course: str | None = None
    timestamp: datetime


class ActivityResponse(BaseModel):
    activities: list[ActivityItem]
