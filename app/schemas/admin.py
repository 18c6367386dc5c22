"""Schemas for admin endpoints (never include password hashes)."""

from pydantic import BaseModel, ConfigDict, Field

from app.core.permissions import Role


class AdminWelcomeResponse(BaseModel):
    success: bool = True
    message: str
    user_id: int
    role: Role


class AdminStatsResponse(BaseModel):
    """Aggregate counts for the admin dashboard."""

    model_config = ConfigDict(populate_by_name=True)

    total_courses: int = Field(..., alias="totalCourses")
    total_lessons: int = Field(..., alias="totalLessons")
    total_enrollments: int = Field(..., alias="totalEnrollments")
    total_users: int = Field(..., alias="totalUsers")
    active_students: int = Field(..., alias="activeStudents")


class UserListItem(BaseModel):
    """User entry for admin list (no password)."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    email: str
    name: str
    role: Role
    xp: int


class UsersListResponse(BaseModel):
    """Response for GET /admin/users."""

    users: list[UserListItem]


class RoleUpdateRequest(BaseModel):
    role: Role
