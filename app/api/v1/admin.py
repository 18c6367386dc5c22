"""Admin routes: dashboard stats, user roles, secret metadata. Guarded by permissions."""

import logging
from datetime import UTC, datetime
from typing import Annotated

from fastapi import APIRouter, Depends, Query
from sqlalchemy import distinct, func
from sqlalchemy.orm import Session

from app.api.v1.deps import require_permission
from app.core.database import get_db
from app.core.errors import NotFoundError
from app.core.permissions import Permission, Role
from app.models import Course, Enrollment, Lesson, User
from app.schemas.admin import (
    AdminStatsResponse,
    AdminWelcomeResponse,
    RoleUpdateRequest,
    UserListItem,
    UsersListResponse,
)
from app.schemas.auth import Principal
from app.schemas.secrets import SecretCheckResponse, SecretsListResponse
from app.services import secret_store

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("", response_model=AdminWelcomeResponse)
def admin_home(
    principal: Annotated[Principal, Depends(require_permission(Permission.VIEW_ANALYTICS))],
) -> AdminWelcomeResponse:
    return AdminWelcomeResponse(
        message="Welcome! You have access to the admin area.",
        user_id=principal.user_id,
        role=principal.role,
    )


@router.get("/stats", response_model=AdminStatsResponse)
def admin_stats(
    _principal: Annotated[Principal, Depends(require_permission(Permission.VIEW_ANALYTICS))],
    db: Annotated[Session, Depends(get_db)],
) -> AdminStatsResponse:
    """Counts of courses, lessons, enrollments, users, and students with an enrollment."""
    active_students = (
        db.query(func.count(distinct(Enrollment.user_id)))
        .join(User, User.id == Enrollment.user_id)
        .filter(User.role == Role.STUDENT.value)
        .scalar()
    )
    return AdminStatsResponse(
        total_courses=db.query(func.count(Course.id)).scalar() or 0,
        total_lessons=db.query(func.count(Lesson.id)).scalar() or 0,
        total_enrollments=db.query(func.count(Enrollment.id)).scalar() or 0,
        total_users=db.query(func.count(User.id)).scalar() or 0,
        active_students=active_students or 0,
    )


@router.get("/users", response_model=UsersListResponse)
def list_users(
    _principal: Annotated[Principal, Depends(require_permission(Permission.MANAGE_USERS))],
    db: Annotated[Session, Depends(get_db)],
) -> UsersListResponse:
    users = db.query(User).order_by(User.id).all()
    return UsersListResponse(users=[UserListItem.model_validate(u) for u in users])


@router.patch("/users/{user_id}/role", response_model=UserListItem)
def update_user_role(
    user_id: int,
    body: RoleUpdateRequest,
    principal: Annotated[Principal, Depends(require_permission(Permission.MANAGE_USERS))],
    db: Annotated[Session, Depends(get_db)],
) -> UserListItem:
    """
    Change a user's role. Tokens already issued keep the old role until they
    expire (refresh tokens carry the role they were minted with).
    """
    user = db.query(User).filter(User.id == user_id).first()
    if user is None:
        raise NotFoundError("User not found")
    previous = user.role
    user.role = body.role.value
    db.commit()
    db.refresh(user)
    logger.info(
        "User role changed",
        extra={
            "event": "admin.role_change",
            "actor_id": principal.user_id,
            "user_id": user.id,
            "from_role": previous,
            "to_role": user.role,
        },
    )
    return UserListItem.model_validate(user)


@router.get("/secrets", response_model=SecretsListResponse)
def list_secrets(
    _principal: Annotated[Principal, Depends(require_permission(Permission.MANAGE_SECRETS))],
    db: Annotated[Session, Depends(get_db)],
    environment: Annotated[str | None, Query(max_length=64)] = None,
) -> SecretsListResponse:
    """Secret names and timestamps only; values never leave the server."""
    return SecretsListResponse(secrets=secret_store.list_secrets(db, environment))


@router.get("/secrets/{name}/check", response_model=SecretCheckResponse)
def check_secret(
    name: str,
    _principal: Annotated[Principal, Depends(require_permission(Permission.MANAGE_SECRETS))],
    db: Annotated[Session, Depends(get_db)],
    environment: Annotated[str | None, Query(max_length=64)] = None,
) -> SecretCheckResponse:
    """Confirm a secret decrypts to a non-empty value without returning it."""
    has_value = secret_store.has_secret(db, name, environment)
    return SecretCheckResponse(
        name=name,
        environment=environment or secret_store.default_environment(),
        has_value=has_value,
        checked_at=datetime.now(UTC),
    )
