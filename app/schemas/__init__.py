"""Pydantic request/response schemas."""

from app.schemas.admin import (
    AdminStatsResponse,
    AdminWelcomeResponse,
    RoleUpdateRequest,
    UserListItem,
    UsersListResponse,
)
from app.schemas.auth import (
    CurrentUser,
    LoginRequest,
    LoginResponse,
    Principal,
    RefreshResponse,
    SignupRequest,
    SignupResponse,
    TokenPayload,
    TokenVerification,
)
from app.schemas.health import HealthResponse
from app.schemas.secrets import SecretCheckResponse, SecretMetadata, SecretsListResponse

__all__ = [
    "AdminStatsResponse",
    "AdminWelcomeResponse",
    "CurrentUser",
    "HealthResponse",
    "LoginRequest",
    "LoginResponse",
    "Principal",
    "RefreshResponse",
    "RoleUpdateRequest",
    "SecretCheckResponse",
    "SecretMetadata",
    "SecretsListResponse",
    "SignupRequest",
    "SignupResponse",
    "TokenPayload",
    "TokenVerification",
    "UserListItem",
    "UsersListResponse",
]
