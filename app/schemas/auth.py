"""Request/response schemas for auth endpoints and token claims."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from app.core.permissions import Role


class SignupRequest(BaseModel):
    """Account creation payload. Role is optional and restricted server-side."""

    email: str = Field(..., min_length=1, max_length=255, description="Email address")
    password: str = Field(..., min_length=1, max_length=128, description="Password")
    name: str = Field(..., min_length=1, max_length=255, description="Display name")
    role: str | None = Field(default=None, description="STUDENT or ADMIN; other values become STUDENT")


class LoginRequest(BaseModel):
    """Credentials for login."""

    email: str = Field(..., min_length=1, max_length=255, description="Email address")
    password: str = Field(..., min_length=1, max_length=128, description="Password")


class SignupUser(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    email: str
    name: str
    role: Role


class LoginUser(BaseModel):
    """Minimal user projection returned on login (never the password hash)."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    email: str
    role: Role


class SignupResponse(BaseModel):
    success: bool = True
    message: str = "Signup successful"
    user: SignupUser


class LoginResponse(BaseModel):
    """Access token in the body; the refresh token travels only as a cookie."""

    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    message: str = "Login successful"
    access_token: str = Field(..., alias="accessToken", description="JWT access token")
    user: LoginUser


class RefreshResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    access_token: str = Field(..., alias="accessToken", description="New JWT access token")


class MessageResponse(BaseModel):
    success: bool = True
    message: str


class CurrentUser(BaseModel):
    """Profile of the authenticated caller."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    email: str
    name: str
    role: Role
    xp: int


class Principal(BaseModel):
    """Caller identity taken from a verified token (no database read)."""

    user_id: int
    role: Role


class TokenPayload(BaseModel):
    """Claims of a verified token."""

    user_id: int
    role: Role
    type: Literal["access", "refresh"]
    issued_at: datetime
    expires_at: datetime


class TokenVerification(BaseModel):
    """Tagged result of token verification: a payload when valid, a reason when not."""

    valid: bool
    payload: TokenPayload | None = None
    reason: Literal["missing", "expired", "invalid", "wrong_type", "invalid_claims"] | None = None
