"""Signup, login, refresh, logout and profile routes."""

from typing import Annotated

from fastapi import APIRouter, Cookie, Depends, Response, status
from sqlalchemy.orm import Session

from app.api.v1.deps import REFRESH_COOKIE_NAME, get_principal_from_bearer_or_cookie
from app.core.config import get_settings
from app.core.database import get_db
from app.core.errors import AuthenticationError
from app.core.tokens import TokenService, get_token_service
from app.models import User
from app.schemas.auth import (
    CurrentUser,
    LoginRequest,
    LoginResponse,
    LoginUser,
    MessageResponse,
    Principal,
    RefreshResponse,
    SignupRequest,
    SignupResponse,
    SignupUser,
)
from app.services import auth as auth_service

router = APIRouter()


def _set_refresh_cookie(response: Response, token: str, max_age: int) -> None:
    response.set_cookie(
        key=REFRESH_COOKIE_NAME,
        value=token,
        max_age=max_age,
        path="/",
        httponly=True,
        secure=get_settings().is_production,
        samesite="strict",
    )


@router.post("/signup", response_model=SignupResponse, status_code=status.HTTP_201_CREATED)
def signup(
    body: SignupRequest,
    db: Annotated[Session, Depends(get_db)],
) -> SignupResponse:
    """Create an account. Role is limited to STUDENT or ADMIN."""
    user = auth_service.signup(db, body.email, body.password, body.name, body.role)
    return SignupResponse(user=SignupUser.model_validate(user))


@router.post("/login", response_model=LoginResponse)
def login(
    body: LoginRequest,
    response: Response,
    db: Annotated[Session, Depends(get_db)],
    tokens: Annotated[TokenService, Depends(get_token_service)],
) -> LoginResponse:
    """
    Authenticate with email and password.
    Returns the access token in the body and sets the refresh token as an HTTP-only cookie.
    """
    result = auth_service.login(db, body.email, body.password, tokens)
    _set_refresh_cookie(
        response, result.refresh_token, int(tokens.refresh_ttl.total_seconds())
    )
    return LoginResponse(
        access_token=result.access_token,
        user=LoginUser.model_validate(result.user),
    )


@router.post("/refresh", response_model=RefreshResponse)
def refresh(
    tokens: Annotated[TokenService, Depends(get_token_service)],
    refresh_token: Annotated[str | None, Cookie(alias=REFRESH_COOKIE_NAME)] = None,
) -> RefreshResponse:
    """Issue a new access token from the refresh-token cookie."""
    return RefreshResponse(access_token=auth_service.refresh(refresh_token, tokens))


@router.post("/logout", response_model=MessageResponse)
def logout(response: Response) -> MessageResponse:
    """Drop the client's refresh cookie. The token itself stays valid until it expires."""
    response.delete_cookie(
        key=REFRESH_COOKIE_NAME,
        path="/",
        httponly=True,
        secure=get_settings().is_production,
        samesite="strict",
    )
    return MessageResponse(message="Logged out")


@router.get("/me", response_model=CurrentUser)
def me(
    principal: Annotated[Principal, Depends(get_principal_from_bearer_or_cookie)],
    db: Annotated[Session, Depends(get_db)],
) -> CurrentUser:
    """Profile of the caller identified by a Bearer token or the refresh cookie."""
    user = db.query(User).filter(User.id == principal.user_id).first()
    if user is None:
        raise AuthenticationError("User not found")
    return CurrentUser.model_validate(user)
