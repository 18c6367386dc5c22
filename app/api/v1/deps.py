"""Auth dependencies: caller identity from a verified token, permission guards."""

import logging
from collections.abc import Callable
from typing import Annotated

from fastapi import Cookie, Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from app.core.errors import AuthenticationError, AuthorizationError
from app.core.permissions import Permission, has_permission
from app.core.tokens import TokenKind, TokenService, get_token_service
from app.schemas.auth import Principal

logger = logging.getLogger(__name__)

REFRESH_COOKIE_NAME = "refreshToken"

security = HTTPBearer(auto_error=False)


def _principal_from_token(token: str | None, tokens: TokenService, kind: TokenKind) -> Principal:
    result = tokens.verify_token(token, kind=kind)
    if not result.valid:
        if result.reason == "missing":
            raise AuthenticationError("Not authenticated")
        raise AuthenticationError("Invalid or expired token")
    return Principal(user_id=result.payload.user_id, role=result.payload.role)


def get_current_principal(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
    tokens: Annotated[TokenService, Depends(get_token_service)],
) -> Principal:
    """Dependency: require a valid Bearer access token. Raises 401 if missing or invalid."""
    token = credentials.credentials if credentials is not None else None
    return _principal_from_token(token, tokens, "access")


def get_principal_from_bearer_or_cookie(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
    tokens: Annotated[TokenService, Depends(get_token_service)],
    refresh_token: Annotated[str | None, Cookie(alias=REFRESH_COOKIE_NAME)] = None,
) -> Principal:
    """Dependency: Bearer access token first, else the refresh-token cookie."""
    if credentials is not None:
        return _principal_from_token(credentials.credentials, tokens, "access")
    return _principal_from_token(refresh_token, tokens, "refresh")


def require_permission(permission: Permission) -> Callable[..., Principal]:
    """Build a dependency that admits only roles granted ``permission``. Raises 403 otherwise."""

    def guard(principal: Annotated[Principal, Depends(get_current_principal)]) -> Principal:
        if not has_permission(principal.role, permission):
            logger.warning(
                "Access denied",
                extra={
                    "event": "authz.denied",
                    "user_id": principal.user_id,
                    "role": principal.role.value,
                    "permission": permission.value,
                },
            )
            raise AuthorizationError()
        return principal

    guard.__name__ = f"require_{permission.name.lower()}"
    return guard
