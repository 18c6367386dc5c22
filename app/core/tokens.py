"""Signed access/refresh tokens (JWT).

Access and refresh tokens are signed with different secrets and carry a
``type`` claim, so neither can stand in for the other. Verification never
raises for a bad token: it returns a ``TokenVerification`` tagged result.
"""

from datetime import UTC, datetime, timedelta
from functools import lru_cache
from typing import Any, Literal

import jwt

from app.core.config import Settings, get_settings
from app.core.permissions import Role, parse_role
from app.schemas.auth import TokenPayload, TokenVerification

TokenKind = Literal["access", "refresh"]

ACCESS_TOKEN_TTL = timedelta(minutes=15)
REFRESH_TOKEN_TTL = timedelta(days=7)
REQUIRED_CLAIMS = ["sub", "role", "type", "iat", "exp"]


class TokenService:
    """Mint and verify tokens from one configuration surface."""

    def __init__(
        self,
        access_secret: str,
        refresh_secret: str,
        algorithm: str = "HS256",
        access_ttl: timedelta = ACCESS_TOKEN_TTL,
        refresh_ttl: timedelta = REFRESH_TOKEN_TTL,
    ) -> None:
        self._secrets: dict[str, str] = {"access": access_secret, "refresh": refresh_secret}
        self._ttls: dict[str, timedelta] = {"access": access_ttl, "refresh": refresh_ttl}
        self.algorithm = algorithm

    @classmethod
    def from_settings(cls, settings: Settings) -> "TokenService":
        return cls(
            access_secret=settings.JWT_ACCESS_SECRET.get_secret_value(),
            refresh_secret=settings.JWT_REFRESH_SECRET.get_secret_value(),
            algorithm=settings.JWT_ALGORITHM,
            access_ttl=timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES),
            refresh_ttl=timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS),
        )

    def __repr__(self) -> str:
        return f"TokenService(algorithm={self.algorithm!r})"

    @property
    def refresh_ttl(self) -> timedelta:
        return self._ttls["refresh"]

    def _sign(
        self,
        kind: TokenKind,
        user_id: int | str,
        role: Role | str,
        expires_in: timedelta | None,
    ) -> str:
        parsed_role = parse_role(role)
        if parsed_role is None:
            raise ValueError(f"Unknown role: {role!r}")
        now = datetime.now(UTC)
        payload: dict[str, Any] = {
            "sub": str(user_id),
            "role": parsed_role.value,
            "type": kind,
            "iat": now,
            "exp": now + (expires_in if expires_in is not None else self._ttls[kind]),
        }
        return jwt.encode(payload, self._secrets[kind], algorithm=self.algorithm)

    def create_access_token(
        self, user_id: int | str, role: Role | str, expires_in: timedelta | None = None
    ) -> str:
        """Short-lived token presented as ``Authorization: Bearer``."""
        return self._sign("access", user_id, role, expires_in)

    def create_refresh_token(
        self, user_id: int | str, role: Role | str, expires_in: timedelta | None = None
    ) -> str:
        """Long-lived token kept in the HTTP-only refresh cookie."""
        return self._sign("refresh", user_id, role, expires_in)

    def verify_token(self, token: str | None, kind: TokenKind = "access") -> TokenVerification:
        """Check signature, expiry and token type; never raises for a bad token."""
        if not token:
            return TokenVerification(valid=False, reason="missing")
        try:
            claims = jwt.decode(
                token,
                self._secrets[kind],
                algorithms=[self.algorithm],
                options={"require": REQUIRED_CLAIMS},
            )
        except jwt.ExpiredSignatureError:
            return TokenVerification(valid=False, reason="expired")
        except jwt.PyJWTError:
            return TokenVerification(valid=False, reason="invalid")

        if claims.get("type") != kind:
            return TokenVerification(valid=False, reason="wrong_type")
        role = parse_role(claims.get("role"))
        try:
            user_id = int(claims["sub"])
        except (TypeError, ValueError):
            user_id = None
        if role is None or user_id is None:
            return TokenVerification(valid=False, reason="invalid_claims")
        return TokenVerification(
            valid=True,
            payload=TokenPayload(
                user_id=user_id,
                role=role,
                type=kind,
                issued_at=datetime.fromtimestamp(claims["iat"], UTC),
                expires_at=datetime.fromtimestamp(claims["exp"], UTC),
            ),
        )


@lru_cache
def get_token_service() -> TokenService:
    """Dependency: token service built from settings (read-only after startup)."""
    return TokenService.from_settings(get_settings())
