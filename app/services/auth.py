"""Signup, login and refresh: credential checks and token issuance.

Each attempt writes one audit log line (event, outcome, redacted email,
duration_ms). Passwords and password hashes are never logged.
"""

import logging
import time
from typing import NamedTuple

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.errors import AuthenticationError, ConflictError, ValidationError
from app.core.logging import redact_email
from app.core.permissions import SIGNUP_ROLES, Role, parse_role
from app.core.sanitize import is_valid_email, sanitize_email, sanitize_text
from app.core.security import (
    EMAIL_MAX_LEN,
    NAME_MAX_LEN,
    PASSWORD_MAX_LEN,
    PASSWORD_MIN_LEN,
    burn_password_check,
    hash_password,
    verify_password,
)
from app.core.tokens import TokenService
from app.models import User

logger = logging.getLogger(__name__)

# Same message for unknown email and wrong password (no account enumeration).
INVALID_CREDENTIALS = "Invalid email or password."


class LoginResult(NamedTuple):
    access_token: str
    refresh_token: str
    user: User


def _elapsed_ms(started: float) -> float:
    return round((time.perf_counter() - started) * 1000, 2)


def _audit(event: str, outcome: str, email: str | None, started: float, **fields: object) -> None:
    level = logging.INFO if outcome == "success" else logging.WARNING
    logger.log(
        level,
        "%s %s",
        event,
        outcome,
        extra={
            "event": event,
            "outcome": outcome,
            "email": redact_email(email),
            "duration_ms": _elapsed_ms(started),
            **fields,
        },
    )


def signup_role(requested: str | None) -> Role:
    """Roles outside the signup allow-list silently become STUDENT."""
    role = parse_role(requested)
    return role if role in SIGNUP_ROLES else Role.STUDENT


def _validate_password(password: str) -> None:
    if not (PASSWORD_MIN_LEN <= len(password) <= PASSWORD_MAX_LEN):
        raise ValidationError(
            f"Password must be {PASSWORD_MIN_LEN}-{PASSWORD_MAX_LEN} characters."
        )


def signup(
    session: Session,
    email: str,
    password: str,
    name: str,
    role: str | None = None,
) -> User:
    """Create a STUDENT (or ADMIN when requested) account. Raises ValidationError/ConflictError."""
    started = time.perf_counter()
    normalized_email = sanitize_email(email)
    clean_name = sanitize_text(name)
    try:
        if not normalized_email or not password or not clean_name:
            raise ValidationError("Email, password and name are required.")
        if len(normalized_email) > EMAIL_MAX_LEN or not is_valid_email(normalized_email):
            raise ValidationError("A valid email address is required.")
        if len(clean_name) > NAME_MAX_LEN:
            raise ValidationError("Name is too long.")
        _validate_password(password)

        existing = session.query(User).filter(User.email == normalized_email).first()
        if existing is not None:
            raise ConflictError("User already exists.")

        user = User(
            email=normalized_email,
            name=clean_name,
            password_hash=hash_password(password),
            role=signup_role(role).value,
            xp=0,
        )
        session.add(user)
        try:
            session.commit()
        except IntegrityError:
            # Lost a race with a concurrent signup for the same email.
            session.rollback()
            raise ConflictError("User already exists.") from None
        session.refresh(user)
    except (ValidationError, ConflictError) as exc:
        _audit("auth.signup", "failure", normalized_email, started, reason=exc.message)
        raise
    _audit("auth.signup", "success", normalized_email, started, user_id=user.id, role=user.role)
    return user


def login(session: Session, email: str, password: str, tokens: TokenService) -> LoginResult:
    """Check credentials and issue an access + refresh token pair."""
    started = time.perf_counter()
    normalized_email = sanitize_email(email)
    if not normalized_email or not password:
        _audit("auth.login", "failure", normalized_email, started, reason="missing_fields")
        raise ValidationError("Email and password are required.")

    user = session.query(User).filter(User.email == normalized_email).first()
    if user is None:
        burn_password_check(password)
        _audit("auth.login", "failure", normalized_email, started, reason="unknown_email")
        raise AuthenticationError(INVALID_CREDENTIALS)
    if not verify_password(password, user.password_hash):
        _audit("auth.login", "failure", normalized_email, started, reason="bad_password")
        raise AuthenticationError(INVALID_CREDENTIALS)

    role = parse_role(user.role) or Role.STUDENT
    result = LoginResult(
        access_token=tokens.create_access_token(user.id, role),
        refresh_token=tokens.create_refresh_token(user.id, role),
        user=user,
    )
    _audit("auth.login", "success", normalized_email, started, user_id=user.id, role=role.value)
    return result


def refresh(refresh_token: str | None, tokens: TokenService) -> str:
    """
    Mint a new access token from a valid refresh token.

    The role comes from the refresh token's own claims, not from the database:
    a role change shows up only after the next login (at most the refresh TTL).
    """
    started = time.perf_counter()
    result = tokens.verify_token(refresh_token, kind="refresh")
    if not result.valid:
        _audit("auth.refresh", "failure", None, started, reason=result.reason)
        if result.reason == "missing":
            raise AuthenticationError("Refresh token missing")
        raise AuthenticationError("Refresh token expired or invalid")

    payload = result.payload
    access_token = tokens.create_access_token(payload.user_id, payload.role)
    _audit(
        "auth.refresh",
        "success",
        None,
        started,
        user_id=payload.user_id,
        role=payload.role.value,
    )
    return access_token
