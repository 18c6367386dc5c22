"""Encrypted secret storage scoped by environment.

Values are encrypted before they reach the database and decrypted only inside
the call that asked for them. Lookups are fail-secure: a missing secret raises
SecretNotFoundError, callers never get a default. Log lines name the secret,
never its value.
"""

import logging
import re
from datetime import UTC, datetime

from sqlalchemy import delete, select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.config import get_settings
from app.core.crypto import SecretCipher, get_cipher
from app.core.errors import (
    ConfigurationError,
    CryptoError,
    SecretNotFoundError,
    ValidationError,
)
from app.models import Secret
from app.schemas.secrets import SecretMetadata

logger = logging.getLogger(__name__)

SECRET_NAME_MAX_LEN = 255
ENVIRONMENT_MAX_LEN = 64
_NAME_RE = re.compile(r"^[A-Za-z0-9_.\-]+$")


def default_environment() -> str:
    """Environment used when a caller does not name one (SECRETS_ENVIRONMENT or APP_ENV)."""
    return get_settings().secrets_environment


def _resolve_environment(environment: str | None) -> str:
    env = (environment or default_environment()).strip()
    if not env or len(env) > ENVIRONMENT_MAX_LEN or not _NAME_RE.match(env):
        raise ValidationError("Invalid secret environment.")
    return env


def _validate_name(name: str) -> str:
    if not name or len(name) > SECRET_NAME_MAX_LEN or not _NAME_RE.match(name):
        raise ValidationError(
            "Secret name must be 1-255 characters of letters, digits, '_', '.' or '-'."
        )
    return name


def get_secret(
    session: Session,
    name: str,
    environment: str | None = None,
    *,
    cipher: SecretCipher | None = None,
) -> str:
    """Return the decrypted value of (name, environment). Raises SecretNotFoundError."""
    env = _resolve_environment(environment)
    value = session.execute(
        select(Secret.value).where(Secret.name == name, Secret.environment == env)
    ).scalar_one_or_none()
    if value is None:
        logger.warning("Secret not found: name=%s environment=%s", name, env)
        raise SecretNotFoundError(name, env)

    try:
        plaintext = (cipher or get_cipher()).decrypt(value)
    except CryptoError:
        logger.error("Secret could not be decrypted: name=%s environment=%s", name, env)
        raise
    logger.info("Secret retrieved: name=%s environment=%s", name, env)
    return plaintext


def has_secret(
    session: Session,
    name: str,
    environment: str | None = None,
    *,
    cipher: SecretCipher | None = None,
) -> bool:
    """True if the secret exists and decrypts to a non-empty value."""
    return len(get_secret(session, name, environment, cipher=cipher)) > 0


def _upsert_statement(session: Session, values: dict):
    dialect = session.get_bind().dialect.name
    if dialect == "postgresql":
        stmt = postgresql.insert(Secret).values(**values)
    elif dialect == "sqlite":
        stmt = sqlite.insert(Secret).values(**values)
    else:
        raise ConfigurationError(f"Secret upsert is not supported on {dialect}")
    return stmt.on_conflict_do_update(
        index_elements=["name", "environment"],
        set_={"value": stmt.excluded["value"], "rotated_at": stmt.excluded["rotated_at"]},
    )


def set_secret(
    session: Session,
    name: str,
    plaintext: str,
    environment: str | None = None,
    *,
    cipher: SecretCipher | None = None,
) -> None:
    """
    Encrypt and upsert a secret, stamping rotated_at. For setup and rotation only.

    A single INSERT ... ON CONFLICT statement, so concurrent writers of the same
    (name, environment) leave exactly one row holding the last written value.
    """
    _validate_name(name)
    env = _resolve_environment(environment)
    if not isinstance(plaintext, str) or not plaintext:
        raise ValidationError("Secret value must be a non-empty string.")

    now = datetime.now(UTC)
    encrypted = (cipher or get_cipher()).encrypt(plaintext)
    try:
        session.execute(
            _upsert_statement(
                session,
                {
                    "name": name,
                    "environment": env,
                    "value": encrypted,
                    "created_at": now,
                    "rotated_at": now,
                },
            )
        )
        session.commit()
    except SQLAlchemyError:
        session.rollback()
        raise
    logger.info("Secret stored: name=%s environment=%s", name, env)


def list_secrets(session: Session, environment: str | None = None) -> list[SecretMetadata]:
    """Metadata for stored secrets, optionally filtered by environment. Never selects values."""
    stmt = select(
        Secret.name, Secret.environment, Secret.created_at, Secret.rotated_at
    ).order_by(Secret.name, Secret.environment)
    if environment:
        stmt = stmt.where(Secret.environment == environment.strip())
    return [
        SecretMetadata(
            name=row.name,
            environment=row.environment,
            created_at=row.created_at,
            rotated_at=row.rotated_at,
        )
        for row in session.execute(stmt)
    ]


def delete_secret(session: Session, name: str, environment: str | None = None) -> bool:
    """Delete (name, environment). Returns whether a row was removed; safe to retry."""
    env = _resolve_environment(environment)
    result = session.execute(
        delete(Secret).where(Secret.name == name, Secret.environment == env)
    )
    session.commit()
    deleted = result.rowcount > 0
    if deleted:
        logger.info("Secret deleted: name=%s environment=%s", name, env)
    return deleted
