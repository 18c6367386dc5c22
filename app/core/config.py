"""Application configuration loaded from environment variables."""

import re
from functools import lru_cache
from typing import Literal

from pydantic import SecretStr, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Allowed URL schemes for DATABASE_URL (module-level so validators can use it).
VALID_DATABASE_URL_PREFIXES = (
    "postgresql://",
    "postgresql+psycopg2://",
    "postgres://",
    "postgres+psycopg2://",
    "sqlite://",
)

MASTER_KEY_HEX_LENGTH = 64
JWT_SECRET_MIN_LEN = 32
VALID_JWT_ALGORITHMS = frozenset({"HS256", "HS384", "HS512"})

_HEX_RE = re.compile(r"^[0-9a-fA-F]+$")


class Settings(BaseSettings):
    """Validated application settings from env and optional .env file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    APP_ENV: Literal["dev", "test", "prod"] = "dev"
    DEBUG: bool = False
    API_V1_PREFIX: str = "/api/v1"
    SERVICE_NAME: str = "offline-academy"

    # Required: no defaults, a missing value stops the process at startup.
    DATABASE_URL: str
    MASTER_KEY: SecretStr
    JWT_ACCESS_SECRET: SecretStr
    JWT_REFRESH_SECRET: SecretStr

    # Environment scope used by the secret store; falls back to APP_ENV.
    SECRETS_ENVIRONMENT: str | None = None

    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 15
    REFRESH_TOKEN_EXPIRE_DAYS: int = 7

    CORS_ORIGIN: str = "http://localhost:3000"
    # Redirect plain-http requests (by X-Forwarded-Proto) to https.
    FORCE_HTTPS: bool = False

    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = True

    @field_validator("DATABASE_URL")
    @classmethod
    def validate_database_url(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("DATABASE_URL must be set and non-empty")
        if not any(v.strip().startswith(prefix) for prefix in VALID_DATABASE_URL_PREFIXES):
            raise ValueError(
                "DATABASE_URL must be a PostgreSQL or SQLite URL "
                "(e.g. postgresql+psycopg2:// or sqlite:///academy.db)"
            )
        return v.strip()

    @field_validator("MASTER_KEY")
    @classmethod
    def validate_master_key(cls, v: SecretStr) -> SecretStr:
        value = v.get_secret_value().strip()
        if len(value) != MASTER_KEY_HEX_LENGTH or not _HEX_RE.match(value):
            raise ValueError(
                "MASTER_KEY must be 64 hex characters (32 bytes). "
                "Generate one with: python -m app.scripts.secrets generate-key"
            )
        return SecretStr(value)

    @field_validator("JWT_ACCESS_SECRET", "JWT_REFRESH_SECRET")
    @classmethod
    def validate_jwt_secret(cls, v: SecretStr) -> SecretStr:
        value = v.get_secret_value()
        if not value or not value.strip():
            raise ValueError("JWT signing secrets must be set and non-empty")
        if len(value) < JWT_SECRET_MIN_LEN:
            raise ValueError(
                f"JWT signing secrets must be at least {JWT_SECRET_MIN_LEN} characters"
            )
        return v

    @field_validator("JWT_ALGORITHM")
    @classmethod
    def validate_jwt_algorithm(cls, v: str) -> str:
        v = v.strip().upper()
        if v not in VALID_JWT_ALGORITHMS:
            raise ValueError(
                f"JWT_ALGORITHM must be one of {sorted(VALID_JWT_ALGORITHMS)}"
            )
        return v

    @field_validator("ACCESS_TOKEN_EXPIRE_MINUTES")
    @classmethod
    def validate_access_expire_minutes(cls, v: int) -> int:
        if v < 1 or v > 1440:
            raise ValueError(
                "ACCESS_TOKEN_EXPIRE_MINUTES must be between 1 and 1440 (1 min to 1 day)"
            )
        return v

    @field_validator("REFRESH_TOKEN_EXPIRE_DAYS")
    @classmethod
    def validate_refresh_expire_days(cls, v: int) -> int:
        if v < 1 or v > 90:
            raise ValueError("REFRESH_TOKEN_EXPIRE_DAYS must be between 1 and 90")
        return v

    @field_validator("CORS_ORIGIN")
    @classmethod
    def validate_cors_origin(cls, v: str) -> str:
        s = v.strip().rstrip("/")
        if not (s.lower().startswith("http://") or s.lower().startswith("https://")):
            raise ValueError(
                "CORS_ORIGIN must use http or https (e.g. http://localhost:3000)"
            )
        return s

    @field_validator("SECRETS_ENVIRONMENT")
    @classmethod
    def validate_secrets_environment(cls, v: str | None) -> str | None:
        if v is None or not v.strip():
            return None
        return v.strip()

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        v = v.strip().upper()
        if v not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError("LOG_LEVEL must be DEBUG, INFO, WARNING, ERROR or CRITICAL")
        return v

    @model_validator(mode="after")
    def validate_distinct_signing_secrets(self) -> "Settings":
        if (
            self.JWT_ACCESS_SECRET.get_secret_value()
            == self.JWT_REFRESH_SECRET.get_secret_value()
        ):
            raise ValueError("JWT_ACCESS_SECRET and JWT_REFRESH_SECRET must differ")
        return self

    @property
    def secrets_environment(self) -> str:
        """Environment name used for secret lookups when none is given."""
        return self.SECRETS_ENVIRONMENT or self.APP_ENV

    @property
    def is_production(self) -> bool:
        return self.APP_ENV == "prod"


@lru_cache
def get_settings() -> Settings:
    """Return cached settings instance (safe to call from dependencies)."""
    return Settings()


settings = get_settings()
