"""Schemas for secret metadata. No schema here ever carries a secret value."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class SecretMetadata(BaseModel):
    """Audit view of a stored secret: identity and timestamps only."""

    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    name: str
    environment: str
    created_at: datetime = Field(..., alias="createdAt")
    rotated_at: datetime = Field(..., alias="rotatedAt")


class SecretsListResponse(BaseModel):
    secrets: list[SecretMetadata]


class SecretCheckResponse(BaseModel):
    """Result of decrypting a secret server-side without returning it."""

    model_config = ConfigDict(populate_by_name=True)

    name: str
    environment: str
    has_value: bool = Field(..., alias="hasValue")
    checked_at: datetime = Field(..., alias="checkedAt")
