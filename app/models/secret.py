"""ORM model for encrypted configuration secrets."""

from sqlalchemy import Column, DateTime, Integer, String, Text, UniqueConstraint, func

from app.models.base import Base, CreatedAtMixin


class Secret(CreatedAtMixin, Base):
    """
    One encrypted value per (name, environment).

    value holds ciphertext in ``iv:ciphertext`` hex form; plaintext is never stored.
    """

    __tablename__ = "secrets"
    __table_args__ = (
        UniqueConstraint("name", "environment", name="uq_secrets_name_environment"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False, index=True)
    environment = Column(String(64), nullable=False)
    value = Column(Text, nullable=False)
    rotated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )
