"""ORM model for application users (auth and RBAC)."""

from sqlalchemy import Column, Integer, String

from app.models.base import Base, CreatedAtMixin


class User(CreatedAtMixin, Base):
    """
    User account for JWT authentication and role-based access control.

    role: 'STUDENT', 'TEACHER' or 'ADMIN'. email is stored lower-cased.
    """

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    email = Column(String(255), nullable=False, unique=True, index=True)
    name = Column(String(255), nullable=False, default="")
    password_hash = Column(String(255), nullable=False)
    role = Column(String(32), nullable=False, default="STUDENT")
    xp = Column(Integer, nullable=False, default=0)
