"""SQLAlchemy ORM models."""

from app.models.base import Base
from app.models.course import Course, Enrollment, Lesson
from app.models.secret import Secret
from app.models.user import User

__all__ = ["Base", "Course", "Enrollment", "Lesson", "Secret", "User"]
