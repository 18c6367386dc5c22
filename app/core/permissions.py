"""Roles and the declarative role -> permission map used by every guard."""

from enum import Enum


class Role(str, Enum):
    STUDENT = "STUDENT"
    TEACHER = "TEACHER"
    ADMIN = "ADMIN"


class Permission(str, Enum):
    VIEW_CONTENT = "view:content"
    CREATE_LESSON = "create:lesson"
    # Reserved for account removal; held by ADMIN only and not yet bound to a route.
    DELETE_USER = "delete:user"
    VIEW_ANALYTICS = "view:analytics"
    MANAGE_USERS = "manage:users"
    MANAGE_SECRETS = "manage:secrets"


ROLE_PERMISSIONS: dict[Role, frozenset[Permission]] = {
    Role.STUDENT: frozenset({Permission.VIEW_CONTENT}),
    Role.TEACHER: frozenset(
        {
            Permission.VIEW_CONTENT,
            Permission.CREATE_LESSON,
            Permission.VIEW_ANALYTICS,
        }
    ),
    Role.ADMIN: frozenset(Permission),
}

# Roles a user may pick for themselves at signup; anything else becomes STUDENT.
SIGNUP_ROLES = frozenset({Role.STUDENT, Role.ADMIN})


def parse_role(value: str | Role | None) -> Role | None:
    """Return the Role for a value (case-insensitive), or None if unknown."""
    if isinstance(value, Role):
        return value
    if not value or not isinstance(value, str):
        return None
    try:
        return Role(value.strip().upper())
    except ValueError:
        return None


def has_permission(role: str | Role | None, permission: Permission) -> bool:
    """True if the role grants the permission. Unknown roles grant nothing."""
    parsed = parse_role(role)
    if parsed is None:
        return False
    return permission in ROLE_PERMISSIONS.get(parsed, frozenset())
