"""Role registry: the static role -> permission table.

Roles are a flat enum, not an inheritance chain.  Each role maps to an
explicit permission set; ``owner`` holds the wildcard ``*``.  Anything not in
the table (a typo, a role string written by an older deploy) resolves to the
empty set.
"""
from enum import Enum
from types import MappingProxyType
from typing import FrozenSet, Mapping, Union

WILDCARD = "*"


class Role(str, Enum):
    OWNER = "owner"
    SUPER_ADMIN = "super_admin"
    ADMIN = "admin"
    MODERATOR = "moderator"
    SUPPORT = "support"


class Permission:
    USERS_READ = "users:read"
    USERS_WRITE = "users:write"
    USERS_DELETE = "users:delete"
    CREDITS_READ = "credits:read"
    CREDITS_WRITE = "credits:write"
    ANALYTICS_READ = "analytics:read"
    AUDIT_READ = "audit:read"
    ADMINS_READ = "admins:read"
    ADMINS_WRITE = "admins:write"


ROLE_PERMISSIONS: Mapping[str, FrozenSet[str]] = MappingProxyType({
    Role.OWNER.value: frozenset({WILDCARD}),
    Role.SUPER_ADMIN.value: frozenset({
        Permission.USERS_READ, Permission.USERS_WRITE, Permission.USERS_DELETE,
        Permission.CREDITS_READ, Permission.CREDITS_WRITE,
        Permission.ANALYTICS_READ,
        Permission.AUDIT_READ,
        Permission.ADMINS_READ, Permission.ADMINS_WRITE,
    }),
    Role.ADMIN.value: frozenset({
        Permission.USERS_READ, Permission.USERS_WRITE,
        Permission.CREDITS_READ, Permission.CREDITS_WRITE,
        Permission.ANALYTICS_READ,
        Permission.AUDIT_READ,
    }),
    Role.MODERATOR.value: frozenset({
        Permission.USERS_READ,
        Permission.CREDITS_READ,
        Permission.ANALYTICS_READ,
    }),
    Role.SUPPORT.value: frozenset({
        Permission.USERS_READ,
        Permission.CREDITS_READ,
    }),
})


def _role_key(role: Union[Role, str, None]) -> str:
    if isinstance(role, Role):
        return role.value
    return role or ""


def permissions_for(role: Union[Role, str, None]) -> FrozenSet[str]:
    """Permission set granted by ``role``; empty for unknown roles."""
    return ROLE_PERMISSIONS.get(_role_key(role), frozenset())


def has_permission(role: Union[Role, str, None], required: str) -> bool:
    granted = permissions_for(role)
    return WILDCARD in granted or required in granted


def is_valid_role(role: str) -> bool:
    return role in ROLE_PERMISSIONS
