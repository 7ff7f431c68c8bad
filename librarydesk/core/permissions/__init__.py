"""
Role permission model: the role to capability table and the checks built on it.
"""

from librarydesk.core.permissions.models import CreationDecision, PermissionSet, RoleOption
from librarydesk.core.permissions.resolver import (
    NO_PERMISSIONS,
    ROLE_PERMISSIONS,
    PermissionResolver,
    can_create_user,
    get_available_roles,
    has_permission,
    has_required_role,
    parse_role,
    resolve_permissions,
    role_display_name,
)

__all__ = [
    "CreationDecision",
    "NO_PERMISSIONS",
    "PermissionResolver",
    "PermissionSet",
    "ROLE_PERMISSIONS",
    "RoleOption",
    "can_create_user",
    "get_available_roles",
    "has_permission",
    "has_required_role",
    "parse_role",
    "resolve_permissions",
    "role_display_name",
]
