from __future__ import annotations

from typing import Optional, Tuple

from pydantic import BaseModel, ConfigDict

from librarydesk.core.identity.models import Role


class RoleOption(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    role: Role
    label: str


class PermissionSet(BaseModel):
    """
    Capabilities granted to one role. Consumers offering a role picker take
    their choices from `available_roles_for_creation`.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    can_create_member: bool = False
    can_create_librarian: bool = False
    can_create_admin: bool = False
    can_edit_user_roles: bool = False
    can_delete_users: bool = False
    can_access_all_features: bool = False
    available_roles_for_creation: Tuple[RoleOption, ...] = ()


class CreationDecision(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    allowed: bool
    error_message: Optional[str] = None
