from __future__ import annotations

from typing import Any, Dict, List, Optional, Union

from librarydesk.core.errors import PermissionDeniedError
from librarydesk.core.identity.models import Role, User
from librarydesk.core.logger import get_logger
from librarydesk.core.permissions import messages
from librarydesk.core.permissions.models import CreationDecision, PermissionSet, RoleOption
from librarydesk.core.security_events import SecurityAuditLogger
from librarydesk.core.trace import resolve_trace_id

logger = get_logger("permissions")

RoleLike = Union[Role, str, None]
Actor = Union[User, Role, str, None]


def _option(role: Role) -> RoleOption:
    return RoleOption(role=role, label=messages.ROLE_DISPLAY_NAMES[role])


NO_PERMISSIONS = PermissionSet()

ROLE_PERMISSIONS: Dict[Role, PermissionSet] = {
    Role.admin: PermissionSet(
        can_create_member=True,
        can_create_librarian=True,
        can_create_admin=True,
        can_edit_user_roles=True,
        can_delete_users=True,
        can_access_all_features=True,
        available_roles_for_creation=(_option(Role.member), _option(Role.librarian), _option(Role.admin)),
    ),
    Role.librarian: PermissionSet(
        can_create_member=True,
        can_delete_users=True,
        can_access_all_features=True,
        available_roles_for_creation=(_option(Role.member),),
    ),
    Role.member: NO_PERMISSIONS,
}


def _check_table() -> None:
    missing = [r.value for r in Role if r not in ROLE_PERMISSIONS]
    if missing:
        raise RuntimeError(f"Permission table has no entry for roles: {missing}")


_check_table()


def parse_role(value: RoleLike) -> Optional[Role]:
    """Role for a tag, or None when the tag is absent or not a known role."""
    if value is None:
        return None
    if isinstance(value, Role):
        return value
    try:
        return Role(str(value))
    except ValueError:
        return None


def _actor_role(actor: Actor) -> RoleLike:
    if isinstance(actor, User):
        return actor.role
    return actor


def _report_unknown(role: Any, audit: Optional[SecurityAuditLogger], endpoint: str) -> None:
    logger.warning(f"UnknownRole: {role!r} resolved to no permissions")
    if audit is None:
        return
    try:
        audit.log(
            trace_id=resolve_trace_id(),
            severity="WARN",
            event="permissions.unknown_role",
            actor=None,
            endpoint=endpoint,
            outcome="denied",
            details={"role": str(role)},
        )
    except OSError as e:
        logger.warning(f"Security audit write failed: {e}")


def resolve_permissions(
    role: RoleLike,
    *,
    audit: Optional[SecurityAuditLogger] = None,
    endpoint: str = "permissions.resolve",
) -> PermissionSet:
    """
    Total mapping from a role tag to its PermissionSet.

    Absent, member and unrecognised roles all get the empty set; an
    unrecognised tag is logged but never raises.
    """
    if role is None:
        return NO_PERMISSIONS
    parsed = parse_role(role)
    if parsed is None:
        _report_unknown(role, audit, endpoint)
        return NO_PERMISSIONS
    return ROLE_PERMISSIONS[parsed]


def can_create_user(
    actor: Actor,
    target_role: RoleLike,
    *,
    audit: Optional[SecurityAuditLogger] = None,
) -> CreationDecision:
    if actor is None:
        return CreationDecision(allowed=False, error_message=messages.LOGIN_REQUIRED)
    target = parse_role(target_role)
    if target is None:
        return CreationDecision(allowed=False, error_message=messages.INVALID_ROLE)

    perms = resolve_permissions(_actor_role(actor), audit=audit, endpoint="permissions.can_create_user")
    allowed = {
        Role.member: perms.can_create_member,
        Role.librarian: perms.can_create_librarian,
        Role.admin: perms.can_create_admin,
    }[target]
    if allowed:
        return CreationDecision(allowed=True)
    return CreationDecision(allowed=False, error_message=messages.CREATE_DENIED[target])


def has_required_role(user_role: RoleLike, required_role: RoleLike) -> bool:
    role = parse_role(user_role)
    if role is None:
        return False
    if role == Role.admin:
        return True
    return role == parse_role(required_role)


def has_permission(permissions: PermissionSet, name: str) -> bool:
    if name == "available_roles_for_creation":
        return len(permissions.available_roles_for_creation) > 0
    if name not in PermissionSet.model_fields:
        logger.warning(f"Unknown permission name: {name!r}")
        return False
    return bool(getattr(permissions, name))


def get_available_roles(actor: Actor) -> List[RoleOption]:
    if actor is None:
        return []
    return list(resolve_permissions(_actor_role(actor)).available_roles_for_creation)


def role_display_name(role: RoleLike) -> str:
    parsed = parse_role(role)
    if parsed is None:
        return "" if role is None else str(role)
    return messages.ROLE_DISPLAY_NAMES[parsed]


class PermissionResolver:
    """
    Resolver bound to a security audit sink. Denials that reach an enforcing
    call site (`require_*`) raise PermissionDeniedError and are audited.
    """

    def __init__(self, *, audit: Optional[SecurityAuditLogger] = None):
        self.audit = audit

    def permissions_for(self, actor: Actor) -> PermissionSet:
        if actor is None:
            return NO_PERMISSIONS
        return resolve_permissions(_actor_role(actor), audit=self.audit)

    def can_create_user(self, actor: Actor, target_role: RoleLike) -> CreationDecision:
        return can_create_user(actor, target_role, audit=self.audit)

    def require_create(self, actor: Actor, target_role: RoleLike, *, endpoint: str) -> None:
        decision = self.can_create_user(actor, target_role)
        if decision.allowed:
            return
        self._deny(actor, endpoint, decision.error_message or messages.INVALID_ROLE, target_role=str(target_role))

    def require(self, actor: Actor, name: str, *, endpoint: str, message: str) -> None:
        if actor is None:
            self._deny(actor, endpoint, messages.LOGIN_REQUIRED, permission=name)
        if not has_permission(self.permissions_for(actor), name):
            self._deny(actor, endpoint, message, permission=name)

    def _deny(self, actor: Actor, endpoint: str, message: str, **details: Any) -> None:
        username = actor.username if isinstance(actor, User) else None
        role = _actor_role(actor)
        details["role"] = role.value if isinstance(role, Role) else role
        if self.audit is not None:
            try:
                self.audit.log(
                    trace_id=resolve_trace_id(),
                    severity="WARN",
                    event="permissions.denied",
                    actor=username,
                    endpoint=endpoint,
                    outcome="denied",
                    details=details,
                )
            except OSError as e:
                logger.warning(f"Security audit write failed: {e}")
        raise PermissionDeniedError(message, endpoint=endpoint, **details)
