from __future__ import annotations

import pytest

from librarydesk.core.errors import PermissionDeniedError
from librarydesk.core.identity.models import Role, User
from librarydesk.core.permissions import (
    NO_PERMISSIONS,
    ROLE_PERMISSIONS,
    PermissionResolver,
    PermissionSet,
    can_create_user,
    get_available_roles,
    has_permission,
    has_required_role,
    resolve_permissions,
    role_display_name,
)
from librarydesk.core.security_events import SecurityAuditLogger
from tests.helpers.log_assertions import events_named, read_jsonl

BOOL_FIELDS = [
    "can_create_member",
    "can_create_librarian",
    "can_create_admin",
    "can_edit_user_roles",
    "can_delete_users",
    "can_access_all_features",
]


def _mk_user(role: Role, username: str = "u1") -> User:
    return User(id=f"id-{username}", username=username, role=role, display_name=username)


def test_every_role_has_a_table_entry():
    assert set(ROLE_PERMISSIONS) == set(Role)
    for role in Role:
        assert isinstance(resolve_permissions(role), PermissionSet)


def test_admin_row():
    p = resolve_permissions(Role.admin)
    assert all(getattr(p, f) for f in BOOL_FIELDS)
    assert [o.role for o in p.available_roles_for_creation] == [Role.member, Role.librarian, Role.admin]
    assert [o.label for o in p.available_roles_for_creation] == ["สมาชิก", "บรรณารักษ์", "ผู้ดูแลระบบ"]


def test_librarian_row():
    p = resolve_permissions("librarian")
    assert p.can_create_member is True
    assert p.can_create_librarian is False
    assert p.can_create_admin is False
    assert p.can_edit_user_roles is False
    assert p.can_delete_users is True
    assert p.can_access_all_features is True
    assert [o.role for o in p.available_roles_for_creation] == [Role.member]


@pytest.mark.parametrize("role", [None, Role.member, "member", "superuser", "ADMIN", ""])
def test_none_member_and_unknown_get_nothing(role):
    p = resolve_permissions(role)
    assert p == NO_PERMISSIONS
    assert not any(getattr(p, f) for f in BOOL_FIELDS)
    assert p.available_roles_for_creation == ()


def test_admin_is_superset_of_every_role():
    admin = resolve_permissions(Role.admin)
    for role in Role:
        other = resolve_permissions(role)
        for f in BOOL_FIELDS:
            if getattr(other, f):
                assert getattr(admin, f)
        assert set(other.available_roles_for_creation) <= set(admin.available_roles_for_creation)


def test_resolution_is_pure():
    assert resolve_permissions(Role.librarian) == resolve_permissions(Role.librarian)
    assert resolve_permissions(Role.librarian) is resolve_permissions("librarian")


def test_unknown_role_is_audited_not_raised(tmp_path):
    audit = SecurityAuditLogger(path=str(tmp_path / "security.jsonl"))
    p = resolve_permissions("root", audit=audit)
    assert p == NO_PERMISSIONS
    rows = events_named(read_jsonl(audit.path), "permissions.unknown_role")
    assert len(rows) == 1
    assert rows[0]["details"]["role"] == "root"


def test_librarian_cannot_create_librarian_with_specific_message():
    d = can_create_user(_mk_user(Role.librarian), Role.librarian)
    assert d.allowed is False
    assert d.error_message == "เฉพาะผู้ดูแลระบบเท่านั้นที่สามารถสร้างบัญชีบรรณารักษ์ได้"


def test_librarian_cannot_create_admin():
    d = can_create_user(_mk_user(Role.librarian), "admin")
    assert d.allowed is False
    assert d.error_message == "เฉพาะผู้ดูแลระบบเท่านั้นที่สามารถสร้างบัญชีผู้ดูแลระบบได้"


def test_librarian_can_create_member():
    d = can_create_user(_mk_user(Role.librarian), Role.member)
    assert d.allowed is True
    assert d.error_message is None


def test_admin_can_create_every_role():
    admin = _mk_user(Role.admin)
    assert all(can_create_user(admin, r).allowed for r in Role)


def test_member_role_actor_cannot_create_member():
    d = can_create_user(Role.member, Role.member)
    assert d.allowed is False
    assert d.error_message == "คุณไม่มีสิทธิ์ในการสร้างบัญชีสมาชิก"


def test_no_actor_must_log_in_first():
    d = can_create_user(None, Role.member)
    assert d.allowed is False
    assert d.error_message == "กรุณาเข้าสู่ระบบก่อนดำเนินการ"


def test_unknown_target_role():
    d = can_create_user(_mk_user(Role.admin), "superuser")
    assert d.allowed is False
    assert d.error_message == "ประเภทผู้ใช้ไม่ถูกต้อง"


def test_has_required_role():
    assert has_required_role(Role.admin, Role.librarian)
    assert has_required_role(Role.admin, Role.admin)
    assert has_required_role(Role.librarian, Role.librarian)
    assert not has_required_role(Role.librarian, Role.admin)
    assert not has_required_role(None, Role.librarian)
    assert not has_required_role("ghost", Role.librarian)


def test_has_permission_and_available_roles():
    lib = resolve_permissions(Role.librarian)
    assert has_permission(lib, "can_delete_users")
    assert not has_permission(lib, "can_edit_user_roles")
    assert has_permission(lib, "available_roles_for_creation")
    assert not has_permission(NO_PERMISSIONS, "available_roles_for_creation")
    assert not has_permission(lib, "can_fly")
    assert get_available_roles(None) == []
    assert [o.role for o in get_available_roles(_mk_user(Role.librarian))] == [Role.member]


def test_role_display_name():
    assert role_display_name(Role.admin) == "ผู้ดูแลระบบ"
    assert role_display_name("librarian") == "บรรณารักษ์"
    assert role_display_name("member") == "สมาชิก"
    assert role_display_name("other") == "other"


def test_resolver_require_raises_and_audits(tmp_path):
    audit = SecurityAuditLogger(path=str(tmp_path / "security.jsonl"))
    resolver = PermissionResolver(audit=audit)
    lib = _mk_user(Role.librarian, "lib")

    with pytest.raises(PermissionDeniedError) as ei:
        resolver.require_create(lib, Role.librarian, endpoint="members.create")
    assert ei.value.user_message == "เฉพาะผู้ดูแลระบบเท่านั้นที่สามารถสร้างบัญชีบรรณารักษ์ได้"

    resolver.require(lib, "can_delete_users", endpoint="members.delete", message="nope")
    with pytest.raises(PermissionDeniedError):
        resolver.require(lib, "can_edit_user_roles", endpoint="members.change_role", message="nope")

    rows = events_named(read_jsonl(audit.path), "permissions.denied")
    assert [r["endpoint"] for r in rows] == ["members.create", "members.change_role"]
    assert all(r["actor"] == "lib" for r in rows)


def test_resolver_require_without_actor():
    with pytest.raises(PermissionDeniedError) as ei:
        PermissionResolver().require(None, "can_delete_users", endpoint="x", message="nope")
    assert ei.value.user_message == "กรุณาเข้าสู่ระบบก่อนดำเนินการ"
