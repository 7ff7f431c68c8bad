from __future__ import annotations

import pytest

from librarydesk.core.gate import AuthenticationGate, GateState
from librarydesk.core.identity.models import AuthSnapshot, LogoutReason, Role, User


def _mk_user(role: Role) -> User:
    return User(id="1", username=role.value, role=role, display_name=role.value)


class _Children:
    def __init__(self):
        self.calls = 0

    def __call__(self, user: User) -> str:
        self.calls += 1
        return f"page for {user.username}"


def test_loading_renders_nothing():
    children = _Children()
    out = AuthenticationGate(Role.admin).render(AuthSnapshot(is_loading=True, user=_mk_user(Role.admin)), children)
    assert out.decision.state == GateState.LOADING
    assert out.content is None
    assert children.calls == 0


def test_no_user_redirects_to_login():
    d = AuthenticationGate().evaluate(AuthSnapshot())
    assert d.state == GateState.REDIRECT
    assert d.redirect_to == "/auth/login"


@pytest.mark.parametrize(
    "reason,expected",
    [
        (None, "/auth/login"),
        (LogoutReason.manual, "/auth/login"),
        (LogoutReason.invalid, "/auth/login"),
        (LogoutReason.expired, "/auth/login?expired=true"),
    ],
)
def test_redirect_marks_expiry_only(reason, expected):
    snap = AuthSnapshot(last_logout_reason=reason, session_expired=reason == LogoutReason.expired)
    assert AuthenticationGate(Role.librarian).evaluate(snap).redirect_to == expected


def test_custom_fallback_with_query():
    gate = AuthenticationGate(fallback_path="/login?next=/members")
    snap = AuthSnapshot(last_logout_reason=LogoutReason.expired)
    assert gate.evaluate(snap).redirect_to == "/login?next=/members&expired=true"


def test_librarian_denied_admin_view_and_children_never_run():
    children = _Children()
    out = AuthenticationGate(Role.admin).render(AuthSnapshot(user=_mk_user(Role.librarian)), children)
    assert out.decision.state == GateState.ACCESS_DENIED
    assert out.decision.redirect_to == "/dashboard?error=access_denied"
    assert out.decision.message
    assert out.content is None
    assert not out.rendered
    assert children.calls == 0


@pytest.mark.parametrize(
    "required,role",
    [
        (None, Role.librarian),
        (None, Role.admin),
        (Role.librarian, Role.librarian),
        (Role.librarian, Role.admin),
        (Role.admin, Role.admin),
    ],
)
def test_render_when_role_satisfied(required, role):
    children = _Children()
    out = AuthenticationGate(required).render(AuthSnapshot(user=_mk_user(role)), children)
    assert out.rendered
    assert out.content == f"page for {role.value}"
    assert children.calls == 1


def test_member_requirement_is_rejected():
    with pytest.raises(ValueError):
        AuthenticationGate(Role.member)
    with pytest.raises(ValueError):
        AuthenticationGate("member")
