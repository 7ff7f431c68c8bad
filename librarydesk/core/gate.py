from __future__ import annotations

from enum import Enum
from typing import Callable, Generic, Optional, TypeVar

from pydantic import BaseModel, ConfigDict

from librarydesk.core.identity.models import AuthSnapshot, LogoutReason, Role, User
from librarydesk.core.permissions import messages
from librarydesk.core.permissions.resolver import has_required_role

T = TypeVar("T")

DEFAULT_LOGIN_PATH = "/auth/login"
DEFAULT_DENIED_PATH = "/dashboard?error=access_denied"


class GateState(str, Enum):
    LOADING = "loading"
    REDIRECT = "redirect"
    ACCESS_DENIED = "access_denied"
    RENDER = "render"


class GateDecision(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    state: GateState
    redirect_to: Optional[str] = None
    user: Optional[User] = None
    message: Optional[str] = None


class GateOutcome(Generic[T]):
    """Decision plus the rendered content, which exists only for RENDER."""

    def __init__(self, decision: GateDecision, content: Optional[T] = None):
        self.decision = decision
        self.content = content

    @property
    def rendered(self) -> bool:
        return self.decision.state == GateState.RENDER


def _with_query(path: str, query: str) -> str:
    sep = "&" if "?" in path else "?"
    return f"{path}{sep}{query}"


class AuthenticationGate:
    """
    Decides whether a protected view may render for the current auth state.

    Evaluation order: still loading, then no user (redirect to login, with
    ``expired=true`` when the last logout was an expiry), then role check.
    Admin satisfies every required role.
    """

    def __init__(
        self,
        required_role: Optional[Role] = None,
        *,
        fallback_path: str = DEFAULT_LOGIN_PATH,
        denied_path: str = DEFAULT_DENIED_PATH,
    ):
        if required_role is not None:
            required_role = Role(required_role)
            if required_role == Role.member:
                raise ValueError("required_role must be admin, librarian or None")
        self.required_role = required_role
        self.fallback_path = fallback_path
        self.denied_path = denied_path

    def evaluate(self, snapshot: AuthSnapshot) -> GateDecision:
        if snapshot.is_loading:
            return GateDecision(state=GateState.LOADING)

        user = snapshot.user
        if user is None:
            target = self.fallback_path
            if snapshot.last_logout_reason == LogoutReason.expired:
                target = _with_query(target, "expired=true")
            return GateDecision(state=GateState.REDIRECT, redirect_to=target)

        if self.required_role is not None and not has_required_role(user.role, self.required_role):
            return GateDecision(
                state=GateState.ACCESS_DENIED,
                redirect_to=self.denied_path,
                user=user,
                message=messages.REQUIRED_ROLE_DENIED.get(self.required_role, messages.ACCESS_DENIED),
            )

        return GateDecision(state=GateState.RENDER, user=user)

    def render(self, snapshot: AuthSnapshot, children: Callable[[User], T]) -> GateOutcome[T]:
        decision = self.evaluate(snapshot)
        if decision.state != GateState.RENDER or decision.user is None:
            return GateOutcome(decision)
        return GateOutcome(decision, children(decision.user))
