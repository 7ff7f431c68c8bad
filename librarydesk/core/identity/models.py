from __future__ import annotations

import math
import uuid
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class Role(str, Enum):
    admin = "admin"
    librarian = "librarian"
    member = "member"


# Roles that carry a login account in the user directory.
ACCOUNT_ROLES = frozenset({Role.admin, Role.librarian})


class LogoutReason(str, Enum):
    manual = "manual"
    expired = "expired"
    invalid = "invalid"


class User(BaseModel):
    """Authenticated identity as exposed to the rest of the app (no secrets)."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    id: str
    username: str
    role: Role
    display_name: str = ""

    @model_validator(mode="after")
    def _account_role(self) -> "User":
        if self.role not in ACCOUNT_ROLES:
            raise ValueError("user accounts are admin or librarian only")
        return self


class UserAccount(BaseModel):
    """Directory record. Only a salted hash of the password is kept."""

    model_config = ConfigDict(extra="forbid")

    id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    username: str
    password_hash: str
    role: Role
    display_name: str = ""

    def public(self) -> User:
        return User(id=self.id, username=self.username, role=self.role, display_name=self.display_name)


class Session(BaseModel):
    """
    One persisted session per browser context. Timestamps are epoch seconds.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    user: User
    issued_at: float
    expires_at: float
    remember_me: bool = False

    @field_validator("issued_at", "expires_at", mode="before")
    @classmethod
    def _numeric_timestamp(cls, v: Any) -> float:
        # Numeric strings and booleans are not timestamps.
        if isinstance(v, bool) or not isinstance(v, (int, float)):
            raise ValueError("timestamp must be a number")
        try:
            ts = float(v)
        except OverflowError as e:
            raise ValueError("timestamp out of range") from e
        if not math.isfinite(ts):
            raise ValueError("timestamp must be finite")
        return ts

    @model_validator(mode="after")
    def _ordered(self) -> "Session":
        if not self.expires_at > self.issued_at:
            raise ValueError("expires_at must be after issued_at")
        return self


class AuthSnapshot(BaseModel):
    """Point-in-time view of the auth state, consumed by the gate and views."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    is_loading: bool = False
    user: Optional[User] = None
    session_expired: bool = False
    last_logout_reason: Optional[LogoutReason] = None

    @property
    def is_authenticated(self) -> bool:
        return self.user is not None
