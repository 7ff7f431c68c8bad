from __future__ import annotations

import uuid
from datetime import date
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from librarydesk.core.identity.models import Role

MEMBER_NUMBER_PREFIX = {
    Role.admin: "ADM",
    Role.librarian: "LIB",
    Role.member: "MEM",
}


class MemberStatus(str, Enum):
    active = "active"
    inactive = "inactive"


class Member(BaseModel):
    """
    Library member record. Admin and librarian members mirror a login
    account through `username`; plain members have none.
    """

    model_config = ConfigDict(extra="forbid")

    id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    member_number: str
    name: str
    email: str
    phone: str
    role: Role
    status: MemberStatus = MemberStatus.active
    join_date: date
    borrowed_books: int = Field(default=0, ge=0)
    overdue_books: int = Field(default=0, ge=0)
    username: Optional[str] = None


class MemberForm(BaseModel):
    """New member input. `role` stays a plain string so the permission check sees the raw tag."""

    model_config = ConfigDict(extra="forbid")

    name: str = ""
    email: str = ""
    phone: str = ""
    role: str = Role.member.value
    username: Optional[str] = None
    password: Optional[str] = None

    @field_validator("role", mode="before")
    @classmethod
    def _role_tag(cls, v: Any) -> Any:
        return v.value if isinstance(v, Role) else v


class MemberUpdate(BaseModel):
    """Editable fields. Member number, role, status and join date are not edited here."""

    model_config = ConfigDict(extra="forbid")

    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
