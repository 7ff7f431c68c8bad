from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from librarydesk.core.identity.models import LogoutReason, User


class LoginRequest(BaseModel):
    # Empty values are accepted here and rejected by the auth service with its own message.
    username: str = Field(default="", max_length=100)
    password: str = Field(default="", max_length=200)
    remember_me: bool = False


class LoginResponse(BaseModel):
    success: bool
    user: Optional[User] = None


class SessionInfoResponse(BaseModel):
    authenticated: bool
    user: Optional[User] = None
    remember_me: bool = False
    expires_at: Optional[float] = None
    remaining_seconds: float = 0.0
    remaining_text: str = ""
    expiring: bool = False
    session_expired: bool = False
    last_logout_reason: Optional[LogoutReason] = None
    error: Optional[str] = None


class RoleChangeRequest(BaseModel):
    role: str = Field(min_length=1, max_length=32)


class OkResponse(BaseModel):
    ok: bool
    message: str = ""


class MemberListResponse(BaseModel):
    members: List[Dict[str, Any]]


class UserListResponse(BaseModel):
    users: List[User]
