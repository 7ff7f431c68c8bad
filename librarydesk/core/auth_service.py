from __future__ import annotations

import asyncio
import threading
from typing import Optional

from pydantic import BaseModel, ConfigDict

from librarydesk.core.errors import InvalidCredentialsError, SessionExpiredError, SessionStorageError
from librarydesk.core.events import EventLogger
from librarydesk.core.identity.directory import UserDirectory
from librarydesk.core.identity.models import AuthSnapshot, LogoutReason, User
from librarydesk.core.logger import get_logger
from librarydesk.core.security_events import SecurityAuditLogger
from librarydesk.core.session.monitor import SessionMonitor
from librarydesk.core.trace import resolve_trace_id

logger = get_logger("auth")

MISSING_CREDENTIALS_MESSAGE = "กรุณากรอกชื่อผู้ใช้และรหัสผ่าน"
INVALID_CREDENTIALS_MESSAGE = InvalidCredentialsError().user_message
SESSION_EXPIRED_MESSAGE = SessionExpiredError().user_message
SESSION_STORAGE_MESSAGE = SessionStorageError().user_message
LOADING_MESSAGE = "กำลังตรวจสอบสิทธิ์การเข้าใช้..."


class LoginResult(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    success: bool
    user: Optional[User] = None
    error: Optional[str] = None


class AuthService:
    """
    Awaitable auth facade used by views: login/logout, restore on startup,
    and the user-facing error message for the login screen.

    Failed logins report one generic message whether the username or the
    password was wrong.
    """

    def __init__(
        self,
        *,
        directory: UserDirectory,
        monitor: SessionMonitor,
        audit: Optional[SecurityAuditLogger] = None,
        event_logger: Optional[EventLogger] = None,
    ):
        self.directory = directory
        self.monitor = monitor
        self.audit = audit
        self.event_logger = event_logger
        self._lock = threading.Lock()
        self._loading = True
        self._error: Optional[str] = None
        monitor.on_logout(self._on_logout)

    # ---- state ----
    @property
    def is_loading(self) -> bool:
        with self._lock:
            return self._loading

    @property
    def error(self) -> Optional[str]:
        with self._lock:
            return self._error

    @property
    def user(self) -> Optional[User]:
        return self.monitor.user

    @property
    def is_authenticated(self) -> bool:
        return self.monitor.user is not None

    @property
    def session_expired(self) -> bool:
        return self.monitor.session_expired

    def clear_error(self) -> None:
        with self._lock:
            self._error = None

    def snapshot(self) -> AuthSnapshot:
        return self.monitor.snapshot(is_loading=self.is_loading)

    # ---- operations ----
    async def initialize(self) -> AuthSnapshot:
        try:
            self.monitor.restore()
            if self.monitor.session_expired:
                self._set_error(SESSION_EXPIRED_MESSAGE)
        finally:
            with self._lock:
                self._loading = False
        return self.snapshot()

    async def login(self, username: str, password: str, remember_me: bool = False) -> LoginResult:
        self.clear_error()
        if not (username or "").strip() or not (password or "").strip():
            self._set_error(MISSING_CREDENTIALS_MESSAGE)
            return LoginResult(success=False, error=MISSING_CREDENTIALS_MESSAGE)

        # Password verification runs the KDF; keep it off the event loop.
        user = await asyncio.to_thread(self.directory.validate_credentials, username, password)
        trace_id = resolve_trace_id()
        if user is None:
            self._set_error(INVALID_CREDENTIALS_MESSAGE)
            logger.info("Login failed")
            self._record(trace_id, "auth.login.failed", actor=None, outcome="denied", details={"username": username})
            return LoginResult(success=False, error=INVALID_CREDENTIALS_MESSAGE)

        if self.monitor.login(user, remember_me=remember_me) is None:
            self._set_error(SESSION_STORAGE_MESSAGE)
            self._record(
                trace_id,
                "auth.login.failed",
                actor=user.username,
                outcome="error",
                details={"username": user.username, "reason": "session_storage"},
            )
            return LoginResult(success=False, error=SESSION_STORAGE_MESSAGE)
        self.monitor.clear_session_expired()
        logger.info(f"Login ok: {user.username} ({user.role.value})")
        self._record(
            trace_id,
            "auth.login.ok",
            actor=user.username,
            outcome="allowed",
            details={"username": user.username, "role": user.role.value, "remember_me": bool(remember_me)},
        )
        return LoginResult(success=True, user=user)

    async def logout(self, reason: LogoutReason = LogoutReason.manual) -> None:
        self.monitor.logout(reason)

    async def refresh_session(self) -> bool:
        session = self.monitor.session
        if session is None:
            return False
        if not self.monitor.store.validate_session(session):
            self.monitor.logout(LogoutReason.expired)
            return False
        self.monitor.check()
        return self.monitor.user is not None

    # ---- internals ----
    def _on_logout(self, reason: LogoutReason) -> None:
        if reason == LogoutReason.expired:
            self._set_error(SESSION_EXPIRED_MESSAGE)

    def _set_error(self, message: str) -> None:
        with self._lock:
            self._error = message

    def _record(self, trace_id: str, event: str, *, actor: Optional[str], outcome: str, details: dict) -> None:
        if self.event_logger is not None:
            try:
                self.event_logger.log(trace_id, event, details)
            except OSError as e:
                logger.warning(f"Event log write failed: {e}")
        if self.audit is not None:
            try:
                self.audit.log(
                    trace_id=trace_id,
                    severity="INFO" if outcome == "allowed" else "WARN",
                    event=event,
                    actor=actor,
                    endpoint="auth.login",
                    outcome=outcome,
                    details=details,
                )
            except OSError as e:
                logger.warning(f"Security audit write failed: {e}")
