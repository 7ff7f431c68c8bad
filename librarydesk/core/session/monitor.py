from __future__ import annotations

import threading
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

from librarydesk.core.config.models import SessionConfig
from librarydesk.core.events import EventLogger
from librarydesk.core.identity.models import AuthSnapshot, LogoutReason, Session, User
from librarydesk.core.logger import get_logger
from librarydesk.core.scheduling import Scheduler, TaskHandle
from librarydesk.core.session.store import SessionStore
from librarydesk.core.trace import resolve_trace_id

logger = get_logger("session.monitor")


class MonitorState(str, Enum):
    UNAUTHENTICATED = "unauthenticated"
    AUTHENTICATED_FRESH = "authenticated_fresh"
    AUTHENTICATED_EXPIRING = "authenticated_expiring"


class SessionMonitor:
    """
    Session lifecycle state machine.

    States:
      UNAUTHENTICATED -> AUTHENTICATED_FRESH on login/restore
      AUTHENTICATED_FRESH -> AUTHENTICATED_EXPIRING once remaining <= warning threshold
      AUTHENTICATED_* -> UNAUTHENTICATED on logout, expiry or a vanished/corrupt slot

    Every login starts a new generation. Timer callbacks carry the generation
    they were scheduled for and do nothing once it is stale.
    """

    def __init__(
        self,
        *,
        store: SessionStore,
        scheduler: Scheduler,
        cfg: Optional[SessionConfig] = None,
        event_logger: Optional[EventLogger] = None,
    ):
        self.store = store
        self.scheduler = scheduler
        self.cfg = cfg or store.cfg
        self.event_logger = event_logger
        self._lock = threading.RLock()
        self._state = MonitorState.UNAUTHENTICATED
        self._session: Optional[Session] = None
        self._generation = 0
        self._poll: Optional[TaskHandle] = None
        self._expiry_timer: Optional[TaskHandle] = None
        self._warned = False
        self._session_expired = False
        self._last_logout_reason: Optional[LogoutReason] = None
        self._warning_listeners: List[Callable[[float], None]] = []
        self._logout_listeners: List[Callable[[LogoutReason], None]] = []

    # ---- listeners ----
    def on_warning(self, callback: Callable[[float], None]) -> None:
        self._warning_listeners.append(callback)

    def on_logout(self, callback: Callable[[LogoutReason], None]) -> None:
        self._logout_listeners.append(callback)

    # ---- read side ----
    @property
    def state(self) -> MonitorState:
        with self._lock:
            return self._state

    @property
    def session(self) -> Optional[Session]:
        with self._lock:
            return self._session

    @property
    def user(self) -> Optional[User]:
        s = self.session
        return s.user if s is not None else None

    @property
    def session_expired(self) -> bool:
        with self._lock:
            return self._session_expired

    @property
    def last_logout_reason(self) -> Optional[LogoutReason]:
        with self._lock:
            return self._last_logout_reason

    def snapshot(self, *, is_loading: bool = False) -> AuthSnapshot:
        with self._lock:
            return AuthSnapshot(
                is_loading=is_loading,
                user=self._session.user if self._session is not None else None,
                session_expired=self._session_expired,
                last_logout_reason=self._last_logout_reason,
            )

    def remaining_time(self) -> float:
        return self.store.get_session_remaining_time(self.session)

    def clear_session_expired(self) -> None:
        with self._lock:
            self._session_expired = False

    # ---- transitions ----
    def restore(self) -> AuthSnapshot:
        read = self.store.read_stored_session()
        if read.status == "corrupt":
            with self._lock:
                self._last_logout_reason = LogoutReason.invalid
            self._event("session.corrupt", {})
            return self.snapshot()
        if read.session is None:
            return self.snapshot()

        if self.store.is_session_expired(read.session):
            self.store.clear_stored_session()
            with self._lock:
                self._session_expired = True
                self._last_logout_reason = LogoutReason.expired
            self._event("session.expired", {"username": read.session.user.username, "on": "restore"})
            return self.snapshot()

        self._begin(read.session)
        self._event("session.restored", {"username": read.session.user.username, "remember_me": read.session.remember_me})
        self.check()
        return self.snapshot()

    def login(self, user: User, remember_me: bool = False) -> Optional[Session]:
        """Start a session for `user`. None, with the state unchanged, when it cannot be stored."""
        session = self.store.create_session(user, remember_me)
        if not self.store.store_session(session):
            return None
        self._begin(session)
        self.check()
        return session

    def logout(self, reason: LogoutReason = LogoutReason.manual) -> None:
        self._terminate(LogoutReason(reason), generation=None)

    def stop(self) -> None:
        """Cancel all timers without touching the slot."""
        with self._lock:
            self._generation += 1
            handles = self._take_handles_locked()
        self._cancel(handles)

    def check(self) -> MonitorState:
        with self._lock:
            session = self._session
            generation = self._generation
        if session is None:
            return MonitorState.UNAUTHENTICATED

        stored = self.store.get_stored_session()
        if stored is None or stored.model_dump() != session.model_dump():
            logger.warning("Stored session vanished or changed while authenticated")
            self._terminate(LogoutReason.invalid, generation=generation)
            return self.state

        if self.store.is_session_expired(session):
            self._terminate(LogoutReason.expired, generation=generation)
            return self.state

        remaining = self.store.get_session_remaining_time(session)
        if remaining > self.cfg.warning_threshold_seconds:
            return self.state

        fire_warning = False
        with self._lock:
            if generation != self._generation:
                return self._state
            self._state = MonitorState.AUTHENTICATED_EXPIRING
            if self._expiry_timer is None:
                self._expiry_timer = self.scheduler.call_later(
                    remaining, lambda: self._on_expiry_timer(generation), name="session-expiry"
                )
            if not self._warned:
                self._warned = True
                fire_warning = True

        if fire_warning:
            self._event("session.warning", {"username": session.user.username, "remaining_seconds": round(remaining, 3)})
            for cb in list(self._warning_listeners):
                cb(remaining)
        return MonitorState.AUTHENTICATED_EXPIRING

    # ---- internals ----
    def _begin(self, session: Session) -> None:
        with self._lock:
            handles = self._take_handles_locked()
            self._generation += 1
            generation = self._generation
            self._session = session
            self._state = MonitorState.AUTHENTICATED_FRESH
            self._warned = False
            self._session_expired = False
            self._poll = self.scheduler.call_every(
                self.cfg.poll_interval_seconds, lambda: self._on_poll(generation), name="session-poll"
            )
        self._cancel(handles)

    def _on_poll(self, generation: int) -> None:
        with self._lock:
            if generation != self._generation:
                return
        self.check()

    def _on_expiry_timer(self, generation: int) -> None:
        self._terminate(LogoutReason.expired, generation=generation)

    def _terminate(self, reason: LogoutReason, *, generation: Optional[int]) -> bool:
        with self._lock:
            if generation is not None and generation != self._generation:
                return False
            previous = self._session
            handles = self._take_handles_locked()
            self._generation += 1
            self._session = None
            self._state = MonitorState.UNAUTHENTICATED
            self._warned = False
            self._last_logout_reason = reason
            self._session_expired = reason == LogoutReason.expired
            self.store.clear_stored_session()
        self._cancel(handles)

        details: Dict[str, Any] = {"reason": reason.value}
        if previous is not None:
            details["username"] = previous.user.username
        logger.info(f"Session ended ({reason.value})")
        self._event("auth.logout", details)
        for cb in list(self._logout_listeners):
            cb(reason)
        return True

    def _take_handles_locked(self) -> List[TaskHandle]:
        handles = [h for h in (self._poll, self._expiry_timer) if h is not None]
        self._poll = None
        self._expiry_timer = None
        return handles

    @staticmethod
    def _cancel(handles: List[TaskHandle]) -> None:
        # Called outside the lock: a thread-backed handle may join its worker.
        for h in handles:
            h.cancel()

    def _event(self, event_type: str, details: Dict[str, Any]) -> None:
        if self.event_logger is None:
            return
        try:
            self.event_logger.log(resolve_trace_id(), event_type, details)
        except OSError as e:
            logger.warning(f"Event log write failed: {e}")
