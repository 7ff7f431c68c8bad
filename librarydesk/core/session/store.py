from __future__ import annotations

import json
import time
from dataclasses import dataclass
from typing import Callable, Optional

from pydantic import ValidationError

from librarydesk.core.config.models import SessionConfig
from librarydesk.core.identity.models import Session, User
from librarydesk.core.logger import get_logger
from librarydesk.core.session.slot import SessionSlot

logger = get_logger("session")


@dataclass(frozen=True)
class SlotRead:
    session: Optional[Session]
    status: str  # ok|missing|corrupt


class SessionStore:
    """
    Issues sessions and keeps the single persisted session slot.

    Nothing here raises on bad slot contents: a record that does not parse
    into a well-formed Session is cleared and reported as absent.
    """

    def __init__(self, *, slot: SessionSlot, cfg: Optional[SessionConfig] = None, clock: Callable[[], float] = time.time):
        self.slot = slot
        self.cfg = cfg or SessionConfig()
        self.clock = clock

    def now(self) -> float:
        return float(self.clock())

    # ---- issuing ----
    def create_session(self, user: User, remember_me: bool = False) -> Session:
        issued_at = self.now()
        ttl = self.cfg.long_ttl_seconds if remember_me else self.cfg.short_ttl_seconds
        return Session(user=user, issued_at=issued_at, expires_at=issued_at + float(ttl), remember_me=bool(remember_me))

    # ---- slot ----
    def store_session(self, session: Session) -> bool:
        """Persist `session`; False when the slot could not be written."""
        try:
            self.slot.write(json.dumps(session.model_dump(mode="json"), ensure_ascii=False))
        except OSError as e:
            logger.error(f"Failed to store session: {e}")
            return False
        return True

    def read_stored_session(self) -> SlotRead:
        raw = self.slot.read()
        if raw is None or not raw.strip():
            return SlotRead(session=None, status="missing")
        try:
            data = json.loads(raw)
            if not isinstance(data, dict):
                raise ValueError("session record is not an object")
            session = Session.model_validate(data)
        except (ValueError, OverflowError, ValidationError) as e:
            # json.JSONDecodeError is a ValueError
            logger.warning(f"Discarding malformed session record: {type(e).__name__}")
            self.clear_stored_session()
            return SlotRead(session=None, status="corrupt")
        return SlotRead(session=session, status="ok")

    def get_stored_session(self) -> Optional[Session]:
        return self.read_stored_session().session

    def clear_stored_session(self) -> None:
        try:
            self.slot.clear()
        except OSError as e:
            logger.error(f"Failed to clear session slot: {e}")

    # ---- checks ----
    def is_session_expired(self, session: Optional[Session]) -> bool:
        if session is None:
            return True
        return self.now() >= session.expires_at

    def validate_session(self, session: Optional[Session]) -> bool:
        if session is None:
            return False
        if not isinstance(session, Session):
            try:
                session = Session.model_validate(session)
            except ValidationError:
                return False
        return not self.is_session_expired(session)

    def get_session_remaining_time(self, session: Optional[Session]) -> float:
        if session is None:
            return 0.0
        return max(0.0, session.expires_at - self.now())


def format_session_time(remaining_seconds: float) -> str:
    if remaining_seconds <= 0:
        return "หมดอายุแล้ว"
    minutes = int(remaining_seconds // 60)
    hours = minutes // 60
    days = hours // 24
    if days > 0:
        return f"เหลือ {days} วัน"
    if hours > 0:
        return f"เหลือ {hours} ชั่วโมง"
    if minutes > 0:
        return f"เหลือ {minutes} นาที"
    return "เหลือน้อยกว่า 1 นาที"
