from __future__ import annotations

import threading
from typing import Dict, Iterable, List, Optional, Tuple

from librarydesk.core.errors import NotFoundError, ValidationError
from librarydesk.core.identity.models import ACCOUNT_ROLES, Role, User, UserAccount
from librarydesk.core.identity.passwords import PasswordHasher
from librarydesk.core.logger import get_logger

# (username, password, role, display_name)
DEFAULT_ACCOUNTS: Tuple[Tuple[str, str, Role, str], ...] = (
    ("admin", "password", Role.admin, "ผู้ดูแลระบบ"),
    ("librarian", "password123", Role.librarian, "บรรณารักษ์หลัก"),
    ("somchai", "somchai123", Role.librarian, "สมชาย ใจดี"),
    ("malee", "malee123", Role.librarian, "มาลี สวยงาม"),
)

logger = get_logger("identity")


class UserDirectory:
    """
    In-memory directory of admin/librarian login accounts.

    Usernames are matched exactly (case-sensitive). Passwords are verified
    against salted scrypt hashes; plaintext is never kept.
    """

    def __init__(self, *, hasher: Optional[PasswordHasher] = None):
        self.hasher = hasher or PasswordHasher()
        self._lock = threading.Lock()
        self._accounts: Dict[str, UserAccount] = {}
        # Compared against when the username is unknown so both failure
        # paths do the same amount of work.
        self._dummy_hash = self.hasher.hash("not-a-real-password")

    @classmethod
    def seeded(cls, *, hasher: Optional[PasswordHasher] = None, accounts: Iterable[Tuple[str, str, Role, str]] = DEFAULT_ACCOUNTS) -> "UserDirectory":
        d = cls(hasher=hasher)
        for username, password, role, display_name in accounts:
            d.add_account(username=username, password=password, role=role, display_name=display_name)
        return d

    # ---- credentials ----
    def validate_credentials(self, username: str, password: str) -> Optional[User]:
        acct = self.get_by_username(username)
        if acct is None:
            self.hasher.verify(password or "", self._dummy_hash)
            return None
        if not self.hasher.verify(password or "", acct.password_hash):
            return None
        return acct.public()

    # ---- lookups ----
    def get_by_username(self, username: str) -> Optional[UserAccount]:
        with self._lock:
            for acct in self._accounts.values():
                if acct.username == username:
                    return acct
        return None

    def get_by_id(self, user_id: str) -> Optional[UserAccount]:
        with self._lock:
            return self._accounts.get(str(user_id))

    def list_accounts(self) -> List[User]:
        with self._lock:
            return [a.public() for a in self._accounts.values()]

    def username_taken(self, username: str) -> bool:
        return self.get_by_username(username) is not None

    # ---- mutations ----
    def add_account(self, *, username: str, password: str, role: Role, display_name: str = "") -> UserAccount:
        role = Role(role)
        if role not in ACCOUNT_ROLES:
            raise ValidationError("บัญชีผู้ใช้สร้างได้เฉพาะผู้ดูแลระบบและบรรณารักษ์", role=role.value)
        if not username or not password:
            raise ValidationError("กรุณากรอกชื่อผู้ใช้และรหัสผ่าน")
        acct = UserAccount(username=username, password_hash=self.hasher.hash(password), role=role, display_name=display_name)
        with self._lock:
            if any(a.username == username for a in self._accounts.values()):
                raise ValidationError("Username นี้ถูกใช้งานแล้ว", username=username)
            self._accounts[acct.id] = acct
        logger.info(f"Account created: {username} ({role.value})")
        return acct

    def update_display_name(self, user_id: str, display_name: str) -> User:
        with self._lock:
            acct = self._require_locked(user_id)
            acct.display_name = display_name
            return acct.public()

    def set_password(self, user_id: str, password: str) -> None:
        if not password:
            raise ValidationError("กรุณากรอก Password")
        digest = self.hasher.hash(password)
        with self._lock:
            self._require_locked(user_id).password_hash = digest

    def set_role(self, user_id: str, role: Role) -> User:
        role = Role(role)
        if role not in ACCOUNT_ROLES:
            raise ValidationError("บัญชีผู้ใช้สร้างได้เฉพาะผู้ดูแลระบบและบรรณารักษ์", role=role.value)
        with self._lock:
            acct = self._require_locked(user_id)
            acct.role = role
            return acct.public()

    def remove_account(self, user_id: str) -> bool:
        with self._lock:
            return self._accounts.pop(str(user_id), None) is not None

    def _require_locked(self, user_id: str) -> UserAccount:
        acct = self._accounts.get(str(user_id))
        if acct is None:
            raise NotFoundError("ไม่พบบัญชีผู้ใช้", user_id=user_id)
        return acct
