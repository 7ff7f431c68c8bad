from __future__ import annotations

import threading
from datetime import date
from typing import Dict, Iterable, List, Optional

from librarydesk.core.errors import NotFoundError, ValidationError
from librarydesk.core.identity.models import Role
from librarydesk.core.members.models import Member, MemberStatus


# Staff members carry the usernames of the default login accounts.
SEED_MEMBERS = (
    Member(id="1", member_number="ADM001", name="ผู้ดูแลระบบ สุรพล", email="admin@library.com", phone="02-123-4567",
           role=Role.admin, join_date=date(2023, 1, 1), username="admin"),
    Member(id="2", member_number="LIB001", name="บรรณารักษ์ สมใส", email="librarian1@library.com", phone="02-234-5678",
           role=Role.librarian, join_date=date(2023, 2, 15), borrowed_books=2, username="librarian"),
    Member(id="3", member_number="LIB002", name="มาลี สวยงาม", email="librarian2@library.com", phone="02-345-6789",
           role=Role.librarian, join_date=date(2023, 3, 10), borrowed_books=1, username="malee"),
    Member(id="4", member_number="MEM001", name="สมชาย ใจดี", email="somchai@email.com", phone="08-111-2222",
           role=Role.member, join_date=date(2023, 4, 20), borrowed_books=3, overdue_books=1),
    Member(id="5", member_number="MEM002", name="สมใส รักเรียน", email="somsai@email.com", phone="08-333-4444",
           role=Role.member, join_date=date(2023, 5, 12), borrowed_books=2),
    Member(id="6", member_number="MEM003", name="ปัญญา เก่งกาจ", email="panya@email.com", phone="08-555-6666",
           role=Role.member, status=MemberStatus.inactive, join_date=date(2023, 6, 8)),
)


class MemberRepository:
    """Storage seam for member records."""

    def get(self, member_id: str) -> Optional[Member]:
        raise NotImplementedError

    def list(self) -> List[Member]:
        raise NotImplementedError

    def add(self, member: Member) -> Member:
        raise NotImplementedError

    def update(self, member: Member) -> Member:
        raise NotImplementedError

    def delete(self, member_id: str) -> bool:
        raise NotImplementedError

    def get_by_username(self, username: str) -> Optional[Member]:
        for m in self.list():
            if m.username is not None and m.username == username:
                return m
        return None


class InMemoryMemberRepository(MemberRepository):
    def __init__(self, members: Iterable[Member] = ()):
        self._lock = threading.Lock()
        self._members: Dict[str, Member] = {}
        for m in members:
            self._members[m.id] = m.model_copy(deep=True)

    @classmethod
    def seeded(cls) -> "InMemoryMemberRepository":
        return cls(SEED_MEMBERS)

    def get(self, member_id: str) -> Optional[Member]:
        with self._lock:
            m = self._members.get(str(member_id))
            return m.model_copy(deep=True) if m is not None else None

    def list(self) -> List[Member]:
        with self._lock:
            return [m.model_copy(deep=True) for m in self._members.values()]

    def add(self, member: Member) -> Member:
        with self._lock:
            if member.id in self._members:
                raise ValidationError("รหัสสมาชิกซ้ำ", member_id=member.id)
            self._members[member.id] = member.model_copy(deep=True)
        return member

    def update(self, member: Member) -> Member:
        with self._lock:
            if member.id not in self._members:
                raise NotFoundError("ไม่พบสมาชิก", member_id=member.id)
            self._members[member.id] = member.model_copy(deep=True)
        return member

    def delete(self, member_id: str) -> bool:
        with self._lock:
            return self._members.pop(str(member_id), None) is not None
