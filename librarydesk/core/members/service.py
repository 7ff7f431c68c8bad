from __future__ import annotations

from datetime import date
from typing import Any, Callable, Dict, List, Optional, Union

from librarydesk.core.errors import NotFoundError, PermissionDeniedError, ValidationError
from librarydesk.core.events import EventLogger
from librarydesk.core.identity.directory import UserDirectory
from librarydesk.core.identity.models import ACCOUNT_ROLES, Role, User
from librarydesk.core.logger import get_logger
from librarydesk.core.members.models import MEMBER_NUMBER_PREFIX, Member, MemberForm, MemberStatus, MemberUpdate
from librarydesk.core.members.repository import MemberRepository
from librarydesk.core.members.validation import validate_member_form
from librarydesk.core.permissions import messages
from librarydesk.core.permissions.resolver import PermissionResolver, parse_role
from librarydesk.core.trace import resolve_trace_id

logger = get_logger("members")

ADMIN_UNDELETABLE = "ไม่สามารถลบบัญชีผู้ดูแลระบบได้"
HAS_BORROWED_BOOKS = "ไม่สามารถลบสมาชิกที่ยังมีหนังสือค้างยืมอยู่"
INVALID_FORM = "ข้อมูลไม่ถูกต้อง กรุณาตรวจสอบอีกครั้ง"
MEMBER_NOT_FOUND = "ไม่พบสมาชิก"
ROLE_CHANGE_NEEDS_ACCOUNT = "การเปลี่ยนสมาชิกเป็นบรรณารักษ์หรือผู้ดูแลระบบต้องสร้างบัญชีผู้ใช้ใหม่"
SELF_ROLE_CHANGE = "ไม่สามารถเปลี่ยนประเภทบัญชีของตนเองได้"


def next_member_number(role: Role, existing: List[Member]) -> str:
    """Prefix for the role plus the highest existing number for that prefix, plus one."""
    prefix = MEMBER_NUMBER_PREFIX[role]
    numbers = []
    for m in existing:
        if m.member_number.startswith(prefix) and m.member_number[3:].isdigit():
            numbers.append(int(m.member_number[3:]))
    return f"{prefix}{(max(numbers) + 1 if numbers else 1):03d}"


class MemberService:
    """
    Member lifecycle under the role permission model.

    Every operation takes the acting user first and checks it through the
    PermissionResolver before touching data. Admin and librarian members
    keep a mirrored login account in the UserDirectory.
    """

    def __init__(
        self,
        *,
        repo: MemberRepository,
        directory: UserDirectory,
        resolver: PermissionResolver,
        event_logger: Optional[EventLogger] = None,
        today: Callable[[], date] = date.today,
    ):
        self.repo = repo
        self.directory = directory
        self.resolver = resolver
        self.event_logger = event_logger
        self.today = today

    # ---- reads ----
    def list_members(self, actor: Optional[User]) -> List[Member]:
        self.resolver.require(actor, "can_access_all_features", endpoint="members.list", message=messages.ACCESS_DENIED)
        return self.repo.list()

    def get_member(self, actor: Optional[User], member_id: str) -> Member:
        self.resolver.require(actor, "can_access_all_features", endpoint="members.get", message=messages.ACCESS_DENIED)
        return self._require(member_id)

    # ---- writes ----
    def create_member(self, actor: Optional[User], form: Union[MemberForm, Dict[str, Any]]) -> Member:
        if not isinstance(form, MemberForm):
            form = MemberForm.model_validate(form)
        self.resolver.require_create(actor, form.role, endpoint="members.create")
        role = Role(form.role)
        needs_account = role in ACCOUNT_ROLES

        existing = self.repo.list()
        result = validate_member_form(
            form.model_dump(),
            existing,
            require_account=needs_account,
            username_taken=self.directory.username_taken,
        )
        if not result.is_valid:
            raise ValidationError(INVALID_FORM, errors=result.errors)

        member = Member(
            member_number=next_member_number(role, existing),
            name=form.name.strip(),
            email=form.email.strip(),
            phone=form.phone.strip(),
            role=role,
            join_date=self.today(),
            username=form.username if needs_account else None,
        )
        if needs_account:
            self.directory.add_account(
                username=str(form.username),
                password=str(form.password),
                role=role,
                display_name=member.name,
            )
        self.repo.add(member)
        logger.info(f"Member created: {member.member_number} ({role.value})")
        self._event("members.created", actor, {"member_id": member.id, "member_number": member.member_number, "role": role.value})
        return member

    def update_member(self, actor: Optional[User], member_id: str, changes: Union[MemberUpdate, Dict[str, Any]]) -> Member:
        self.resolver.require(actor, "can_access_all_features", endpoint="members.update", message=messages.ACCESS_DENIED)
        if not isinstance(changes, MemberUpdate):
            changes = MemberUpdate.model_validate(changes)
        member = self._require(member_id)

        patch = changes.model_dump(exclude_none=True)
        merged = member.model_dump()
        merged.update(patch)
        result = validate_member_form(merged, self.repo.list(), exclude_id=member.id)
        # Stored values that predate the current rules are left alone.
        errors = {k: v for k, v in result.errors.items() if k in patch}
        if errors:
            raise ValidationError(INVALID_FORM, errors=errors)

        updated = member.model_copy(update={k: str(v).strip() for k, v in patch.items()})
        self.repo.update(updated)
        if "name" in patch and updated.username:
            acct = self.directory.get_by_username(updated.username)
            if acct is not None:
                self.directory.update_display_name(acct.id, updated.name)
        self._event("members.updated", actor, {"member_id": member.id, "fields": sorted(patch)})
        return updated

    def toggle_status(self, actor: Optional[User], member_id: str) -> Member:
        self.resolver.require(actor, "can_access_all_features", endpoint="members.toggle_status", message=messages.ACCESS_DENIED)
        member = self._require(member_id)
        status = MemberStatus.inactive if member.status == MemberStatus.active else MemberStatus.active
        updated = member.model_copy(update={"status": status})
        self.repo.update(updated)
        self._event("members.status", actor, {"member_id": member.id, "status": status.value})
        return updated

    def delete_member(self, actor: Optional[User], member_id: str) -> None:
        self.resolver.require(actor, "can_delete_users", endpoint="members.delete", message=messages.DELETE_DENIED)
        member = self._require(member_id)
        if member.role == Role.admin:
            raise PermissionDeniedError(ADMIN_UNDELETABLE, member_id=member.id)
        if member.borrowed_books > 0:
            raise ValidationError(HAS_BORROWED_BOOKS, member_id=member.id, borrowed_books=member.borrowed_books)

        self.repo.delete(member.id)
        if member.username:
            acct = self.directory.get_by_username(member.username)
            if acct is not None:
                self.directory.remove_account(acct.id)
        logger.info(f"Member deleted: {member.member_number}")
        self._event("members.deleted", actor, {"member_id": member.id, "member_number": member.member_number})

    def change_role(self, actor: Optional[User], member_id: str, role: Union[Role, str]) -> Member:
        """
        Moves a member between roles. Staff may move between admin and
        librarian, or down to member (the login account is removed). Raising
        a plain member needs credentials and goes through create_member.
        """
        self.resolver.require(actor, "can_edit_user_roles", endpoint="members.change_role", message=messages.EDIT_ROLES_DENIED)
        target = parse_role(role)
        if target is None:
            raise ValidationError(messages.INVALID_ROLE, role=str(role))
        member = self._require(member_id)
        if actor is not None and member.username and member.username == actor.username:
            raise PermissionDeniedError(SELF_ROLE_CHANGE, member_id=member.id)
        if target == member.role:
            return member

        acct = self.directory.get_by_username(member.username) if member.username else None
        if target in ACCOUNT_ROLES:
            if acct is None:
                raise ValidationError(ROLE_CHANGE_NEEDS_ACCOUNT, member_id=member.id)
            self.directory.set_role(acct.id, target)
            updated = member.model_copy(update={"role": target})
        else:
            if acct is not None:
                self.directory.remove_account(acct.id)
            updated = member.model_copy(update={"role": target, "username": None})

        self.repo.update(updated)
        logger.info(f"Member role changed: {member.member_number} {member.role.value} -> {target.value}")
        self._event("members.role_changed", actor, {"member_id": member.id, "from": member.role.value, "to": target.value})
        return updated

    # ---- internals ----
    def _require(self, member_id: str) -> Member:
        member = self.repo.get(member_id)
        if member is None:
            raise NotFoundError(MEMBER_NOT_FOUND, member_id=member_id)
        return member

    def _event(self, event_type: str, actor: Optional[User], details: Dict[str, Any]) -> None:
        if self.event_logger is None:
            return
        details = dict(details)
        details["actor"] = actor.username if actor is not None else None
        try:
            self.event_logger.log(resolve_trace_id(), event_type, details)
        except OSError as e:
            logger.warning(f"Event log write failed: {e}")
