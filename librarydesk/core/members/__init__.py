"""
Library members: records, form validation and the permission-checked service.
"""

from librarydesk.core.members.models import Member, MemberForm, MemberStatus, MemberUpdate
from librarydesk.core.members.repository import SEED_MEMBERS, InMemoryMemberRepository, MemberRepository
from librarydesk.core.members.service import MemberService, next_member_number
from librarydesk.core.members.validation import FormValidation, validate_member_form

__all__ = [
    "FormValidation",
    "InMemoryMemberRepository",
    "Member",
    "MemberForm",
    "MemberRepository",
    "MemberService",
    "MemberStatus",
    "MemberUpdate",
    "SEED_MEMBERS",
    "next_member_number",
    "validate_member_form",
]
