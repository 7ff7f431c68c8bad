from __future__ import annotations

import re
from typing import Callable, Dict, Iterable, Optional

from pydantic import BaseModel, ConfigDict, Field

from librarydesk.core.members.models import Member

NAME_RE = re.compile(r"[ก-๙a-zA-Z\s\-\.]+")
EMAIL_RE = re.compile(r"[^\s@]+@[^\s@]+\.[^\s@]+")
MOBILE_RE = re.compile(r"0[689]\d{8}")
LANDLINE_RE = re.compile(r"0[2-7]\d{7}")
USERNAME_RE = re.compile(r"[a-zA-Z0-9_-]+")

PHONE_FORMAT_MESSAGE = "รูปแบบเบอร์โทรศัพท์ไม่ถูกต้อง (ตัวอย่าง: 08x-xxx-xxxx)"


class FormValidation(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    is_valid: bool
    errors: Dict[str, str] = Field(default_factory=dict)


def normalize_phone(phone: str) -> str:
    return re.sub(r"\D", "", phone or "")


def validate_name(name: str) -> Optional[str]:
    value = (name or "").strip()
    if not value:
        return "กรุณากรอกชื่อ-สกุล"
    if len(value) < 2:
        return "ชื่อ-สกุลต้องมีอย่างน้อย 2 ตัวอักษร"
    if len(value) > 100:
        return "ชื่อ-สกุลต้องไม่เกิน 100 ตัวอักษร"
    if not NAME_RE.fullmatch(value):
        return "ชื่อ-สกุลสามารถใช้ได้เฉพาะตัวอักษรไทยและอังกฤษเท่านั้น"
    return None


def validate_email(email: str) -> Optional[str]:
    email = email or ""
    if not email.strip():
        return "กรุณากรอกอีเมล"
    if len(email) > 255:
        return "อีเมลต้องไม่เกิน 255 ตัวอักษร"
    if not EMAIL_RE.fullmatch(email):
        return "รูปแบบอีเมลไม่ถูกต้อง (ตัวอย่าง: user@example.com)"
    return None


def validate_phone(phone: str) -> Optional[str]:
    if not (phone or "").strip():
        return "กรุณากรอกเบอร์โทรศัพท์"
    digits = normalize_phone(phone)
    if not 9 <= len(digits) <= 10:
        return PHONE_FORMAT_MESSAGE
    if not MOBILE_RE.fullmatch(digits) and not LANDLINE_RE.fullmatch(digits):
        return PHONE_FORMAT_MESSAGE
    return None


def validate_username(username: str) -> Optional[str]:
    username = username or ""
    if not username.strip():
        return "กรุณากรอก Username"
    if len(username) < 3:
        return "Username ต้องมีอย่างน้อย 3 ตัวอักษร"
    if len(username) > 50:
        return "Username ต้องไม่เกิน 50 ตัวอักษร"
    if not USERNAME_RE.fullmatch(username):
        return "Username สามารถใช้ได้เฉพาะตัวอักษร ตัวเลข _ และ - เท่านั้น"
    return None


def validate_password(password: str) -> Optional[str]:
    password = password or ""
    if not password.strip():
        return "กรุณากรอก Password"
    if len(password) < 6:
        return "Password ต้องมีอย่างน้อย 6 ตัวอักษร"
    if len(password) > 100:
        return "Password ต้องไม่เกิน 100 ตัวอักษร"
    return None


# ---- duplicates (the excluded id is the member being edited) ----
def check_duplicate_email(email: str, existing: Iterable[Member], exclude_id: Optional[str] = None) -> Optional[str]:
    if not (email or "").strip():
        return None
    needle = email.lower()
    if any(m.email.lower() == needle and m.id != exclude_id for m in existing):
        return "อีเมลนี้มีการใช้งานแล้ว"
    return None


def check_duplicate_phone(phone: str, existing: Iterable[Member], exclude_id: Optional[str] = None) -> Optional[str]:
    if not (phone or "").strip():
        return None
    needle = normalize_phone(phone)
    if any(normalize_phone(m.phone) == needle and m.id != exclude_id for m in existing):
        return "เบอร์โทรศัพท์นี้มีการใช้งานแล้ว"
    return None


def check_duplicate_username(username: str, existing: Iterable[Member], exclude_id: Optional[str] = None) -> Optional[str]:
    if not (username or "").strip():
        return None
    needle = username.lower()
    if any((m.username or "").lower() == needle and m.id != exclude_id for m in existing):
        return "Username นี้มีการใช้งานแล้ว"
    return None


def validate_member_form(
    data: Dict[str, Optional[str]],
    existing: Iterable[Member],
    *,
    exclude_id: Optional[str] = None,
    require_account: bool = False,
    username_taken: Optional[Callable[[str], bool]] = None,
) -> FormValidation:
    """
    Field rules plus duplicate checks against `existing`.

    Account fields (username/password) are checked only when
    `require_account` is set, and are then mandatory. `username_taken`, when
    given, is consulted as well so names held by login accounts without a
    member record are rejected too.
    """
    members = list(existing)
    errors: Dict[str, str] = {}

    for field_name, check in (("name", validate_name), ("email", validate_email), ("phone", validate_phone)):
        err = check(data.get(field_name) or "")
        if err:
            errors[field_name] = err

    if "email" not in errors:
        err = check_duplicate_email(data.get("email") or "", members, exclude_id)
        if err:
            errors["email"] = err
    if "phone" not in errors:
        err = check_duplicate_phone(data.get("phone") or "", members, exclude_id)
        if err:
            errors["phone"] = err

    if require_account:
        username = data.get("username") or ""
        err = validate_username(username) or check_duplicate_username(username, members, exclude_id)
        if err is None and username_taken is not None and username_taken(username):
            err = "Username นี้มีการใช้งานแล้ว"
        if err:
            errors["username"] = err
        err = validate_password(data.get("password") or "")
        if err:
            errors["password"] = err

    return FormValidation(is_valid=not errors, errors=errors)
