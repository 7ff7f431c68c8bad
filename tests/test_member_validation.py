from __future__ import annotations

from datetime import date

import pytest

from librarydesk.core.identity.models import Role
from librarydesk.core.members.models import Member
from librarydesk.core.members.validation import (
    validate_email,
    validate_member_form,
    validate_name,
    validate_password,
    validate_phone,
    validate_username,
)


def _mk_member(**kw) -> Member:  # noqa: ANN003
    base = dict(id="m1", member_number="MEM001", name="สมชาย ใจดี", email="somchai@email.com", phone="081-111-2222",
                role=Role.member, join_date=date(2023, 1, 1))
    base.update(kw)
    return Member(**base)


@pytest.mark.parametrize("name", ["สมชาย ใจดี", "John Smith", "Mary-Jane O.", "กข"])
def test_valid_names(name):
    assert validate_name(name) is None


@pytest.mark.parametrize("name", ["", "   ", "ก", "x" * 101, "John3", "a@b"])
def test_invalid_names(name):
    assert validate_name(name) is not None


def test_email_rules():
    assert validate_email("user@example.com") is None
    assert validate_email("") == "กรุณากรอกอีเมล"
    assert validate_email("no-at-sign") is not None
    assert validate_email("a@b") is not None
    assert validate_email("a@b.co\n") is not None
    assert validate_email("a" * 250 + "@x.com") == "อีเมลต้องไม่เกิน 255 ตัวอักษร"


@pytest.mark.parametrize("phone", ["0812345678", "08-123-4567x8", "091-234-5678", "061 234 5678", "02-123-4567", "053123456"])
def test_valid_phones(phone):
    assert validate_phone(phone) is None


@pytest.mark.parametrize("phone", ["", "12345", "0123456789", "0812345", "08123456789", "01-123-4567"])
def test_invalid_phones(phone):
    assert validate_phone(phone) is not None


def test_username_and_password_rules():
    assert validate_username("lib_01-x") is None
    assert validate_username("ab") is not None
    assert validate_username("has space") is not None
    assert validate_username("lib1\n") is not None
    assert validate_username("x" * 51) is not None
    assert validate_password("123456") is None
    assert validate_password("12345") is not None
    assert validate_password("      ") is not None
    assert validate_password("x" * 101) is not None


def test_duplicates_are_reported():
    existing = [_mk_member(username="lib1", role=Role.librarian, member_number="LIB001")]
    res = validate_member_form(
        {"name": "ใหม่ ทดสอบ", "email": "SOMCHAI@email.com", "phone": "0811112222", "username": "LIB1", "password": "secret1"},
        existing,
        require_account=True,
    )
    assert not res.is_valid
    assert res.errors == {
        "email": "อีเมลนี้มีการใช้งานแล้ว",
        "phone": "เบอร์โทรศัพท์นี้มีการใช้งานแล้ว",
        "username": "Username นี้มีการใช้งานแล้ว",
    }


def test_exclude_id_allows_own_values():
    existing = [_mk_member()]
    res = validate_member_form({"name": "สมชาย ใจดี", "email": "somchai@email.com", "phone": "081-111-2222"}, existing, exclude_id="m1")
    assert res.is_valid


def test_account_fields_required_only_for_accounts():
    data = {"name": "สมหญิง ดีใจ", "email": "x@y.com", "phone": "0899999999"}
    assert validate_member_form(data, []).is_valid
    res = validate_member_form(data, [], require_account=True)
    assert set(res.errors) == {"username", "password"}


def test_username_taken_callback():
    data = {"name": "สมหญิง ดีใจ", "email": "x@y.com", "phone": "0899999999", "username": "somchai", "password": "secret1"}
    res = validate_member_form(data, [], require_account=True, username_taken=lambda u: u == "somchai")
    assert res.errors == {"username": "Username นี้มีการใช้งานแล้ว"}
