from __future__ import annotations

import pytest

from librarydesk.core.errors import NotFoundError, ValidationError
from librarydesk.core.identity.directory import UserDirectory
from librarydesk.core.identity.models import Role
from librarydesk.core.identity.passwords import PasswordHasher


def test_seeded_accounts_log_in(directory):
    for username, password, role in [
        ("admin", "password", Role.admin),
        ("librarian", "password123", Role.librarian),
        ("somchai", "somchai123", Role.librarian),
        ("malee", "malee123", Role.librarian),
    ]:
        user = directory.validate_credentials(username, password)
        assert user is not None
        assert user.role == role


def test_username_match_is_exact(directory):
    assert directory.validate_credentials("ADMIN", "password") is None
    assert directory.validate_credentials(" admin", "password") is None
    assert directory.validate_credentials("admin", "password ") is None


def test_only_hashes_are_stored(directory):
    acct = directory.get_by_username("admin")
    assert acct.password_hash.startswith("scrypt$")
    assert "password" not in acct.password_hash.split("$")
    assert "password_hash" not in acct.public().model_dump()


def test_hashes_are_salted(hasher):
    assert hasher.hash("same") != hasher.hash("same")
    assert hasher.verify("same", hasher.hash("same"))


def test_verify_rejects_garbage(hasher):
    assert hasher.verify("x", "plaintext") is False
    assert hasher.verify("x", "bcrypt$1$2$3$aa$bb") is False
    assert hasher.verify("x", "scrypt$zz$8$1$aa$bb") is False


def test_verify_uses_stored_parameters():
    old = PasswordHasher(n=2**6)
    new = PasswordHasher(n=2**8)
    assert new.verify("pw", old.hash("pw"))


def test_add_account_rules(directory):
    with pytest.raises(ValidationError):
        directory.add_account(username="admin", password="x", role=Role.librarian)
    with pytest.raises(ValidationError):
        directory.add_account(username="bob", password="secret1", role=Role.member)
    with pytest.raises(ValidationError):
        directory.add_account(username="", password="secret1", role=Role.librarian)
    acct = directory.add_account(username="bob", password="secret1", role=Role.librarian, display_name="Bob")
    assert directory.validate_credentials("bob", "secret1").id == acct.id


def test_edit_display_name_password_and_role(directory):
    acct = directory.get_by_username("malee")
    assert directory.update_display_name(acct.id, "มาลี").display_name == "มาลี"
    directory.set_password(acct.id, "newpass1")
    assert directory.validate_credentials("malee", "malee123") is None
    assert directory.validate_credentials("malee", "newpass1") is not None
    assert directory.set_role(acct.id, Role.admin).role == Role.admin
    with pytest.raises(ValidationError):
        directory.set_role(acct.id, Role.member)


def test_unknown_ids(directory):
    with pytest.raises(NotFoundError):
        directory.update_display_name("nope", "x")
    assert directory.remove_account("nope") is False


def test_remove_account(directory):
    acct = directory.get_by_username("somchai")
    assert directory.remove_account(acct.id) is True
    assert directory.validate_credentials("somchai", "somchai123") is None
    assert "somchai" not in [u.username for u in directory.list_accounts()]


def test_empty_directory(hasher):
    d = UserDirectory(hasher=hasher)
    assert d.list_accounts() == []
    assert d.validate_credentials("admin", "password") is None
