"""
Authentication identities: roles, users, sessions and the login directory.
"""

from librarydesk.core.identity.directory import UserDirectory
from librarydesk.core.identity.models import AuthSnapshot, LogoutReason, Role, Session, User, UserAccount
from librarydesk.core.identity.passwords import PasswordHasher

__all__ = ["AuthSnapshot", "LogoutReason", "PasswordHasher", "Role", "Session", "User", "UserAccount", "UserDirectory"]
