from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict

from librarydesk.core.events import redact


class Severity(str, Enum):
    INFO = "INFO"
    WARN = "WARN"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


@dataclass
class LibraryError(Exception):
    code: str
    user_message: str
    severity: Severity = Severity.ERROR
    recoverable: bool = True
    context: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        super().__init__(self.code)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "user_message": self.user_message,
            "severity": self.severity.value,
            "recoverable": bool(self.recoverable),
            "context": redact(self.context or {}),
        }


# ---- Auth / session ----
class InvalidCredentialsError(LibraryError):
    def __init__(self, user_message: str = "ชื่อผู้ใช้หรือรหัสผ่านไม่ถูกต้อง", **ctx: Any):
        super().__init__("invalid_credentials", user_message, severity=Severity.WARN, recoverable=True, context=ctx)


class SessionExpiredError(LibraryError):
    def __init__(self, user_message: str = "เซสชันหมดอายุ กรุณาเข้าสู่ระบบใหม่", **ctx: Any):
        super().__init__("session_expired", user_message, severity=Severity.INFO, recoverable=True, context=ctx)


class SessionStorageError(LibraryError):
    def __init__(self, user_message: str = "ไม่สามารถบันทึกเซสชันได้ กรุณาลองใหม่อีกครั้ง", **ctx: Any):
        super().__init__("session_storage", user_message, severity=Severity.ERROR, recoverable=True, context=ctx)


# ---- Permissions ----
class PermissionDeniedError(LibraryError):
    def __init__(self, user_message: str = "คุณไม่มีสิทธิ์ดำเนินการนี้", **ctx: Any):
        super().__init__("permission_denied", user_message, severity=Severity.WARN, recoverable=False, context=ctx)


# ---- Data ----
class ValidationError(LibraryError):
    def __init__(self, user_message: str = "ข้อมูลไม่ถูกต้อง", **ctx: Any):
        super().__init__("validation_error", user_message, severity=Severity.WARN, recoverable=False, context=ctx)


class NotFoundError(LibraryError):
    def __init__(self, user_message: str = "ไม่พบข้อมูลที่ต้องการ", **ctx: Any):
        super().__init__("not_found", user_message, severity=Severity.WARN, recoverable=False, context=ctx)


class ConfigError(LibraryError):
    def __init__(self, user_message: str = "Configuration error.", **ctx: Any):
        super().__init__("config_error", user_message, severity=Severity.CRITICAL, recoverable=False, context=ctx)


HTTP_STATUS_BY_CODE: Dict[str, int] = {
    "invalid_credentials": 401,
    "session_expired": 401,
    "session_storage": 503,
    "permission_denied": 403,
    "validation_error": 400,
    "not_found": 404,
    "config_error": 500,
}
