from __future__ import annotations

from typing import Dict

from librarydesk.core.identity.models import Role

LOGIN_REQUIRED = "กรุณาเข้าสู่ระบบก่อนดำเนินการ"
INVALID_ROLE = "ประเภทผู้ใช้ไม่ถูกต้อง"
ACCESS_DENIED = "คุณไม่มีสิทธิ์เข้าถึงหน้านี้"
EDIT_ROLES_DENIED = "เฉพาะผู้ดูแลระบบเท่านั้นที่สามารถแก้ไขประเภทผู้ใช้ได้"
DELETE_DENIED = "คุณไม่มีสิทธิ์ในการลบผู้ใช้"

# Shown when an actor may not create an account of the given role.
CREATE_DENIED: Dict[Role, str] = {
    Role.member: "คุณไม่มีสิทธิ์ในการสร้างบัญชีสมาชิก",
    Role.librarian: "เฉพาะผู้ดูแลระบบเท่านั้นที่สามารถสร้างบัญชีบรรณารักษ์ได้",
    Role.admin: "เฉพาะผู้ดูแลระบบเท่านั้นที่สามารถสร้างบัญชีผู้ดูแลระบบได้",
}

ROLE_DISPLAY_NAMES: Dict[Role, str] = {
    Role.admin: "ผู้ดูแลระบบ",
    Role.librarian: "บรรณารักษ์",
    Role.member: "สมาชิก",
}

# Page-level denial text, keyed by the role a view requires.
REQUIRED_ROLE_DENIED: Dict[Role, str] = {
    Role.admin: "หน้านี้สำหรับผู้ดูแลระบบเท่านั้น",
    Role.librarian: "หน้านี้สำหรับบรรณารักษ์และผู้ดูแลระบบเท่านั้น",
}
