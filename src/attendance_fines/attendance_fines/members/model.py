from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ..core.enums import Role


@dataclass(frozen=True)
class Member:
    """Domain entity: a user belonging to one organization.

    Note: plain data object (no DB access code).
    """

    user_id: int
    org_id: int
    full_name: str
    role: str = Role.STUDENT.value
    username: Optional[str] = None
    password_hash: Optional[str] = None
    student_id: Optional[str] = None
    is_active: bool = True

    @property
    def is_student(self) -> bool:
        # Members without a role are treated as students.
        return not self.role or self.role == Role.STUDENT.value

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN.value
