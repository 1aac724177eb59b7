from __future__ import annotations

from dataclasses import dataclass

from werkzeug.security import check_password_hash

from ..core.enums import Role
from ..core.exceptions import AuthenticationError
from .repository import MemberRepository


@dataclass(frozen=True)
class SessionUser:
    """What we store into the Flask session after login."""

    user_id: int
    org_id: int
    full_name: str
    role: Role

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN


class AuthService:
    """Use case: authenticate a member (login)."""

    def __init__(self, members: MemberRepository):
        self._members = members

    def authenticate(self, username: str, password: str) -> SessionUser:
        member = self._members.get_by_username((username or "").strip())
        if not member or not member.is_active or not member.password_hash:
            raise AuthenticationError("Invalid username or password")

        try:
            ok = check_password_hash(member.password_hash, password or "")
        except ValueError:
            # e.g. placeholder hashes like 'CHANGE_ME'
            ok = False

        if not ok:
            raise AuthenticationError("Invalid username or password")

        try:
            role = Role(member.role)
        except ValueError:
            role = Role.STUDENT if member.is_student else Role.OFFICER

        return SessionUser(
            user_id=member.user_id,
            org_id=member.org_id,
            full_name=member.full_name,
            role=role,
        )
