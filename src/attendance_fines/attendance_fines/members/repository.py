from __future__ import annotations

from typing import Optional, Protocol, Sequence

from .model import Member


class MemberRepository(Protocol):
    """Repository interface for organization members.

    Note (DIP): services depend on this interface, never on a concrete DB.
    """

    def get_by_id(self, *, org_id: int, user_id: int) -> Optional[Member]:
        raise NotImplementedError

    def get_by_username(self, username: str) -> Optional[Member]:
        raise NotImplementedError

    def list_roster(self, org_id: int) -> Sequence[Member]:
        """Active non-admin members of the organization (the fineable roster)."""

        raise NotImplementedError
