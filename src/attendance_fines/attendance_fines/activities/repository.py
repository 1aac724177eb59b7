from __future__ import annotations

from datetime import datetime
from typing import Any, Mapping, Optional, Protocol, Sequence

from ..core.enums import ActivityType
from .model import Activity


class ActivityRepository(Protocol):
    def record(
        self,
        *,
        org_id: int,
        activity_type: ActivityType,
        description: str,
        occurred_at: datetime,
        actor_id: Optional[int] = None,
        details: Optional[Mapping[str, Any]] = None,
    ) -> int:
        raise NotImplementedError

    def list_recent(self, org_id: int, limit: int) -> Sequence[Activity]:
        raise NotImplementedError
