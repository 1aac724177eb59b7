from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Mapping, Optional

from ..core.enums import ActivityType


@dataclass(frozen=True)
class Activity:
    """Audit trail entry shown in the admin activity history."""

    activity_id: int
    org_id: int
    activity_type: ActivityType
    description: str
    occurred_at: datetime
    actor_id: Optional[int] = None
    details: Mapping[str, Any] = field(default_factory=dict)
