from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class TimeWindow:
    """Concrete start/end instants of an event (naive local time)."""

    start: datetime
    end: datetime

    @property
    def is_usable(self) -> bool:
        """False for the zero-length fallback (and for inverted ranges)."""
        return self.end > self.start

    def contains(self, instant: datetime) -> bool:
        return self.start <= instant <= self.end
