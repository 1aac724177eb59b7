"""Parse a calendar date plus a human-entered timeframe into a TimeWindow.

Accepted forms::

    "9:00 AM - 5:00 PM"   (12-hour, meridiem is case-insensitive)
    "21:00 - 22:30"       (24-hour)

The 12-hour form is tried first. When neither form matches, ``parse_window``
returns a zero-length window at midnight of the date instead of failing; callers
check ``TimeWindow.is_usable`` before releasing a QR code.
"""

from __future__ import annotations

import re
from datetime import date, datetime, time
from typing import Optional

from ..common.datetime_utils import as_calendar_date
from ..core.exceptions import MalformedTimeframeError
from .model import TimeWindow

_TWELVE_HOUR = re.compile(
    r"(\d{1,2}):(\d{2})\s*([AP]M)\s*-\s*(\d{1,2}):(\d{2})\s*([AP]M)",
    re.IGNORECASE,
)
_TWENTY_FOUR_HOUR = re.compile(r"(\d{1,2}):(\d{2})\s*-\s*(\d{1,2}):(\d{2})")


def _to_24h(hour: int, meridiem: str) -> int:
    meridiem = meridiem.upper()
    if meridiem == "PM" and hour != 12:
        return hour + 12
    if meridiem == "AM" and hour == 12:
        return 0
    return hour


def _clock(hour: int, minute: int) -> Optional[time]:
    if not (0 <= hour <= 23 and 0 <= minute <= 59):
        return None
    return time(hour=hour, minute=minute)


def _match_twelve_hour(timeframe: str) -> Optional[tuple[time, time]]:
    m = _TWELVE_HOUR.search(timeframe)
    if not m:
        return None
    sh, sm, smer, eh, em, emer = m.groups()
    if not (1 <= int(sh) <= 12 and 1 <= int(eh) <= 12):
        return None
    start = _clock(_to_24h(int(sh), smer), int(sm))
    end = _clock(_to_24h(int(eh), emer), int(em))
    if start is None or end is None:
        return None
    return start, end


def _match_twenty_four_hour(timeframe: str) -> Optional[tuple[time, time]]:
    m = _TWENTY_FOUR_HOUR.search(timeframe)
    if not m:
        return None
    sh, sm, eh, em = (int(g) for g in m.groups())
    start = _clock(sh, sm)
    end = _clock(eh, em)
    if start is None or end is None:
        return None
    return start, end


def _parse_clocks(timeframe: str) -> Optional[tuple[time, time]]:
    timeframe = timeframe or ""
    return _match_twelve_hour(timeframe) or _match_twenty_four_hour(timeframe)


def parse_window(day: date | datetime, timeframe: str) -> TimeWindow:
    """Return the event window, or a zero-length window at midnight if unparseable."""
    day = as_calendar_date(day)
    clocks = _parse_clocks(timeframe)
    if clocks is None:
        midnight = datetime.combine(day, time.min)
        return TimeWindow(start=midnight, end=midnight)

    start, end = clocks
    return TimeWindow(start=datetime.combine(day, start), end=datetime.combine(day, end))


def parse_window_strict(day: date | datetime, timeframe: str) -> TimeWindow:
    """Like ``parse_window`` but raise MalformedTimeframeError instead of falling back."""
    clocks = _parse_clocks(timeframe)
    if clocks is None:
        raise MalformedTimeframeError(f"Unrecognized timeframe: {timeframe!r}")

    day = as_calendar_date(day)
    start, end = clocks
    return TimeWindow(start=datetime.combine(day, start), end=datetime.combine(day, end))
