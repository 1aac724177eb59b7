from __future__ import annotations

import json
from datetime import date
from typing import Any, Optional

from ..core.constants import TOKEN_KIND
from ..core.enums import CheckInErrorCode
from ..core.exceptions import CheckInError
from .model import AttendanceToken


def encode_token(token: AttendanceToken) -> str:
    """Plain JSON serialization of the payload (no signature, no encryption)."""
    return json.dumps(token.to_payload(), separators=(",", ":"), ensure_ascii=False)


def _malformed(reason: str) -> CheckInError:
    return CheckInError(CheckInErrorCode.MALFORMED_TOKEN, f"Invalid QR code format: {reason}")


def _required_id(data: dict, key: str) -> str:
    value = data.get(key)
    if value is None or isinstance(value, (bool, dict, list)):
        raise _malformed(f"missing {key}")
    value = str(value).strip()
    if not value:
        raise _malformed(f"missing {key}")
    return value


def _optional_date(value: Any) -> Optional[date]:
    if not value or not isinstance(value, str):
        return None
    try:
        # Accept full ISO timestamps as well as plain dates.
        return date.fromisoformat(value[:10])
    except ValueError:
        return None


def decode_token(raw: str | bytes) -> AttendanceToken:
    """Parse a scanned payload.

    Unknown extra fields are ignored; a payload without
    ``kind == "event_attendance"`` is rejected.
    """

    if isinstance(raw, bytes):
        try:
            raw = raw.decode("utf-8")
        except UnicodeDecodeError:
            raise _malformed("not utf-8")

    try:
        data = json.loads(raw or "")
    except (TypeError, ValueError):
        raise _malformed("not JSON")

    if not isinstance(data, dict):
        raise _malformed("not an object")
    if data.get("kind") != TOKEN_KIND:
        raise _malformed("wrong kind")

    return AttendanceToken(
        event_id=_required_id(data, "eventId"),
        org_id=_required_id(data, "orgId"),
        event_title=str(data.get("eventTitle") or ""),
        event_timeframe=str(data.get("eventTimeframe") or ""),
        event_due_date=_optional_date(data.get("eventDueDate")),
    )
