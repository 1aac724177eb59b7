from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """Member roles. Anything other than STUDENT is fined at the officer rate."""

    ADMIN = "admin"
    OFFICER = "officer"
    STUDENT = "student"


class FineStatus(str, Enum):
    UNPAID = "unpaid"
    PAID = "paid"


class QRDisplayState(str, Enum):
    """Display state of an event QR code on the issuing (admin) device."""

    PENDING = "pending"
    ACTIVE = "active"
    CLOSED = "closed"


class CheckInOutcome(str, Enum):
    CHECKED_IN = "checked_in"
    ALREADY_ATTENDED = "already_attended"


class CheckInErrorCode(str, Enum):
    MALFORMED_TOKEN = "MALFORMED_TOKEN"
    NOT_AUTHENTICATED = "NOT_AUTHENTICATED"
    WRONG_ORGANIZATION = "WRONG_ORGANIZATION"
    EVENT_NOT_FOUND = "EVENT_NOT_FOUND"
    EVENT_ENDED = "EVENT_ENDED"


class ActivityType(str, Enum):
    FINE_ADDED = "fine_added"
    FINE_PAID = "fine_paid"
