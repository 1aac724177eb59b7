"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

from decimal import Decimal

TOKEN_KIND = "event_attendance"

QR_RELEASE_LEAD_MINUTES = 60
QR_REFRESH_SECONDS = 1

DEFAULT_STUDENT_FINE = Decimal("50")
DEFAULT_OFFICER_FINE = Decimal("100")

DEFAULT_RECONCILE_INTERVAL_SECONDS = 60
DEFAULT_HISTORY_LIMIT = 200
