"""
Clock helpers.

Components that reason about time (cache expiry, timeline windows, feed
timestamps) take a ``Clock`` callable instead of reading the system time
directly, so tests can pin "now".
"""

from collections.abc import Callable
from datetime import datetime, timezone

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    """Return the current time as a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)
