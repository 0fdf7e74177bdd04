"""
TIME INFORMATION UTILITY
========================

Returns the current UTC time as an ISO-8601 string with millisecond precision
and a trailing "Z" (e.g. 2026-02-05T14:03:09.512Z). Used by GET /api/health.
"""

import datetime
from typing import Optional


def iso_timestamp(now: Optional[datetime.datetime] = None) -> str:
    """Format `now` (default: current UTC time) as YYYY-MM-DDTHH:MM:SS.mmmZ."""
    now = now or datetime.datetime.now(datetime.timezone.utc)
    now = now.astimezone(datetime.timezone.utc)
    return now.isoformat(timespec="milliseconds").replace("+00:00", "Z")
