"""UTC time helpers shared by the escrow engine and the event log."""

import time
from datetime import datetime, timezone


def now_utc() -> datetime:
    """Get current UTC datetime as NAIVE for database storage."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def unix_now() -> int:
    """Current time in whole unix seconds; session start/end timestamps use this."""
    return int(time.time())


def from_unix(timestamp: int) -> datetime | None:
    """Convert a session timestamp to an aware UTC datetime, or None when unset (0)."""
    if not timestamp:
        return None
    return datetime.fromtimestamp(timestamp, tz=timezone.utc)
