"""UTC-only time helpers for queue timestamps."""

from datetime import datetime, timezone


def now_utc() -> datetime:
    """
    Current time in UTC.

    Every queue timestamp (joined_at, started_at, completed_at, closed_at)
    comes from here so stored values are always timezone-aware.
    """
    return datetime.now(timezone.utc)


def elapsed_minutes(start: datetime, end: datetime) -> int:
    """
    Whole minutes between two aware datetimes, never negative.

    Raises ValueError if either datetime is naive.
    """
    if start.tzinfo is None or end.tzinfo is None:
        raise ValueError(
            "Cannot measure elapsed time with naive datetimes. "
            "Both datetimes must be timezone-aware."
        )
    seconds = (end - start).total_seconds()
    return max(0, int(seconds // 60))
