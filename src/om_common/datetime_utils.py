"""UTC datetime utilities."""

from datetime import UTC, datetime, timedelta


def utc_now() -> datetime:
    """Return timezone-aware UTC now."""
    return datetime.now(UTC)


def cutoff_before(hours: int, now: datetime | None = None) -> datetime:
    """The instant `hours` before `now` (default: current UTC time)."""
    return (now or utc_now()) - timedelta(hours=hours)
