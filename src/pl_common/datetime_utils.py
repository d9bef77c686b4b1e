"""UTC datetime utilities."""

from datetime import datetime, timezone


def utc_now() -> datetime:
    """Return timezone-aware UTC now."""
    return datetime.now(timezone.utc)


def iso_or_none(dt: datetime | None) -> str | None:
    """ISO-8601 string for schema output; None passes through."""
    return dt.isoformat() if dt is not None else None
