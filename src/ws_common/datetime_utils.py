"""UTC datetime utilities."""

from datetime import date, datetime, timezone


def utc_now() -> datetime:
    """Return timezone-aware UTC now."""
    return datetime.now(timezone.utc)


def parse_datetime(value: str) -> datetime | None:
    """Parse an ISO-8601 date or date-time string as an aware UTC datetime.

    Accepts what BigQuery emits for DATE, DATETIME and TIMESTAMP values
    ("2024-03-01", "2024-03-01T10:00:00", "2024-03-01 10:00:00.123 UTC",
    trailing "Z"). Returns None when the string is not a calendar date-time.
    """
    text = value.strip()
    if not text:
        return None
    if text.endswith(" UTC"):
        text = text[:-4]
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        try:
            parsed = datetime.combine(date.fromisoformat(text), datetime.min.time())
        except ValueError:
            return None
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def isoformat_or_none(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None
