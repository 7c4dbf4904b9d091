"""Column value conversion shared by the SQLite stores."""

from datetime import UTC, date, datetime


def format_timestamp(value: datetime) -> str:
    """
    Serialize a datetime as a fixed-width UTC ISO string.

    Naive values are taken as UTC. Fixed width keeps lexical and
    chronological order identical, which range queries rely on.
    """
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return value.astimezone(UTC).isoformat(timespec="microseconds")


def format_optional_timestamp(value: datetime | None) -> str | None:
    return format_timestamp(value) if value is not None else None


def parse_timestamp(value: str) -> datetime:
    """Parse a stored timestamp into an aware UTC datetime."""
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed.astimezone(UTC)


def parse_optional_timestamp(value: str | None) -> datetime | None:
    return parse_timestamp(value) if value else None


def parse_date(value: str) -> date:
    return date.fromisoformat(value)
