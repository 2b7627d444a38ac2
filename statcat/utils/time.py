from datetime import datetime, timezone
from typing import Optional


def parse_iso8601(value: str | None) -> Optional[datetime]:
    """
    Parse an ISO8601 timestamp from Discord into a timezone-aware UTC datetime.

    Discord timestamps are always UTC (Z or +00:00).
    """
    if not value:
        return None

    dt = datetime.fromisoformat(value.replace("Z", "+00:00"))

    # Normalize to UTC timezone-aware
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    else:
        dt = dt.astimezone(timezone.utc)

    return dt


def iso_week_label(value: datetime) -> str:
    """
    Format the ISO year and week of a datetime as "YYYY-WW".

    The ISO year is used (not the calendar year) so that days around New Year
    land in the same week as their neighbours. Labels sort chronologically.
    """
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc)
    year, week, _ = value.isocalendar()
    return f"{year:04d}-{week:02d}"
