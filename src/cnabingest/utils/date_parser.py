"""Date and time parsing utilities."""

from datetime import date, datetime, time, timedelta, UTC
from typing import Optional

from dateutil import parser as date_parser
from dateutil.relativedelta import relativedelta


def parse_compact_date(value: str) -> date:
    """Parse a CNAB date field (YYYYMMDD).

    Raises:
        ValueError: If the field is not eight digits or not a calendar date
    """
    if len(value) != 8 or not value.isdigit():
        raise ValueError(f"Invalid date format '{value}'. Expected YYYYMMDD")
    try:
        return date(int(value[0:4]), int(value[4:6]), int(value[6:8]))
    except ValueError as e:
        raise ValueError(f"Invalid date '{value}': {e}")


def parse_compact_time(value: str) -> time:
    """Parse a CNAB time field (HHMMSS).

    Raises:
        ValueError: If the field is not six digits or out of range
    """
    if len(value) != 6 or not value.isdigit():
        raise ValueError(f"Invalid time format '{value}'. Expected HHMMSS")
    try:
        return time(int(value[0:2]), int(value[2:4]), int(value[4:6]))
    except ValueError as e:
        raise ValueError(f"Invalid time '{value}': {e}")


def parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    """Parse an ISO 8601 timestamp from a queue message.

    Naive timestamps are assumed to be UTC. Returns None for empty input.
    """
    if not value:
        return None
    parsed = date_parser.isoparse(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


def parse_date(date_str: str, today: Optional[date] = None) -> date:
    """Parse a date filter given on the command line.

    Supports absolute dates ("2024-01-15", "January 15, 2024") and relative
    ones: "today", "yesterday", and "this"/"last" followed by week, month or
    year (meaning the first day of that period).

    Raises:
        ValueError: If date string cannot be parsed
    """
    date_str = date_str.strip().lower()
    today = today or date.today()

    if date_str == "today":
        return today
    if date_str == "yesterday":
        return today - timedelta(days=1)

    prefix, _, period = date_str.partition(" ")
    if prefix in ("this", "last") and period in ("week", "month", "year"):
        if period == "week":
            start = today - timedelta(days=today.weekday())
            return start - timedelta(days=7) if prefix == "last" else start
        if period == "month":
            start = today.replace(day=1)
            return start - relativedelta(months=1) if prefix == "last" else start
        start = today.replace(month=1, day=1)
        return start - relativedelta(years=1) if prefix == "last" else start

    try:
        return date_parser.parse(date_str).date()
    except (ValueError, OverflowError) as e:
        raise ValueError(f"Could not parse date '{date_str}': {e}")
