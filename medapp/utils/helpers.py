"""Helper utility functions."""

import uuid
from datetime import datetime, timezone
from typing import Optional

APPOINTMENT_DATE_FORMAT = "%d/%m/%Y"


def new_id() -> str:
    """Generate a collision-resistant entity id."""
    return str(uuid.uuid4())


def utc_now_iso() -> str:
    """Current instant as an ISO-8601 string with a UTC offset."""
    return datetime.now(timezone.utc).isoformat()


def parse_appointment_date(date_str: str) -> Optional[datetime]:
    """
    Parse an appointment date.

    Args:
        date_str: Date in DD/MM/YYYY format

    Returns:
        The parsed date, or None if the string is not in that format
    """
    try:
        return datetime.strptime(date_str.strip(), APPOINTMENT_DATE_FORMAT)
    except (ValueError, TypeError, AttributeError):
        return None


def month_key(date_str: str) -> Optional[str]:
    """
    Month bucket for an appointment date.

    Returns:
        "MM/YYYY", or None if the date cannot be parsed
    """
    parsed = parse_appointment_date(date_str)
    if parsed is None:
        return None
    return f"{parsed.month:02d}/{parsed.year}"


def percentage(count: int, total: int) -> float:
    """count as a percentage of total, 0 when total is 0."""
    if total <= 0:
        return 0.0
    return count / total * 100
