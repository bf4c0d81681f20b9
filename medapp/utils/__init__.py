"""Utility functions package."""

from .helpers import month_key, new_id, parse_appointment_date, percentage, utc_now_iso

__all__ = ["month_key", "new_id", "parse_appointment_date", "percentage", "utc_now_iso"]
