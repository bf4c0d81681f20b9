"""Notification data models."""

from datetime import datetime, timezone
from enum import Enum
from typing import Optional
from dateutil import parser as date_parser
from pydantic import Field, field_validator

from .base import CamelModel


class NotificationType(str, Enum):
    """Categories of user notifications."""
    APPOINTMENT_CONFIRMED = "appointment_confirmed"
    APPOINTMENT_CANCELLED = "appointment_cancelled"
    APPOINTMENT_REMINDER = "appointment_reminder"
    GENERAL = "general"


class Notification(CamelModel):
    """A message addressed to a single user."""
    id: str = Field(..., min_length=1, description="Unique notification ID")
    user_id: str = Field(..., description="Recipient user ID")
    title: str = Field(..., description="Short title")
    message: str = Field(..., description="Body text")
    type: NotificationType = Field(default=NotificationType.GENERAL)
    read: bool = Field(default=False)
    created_at: str = Field(..., description="Creation instant (ISO-8601)")
    appointment_id: Optional[str] = Field(default=None, description="Related appointment ID")

    @field_validator("created_at")
    @classmethod
    def _check_iso_instant(cls, value: str) -> str:
        try:
            date_parser.isoparse(value)
        except (ValueError, OverflowError) as e:
            raise ValueError(f"createdAt is not an ISO-8601 instant: {value!r}") from e
        return value

    @property
    def created_at_dt(self) -> datetime:
        """Parsed creation instant; naive timestamps are taken as UTC."""
        parsed = date_parser.isoparse(self.created_at)
        if parsed.tzinfo is None:
            return parsed.replace(tzinfo=timezone.utc)
        return parsed
