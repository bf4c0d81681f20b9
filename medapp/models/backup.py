"""Backup snapshot models."""

from typing import Optional
from pydantic import Field, model_validator

from .app_settings import AppSettings
from .appointment import Appointment
from .base import CamelModel
from .notification import Notification
from .user import User


def _duplicate_ids(items: list) -> list[str]:
    seen: set[str] = set()
    duplicates = []
    for item in items:
        if item.id in seen:
            duplicates.append(item.id)
        seen.add(item.id)
    return duplicates


class BackupData(CamelModel):
    """The four sections carried by a backup."""
    appointments: list[Appointment] = Field(default_factory=list)
    notifications: list[Notification] = Field(default_factory=list)
    registered_users: list[User] = Field(default_factory=list)
    settings: AppSettings = Field(default_factory=AppSettings)

    @model_validator(mode="after")
    def _ids_are_unique(self) -> "BackupData":
        for section in ("appointments", "notifications", "registered_users"):
            duplicates = _duplicate_ids(getattr(self, section))
            if duplicates:
                raise ValueError(f"duplicate ids in {section}: {', '.join(duplicates)}")
        return self


class BackupSnapshot(CamelModel):
    """A timestamped, transportable copy of the application data."""
    timestamp: Optional[str] = Field(default=None, description="Creation instant (ISO-8601)")
    data: BackupData
