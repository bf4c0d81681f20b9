"""Repositories over the key-value store."""

from .appointments import AppointmentRepository
from .base import CollectionRepository
from .notifications import NotificationRepository
from .settings import SettingsRepository
from .users import UserRepository

__all__ = [
    "AppointmentRepository",
    "CollectionRepository",
    "NotificationRepository",
    "SettingsRepository",
    "UserRepository",
]
