"""Services package built on the repositories."""

from .appointment_service import AppointmentService
from .backup_manager import BackupManager
from .notification_center import NotificationCenter
from .session_store import SessionStore
from .statistics_service import StatisticsService, top_specialties

__all__ = [
    "AppointmentService",
    "BackupManager",
    "NotificationCenter",
    "SessionStore",
    "StatisticsService",
    "top_specialties",
]
