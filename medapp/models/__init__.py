"""Data models package."""

from .app_settings import AppSettings, Theme
from .appointment import Appointment, AppointmentStatus
from .backup import BackupData, BackupSnapshot
from .notification import Notification, NotificationType
from .session import AuthSession
from .statistics import (
    AppointmentStatistics,
    DoctorStatistics,
    GeneralStatistics,
    PatientStatistics,
    StatusPercentages,
)
from .storage import StorageInfo
from .user import Admin, BaseUser, Doctor, Patient, User, UserRole, user_adapter

__all__ = [
    "AppSettings",
    "Theme",
    "Appointment",
    "AppointmentStatus",
    "BackupData",
    "BackupSnapshot",
    "Notification",
    "NotificationType",
    "AuthSession",
    "AppointmentStatistics",
    "DoctorStatistics",
    "GeneralStatistics",
    "PatientStatistics",
    "StatusPercentages",
    "StorageInfo",
    "Admin",
    "BaseUser",
    "Doctor",
    "Patient",
    "User",
    "UserRole",
    "user_adapter",
]
