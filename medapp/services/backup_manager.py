"""Backup creation and all-or-nothing restore."""

import json
import logging
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from ..errors import SerializationError, ValidationError
from ..models import Appointment, BackupData, BackupSnapshot, user_adapter
from ..repositories import AppointmentRepository, NotificationRepository, SettingsRepository, UserRepository
from ..storage import KeyValueStore, StorageKeys
from ..utils.helpers import utc_now_iso

logger = logging.getLogger(__name__)


class BackupManager:
    """
    Serializes the four data sections and restores them.

    A restore is parsed and validated completely before anything is written,
    then applied with a single multi-key write, so storage ends up either
    fully restored or untouched.
    """

    def __init__(
        self,
        store: KeyValueStore,
        appointments: AppointmentRepository,
        notifications: NotificationRepository,
        users: UserRepository,
        settings: SettingsRepository,
    ):
        self.store = store
        self.appointments = appointments
        self.notifications = notifications
        self.users = users
        self.settings = settings

    async def create_backup(self) -> str:
        """
        Snapshot appointments, notifications, registered users and settings.

        Returns:
            JSON string in the backup export format
        """
        snapshot = BackupSnapshot(
            timestamp=utc_now_iso(),
            data=BackupData(
                appointments=await self.appointments.get_all(),
                notifications=await self.notifications.get_all(),
                registered_users=await self.users.get_all(),
                settings=await self.settings.get(),
            ),
        )
        backup = json.dumps(snapshot.to_document(), ensure_ascii=False)
        logger.info(
            f"Backup created: {len(snapshot.data.appointments)} appointments, "
            f"{len(snapshot.data.notifications)} notifications, "
            f"{len(snapshot.data.registered_users)} users"
        )
        return backup

    def parse(self, backup_string: str) -> BackupSnapshot:
        """
        Decode and validate a backup without applying it.

        Raises:
            SerializationError: if the string is not JSON
            ValidationError: if the snapshot or any record in it is malformed
        """
        try:
            payload = json.loads(backup_string)
        except (TypeError, ValueError) as e:
            raise SerializationError(f"Backup is not valid JSON: {e}") from e

        if not isinstance(payload, dict) or not isinstance(payload.get("data"), dict):
            raise ValidationError("Backup has no data section")

        try:
            return BackupSnapshot.model_validate(payload)
        except PydanticValidationError as e:
            raise ValidationError(f"Invalid backup: {e}") from e

    async def restore(self, backup_string: str) -> BackupSnapshot:
        """
        Replace all four sections with the contents of a backup.

        Sections missing from the backup are reset: lists become empty and
        settings return to the configured defaults.
        """
        try:
            snapshot = self.parse(backup_string)
        except (SerializationError, ValidationError) as e:
            logger.error(f"Error restoring backup: {e}")
            raise

        data = snapshot.data
        if "settings" in data.model_fields_set:
            settings = data.settings
        else:
            settings = self.settings.defaults
        await self.store.set_many({
            StorageKeys.APPOINTMENTS: [a.to_document() for a in data.appointments],
            StorageKeys.NOTIFICATIONS: [n.to_document() for n in data.notifications],
            StorageKeys.REGISTERED_USERS: [u.to_document() for u in data.registered_users],
            StorageKeys.APP_SETTINGS: settings.to_document(),
        })
        logger.info(f"Backup from {snapshot.timestamp} restored")
        return snapshot

    # ==================== Validation Hooks ====================

    @staticmethod
    def validate_appointment(item: Any) -> bool:
        """Check that item has every appointment field with a valid status."""
        try:
            Appointment.model_validate(item)
        except PydanticValidationError:
            return False
        return True

    @staticmethod
    def validate_user(item: Any) -> bool:
        """Check that item has every user field required by its role."""
        try:
            user_adapter.validate_python(item)
        except PydanticValidationError:
            return False
        return True
