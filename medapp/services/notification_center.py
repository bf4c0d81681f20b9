"""Notification queries, mutations and templated messages."""

import logging
from typing import List, Optional

from ..models import Appointment, Notification, NotificationType
from ..repositories import NotificationRepository
from ..utils.helpers import new_id, utc_now_iso

logger = logging.getLogger(__name__)


class NotificationCenter:
    """
    Per-user notifications on top of the notification repository.

    The templated creators produce the exact wording shown in the app.
    """

    def __init__(self, repository: NotificationRepository):
        self.repository = repository

    # ==================== Queries ====================

    async def list(self, user_id: str) -> List[Notification]:
        """A user's notifications, newest first."""
        notifications = [n for n in await self.repository.get_all() if n.user_id == user_id]
        notifications.sort(key=lambda n: n.id)
        notifications.sort(key=lambda n: n.created_at_dt, reverse=True)
        return notifications

    async def unread_count(self, user_id: str) -> int:
        return sum(1 for n in await self.repository.get_all() if n.user_id == user_id and not n.read)

    # ==================== Mutations ====================

    async def create(
        self,
        user_id: str,
        title: str,
        message: str,
        type: NotificationType = NotificationType.GENERAL,
        appointment_id: Optional[str] = None,
    ) -> Notification:
        """Store a new unread notification."""
        notification = Notification(
            id=new_id(),
            user_id=user_id,
            title=title,
            message=message,
            type=type,
            read=False,
            created_at=utc_now_iso(),
            appointment_id=appointment_id,
        )
        await self.repository.add(notification)
        logger.info(f"Notification {notification.id} ({notification.type}) created for {user_id}")
        return notification

    async def mark_read(self, notification_id: str) -> bool:
        """Mark one notification read. Returns False for an unknown id."""
        updated = await self.repository.update(notification_id, {"read": True})
        return updated is not None

    async def mark_all_read(self, user_id: str) -> int:
        """
        Mark every notification of a user read.

        Returns:
            Number of notifications that changed
        """
        changed = await self.repository.update_many(
            lambda n: n.user_id == user_id and not n.read,
            {"read": True},
        )
        return len(changed)

    async def delete(self, notification_id: str) -> bool:
        return await self.repository.delete(notification_id)

    # ==================== Templates ====================

    async def notify_appointment_confirmed(self, patient_id: str, appointment: Appointment) -> Notification:
        return await self.create(
            user_id=patient_id,
            type=NotificationType.APPOINTMENT_CONFIRMED,
            title="Consulta Confirmada",
            message=(
                f"Sua consulta com {appointment.doctor_name} foi confirmada "
                f"para {appointment.date} às {appointment.time}."
            ),
            appointment_id=appointment.id,
        )

    async def notify_appointment_cancelled(
        self,
        patient_id: str,
        appointment: Appointment,
        reason: Optional[str] = None,
    ) -> Notification:
        reason_text = f" Motivo: {reason}" if reason else ""
        return await self.create(
            user_id=patient_id,
            type=NotificationType.APPOINTMENT_CANCELLED,
            title="Consulta Cancelada",
            message=f"Sua consulta com {appointment.doctor_name} foi cancelada.{reason_text}",
            appointment_id=appointment.id,
        )

    async def notify_new_appointment(self, doctor_id: str, appointment: Appointment) -> Notification:
        return await self.create(
            user_id=doctor_id,
            type=NotificationType.GENERAL,
            title="Nova Consulta Agendada",
            message=(
                f"{appointment.patient_name} agendou uma consulta "
                f"para {appointment.date} às {appointment.time}."
            ),
            appointment_id=appointment.id,
        )

    async def notify_appointment_reminder(self, user_id: str, appointment: Appointment) -> Notification:
        counterpart = appointment.doctor_name or appointment.patient_name
        return await self.create(
            user_id=user_id,
            type=NotificationType.APPOINTMENT_REMINDER,
            title="Lembrete de Consulta",
            message=f"Você tem uma consulta agendada para amanhã às {appointment.time} com {counterpart}.",
            appointment_id=appointment.id,
        )
