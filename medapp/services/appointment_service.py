"""Appointment workflow: booking, confirmation and cancellation."""

import logging
from typing import Optional

from ..errors import NotFoundError, ValidationError
from ..models import Appointment, AppointmentStatus, Doctor, User
from ..repositories import AppointmentRepository
from ..utils.helpers import new_id, parse_appointment_date
from .notification_center import NotificationCenter

logger = logging.getLogger(__name__)


class AppointmentService:
    """Changes appointment state and tells the other party about it."""

    def __init__(self, appointments: AppointmentRepository, notifications: NotificationCenter):
        self.appointments = appointments
        self.notifications = notifications

    async def book(self, patient: User, doctor: Doctor, date: str, time: str) -> Appointment:
        """
        Create a pending appointment and notify the doctor.

        Args:
            patient: The booking user
            doctor: Doctor being booked
            date: Date in DD/MM/YYYY format
            time: Time slot in HH:MM format

        Returns:
            The stored appointment
        """
        if parse_appointment_date(date) is None:
            raise ValidationError(f"Invalid appointment date {date!r}, expected DD/MM/YYYY")

        appointment = await self.appointments.add(dict(
            id=new_id(),
            patient_id=patient.id,
            patient_name=patient.name,
            doctor_id=doctor.id,
            doctor_name=doctor.name,
            date=date,
            time=time,
            specialty=doctor.specialty,
            status=AppointmentStatus.PENDING,
        ))
        await self.notifications.notify_new_appointment(doctor.id, appointment)
        logger.info(f"Booked appointment {appointment.id} with {doctor.id} on {appointment.datetime_str}")
        return appointment

    async def confirm(self, appointment_id: str) -> Appointment:
        """Confirm an appointment and notify the patient."""
        appointment = await self.appointments.update(
            appointment_id,
            {"status": AppointmentStatus.CONFIRMED.value},
            missing_ok=False,
        )
        await self.notifications.notify_appointment_confirmed(appointment.patient_id, appointment)
        return appointment

    async def cancel(self, appointment_id: str, reason: Optional[str] = None) -> Appointment:
        """Cancel an appointment, keeping the reason, and notify the patient."""
        appointment = await self.appointments.update(
            appointment_id,
            {"status": AppointmentStatus.CANCELLED.value, "cancel_reason": reason},
            missing_ok=False,
        )
        await self.notifications.notify_appointment_cancelled(appointment.patient_id, appointment, reason)
        logger.info(f"Cancelled appointment {appointment_id}")
        return appointment

    async def get(self, appointment_id: str) -> Appointment:
        appointment = await self.appointments.get(appointment_id)
        if appointment is None:
            raise NotFoundError(f"appointment {appointment_id} not found")
        return appointment
