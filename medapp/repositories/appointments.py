"""Appointment collection."""

from typing import List

from pydantic import TypeAdapter

from ..models import Appointment
from ..storage import StorageKeys
from .base import CollectionRepository


class AppointmentRepository(CollectionRepository[Appointment]):
    """All appointments, stored under the appointments key."""

    key = StorageKeys.APPOINTMENTS
    adapter = TypeAdapter(Appointment)
    models = (Appointment,)
    entity_name = "appointment"

    async def for_doctor(self, doctor_id: str) -> List[Appointment]:
        return [a for a in await self.get_all() if a.doctor_id == doctor_id]

    async def for_patient(self, patient_id: str) -> List[Appointment]:
        return [a for a in await self.get_all() if a.patient_id == patient_id]
