"""Appointment data models."""

from enum import Enum
from typing import Optional
from pydantic import Field

from .base import CamelModel


class AppointmentStatus(str, Enum):
    """Possible appointment statuses."""
    PENDING = "pending"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"


class Appointment(CamelModel):
    """Represents a booked appointment."""
    id: str = Field(..., min_length=1, description="Unique appointment ID")
    patient_id: str = Field(..., description="ID of the patient")
    patient_name: str = Field(..., description="Patient display name")
    doctor_id: str = Field(..., description="ID of the doctor")
    doctor_name: str = Field(..., description="Doctor display name")
    date: str = Field(..., description="Appointment date (DD/MM/YYYY)")
    time: str = Field(..., pattern=r"^\d{2}:\d{2}$", description="Appointment time (HH:MM)")
    specialty: str = Field(..., description="Medical specialty")
    status: AppointmentStatus = Field(default=AppointmentStatus.PENDING)
    cancel_reason: Optional[str] = Field(default=None, description="Reason given on cancellation")

    @property
    def datetime_str(self) -> str:
        """Get formatted datetime string."""
        return f"{self.date} às {self.time}"

    @property
    def is_cancelled(self) -> bool:
        return self.status == AppointmentStatus.CANCELLED
