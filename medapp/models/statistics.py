"""Aggregated appointment metrics."""

from pydantic import Field

from .base import CamelModel


class StatusPercentages(CamelModel):
    """Share of each status over the total, in percent."""
    confirmed: float = 0.0
    pending: float = 0.0
    cancelled: float = 0.0


class AppointmentStatistics(CamelModel):
    """Metrics common to every statistics view."""
    total_appointments: int = 0
    confirmed_appointments: int = 0
    pending_appointments: int = 0
    cancelled_appointments: int = 0
    appointments_by_month: dict[str, int] = Field(default_factory=dict, description="Counts keyed MM/YYYY")
    status_percentages: StatusPercentages = Field(default_factory=StatusPercentages)


class GeneralStatistics(AppointmentStatistics):
    """Administrator view over every appointment."""
    total_patients: int = 0
    total_doctors: int = 0
    total_users: int = 0
    specialties: dict[str, int] = Field(default_factory=dict)


class DoctorStatistics(AppointmentStatistics):
    """View restricted to one doctor's appointments."""
    doctor_id: str
    total_patients: int = 0


class PatientStatistics(AppointmentStatistics):
    """View restricted to one patient's appointments."""
    patient_id: str
    total_doctors: int = 0
    specialties: dict[str, int] = Field(default_factory=dict)
