"""Statistics derived from stored appointments."""

import logging
from collections import Counter
from typing import Dict, Iterable, List, Optional, Tuple

from ..models import (
    Appointment,
    AppointmentStatus,
    DoctorStatistics,
    GeneralStatistics,
    PatientStatistics,
    StatusPercentages,
)
from ..repositories import AppointmentRepository, UserRepository
from ..utils.helpers import month_key, percentage

logger = logging.getLogger(__name__)


def _status_counts(appointments: List[Appointment]) -> Dict[str, int]:
    counts = Counter(a.status for a in appointments)
    total = len(appointments)
    confirmed = counts.get(AppointmentStatus.CONFIRMED.value, 0)
    pending = counts.get(AppointmentStatus.PENDING.value, 0)
    cancelled = counts.get(AppointmentStatus.CANCELLED.value, 0)
    return {
        "total_appointments": total,
        "confirmed_appointments": confirmed,
        "pending_appointments": pending,
        "cancelled_appointments": cancelled,
        "status_percentages": StatusPercentages(
            confirmed=percentage(confirmed, total),
            pending=percentage(pending, total),
            cancelled=percentage(cancelled, total),
        ),
    }


def _specialty_histogram(appointments: Iterable[Appointment]) -> Dict[str, int]:
    return dict(Counter(a.specialty for a in appointments))


def _month_histogram(appointments: Iterable[Appointment]) -> Dict[str, int]:
    histogram: Dict[str, int] = {}
    for appointment in appointments:
        key = month_key(appointment.date)
        if key is None:
            # Only this record's month bucket is lost; totals still count it.
            logger.warning(f"Ignoring unparsable date {appointment.date!r} on appointment {appointment.id}")
            continue
        histogram[key] = histogram.get(key, 0) + 1
    return histogram


def top_specialties(specialties: Dict[str, int], limit: Optional[int] = 3) -> List[Tuple[str, int]]:
    """
    Rank specialties by appointment count.

    Ties are broken by specialty name so the ranking is deterministic.

    Args:
        specialties: Specialty histogram
        limit: Number of entries to keep, all if None

    Returns:
        (specialty, count) pairs, highest count first
    """
    ranked = sorted(specialties.items(), key=lambda item: (-item[1], item[0]))
    return ranked if limit is None else ranked[:limit]


class StatisticsService:
    """Read-only aggregation over appointments and users."""

    def __init__(self, appointments: AppointmentRepository, users: UserRepository):
        self.appointments = appointments
        self.users = users

    async def compute_general(self) -> GeneralStatistics:
        """Statistics across every appointment (administrator view)."""
        appointments = await self.appointments.get_all()
        users = await self.users.get_all()

        return GeneralStatistics(
            **_status_counts(appointments),
            total_patients=len({a.patient_id for a in appointments}),
            total_doctors=len({a.doctor_id for a in appointments}),
            total_users=len(users),
            specialties=_specialty_histogram(appointments),
            appointments_by_month=_month_histogram(appointments),
        )

    async def compute_for_doctor(self, doctor_id: str) -> DoctorStatistics:
        """Statistics over one doctor's appointments."""
        appointments = await self.appointments.for_doctor(doctor_id)

        return DoctorStatistics(
            doctor_id=doctor_id,
            **_status_counts(appointments),
            total_patients=len({a.patient_id for a in appointments}),
            appointments_by_month=_month_histogram(appointments),
        )

    async def compute_for_patient(self, patient_id: str) -> PatientStatistics:
        """Statistics over one patient's appointments."""
        appointments = await self.appointments.for_patient(patient_id)

        return PatientStatistics(
            patient_id=patient_id,
            **_status_counts(appointments),
            total_doctors=len({a.doctor_id for a in appointments}),
            specialties=_specialty_histogram(appointments),
            appointments_by_month=_month_histogram(appointments),
        )
