"""Tests for appointment statistics."""
import pytest
import pytest_asyncio

from medapp.services import top_specialties


@pytest_asyncio.fixture
async def seeded(data_layer, make_appointment):
    """Three appointments for d1 (one per status), two pending for d2."""
    rows = [
        make_appointment(doctorId="d1", patientId="p1", status="pending", date="10/12/2024"),
        make_appointment(doctorId="d1", patientId="p2", status="confirmed", date="11/12/2024"),
        make_appointment(doctorId="d1", patientId="p1", status="cancelled", date="05/01/2025"),
        make_appointment(doctorId="d2", doctorName="Dr. Carlos Lima", patientId="p3",
                         status="pending", date="20/12/2024", specialty="Pediatria"),
        make_appointment(doctorId="d2", doctorName="Dr. Carlos Lima", patientId="p1",
                         status="pending", date="21/01/2025", specialty="Pediatria"),
    ]
    await data_layer.appointments.save_all(rows)
    return data_layer


class TestComputeGeneral:

    @pytest.mark.asyncio
    async def test_counts(self, seeded):
        stats = await seeded.statistics.compute_general()

        assert stats.total_appointments == 5
        assert stats.confirmed_appointments == 1
        assert stats.pending_appointments == 3
        assert stats.cancelled_appointments == 1
        assert stats.total_doctors == 2
        assert stats.total_patients == 3

    @pytest.mark.asyncio
    async def test_histograms_and_percentages(self, seeded):
        stats = await seeded.statistics.compute_general()

        assert stats.specialties == {"Cardiologia": 3, "Pediatria": 2}
        assert stats.appointments_by_month == {"12/2024": 3, "01/2025": 2}
        assert stats.status_percentages.pending == pytest.approx(60.0)
        assert stats.status_percentages.confirmed == pytest.approx(20.0)
        assert stats.status_percentages.cancelled == pytest.approx(20.0)

    @pytest.mark.asyncio
    async def test_total_users_counts_registered_users(self, seeded, doctor, patient):
        await seeded.users.add(doctor)
        await seeded.users.add(patient)
        stats = await seeded.statistics.compute_general()
        assert stats.total_users == 2

    @pytest.mark.asyncio
    async def test_empty_store_has_zero_percentages(self, data_layer):
        stats = await data_layer.statistics.compute_general()

        assert stats.total_appointments == 0
        assert stats.status_percentages.confirmed == 0
        assert stats.status_percentages.pending == 0
        assert stats.status_percentages.cancelled == 0
        assert stats.appointments_by_month == {}

    @pytest.mark.asyncio
    async def test_malformed_date_only_skips_month_bucket(self, data_layer, make_appointment):
        await data_layer.appointments.save_all([
            make_appointment(date="10/12/2024", status="confirmed"),
            make_appointment(date="not a date", status="confirmed"),
            make_appointment(date="31/02/2024", status="pending"),
        ])

        stats = await data_layer.statistics.compute_general()

        assert stats.total_appointments == 3
        assert stats.confirmed_appointments == 2
        assert stats.pending_appointments == 1
        assert stats.appointments_by_month == {"12/2024": 1}


class TestScopedStatistics:

    @pytest.mark.asyncio
    async def test_doctor_view(self, seeded):
        stats = await seeded.statistics.compute_for_doctor("d1")

        assert stats.doctor_id == "d1"
        assert stats.total_appointments == 3
        assert stats.confirmed_appointments == 1
        assert stats.pending_appointments == 1
        assert stats.cancelled_appointments == 1
        assert stats.total_patients == 2
        assert stats.appointments_by_month == {"12/2024": 2, "01/2025": 1}

    @pytest.mark.asyncio
    async def test_patient_view(self, seeded):
        stats = await seeded.statistics.compute_for_patient("p1")

        assert stats.patient_id == "p1"
        assert stats.total_appointments == 3
        assert stats.total_doctors == 2
        assert stats.specialties == {"Cardiologia": 2, "Pediatria": 1}

    @pytest.mark.asyncio
    async def test_unknown_doctor_is_empty(self, seeded):
        stats = await seeded.statistics.compute_for_doctor("nobody")
        assert stats.total_appointments == 0
        assert stats.status_percentages.pending == 0

    @pytest.mark.asyncio
    async def test_document_form(self, seeded):
        doc = (await seeded.statistics.compute_for_doctor("d1")).to_document()
        assert doc["doctorId"] == "d1"
        assert doc["totalAppointments"] == 3
        assert "statusPercentages" in doc


def test_top_specialties_orders_by_count():
    histogram = {"Pediatria": 2, "Cardiologia": 5, "Ortopedia": 1, "Dermatologia": 3}
    assert top_specialties(histogram) == [("Cardiologia", 5), ("Dermatologia", 3), ("Pediatria", 2)]


def test_top_specialties_breaks_ties_by_name():
    histogram = {"Pediatria": 2, "Cardiologia": 2, "Ortopedia": 2, "Dermatologia": 2}
    assert top_specialties(histogram, limit=2) == [("Cardiologia", 2), ("Dermatologia", 2)]
    assert len(top_specialties(histogram, limit=None)) == 4
