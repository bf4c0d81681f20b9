"""Tests for the booking, confirmation and cancellation workflow."""
import pytest
import pytest_asyncio

from medapp.errors import NotFoundError, ValidationError
from medapp.models import Doctor, Patient


@pytest_asyncio.fixture
async def people(data_layer, doctor, patient):
    await data_layer.users.add(doctor)
    await data_layer.users.add(patient)
    return Patient.model_validate(patient), Doctor.model_validate(doctor)


@pytest.mark.asyncio
async def test_book_creates_pending_appointment(data_layer, people):
    patient, doctor = people
    appointment = await data_layer.scheduling.book(patient, doctor, "25/12/2024", "09:00")

    assert appointment.status == "pending"
    assert appointment.specialty == "Cardiologia"
    assert appointment.patient_name == "João Silva"
    assert await data_layer.appointments.get(appointment.id) == appointment


@pytest.mark.asyncio
async def test_book_notifies_doctor(data_layer, people):
    patient, doctor = people
    appointment = await data_layer.scheduling.book(patient, doctor, "25/12/2024", "09:00")

    notifications = await data_layer.notifications.list("d1")
    assert len(notifications) == 1
    assert notifications[0].title == "Nova Consulta Agendada"
    assert notifications[0].appointment_id == appointment.id


@pytest.mark.asyncio
async def test_book_rejects_bad_date(data_layer, people):
    patient, doctor = people
    with pytest.raises(ValidationError):
        await data_layer.scheduling.book(patient, doctor, "2024-12-25", "09:00")
    assert await data_layer.appointments.get_all() == []


@pytest.mark.asyncio
async def test_book_rejects_bad_time(data_layer, people):
    patient, doctor = people
    with pytest.raises(ValidationError):
        await data_layer.scheduling.book(patient, doctor, "25/12/2024", "9h")


@pytest.mark.asyncio
async def test_confirm_notifies_patient(data_layer, people):
    patient, doctor = people
    booked = await data_layer.scheduling.book(patient, doctor, "25/12/2024", "09:00")

    confirmed = await data_layer.scheduling.confirm(booked.id)

    assert confirmed.status == "confirmed"
    [notification] = await data_layer.notifications.list("p1")
    assert notification.type == "appointment_confirmed"


@pytest.mark.asyncio
async def test_cancel_keeps_reason(data_layer, people):
    patient, doctor = people
    booked = await data_layer.scheduling.book(patient, doctor, "25/12/2024", "09:00")

    cancelled = await data_layer.scheduling.cancel(booked.id, "Médico indisponível")

    assert cancelled.status == "cancelled"
    assert cancelled.is_cancelled
    assert (await data_layer.scheduling.get(booked.id)).cancel_reason == "Médico indisponível"
    [notification] = await data_layer.notifications.list("p1")
    assert notification.message.endswith("Motivo: Médico indisponível")


@pytest.mark.asyncio
async def test_unknown_appointment_raises(data_layer):
    with pytest.raises(NotFoundError):
        await data_layer.scheduling.confirm("missing")
    with pytest.raises(NotFoundError):
        await data_layer.scheduling.cancel("missing")
    with pytest.raises(NotFoundError):
        await data_layer.scheduling.get("missing")
    assert await data_layer.notifications.list("p1") == []
