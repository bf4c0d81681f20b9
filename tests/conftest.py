"""Shared test fixtures."""
import asyncio
from datetime import datetime, timedelta, timezone

import pytest

from config.settings import Settings
from medapp.errors import PersistenceError
from medapp.main import DataLayer
from medapp.storage import InMemoryBackend, KeyValueStore, TTLCache


class FakeClock:
    """Manually advanced clock for TTL tests."""

    def __init__(self, start: datetime = datetime(2024, 12, 1, 12, 0, tzinfo=timezone.utc)):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, minutes: float) -> None:
        self.now += timedelta(minutes=minutes)


class FailingBackend(InMemoryBackend):
    """In-memory backend that can be told to fail a future set() call."""

    def __init__(self, initial=None):
        super().__init__(initial)
        self.set_calls = 0
        self.fail_on_call = None

    def fail_on_next_set(self, n: int = 1) -> None:
        """Make the n-th set() from now raise PersistenceError."""
        self.fail_on_call = self.set_calls + n

    async def set(self, key: str, value: str) -> None:
        self.set_calls += 1
        if self.set_calls == self.fail_on_call:
            raise PersistenceError(f"disk full while writing {key}")
        await super().set(key, value)


class SlowBackend(InMemoryBackend):
    """Yields to the event loop on every call so writers interleave."""

    async def get(self, key):
        await asyncio.sleep(0)
        return await super().get(key)

    async def set(self, key, value):
        await asyncio.sleep(0)
        await super().set(key, value)


class LateReadBackend(InMemoryBackend):
    """
    Reads snapshot the document immediately but return it late.

    Each entry of ``read_delays`` is the number of event loop ticks the next
    get() waits before returning; writes take one tick.
    """

    def __init__(self, initial=None):
        super().__init__(initial)
        self.read_delays = []

    async def get(self, key):
        value = await super().get(key)
        ticks = self.read_delays.pop(0) if self.read_delays else 0
        for _ in range(ticks):
            await asyncio.sleep(0)
        return value

    async def set(self, key, value):
        await asyncio.sleep(0)
        await super().set(key, value)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def backend():
    return InMemoryBackend()


@pytest.fixture
def failing_backend():
    return FailingBackend()


@pytest.fixture
def store(backend, clock):
    """KeyValueStore over an in-memory backend with a controllable clock."""
    return KeyValueStore(backend, cache=TTLCache(clock=clock))


@pytest.fixture
def memory_settings():
    return Settings(storage_backend="memory", environment="test", _env_file=None)


@pytest.fixture
def data_layer(memory_settings, backend):
    """Fully wired data layer over the shared in-memory backend."""
    return DataLayer(memory_settings, backend=backend)


@pytest.fixture
def make_appointment():
    """Factory for appointment documents in their stored camelCase form."""
    counter = {"value": 0}

    def _make(**overrides):
        counter["value"] += 1
        appointment = {
            "id": f"appt-{counter['value']}",
            "patientId": "p1",
            "patientName": "João Silva",
            "doctorId": "d1",
            "doctorName": "Dra. Ana Souza",
            "date": "10/12/2024",
            "time": "09:00",
            "specialty": "Cardiologia",
            "status": "pending",
        }
        appointment.update(overrides)
        return appointment

    return _make


@pytest.fixture
def doctor():
    return {
        "id": "d1",
        "name": "Dra. Ana Souza",
        "email": "ana@clinica.com",
        "image": "https://example.com/ana.png",
        "role": "doctor",
        "specialty": "Cardiologia",
    }


@pytest.fixture
def patient():
    return {
        "id": "p1",
        "name": "João Silva",
        "email": "joao@example.com",
        "image": "https://example.com/joao.png",
        "role": "patient",
    }


@pytest.fixture
def admin():
    return {
        "id": "admin",
        "name": "Administrador",
        "email": "admin@clinica.com",
        "image": "https://example.com/admin.png",
        "role": "admin",
    }
