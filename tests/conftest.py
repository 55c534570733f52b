from datetime import date, datetime
from pathlib import Path
import sys

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

import monitoring_alerts.rules  # noqa: F401 - ensure registration side-effects
from monitoring_alerts.alert_catalog import seed_alert_types
from monitoring_alerts.dedup import AlertDeduplicationService
from monitoring_alerts.memory_store import InMemoryMonitoringStore
from monitoring_alerts.models import Role

TODAY = date(2026, 10, 19)
NOW = datetime(2026, 10, 19, 23, 30)

PATIENT = 1
DOCTOR = 2
LONE_PATIENT = 3


class FixedClock:
    def __init__(self, now: datetime = NOW) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock()


@pytest.fixture
def store() -> InMemoryMonitoringStore:
    """Store with one doctor, a patient assigned to them and an unassigned patient."""

    store = InMemoryMonitoringStore()
    store.add_user(PATIENT, Role.PATIENT, "Ada", "Rossi")
    store.add_user(DOCTOR, Role.DOCTOR, "Luca", "Bianchi")
    store.add_user(LONE_PATIENT, Role.PATIENT, "Marta", "Verdi")
    store.assign_doctor(PATIENT, DOCTOR)
    seed_alert_types(store)
    return store


@pytest.fixture
def dedup(store, clock) -> AlertDeduplicationService:
    return AlertDeduplicationService(store, clock=clock)


def add_measurements(store, user_id: int, day: date, count: int) -> None:
    for idx in range(count):
        store.add_measurement(user_id, datetime(day.year, day.month, day.day, 6 + idx, 0), 110.0)
