"""Collaborator interfaces the monitoring engine reads from and writes to."""
from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Protocol, Sequence

from .models import (
    Alert,
    AlertRecipient,
    AlertType,
    MedicationIntake,
    MedicationSchedule,
    Therapy,
)


class PatientDirectory(Protocol):
    """Protocol for looking up monitored patients and their doctors."""

    def list_active_patients(self) -> Sequence[int]:
        ...

    def get_assigned_doctor(self, patient_id: int) -> Optional[int]:
        ...

    def display_name(self, user_id: int) -> Optional[str]:
        ...


class MeasurementRepository(Protocol):
    def count_measurements(self, patient_id: int, day: date) -> int:
        ...


class TherapyRepository(Protocol):
    def list_active_therapies(self, patient_id: int, day: date) -> Sequence[Therapy]:
        ...

    def list_schedules(self, therapy_id: int) -> Sequence[MedicationSchedule]:
        ...

    def list_intakes(self, patient_id: int, schedule_id: int, day: date) -> Sequence[MedicationIntake]:
        ...


class AlertStore(Protocol):
    """Protocol for the alert catalog, alerts and their recipients."""

    def resolve_alert_type(self, label: str) -> Optional[int]:
        ...

    def add_alert_type(self, label: str, description: str = "") -> int:
        ...

    def list_alert_types(self) -> Sequence[AlertType]:
        ...

    def alert_exists(self, user_id: int, alert_type_id: int, message: str, day: date) -> bool:
        ...

    def insert_alert(self, user_id: int, alert_type_id: int, message: str, timestamp: datetime) -> int:
        ...

    def insert_recipient(self, alert_id: int, recipient_user_id: int) -> None:
        ...

    def alerts_created_on(self, day: date) -> Sequence[Alert]:
        ...

    def list_recipients(self, alert_id: int) -> Sequence[AlertRecipient]:
        ...


class MonitoringRepository(PatientDirectory, MeasurementRepository, TherapyRepository, AlertStore, Protocol):
    """Everything a monitoring run needs, plus an explicit unit-of-work commit."""

    def persist(self) -> None:
        ...
