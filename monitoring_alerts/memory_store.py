"""In-process monitoring store used for fixture runs, dry runs and tests."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from itertools import count
from typing import Dict, Iterator, List, Optional, Sequence, Tuple

from .models import (
    Alert,
    AlertRecipient,
    AlertType,
    GlycemicMeasurement,
    MedicationIntake,
    MedicationSchedule,
    Role,
    Therapy,
)


@dataclass
class _User:
    user_id: int
    role: Role
    first_name: str = ""
    last_name: str = ""


@dataclass
class InMemoryMonitoringStore:
    """Simple in-memory implementation of ``MonitoringRepository``.

    Writes are applied immediately; ``persist`` only records that a unit of
    work was committed so callers can observe commit boundaries.
    """

    _users: Dict[int, _User] = field(default_factory=dict)
    _doctors: Dict[int, int] = field(default_factory=dict)
    _measurements: List[GlycemicMeasurement] = field(default_factory=list)
    _therapies: Dict[int, Therapy] = field(default_factory=dict)
    _schedules: Dict[int, MedicationSchedule] = field(default_factory=dict)
    _intakes: List[MedicationIntake] = field(default_factory=list)
    _alert_types: Dict[str, AlertType] = field(default_factory=dict)
    _alerts: Dict[int, Alert] = field(default_factory=dict)
    _recipients: Dict[Tuple[int, int], AlertRecipient] = field(default_factory=dict)
    _alert_ids: Iterator[int] = field(default_factory=lambda: count(1))
    _alert_type_ids: Iterator[int] = field(default_factory=lambda: count(1))
    commit_count: int = 0

    # -- population -------------------------------------------------------

    def add_user(self, user_id: int, role: Role, first_name: str = "", last_name: str = "") -> None:
        self._users[user_id] = _User(user_id, Role(role), first_name, last_name)

    def assign_doctor(self, patient_id: int, doctor_id: int) -> None:
        self._doctors[patient_id] = doctor_id

    def add_measurement(self, user_id: int, measured_at: datetime, value: float = 0.0) -> None:
        self._measurements.append(GlycemicMeasurement(user_id, measured_at, value))

    def add_therapy(self, therapy: Therapy) -> None:
        self._therapies[therapy.therapy_id] = therapy

    def add_schedule(self, schedule: MedicationSchedule) -> None:
        self._schedules[schedule.medication_schedule_id] = schedule

    def add_intake(
        self,
        user_id: int,
        schedule_id: int,
        taken_at: datetime,
        quantity: Decimal | int | str,
    ) -> None:
        self._intakes.append(MedicationIntake(user_id, schedule_id, taken_at, Decimal(str(quantity))))

    # -- PatientDirectory -------------------------------------------------

    def list_active_patients(self) -> Sequence[int]:
        return [user.user_id for user in self._users.values() if user.role is Role.PATIENT]

    def get_assigned_doctor(self, patient_id: int) -> Optional[int]:
        return self._doctors.get(patient_id)

    def display_name(self, user_id: int) -> Optional[str]:
        user = self._users.get(user_id)
        if user is None:
            return None
        name = f"{user.first_name} {user.last_name}".strip()
        return name or None

    # -- MeasurementRepository --------------------------------------------

    def count_measurements(self, patient_id: int, day: date) -> int:
        return sum(
            1
            for m in self._measurements
            if m.user_id == patient_id and m.measurement_datetime.date() == day
        )

    # -- TherapyRepository ------------------------------------------------

    def list_active_therapies(self, patient_id: int, day: date) -> Sequence[Therapy]:
        return [t for t in self._therapies.values() if t.user_id == patient_id and t.is_active_on(day)]

    def list_schedules(self, therapy_id: int) -> Sequence[MedicationSchedule]:
        return [s for s in self._schedules.values() if s.therapy_id == therapy_id]

    def list_intakes(self, patient_id: int, schedule_id: int, day: date) -> Sequence[MedicationIntake]:
        return [
            intake
            for intake in self._intakes
            if intake.user_id == patient_id
            and intake.medication_schedule_id == schedule_id
            and intake.intake_datetime.date() == day
        ]

    # -- AlertStore -------------------------------------------------------

    def resolve_alert_type(self, label: str) -> Optional[int]:
        alert_type = self._alert_types.get(label)
        return alert_type.alert_type_id if alert_type else None

    def add_alert_type(self, label: str, description: str = "") -> int:
        if label in self._alert_types:
            raise ValueError(f"Alert type '{label}' already registered")
        alert_type = AlertType(next(self._alert_type_ids), label, description)
        self._alert_types[label] = alert_type
        return alert_type.alert_type_id

    def list_alert_types(self) -> Sequence[AlertType]:
        return list(self._alert_types.values())

    def alert_exists(self, user_id: int, alert_type_id: int, message: str, day: date) -> bool:
        return any(
            a.user_id == user_id
            and a.alert_type_id == alert_type_id
            and a.message == message
            and a.created_at.date() == day
            for a in self._alerts.values()
        )

    def insert_alert(self, user_id: int, alert_type_id: int, message: str, timestamp: datetime) -> int:
        alert = Alert(next(self._alert_ids), user_id, alert_type_id, message, timestamp)
        self._alerts[alert.alert_id] = alert
        return alert.alert_id

    def insert_recipient(self, alert_id: int, recipient_user_id: int) -> None:
        if alert_id not in self._alerts:
            raise KeyError(f"Unknown alert {alert_id}")
        self._recipients[(alert_id, recipient_user_id)] = AlertRecipient(alert_id, recipient_user_id)

    def alerts_created_on(self, day: date) -> Sequence[Alert]:
        return [a for a in self._alerts.values() if a.created_at.date() == day]

    def list_recipients(self, alert_id: int) -> Sequence[AlertRecipient]:
        return [r for key, r in self._recipients.items() if key[0] == alert_id]

    def persist(self) -> None:
        self.commit_count += 1

    # -- inspection -------------------------------------------------------

    @property
    def alerts(self) -> list[Alert]:
        return list(self._alerts.values())

    @property
    def recipients(self) -> list[AlertRecipient]:
        return list(self._recipients.values())
