"""Load monitoring fixtures from JSON documents into a store.

A fixture document looks like::

    {
        "users": [{"user_id": 1, "role": "patient", "first_name": "Ada", "last_name": "Rossi"}],
        "doctor_assignments": [{"patient_id": 1, "doctor_id": 2}],
        "measurements": [{"user_id": 1, "measured_at": "2025-01-01T08:00:00", "value": 110}],
        "therapies": [
            {
                "therapy_id": 10,
                "user_id": 1,
                "start_date": "2025-01-01",
                "end_date": null,
                "schedules": [{"medication_schedule_id": 100, "daily_intakes": 2, "quantity": "5"}]
            }
        ],
        "intakes": [{"user_id": 1, "medication_schedule_id": 100, "taken_at": "2025-01-01T09:00:00", "quantity": "5"}]
    }

Every section is optional.
"""
from __future__ import annotations

import json
from decimal import Decimal
from pathlib import Path
from typing import Any, Mapping, Protocol

import pandas as pd

from .models import MedicationSchedule, Role, Therapy


class PopulatableStore(Protocol):
    def add_user(self, user_id: int, role: Role, first_name: str = "", last_name: str = "") -> None:
        ...

    def assign_doctor(self, patient_id: int, doctor_id: int) -> None:
        ...

    def add_measurement(self, user_id: int, measured_at, value: float = 0.0) -> None:
        ...

    def add_therapy(self, therapy: Therapy) -> None:
        ...

    def add_schedule(self, schedule: MedicationSchedule) -> None:
        ...

    def add_intake(self, user_id: int, schedule_id: int, taken_at, quantity) -> None:
        ...


def _parse_timestamps(records: list[Mapping[str, Any]], column: str) -> pd.DataFrame:
    frame = pd.DataFrame(records)
    if frame.empty:
        return frame
    if column not in frame:
        raise ValueError(f"Fixture records must include '{column}'")
    frame[column] = pd.to_datetime(frame[column])
    return frame


def _optional_date(value: Any):
    if value is None or (isinstance(value, float) and pd.isna(value)):
        return None
    return pd.to_datetime(value).date()


def load_fixture(store: PopulatableStore, document: Mapping[str, Any]) -> None:
    """Populate ``store`` with the records of a fixture document."""

    for user in document.get("users", []):
        store.add_user(
            int(user["user_id"]),
            Role(user["role"]),
            user.get("first_name", ""),
            user.get("last_name", ""),
        )

    for assignment in document.get("doctor_assignments", []):
        store.assign_doctor(int(assignment["patient_id"]), int(assignment["doctor_id"]))

    measurements = _parse_timestamps(document.get("measurements", []), "measured_at")
    for row in measurements.itertuples(index=False):
        store.add_measurement(int(row.user_id), row.measured_at.to_pydatetime(), float(getattr(row, "value", 0.0)))

    for record in document.get("therapies", []):
        therapy = Therapy(
            therapy_id=int(record["therapy_id"]),
            user_id=int(record["user_id"]),
            start_date=_optional_date(record["start_date"]),
            end_date=_optional_date(record.get("end_date")),
        )
        store.add_therapy(therapy)
        for schedule in record.get("schedules", []):
            daily_intakes = schedule.get("daily_intakes")
            store.add_schedule(
                MedicationSchedule(
                    medication_schedule_id=int(schedule["medication_schedule_id"]),
                    therapy_id=therapy.therapy_id,
                    daily_intakes=int(daily_intakes) if daily_intakes is not None else None,
                    quantity=Decimal(str(schedule.get("quantity", "0"))),
                )
            )

    intakes = _parse_timestamps(document.get("intakes", []), "taken_at")
    for row in intakes.itertuples(index=False):
        store.add_intake(
            int(row.user_id),
            int(row.medication_schedule_id),
            row.taken_at.to_pydatetime(),
            Decimal(str(row.quantity)),
        )


def load_fixture_file(store: PopulatableStore, path: Path) -> None:
    with path.open() as handle:
        load_fixture(store, json.load(handle))
