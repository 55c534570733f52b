"""Shared helpers for monitoring rules."""
from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Iterable

from ..models import MedicationIntake, MedicationSchedule


def format_day(day: date) -> str:
    """Render a day as ``dd/MM/yyyy`` for alert messages."""

    return day.strftime("%d/%m/%Y")


def format_short_day(day: date) -> str:
    return day.strftime("%d/%m")


def expected_intakes(schedule: MedicationSchedule) -> int:
    """Intakes per day; an unset or zero count means one intake."""

    if schedule.daily_intakes and schedule.daily_intakes > 0:
        return schedule.daily_intakes
    return 1


def expected_daily_quantity(schedule: MedicationSchedule) -> Decimal:
    return Decimal(schedule.quantity) * expected_intakes(schedule)


def total_quantity(intakes: Iterable[MedicationIntake]) -> Decimal:
    return sum((Decimal(intake.expected_quantity_value) for intake in intakes), Decimal("0"))
