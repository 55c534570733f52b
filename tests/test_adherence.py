from datetime import datetime, timedelta
from decimal import Decimal

import pytest

from conftest import PATIENT, TODAY
from monitoring_alerts.models import MedicationSchedule, MonitoringContext, Therapy
from monitoring_alerts.registry import registry
from monitoring_alerts.rule_base import RuleSources
from monitoring_alerts.rules._helpers import expected_daily_quantity, expected_intakes


def _evaluate(store, day=TODAY):
    rule = registry.get("adherence_missing")
    sources = RuleSources(directory=store, measurements=store, therapies=store)
    return rule.evaluate(PATIENT, MonitoringContext(target_day=day), sources)


def _therapy(store, therapy_id=10, start=TODAY - timedelta(days=30), end=None, schedules=()):
    store.add_therapy(Therapy(therapy_id, PATIENT, start, end))
    for schedule_id, daily_intakes, quantity in schedules:
        store.add_schedule(MedicationSchedule(schedule_id, therapy_id, daily_intakes, Decimal(quantity)))


def _intake(store, schedule_id, quantity, hour=8, day=TODAY):
    store.add_intake(PATIENT, schedule_id, datetime(day.year, day.month, day.day, hour), quantity)


@pytest.mark.parametrize("intakes", [[], ["5"]])
def test_short_or_missing_intake_flags(store, intakes):
    _therapy(store, schedules=[(100, 2, "5")])
    for hour, quantity in enumerate(intakes, start=8):
        _intake(store, 100, quantity, hour=hour)

    [candidate] = _evaluate(store).candidates

    assert candidate.label == "ADHERENCE_MISSING"
    assert candidate.message == "Not all scheduled medication intakes were registered for 19/10/2026"
    assert tuple(candidate.recipient_user_ids) == (PATIENT,)


def test_exact_total_quantity_does_not_flag(store):
    _therapy(store, schedules=[(100, 2, "5")])
    _intake(store, 100, "5", hour=8)
    _intake(store, 100, "5", hour=20)

    assert _evaluate(store).fired is False


def test_single_larger_intake_covers_the_day(store):
    _therapy(store, schedules=[(100, 2, "5")])
    _intake(store, 100, "10")

    assert _evaluate(store).fired is False


def test_zero_daily_intakes_means_one_intake(store):
    _therapy(store, schedules=[(100, 0, "2.5")])
    _intake(store, 100, "2.5")

    assert _evaluate(store).fired is False
    assert expected_intakes(MedicationSchedule(1, 1, 0, Decimal("2.5"))) == 1
    assert expected_intakes(MedicationSchedule(1, 1, None, Decimal("2.5"))) == 1
    assert expected_daily_quantity(MedicationSchedule(1, 1, 3, Decimal("2.5"))) == Decimal("7.5")


def test_intakes_from_other_days_are_ignored(store):
    _therapy(store, schedules=[(100, 1, "5")])
    _intake(store, 100, "5", day=TODAY - timedelta(days=1))

    assert _evaluate(store).fired is True


def test_therapy_without_schedules_does_not_flag(store):
    _therapy(store)

    assert _evaluate(store).fired is False


def test_inactive_therapies_produce_no_alert(store):
    _therapy(store, therapy_id=10, end=TODAY - timedelta(days=1), schedules=[(100, 1, "5")])
    _therapy(store, therapy_id=11, start=TODAY + timedelta(days=1), schedules=[(101, 1, "5")])

    outcome = _evaluate(store)

    assert outcome.fired is False
    assert outcome.evidence["active_therapies"] == []


def test_therapy_range_is_inclusive(store):
    _therapy(store, start=TODAY, end=TODAY, schedules=[(100, 1, "5")])

    assert _evaluate(store).fired is True


def test_several_missed_schedules_raise_one_alert(store):
    _therapy(store, therapy_id=10, schedules=[(100, 1, "5"), (101, 2, "1")])
    _therapy(store, therapy_id=11, schedules=[(102, 1, "5")])
    _intake(store, 102, "5")

    outcome = _evaluate(store)

    assert len(outcome.candidates) == 1
    assert outcome.evidence["flagged_schedules"] == [100, 101]
