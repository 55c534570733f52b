from datetime import timedelta

import pytest

from conftest import DOCTOR, LONE_PATIENT, PATIENT, TODAY, add_measurements
from monitoring_alerts.models import MonitoringContext
from monitoring_alerts.registry import registry
from monitoring_alerts.rule_base import MonitoringRule, RuleSources


def _sources(store) -> RuleSources:
    return RuleSources(directory=store, measurements=store, therapies=store)


def _evaluate(rule_id, store, patient_id=PATIENT, context=None):
    rule = registry.get(rule_id)
    return rule.evaluate(patient_id, context or MonitoringContext(target_day=TODAY), _sources(store))


def test_rules_registered_in_run_order():
    assert [rule.id for rule in registry.ordered()] == [
        "daily_measurements",
        "repeated_partial_measurements",
        "adherence_missing",
    ]


def test_helper_modules_are_not_discovered_as_rules():
    import monitoring_alerts.rules as rules_package

    assert rules_package.RULE_MODULES == (
        "adherence",
        "daily_measurements",
        "repeated_partial_measurements",
    )
    assert "_helpers" not in rules_package.__all__


def test_rule_without_id_is_rejected():
    with pytest.raises(ValueError):

        class _Anonymous(MonitoringRule):
            def evaluate(self, patient_id, context, sources):  # pragma: no cover - never instantiated
                raise NotImplementedError


def test_no_measurements_alerts_patient_and_doctor(store):
    outcome = _evaluate("daily_measurements", store)

    [candidate] = outcome.candidates
    assert candidate.label == "NO_MEASUREMENTS"
    assert candidate.message == "No glycemic measurements registered for 19/10/2026"
    assert tuple(candidate.recipient_user_ids) == (PATIENT, DOCTOR)
    assert outcome.evidence["measurement_count"] == 0


@pytest.mark.parametrize("count", [1, 5])
def test_partial_measurements_reports_count(store, count):
    add_measurements(store, PATIENT, TODAY, count)

    [candidate] = _evaluate("daily_measurements", store).candidates

    assert candidate.label == "PARTIAL_MEASUREMENTS"
    assert candidate.message == f"Only {count} glycemic measurements registered for 19/10/2026"


@pytest.mark.parametrize("count", [6, 9])
def test_enough_measurements_raise_nothing(store, count):
    add_measurements(store, PATIENT, TODAY, count)

    outcome = _evaluate("daily_measurements", store)

    assert outcome.fired is False


def test_measurements_on_other_days_do_not_count(store):
    add_measurements(store, PATIENT, TODAY - timedelta(days=1), 8)

    [candidate] = _evaluate("daily_measurements", store).candidates

    assert candidate.label == "NO_MEASUREMENTS"


def test_unassigned_patient_gets_no_doctor_slot(store):
    [candidate] = _evaluate("daily_measurements", store, patient_id=LONE_PATIENT).candidates

    assert tuple(candidate.recipient_user_ids) == (LONE_PATIENT, None)


def test_minimum_measurements_override(store):
    add_measurements(store, PATIENT, TODAY, 4)
    context = MonitoringContext(
        target_day=TODAY,
        rule_settings={"daily_measurements": {"minimum_daily_measurements": 4}},
    )

    assert _evaluate("daily_measurements", store, context=context).fired is False


def test_repeated_partial_measurements_lists_each_day(store):
    add_measurements(store, PATIENT, TODAY, 3)
    add_measurements(store, PATIENT, TODAY - timedelta(days=1), 2)

    [candidate] = _evaluate("repeated_partial_measurements", store).candidates

    assert candidate.label == "REPEATED_PARTIAL_MEASUREMENTS"
    assert candidate.message == (
        "Less than 6 glycemic measurements for 3 consecutive days: 19/10: 3, 18/10: 2, 17/10: 0"
    )
    assert tuple(candidate.recipient_user_ids) == (PATIENT, DOCTOR)


def test_full_day_inside_window_breaks_the_streak(store):
    add_measurements(store, PATIENT, TODAY, 3)
    add_measurements(store, PATIENT, TODAY - timedelta(days=1), 7)
    add_measurements(store, PATIENT, TODAY - timedelta(days=2), 2)

    daily = _evaluate("daily_measurements", store)
    repeated = _evaluate("repeated_partial_measurements", store)

    assert [c.label for c in daily.candidates] == ["PARTIAL_MEASUREMENTS"]
    assert repeated.fired is False
    assert repeated.evidence["daily_counts"] == {
        "2026-10-19": 3,
        "2026-10-18": 7,
        "2026-10-17": 2,
    }


def test_full_day_outside_window_is_ignored(store):
    add_measurements(store, PATIENT, TODAY - timedelta(days=3), 10)

    assert _evaluate("repeated_partial_measurements", store).fired is True


def test_repeated_shortfall_days_override(store):
    add_measurements(store, PATIENT, TODAY - timedelta(days=1), 6)
    context = MonitoringContext(target_day=TODAY, thresholds={"repeated_shortfall_days": 1})

    [candidate] = _evaluate("repeated_partial_measurements", store, context=context).candidates

    assert candidate.message == "Less than 6 glycemic measurements for 1 consecutive days: 19/10: 0"
