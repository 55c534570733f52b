from datetime import datetime, timedelta

import pytest

from conftest import DOCTOR, LONE_PATIENT, NOW, PATIENT, TODAY
from monitoring_alerts.dedup import AlertDeduplicationService, distinct_recipients
from monitoring_alerts.memory_store import InMemoryMonitoringStore


def test_create_alert_persists_alert_and_recipients(store, dedup):
    alert_id = dedup.create_alert("NO_MEASUREMENTS", PATIENT, "msg", [PATIENT, DOCTOR], TODAY)

    assert alert_id is not None
    [alert] = store.alerts
    assert alert.user_id == PATIENT
    assert alert.message == "msg"
    assert alert.created_at == NOW
    assert alert.alert_type_id == store.resolve_alert_type("NO_MEASUREMENTS")
    assert {r.recipient_user_id for r in store.recipients} == {PATIENT, DOCTOR}
    assert all(r.is_read is False for r in store.recipients)


def test_unknown_label_is_silently_skipped(store, dedup):
    assert dedup.create_alert("NOT_A_LABEL", PATIENT, "msg", [PATIENT]) is None
    assert store.alerts == []


def test_catalog_label_missing_from_store_is_skipped(clock):
    empty = InMemoryMonitoringStore()
    service = AlertDeduplicationService(empty, clock=clock)

    assert service.create_alert("ADHERENCE_MISSING_3DAYS", PATIENT, "msg", [PATIENT]) is None
    assert empty.alerts == []


def test_same_alert_twice_on_same_day_creates_one(store, dedup, clock):
    first = dedup.create_alert("PARTIAL_MEASUREMENTS", PATIENT, "Only 3", [PATIENT, DOCTOR])
    clock.now = NOW.replace(hour=23, minute=59)
    second = dedup.create_alert("PARTIAL_MEASUREMENTS", PATIENT, "Only 3", [PATIENT, DOCTOR])

    assert first is not None
    assert second is None
    assert len(store.alerts) == 1
    assert len(store.recipients) == 2


def test_different_message_is_not_a_duplicate(store, dedup):
    dedup.create_alert("PARTIAL_MEASUREMENTS", PATIENT, "Only 3", [PATIENT])
    dedup.create_alert("PARTIAL_MEASUREMENTS", PATIENT, "Only 4", [PATIENT])

    assert len(store.alerts) == 2


def test_same_message_for_other_subject_or_type_is_not_a_duplicate(store, dedup):
    dedup.create_alert("NO_MEASUREMENTS", PATIENT, "msg", [PATIENT])
    dedup.create_alert("NO_MEASUREMENTS", LONE_PATIENT, "msg", [LONE_PATIENT])
    dedup.create_alert("ADHERENCE_MISSING", PATIENT, "msg", [PATIENT])

    assert len(store.alerts) == 3


def test_dedup_window_is_wall_clock_day_not_target_day(store, dedup, clock):
    dedup.create_alert("NO_MEASUREMENTS", PATIENT, "msg", [PATIENT], TODAY - timedelta(days=5))
    clock.now = NOW + timedelta(days=1)
    dedup.create_alert("NO_MEASUREMENTS", PATIENT, "msg", [PATIENT], TODAY - timedelta(days=5))

    assert len(store.alerts) == 2
    assert sorted(a.created_at.date() for a in store.alerts) == [TODAY, TODAY + timedelta(days=1)]


def test_sentinel_and_duplicate_recipients_are_dropped(store, dedup):
    dedup.create_alert("NO_MEASUREMENTS", LONE_PATIENT, "msg", [LONE_PATIENT, 0, LONE_PATIENT, None])

    assert [r.recipient_user_id for r in store.recipients] == [LONE_PATIENT]


def test_distinct_recipients_keeps_first_seen_order():
    assert distinct_recipients([5, 0, 3, 5, None, 3, 7]) == [5, 3, 7]


class _FailingRecipientStore(InMemoryMonitoringStore):
    def insert_recipient(self, alert_id, recipient_user_id):
        raise RuntimeError("store unreachable")


def test_recipient_failure_leaves_alert_without_recipients(clock):
    store = _FailingRecipientStore()
    store.add_alert_type("NO_MEASUREMENTS")
    service = AlertDeduplicationService(store, clock=clock)

    with pytest.raises(RuntimeError):
        service.create_alert("NO_MEASUREMENTS", PATIENT, "msg", [PATIENT])

    assert len(store.alerts) == 1
    assert store.recipients == []


def test_default_clock_uses_current_time(store):
    service = AlertDeduplicationService(store)
    before = datetime.now()
    service.create_alert("NO_MEASUREMENTS", PATIENT, "msg", [PATIENT])

    [alert] = store.alerts
    assert alert.created_at >= before
