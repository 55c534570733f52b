"""At-most-once alert creation keyed by subject, type, message and day."""
from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Callable, Iterable, Optional

from .alert_catalog import parse_label
from .exceptions import DuplicateAlertError
from .repository import AlertStore

logger = logging.getLogger(__name__)

NO_RECIPIENT = 0


def distinct_recipients(recipient_user_ids: Iterable[Optional[int]]) -> list[int]:
    """Drop the ``0`` sentinel and duplicates, keeping first-seen order."""

    seen: list[int] = []
    for recipient_id in recipient_user_ids:
        if recipient_id in (None, NO_RECIPIENT) or recipient_id in seen:
            continue
        seen.append(recipient_id)
    return seen


class AlertDeduplicationService:
    """Creates each alert and its recipients at most once per calendar day.

    The deduplication day is the wall-clock day when ``create_alert`` is
    called, not the day the rule evaluated. The existence check and the
    insert are not atomic; a store with a uniqueness constraint closes the
    race by raising :class:`DuplicateAlertError`, which is treated as an
    existing alert.
    """

    def __init__(self, store: AlertStore, *, clock: Callable[[], datetime] = datetime.now) -> None:
        self._store = store
        self._clock = clock

    def create_alert(
        self,
        alert_label: str,
        subject_user_id: int,
        message: str,
        recipient_user_ids: Iterable[Optional[int]],
        day: Optional[date] = None,
    ) -> Optional[int]:
        """Create the alert unless an identical one exists today.

        Returns the new alert id, or ``None`` when the call was a no-op
        (unknown label or duplicate). ``day`` is the evaluated day and is
        only used for logging.
        """

        label = parse_label(alert_label)
        if label is None:
            logger.warning("Skipping alert for user %s: label %r is not in the catalog", subject_user_id, alert_label)
            return None
        alert_type_id = self._store.resolve_alert_type(label.value)
        if alert_type_id is None:
            logger.warning("Skipping alert for user %s: alert type %s is not seeded", subject_user_id, label.value)
            return None

        now = self._clock()
        today = now.date()
        if self._store.alert_exists(subject_user_id, alert_type_id, message, today):
            logger.debug("Alert %s for user %s already created on %s", label.value, subject_user_id, today)
            return None

        try:
            alert_id = self._store.insert_alert(subject_user_id, alert_type_id, message, now)
        except DuplicateAlertError:
            logger.warning("Concurrent run already created %s for user %s on %s", label.value, subject_user_id, today)
            return None

        recipients = distinct_recipients(recipient_user_ids)
        for recipient_id in recipients:
            self._store.insert_recipient(alert_id, recipient_id)

        logger.info(
            "Created alert %s (%s) for user %s, evaluated day %s, recipients %s",
            alert_id,
            label.value,
            subject_user_id,
            day.isoformat() if day else today.isoformat(),
            recipients,
        )
        return alert_id
