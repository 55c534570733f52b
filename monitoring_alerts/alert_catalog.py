"""Structured metadata for the alert type catalog."""
from __future__ import annotations

import logging
from enum import Enum
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from .repository import AlertStore

logger = logging.getLogger(__name__)


class AlertLabel(str, Enum):
    """Closed vocabulary of alert labels known to the platform."""

    ADHERENCE_MISSING = "ADHERENCE_MISSING"
    ADHERENCE_MISSING_3DAYS = "ADHERENCE_MISSING_3DAYS"
    GLYCEMIA_MILD = "GLYCEMIA_MILD"
    GLYCEMIA_SEVERE = "GLYCEMIA_SEVERE"
    GLYCEMIA_CRITICAL = "GLYCEMIA_CRITICAL"
    NO_MEASUREMENTS = "NO_MEASUREMENTS"
    PARTIAL_MEASUREMENTS = "PARTIAL_MEASUREMENTS"
    REPEATED_PARTIAL_MEASUREMENTS = "REPEATED_PARTIAL_MEASUREMENTS"
    CRITICAL_SYMPTOM = "CRITICAL_SYMPTOM"
    CRITICAL_CONDITION = "CRITICAL_CONDITION"
    HYPO_HYPER_RISK = "HYPO_HYPER_RISK"
    CUSTOM_ALERT = "CUSTOM_ALERT"


ALERT_METADATA: dict[AlertLabel, dict[str, object]] = {
    AlertLabel.ADHERENCE_MISSING: {
        "description": "Patient did not register the intake of one or more scheduled drugs",
        "recipients": ("patient",),
        "emitted": True,
    },
    AlertLabel.ADHERENCE_MISSING_3DAYS: {
        "description": "Patient did not follow therapy for more than 3 consecutive days",
        "recipients": ("patient", "doctor"),
        "emitted": False,
    },
    AlertLabel.GLYCEMIA_MILD: {
        "description": "Moderately out-of-range glycemia (e.g. 180-250 mg/dL)",
        "recipients": ("patient",),
        "emitted": False,
    },
    AlertLabel.GLYCEMIA_SEVERE: {
        "description": "Severely out-of-range glycemia (e.g. 251-350 mg/dL)",
        "recipients": ("patient", "doctor"),
        "emitted": False,
    },
    AlertLabel.GLYCEMIA_CRITICAL: {
        "description": "Critically out-of-range glycemia (>350 mg/dL or <60 mg/dL)",
        "recipients": ("doctor",),
        "emitted": False,
    },
    AlertLabel.NO_MEASUREMENTS: {
        "description": "No glycemic measurements for the day",
        "recipients": ("patient", "doctor"),
        "emitted": True,
    },
    AlertLabel.PARTIAL_MEASUREMENTS: {
        "description": "Less than 6 glycemic measurements for the day",
        "recipients": ("patient", "doctor"),
        "emitted": True,
    },
    AlertLabel.REPEATED_PARTIAL_MEASUREMENTS: {
        "description": "Less than 6 glycemic measurements for 3 consecutive days",
        "recipients": ("patient", "doctor"),
        "emitted": True,
    },
    AlertLabel.CRITICAL_SYMPTOM: {
        "description": "Critical symptom reported",
        "recipients": ("doctor",),
        "emitted": False,
    },
    AlertLabel.CRITICAL_CONDITION: {
        "description": "Severe clinical condition reported",
        "recipients": ("doctor",),
        "emitted": False,
    },
    AlertLabel.HYPO_HYPER_RISK: {
        "description": "Hypo/hyperglycemia risk pattern",
        "recipients": ("patient", "doctor"),
        "emitted": False,
    },
    AlertLabel.CUSTOM_ALERT: {
        "description": "Other custom alerts (e.g. interactions, anomalies)",
        "recipients": ("patient", "doctor"),
        "emitted": False,
    },
}


def parse_label(value: str | AlertLabel) -> Optional[AlertLabel]:
    """Return the catalog label for ``value`` or ``None`` when it is not in the catalog."""

    if isinstance(value, AlertLabel):
        return value
    try:
        return AlertLabel(value)
    except ValueError:
        return None


def emitted_labels() -> list[AlertLabel]:
    """Labels the engine currently raises alerts for."""

    return [label for label, meta in ALERT_METADATA.items() if meta["emitted"]]


def seed_alert_types(store: "AlertStore", labels: Optional[list[AlertLabel]] = None) -> int:
    """Register missing catalog labels with the store; return how many were added."""

    added = 0
    for label in labels or list(AlertLabel):
        if store.resolve_alert_type(label.value) is not None:
            continue
        store.add_alert_type(label.value, str(ALERT_METADATA[label]["description"]))
        added += 1
    if added:
        logger.info("Seeded %d alert types", added)
    return added


__all__ = [
    "ALERT_METADATA",
    "AlertLabel",
    "emitted_labels",
    "parse_label",
    "seed_alert_types",
]
