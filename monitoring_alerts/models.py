"""Core data models for patient monitoring alerts."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Mapping, Optional, Sequence


class Role(str, Enum):
    """User roles known to the patient directory."""

    ADMIN = "admin"
    DOCTOR = "doctor"
    PATIENT = "patient"


@dataclass(frozen=True)
class Therapy:
    """A prescribed therapy with an inclusive calendar-date range."""

    therapy_id: int
    user_id: int
    start_date: date
    end_date: Optional[date] = None

    def is_active_on(self, day: date) -> bool:
        if day < self.start_date:
            return False
        return self.end_date is None or day <= self.end_date


@dataclass(frozen=True)
class MedicationSchedule:
    """Expected intakes of one medication within a therapy."""

    medication_schedule_id: int
    therapy_id: int
    daily_intakes: Optional[int] = None
    quantity: Decimal = Decimal("0")


@dataclass(frozen=True)
class MedicationIntake:
    """A single recorded intake against a medication schedule."""

    user_id: int
    medication_schedule_id: int
    intake_datetime: datetime
    expected_quantity_value: Decimal = Decimal("0")


@dataclass(frozen=True)
class GlycemicMeasurement:
    user_id: int
    measurement_datetime: datetime
    value: float


@dataclass(frozen=True)
class AlertType:
    alert_type_id: int
    label: str
    description: str = ""


@dataclass(frozen=True)
class Alert:
    alert_id: int
    user_id: int
    alert_type_id: int
    message: str
    created_at: datetime


@dataclass(frozen=True)
class AlertRecipient:
    alert_id: int
    recipient_user_id: int
    is_read: bool = False


@dataclass(frozen=True)
class AlertCandidate:
    """An alert condition raised by a rule, before deduplication."""

    label: str
    subject_user_id: int
    message: str
    recipient_user_ids: Sequence[int] = field(default_factory=tuple)


@dataclass(frozen=True)
class RuleOutcome:
    """Standardized output for a single rule evaluation of one patient."""

    rule_id: str
    patient_id: int
    target_day: date
    candidates: Sequence[AlertCandidate] = field(default_factory=tuple)
    evidence: Mapping[str, Any] = field(default_factory=dict)

    @property
    def fired(self) -> bool:
        return bool(self.candidates)


@dataclass(frozen=True)
class MonitoringContext:
    """Auxiliary context passed to each rule."""

    target_day: date
    thresholds: Mapping[str, Any] = field(default_factory=dict)
    rule_settings: Mapping[str, Mapping[str, Any]] = field(default_factory=dict)

    def rule_threshold(self, rule_id: str, key: str, default: Any) -> Any:
        """Return rule-specific override, falling back to global thresholds"""

        rule_specific = self.rule_settings.get(rule_id, {})
        if key in rule_specific:
            return rule_specific[key]
        return self.thresholds.get(key, default)


@dataclass
class RuleGroupStats:
    """Counters collected while a single rule runs over all patients."""

    rule_id: str
    patients_evaluated: int = 0
    candidates: int = 0
    alerts_created: int = 0
    alerts_suppressed: int = 0


@dataclass
class MonitoringRunResult:
    target_day: date
    rule_stats: dict[str, RuleGroupStats] = field(default_factory=dict)
    created_alert_ids: list[int] = field(default_factory=list)

    @property
    def total_created(self) -> int:
        return len(self.created_alert_ids)
