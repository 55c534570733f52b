"""Rule evaluation and alert deduplication for patient monitoring."""

from .alert_catalog import AlertLabel, parse_label, seed_alert_types
from .dedup import AlertDeduplicationService
from .engine import MonitoringEngine
from .memory_store import InMemoryMonitoringStore
from .models import (
    Alert,
    AlertCandidate,
    AlertRecipient,
    AlertType,
    MedicationIntake,
    MedicationSchedule,
    MonitoringContext,
    MonitoringRunResult,
    Role,
    RuleOutcome,
    Therapy,
)
from .registry import register_rule, registry
from .rule_base import MonitoringRule, RuleSources

__all__ = [
    "Alert",
    "AlertCandidate",
    "AlertDeduplicationService",
    "AlertLabel",
    "AlertRecipient",
    "AlertType",
    "InMemoryMonitoringStore",
    "MedicationIntake",
    "MedicationSchedule",
    "MonitoringContext",
    "MonitoringEngine",
    "MonitoringRule",
    "MonitoringRunResult",
    "Role",
    "RuleOutcome",
    "RuleSources",
    "Therapy",
    "parse_label",
    "register_rule",
    "registry",
    "seed_alert_types",
]
