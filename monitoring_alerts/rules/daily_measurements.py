"""Flag days with no or too few glycemic measurements."""
from __future__ import annotations

from ..alert_catalog import AlertLabel
from ..models import AlertCandidate, MonitoringContext, RuleOutcome
from ..registry import register_rule
from ..rule_base import MonitoringRule, RuleSources
from ._helpers import format_day


@register_rule
class DailyMeasurementsRule(MonitoringRule):
    id = "daily_measurements"
    description = (
        "Daily measurement count: no readings raises NO_MEASUREMENTS, fewer than"
        " 6 raises PARTIAL_MEASUREMENTS; patient and doctor are notified"
    )
    version = "1.0.0"
    labels = (AlertLabel.NO_MEASUREMENTS.value, AlertLabel.PARTIAL_MEASUREMENTS.value)
    run_order = 10

    def evaluate(self, patient_id: int, context: MonitoringContext, sources: RuleSources) -> RuleOutcome:
        minimum = int(self.resolved_threshold(context, "minimum_daily_measurements", 6))
        day = context.target_day

        count = sources.measurements.count_measurements(patient_id, day)
        if count >= minimum:
            return self.outcome(patient_id, context, measurement_count=count)

        if count == 0:
            label = AlertLabel.NO_MEASUREMENTS
            message = f"No glycemic measurements registered for {format_day(day)}"
        else:
            label = AlertLabel.PARTIAL_MEASUREMENTS
            message = f"Only {count} glycemic measurements registered for {format_day(day)}"

        candidate = AlertCandidate(
            label=label.value,
            subject_user_id=patient_id,
            message=message,
            recipient_user_ids=self.patient_and_doctor(patient_id, sources),
        )
        return self.outcome(patient_id, context, [candidate], measurement_count=count)
