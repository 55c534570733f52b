"""Flag patients below the daily measurement target on consecutive days."""
from __future__ import annotations

from datetime import timedelta

from ..alert_catalog import AlertLabel
from ..models import AlertCandidate, MonitoringContext, RuleOutcome
from ..registry import register_rule
from ..rule_base import MonitoringRule, RuleSources
from ._helpers import format_short_day


@register_rule
class RepeatedPartialMeasurementsRule(MonitoringRule):
    id = "repeated_partial_measurements"
    description = (
        "Repeated shortfall: fewer than 6 glycemic measurements on each of the"
        " last 3 days (target day included)"
    )
    version = "1.0.0"
    labels = (AlertLabel.REPEATED_PARTIAL_MEASUREMENTS.value,)
    run_order = 20

    def evaluate(self, patient_id: int, context: MonitoringContext, sources: RuleSources) -> RuleOutcome:
        minimum = int(self.resolved_threshold(context, "minimum_daily_measurements", 6))
        days = int(self.resolved_threshold(context, "repeated_shortfall_days", 3))

        # Newest first: target day, then each previous day.
        daily_counts = []
        for offset in range(days):
            day = context.target_day - timedelta(days=offset)
            daily_counts.append((day, sources.measurements.count_measurements(patient_id, day)))

        evidence = {"daily_counts": {day.isoformat(): count for day, count in daily_counts}}
        if days <= 0 or any(count >= minimum for _, count in daily_counts):
            return self.outcome(patient_id, context, **evidence)

        message = f"Less than {minimum} glycemic measurements for {days} consecutive days: " + ", ".join(
            f"{format_short_day(day)}: {count}" for day, count in daily_counts
        )
        candidate = AlertCandidate(
            label=AlertLabel.REPEATED_PARTIAL_MEASUREMENTS.value,
            subject_user_id=patient_id,
            message=message,
            recipient_user_ids=self.patient_and_doctor(patient_id, sources),
        )
        return self.outcome(patient_id, context, [candidate], **evidence)
