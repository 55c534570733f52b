"""Flag days where scheduled medication intakes were not fully registered."""
from __future__ import annotations

import logging

from ..alert_catalog import AlertLabel
from ..models import AlertCandidate, MonitoringContext, RuleOutcome
from ..registry import register_rule
from ..rule_base import MonitoringRule, RuleSources
from ._helpers import expected_daily_quantity, format_day, total_quantity

logger = logging.getLogger(__name__)


@register_rule
class AdherenceMissingRule(MonitoringRule):
    id = "adherence_missing"
    description = (
        "Therapy adherence: any schedule of an active therapy with no intake, or"
        " with a recorded total below quantity x daily intakes; patient only"
    )
    version = "1.0.0"
    labels = (AlertLabel.ADHERENCE_MISSING.value,)
    run_order = 30

    def evaluate(self, patient_id: int, context: MonitoringContext, sources: RuleSources) -> RuleOutcome:
        day = context.target_day
        therapies = sources.therapies.list_active_therapies(patient_id, day)

        flagged_schedules: list[int] = []
        for therapy in therapies:
            for schedule in sources.therapies.list_schedules(therapy.therapy_id):
                intakes = sources.therapies.list_intakes(patient_id, schedule.medication_schedule_id, day)
                if not intakes:
                    flagged_schedules.append(schedule.medication_schedule_id)
                    continue
                if total_quantity(intakes) < expected_daily_quantity(schedule):
                    flagged_schedules.append(schedule.medication_schedule_id)

        evidence = {
            "active_therapies": [t.therapy_id for t in therapies],
            "flagged_schedules": flagged_schedules,
        }
        if not flagged_schedules:
            return self.outcome(patient_id, context, **evidence)

        logger.debug("Patient %s missed schedules %s on %s", patient_id, flagged_schedules, day)
        # Doctor escalation belongs to ADHERENCE_MISSING_3DAYS.
        candidate = AlertCandidate(
            label=AlertLabel.ADHERENCE_MISSING.value,
            subject_user_id=patient_id,
            message=f"Not all scheduled medication intakes were registered for {format_day(day)}",
            recipient_user_ids=(patient_id,),
        )
        return self.outcome(patient_id, context, [candidate], **evidence)
