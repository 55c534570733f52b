"""Monitoring run orchestrator: every rule over every active patient for one day."""
from __future__ import annotations

import logging
from datetime import date
from typing import Any, Callable, Mapping

from .dedup import AlertDeduplicationService
from .models import MonitoringContext, MonitoringRunResult, RuleGroupStats
from .registry import RuleRegistry
from .repository import MonitoringRepository, PatientDirectory
from .rule_base import MonitoringRule, RuleSources

logger = logging.getLogger(__name__)


class MonitoringEngine:
    """Runs registered rules sequentially and commits after each rule group.

    Rules see the patient directory, measurements and therapies; alerts go
    through the deduplication service. A rule group is the commit boundary:
    ``repository.persist()`` is called once all patients were evaluated for
    that rule. Repository errors propagate and abort the run.
    """

    def __init__(
        self,
        repository: MonitoringRepository,
        registry: RuleRegistry,
        *,
        directory: PatientDirectory | None = None,
        dedup_service: AlertDeduplicationService | None = None,
        default_thresholds: Mapping[str, Any] | None = None,
        default_rule_settings: Mapping[str, Mapping[str, Any]] | None = None,
    ) -> None:
        self._repository = repository
        self._registry = registry
        self._directory = directory or repository
        self._dedup = dedup_service or AlertDeduplicationService(repository)
        self._default_thresholds = default_thresholds or {}
        self._default_rule_settings = default_rule_settings or {}

    def run(
        self,
        target_day: date,
        *,
        rule_filter: Callable[[MonitoringRule], bool] | None = None,
    ) -> MonitoringRunResult:
        """Evaluate every rule group for ``target_day``."""

        rules = self._registry.ordered(rule_filter)
        if not rules:
            raise RuntimeError("No monitoring rules are registered. Ensure rule modules are imported.")

        context = MonitoringContext(
            target_day=target_day,
            thresholds=self._default_thresholds,
            rule_settings=self._default_rule_settings,
        )
        sources = RuleSources(
            directory=self._directory,
            measurements=self._repository,
            therapies=self._repository,
        )
        result = MonitoringRunResult(target_day=target_day)

        logger.info("Monitoring run for %s with rules %s", target_day.isoformat(), [r.id for r in rules])
        for rule in rules:
            stats = self._run_rule_group(rule, context, sources, result)
            result.rule_stats[rule.id] = stats
        logger.info("Monitoring run for %s created %d alerts", target_day.isoformat(), result.total_created)
        return result

    def _run_rule_group(
        self,
        rule: MonitoringRule,
        context: MonitoringContext,
        sources: RuleSources,
        result: MonitoringRunResult,
    ) -> RuleGroupStats:
        stats = RuleGroupStats(rule_id=rule.id)
        for patient_id in self._directory.list_active_patients():
            outcome = rule.evaluate(patient_id, context, sources)
            stats.patients_evaluated += 1
            for candidate in outcome.candidates:
                stats.candidates += 1
                alert_id = self._dedup.create_alert(
                    candidate.label,
                    candidate.subject_user_id,
                    candidate.message,
                    candidate.recipient_user_ids,
                    context.target_day,
                )
                if alert_id is None:
                    stats.alerts_suppressed += 1
                else:
                    stats.alerts_created += 1
                    result.created_alert_ids.append(alert_id)

        self._repository.persist()
        logger.info(
            "Rule %s: %d patients, %d candidates, %d created, %d suppressed",
            rule.id,
            stats.patients_evaluated,
            stats.candidates,
            stats.alerts_created,
            stats.alerts_suppressed,
        )
        return stats
