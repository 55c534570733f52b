"""Base class and utilities for monitoring rules."""
from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Optional, Sequence

from .models import AlertCandidate, MonitoringContext, RuleOutcome
from .repository import MeasurementRepository, PatientDirectory, TherapyRepository


@dataclass(frozen=True)
class RuleSources:
    """Read-side collaborators available to a rule evaluation."""

    directory: PatientDirectory
    measurements: MeasurementRepository
    therapies: TherapyRepository


class MonitoringRule(ABC):
    """Abstract monitoring rule with metadata."""

    id: str = ""
    description: str = ""
    version: str = "1.0.0"
    labels: tuple[str, ...] = ()
    run_order: int = 100

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        if not cls.id:
            raise ValueError(f"Rule {cls.__name__} must define a non-empty id")

    @abstractmethod
    def evaluate(self, patient_id: int, context: MonitoringContext, sources: RuleSources) -> RuleOutcome:
        """Decide which alert conditions hold for one patient on the target day."""

    def resolved_threshold(self, context: MonitoringContext, key: str, default: Any) -> Any:
        """Helper to fetch rule-specific threshold overrides."""

        return context.rule_threshold(self.id, key, default)

    def outcome(
        self,
        patient_id: int,
        context: MonitoringContext,
        candidates: Sequence[AlertCandidate] = (),
        **evidence: Any,
    ) -> RuleOutcome:
        return RuleOutcome(
            rule_id=self.id,
            patient_id=patient_id,
            target_day=context.target_day,
            candidates=tuple(candidates),
            evidence=evidence,
        )

    def patient_and_doctor(self, patient_id: int, sources: RuleSources) -> tuple[int, Optional[int]]:
        """Recipients for alerts that also notify the assigned doctor, if any."""

        return (patient_id, sources.directory.get_assigned_doctor(patient_id))

    def __repr__(self) -> str:  # pragma: no cover - convenience only
        return f"<{self.__class__.__name__} id={self.id!r} version={self.version!r}>"
