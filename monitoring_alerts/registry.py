"""Registry for discovering and ordering monitoring rules."""
from __future__ import annotations

from collections.abc import Callable, Iterable
from typing import Dict, Type

from .rule_base import MonitoringRule


class RuleRegistry:
    """Keeps track of available rules by id."""

    def __init__(self) -> None:
        self._rules: Dict[str, MonitoringRule] = {}

    def register(self, rule_cls: Type[MonitoringRule]) -> Type[MonitoringRule]:
        if rule_cls.id in self._rules:
            raise ValueError(f"Rule '{rule_cls.id}' already registered")
        self._rules[rule_cls.id] = rule_cls()
        return rule_cls

    def get(self, rule_id: str) -> MonitoringRule:
        return self._rules[rule_id]

    def items(self) -> Iterable[tuple[str, MonitoringRule]]:
        return self._rules.items()

    def ordered(self, predicate: Callable[[MonitoringRule], bool] | None = None) -> list[MonitoringRule]:
        """Return rules in run order, optionally filtered."""

        rules = [rule for rule in self._rules.values() if predicate is None or predicate(rule)]
        return sorted(rules, key=lambda rule: (rule.run_order, rule.id))


registry = RuleRegistry()


def register_rule(rule_cls: Type[MonitoringRule]) -> Type[MonitoringRule]:
    """Decorator for registering a rule at definition time."""

    return registry.register(rule_cls)
