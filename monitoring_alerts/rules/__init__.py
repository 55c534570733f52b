"""Monitoring rules; importing this package registers every rule.

Each public module defines rule classes decorated with ``@register_rule``.
Modules whose name starts with an underscore hold shared helpers and are not
imported here.
"""
from __future__ import annotations

import pkgutil
from importlib import import_module

RULE_MODULES: tuple[str, ...] = tuple(
    sorted(
        info.name
        for info in pkgutil.iter_modules(__path__)
        if not info.ispkg and not info.name.startswith("_")
    )
)

for _module_name in RULE_MODULES:
    import_module(f"{__name__}.{_module_name}")

__all__ = list(RULE_MODULES)
