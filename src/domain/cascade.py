"""
Three-tier value cascade: item override, then global setting, then built-in default.

Every per-item field with an admin override (priority, changefreq, ...) goes through
``resolve`` so the precedence rule lives in one place.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from src.domain.entities import AUTO

EMPTY_VALUES: frozenset[Any] = frozenset({None, "", AUTO})


@dataclass(frozen=True)
class ValueScope:
    item: Mapping[str, Any] = field(default_factory=dict)
    global_: Mapping[str, Any] = field(default_factory=dict)
    defaults: Mapping[str, Any] = field(default_factory=dict)

    def tiers(self) -> tuple[Mapping[str, Any], ...]:
        return (self.item, self.global_, self.defaults)


def is_empty(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip() in EMPTY_VALUES
    return value is None


def resolve(scope: ValueScope, key: str, fallback: Any = None) -> Any:
    """Return the first non-empty value for ``key`` across the scope's tiers."""
    for tier in scope.tiers():
        value = tier.get(key)
        if not is_empty(value):
            return value
    return fallback
