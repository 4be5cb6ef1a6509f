"""
Redirects component port definitions.
"""

from __future__ import annotations

from typing import Protocol

from src.domain.entities import RedirectRule


class RedirectStorePort(Protocol):
    """Persistence for the ordered rule list."""

    def load(self) -> list[RedirectRule]:
        """Rules in match order. Unreadable storage reads as an empty list."""
        ...

    def save(self, rules: list[RedirectRule]) -> None:
        """Replace the stored list."""
        ...
