from __future__ import annotations

from datetime import datetime
from typing import Any, Protocol


class KeyValueStorePort(Protocol):
    """Generic persistence for cache entries and settings."""

    def get(self, key: str) -> str | None:
        """Stored value, or None when missing or expired."""
        ...

    def set(self, key: str, value: str, expires_at: datetime | None = None) -> None:
        ...

    def delete(self, key: str) -> None:
        ...

    def delete_prefix(self, prefix: str) -> int:
        """Delete every key starting with ``prefix``; returns the count removed."""
        ...


class LanguageRegistryPort(Protocol):
    def load(self) -> list[dict[str, Any]]:
        ...

    def save(self, entries: list[dict[str, Any]]) -> None:
        ...
