"""
SitemapSettingsService - persisted sitemap settings and per-listing custom order.

Provides settings read/write with validation and fallback defaults. Every
successful write goes through the cache invalidation hook so rendered sitemaps
never outlive the settings they were built from.

Key behaviors:
- GET always returns settings (defaults when missing or unreadable)
- PUT validates fields before persisting
- Lists are clamped to their configured caps rather than rejected
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from typing import Any, Protocol

from pydantic import ValidationError as PydanticValidationError

from src.domain.entities import AUTO, SitemapSettings, coerce_changefreq, coerce_priority
from src.domain.validation import ValidationError
from src.ports.kv import KeyValueStorePort

logger = logging.getLogger(__name__)

SETTINGS_KEY = "sitemap_settings"
ORDER_KEY_PREFIX = "sitemap_order:"
KIND_PATTERN = re.compile(r"^[a-z0-9_-]{1,40}$")


@dataclass(frozen=True)
class SettingsConfig:
    enabled_default: bool = True
    max_excluded: int = 200
    max_types: int = 20
    max_order: int = 500


DEFAULT_CONFIG = SettingsConfig()


# --- Cache Invalidation Hook ---


class CacheInvalidator(Protocol):
    def invalidate_all(self) -> None:
        ...

    def invalidate_for_kind(self, kind: str) -> None:
        ...


class NoOpCacheInvalidator:
    """Default no-op cache invalidator."""

    def invalidate_all(self) -> None:
        pass

    def invalidate_for_kind(self, kind: str) -> None:
        pass


# --- (De)serialization ---


def get_default_settings(config: SettingsConfig = DEFAULT_CONFIG) -> SitemapSettings:
    return SitemapSettings(enabled=config.enabled_default)


def load_settings(raw: str | None, config: SettingsConfig = DEFAULT_CONFIG) -> SitemapSettings:
    if not raw:
        return get_default_settings(config)
    try:
        return SitemapSettings.model_validate_json(raw)
    except PydanticValidationError:
        logger.warning("Stored sitemap settings are malformed, using defaults")
        return get_default_settings(config)


def dump_settings(settings: SitemapSettings) -> str:
    return settings.model_dump_json()


def order_key(kind: str, iso2: str) -> str:
    return f"{ORDER_KEY_PREFIX}{kind}:{iso2}"


def clean_ids(values: Any, limit: int) -> list[int]:
    """Positive unique integer ids, input order kept, truncated to ``limit``."""
    if not isinstance(values, list | tuple):
        return []
    ids: list[int] = []
    for value in values:
        try:
            item_id = int(value)
        except (TypeError, ValueError):
            continue
        if item_id > 0 and item_id not in ids:
            ids.append(item_id)
        if len(ids) >= limit:
            break
    return ids


def _validate_kinds(kinds: Any, limit: int) -> tuple[list[str], list[ValidationError]]:
    if not isinstance(kinds, list | tuple):
        return [], [
            ValidationError("enabled_types", "invalid_type", "enabled_types must be a list")
        ]
    cleaned: list[str] = []
    errors: list[ValidationError] = []
    for kind in kinds:
        if not isinstance(kind, str) or not KIND_PATTERN.match(kind):
            errors.append(
                ValidationError("enabled_types", "invalid_value", f"Invalid content kind: {kind!r}")
            )
            continue
        if kind not in cleaned:
            cleaned.append(kind)
    return cleaned[:limit], errors


def _clean_overrides(values: Any, coerce: Any) -> dict[str, str]:
    if not isinstance(values, dict):
        return {}
    cleaned: dict[str, str] = {}
    for kind, value in values.items():
        if not isinstance(kind, str) or not KIND_PATTERN.match(kind):
            continue
        coerced = coerce(value)
        if coerced != AUTO:
            cleaned[kind] = coerced
    return cleaned


# --- Service ---


class SitemapSettingsService:
    def __init__(
        self,
        store: KeyValueStorePort,
        cache_invalidator: CacheInvalidator | None = None,
        config: SettingsConfig | None = None,
    ) -> None:
        self._store = store
        self._cache_invalidator = cache_invalidator or NoOpCacheInvalidator()
        self._config = config or DEFAULT_CONFIG

    def get(self) -> SitemapSettings:
        return load_settings(self._store.get(SETTINGS_KEY), self._config)

    def update(
        self, updates: dict[str, Any]
    ) -> tuple[SitemapSettings, list[ValidationError]]:
        """
        Apply a partial update.

        Returns (settings, errors). When errors is non-empty nothing was saved
        and the current settings are returned.
        """
        current = self.get()
        data = current.model_dump()
        errors: list[ValidationError] = []

        for key in updates:
            if key not in data:
                errors.append(ValidationError(key, "unknown_field", f"Unknown setting '{key}'"))

        if "enabled" in updates:
            if not isinstance(updates["enabled"], bool):
                errors.append(
                    ValidationError("enabled", "invalid_type", "enabled must be a boolean")
                )
            else:
                data["enabled"] = updates["enabled"]
        if "excluded_ids" in updates:
            data["excluded_ids"] = clean_ids(updates["excluded_ids"], self._config.max_excluded)
        if "enabled_types" in updates:
            kinds, kind_errors = _validate_kinds(updates["enabled_types"], self._config.max_types)
            errors.extend(kind_errors)
            data["enabled_types"] = kinds
        if "type_priorities" in updates:
            data["type_priorities"] = _clean_overrides(updates["type_priorities"], coerce_priority)
        if "type_changefreqs" in updates:
            data["type_changefreqs"] = _clean_overrides(
                updates["type_changefreqs"], coerce_changefreq
            )

        if errors:
            return current, errors

        new_settings = SitemapSettings.model_validate(data)
        self._save(new_settings)
        self._cache_invalidator.invalidate_all()
        return new_settings, []

    def reset_to_defaults(self) -> SitemapSettings:
        defaults = get_default_settings(self._config)
        self._save(defaults)
        self._cache_invalidator.invalidate_all()
        return defaults

    def _save(self, settings: SitemapSettings) -> None:
        self._store.set(SETTINGS_KEY, dump_settings(settings))

    # --- Exclusions ---

    def excluded_ids(self) -> frozenset[int]:
        return frozenset(self.get().excluded_ids)

    def set_excluded(self, item_id: int, excluded: bool, kind: str) -> bool:
        """Toggle one id in the exclusion list. Returns False if the list is full."""
        settings = self.get()
        ids = [i for i in settings.excluded_ids if i != item_id]
        if excluded:
            if len(ids) >= self._config.max_excluded:
                return False
            ids.append(item_id)
        if ids == settings.excluded_ids:
            return True
        self._save(settings.model_copy(update={"excluded_ids": ids}))
        self._cache_invalidator.invalidate_for_kind(kind)
        return True

    def is_kind_enabled(self, kind: str) -> bool:
        enabled = self.get().enabled_types
        return not enabled or kind in enabled

    # --- Custom order ---

    def get_order(self, kind: str, iso2: str) -> list[int]:
        raw = self._store.get(order_key(kind, iso2))
        if not raw:
            return []
        try:
            values = json.loads(raw)
        except json.JSONDecodeError:
            logger.warning("Stored order for %s/%s is malformed, ignoring", kind, iso2 or "all")
            return []
        return clean_ids(values, self._config.max_order)

    def save_order(
        self, kind: str, iso2: str, ids: Any
    ) -> tuple[list[int], list[ValidationError]]:
        if not KIND_PATTERN.match(kind):
            return [], [ValidationError("type", "invalid_value", f"Invalid content kind: {kind!r}")]
        if iso2 and not re.match(r"^[a-z]{2}$", iso2):
            return [], [ValidationError("lang", "invalid_value", f"Invalid language: {iso2!r}")]

        cleaned = clean_ids(ids, self._config.max_order)
        self._store.set(order_key(kind, iso2), json.dumps(cleaned))
        self._cache_invalidator.invalidate_for_kind(kind)
        return cleaned, []


def create_settings_service(
    store: KeyValueStorePort,
    cache_invalidator: CacheInvalidator | None = None,
    config: SettingsConfig | None = None,
) -> SitemapSettingsService:
    """Create a sitemap settings service."""
    return SitemapSettingsService(store, cache_invalidator, config)
