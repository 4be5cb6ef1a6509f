"""
Admin edits on catalog entries: per-item overrides, exclusion, bulk priorities.

Only the override fields are persisted. Invalid enumeration values are coerced to
``auto`` instead of rejected.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from src.components.catalog._impl import DERIVED_KINDS, TERM_KINDS, ContentCatalog
from src.components.languages import LanguageService
from src.components.settings import CacheInvalidator, NoOpCacheInvalidator, SitemapSettingsService
from src.domain.entities import coerce_changefreq, coerce_priority
from src.domain.validation import ValidationError
from src.ports.content import ContentStorePort, TaxonomyPort


@dataclass(frozen=True)
class TreeType:
    kind: str
    count: int
    enabled: bool


@dataclass(frozen=True)
class ItemUpdate:
    kind: str
    item_id: int
    priority: Any = None
    changefreq: Any = None
    excluded: bool | None = None


class CatalogAdmin:
    def __init__(
        self,
        catalog: ContentCatalog,
        store: ContentStorePort,
        taxonomy: TaxonomyPort,
        languages: LanguageService,
        settings: SitemapSettingsService,
        cache_invalidator: CacheInvalidator | None = None,
        max_bulk: int = 200,
    ) -> None:
        self._catalog = catalog
        self._store = store
        self._taxonomy = taxonomy
        self._languages = languages
        self._settings = settings
        self._cache_invalidator = cache_invalidator or NoOpCacheInvalidator()
        self._max_bulk = max_bulk

    def tree_types(self, iso2: str = "") -> list[TreeType]:
        counts = self._catalog.lang_counts(iso2)
        enabled = set(self._catalog.sitemap_kinds())
        return [TreeType(kind, counts[kind], kind in enabled) for kind in counts]

    def _check(self, update: ItemUpdate) -> list[ValidationError]:
        if update.item_id <= 0:
            return [ValidationError("id", "invalid_value", "Item id must be positive")]
        if not self._catalog.is_known_kind(update.kind):
            return [ValidationError("type", "unknown_kind", f"Unknown kind '{update.kind}'")]
        return []

    def save_item(self, update: ItemUpdate) -> list[ValidationError]:
        errors = self._check(update)
        if not errors and update.excluded is not None and update.kind in DERIVED_KINDS:
            errors = [
                ValidationError(
                    "excluded", "unsupported", f"Items of kind '{update.kind}' cannot be excluded"
                )
            ]
        errors = errors or self._write_overrides(update)
        if errors:
            return errors

        if update.excluded is not None:
            if not self._settings.set_excluded(update.item_id, update.excluded, update.kind):
                return [
                    ValidationError("excluded", "limit_reached", "Exclusion list is full")
                ]

        self._cache_invalidator.invalidate_for_kind(update.kind)
        return []

    def _write_overrides(self, update: ItemUpdate) -> list[ValidationError]:
        if update.priority is None and update.changefreq is None:
            return []
        if update.kind == "author":
            return [
                ValidationError("type", "unsupported", "Authors do not carry sitemap overrides")
            ]

        priority = coerce_priority(update.priority)
        changefreq = coerce_changefreq(update.changefreq)
        if update.kind in TERM_KINDS:
            saved = self._taxonomy.save_term_overrides(update.item_id, priority, changefreq)
        else:
            saved = self._store.save_overrides(update.item_id, priority, changefreq)
        if not saved:
            return [ValidationError("id", "not_found", f"Item {update.item_id} does not exist")]
        return []

    def save_priorities(self, updates: list[ItemUpdate]) -> tuple[int, list[ValidationError]]:
        """Bulk override save. Returns (saved_count, errors) and keeps going past bad rows."""
        saved = 0
        errors: list[ValidationError] = []
        touched: set[str] = set()
        for update in updates[: self._max_bulk]:
            item_errors = self._check(update) or self._write_overrides(update)
            if item_errors:
                errors.extend(item_errors)
                continue
            saved += 1
            touched.add(update.kind)
        for kind in sorted(touched):
            self._cache_invalidator.invalidate_for_kind(kind)
        return saved, errors

    def save_order(
        self, kind: str, iso2: str, ids: Any
    ) -> tuple[list[int], list[ValidationError]]:
        if not self._catalog.is_known_kind(kind):
            return [], [ValidationError("type", "unknown_kind", f"Unknown kind '{kind}'")]
        return self._settings.save_order(kind, iso2, ids)
