"""
LanguageService - resolves site languages and the markers that identify them.

Languages come from a registry of ``{iso2, native_name, slug, enabled, is_default}``
rows. Posts are assigned to a language through a category tree and/or a tag whose
slug or name matches the language; every other content kind stores the iso2 code in
a plain field. ``tax_filter`` hands the right expression to the content store for
each case.

Key behaviors:
- Default language is always listed first
- Empty or unreadable registry yields a single synthetic default language
- Unresolvable markers produce a select-nothing filter, never "all languages"
"""

from __future__ import annotations

import logging
import re
import unicodedata
from dataclasses import dataclass, field
from typing import Any, Protocol

from pydantic import ValidationError as PydanticValidationError

from src.domain.entities import LanguageEntry, LanguageMarker, LanguageMarkers, TaxonomyName, Term
from src.domain.filters import FieldFilter, LanguageFilter, MatchAll, MatchNothing, TaxonomyFilter
from src.domain.validation import ValidationError
from src.ports.content import TaxonomyPort
from src.ports.kv import LanguageRegistryPort

logger = logging.getLogger(__name__)

ISO2_PATTERN = re.compile(r"^[a-z]{2}$")


# --- Configuration ---


@dataclass(frozen=True)
class LanguageConfig:
    post_kind: str = "post"
    language_field: str = "language"
    uncategorized_slug: str = "uncategorized"
    max_languages: int = 50
    max_descendants: int = 100
    fallback: LanguageMarker = field(
        default_factory=lambda: LanguageMarker(
            iso2="en", native_name="English", slug="english", is_default=True
        )
    )


DEFAULT_CONFIG = LanguageConfig()


# --- Helpers ---


def slugify(text: str) -> str:
    """ASCII-folded, lowercased, hyphen-separated slug."""
    folded = unicodedata.normalize("NFKD", text).encode("ascii", "ignore").decode("ascii")
    slug = re.sub(r"[^a-z0-9]+", "-", folded.lower())
    return slug.strip("-")


def _ucfirst(text: str) -> str:
    return text[:1].upper() + text[1:]


def _unique(values: list[str]) -> list[str]:
    seen: list[str] = []
    for value in values:
        if value and value not in seen:
            seen.append(value)
    return seen


def _unique_slug(base: str, iso2: str, used: set[str]) -> str:
    if base not in used:
        return base
    candidate = f"{base}-{iso2}"
    counter = 2
    while candidate in used:
        candidate = f"{base}-{counter}"
        counter += 1
    return candidate


# --- Service ---


class LanguageService:
    """Read side of the language registry plus marker resolution."""

    def __init__(
        self,
        registry: LanguageRegistryPort,
        taxonomy: TaxonomyPort,
        config: LanguageConfig | None = None,
    ) -> None:
        self._registry = registry
        self._taxonomy = taxonomy
        self._config = config or DEFAULT_CONFIG

    @property
    def config(self) -> LanguageConfig:
        return self._config

    def list_all(self) -> list[LanguageEntry]:
        """Every valid registry row, enabled or not, in stored order."""
        entries: list[LanguageEntry] = []
        seen: set[str] = set()
        for raw in self._registry.load():
            try:
                entry = LanguageEntry.model_validate(raw)
            except PydanticValidationError:
                logger.warning("Skipping malformed language entry: %r", raw)
                continue
            if entry.iso2 in seen:
                logger.warning("Skipping duplicate language entry: %s", entry.iso2)
                continue
            seen.add(entry.iso2)
            entries.append(entry)
            if len(entries) >= self._config.max_languages:
                break
        return entries

    def list_enabled(self) -> list[LanguageMarker]:
        entries = [e for e in self.list_all() if e.enabled]
        if not entries:
            return [self._config.fallback]

        default_iso2 = next((e.iso2 for e in entries if e.is_default), entries[0].iso2)
        used: set[str] = set()
        markers: list[LanguageMarker] = []

        for index, entry in enumerate(entries, start=1):
            native = entry.native_name.strip() or entry.iso2
            base = slugify(entry.slug) or slugify(native) or entry.iso2 or f"language-{index}"
            slug = _unique_slug(base, entry.iso2, used)
            used.add(slug)
            markers.append(
                LanguageMarker(
                    iso2=entry.iso2,
                    native_name=native,
                    slug=slug,
                    is_default=entry.iso2 == default_iso2,
                    enabled=True,
                )
            )

        markers.sort(key=lambda m: not m.is_default)
        return markers

    def default_language(self) -> LanguageMarker:
        return self.list_enabled()[0]

    def get(self, iso2: str) -> LanguageMarker | None:
        for marker in self.list_enabled():
            if marker.iso2 == iso2:
                return marker
        return None

    def slug_map(self) -> dict[str, str]:
        """Language slug -> iso2 for every enabled language."""
        return {m.slug: m.iso2 for m in self.list_enabled()}

    # --- Markers ---

    def _find_term(
        self, taxonomy: TaxonomyName, slugs: list[str], names: list[str]
    ) -> Term | None:
        for slug in slugs:
            term = self._taxonomy.term_by_slug(taxonomy, slug)
            if term is not None:
                return term
        for name in names:
            term = self._taxonomy.term_by_name(taxonomy, name)
            if term is not None:
                return term
        return None

    def markers_for(self, iso2: str) -> LanguageMarkers:
        iso2 = iso2.strip().lower()
        if not iso2:
            return LanguageMarkers()

        language = self.get(iso2)
        native = language.native_name if language else iso2
        slugs = _unique([iso2, slugify(native)])

        category = self._find_term(
            "category", slugs, _unique([native, iso2.upper(), _ucfirst(iso2)])
        )
        category_ids: frozenset[int] = frozenset()
        if category is not None:
            descendants = self._taxonomy.descendants_of(
                "category", category.id, self._config.max_descendants
            )
            category_ids = frozenset([category.id, *descendants])

        tag = self._find_term(
            "tag", slugs, _unique([iso2.upper(), _ucfirst(iso2), iso2, native])
        )
        return LanguageMarkers(category_ids=category_ids, tag_id=tag.id if tag else None)

    def uncategorized_id(self) -> int | None:
        term = self._taxonomy.term_by_slug("category", self._config.uncategorized_slug)
        return term.id if term else None

    def listing_category_ids(self, iso2: str) -> frozenset[int]:
        """Language category ids usable for category listings (sentinel removed)."""
        ids = self.markers_for(iso2).category_ids
        sentinel = self.uncategorized_id()
        if sentinel is None:
            return ids
        return ids - {sentinel}

    def tax_filter(self, iso2: str, kind: str) -> LanguageFilter:
        if not iso2:
            return MatchAll()
        if kind == self._config.post_kind:
            markers = self.markers_for(iso2)
            if markers.is_empty:
                return MatchNothing()
            return TaxonomyFilter(category_ids=markers.category_ids, tag_id=markers.tag_id)
        return FieldFilter(field=self._config.language_field, value=iso2)


# --- Admin ---


class LanguagesChangedHook(Protocol):
    def invalidate_all(self) -> None:
        ...


class LanguageAdmin:
    """Registry edits. Every successful write drops all sitemap caches."""

    def __init__(
        self,
        registry: LanguageRegistryPort,
        languages: LanguageService,
        invalidator: LanguagesChangedHook | None = None,
    ) -> None:
        self._registry = registry
        self._languages = languages
        self._invalidator = invalidator

    def _save(self, entries: list[LanguageEntry]) -> None:
        self._registry.save([e.model_dump() for e in entries])
        if self._invalidator is not None:
            self._invalidator.invalidate_all()

    def _find(self, entries: list[LanguageEntry], iso2: str) -> LanguageEntry | None:
        return next((e for e in entries if e.iso2 == iso2), None)

    def _not_found(self, iso2: str) -> list[ValidationError]:
        return [ValidationError("iso2", "not_found", f"Language '{iso2}' does not exist")]

    def add(
        self, iso2: str, native_name: str, slug: str = "", enabled: bool = True
    ) -> tuple[LanguageEntry | None, list[ValidationError]]:
        iso2 = iso2.strip().lower()
        errors: list[ValidationError] = []
        if not ISO2_PATTERN.match(iso2):
            errors.append(
                ValidationError("iso2", "invalid_iso2", "Language code must be two letters")
            )
        if not native_name.strip():
            errors.append(
                ValidationError("native_name", "required", "Native name is required")
            )
        if errors:
            return None, errors

        entries = self._languages.list_all()
        if self._find(entries, iso2) is not None:
            return None, [
                ValidationError("iso2", "duplicate", f"Language '{iso2}' already exists")
            ]
        if len(entries) >= self._languages.config.max_languages:
            return None, [
                ValidationError("iso2", "limit_reached", "Maximum number of languages reached")
            ]

        entry = LanguageEntry(
            iso2=iso2,
            native_name=native_name.strip(),
            slug=slugify(slug),
            enabled=enabled,
            is_default=not entries,
        )
        entries.append(entry)
        self._save(entries)
        return entry, []

    def update(
        self, iso2: str, native_name: str | None = None, slug: str | None = None
    ) -> tuple[LanguageEntry | None, list[ValidationError]]:
        entries = self._languages.list_all()
        entry = self._find(entries, iso2)
        if entry is None:
            return None, self._not_found(iso2)

        changes: dict[str, Any] = {}
        if native_name is not None:
            if not native_name.strip():
                return None, [
                    ValidationError("native_name", "required", "Native name is required")
                ]
            changes["native_name"] = native_name.strip()
        if slug is not None:
            changes["slug"] = slugify(slug)

        updated = entry.model_copy(update=changes)
        entries = [updated if e.iso2 == iso2 else e for e in entries]
        self._save(entries)
        return updated, []

    def remove(self, iso2: str) -> list[ValidationError]:
        entries = self._languages.list_all()
        entry = self._find(entries, iso2)
        if entry is None:
            return self._not_found(iso2)
        if entry.is_default:
            return [
                ValidationError("iso2", "is_default", "The default language cannot be removed")
            ]
        self._save([e for e in entries if e.iso2 != iso2])
        return []

    def set_default(self, iso2: str) -> list[ValidationError]:
        entries = self._languages.list_all()
        entry = self._find(entries, iso2)
        if entry is None:
            return self._not_found(iso2)
        if not entry.enabled:
            return [
                ValidationError("iso2", "disabled", "A disabled language cannot be the default")
            ]
        self._save([e.model_copy(update={"is_default": e.iso2 == iso2}) for e in entries])
        return []

    def set_enabled(self, iso2: str, enabled: bool) -> list[ValidationError]:
        entries = self._languages.list_all()
        entry = self._find(entries, iso2)
        if entry is None:
            return self._not_found(iso2)
        if entry.is_default and not enabled:
            return [
                ValidationError("iso2", "is_default", "The default language cannot be disabled")
            ]
        self._save(
            [e.model_copy(update={"enabled": enabled}) if e.iso2 == iso2 else e for e in entries]
        )
        return []


def create_language_service(
    registry: LanguageRegistryPort,
    taxonomy: TaxonomyPort,
    config: LanguageConfig | None = None,
) -> LanguageService:
    """Create a LanguageService."""
    return LanguageService(registry=registry, taxonomy=taxonomy, config=config)
