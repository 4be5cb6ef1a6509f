"""
Language filter expressions handed to the content store.

Posts carry their language through taxonomy markers, every other kind through a
literal per-item field. Both forms must survive to the store unmodified.
"""

from __future__ import annotations

from dataclasses import dataclass

from src.domain.entities import ContentSource, Post


@dataclass(frozen=True)
class MatchAll:
    """No language restriction (an empty language was requested)."""

    def matches(self, source: ContentSource) -> bool:
        return True


@dataclass(frozen=True)
class MatchNothing:
    """A language was requested but no marker could be resolved for it."""

    def matches(self, source: ContentSource) -> bool:
        return False


@dataclass(frozen=True)
class TaxonomyFilter:
    """In any of ``category_ids`` OR tagged with ``tag_id``."""

    category_ids: frozenset[int]
    tag_id: int | None = None

    def matches(self, source: ContentSource) -> bool:
        if not isinstance(source, Post):
            return False
        if source.category_ids & self.category_ids:
            return True
        return self.tag_id is not None and self.tag_id in source.tag_ids


@dataclass(frozen=True)
class FieldFilter:
    """Equality on a per-item field."""

    field: str
    value: str

    def matches(self, source: ContentSource) -> bool:
        return getattr(source, self.field, None) == self.value


LanguageFilter = MatchAll | MatchNothing | TaxonomyFilter | FieldFilter
