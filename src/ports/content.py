from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

from src.domain.entities import Author, ContentSource, TaxonomyName, Term
from src.domain.filters import LanguageFilter, MatchAll


@dataclass(frozen=True)
class ContentQuery:
    """Published items of ``kind`` matching ``language``, newest modification first."""

    kind: str
    limit: int
    language: LanguageFilter = MatchAll()
    exclude_noindex: bool = True
    exclude_ids: frozenset[int] = frozenset()


class ContentStorePort(Protocol):
    def list_published(self, query: ContentQuery) -> list[ContentSource]:
        ...

    def get(self, item_id: int) -> ContentSource | None:
        ...

    def list_translation_group(self, kind: str, group: str, limit: int) -> list[ContentSource]:
        """Published items of ``kind`` sharing a translation group."""
        ...

    def list_kinds(self) -> list[str]:
        """Public content kinds present in the store."""
        ...

    def get_author(self, author_id: int) -> Author | None:
        ...

    def save_overrides(self, item_id: int, priority: str, changefreq: str) -> bool:
        """Persist sitemap overrides on the item. False if the item does not exist."""
        ...


class TaxonomyPort(Protocol):
    def get_term(self, term_id: int) -> Term | None:
        ...

    def term_by_slug(self, taxonomy: TaxonomyName, slug: str) -> Term | None:
        ...

    def term_by_name(self, taxonomy: TaxonomyName, name: str) -> Term | None:
        ...

    def descendants_of(self, taxonomy: TaxonomyName, term_id: int, limit: int) -> list[int]:
        ...

    def list_terms(
        self,
        taxonomy: TaxonomyName,
        limit: int,
        include: frozenset[int] | None = None,
        top_level_only: bool = False,
    ) -> list[Term]:
        """Terms ordered by name."""
        ...

    def save_term_overrides(self, term_id: int, priority: str, changefreq: str) -> bool:
        ...
