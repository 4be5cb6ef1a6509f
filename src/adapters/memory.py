"""
In-memory adapters for the content store, taxonomy, key-value store and language
registry. Same contracts as the SQLite adapters; used for embedding and tests.
"""

from __future__ import annotations

import copy
from collections.abc import Iterable
from dataclasses import replace
from datetime import UTC, datetime
from typing import Any

from src.adapters.clock import SystemClock
from src.domain.entities import (
    NOINDEX,
    PUBLISHED,
    Author,
    ContentSource,
    TaxonomyName,
    Term,
)
from src.ports.clock import ClockPort
from src.ports.content import ContentQuery

_EPOCH = datetime.min.replace(tzinfo=UTC)


def _sort_key(source: ContentSource) -> tuple[datetime, int]:
    modified = source.modified_at
    if modified is None:
        return (_EPOCH, source.id)
    if modified.tzinfo is None:
        modified = modified.replace(tzinfo=UTC)
    return (modified, source.id)


class InMemoryContentStore:
    def __init__(
        self,
        items: Iterable[ContentSource] = (),
        authors: Iterable[Author] = (),
    ) -> None:
        self._items: dict[int, ContentSource] = {item.id: item for item in items}
        self._authors: dict[int, Author] = {author.id: author for author in authors}

    def add(self, item: ContentSource) -> ContentSource:
        self._items[item.id] = item
        return item

    def add_author(self, author: Author) -> Author:
        self._authors[author.id] = author
        return author

    def remove(self, item_id: int) -> None:
        self._items.pop(item_id, None)

    def list_published(self, query: ContentQuery) -> list[ContentSource]:
        results = [
            item
            for item in self._items.values()
            if item.kind == query.kind
            and item.status == PUBLISHED
            and not (query.exclude_noindex and item.robots_index == NOINDEX)
            and item.id not in query.exclude_ids
            and query.language.matches(item)
        ]
        results.sort(key=_sort_key, reverse=True)
        return results[: query.limit]

    def get(self, item_id: int) -> ContentSource | None:
        return self._items.get(item_id)

    def list_translation_group(self, kind: str, group: str, limit: int) -> list[ContentSource]:
        siblings = [
            item
            for item in self._items.values()
            if item.kind == kind and item.status == PUBLISHED and item.translation_group == group
        ]
        siblings.sort(key=lambda item: item.id)
        return siblings[:limit]

    def list_kinds(self) -> list[str]:
        return sorted({item.kind for item in self._items.values()})

    def get_author(self, author_id: int) -> Author | None:
        return self._authors.get(author_id)

    def save_overrides(self, item_id: int, priority: str, changefreq: str) -> bool:
        item = self._items.get(item_id)
        if item is None:
            return False
        self._items[item_id] = replace(item, priority=priority, changefreq=changefreq)
        return True


class InMemoryTaxonomy:
    def __init__(self, terms: Iterable[Term] = ()) -> None:
        self._terms: dict[int, Term] = {term.id: term for term in terms}

    def add(self, term: Term) -> Term:
        self._terms[term.id] = term
        return term

    def _in(self, taxonomy: TaxonomyName) -> list[Term]:
        return sorted(
            (t for t in self._terms.values() if t.taxonomy == taxonomy), key=lambda t: t.id
        )

    def get_term(self, term_id: int) -> Term | None:
        return self._terms.get(term_id)

    def term_by_slug(self, taxonomy: TaxonomyName, slug: str) -> Term | None:
        return next((t for t in self._in(taxonomy) if t.slug == slug), None)

    def term_by_name(self, taxonomy: TaxonomyName, name: str) -> Term | None:
        return next((t for t in self._in(taxonomy) if t.name == name), None)

    def descendants_of(self, taxonomy: TaxonomyName, term_id: int, limit: int) -> list[int]:
        terms = self._in(taxonomy)
        found: list[int] = []
        frontier = [term_id]
        while frontier and len(found) < limit:
            parent = frontier.pop(0)
            for term in terms:
                if term.parent_id == parent and term.id not in found and term.id != term_id:
                    found.append(term.id)
                    frontier.append(term.id)
        return found[:limit]

    def list_terms(
        self,
        taxonomy: TaxonomyName,
        limit: int,
        include: frozenset[int] | None = None,
        top_level_only: bool = False,
    ) -> list[Term]:
        terms = [
            t
            for t in self._in(taxonomy)
            if (include is None or t.id in include) and (not top_level_only or t.parent_id == 0)
        ]
        terms.sort(key=lambda t: (t.name.lower(), t.id))
        return terms[:limit]

    def save_term_overrides(self, term_id: int, priority: str, changefreq: str) -> bool:
        term = self._terms.get(term_id)
        if term is None:
            return False
        self._terms[term_id] = replace(term, priority=priority, changefreq=changefreq)
        return True


class InMemoryKeyValueStore:
    def __init__(self, clock: ClockPort | None = None) -> None:
        self._clock = clock or SystemClock()
        self._data: dict[str, tuple[str, datetime | None]] = {}

    def get(self, key: str) -> str | None:
        stored = self._data.get(key)
        if stored is None:
            return None
        value, expires_at = stored
        if expires_at is not None and self._clock.now_utc() >= expires_at:
            del self._data[key]
            return None
        return value

    def set(self, key: str, value: str, expires_at: datetime | None = None) -> None:
        self._data[key] = (value, expires_at)

    def delete(self, key: str) -> None:
        self._data.pop(key, None)

    def delete_prefix(self, prefix: str) -> int:
        keys = [key for key in self._data if key.startswith(prefix)]
        for key in keys:
            del self._data[key]
        return len(keys)

    def keys(self) -> list[str]:
        return sorted(self._data)


class InMemoryLanguageRegistry:
    def __init__(self, entries: Iterable[dict[str, Any]] = ()) -> None:
        self._entries = [dict(entry) for entry in entries]

    def load(self) -> list[dict[str, Any]]:
        return copy.deepcopy(self._entries)

    def save(self, entries: list[dict[str, Any]]) -> None:
        self._entries = copy.deepcopy(entries)
