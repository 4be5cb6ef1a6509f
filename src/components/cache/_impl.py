"""
CacheStore - time-bounded cache of rendered sitemap bodies.

Keys: ``index``, ``lang_index:{iso2}``, ``page:{kind}``, ``page:{kind}:{iso2}``.
Entries live in the generic key-value store under one prefix so ``invalidate_all``
is a single prefix delete.

Concurrent builders of the same key may both build; the last write wins.
Builds are pure, so either body is correct.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Callable
from datetime import datetime, timedelta
from typing import Protocol

from src.domain.entities import LanguageMarker, SitemapCacheEntry
from src.ports.clock import ClockPort
from src.ports.kv import KeyValueStorePort

logger = logging.getLogger(__name__)

CACHE_PREFIX = "sitemap_cache:"
INDEX_KEY = "index"
DEFAULT_TTL_SECONDS = 3600


def lang_index_key(iso2: str) -> str:
    return f"lang_index:{iso2}"


def page_key(kind: str, iso2: str = "") -> str:
    if iso2:
        return f"page:{kind}:{iso2}"
    return f"page:{kind}"


class EnabledLanguagesPort(Protocol):
    def list_enabled(self) -> list[LanguageMarker]:
        ...


def encode_entry(entry: SitemapCacheEntry) -> str:
    return json.dumps(
        {"key": entry.key, "body": entry.body, "expires_at": entry.expires_at.isoformat()}
    )


def decode_entry(raw: str) -> SitemapCacheEntry:
    """Raises ValueError (or KeyError/TypeError) for anything that is not a valid entry."""
    data = json.loads(raw)
    return SitemapCacheEntry(
        key=str(data["key"]),
        body=data["body"] if isinstance(data["body"], str) else str(data["body"]),
        expires_at=datetime.fromisoformat(data["expires_at"]),
    )


class CacheStore:
    def __init__(
        self,
        store: KeyValueStorePort,
        languages: EnabledLanguagesPort,
        clock: ClockPort,
        ttl_seconds: int = DEFAULT_TTL_SECONDS,
    ) -> None:
        self._store = store
        self._languages = languages
        self._clock = clock
        self._ttl = timedelta(seconds=ttl_seconds)

    def get(self, key: str) -> str | None:
        raw = self._store.get(CACHE_PREFIX + key)
        if raw is None:
            return None
        try:
            entry = decode_entry(raw)
        except (ValueError, KeyError, TypeError):
            logger.warning("Corrupt cache entry for %s, rebuilding", key)
            return None
        if entry.key != key or not entry.is_fresh(self._clock.now_utc()):
            return None
        return entry.body

    def put(self, key: str, body: str) -> SitemapCacheEntry:
        entry = SitemapCacheEntry(key=key, body=body, expires_at=self._clock.now_utc() + self._ttl)
        self._store.set(CACHE_PREFIX + key, encode_entry(entry), entry.expires_at)
        return entry

    def get_or_build(self, key: str, build_fn: Callable[[], str]) -> str:
        cached = self.get(key)
        if cached is not None:
            logger.debug("Cache hit: %s", key)
            return cached
        logger.debug("Cache miss: %s", key)
        body = build_fn()
        self.put(key, body)
        return body

    def invalidate(self, key: str) -> None:
        self._store.delete(CACHE_PREFIX + key)

    def invalidate_index(self) -> None:
        self.invalidate(INDEX_KEY)
        for language in self._languages.list_enabled():
            self.invalidate(lang_index_key(language.iso2))

    def invalidate_for_kind(self, kind: str) -> None:
        self.invalidate(page_key(kind))
        for language in self._languages.list_enabled():
            self.invalidate(page_key(kind, language.iso2))
        self.invalidate_index()
        logger.info("Sitemap cache cleared for kind %s", kind)

    def invalidate_all(self) -> None:
        removed = self._store.delete_prefix(CACHE_PREFIX)
        logger.info("Sitemap cache cleared (%d entries)", removed)


def create_cache_store(
    store: KeyValueStorePort,
    languages: EnabledLanguagesPort,
    clock: ClockPort,
    ttl_seconds: int = DEFAULT_TTL_SECONDS,
) -> CacheStore:
    """Create a CacheStore."""
    return CacheStore(store, languages, clock, ttl_seconds)
