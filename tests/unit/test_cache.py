"""
Tests for CacheStore.
"""

from __future__ import annotations

from datetime import timedelta

import pytest

from src.adapters.clock import FixedClock
from src.adapters.memory import InMemoryKeyValueStore
from src.app_shell.context import ServiceContext
from src.components.cache import (
    CACHE_PREFIX,
    INDEX_KEY,
    CacheStore,
    lang_index_key,
    page_key,
)


@pytest.fixture
def cache(ctx: ServiceContext) -> CacheStore:
    return ctx.cache


class Builder:
    """Counts how many times a body is built."""

    def __init__(self, body: str = "<urlset/>") -> None:
        self.body = body
        self.calls = 0

    def __call__(self) -> str:
        self.calls += 1
        return self.body


def test_keys() -> None:
    assert page_key("post") == "page:post"
    assert page_key("post", "fr") == "page:post:fr"
    assert lang_index_key("en") == "lang_index:en"


class TestGetOrBuild:
    def test_builds_once_while_fresh(self, cache: CacheStore) -> None:
        build = Builder()

        first = cache.get_or_build("page:post:fr", build)
        second = cache.get_or_build("page:post:fr", build)

        assert first == second == "<urlset/>"
        assert build.calls == 1

    def test_rebuilds_after_ttl(self, cache: CacheStore, clock: FixedClock) -> None:
        build = Builder()
        cache.get_or_build("index", build)

        clock.advance(3600)
        cache.get_or_build("index", build)

        assert build.calls == 2

    def test_entry_format(
        self, cache: CacheStore, kv: InMemoryKeyValueStore, clock: FixedClock
    ) -> None:
        entry = cache.put("index", "<sitemapindex/>")

        assert kv.keys() == [CACHE_PREFIX + "index"]
        assert cache.get("index") == "<sitemapindex/>"
        assert entry.expires_at == clock.now_utc() + timedelta(seconds=3600)

    def test_corrupt_entry_is_a_miss(self, cache: CacheStore, kv: InMemoryKeyValueStore) -> None:
        kv.set(CACHE_PREFIX + "index", "{not json")
        build = Builder("<fresh/>")

        assert cache.get("index") is None
        assert cache.get_or_build("index", build) == "<fresh/>"
        assert build.calls == 1

    def test_entry_for_another_key_is_a_miss(
        self, cache: CacheStore, kv: InMemoryKeyValueStore
    ) -> None:
        cache.put("page:post", "<a/>")
        kv.set(CACHE_PREFIX + "page:tag", kv.get(CACHE_PREFIX + "page:post") or "")

        assert cache.get("page:tag") is None


class TestInvalidation:
    def _fill(self, cache: CacheStore) -> None:
        for key in (
            INDEX_KEY,
            lang_index_key("fr"),
            lang_index_key("en"),
            page_key("post"),
            page_key("post", "fr"),
            page_key("post", "en"),
            page_key("page", "fr"),
        ):
            cache.put(key, key)

    def test_invalidate_for_kind(self, cache: CacheStore) -> None:
        self._fill(cache)

        cache.invalidate_for_kind("post")

        for key in ("page:post", "page:post:fr", "page:post:en", "index", "lang_index:fr"):
            assert cache.get(key) is None
        assert cache.get("page:page:fr") == "page:page:fr"

    def test_invalidate_index(self, cache: CacheStore) -> None:
        self._fill(cache)

        cache.invalidate_index()

        assert cache.get(INDEX_KEY) is None
        assert cache.get(lang_index_key("en")) is None
        assert cache.get(page_key("post", "fr")) == "page:post:fr"

    def test_invalidate_all_leaves_other_keys(
        self, cache: CacheStore, kv: InMemoryKeyValueStore
    ) -> None:
        self._fill(cache)
        kv.set("sitemap_settings", "{}")

        cache.invalidate_all()

        assert kv.keys() == ["sitemap_settings"]
