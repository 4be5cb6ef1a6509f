"""
Tests for the redirects component.

Invariants:
- First matching rule wins
- Exact rules ignore trailing slashes
- Regex rules are unanchored and substitute captured groups
- Malformed patterns never match and never raise
"""

from __future__ import annotations

import json

import pytest

from src.adapters.kv_redirects import REDIRECTS_KEY, KeyValueRedirectStore
from src.adapters.memory import InMemoryKeyValueStore
from src.components.redirects import (
    AddRedirectInput,
    DeleteRedirectInput,
    ExportRedirectsInput,
    ImportRedirectsInput,
    MatchRedirectInput,
    RedirectConfig,
    RedirectListOutput,
    RedirectMatcher,
    compile_pattern,
    parse_rules,
    run,
    run_add,
    run_delete,
    run_match,
)

# --- Fixtures ---


@pytest.fixture
def kv() -> InMemoryKeyValueStore:
    return InMemoryKeyValueStore()


@pytest.fixture
def store(kv: InMemoryKeyValueStore) -> KeyValueRedirectStore:
    return KeyValueRedirectStore(kv)


@pytest.fixture
def matcher(store: KeyValueRedirectStore) -> RedirectMatcher:
    return RedirectMatcher(store)


def seed(store: KeyValueRedirectStore, *rules: dict) -> None:
    store.save(parse_rules(list(rules)))


# --- Matching ---


class TestExactMatch:
    def test_match_ignores_trailing_slash(
        self, matcher: RedirectMatcher, store: KeyValueRedirectStore
    ) -> None:
        seed(store, {"from": "/old-page", "to": "/new-page"})

        for path in ("/old-page", "/old-page/", "/old-page?utm=x"):
            found = matcher.resolve(path)
            assert found is not None
            assert found.target == "/new-page"
            assert found.status == 301

    def test_rule_with_trailing_slash(
        self, matcher: RedirectMatcher, store: KeyValueRedirectStore
    ) -> None:
        seed(store, {"from": "/docs/", "to": "/help", "type": 302})

        found = matcher.resolve("/docs")
        assert found is not None and found.status == 302

    def test_no_prefix_matching(
        self, matcher: RedirectMatcher, store: KeyValueRedirectStore
    ) -> None:
        seed(store, {"from": "/old", "to": "/new"})

        assert matcher.resolve("/old/child") is None

    def test_root_never_redirects(
        self, matcher: RedirectMatcher, store: KeyValueRedirectStore
    ) -> None:
        seed(store, {"from": "/", "to": "/home"}, {"from": "~.*", "to": "/everything"})

        assert matcher.resolve("/") is None

    def test_first_match_wins(self, matcher: RedirectMatcher, store: KeyValueRedirectStore) -> None:
        seed(
            store,
            {"from": "~^/blog/", "to": "/news/"},
            {"from": "/blog/hello", "to": "/hello"},
        )

        found = matcher.resolve("/blog/hello")

        assert found is not None
        assert found.index == 0
        assert found.target == "/news/hello"


class TestRegexMatch:
    def test_group_substitution(
        self, matcher: RedirectMatcher, store: KeyValueRedirectStore
    ) -> None:
        seed(store, {"from": r"~^/(\d{4})/(\d{2})/(.+)$", "to": "/archive/$1-${2}/\\3"})

        found = matcher.resolve("/2024/05/summer")

        assert found is not None
        assert found.target == "/archive/2024-05/summer"

    def test_unanchored_replaces_matched_portion(
        self, matcher: RedirectMatcher, store: KeyValueRedirectStore
    ) -> None:
        seed(store, {"from": "~/amp/?$", "to": "/"})

        found = matcher.resolve("/article/amp/")

        assert found is not None
        assert found.target == "/article/"

    def test_missing_group_becomes_empty(
        self, matcher: RedirectMatcher, store: KeyValueRedirectStore
    ) -> None:
        seed(store, {"from": "~^/p/(\\d+)", "to": "/post/$1$2"})

        found = matcher.resolve("/p/42")

        assert found is not None and found.target == "/post/42"

    def test_malformed_pattern_is_skipped(
        self, matcher: RedirectMatcher, store: KeyValueRedirectStore
    ) -> None:
        seed(store, {"from": "~^/bad(", "to": "/x"}, {"from": "/bad(", "to": "/fixed"})

        found = matcher.resolve("/bad(")

        assert compile_pattern("^/bad(") is None
        assert found is not None and found.target == "/fixed"


class TestHits:
    def test_handle_counts_hit(
        self, matcher: RedirectMatcher, store: KeyValueRedirectStore
    ) -> None:
        seed(store, {"from": "/a", "to": "/b"}, {"from": "/c", "to": "/d"})

        matcher.handle("/c")
        matcher.handle("/c/")

        assert [r.hits for r in store.load()] == [0, 2]

    def test_resolve_does_not_count(
        self, matcher: RedirectMatcher, store: KeyValueRedirectStore
    ) -> None:
        seed(store, {"from": "/a", "to": "/b"})

        matcher.resolve("/a")

        assert store.load()[0].hits == 0

    def test_invalid_status_falls_back(
        self, matcher: RedirectMatcher, store: KeyValueRedirectStore
    ) -> None:
        seed(store, {"from": "/a", "to": "/b", "type": 307})

        assert store.load()[0].type == 301


# --- Admin ---


class TestAdd:
    def test_add_appends(self, matcher: RedirectMatcher) -> None:
        rule, errors = matcher.add("/one", "/two", "302")

        assert errors == []
        assert rule is not None and rule.type == 302
        assert [r.from_ for r in matcher.rules()] == ["/one"]

    def test_readd_replaces_and_moves_to_end(self, matcher: RedirectMatcher) -> None:
        matcher.add("/a", "/x")
        matcher.add("/b", "/y")

        matcher.add("/a", "/z")

        assert [(r.from_, r.to) for r in matcher.rules()] == [("/b", "/y"), ("/a", "/z")]

    def test_validation(self, matcher: RedirectMatcher) -> None:
        _, errors = matcher.add("", "")
        assert {e.field for e in errors} == {"from", "to"}

        _, errors = matcher.add("~([", "/x")
        assert errors[0].code == "invalid_pattern"

        _, errors = matcher.add("/x", "javascript:alert(1)")
        assert errors[0].code == "invalid_target"

    def test_bad_status_uses_default(self, matcher: RedirectMatcher) -> None:
        rule, _ = matcher.add("/a", "/b", 418)

        assert rule is not None and rule.type == 301

    def test_limit(self, store: KeyValueRedirectStore) -> None:
        matcher = RedirectMatcher(store, RedirectConfig(max_redirects=2))
        matcher.add("/1", "/x")
        matcher.add("/2", "/x")

        _, errors = matcher.add("/3", "/x")

        assert errors[0].code == "limit_reached"

    def test_replace_refused_at_limit(self, store: KeyValueRedirectStore) -> None:
        matcher = RedirectMatcher(store, RedirectConfig(max_redirects=2))
        matcher.add("/1", "/x")
        matcher.add("/2", "/x")

        rule, errors = matcher.add("/1", "/y")

        assert rule is None
        assert errors[0].code == "limit_reached"
        assert [(r.from_, r.to) for r in matcher.rules()] == [("/1", "/x"), ("/2", "/x")]


class TestDelete:
    def test_delete(self, matcher: RedirectMatcher) -> None:
        matcher.add("/a", "/b")

        assert matcher.delete("/a")
        assert not matcher.delete("/a")
        assert matcher.rules() == []


class TestImportExport:
    def test_round_trip_keeps_order_and_hits(
        self, matcher: RedirectMatcher, store: KeyValueRedirectStore
    ) -> None:
        seed(
            store,
            {"from": "/a", "to": "/b", "type": 302, "hits": 4},
            {"from": "~^/x/(.*)", "to": "/y/$1", "type": 301, "hits": 0},
        )
        exported = matcher.export_json()

        store.save([])
        rules, errors = matcher.import_rules(exported)

        assert errors == []
        assert [r.to_dict() for r in rules] == json.loads(exported)
        assert json.loads(exported)[0] == {"from": "/a", "to": "/b", "type": 302, "hits": 4}

    def test_import_replaces_everything(self, matcher: RedirectMatcher) -> None:
        matcher.add("/old", "/gone")

        matcher.import_rules([{"from": "/n", "to": "/m"}, {"to": "/no-source"}])

        assert [r.from_ for r in matcher.rules()] == ["/n"]

    def test_import_rejects_non_list(self, matcher: RedirectMatcher) -> None:
        matcher.add("/keep", "/me")

        _, errors = matcher.import_rules('{"from": "/a"}')
        assert errors[0].code == "invalid_type"

        _, errors = matcher.import_rules("[not json")
        assert errors[0].code == "invalid_json"

        assert [r.from_ for r in matcher.rules()] == ["/keep"]


class TestRename:
    def test_record_rename(self, matcher: RedirectMatcher) -> None:
        rule = matcher.record_rename("/fr/ancien/", "/fr/nouveau/")

        assert rule is not None
        assert rule.to_dict() == {
            "from": "/fr/ancien/",
            "to": "/fr/nouveau/",
            "type": 301,
            "hits": 0,
        }

    def test_existing_source_not_duplicated(self, matcher: RedirectMatcher) -> None:
        matcher.add("/old", "/manual")

        assert matcher.record_rename("/old", "/auto") is None
        assert matcher.rules()[0].to == "/manual"

    def test_same_path_ignored(self, matcher: RedirectMatcher) -> None:
        assert matcher.record_rename("/same", "/same") is None


# --- Storage ---


def test_store_ignores_corrupt_list(
    kv: InMemoryKeyValueStore, store: KeyValueRedirectStore
) -> None:
    kv.set(REDIRECTS_KEY, "{broken")

    assert store.load() == []


# --- Component entry points ---


class TestComponent:
    def test_run_dispatches_by_input(self, store: KeyValueRedirectStore) -> None:
        added = run(AddRedirectInput(source="/a", target="/b"), store=store)
        assert added.success

        listed = run(ExportRedirectsInput(), store=store)
        assert isinstance(listed, RedirectListOutput)
        assert len(listed.rules) == 1

        imported = run(ImportRedirectsInput(payload="[]"), store=store)
        assert imported.success
        assert store.load() == []

    def test_run_delete_not_found(self, store: KeyValueRedirectStore) -> None:
        out = run_delete(DeleteRedirectInput(source="/missing"), store=store)

        assert not out.success
        assert out.errors[0].code == "not_found"

    def test_run_match(self, store: KeyValueRedirectStore) -> None:
        run_add(AddRedirectInput(source="/a", target="/b", status=302), store=store)

        dry = run_match(MatchRedirectInput(path="/a", count_hit=False), store=store)
        hit = run_match(MatchRedirectInput(path="/a"), store=store)
        miss = run_match(MatchRedirectInput(path="/z"), store=store)

        assert (dry.target, dry.status_code) == ("/b", 302)
        assert hit.rule is not None
        assert store.load()[0].hits == 1
        assert miss.target is None

    def test_run_rejects_unknown_input(self, store: KeyValueRedirectStore) -> None:
        with pytest.raises(ValueError):
            run("nope", store=store)  # type: ignore[arg-type]
