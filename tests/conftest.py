"""
Shared fixtures: a small bilingual site held in the in-memory adapters.

Languages: fr (default, "Français") and en ("English").

Categories: 12 "Français" (slug fr) > 13 "Actualités" > 14 "Sport";
20 "English" (slug en); 1 "Uncategorized".
Tags: 9 "FR", 10 "EN", 30 "Recette", 31 "Cooking".

Posts: 101 (cat 13, tag 30), 102 (cat 14), 103 (uncategorized, tag 9) are French;
201 (cat 20, tag 31) is English; 104 is a draft and 105 is noindex.
Pages: 50 (front page), 51, 52 (child of 51) in French; 60 in English; 51 and 60
share a translation group. 70 is an English "product".
"""

from datetime import UTC, datetime, timedelta
from pathlib import Path

import pytest

from src.adapters.clock import FixedClock
from src.adapters.memory import (
    InMemoryContentStore,
    InMemoryKeyValueStore,
    InMemoryLanguageRegistry,
    InMemoryTaxonomy,
)
from src.adapters.sqlite.migrator import SQLiteMigrator
from src.adapters.sqlite.repos import SQLiteContentStore, SQLiteKeyValueStore, SQLiteTaxonomy
from src.app_shell.context import ServiceContext
from src.domain.entities import Author, ImageRef, Page, Post, Term
from src.rules.models import Rules, SiteRules

NOW = datetime(2025, 6, 1, 12, 0, tzinfo=UTC)
BASE_URL = "https://example.com"


def days_ago(days: int) -> datetime:
    return NOW - timedelta(days=days)


def make_languages() -> list[dict]:
    return [
        {"iso2": "fr", "native_name": "Français", "slug": "", "enabled": True, "is_default": True},
        {"iso2": "en", "native_name": "English", "slug": "", "enabled": True, "is_default": False},
    ]


def make_terms() -> list[Term]:
    return [
        Term(1, "category", "Uncategorized", "uncategorized", f"{BASE_URL}/category/misc/"),
        Term(12, "category", "Français", "fr", f"{BASE_URL}/category/fr/"),
        Term(13, "category", "Actualités", "actualites", f"{BASE_URL}/category/fr/news/", 12),
        Term(14, "category", "Sport", "sport", f"{BASE_URL}/category/fr/news/sport/", 13),
        Term(20, "category", "English", "en", f"{BASE_URL}/category/en/"),
        Term(9, "tag", "FR", "fr", f"{BASE_URL}/tag/fr/"),
        Term(10, "tag", "EN", "en", f"{BASE_URL}/tag/en/"),
        Term(30, "tag", "Recette", "recette", f"{BASE_URL}/tag/recette/"),
        Term(31, "tag", "Cooking", "cooking", f"{BASE_URL}/tag/cooking/"),
    ]


def make_authors() -> list[Author]:
    return [
        Author(7, "Alice", f"{BASE_URL}/author/alice/", slug="alice"),
        Author(8, "Bob", f"{BASE_URL}/author/bob/", slug="bob"),
    ]


def make_content() -> list[Page | Post]:
    return [
        Post(
            101,
            "Bonjour",
            f"{BASE_URL}/fr/bonjour/",
            slug="bonjour",
            category_ids=frozenset({13}),
            tag_ids=frozenset({30}),
            modified_at=days_ago(2),
            author_id=7,
            featured_image=ImageRef(f"{BASE_URL}/img/hero.jpg", "Hero"),
            content_html=(
                f'<p><img src="{BASE_URL}/img/a.jpg" alt="A &amp; B">'
                '<img src="data:image/png;base64,AAAA">'
                f'<img src="{BASE_URL}/img/hero.jpg"></p>'
            ),
        ),
        Post(
            102,
            "Match",
            f"{BASE_URL}/fr/match/",
            slug="match",
            category_ids=frozenset({14}),
            modified_at=days_ago(10),
            author_id=7,
        ),
        Post(
            103,
            "Étiquette",
            f"{BASE_URL}/fr/etiquette/",
            slug="etiquette",
            category_ids=frozenset({1}),
            tag_ids=frozenset({9}),
            modified_at=days_ago(40),
            author_id=8,
        ),
        Post(
            104,
            "Brouillon",
            f"{BASE_URL}/fr/brouillon/",
            status="draft",
            category_ids=frozenset({13}),
            modified_at=days_ago(1),
            author_id=7,
        ),
        Post(
            105,
            "Caché",
            f"{BASE_URL}/fr/cache/",
            category_ids=frozenset({13}),
            modified_at=days_ago(1),
            robots_index="noindex",
            author_id=7,
        ),
        Post(
            201,
            "Hello",
            f"{BASE_URL}/en/hello/",
            slug="hello",
            category_ids=frozenset({20}),
            tag_ids=frozenset({31}),
            modified_at=days_ago(1),
            author_id=8,
        ),
        Page(50, "Accueil", f"{BASE_URL}/fr/", language="fr", modified_at=days_ago(3)),
        Page(
            51,
            "Contact",
            f"{BASE_URL}/fr/contact/",
            slug="contact",
            language="fr",
            translation_group="contact",
            modified_at=days_ago(20),
        ),
        Page(
            52,
            "Équipe",
            f"{BASE_URL}/fr/contact/equipe/",
            slug="equipe",
            parent_id=51,
            language="fr",
            modified_at=days_ago(60),
        ),
        Page(
            60,
            "Contact",
            f"{BASE_URL}/en/contact/",
            slug="contact",
            language="en",
            translation_group="contact",
            modified_at=days_ago(5),
        ),
        Page(
            70,
            "Widget",
            f"{BASE_URL}/en/product/widget/",
            kind="product",
            language="en",
            modified_at=days_ago(4),
        ),
    ]


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock(NOW)


@pytest.fixture
def registry() -> InMemoryLanguageRegistry:
    return InMemoryLanguageRegistry(make_languages())


@pytest.fixture
def taxonomy() -> InMemoryTaxonomy:
    return InMemoryTaxonomy(make_terms())


@pytest.fixture
def content_store() -> InMemoryContentStore:
    return InMemoryContentStore(make_content(), make_authors())


@pytest.fixture
def kv(clock: FixedClock) -> InMemoryKeyValueStore:
    return InMemoryKeyValueStore(clock)


@pytest.fixture
def rules() -> Rules:
    return Rules(site=SiteRules(base_url=BASE_URL, front_page_id=50))


@pytest.fixture
def ctx(
    rules: Rules,
    kv: InMemoryKeyValueStore,
    content_store: InMemoryContentStore,
    taxonomy: InMemoryTaxonomy,
    registry: InMemoryLanguageRegistry,
    clock: FixedClock,
) -> ServiceContext:
    """Fully wired services over the in-memory site."""
    return ServiceContext.build(
        rules=rules,
        kv=kv,
        content_store=content_store,
        taxonomy=taxonomy,
        registry=registry,
        clock=clock,
    )


@pytest.fixture
def db_path(tmp_path: Path) -> str:
    """Migrated SQLite database in a temp dir."""
    path = str(tmp_path / "seo.db")
    SQLiteMigrator(path, "migrations").run_migrations()
    return path


@pytest.fixture
def sqlite_ctx(
    db_path: str,
    rules: Rules,
    registry: InMemoryLanguageRegistry,
    clock: FixedClock,
) -> ServiceContext:
    """The same site loaded into SQLite."""
    taxonomy = SQLiteTaxonomy(db_path)
    for term in make_terms():
        taxonomy.save(term)
    store = SQLiteContentStore(db_path)
    for author in make_authors():
        store.save_author(author)
    for item in make_content():
        store.save(item)
    return ServiceContext.build(
        rules=rules,
        kv=SQLiteKeyValueStore(db_path, clock),
        content_store=store,
        taxonomy=taxonomy,
        registry=registry,
        clock=clock,
    )
