"""
ContentCatalog - enumerates sitemap entries per (kind, language).

One filter pipeline serves both the public sitemap and the admin preview tree:

1. published items of the kind
2. noindex exclusion (only an explicit "noindex" override excludes)
3. language filter (taxonomy markers for posts, a field for everything else)
4. explicit exclusion list
5. saved custom order first, remaining items in default order
6. truncate to the limit

Categories, tags and authors are derived through parallel listings that follow
the same contract, so preview counts always equal the rendered entry counts.
"""

from __future__ import annotations

import html
import logging
import re
from collections.abc import Iterable
from dataclasses import dataclass, replace
from datetime import UTC, datetime, timedelta

from src.components.languages import LanguageService
from src.components.settings import SitemapSettingsService
from src.domain.cascade import ValueScope, resolve
from src.domain.entities import (
    AUTO,
    Alternate,
    Author,
    CatalogItem,
    CatalogSource,
    ContentSource,
    ImageRef,
    Page,
    Post,
    SitemapSettings,
    Term,
    coerce_changefreq,
    coerce_priority,
)
from src.domain.filters import MatchNothing, TaxonomyFilter
from src.ports.clock import ClockPort
from src.ports.content import ContentQuery, ContentStorePort, TaxonomyPort

logger = logging.getLogger(__name__)

CORE_KINDS: tuple[str, ...] = ("page", "post", "category", "tag", "author")
TERM_KINDS: tuple[str, ...] = ("category", "tag")
DERIVED_KINDS: tuple[str, ...] = ("category", "tag", "author")

IMG_TAG = re.compile(r"<img\b[^>]*>", re.IGNORECASE)
IMG_SRC = re.compile(r"""\bsrc\s*=\s*["']([^"']+)["']""", re.IGNORECASE)
IMG_ALT = re.compile(r"""\balt\s*=\s*["']([^"']*)["']""", re.IGNORECASE)


@dataclass(frozen=True)
class CatalogConfig:
    post_kind: str = "post"
    front_page_id: int = 0
    max_urls: int = 2000
    max_items: int = 500
    max_images: int = 10
    max_alternates: int = 50
    term_priority: str = "0.3"
    author_priority: str = "0.4"
    derived_changefreq: str = "weekly"


DEFAULT_CONFIG = CatalogConfig()


def apply_custom_order(items: list[CatalogItem], order: list[int]) -> list[CatalogItem]:
    """Items named in ``order`` first (in that order), the rest keep their position."""
    if not order:
        return items
    by_id = {item.id: item for item in items}
    head = [by_id[item_id] for item_id in order if item_id in by_id]
    placed = {item.id for item in head}
    return head + [item for item in items if item.id not in placed]


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


class ContentCatalog:
    def __init__(
        self,
        store: ContentStorePort,
        taxonomy: TaxonomyPort,
        languages: LanguageService,
        settings: SitemapSettingsService,
        clock: ClockPort,
        config: CatalogConfig | None = None,
    ) -> None:
        self._store = store
        self._taxonomy = taxonomy
        self._languages = languages
        self._settings = settings
        self._clock = clock
        self._config = config or DEFAULT_CONFIG

    @property
    def config(self) -> CatalogConfig:
        return self._config

    # --- Kinds ---

    def all_kinds(self) -> list[str]:
        """Core kinds first, then the store's other public kinds alphabetically."""
        extra = sorted({k for k in self._store.list_kinds() if k not in CORE_KINDS})
        return [*CORE_KINDS, *extra]

    def sitemap_kinds(self, settings: SitemapSettings | None = None) -> list[str]:
        settings = settings or self._settings.get()
        enabled = settings.enabled_types
        return [k for k in self.all_kinds() if not enabled or k in enabled]

    def is_known_kind(self, kind: str) -> bool:
        return kind in self.all_kinds()

    # --- Listing ---

    def list(self, kind: str, iso2: str = "", limit: int | None = None) -> list[CatalogItem]:
        limit = min(limit or self._config.max_urls, self._config.max_urls)
        items = self._select(kind, iso2, limit, self._settings.excluded_ids())
        items = apply_custom_order(items, self._settings.get_order(kind, iso2))
        return items[:limit]

    def _select(
        self, kind: str, iso2: str, limit: int, excluded: frozenset[int]
    ) -> list[CatalogItem]:
        if kind == "category":
            return self._categories(iso2, limit)
        if kind == "tag":
            return self._tags(iso2, limit)
        if kind == "author":
            return self._authors(iso2, limit)
        return [self.to_item(s) for s in self._published(kind, iso2, limit, excluded)]

    def _published(
        self,
        kind: str,
        iso2: str,
        limit: int,
        excluded: frozenset[int] = frozenset(),
    ) -> list[ContentSource]:
        language = self._languages.tax_filter(iso2, kind)
        if isinstance(language, MatchNothing):
            return []
        query = ContentQuery(kind=kind, limit=limit, language=language, exclude_ids=excluded)
        return self._store.list_published(query)

    def _categories(self, iso2: str, limit: int) -> list[CatalogItem]:
        if iso2:
            ids = self._languages.listing_category_ids(iso2)
            if not ids:
                return []
            terms = self._taxonomy.list_terms("category", limit, include=ids)
        else:
            terms = self._taxonomy.list_terms("category", limit, top_level_only=True)
        return [self.to_item(t) for t in terms]

    def _tags(self, iso2: str, limit: int) -> list[CatalogItem]:
        if not iso2:
            return [self.to_item(t) for t in self._taxonomy.list_terms("tag", limit)]

        tag_id = self._languages.markers_for(iso2).tag_id
        if tag_id is None:
            return []
        # Only posts carrying the language tag contribute their other tags
        query = ContentQuery(
            kind=self._config.post_kind,
            limit=self._config.max_urls,
            language=TaxonomyFilter(category_ids=frozenset(), tag_id=tag_id),
        )
        ids = {tag_id}
        posts = self._store.list_published(query)
        for post in posts:
            if isinstance(post, Post):
                ids.update(post.tag_ids)
        terms = self._taxonomy.list_terms("tag", limit, include=frozenset(ids))
        return [self.to_item(t) for t in terms]

    def _authors(self, iso2: str, limit: int) -> list[CatalogItem]:
        posts = self._published(self._config.post_kind, iso2, self._config.max_urls)
        latest: dict[int, datetime | None] = {}
        for post in posts:
            if post.author_id > 0 and post.author_id not in latest:
                latest[post.author_id] = post.modified_at

        items: list[CatalogItem] = []
        for author_id, modified in latest.items():
            author = self._store.get_author(author_id)
            if author is None:
                continue
            if iso2:
                author = replace(author, url=self._language_url(author.url, iso2))
            items.append(self.to_item(author, lastmod=modified))
            if len(items) >= limit:
                break
        return items

    def _language_url(self, url: str, iso2: str) -> str:
        """Insert the /{iso2}/ segment after the host unless already present."""
        match = re.match(r"^(https?://[^/]+)(/.*)?$", url)
        if match is None:
            return url
        host, path = match.group(1), match.group(2) or "/"
        if path == f"/{iso2}" or path.startswith(f"/{iso2}/"):
            return url
        return f"{host}/{iso2}{path}"

    def to_item(
        self,
        source: CatalogSource,
        excluded: bool = False,
        lastmod: datetime | None = None,
    ) -> CatalogItem:
        if isinstance(source, Term):
            return CatalogItem(
                id=source.id,
                kind="term",
                content_type=source.taxonomy,
                title=source.name,
                url=source.url,
                edit_url=source.edit_url,
                priority=coerce_priority(source.priority),
                changefreq=coerce_changefreq(source.changefreq),
                source=source,
            )
        if isinstance(source, Author):
            return CatalogItem(
                id=source.id,
                kind="author",
                content_type="author",
                title=source.display_name,
                url=source.url,
                edit_url=source.edit_url,
                priority=AUTO,
                changefreq=AUTO,
                lastmod=lastmod,
                source=source,
            )
        return CatalogItem(
            id=source.id,
            kind="post" if isinstance(source, Post) else "page",
            content_type=source.kind,
            title=source.title,
            url=source.url,
            edit_url=source.edit_url,
            priority=coerce_priority(source.priority),
            changefreq=coerce_changefreq(source.changefreq),
            excluded=excluded,
            lastmod=source.modified_at,
            source=source,
        )

    # --- Priority / changefreq ---

    def _auto_priority(self, item: CatalogItem) -> str:
        source = item.source
        if isinstance(source, Author):
            return self._config.author_priority
        if isinstance(source, Term):
            return self._config.term_priority
        if self._config.front_page_id and item.id == self._config.front_page_id:
            return "1.0"
        if isinstance(source, Page) and source.kind == "page" and source.parent_id == 0:
            return "0.8"
        if isinstance(source, Post):
            return "0.6"
        return "0.5"

    def _auto_changefreq(self, item: CatalogItem) -> str:
        if isinstance(item.source, Term | Author):
            return self._config.derived_changefreq
        if item.lastmod is None:
            return "monthly"
        age = self._clock.now_utc() - _as_utc(item.lastmod)
        if age < timedelta(days=7):
            return "daily"
        if age < timedelta(days=30):
            return "weekly"
        return "monthly"

    def priority(self, item: CatalogItem, settings: SitemapSettings | None = None) -> str:
        settings = settings or self._settings.get()
        scope = ValueScope(
            item={"priority": coerce_priority(item.priority)},
            global_={"priority": settings.type_priorities.get(item.content_type)},
            defaults={"priority": self._auto_priority(item)},
        )
        return resolve(scope, "priority", "0.5")

    def changefreq(self, item: CatalogItem, settings: SitemapSettings | None = None) -> str:
        settings = settings or self._settings.get()
        scope = ValueScope(
            item={"changefreq": coerce_changefreq(item.changefreq)},
            global_={"changefreq": settings.type_changefreqs.get(item.content_type)},
            defaults={"changefreq": self._auto_changefreq(item)},
        )
        return resolve(scope, "changefreq", "monthly")

    # --- Annotations ---

    def image_entries(self, item: CatalogItem) -> list[ImageRef]:
        source = item.source
        if not isinstance(source, Page | Post):
            return []

        images: list[ImageRef] = []
        seen: set[str] = set()

        def add(image: ImageRef) -> None:
            if image.url and image.url not in seen and len(images) < self._config.max_images:
                seen.add(image.url)
                images.append(image)

        if source.featured_image is not None:
            add(source.featured_image)

        for tag in IMG_TAG.findall(source.content_html or ""):
            src = IMG_SRC.search(tag)
            if src is None:
                continue
            url = html.unescape(src.group(1)).strip()
            if url.lower().startswith("data:"):
                continue
            alt = IMG_ALT.search(tag)
            add(ImageRef(url=url, title=html.unescape(alt.group(1)) if alt else ""))
            if len(images) >= self._config.max_images:
                break
        return images

    def hreflang_entries(self, item: CatalogItem) -> list[Alternate]:
        source = item.source
        if not isinstance(source, Page | Post) or not source.translation_group:
            return []
        siblings = self._store.list_translation_group(
            source.kind, source.translation_group, self._config.max_alternates
        )
        alternates: list[Alternate] = []
        for sibling in siblings:
            if sibling.language:
                alternates.append(Alternate(hreflang=sibling.language, href=sibling.url))
        return alternates[: self._config.max_alternates]

    # --- Lastmod ---

    def last_modified(self, kind: str, iso2: str = "") -> datetime | None:
        if kind == "category":
            return None
        if kind in ("tag", "author"):
            kind = self._config.post_kind
        sources = self._published(kind, iso2, 1)
        return sources[0].modified_at if sources else None

    def newest(self, values: Iterable[datetime | None]) -> datetime | None:
        dates = [_as_utc(v) for v in values if v is not None]
        return max(dates) if dates else None

    # --- Admin preview ---

    def preview(self, kind: str, iso2: str = "") -> list[CatalogItem]:
        """``list`` output plus the excluded items, flagged, so they can be re-included."""
        limit = self._config.max_items
        items = self.list(kind, iso2, limit)
        excluded = self._settings.excluded_ids()
        if kind in DERIVED_KINDS or not excluded:
            return items

        hidden = [
            self.to_item(source, excluded=True)
            for source in self._published(kind, iso2, limit)
            if source.id in excluded
        ]
        return items + hidden

    def lang_counts(self, iso2: str = "") -> dict[str, int]:
        limit = self._config.max_items
        return {kind: len(self.list(kind, iso2, limit)) for kind in self.all_kinds()}


def create_content_catalog(
    store: ContentStorePort,
    taxonomy: TaxonomyPort,
    languages: LanguageService,
    settings: SitemapSettingsService,
    clock: ClockPort,
    config: CatalogConfig | None = None,
) -> ContentCatalog:
    """Create a ContentCatalog."""
    return ContentCatalog(store, taxonomy, languages, settings, clock, config)
