"""
Dispatcher - maps request paths onto sitemap renders and redirects.

Handling order:
1. legacy sitemap paths -> 301 to the sitemap index
2. stylesheet, index, language index and per-kind pages -> 200 / 404
3. everything else -> redirect rules, which may answer 301/302 or fall through

Trailing-slash canonicalization must be off in the host framework: a redirect
from ``/sitemap_index.xml`` to ``/sitemap_index.xml/`` would never resolve.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Collection, Mapping

from src.components.catalog import ContentCatalog
from src.components.languages import LanguageService
from src.components.redirects import RedirectMatcher, request_path
from src.components.settings import SitemapSettingsService
from src.components.sitemap import INDEX_PATH, STYLESHEET_PATH, SitemapService

from .models import (
    DispatchResult,
    DispatchState,
    IndexRequest,
    LanguageIndexRequest,
    LegacyRequest,
    PageRequest,
    SitemapRequest,
    StylesheetRequest,
    Unmatched,
)

logger = logging.getLogger(__name__)

LEGACY_PATHS = frozenset({"/sitemap", "/sitemap.xml", "/wp-sitemap", "/wp-sitemap.xml"})
PREFIXED_PAGE = re.compile(r"^/sitemap-([a-z0-9_-]+)-([a-z]{2})\.xml$")
PREFIXED_KIND = re.compile(r"^/sitemap-([a-z0-9_-]+)\.xml$")
KIND_PAGE = re.compile(r"^/([a-z0-9_-]+)-([a-z]{2})\.xml$")
SLUG_INDEX = re.compile(r"^/([a-z0-9-]+)\.xml$")

XML_MEDIA_TYPE = "text/xml"
XSL_MEDIA_TYPE = "text/xsl"
CACHE_CONTROL = "public, max-age=3600"


def parse_request(
    path: str,
    language_slugs: Mapping[str, str],
    kinds: Collection[str],
) -> SitemapRequest:
    """Classify a request path. ``language_slugs`` maps slug -> iso2.

    ``/sitemap-{kind}.xml`` carries no language and lists the kind unfiltered.
    """
    if "/" + path.strip("/") in LEGACY_PATHS:
        return LegacyRequest(path=path)
    if path == STYLESHEET_PATH:
        return StylesheetRequest()
    if path == INDEX_PATH:
        return IndexRequest()

    prefixed = PREFIXED_PAGE.match(path)
    if prefixed:
        return PageRequest(kind=prefixed.group(1), iso2=prefixed.group(2))
    prefixed = PREFIXED_KIND.match(path)
    if prefixed:
        return PageRequest(kind=prefixed.group(1))

    slug = SLUG_INDEX.match(path)
    if slug and slug.group(1) in language_slugs:
        return LanguageIndexRequest(iso2=language_slugs[slug.group(1)])

    page = KIND_PAGE.match(path)
    if page and page.group(1) in kinds:
        return PageRequest(kind=page.group(1), iso2=page.group(2))

    return Unmatched(path=path)


class Dispatcher:
    def __init__(
        self,
        sitemaps: SitemapService,
        languages: LanguageService,
        catalog: ContentCatalog,
        settings: SitemapSettingsService,
        redirects: RedirectMatcher,
    ) -> None:
        self._sitemaps = sitemaps
        self._languages = languages
        self._catalog = catalog
        self._settings = settings
        self._redirects = redirects

    def parse(self, raw_path: str) -> SitemapRequest:
        path = request_path(raw_path)
        if not path.endswith(".xml"):
            return parse_request(path, {}, ())
        return parse_request(
            path,
            self._languages.slug_map(),
            self._catalog.all_kinds(),
        )

    def dispatch(self, raw_path: str) -> DispatchResult:
        request = self.parse(raw_path)

        if isinstance(request, LegacyRequest):
            return DispatchResult(
                state=DispatchState.LEGACY_REDIRECT,
                status=301,
                location=self._sitemaps.index_url,
            )
        if isinstance(request, StylesheetRequest):
            return DispatchResult(
                state=DispatchState.SITEMAP_RENDER,
                status=200,
                body=self._sitemaps.stylesheet(),
                media_type=XSL_MEDIA_TYPE,
                headers={"X-Robots-Tag": "noindex", "Cache-Control": CACHE_CONTROL},
            )
        if isinstance(request, Unmatched):
            return self._check_redirects(raw_path)
        return self._render(request)

    def _render(
        self, request: IndexRequest | LanguageIndexRequest | PageRequest
    ) -> DispatchResult:
        body: str | None = None
        if self._settings.get().enabled:
            if isinstance(request, IndexRequest):
                body = self._sitemaps.index()
            elif isinstance(request, LanguageIndexRequest):
                body = self._sitemaps.language_index(request.iso2)
            else:
                body = self._sitemaps.page(request.kind, request.iso2)

        if body is None:
            return DispatchResult(state=DispatchState.SITEMAP_RENDER, status=404)
        return DispatchResult(
            state=DispatchState.SITEMAP_RENDER,
            status=200,
            body=body,
            media_type=XML_MEDIA_TYPE,
            headers={"X-Robots-Tag": "noindex, follow", "Cache-Control": CACHE_CONTROL},
        )

    def _check_redirects(self, raw_path: str) -> DispatchResult:
        found = self._redirects.handle(raw_path)
        if found is None:
            return DispatchResult.unmatched()
        logger.debug("Redirect %s -> %s (%d)", raw_path, found.target, found.status)
        return DispatchResult(
            state=DispatchState.REDIRECT_CHECK,
            status=found.status,
            location=found.target,
        )
