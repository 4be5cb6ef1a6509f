"""
SitemapService - renders sitemap index, per-language index and per-kind pages.

Every body is produced through the CacheStore, so repeated requests without an
intervening mutation return byte-identical output.

XML is built as strings with explicit escaping, one element per line.
"""

from __future__ import annotations

import html
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path

from src.components.cache import INDEX_KEY, CacheStore, lang_index_key, page_key
from src.components.catalog import ContentCatalog
from src.components.languages import LanguageService
from src.components.settings import SitemapSettingsService
from src.domain.entities import Alternate, ImageRef

XMLNS_SITEMAP = "http://www.sitemaps.org/schemas/sitemap/0.9"
XMLNS_IMAGE = "http://www.google.com/schemas/sitemap-image/1.1"
XMLNS_XHTML = "http://www.w3.org/1999/xhtml"

INDEX_PATH = "/sitemap_index.xml"
STYLESHEET_PATH = "/sitemap.xsl"
XSL_PLACEHOLDER = "SITEMAPINDEXURL"
XSL_FILE = Path(__file__).parent / "sitemap.xsl"


@dataclass(frozen=True)
class UrlEntry:
    loc: str
    changefreq: str
    priority: str
    lastmod: datetime | None = None
    images: tuple[ImageRef, ...] = ()
    alternates: tuple[Alternate, ...] = ()


@dataclass(frozen=True)
class IndexEntry:
    loc: str
    lastmod: datetime | None = None


def _escape_xml(text: str) -> str:
    """Escape XML special characters."""
    return html.escape(text, quote=True)


def format_lastmod(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return value.isoformat(timespec="seconds")


def _prolog(stylesheet_url: str) -> list[str]:
    return [
        '<?xml version="1.0" encoding="UTF-8"?>',
        f'<?xml-stylesheet type="text/xsl" href="{_escape_xml(stylesheet_url)}"?>',
    ]


def render_sitemap_index(entries: list[IndexEntry], stylesheet_url: str) -> str:
    lines = _prolog(stylesheet_url)
    lines.append(f'<sitemapindex xmlns="{XMLNS_SITEMAP}">')
    for entry in entries:
        lines.append("  <sitemap>")
        lines.append(f"    <loc>{_escape_xml(entry.loc)}</loc>")
        if entry.lastmod is not None:
            lines.append(f"    <lastmod>{format_lastmod(entry.lastmod)}</lastmod>")
        lines.append("  </sitemap>")
    lines.append("</sitemapindex>")
    return "\n".join(lines) + "\n"


def render_urlset(entries: list[UrlEntry], stylesheet_url: str) -> str:
    lines = _prolog(stylesheet_url)
    lines.append(
        f'<urlset xmlns="{XMLNS_SITEMAP}" xmlns:image="{XMLNS_IMAGE}" xmlns:xhtml="{XMLNS_XHTML}">'
    )
    for entry in entries:
        lines.append("  <url>")
        lines.append(f"    <loc>{_escape_xml(entry.loc)}</loc>")
        if entry.lastmod is not None:
            lines.append(f"    <lastmod>{format_lastmod(entry.lastmod)}</lastmod>")
        lines.append(f"    <changefreq>{_escape_xml(entry.changefreq)}</changefreq>")
        lines.append(f"    <priority>{_escape_xml(entry.priority)}</priority>")
        for image in entry.images:
            lines.append("    <image:image>")
            lines.append(f"      <image:loc>{_escape_xml(image.url)}</image:loc>")
            if image.title:
                lines.append(f"      <image:title>{_escape_xml(image.title)}</image:title>")
            lines.append("    </image:image>")
        for alternate in entry.alternates:
            lines.append(
                f'    <xhtml:link rel="alternate" hreflang="{_escape_xml(alternate.hreflang)}"'
                f' href="{_escape_xml(alternate.href)}"/>'
            )
        lines.append("  </url>")
    lines.append("</urlset>")
    return "\n".join(lines) + "\n"


class SitemapService:
    def __init__(
        self,
        catalog: ContentCatalog,
        languages: LanguageService,
        cache: CacheStore,
        settings: SitemapSettingsService,
        base_url: str,
        max_sitemaps: int = 100,
    ) -> None:
        self._catalog = catalog
        self._languages = languages
        self._cache = cache
        self._settings = settings
        self._base_url = base_url.rstrip("/")
        self._max_sitemaps = max_sitemaps

    # --- URLs ---

    @property
    def index_url(self) -> str:
        return self._base_url + INDEX_PATH

    @property
    def stylesheet_url(self) -> str:
        return self._base_url + STYLESHEET_PATH

    def page_url(self, kind: str, iso2: str) -> str:
        return f"{self._base_url}/{kind}-{iso2}.xml"

    def language_index_url(self, slug: str) -> str:
        return f"{self._base_url}/{slug}.xml"

    # --- Bodies ---

    def index(self) -> str:
        return self._cache.get_or_build(INDEX_KEY, self._build_index)

    def _build_index(self) -> str:
        kinds = self._catalog.sitemap_kinds()
        languages = self._languages.list_enabled()

        if len(languages) > 1:
            entries = [
                IndexEntry(
                    loc=self.language_index_url(language.slug),
                    lastmod=self._catalog.newest(
                        self._catalog.last_modified(kind, language.iso2) for kind in kinds
                    ),
                )
                for language in languages
            ]
        else:
            iso2 = languages[0].iso2
            entries = [
                IndexEntry(
                    loc=self.page_url(kind, iso2),
                    lastmod=self._catalog.last_modified(kind, iso2),
                )
                for kind in kinds
            ]
        return render_sitemap_index(entries[: self._max_sitemaps], self.stylesheet_url)

    def language_index(self, iso2: str) -> str | None:
        """None when the language is not enabled."""
        if self._languages.get(iso2) is None:
            return None
        return self._cache.get_or_build(
            lang_index_key(iso2), lambda: self._build_language_index(iso2)
        )

    def _build_language_index(self, iso2: str) -> str:
        entries = [
            IndexEntry(
                loc=self.page_url(kind, iso2),
                lastmod=self._catalog.last_modified(kind, iso2),
            )
            for kind in self._catalog.sitemap_kinds()
        ]
        return render_sitemap_index(entries[: self._max_sitemaps], self.stylesheet_url)

    def page(self, kind: str, iso2: str = "") -> str | None:
        """None when the kind is unknown or disabled, or the language is not enabled."""
        if not self._catalog.is_known_kind(kind) or not self._settings.is_kind_enabled(kind):
            return None
        if iso2 and self._languages.get(iso2) is None:
            return None
        return self._cache.get_or_build(
            page_key(kind, iso2), lambda: self._build_page(kind, iso2)
        )

    def _build_page(self, kind: str, iso2: str) -> str:
        settings = self._settings.get()
        entries = [
            UrlEntry(
                loc=item.url,
                lastmod=item.lastmod,
                changefreq=self._catalog.changefreq(item, settings),
                priority=self._catalog.priority(item, settings),
                images=tuple(self._catalog.image_entries(item)),
                alternates=tuple(self._catalog.hreflang_entries(item)),
            )
            for item in self._catalog.list(kind, iso2)
        ]
        return render_urlset(entries, self.stylesheet_url)

    def stylesheet(self) -> str:
        template = XSL_FILE.read_text(encoding="utf-8")
        return template.replace(XSL_PLACEHOLDER, _escape_xml(self.index_url))


def create_sitemap_service(
    catalog: ContentCatalog,
    languages: LanguageService,
    cache: CacheStore,
    settings: SitemapSettingsService,
    base_url: str,
    max_sitemaps: int = 100,
) -> SitemapService:
    """Create a SitemapService."""
    return SitemapService(catalog, languages, cache, settings, base_url, max_sitemaps)
