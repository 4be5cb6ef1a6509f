"""
Sitemap component - XML rendering of the catalog through the cache.
"""

from ._impl import (
    INDEX_PATH,
    STYLESHEET_PATH,
    XMLNS_IMAGE,
    XMLNS_SITEMAP,
    XMLNS_XHTML,
    IndexEntry,
    SitemapService,
    UrlEntry,
    create_sitemap_service,
    format_lastmod,
    render_sitemap_index,
    render_urlset,
)

__all__ = [
    "INDEX_PATH",
    "STYLESHEET_PATH",
    "XMLNS_IMAGE",
    "XMLNS_SITEMAP",
    "XMLNS_XHTML",
    "IndexEntry",
    "SitemapService",
    "UrlEntry",
    "create_sitemap_service",
    "format_lastmod",
    "render_sitemap_index",
    "render_urlset",
]
