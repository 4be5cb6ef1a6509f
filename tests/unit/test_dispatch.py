"""
Tests for request dispatch: path parsing, sitemap responses, legacy paths and redirects.
"""

from __future__ import annotations

import pytest

from src.app_shell.context import ServiceContext
from src.components.cache import page_key
from src.components.dispatch import (
    DispatchState,
    Dispatcher,
    IndexRequest,
    LanguageIndexRequest,
    LegacyRequest,
    PageRequest,
    StylesheetRequest,
    Unmatched,
    parse_request,
)

SLUGS = {"francais": "fr", "english": "en"}
KINDS = ("page", "post", "category", "tag", "author", "product")


@pytest.fixture
def dispatcher(ctx: ServiceContext) -> Dispatcher:
    return ctx.dispatcher


# --- Parsing ---


class TestParseRequest:
    @pytest.mark.parametrize(
        "path", ["/sitemap", "/sitemap/", "/sitemap.xml", "/wp-sitemap.xml", "/wp-sitemap/"]
    )
    def test_legacy(self, path: str) -> None:
        assert isinstance(parse_request(path, SLUGS, KINDS), LegacyRequest)

    def test_fixed_paths(self) -> None:
        assert parse_request("/sitemap.xsl", SLUGS, KINDS) == StylesheetRequest()
        assert parse_request("/sitemap_index.xml", SLUGS, KINDS) == IndexRequest()

    def test_language_index(self) -> None:
        assert parse_request("/english.xml", SLUGS, KINDS) == LanguageIndexRequest("en")

    def test_kind_pages(self) -> None:
        assert parse_request("/post-fr.xml", SLUGS, KINDS) == PageRequest("post", "fr")
        assert parse_request("/product-en.xml", SLUGS, KINDS) == PageRequest("product", "en")

    def test_prefixed_aliases(self) -> None:
        assert parse_request("/sitemap-post.xml", SLUGS, KINDS) == PageRequest("post", "")
        assert parse_request("/sitemap-tag-en.xml", SLUGS, KINDS) == PageRequest("tag", "en")

    def test_unknown_kind_or_slug_is_unmatched(self) -> None:
        assert isinstance(parse_request("/recipe-fr.xml", SLUGS, KINDS), Unmatched)
        assert isinstance(parse_request("/deutsch.xml", SLUGS, KINDS), Unmatched)
        assert isinstance(parse_request("/about/", SLUGS, KINDS), Unmatched)
        assert isinstance(parse_request("/post-fr.xml/extra", SLUGS, KINDS), Unmatched)


# --- Sitemap responses ---


class TestSitemapResponses:
    def test_legacy_redirects_to_index(self, dispatcher: Dispatcher) -> None:
        result = dispatcher.dispatch("/sitemap.xml")

        assert result.state == DispatchState.LEGACY_REDIRECT
        assert result.status == 301
        assert result.location == "https://example.com/sitemap_index.xml"

    def test_stylesheet(self, dispatcher: Dispatcher) -> None:
        result = dispatcher.dispatch("/sitemap.xsl")

        assert result.status == 200
        assert result.media_type == "text/xsl"
        assert result.headers["X-Robots-Tag"] == "noindex"
        assert "https://example.com/sitemap_index.xml" in result.body

    @pytest.mark.parametrize(
        "path",
        ["/sitemap_index.xml", "/francais.xml", "/english.xml", "/post-fr.xml", "/tag-en.xml"],
    )
    def test_sitemaps_render(self, dispatcher: Dispatcher, path: str) -> None:
        result = dispatcher.dispatch(path)

        assert result.state == DispatchState.SITEMAP_RENDER
        assert result.status == 200
        assert result.media_type == "text/xml"
        assert result.headers["X-Robots-Tag"] == "noindex, follow"
        assert result.headers["Cache-Control"] == "public, max-age=3600"
        assert result.body.startswith("<?xml")

    def test_query_string_ignored(self, dispatcher: Dispatcher) -> None:
        assert dispatcher.dispatch("/post-fr.xml?v=2").status == 200

    def test_prefixed_kind_lists_every_language(
        self, dispatcher: Dispatcher, ctx: ServiceContext
    ) -> None:
        aliased = dispatcher.dispatch("/sitemap-post.xml")

        assert aliased.status == 200
        assert "/en/hello/" in aliased.body
        assert aliased.body.count("<url>") == 4
        assert ctx.cache.get(page_key("post")) == aliased.body

    def test_disabled_language_is_404(self, dispatcher: Dispatcher) -> None:
        result = dispatcher.dispatch("/post-de.xml")

        assert result.state == DispatchState.SITEMAP_RENDER
        assert result.status == 404
        assert result.body == ""

    def test_disabled_kind_is_404(self, dispatcher: Dispatcher, ctx: ServiceContext) -> None:
        ctx.settings.update({"enabled_types": ["post"]})

        assert dispatcher.dispatch("/tag-fr.xml").status == 404
        assert dispatcher.dispatch("/post-fr.xml").status == 200

    def test_sitemaps_disabled(self, dispatcher: Dispatcher, ctx: ServiceContext) -> None:
        ctx.settings.update({"enabled": False})

        for path in ("/sitemap_index.xml", "/francais.xml", "/post-fr.xml"):
            assert dispatcher.dispatch(path).status == 404
        # Legacy paths and the stylesheet still answer
        assert dispatcher.dispatch("/sitemap.xml").status == 301
        assert dispatcher.dispatch("/sitemap.xsl").status == 200

    def test_renamed_language_slug(self, dispatcher: Dispatcher, ctx: ServiceContext) -> None:
        ctx.language_admin.update("en", slug="anglais")

        assert dispatcher.dispatch("/anglais.xml").status == 200
        assert not dispatcher.dispatch("/english.xml").handled


# --- Redirects ---


class TestRedirects:
    def test_rule_answers(self, dispatcher: Dispatcher, ctx: ServiceContext) -> None:
        ctx.redirects.add("/ancien", "/nouveau", 302)

        result = dispatcher.dispatch("/ancien/")

        assert result.state == DispatchState.REDIRECT_CHECK
        assert result.status == 302
        assert result.location == "/nouveau"
        assert ctx.redirects.rules()[0].hits == 1

    def test_unmatched_falls_through(self, dispatcher: Dispatcher) -> None:
        result = dispatcher.dispatch("/some/article/")

        assert result.state == DispatchState.UNMATCHED
        assert not result.handled

    def test_sitemap_paths_win_over_rules(
        self, dispatcher: Dispatcher, ctx: ServiceContext
    ) -> None:
        ctx.redirects.add("/post-fr.xml", "/elsewhere")

        assert dispatcher.dispatch("/post-fr.xml").status == 200
        assert ctx.redirects.rules()[0].hits == 0

    def test_unknown_xml_path_checks_rules(
        self, dispatcher: Dispatcher, ctx: ServiceContext
    ) -> None:
        ctx.redirects.add("/feed.xml", "/rss/")

        result = dispatcher.dispatch("/feed.xml")

        assert result.status == 301
        assert result.location == "/rss/"
