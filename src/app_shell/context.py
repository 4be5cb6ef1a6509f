from __future__ import annotations

from dataclasses import dataclass

from src.adapters.clock import SystemClock
from src.adapters.fs.language_registry import JsonFileLanguageRegistry
from src.adapters.kv_redirects import KeyValueRedirectStore
from src.adapters.sqlite.repos import SQLiteContentStore, SQLiteKeyValueStore, SQLiteTaxonomy
from src.components.cache import CacheStore
from src.components.catalog import CatalogAdmin, CatalogConfig, ContentCatalog
from src.components.dispatch import Dispatcher
from src.components.languages import LanguageAdmin, LanguageConfig, LanguageService
from src.components.redirects import RedirectConfig, RedirectMatcher
from src.components.settings import SettingsConfig, SitemapSettingsService
from src.components.sitemap import SitemapService
from src.domain.entities import LanguageMarker
from src.ports.clock import ClockPort
from src.ports.content import ContentStorePort, TaxonomyPort
from src.ports.kv import KeyValueStorePort, LanguageRegistryPort
from src.rules.models import Rules
from src.shell.hooks.content_hooks import ContentEvents


@dataclass
class ServiceContext:
    rules: Rules
    clock: ClockPort
    kv: KeyValueStorePort
    content_store: ContentStorePort
    taxonomy: TaxonomyPort
    registry: LanguageRegistryPort
    languages: LanguageService
    language_admin: LanguageAdmin
    cache: CacheStore
    settings: SitemapSettingsService
    catalog: ContentCatalog
    catalog_admin: CatalogAdmin
    sitemaps: SitemapService
    redirects: RedirectMatcher
    redirect_config: RedirectConfig
    redirect_store: KeyValueRedirectStore
    dispatcher: Dispatcher
    events: ContentEvents

    @classmethod
    def build(
        cls,
        rules: Rules,
        kv: KeyValueStorePort,
        content_store: ContentStorePort,
        taxonomy: TaxonomyPort,
        registry: LanguageRegistryPort,
        clock: ClockPort | None = None,
        base_url: str | None = None,
    ) -> ServiceContext:
        clock = clock or SystemClock()
        site = rules.site
        sitemap = rules.sitemap
        fallback = rules.languages.fallback

        languages = LanguageService(
            registry,
            taxonomy,
            LanguageConfig(
                post_kind=site.post_kind,
                language_field=site.language_field,
                uncategorized_slug=site.uncategorized_slug,
                max_languages=rules.languages.max_languages,
                fallback=LanguageMarker(
                    iso2=fallback.iso2,
                    native_name=fallback.native_name,
                    slug=fallback.slug,
                    is_default=True,
                ),
            ),
        )
        cache = CacheStore(kv, languages, clock, sitemap.cache_ttl_seconds)
        settings = SitemapSettingsService(
            kv,
            cache,
            SettingsConfig(
                enabled_default=sitemap.enabled_default,
                max_excluded=sitemap.max_excluded,
                max_types=sitemap.max_types,
                max_order=sitemap.max_items,
            ),
        )
        catalog = ContentCatalog(
            content_store,
            taxonomy,
            languages,
            settings,
            clock,
            CatalogConfig(
                post_kind=site.post_kind,
                front_page_id=site.front_page_id,
                max_urls=sitemap.max_urls,
                max_items=sitemap.max_items,
                max_images=sitemap.max_images,
                max_alternates=sitemap.max_alternates,
            ),
        )
        catalog_admin = CatalogAdmin(
            catalog,
            content_store,
            taxonomy,
            languages,
            settings,
            cache,
            max_bulk=sitemap.max_bulk_priorities,
        )
        sitemaps = SitemapService(
            catalog,
            languages,
            cache,
            settings,
            base_url or site.base_url,
            sitemap.max_sitemaps,
        )
        redirect_config = RedirectConfig(
            max_redirects=rules.redirects.max_redirects,
            default_status=rules.redirects.default_status,
            allowed_status=tuple(rules.redirects.allowed_status),
        )
        redirect_store = KeyValueRedirectStore(kv, redirect_config)
        redirects = RedirectMatcher(redirect_store, redirect_config)

        return cls(
            rules=rules,
            clock=clock,
            kv=kv,
            content_store=content_store,
            taxonomy=taxonomy,
            registry=registry,
            languages=languages,
            language_admin=LanguageAdmin(registry, languages, cache),
            cache=cache,
            settings=settings,
            catalog=catalog,
            catalog_admin=catalog_admin,
            sitemaps=sitemaps,
            redirects=redirects,
            redirect_config=redirect_config,
            redirect_store=redirect_store,
            dispatcher=Dispatcher(sitemaps, languages, catalog, settings, redirects),
            events=ContentEvents(cache, kv, redirects, post_kind=site.post_kind),
        )

    @classmethod
    def create(
        cls,
        db_path: str,
        languages_path: str,
        rules: Rules,
        base_url: str | None = None,
    ) -> ServiceContext:
        clock = SystemClock()
        return cls.build(
            rules=rules,
            kv=SQLiteKeyValueStore(db_path, clock),
            content_store=SQLiteContentStore(db_path, post_kind=rules.site.post_kind),
            taxonomy=SQLiteTaxonomy(db_path),
            registry=JsonFileLanguageRegistry(languages_path),
            clock=clock,
            base_url=base_url,
        )
