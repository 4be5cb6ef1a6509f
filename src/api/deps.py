import os
from functools import lru_cache
from pathlib import Path

from fastapi import Depends

from src.app_shell.context import ServiceContext
from src.components.cache import CacheStore
from src.components.catalog import CatalogAdmin, ContentCatalog
from src.components.dispatch import Dispatcher
from src.components.languages import LanguageAdmin, LanguageService
from src.components.redirects import RedirectConfig, RedirectStorePort
from src.components.settings import SitemapSettingsService
from src.components.sitemap import SitemapService
from src.ports.kv import KeyValueStorePort
from src.rules.loader import load_rules
from src.rules.models import Rules
from src.shell.hooks.content_hooks import ContentEvents


# --- Settings ---
class Settings:
    def __init__(self) -> None:
        self.base_dir = Path(os.getcwd())
        self.data_dir = Path(os.environ.get("SEO_DATA_DIR", "./data"))
        self.db_path = str(self.data_dir / "seo.db")
        self.languages_path = str(self.data_dir / "languages.json")
        self.migrations_dir = str(self.base_dir / "migrations")
        self.rules_path = Path(os.environ.get("SEO_RULES_PATH", str(self.base_dir / "rules.yaml")))
        self.base_url = os.environ.get("SEO_BASE_URL") or None
        self.log_level = os.environ.get("SEO_LOG_LEVEL", "INFO").upper()


@lru_cache
def get_settings() -> Settings:
    return Settings()


# --- Rules ---
@lru_cache
def get_rules() -> Rules:
    return load_rules(get_settings().rules_path)


# --- Context ---
@lru_cache
def get_context() -> ServiceContext:
    settings = get_settings()
    return ServiceContext.create(
        db_path=settings.db_path,
        languages_path=settings.languages_path,
        rules=get_rules(),
        base_url=settings.base_url,
    )


# --- Component Services ---
def get_dispatcher(ctx: ServiceContext = Depends(get_context)) -> Dispatcher:
    return ctx.dispatcher


def get_sitemap_service(ctx: ServiceContext = Depends(get_context)) -> SitemapService:
    return ctx.sitemaps


def get_catalog(ctx: ServiceContext = Depends(get_context)) -> ContentCatalog:
    return ctx.catalog


def get_catalog_admin(ctx: ServiceContext = Depends(get_context)) -> CatalogAdmin:
    return ctx.catalog_admin


def get_sitemap_settings(ctx: ServiceContext = Depends(get_context)) -> SitemapSettingsService:
    return ctx.settings


def get_language_service(ctx: ServiceContext = Depends(get_context)) -> LanguageService:
    return ctx.languages


def get_language_admin(ctx: ServiceContext = Depends(get_context)) -> LanguageAdmin:
    return ctx.language_admin


def get_kv_store(ctx: ServiceContext = Depends(get_context)) -> KeyValueStorePort:
    return ctx.kv


def get_redirect_store(ctx: ServiceContext = Depends(get_context)) -> RedirectStorePort:
    return ctx.redirect_store


def get_redirect_config(ctx: ServiceContext = Depends(get_context)) -> RedirectConfig:
    return ctx.redirect_config


def get_content_events(ctx: ServiceContext = Depends(get_context)) -> ContentEvents:
    return ctx.events


def get_cache_store(ctx: ServiceContext = Depends(get_context)) -> CacheStore:
    return ctx.cache
