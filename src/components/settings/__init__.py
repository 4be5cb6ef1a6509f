"""
Settings component - persisted sitemap settings and custom listing order.
"""

from ._impl import (
    CacheInvalidator,
    NoOpCacheInvalidator,
    SettingsConfig,
    SitemapSettingsService,
    create_settings_service,
    dump_settings,
    get_default_settings,
    load_settings,
    order_key,
)

__all__ = [
    "CacheInvalidator",
    "NoOpCacheInvalidator",
    "SettingsConfig",
    "SitemapSettingsService",
    "create_settings_service",
    "dump_settings",
    "get_default_settings",
    "load_settings",
    "order_key",
]
