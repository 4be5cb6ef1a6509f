"""
Dispatch component - request routing for sitemaps, legacy paths and redirects.
"""

from ._impl import LEGACY_PATHS, Dispatcher, parse_request
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

__all__ = [
    "LEGACY_PATHS",
    "DispatchResult",
    "DispatchState",
    "Dispatcher",
    "IndexRequest",
    "LanguageIndexRequest",
    "LegacyRequest",
    "PageRequest",
    "SitemapRequest",
    "StylesheetRequest",
    "Unmatched",
    "parse_request",
]
