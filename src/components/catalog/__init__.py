"""
Catalog component - sitemap entry enumeration and admin preview.
"""

from ._impl import (
    CORE_KINDS,
    DERIVED_KINDS,
    TERM_KINDS,
    CatalogConfig,
    ContentCatalog,
    apply_custom_order,
    create_content_catalog,
)
from .admin import CatalogAdmin, ItemUpdate, TreeType

__all__ = [
    "CORE_KINDS",
    "DERIVED_KINDS",
    "TERM_KINDS",
    "CatalogAdmin",
    "CatalogConfig",
    "ContentCatalog",
    "ItemUpdate",
    "TreeType",
    "apply_custom_order",
    "create_content_catalog",
]
