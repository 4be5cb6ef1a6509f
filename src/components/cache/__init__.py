"""
Cache component - rendered sitemap cache with fan-out invalidation.
"""

from ._impl import (
    CACHE_PREFIX,
    INDEX_KEY,
    CacheStore,
    create_cache_store,
    decode_entry,
    encode_entry,
    lang_index_key,
    page_key,
)

__all__ = [
    "CACHE_PREFIX",
    "INDEX_KEY",
    "CacheStore",
    "create_cache_store",
    "decode_entry",
    "encode_entry",
    "lang_index_key",
    "page_key",
]
