"""
ContentEvents - reacts to content lifecycle events from the content store.

Key behaviors:
- save / delete drop the affected kind's sitemaps plus the indexes
- post mutations also drop the tag and author sitemaps derived from posts
- status transitions only matter when either side is "published"
- a published page/post whose slug changes gets a 301 from its old path
- every mutation drops the cached llms.txt body
"""

from __future__ import annotations

import logging
from urllib.parse import urlsplit

from src.components.cache import CacheStore
from src.components.redirects import RedirectMatcher
from src.domain.entities import PUBLISHED, RedirectRule
from src.ports.kv import KeyValueStorePort

logger = logging.getLogger(__name__)

LLMS_TXT_KEY = "llms_txt"
RENAME_KINDS: tuple[str, ...] = ("page", "post")


def previous_path(url: str, old_slug: str, new_slug: str) -> str:
    """Path of ``url`` before its last ``new_slug`` segment was renamed; "" if not derivable."""
    path = urlsplit(url).path
    segments = path.strip("/").split("/")
    for index in range(len(segments) - 1, -1, -1):
        if segments[index] == new_slug:
            segments[index] = old_slug
            break
    else:
        return ""
    rebuilt = "/" + "/".join(segments)
    if path.endswith("/") and rebuilt != "/":
        rebuilt += "/"
    return rebuilt


class ContentEvents:
    def __init__(
        self,
        cache: CacheStore,
        store: KeyValueStorePort,
        redirects: RedirectMatcher | None = None,
        post_kind: str = "post",
    ) -> None:
        self._cache = cache
        self._store = store
        self._redirects = redirects
        self._post_kind = post_kind

    def saved(self, kind: str) -> None:
        self._invalidate(kind)

    def deleted(self, kind: str) -> None:
        self._invalidate(kind)

    def status_changed(self, kind: str, old_status: str, new_status: str) -> bool:
        """Returns True when caches were invalidated.

        Any transition touching ``published`` counts, including published to published.
        """
        if PUBLISHED not in (old_status, new_status):
            return False
        self._invalidate(kind)
        return True

    def slug_changed(
        self, kind: str, status: str, old_slug: str, new_slug: str, url: str
    ) -> RedirectRule | None:
        if self._redirects is None or kind not in RENAME_KINDS or status != PUBLISHED:
            return None
        if not old_slug or not new_slug or old_slug == new_slug:
            return None

        old_path = previous_path(url, old_slug, new_slug)
        if not old_path:
            logger.warning("Cannot derive previous path of %s from slug %s", url, new_slug)
            return None
        return self._redirects.record_rename(old_path, urlsplit(url).path or "/")

    def _invalidate(self, kind: str) -> None:
        self._cache.invalidate_for_kind(kind)
        if kind == self._post_kind:
            self._cache.invalidate_for_kind("tag")
            self._cache.invalidate_for_kind("author")
        self._store.delete(LLMS_TXT_KEY)
