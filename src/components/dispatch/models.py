"""
Dispatch component request/result models.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class DispatchState(str, Enum):
    UNMATCHED = "unmatched"
    LEGACY_REDIRECT = "legacy_redirect"
    SITEMAP_RENDER = "sitemap_render"
    REDIRECT_CHECK = "redirect_check"


# --- Parsed requests ---


@dataclass(frozen=True)
class LegacyRequest:
    path: str


@dataclass(frozen=True)
class StylesheetRequest:
    pass


@dataclass(frozen=True)
class IndexRequest:
    pass


@dataclass(frozen=True)
class LanguageIndexRequest:
    iso2: str


@dataclass(frozen=True)
class PageRequest:
    kind: str
    iso2: str = ""


@dataclass(frozen=True)
class Unmatched:
    path: str


SitemapRequest = (
    LegacyRequest
    | StylesheetRequest
    | IndexRequest
    | LanguageIndexRequest
    | PageRequest
    | Unmatched
)


# --- Result ---


@dataclass(frozen=True)
class DispatchResult:
    """Terminal outcome for one request. ``status`` None means fall through."""

    state: DispatchState
    status: int | None = None
    body: str = ""
    media_type: str | None = None
    headers: dict[str, str] = field(default_factory=dict)
    location: str | None = None

    @property
    def handled(self) -> bool:
        return self.status is not None

    @classmethod
    def unmatched(cls) -> DispatchResult:
        return cls(state=DispatchState.UNMATCHED)
