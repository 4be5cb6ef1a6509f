from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

# --- Enums / Literals ---
ContentStatus = Literal["draft", "scheduled", "published", "archived", "trash"]
ItemKind = Literal["page", "post", "term", "author"]
TaxonomyName = Literal["category", "tag"]

PUBLISHED: ContentStatus = "published"
AUTO = "auto"
NOINDEX = "noindex"

PRIORITY_VALUES: tuple[str, ...] = (AUTO,) + tuple(f"{i / 10:.1f}" for i in range(11))
CHANGEFREQ_VALUES: tuple[str, ...] = (
    AUTO,
    "always",
    "hourly",
    "daily",
    "weekly",
    "monthly",
    "yearly",
    "never",
)
REDIRECT_TYPES: tuple[int, ...] = (301, 302)


def coerce_priority(value: Any) -> str:
    """Map any persisted or submitted priority onto PRIORITY_VALUES, else auto."""
    if value is None or isinstance(value, bool):
        return AUTO
    if isinstance(value, int | float):
        candidate = f"{float(value):.1f}"
    else:
        text = str(value).strip().lower()
        if text in PRIORITY_VALUES:
            return text
        try:
            candidate = f"{float(text):.1f}"
        except ValueError:
            return AUTO
    return candidate if candidate in PRIORITY_VALUES else AUTO


def coerce_changefreq(value: Any) -> str:
    if not isinstance(value, str):
        return AUTO
    text = value.strip().lower()
    return text if text in CHANGEFREQ_VALUES else AUTO


# --- Languages ---


class LanguageMarker(BaseModel):
    """An enabled site language as exposed to the catalog."""

    model_config = ConfigDict(frozen=True)

    iso2: str
    native_name: str
    slug: str
    is_default: bool = False
    enabled: bool = True


class LanguageEntry(BaseModel):
    """One row of the language registry as persisted."""

    iso2: str = Field(pattern=r"^[a-z]{2}$")
    native_name: str = ""
    slug: str = ""
    enabled: bool = True
    is_default: bool = False


@dataclass(frozen=True)
class LanguageMarkers:
    """Taxonomy ids that identify content belonging to one language."""

    category_ids: frozenset[int] = frozenset()
    tag_id: int | None = None

    @property
    def is_empty(self) -> bool:
        return not self.category_ids and self.tag_id is None


# --- Catalog sources (closed variant set) ---


@dataclass(frozen=True)
class ImageRef:
    url: str
    title: str = ""


@dataclass(frozen=True)
class Alternate:
    hreflang: str
    href: str


@dataclass(frozen=True)
class Page:
    """Any non-post content kind: pages and custom kinds that carry a language field."""

    id: int
    title: str
    url: str
    kind: str = "page"
    slug: str = ""
    status: ContentStatus = PUBLISHED
    parent_id: int = 0
    menu_order: int = 0
    language: str | None = None
    translation_group: str | None = None
    modified_at: datetime | None = None
    robots_index: str | None = None
    priority: str = AUTO
    changefreq: str = AUTO
    author_id: int = 0
    content_html: str = ""
    featured_image: ImageRef | None = None
    edit_url: str = ""


@dataclass(frozen=True)
class Post:
    """The taxonomy-marked content kind. Language comes from categories and tags."""

    id: int
    title: str
    url: str
    kind: str = "post"
    slug: str = ""
    status: ContentStatus = PUBLISHED
    category_ids: frozenset[int] = frozenset()
    tag_ids: frozenset[int] = frozenset()
    language: str | None = None
    translation_group: str | None = None
    modified_at: datetime | None = None
    robots_index: str | None = None
    priority: str = AUTO
    changefreq: str = AUTO
    author_id: int = 0
    content_html: str = ""
    featured_image: ImageRef | None = None
    edit_url: str = ""


@dataclass(frozen=True)
class Term:
    id: int
    taxonomy: TaxonomyName
    name: str
    slug: str
    url: str
    parent_id: int = 0
    priority: str = AUTO
    changefreq: str = AUTO
    edit_url: str = ""


@dataclass(frozen=True)
class Author:
    id: int
    display_name: str
    url: str
    slug: str = ""
    edit_url: str = ""


ContentSource = Page | Post
CatalogSource = Page | Post | Term | Author


@dataclass(frozen=True)
class CatalogItem:
    """A sitemap entry computed on demand from a catalog source."""

    id: int
    kind: ItemKind
    content_type: str
    title: str
    url: str
    edit_url: str
    priority: str
    changefreq: str
    excluded: bool = False
    lastmod: datetime | None = None
    source: CatalogSource | None = field(default=None, compare=False, repr=False)


# --- Redirects ---


class RedirectRule(BaseModel):
    """One redirect rule. List order decides match priority."""

    model_config = ConfigDict(populate_by_name=True)

    from_: str = Field(alias="from", min_length=1)
    to: str = Field(min_length=1)
    type: int = 301
    hits: int = Field(default=0, ge=0)

    @property
    def is_regex(self) -> bool:
        return self.from_.startswith("~")

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True)


# --- Cache ---


@dataclass(frozen=True)
class SitemapCacheEntry:
    key: str
    body: str
    expires_at: datetime

    def is_fresh(self, now: datetime) -> bool:
        return now < self.expires_at


# --- Persisted sitemap settings ---


class SitemapSettings(BaseModel):
    enabled: bool = True
    excluded_ids: list[int] = Field(default_factory=list)
    enabled_types: list[str] = Field(default_factory=list)
    type_priorities: dict[str, str] = Field(default_factory=dict)
    type_changefreqs: dict[str, str] = Field(default_factory=dict)
