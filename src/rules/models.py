from pydantic import BaseModel, Field


class SiteRules(BaseModel):
    base_url: str
    front_page_id: int = 0
    uncategorized_slug: str = "uncategorized"
    post_kind: str = "post"
    language_field: str = "language"


class SitemapRules(BaseModel):
    enabled_default: bool = True
    cache_ttl_seconds: int = Field(default=3600, gt=0)
    max_urls: int = Field(default=2000, gt=0)
    max_items: int = Field(default=500, gt=0)
    max_images: int = Field(default=10, ge=0)
    max_alternates: int = Field(default=50, ge=0)
    max_sitemaps: int = Field(default=100, gt=0)
    max_types: int = Field(default=20, gt=0)
    max_excluded: int = Field(default=200, ge=0)
    max_bulk_priorities: int = Field(default=200, gt=0)


class RedirectRules(BaseModel):
    max_redirects: int = Field(default=500, gt=0)
    default_status: int = 301
    allowed_status: list[int] = Field(default_factory=lambda: [301, 302])


class FallbackLanguage(BaseModel):
    iso2: str = "en"
    native_name: str = "English"
    slug: str = "english"


class LanguageRules(BaseModel):
    max_languages: int = Field(default=50, gt=0)
    fallback: FallbackLanguage = Field(default_factory=FallbackLanguage)


class Rules(BaseModel):
    site: SiteRules
    sitemap: SitemapRules = Field(default_factory=SitemapRules)
    redirects: RedirectRules = Field(default_factory=RedirectRules)
    languages: LanguageRules = Field(default_factory=LanguageRules)
