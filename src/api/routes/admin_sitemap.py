"""
Admin Sitemap API Routes.

Settings, the per-language content tree, per-item overrides, bulk priorities,
custom order and manual regeneration.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, Field

from src.api.deps import (
    get_cache_store,
    get_catalog,
    get_catalog_admin,
    get_language_service,
    get_sitemap_settings,
)
from src.components.cache import CacheStore
from src.components.catalog import CatalogAdmin, ContentCatalog, ItemUpdate
from src.components.languages import LanguageService
from src.components.settings import SitemapSettingsService
from src.domain.entities import CatalogItem
from src.domain.validation import ValidationError

router = APIRouter()


class SettingsResponse(BaseModel):
    enabled: bool
    excluded_ids: list[int]
    enabled_types: list[str]
    type_priorities: dict[str, str]
    type_changefreqs: dict[str, str]


class LanguageOption(BaseModel):
    iso2: str
    native_name: str
    is_default: bool


class TreeTypeResponse(BaseModel):
    type: str
    count: int
    enabled: bool


class TreeTypesResponse(BaseModel):
    lang: str
    languages: list[LanguageOption]
    types: list[TreeTypeResponse]


class TreeItemResponse(BaseModel):
    id: int
    type: str
    content_type: str
    title: str
    url: str
    edit_url: str
    priority: str
    changefreq: str
    effective_priority: str
    effective_changefreq: str
    excluded: bool
    lastmod: str | None = None


class TreeItemsResponse(BaseModel):
    type: str
    lang: str
    items: list[TreeItemResponse]
    count: int


class ItemUpdateRequest(BaseModel):
    """Override fields for one item. Omitted fields are left alone."""

    priority: str | None = Field(None, description="auto or 0.0 .. 1.0")
    changefreq: str | None = Field(None, description="auto, or always .. never")
    excluded: bool | None = None


class PriorityRow(BaseModel):
    id: int
    type: str
    priority: str | None = None
    changefreq: str | None = None


class PrioritiesRequest(BaseModel):
    items: list[PriorityRow]


class PrioritiesResponse(BaseModel):
    saved: int
    errors: list[dict[str, Any]]


class OrderRequest(BaseModel):
    type: str
    lang: str = ""
    ids: list[Any] = Field(default_factory=list)


class OrderResponse(BaseModel):
    type: str
    lang: str
    ids: list[int]


class ValidationErrorResponse(BaseModel):
    """Validation error response."""

    errors: list[dict[str, Any]]


# --- Helper Functions ---


def _raise_errors(errors: list[ValidationError]) -> None:
    raise HTTPException(
        status_code=400,
        detail={"errors": [e.to_dict() for e in errors]},
    )


def _item_to_response(item: CatalogItem, catalog: ContentCatalog) -> TreeItemResponse:
    return TreeItemResponse(
        id=item.id,
        type=item.content_type,
        content_type=item.content_type,
        title=item.title,
        url=item.url,
        edit_url=item.edit_url,
        priority=item.priority,
        changefreq=item.changefreq,
        effective_priority=catalog.priority(item),
        effective_changefreq=catalog.changefreq(item),
        excluded=item.excluded,
        lastmod=item.lastmod.isoformat() if item.lastmod else None,
    )


def _check_lang(lang: str, languages: LanguageService) -> str:
    """Empty means every language; anything else must be an enabled language."""
    if lang and languages.get(lang) is None:
        raise HTTPException(status_code=404, detail=f"Language '{lang}' is not enabled")
    return lang


# --- Settings ---


@router.get("/settings", response_model=SettingsResponse)
def get_settings(
    service: SitemapSettingsService = Depends(get_sitemap_settings),
) -> SettingsResponse:
    return SettingsResponse(**service.get().model_dump())


@router.put(
    "/settings",
    response_model=SettingsResponse,
    responses={400: {"model": ValidationErrorResponse}},
)
def update_settings(
    updates: dict[str, Any],
    service: SitemapSettingsService = Depends(get_sitemap_settings),
) -> SettingsResponse:
    """Partial update; unknown fields are rejected and nothing is saved."""
    settings, errors = service.update(updates)
    if errors:
        _raise_errors(errors)
    return SettingsResponse(**settings.model_dump())


@router.post("/settings/reset", response_model=SettingsResponse)
def reset_settings(
    service: SitemapSettingsService = Depends(get_sitemap_settings),
) -> SettingsResponse:
    return SettingsResponse(**service.reset_to_defaults().model_dump())


# --- Tree ---


@router.get("/tree/types", response_model=TreeTypesResponse)
def tree_types(
    lang: str = Query(""),
    admin: CatalogAdmin = Depends(get_catalog_admin),
    languages: LanguageService = Depends(get_language_service),
) -> TreeTypesResponse:
    """Kinds with their URL counts for one language (or all)."""
    lang = _check_lang(lang, languages)
    return TreeTypesResponse(
        lang=lang,
        languages=[
            LanguageOption(iso2=m.iso2, native_name=m.native_name, is_default=m.is_default)
            for m in languages.list_enabled()
        ],
        types=[
            TreeTypeResponse(type=t.kind, count=t.count, enabled=t.enabled)
            for t in admin.tree_types(lang)
        ],
    )


@router.get(
    "/tree/items",
    response_model=TreeItemsResponse,
    responses={404: {"description": "Unknown kind or language"}},
)
def tree_items(
    type: str = Query(..., min_length=1),
    lang: str = Query(""),
    catalog: ContentCatalog = Depends(get_catalog),
    languages: LanguageService = Depends(get_language_service),
) -> TreeItemsResponse:
    """Items of one kind, excluded ones included and flagged."""
    lang = _check_lang(lang, languages)
    if not catalog.is_known_kind(type):
        raise HTTPException(status_code=404, detail=f"Unknown content type '{type}'")

    items = catalog.preview(type, lang)
    return TreeItemsResponse(
        type=type,
        lang=lang,
        items=[_item_to_response(item, catalog) for item in items],
        count=len(items),
    )


@router.get("/counts")
def lang_counts(
    lang: str = Query(""),
    catalog: ContentCatalog = Depends(get_catalog),
    languages: LanguageService = Depends(get_language_service),
) -> dict[str, int]:
    return catalog.lang_counts(_check_lang(lang, languages))


# --- Overrides ---


@router.put(
    "/items/{kind}/{item_id}",
    responses={400: {"model": ValidationErrorResponse}},
)
def save_item(
    kind: str,
    item_id: int,
    request: ItemUpdateRequest,
    admin: CatalogAdmin = Depends(get_catalog_admin),
) -> dict[str, bool]:
    errors = admin.save_item(
        ItemUpdate(
            kind=kind,
            item_id=item_id,
            priority=request.priority,
            changefreq=request.changefreq,
            excluded=request.excluded,
        )
    )
    if errors:
        if any(e.code == "not_found" for e in errors):
            raise HTTPException(status_code=404, detail=f"Item {item_id} not found")
        _raise_errors(errors)
    return {"saved": True}


@router.put("/priorities", response_model=PrioritiesResponse)
def save_priorities(
    request: PrioritiesRequest,
    admin: CatalogAdmin = Depends(get_catalog_admin),
) -> PrioritiesResponse:
    """Bulk save. Bad rows are reported and skipped; the rest are saved."""
    saved, errors = admin.save_priorities(
        [
            ItemUpdate(
                kind=row.type,
                item_id=row.id,
                priority=row.priority,
                changefreq=row.changefreq,
            )
            for row in request.items
        ]
    )
    return PrioritiesResponse(saved=saved, errors=[e.to_dict() for e in errors])


@router.put(
    "/order",
    response_model=OrderResponse,
    responses={400: {"model": ValidationErrorResponse}},
)
def save_order(
    request: OrderRequest,
    admin: CatalogAdmin = Depends(get_catalog_admin),
) -> OrderResponse:
    ids, errors = admin.save_order(request.type, request.lang, request.ids)
    if errors:
        _raise_errors(errors)
    return OrderResponse(type=request.type, lang=request.lang, ids=ids)


# --- Regeneration ---


@router.post("/regenerate")
def regenerate(cache: CacheStore = Depends(get_cache_store)) -> dict[str, bool]:
    """Drop every cached sitemap; they are rebuilt on the next request."""
    cache.invalidate_all()
    return {"regenerated": True}
