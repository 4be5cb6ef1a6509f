"""
Admin Languages API Routes.

Registry edits. The default language cannot be removed or disabled; every
successful write drops all cached sitemaps.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from src.api.deps import get_language_admin, get_language_service
from src.components.languages import LanguageAdmin, LanguageService
from src.domain.entities import LanguageEntry
from src.domain.validation import ValidationError

router = APIRouter()


class CreateLanguageRequest(BaseModel):
    iso2: str = Field(..., description="Two-letter ISO 639-1 code")
    native_name: str
    slug: str = ""
    enabled: bool = True


class UpdateLanguageRequest(BaseModel):
    native_name: str | None = None
    slug: str | None = None
    enabled: bool | None = None


class LanguageResponse(BaseModel):
    iso2: str
    native_name: str
    slug: str
    enabled: bool
    is_default: bool


class LanguageListResponse(BaseModel):
    languages: list[LanguageResponse]
    enabled: list[LanguageResponse]


class ValidationErrorResponse(BaseModel):
    """Validation error response."""

    errors: list[dict[str, Any]]


# --- Helper Functions ---


def _raise_errors(errors: list[ValidationError]) -> None:
    if any(e.code == "not_found" for e in errors):
        raise HTTPException(status_code=404, detail="Language not found")
    raise HTTPException(
        status_code=400,
        detail={"errors": [e.to_dict() for e in errors]},
    )


def _entry_to_response(entry: LanguageEntry) -> LanguageResponse:
    return LanguageResponse(**entry.model_dump())


# --- Routes ---


@router.get("", response_model=LanguageListResponse)
def list_languages(
    service: LanguageService = Depends(get_language_service),
) -> LanguageListResponse:
    """Registry rows plus the resolved enabled list (with derived slugs)."""
    return LanguageListResponse(
        languages=[_entry_to_response(e) for e in service.list_all()],
        enabled=[LanguageResponse(**m.model_dump()) for m in service.list_enabled()],
    )


@router.post(
    "",
    status_code=201,
    response_model=LanguageResponse,
    responses={400: {"model": ValidationErrorResponse}},
)
def add_language(
    request: CreateLanguageRequest,
    admin: LanguageAdmin = Depends(get_language_admin),
) -> LanguageResponse:
    entry, errors = admin.add(
        request.iso2, request.native_name, slug=request.slug, enabled=request.enabled
    )
    if errors:
        _raise_errors(errors)

    assert entry is not None
    return _entry_to_response(entry)


@router.patch(
    "/{iso2}",
    response_model=LanguageResponse,
    responses={
        400: {"model": ValidationErrorResponse},
        404: {"description": "Language not found"},
    },
)
def update_language(
    iso2: str,
    request: UpdateLanguageRequest,
    admin: LanguageAdmin = Depends(get_language_admin),
    service: LanguageService = Depends(get_language_service),
) -> LanguageResponse:
    if request.native_name is not None or request.slug is not None:
        _, errors = admin.update(iso2, native_name=request.native_name, slug=request.slug)
        if errors:
            _raise_errors(errors)
    if request.enabled is not None:
        errors = admin.set_enabled(iso2, request.enabled)
        if errors:
            _raise_errors(errors)

    entry = next((e for e in service.list_all() if e.iso2 == iso2), None)
    if entry is None:
        raise HTTPException(status_code=404, detail="Language not found")
    return _entry_to_response(entry)


@router.delete(
    "/{iso2}",
    responses={
        400: {"model": ValidationErrorResponse},
        404: {"description": "Language not found"},
    },
)
def remove_language(
    iso2: str,
    admin: LanguageAdmin = Depends(get_language_admin),
) -> dict[str, bool]:
    errors = admin.remove(iso2)
    if errors:
        _raise_errors(errors)
    return {"deleted": True}


@router.post(
    "/{iso2}/default",
    responses={
        400: {"model": ValidationErrorResponse},
        404: {"description": "Language not found"},
    },
)
def set_default_language(
    iso2: str,
    admin: LanguageAdmin = Depends(get_language_admin),
) -> dict[str, str]:
    errors = admin.set_default(iso2)
    if errors:
        _raise_errors(errors)
    return {"default": iso2}
