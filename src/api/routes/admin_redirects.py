"""
Admin Redirects API Routes.

Admin endpoints for the ordered redirect list: list, add/replace, delete,
JSON export and full-replace import, plus a dry-run match that does not
count a hit.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Body, Depends, HTTPException, Query, Response
from pydantic import BaseModel, ConfigDict, Field

from src.api.deps import get_redirect_config, get_redirect_store
from src.components.redirects import (
    AddRedirectInput,
    DeleteRedirectInput,
    ExportRedirectsInput,
    ImportRedirectsInput,
    MatchRedirectInput,
    RedirectConfig,
    RedirectStorePort,
    dump_rules,
    run_add,
    run_delete,
    run_export,
    run_import,
    run_match,
)
from src.domain.entities import RedirectRule
from src.domain.validation import ValidationError

router = APIRouter()


class CreateRedirectRequest(BaseModel):
    """Request to add a redirect. An existing rule with the same source is replaced."""

    model_config = ConfigDict(populate_by_name=True)

    from_: str = Field(..., alias="from", description="Source path, or ~pattern for a regex")
    to: str = Field(..., description="Target path or absolute URL")
    type: int | None = Field(None, description="HTTP status code (301/302)")


class RedirectResponse(BaseModel):
    """Redirect rule as stored."""

    model_config = ConfigDict(populate_by_name=True)

    from_: str = Field(..., alias="from")
    to: str
    type: int
    hits: int


class RedirectListResponse(BaseModel):
    redirects: list[RedirectResponse]
    count: int


class ImportResponse(BaseModel):
    imported: int


class MatchResponse(BaseModel):
    path: str
    matched: bool
    target: str | None = None
    status_code: int | None = None
    rule: RedirectResponse | None = None


class ValidationErrorResponse(BaseModel):
    """Validation error response."""

    errors: list[dict[str, Any]]


# --- Helper Functions ---


def _rule_to_response(rule: RedirectRule) -> RedirectResponse:
    return RedirectResponse.model_validate(rule.to_dict())


def _raise_errors(errors: list[ValidationError]) -> None:
    raise HTTPException(
        status_code=400,
        detail={"errors": [e.to_dict() for e in errors]},
    )


# --- Routes ---


@router.get("", response_model=RedirectListResponse, response_model_by_alias=True)
def list_redirects(
    store: RedirectStorePort = Depends(get_redirect_store),
    config: RedirectConfig = Depends(get_redirect_config),
) -> RedirectListResponse:
    """List all redirects in match order."""
    result = run_export(ExportRedirectsInput(), store=store, config=config)
    return RedirectListResponse(
        redirects=[_rule_to_response(r) for r in result.rules],
        count=len(result.rules),
    )


@router.post(
    "",
    status_code=201,
    response_model=RedirectResponse,
    response_model_by_alias=True,
    responses={400: {"model": ValidationErrorResponse}},
)
def add_redirect(
    request: CreateRedirectRequest,
    store: RedirectStorePort = Depends(get_redirect_store),
    config: RedirectConfig = Depends(get_redirect_config),
) -> RedirectResponse:
    """Add a redirect, replacing any rule with the same source."""
    result = run_add(
        AddRedirectInput(source=request.from_, target=request.to, status=request.type),
        store=store,
        config=config,
    )
    if result.errors:
        _raise_errors(result.errors)

    assert result.rule is not None
    return _rule_to_response(result.rule)


@router.delete(
    "",
    responses={
        400: {"model": ValidationErrorResponse},
        404: {"description": "Redirect not found"},
    },
)
def delete_redirect(
    source: str = Query(..., alias="from"),
    store: RedirectStorePort = Depends(get_redirect_store),
    config: RedirectConfig = Depends(get_redirect_config),
) -> dict[str, bool]:
    """Delete the rule whose source equals ``from``."""
    result = run_delete(DeleteRedirectInput(source=source), store=store, config=config)
    if result.errors:
        if any(e.code == "not_found" for e in result.errors):
            raise HTTPException(status_code=404, detail="Redirect not found")
        _raise_errors(result.errors)
    return {"deleted": True}


@router.get("/export")
def export_redirects(
    store: RedirectStorePort = Depends(get_redirect_store),
    config: RedirectConfig = Depends(get_redirect_config),
) -> Response:
    """Download the list as a JSON array of {from, to, type, hits}."""
    result = run_export(ExportRedirectsInput(), store=store, config=config)
    return Response(
        content=dump_rules(list(result.rules)),
        media_type="application/json",
        headers={"Content-Disposition": 'attachment; filename="redirects.json"'},
    )


@router.post(
    "/import",
    response_model=ImportResponse,
    responses={400: {"model": ValidationErrorResponse}},
)
def import_redirects(
    payload: Any = Body(...),
    store: RedirectStorePort = Depends(get_redirect_store),
    config: RedirectConfig = Depends(get_redirect_config),
) -> ImportResponse:
    """
    Replace the whole list.

    Accepts a JSON array, or an object whose ``data`` field holds the array
    or its JSON text (the shape of an uploaded export file).
    """
    if isinstance(payload, dict) and "data" in payload:
        payload = payload["data"]

    result = run_import(ImportRedirectsInput(payload=payload), store=store, config=config)
    if result.errors:
        _raise_errors(result.errors)
    return ImportResponse(imported=len(result.rules))


@router.get("/match", response_model=MatchResponse, response_model_by_alias=True)
def match_redirect(
    path: str = Query(..., min_length=1),
    store: RedirectStorePort = Depends(get_redirect_store),
    config: RedirectConfig = Depends(get_redirect_config),
) -> MatchResponse:
    """Which rule a path would hit. Does not count a hit."""
    result = run_match(MatchRedirectInput(path=path, count_hit=False), store=store, config=config)
    return MatchResponse(
        path=path,
        matched=result.target is not None,
        target=result.target,
        status_code=result.status_code,
        rule=_rule_to_response(result.rule) if result.rule else None,
    )
