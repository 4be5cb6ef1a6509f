"""
Content lifecycle events.

The content store reports saves, deletes, status transitions and slug changes
here; caches are dropped and renamed published content gets a redirect.
"""

from __future__ import annotations

from typing import Any, Literal

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from src.api.deps import get_content_events
from src.shell.hooks.content_hooks import ContentEvents

router = APIRouter()


class ContentEventRequest(BaseModel):
    event: Literal["saved", "deleted", "status_changed", "slug_changed"]
    kind: str = Field(..., min_length=1)
    old_status: str = ""
    new_status: str = ""
    status: str = ""
    old_slug: str = ""
    new_slug: str = ""
    url: str = ""


class ContentEventResponse(BaseModel):
    event: str
    invalidated: bool
    redirect: dict[str, Any] | None = None


@router.post("/events", response_model=ContentEventResponse)
def content_event(
    request: ContentEventRequest,
    events: ContentEvents = Depends(get_content_events),
) -> ContentEventResponse:
    if request.event == "saved":
        events.saved(request.kind)
        return ContentEventResponse(event=request.event, invalidated=True)

    if request.event == "deleted":
        events.deleted(request.kind)
        return ContentEventResponse(event=request.event, invalidated=True)

    if request.event == "status_changed":
        invalidated = events.status_changed(request.kind, request.old_status, request.new_status)
        return ContentEventResponse(event=request.event, invalidated=invalidated)

    if not request.url:
        raise HTTPException(status_code=400, detail="url is required for slug_changed")
    rule = events.slug_changed(
        request.kind, request.status, request.old_slug, request.new_slug, request.url
    )
    return ContentEventResponse(
        event=request.event,
        invalidated=False,
        redirect=rule.to_dict() if rule else None,
    )
