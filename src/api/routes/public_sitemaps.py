"""
Public sitemap and redirect dispatch.

Runs as HTTP middleware so sitemap paths, legacy sitemap paths and redirect
rules are answered before normal routing. Anything the dispatcher does not
handle falls through to the application's routes.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable

from fastapi import FastAPI, Request, Response
from fastapi.responses import PlainTextResponse, RedirectResponse
from starlette.concurrency import run_in_threadpool

from src.api.deps import get_context
from src.components.dispatch import DispatchResult, Dispatcher

PASS_THROUGH_PREFIXES = ("/api/", "/health", "/docs", "/redoc", "/openapi.json")


def resolve_dispatcher(app: FastAPI) -> Dispatcher:
    """Dispatcher from the (possibly overridden) service context."""
    provider = app.dependency_overrides.get(get_context, get_context)
    return provider().dispatcher


def to_response(result: DispatchResult) -> Response:
    if result.location is not None and result.status in (301, 302):
        return RedirectResponse(url=result.location, status_code=result.status)
    if result.status == 404:
        return PlainTextResponse("Not found", status_code=404)
    return Response(
        content=result.body,
        status_code=result.status or 200,
        media_type=result.media_type,
        headers=result.headers,
    )


async def sitemap_dispatch_middleware(
    request: Request,
    call_next: Callable[[Request], Awaitable[Response]],
) -> Response:
    path = request.url.path
    if request.method not in ("GET", "HEAD") or path.startswith(PASS_THROUGH_PREFIXES):
        return await call_next(request)

    dispatcher = resolve_dispatcher(request.app)
    result = await run_in_threadpool(dispatcher.dispatch, path)
    if not result.handled:
        return await call_next(request)
    return to_response(result)
