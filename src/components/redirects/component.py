"""
Redirects component - ordered redirect rules.

Invariants:
- ``from`` is unique within the list
- The first matching rule wins
- Status code is 301 or 302
- The list never exceeds the configured maximum
"""

from __future__ import annotations

from src.domain.validation import ValidationError

from ._impl import RedirectConfig, RedirectMatcher
from .models import (
    AddRedirectInput,
    DeleteRedirectInput,
    ExportRedirectsInput,
    ImportRedirectsInput,
    MatchOutput,
    MatchRedirectInput,
    RedirectListOutput,
    RedirectOperationOutput,
)
from .ports import RedirectStorePort


def _matcher(store: RedirectStorePort, config: RedirectConfig | None) -> RedirectMatcher:
    return RedirectMatcher(store=store, config=config)


# --- Component Entry Points ---


def run_add(
    inp: AddRedirectInput,
    *,
    store: RedirectStorePort,
    config: RedirectConfig | None = None,
) -> RedirectOperationOutput:
    rule, errors = _matcher(store, config).add(inp.source, inp.target, inp.status)
    return RedirectOperationOutput(rule=rule, errors=errors, success=not errors)


def run_delete(
    inp: DeleteRedirectInput,
    *,
    store: RedirectStorePort,
    config: RedirectConfig | None = None,
) -> RedirectOperationOutput:
    if not inp.source.strip():
        return RedirectOperationOutput(
            errors=[ValidationError("from", "required", "Source path is required")],
            success=False,
        )
    if not _matcher(store, config).delete(inp.source):
        return RedirectOperationOutput(
            errors=[ValidationError("from", "not_found", f"No redirect from '{inp.source}'")],
            success=False,
        )
    return RedirectOperationOutput()


def run_import(
    inp: ImportRedirectsInput,
    *,
    store: RedirectStorePort,
    config: RedirectConfig | None = None,
) -> RedirectListOutput:
    """Replace the whole list with the payload (hit counts included)."""
    rules, errors = _matcher(store, config).import_rules(inp.payload)
    return RedirectListOutput(rules=tuple(rules), errors=errors, success=not errors)


def run_export(
    inp: ExportRedirectsInput,
    *,
    store: RedirectStorePort,
    config: RedirectConfig | None = None,
) -> RedirectListOutput:
    return RedirectListOutput(rules=tuple(_matcher(store, config).rules()))


def run_match(
    inp: MatchRedirectInput,
    *,
    store: RedirectStorePort,
    config: RedirectConfig | None = None,
) -> MatchOutput:
    matcher = _matcher(store, config)
    found = matcher.handle(inp.path) if inp.count_hit else matcher.resolve(inp.path)
    if found is None:
        return MatchOutput(target=None, status_code=None)
    return MatchOutput(target=found.target, status_code=found.status, rule=found.rule)


def run(
    inp: AddRedirectInput
    | DeleteRedirectInput
    | ImportRedirectsInput
    | ExportRedirectsInput
    | MatchRedirectInput,
    *,
    store: RedirectStorePort,
    config: RedirectConfig | None = None,
) -> RedirectOperationOutput | RedirectListOutput | MatchOutput:
    """Dispatch to the entry point for the input type."""
    if isinstance(inp, AddRedirectInput):
        return run_add(inp, store=store, config=config)
    if isinstance(inp, DeleteRedirectInput):
        return run_delete(inp, store=store, config=config)
    if isinstance(inp, ImportRedirectsInput):
        return run_import(inp, store=store, config=config)
    if isinstance(inp, ExportRedirectsInput):
        return run_export(inp, store=store, config=config)
    if isinstance(inp, MatchRedirectInput):
        return run_match(inp, store=store, config=config)
    raise ValueError(f"Unknown input type: {type(inp)}")
