"""
Redirects component input/output models.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from src.domain.entities import RedirectRule
from src.domain.validation import ValidationError

# --- Input Models ---


@dataclass(frozen=True)
class AddRedirectInput:
    """Input for adding (or replacing) a rule."""

    source: str
    target: str
    status: Any = None


@dataclass(frozen=True)
class DeleteRedirectInput:
    source: str


@dataclass(frozen=True)
class ImportRedirectsInput:
    """JSON text or an already-decoded list."""

    payload: Any


@dataclass(frozen=True)
class ExportRedirectsInput:
    pass


@dataclass(frozen=True)
class MatchRedirectInput:
    """Request path to resolve. ``count_hit`` records the hit on a match."""

    path: str
    count_hit: bool = True


# --- Output Models ---


@dataclass(frozen=True)
class RedirectOperationOutput:
    """Output for add/delete."""

    rule: RedirectRule | None = None
    errors: list[ValidationError] = field(default_factory=list)
    success: bool = True


@dataclass(frozen=True)
class RedirectListOutput:
    rules: tuple[RedirectRule, ...]
    errors: list[ValidationError] = field(default_factory=list)
    success: bool = True


@dataclass(frozen=True)
class MatchOutput:
    target: str | None
    status_code: int | None
    rule: RedirectRule | None = None
