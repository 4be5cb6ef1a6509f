"""
RedirectMatcher - ordered redirect rules with first-match-wins semantics.

Rules are ``{from, to, type, hits}``. A ``from`` starting with ``~`` is an
unanchored regular expression tested against the raw request path; its match is
replaced by ``to`` (``$1`` / ``${1}`` / ``\\1`` refer to captured groups). Any
other ``from`` matches when it equals the path with trailing slashes stripped, or
the raw path exactly.

Key behaviors:
- Stored order is match order; the first matching rule wins
- Malformed patterns never match and never raise
- Hit counting is read-modify-write and may lose increments under concurrency
- ``from`` is unique; re-adding moves the rule to the end of the list
- Import fully replaces the list, hit counts included
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Any
from urllib.parse import urlsplit

from pydantic import ValidationError as PydanticValidationError

from src.domain.entities import REDIRECT_TYPES, RedirectRule
from src.domain.validation import ValidationError

from .ports import RedirectStorePort

logger = logging.getLogger(__name__)

DANGEROUS_SCHEMES = ("javascript:", "data:", "vbscript:", "file:")
GROUP_TOKEN = re.compile(r"\$\{(\d+)\}|\$(\d+)|\\(\d+)")


# --- Configuration ---


@dataclass(frozen=True)
class RedirectConfig:
    max_redirects: int = 500
    default_status: int = 301
    allowed_status: tuple[int, ...] = field(default=REDIRECT_TYPES)


DEFAULT_CONFIG = RedirectConfig()


@dataclass(frozen=True)
class RedirectMatch:
    rule: RedirectRule
    index: int
    target: str
    status: int


# --- Path helpers ---


def normalize_path(path: str) -> str:
    """Strip trailing slashes. The site root normalizes to an empty string."""
    return path.rstrip("/")


def request_path(raw: str) -> str:
    """Path component of a request target, without query or fragment."""
    return urlsplit(raw).path or "/"


@lru_cache(maxsize=512)
def compile_pattern(pattern: str) -> re.Pattern[str] | None:
    try:
        return re.compile(pattern)
    except re.error as e:
        logger.warning("Skipping redirect with malformed pattern %r: %s", pattern, e)
        return None


def expand_target(template: str, match: re.Match[str]) -> str:
    """Substitute captured groups into ``template``. Missing groups become empty."""

    def group(token: re.Match[str]) -> str:
        number = int(token.group(1) or token.group(2) or token.group(3))
        if number > (match.re.groups or 0):
            return ""
        return match.group(number) or ""

    return GROUP_TOKEN.sub(group, template)


def target_for(rule: RedirectRule, path: str, normalized: str) -> str | None:
    """Redirect target if ``rule`` matches the request, else None."""
    if normalized == normalize_path(rule.from_) or path == rule.from_:
        return rule.to
    if not rule.is_regex:
        return None

    pattern = compile_pattern(rule.from_[1:])
    if pattern is None:
        return None
    found = pattern.search(path)
    if found is None:
        return None
    return path[: found.start()] + expand_target(rule.to, found) + path[found.end() :]


def is_safe_target(target: str) -> bool:
    lowered = target.strip().lower()
    return not any(lowered.startswith(scheme) for scheme in DANGEROUS_SCHEMES)


# --- (De)serialization ---


def coerce_rule(raw: Any, config: RedirectConfig = DEFAULT_CONFIG) -> RedirectRule | None:
    """Build a rule from an untrusted mapping; None when from/to are missing."""
    if isinstance(raw, RedirectRule):
        return raw
    if not isinstance(raw, dict):
        return None
    source = str(raw.get("from") or "").strip()
    target = str(raw.get("to") or "").strip()
    if not source or not target:
        return None

    try:
        status = int(raw.get("type") or config.default_status)
    except (TypeError, ValueError):
        status = config.default_status
    if status not in config.allowed_status:
        status = config.default_status

    try:
        hits = max(0, int(raw.get("hits") or 0))
    except (TypeError, ValueError):
        hits = 0

    try:
        return RedirectRule.model_validate(
            {"from": source, "to": target, "type": status, "hits": hits}
        )
    except PydanticValidationError:
        return None


def parse_rules(payload: Any, config: RedirectConfig = DEFAULT_CONFIG) -> list[RedirectRule]:
    """Rules from a JSON string or a list. Invalid entries are dropped, order kept."""
    if isinstance(payload, str | bytes):
        try:
            payload = json.loads(payload)
        except json.JSONDecodeError:
            logger.warning("Redirect list is not valid JSON")
            return []
    if not isinstance(payload, list):
        return []

    rules: list[RedirectRule] = []
    for raw in payload:
        rule = coerce_rule(raw, config)
        if rule is not None:
            rules.append(rule)
        if len(rules) >= config.max_redirects:
            break
    return rules


def dump_rules(rules: list[RedirectRule]) -> str:
    return json.dumps([rule.to_dict() for rule in rules])


# --- Matcher ---


class RedirectMatcher:
    def __init__(
        self,
        store: RedirectStorePort,
        config: RedirectConfig | None = None,
    ) -> None:
        self._store = store
        self._config = config or DEFAULT_CONFIG

    @property
    def config(self) -> RedirectConfig:
        return self._config

    def rules(self) -> list[RedirectRule]:
        return self._store.load()[: self._config.max_redirects]

    def resolve(self, raw_path: str) -> RedirectMatch | None:
        path = request_path(raw_path)
        normalized = normalize_path(path)
        if not normalized:
            return None

        for index, rule in enumerate(self.rules()):
            target = target_for(rule, path, normalized)
            if target is None:
                continue
            status = rule.type
            if status not in self._config.allowed_status:
                status = self._config.default_status
            return RedirectMatch(rule=rule, index=index, target=target, status=status)
        return None

    def match(self, raw_path: str) -> RedirectRule | None:
        found = self.resolve(raw_path)
        return found.rule if found else None

    def handle(self, raw_path: str) -> RedirectMatch | None:
        """Resolve and count the hit."""
        found = self.resolve(raw_path)
        if found is not None:
            self._increment_hits(found)
        return found

    def _increment_hits(self, found: RedirectMatch) -> None:
        rules = self._store.load()
        if found.index >= len(rules) or rules[found.index].from_ != found.rule.from_:
            return
        current = rules[found.index]
        rules[found.index] = current.model_copy(update={"hits": current.hits + 1})
        self._store.save(rules)

    def record_rename(self, old_path: str, new_path: str) -> RedirectRule | None:
        """Append a 301 from a renamed item's old path. None when nothing was added."""
        old_path = old_path.strip()
        new_path = new_path.strip()
        if not old_path or not new_path or old_path == new_path:
            return None

        rules = self._store.load()
        if len(rules) >= self._config.max_redirects:
            logger.warning("Redirect list full, not recording rename of %s", old_path)
            return None
        if any(rule.from_ == old_path for rule in rules):
            return None

        rule = RedirectRule.model_validate(
            {"from": old_path, "to": new_path, "type": 301, "hits": 0}
        )
        rules.append(rule)
        self._store.save(rules)
        logger.info("Redirect created for renamed content: %s -> %s", old_path, new_path)
        return rule

    # --- Admin ---

    def add(
        self, source: str, target: str, status: Any = None
    ) -> tuple[RedirectRule | None, list[ValidationError]]:
        source = (source or "").strip()
        target = (target or "").strip()
        errors: list[ValidationError] = []

        if not source:
            errors.append(ValidationError("from", "required", "Source path is required"))
        elif source.startswith("~") and compile_pattern(source[1:]) is None:
            errors.append(
                ValidationError(
                    "from", "invalid_pattern", "Source pattern is not a valid regular expression"
                )
            )
        if not target:
            errors.append(ValidationError("to", "required", "Target is required"))
        elif not is_safe_target(target):
            errors.append(
                ValidationError("to", "invalid_target", "Target uses a disallowed scheme")
            )
        if errors:
            return None, errors

        try:
            status_code = int(status)
        except (TypeError, ValueError):
            status_code = self._config.default_status
        if status_code not in self._config.allowed_status:
            status_code = self._config.default_status

        rules = self._store.load()
        if len(rules) >= self._config.max_redirects:
            return None, [
                ValidationError(
                    "from",
                    "limit_reached",
                    f"Maximum of {self._config.max_redirects} redirects reached",
                )
            ]

        rules = [rule for rule in rules if rule.from_ != source]
        rule = RedirectRule.model_validate(
            {"from": source, "to": target, "type": status_code, "hits": 0}
        )
        rules.append(rule)
        self._store.save(rules)
        return rule, []

    def delete(self, source: str) -> bool:
        source = (source or "").strip()
        rules = self._store.load()
        remaining = [rule for rule in rules if rule.from_ != source]
        if len(remaining) == len(rules):
            return False
        self._store.save(remaining)
        return True

    def import_rules(self, payload: Any) -> tuple[list[RedirectRule], list[ValidationError]]:
        """Replace the whole list. Entries without from/to are skipped."""
        if isinstance(payload, str | bytes):
            try:
                payload = json.loads(payload)
            except json.JSONDecodeError:
                return [], [
                    ValidationError("data", "invalid_json", "Import data is not valid JSON")
                ]
        if not isinstance(payload, list):
            return [], [
                ValidationError("data", "invalid_type", "Import data must be a JSON array")
            ]

        rules = parse_rules(payload, self._config)
        self._store.save(rules)
        skipped = max(0, len(payload) - len(rules))
        logger.info("Imported %d redirects (%d entries skipped)", len(rules), skipped)
        return rules, []

    def export(self) -> list[dict[str, Any]]:
        return [rule.to_dict() for rule in self.rules()]

    def export_json(self) -> str:
        return dump_rules(self.rules())


def create_redirect_matcher(
    store: RedirectStorePort,
    config: RedirectConfig | None = None,
) -> RedirectMatcher:
    """Create a RedirectMatcher."""
    return RedirectMatcher(store=store, config=config)
