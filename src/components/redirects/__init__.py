"""
Redirects component - ordered redirect rules, matching and rename tracking.
"""

from ._impl import (
    RedirectConfig,
    RedirectMatch,
    RedirectMatcher,
    compile_pattern,
    create_redirect_matcher,
    dump_rules,
    expand_target,
    normalize_path,
    parse_rules,
    request_path,
)
from .component import (
    run,
    run_add,
    run_delete,
    run_export,
    run_import,
    run_match,
)
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

__all__ = [
    # Entry points
    "run",
    "run_add",
    "run_delete",
    "run_export",
    "run_import",
    "run_match",
    # Input models
    "AddRedirectInput",
    "DeleteRedirectInput",
    "ExportRedirectsInput",
    "ImportRedirectsInput",
    "MatchRedirectInput",
    # Output models
    "MatchOutput",
    "RedirectListOutput",
    "RedirectOperationOutput",
    # Ports
    "RedirectStorePort",
    # _impl re-exports
    "RedirectConfig",
    "RedirectMatch",
    "RedirectMatcher",
    "compile_pattern",
    "create_redirect_matcher",
    "dump_rules",
    "expand_target",
    "normalize_path",
    "parse_rules",
    "request_path",
]
