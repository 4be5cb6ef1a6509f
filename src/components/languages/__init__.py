"""
Languages component - site languages and their content markers.
"""

from ._impl import (
    LanguageAdmin,
    LanguageConfig,
    LanguageService,
    LanguagesChangedHook,
    create_language_service,
    slugify,
)

__all__ = [
    "LanguageAdmin",
    "LanguageConfig",
    "LanguageService",
    "LanguagesChangedHook",
    "create_language_service",
    "slugify",
]
