"""File-name to language-family mapping."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from .models import LanguageFamily

# ── Suffixes per family ───────────────────────────────────────────
# Matched against the end of the file name so compound suffixes like
# ``node.html.twig`` resolve without special casing.
PHP_SUFFIXES = (
    ".php",
    ".module",
    ".inc",
    ".install",
    ".theme",
    ".profile",
    ".engine",
)
TEMPLATE_SUFFIXES = (".twig",)
STYLESHEET_SUFFIXES = (".css", ".scss")
SCRIPT_SUFFIXES = (".js",)

_FAMILY_SUFFIXES: tuple[tuple[LanguageFamily, tuple[str, ...]], ...] = (
    (LanguageFamily.PHP, PHP_SUFFIXES),
    (LanguageFamily.TEMPLATE, TEMPLATE_SUFFIXES),
    (LanguageFamily.STYLESHEET, STYLESHEET_SUFFIXES),
    (LanguageFamily.SCRIPT, SCRIPT_SUFFIXES),
)

SCANNABLE_SUFFIXES: frozenset[str] = frozenset(
    suffix for _, suffixes in _FAMILY_SUFFIXES for suffix in suffixes
)


def language_for(path: Path) -> Optional[LanguageFamily]:
    """Return the language family for a file, or None if it is not scanned."""
    name = path.name.lower()
    for family, suffixes in _FAMILY_SUFFIXES:
        if name.endswith(suffixes):
            return family
    return None
