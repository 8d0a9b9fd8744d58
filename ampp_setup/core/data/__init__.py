"""
Packaged data — the default profile, patch templates, webroot files.

Templates are real files (unified diffs, PHP) that stay readable and
diffable. Values that depend on the machine are written as
``__PLACEHOLDER__`` tokens and filled in by :func:`process_template`.

Usage::

    from ampp_setup.core.data import read_template, process_template

    diff = process_template(
        read_template("patches", "httpd.patch"),
        {"HOMEBREW_PREFIX": "/opt/homebrew", "PHP_FORMULA": "php@8.4"},
    )
"""

from __future__ import annotations

import re
from pathlib import Path

_DATA_DIR = Path(__file__).parent

DEFAULT_PROFILE = _DATA_DIR / "default_profile.yml"
PATCHES_DIR = _DATA_DIR / "patches"
WEBROOT_DIR = _DATA_DIR / "webroot"

_KINDS = {"patches": PATCHES_DIR, "webroot": WEBROOT_DIR}

_PLACEHOLDER_RE = re.compile(r"__([A-Z][A-Z0-9_]*)__")


class TemplateError(Exception):
    """Raised when a template is missing or a placeholder is unresolved."""


def list_templates(kind: str) -> list[str]:
    """Names of the packaged templates of one kind."""
    directory = _KINDS[kind]
    return sorted(p.name for p in directory.iterdir() if p.is_file())


def read_template(kind: str, name: str) -> str:
    """Read a packaged template by kind ('patches' or 'webroot') and name."""
    directory = _KINDS.get(kind)
    if directory is None:
        raise TemplateError(f"Unknown template kind: {kind}")
    path = directory / name
    if not path.is_file():
        raise TemplateError(f"Template not found: {kind}/{name}")
    return path.read_text(encoding="utf-8")


def placeholders_in(content: str) -> set[str]:
    """Placeholder names referenced by a template."""
    return set(_PLACEHOLDER_RE.findall(content))


def process_template(content: str, placeholders: dict[str, str]) -> str:
    """Replace ``__NAME__`` tokens with values from ``placeholders``.

    Every token in the template must have a value; a unified diff with a
    stray token would apply cleanly and leave a broken config behind.
    """
    missing = placeholders_in(content) - set(placeholders)
    if missing:
        raise TemplateError(f"Unresolved placeholders: {', '.join(sorted(missing))}")

    for key, value in placeholders.items():
        content = content.replace(f"__{key}__", value)
    return content
