"""Slug normalization — URL-safe, owner-unique node identifiers.

Pure string rules only.  Owner-scoped uniqueness is checked against the
database by :mod:`gardenctl.services.slugs`.
"""

from __future__ import annotations

import re
import secrets
import time

MAX_SLUG_LENGTH = 200
FALLBACK_SLUG = "untitled"

_SLUG_PATTERN = re.compile(r"^[a-z0-9]+(?:-[a-z0-9]+)*$")


def slugify(title: str) -> str:
    """Normalize *title* into a URL-safe slug base.

    Examples:
        >>> slugify("  Hello World_2 ")
        'hello-world-2'
        >>> slugify("Café & Crème")
        'caf-crme'
        >>> slugify("***")
        'untitled'
    """
    text = title.lower().strip()
    text = re.sub(r"[\s_]+", "-", text)
    text = re.sub(r"[^a-z0-9-]", "", text)
    text = re.sub(r"-+", "-", text)
    text = text.strip("-")
    text = text[:MAX_SLUG_LENGTH].rstrip("-")
    return text or FALLBACK_SLUG


def suffixed(base: str, n: int) -> str:
    """Return ``<base>-<n>`` for the n-th collision candidate."""
    return f"{base}-{n}"


def collision_slug(base: str) -> str:
    """Re-derive a slug after a storage-level uniqueness failure.

    Appends an epoch-millisecond timestamp plus 8 random hex chars, so two
    racing writers that both saw the same free slug diverge.
    """
    return f"{base}-{int(time.time() * 1000)}-{secrets.token_hex(4)}"


def copy_slug(original: str) -> str:
    """Slug for a duplicated node: ``<original>-copy-<epoch-ms>``."""
    return f"{original}-copy-{int(time.time() * 1000)}"


def is_valid_slug(slug: str) -> bool:
    """Check slug format: lowercase alphanumerics separated by single hyphens."""
    if not slug or len(slug) > 255:
        return False
    return _SLUG_PATTERN.match(slug) is not None
