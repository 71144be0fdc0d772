"""Identifier and storage-key generation.

Node ids are opaque random UUIDs (hex, no dashes).  IDs are permanent:
once generated an id never changes, and duplicates always get new ones.
"""

from __future__ import annotations

import re
import uuid


def new_node_id() -> str:
    """Generate a globally unique node id."""
    return uuid.uuid4().hex


def file_extension(file_name: str) -> str:
    """Lowercased extension without the dot, or ``""``.

    Examples:
        >>> file_extension("Report.PDF")
        'pdf'
        >>> file_extension("README")
        ''
        >>> file_extension(".bashrc")
        ''
    """
    stem, dot, ext = file_name.rpartition(".")
    if not dot or not stem:
        return ""
    return ext.lower()


def storage_key(owner_id: str, file_name: str, *, prefix: str = "uploads") -> str:
    """Blob-store key for a new upload: ``<prefix>/<owner>/<uuid>[.<ext>]``."""
    ext = file_extension(file_name)
    name = uuid.uuid4().hex
    if ext:
        name = f"{name}.{ext}"
    return f"{prefix}/{owner_id}/{name}"


def split_file_name(file_name: str) -> tuple[str, str]:
    """Split into ``(base, ".ext")`` for duplicate renaming.

    Examples:
        >>> split_file_name("photo.png")
        ('photo', '.png')
        >>> split_file_name("archive")
        ('archive', '')
    """
    match = re.match(r"^(.+)(\.[^.]+)$", file_name)
    if match is None:
        return file_name, ""
    return match.group(1), match.group(2)
