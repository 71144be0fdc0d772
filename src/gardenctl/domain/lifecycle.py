"""Upload lifecycle for file payloads.

Each upload attempt moves one way: ``uploading -> ready`` or
``uploading -> failed``.  A failed attempt is retried by initiating a new
node; there is no rollback in place.
"""

from __future__ import annotations

from enum import StrEnum


class UploadStatus(StrEnum):
    """Upload state stored on a file payload."""

    UPLOADING = "uploading"
    READY = "ready"
    FAILED = "failed"


UPLOAD_TRANSITIONS: dict[str, list[str]] = {
    "uploading": ["ready", "failed"],
    "ready": [],
    "failed": [],
}


def is_valid_transition(
    current: str,
    target: str,
    transitions: dict[str, list[str]] = UPLOAD_TRANSITIONS,
) -> bool:
    """Check if transitioning from *current* to *target* is allowed."""
    return target in transitions.get(current, [])


def is_finalized(status: str) -> bool:
    """True once an upload attempt has left ``uploading``."""
    return not UPLOAD_TRANSITIONS.get(status)
