"""Error taxonomy for content-store operations.

Components below the facade raise these; :class:`ContentService` converts
them into ``ServiceResult(ok=False, error=ServiceError(code, message))``.
Raising inside ``ContentStore.transaction()`` rolls the transaction back,
so a structural mutation is never partially applied.
"""

from __future__ import annotations

from typing import Any


class StoreError(Exception):
    """Base class for all content-store failures."""

    code = "STORE_ERROR"

    def __init__(self, message: str, *, detail: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.detail = detail or {}


class ValidationError(StoreError):
    """Malformed input. Caller-recoverable, never retried internally."""

    code = "VALIDATION_FAILED"


class NotFoundError(StoreError):
    """Referenced node or parent does not exist or is tombstoned."""

    code = "NOT_FOUND"


class ForbiddenError(StoreError):
    """Referenced node exists but belongs to a different owner."""

    code = "FORBIDDEN"


class SlugConflictError(StoreError):
    """Slug collision that survived every retry attempt."""

    code = "SLUG_CONFLICT"


class TreeDepthError(StoreError):
    """Parent chain or subtree exceeds the depth ceiling.

    Signals structural corruption (an undetected cycle) or abuse. The whole
    operation aborts.
    """

    code = "TREE_TOO_DEEP"


class UploadFailedError(StoreError):
    """Upload could not be confirmed against the blob store."""

    code = "UPLOAD_FAILED"
