"""ServiceResult and ServiceError — what every facade call hands back.

Expected failures (bad input, missing or foreign nodes, depth ceilings,
missing upload objects) travel as ``ok=False`` results carrying a stable
error code; only programming errors escape as exceptions.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, Field

if TYPE_CHECKING:
    from gardenctl.domain.errors import StoreError


class ServiceError(BaseModel):
    """Error code (``NOT_FOUND``, ``SLUG_CONFLICT``, ...), message and detail."""

    model_config = {"frozen": True}

    code: str
    message: str
    detail: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_store_error(cls, exc: StoreError) -> ServiceError:
        return cls(code=exc.code, message=exc.message, detail=dict(exc.detail))


class ServiceResult(BaseModel):
    """Return type of every ContentService / CheckService / UpgradeService call.

    Attributes:
        ok: Whether the operation succeeded.
        op: Operation name (``"move_node"``, ``"finalize_upload"``); picks the renderer.
        data: Operation-specific payload on success.
        warnings: Non-fatal issues, e.g. ids skipped by a duplicate batch.
        error: Structured error when ``ok`` is False.
        meta: Span tree under ``"telemetry"`` when verbose.
    """

    model_config = {"frozen": True}

    ok: bool
    op: str
    data: dict[str, Any] = Field(default_factory=dict)
    warnings: list[str] = Field(default_factory=list)
    error: ServiceError | None = None
    meta: dict[str, Any] | None = None
