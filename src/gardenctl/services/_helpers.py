"""Timestamps shared by the services."""

from __future__ import annotations

from datetime import UTC, datetime


def now_iso() -> str:
    """UTC now in ISO 8601, as stored in ``created_at``/``updated_at``/``deleted_at``."""
    return datetime.now(UTC).isoformat()


def backup_stamp() -> str:
    """UTC now as ``YYYYMMDDTHHMMSS`` for backup file names."""
    return datetime.now(UTC).strftime("%Y%m%dT%H%M%S")
