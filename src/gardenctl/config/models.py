"""Pydantic configuration models with code-baked defaults.

Sparse TOML contract: defaults baked here, gardenctl.toml only contains
overrides.  A fresh store needs no config file at all.
"""

from __future__ import annotations

from pydantic import BaseModel, Field

# --- gardenctl.toml sections ---


class StoreConfig(BaseModel):
    """[store] section."""

    model_config = {"frozen": True}

    name: str = "my-garden"


class TreeConfig(BaseModel):
    """[tree] section."""

    model_config = {"frozen": True}

    max_depth: int = Field(default=100, ge=1)
    slug_retry_attempts: int = Field(default=3, ge=1)
    max_title_length: int = Field(default=255, ge=1, le=255)


class UploadsConfig(BaseModel):
    """[uploads] section."""

    model_config = {"frozen": True}

    max_file_size: int = Field(default=100 * 1024 * 1024, ge=1)
    presign_ttl_seconds: int = Field(default=3600, ge=1)
    key_prefix: str = "uploads"
    duplicate_rename_limit: int = Field(default=100, ge=1)
    extract_metadata: bool = True
    thumbnail_size: int = Field(default=300, ge=16)


class CheckConfig(BaseModel):
    """[check] section."""

    model_config = {"frozen": True}

    backup_max_count: int = Field(default=10, ge=1)

