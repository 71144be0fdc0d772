"""Unified settings — CLI flags, env vars, and TOML config in one object.

Priority chain (highest to lowest):
  1. Init kwargs  — CLI flags passed by Click
  2. Env vars     — ``GARDENCTL_*`` prefix (nested sections via ``__``)
  3. TOML file    — ``gardenctl.toml`` discovered via walk-up
  4. Code defaults — baked into the section models

Uses Pydantic Settings v2 with a custom :class:`TomlSettingsSource` that
reuses the ``find_config`` walk-up discovery from
:mod:`gardenctl.config.discovery`.
"""

from __future__ import annotations

import re
import threading
import tomllib
from pathlib import Path
from typing import Any, ClassVar

import click
from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource

from gardenctl.config.discovery import find_config, find_store_root
from gardenctl.config.models import CheckConfig, StoreConfig, TreeConfig, UploadsConfig


class TomlSettingsSource(PydanticBaseSettingsSource):
    """Read settings from a ``gardenctl.toml`` file discovered via walk-up."""

    def __init__(self, settings_cls: type[BaseSettings], toml_path: Path | None) -> None:
        super().__init__(settings_cls)
        self._data: dict[str, Any] = {}
        if toml_path and toml_path.is_file():
            raw = toml_path.read_text(encoding="utf-8")
            try:
                self._data = tomllib.loads(raw)
            except tomllib.TOMLDecodeError as exc:
                msg = f"Invalid TOML in {toml_path}: {exc}"
                raise click.ClickException(msg) from exc

    def get_field_value(self, field: Any, field_name: str) -> tuple[Any, str, bool]:
        """Return ``(value, field_name, value_is_complex)``."""
        val = self._data.get(field_name)
        return val, field_name, field_name in self._data

    def __call__(self) -> dict[str, Any]:
        """Return the full TOML data dict for Pydantic to merge."""
        return self._data


# Thread-local storage for TOML path during construction.
_tls = threading.local()

_OWNER_ID = re.compile(r"^[A-Za-z0-9][A-Za-z0-9._@-]*$")


class GardenSettings(BaseSettings):
    """Unified settings for gardenctl.

    Merges CLI flags, environment variables, TOML config sections, and
    code-baked defaults into a single frozen object.  Stored in
    ``click.Context.obj`` at the CLI root level and handed to
    :class:`~gardenctl.infrastructure.store.ContentStore`.

    Attributes:
        store_root: Directory holding ``.gardenctl/`` (parent of
            ``gardenctl.toml``, else the nearest existing store, else CWD).
        config_path: The TOML file in effect, if any.
        owner: Owner id the CLI acts as.
    """

    model_config = {
        "frozen": True,
        "env_prefix": "GARDENCTL_",
        "env_nested_delimiter": "__",
    }

    # --- Resolved path (not in TOML — derived from config location) ---
    store_root: Path = Field(default_factory=Path.cwd)
    config_path: Path | None = None

    # --- Identity ---
    owner: str = "local"

    # --- CLI flags ---
    json_output: bool = False
    quiet: bool = False
    verbose: bool = False
    log_json: bool = False

    # --- TOML sections ---
    store: StoreConfig = Field(default_factory=StoreConfig)
    tree: TreeConfig = Field(default_factory=TreeConfig)
    uploads: UploadsConfig = Field(default_factory=UploadsConfig)
    check: CheckConfig = Field(default_factory=CheckConfig)

    # Retained for type-checker visibility; not used at runtime.
    _toml_path: ClassVar[Path | None] = None

    @field_validator("owner")
    @classmethod
    def _owner_is_key_segment(cls, value: str) -> str:
        """Owner ids become a storage-key segment (``uploads/<owner>/...``)."""
        value = value.strip()
        if not _OWNER_ID.match(value):
            msg = f"Invalid owner id {value!r}: letters, digits, '.', '_', '@' or '-' only"
            raise ValueError(msg)
        return value

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Insert TOML source between env vars and defaults."""
        toml_path = getattr(_tls, "toml_path", None)
        return (
            init_settings,
            env_settings,
            TomlSettingsSource(settings_cls, toml_path),
        )

    @classmethod
    def from_cli(
        cls,
        *,
        config_path: str | None = None,
        store_root: Path | None = None,
        **cli_flags: Any,
    ) -> GardenSettings:
        """Construct settings from a CLI invocation.

        Discovers ``gardenctl.toml`` via walk-up (or explicit *config_path*).
        *store_root* is the config file's directory, else the nearest
        directory already holding ``.gardenctl/``, else the cwd.  CLI flags
        are merged as highest-priority overrides.  Flags passed as
        None are dropped so env and TOML values still apply.
        """
        toml_path: Path | None = None
        if config_path:
            p = Path(config_path)
            if not p.is_file():
                raise click.ClickException(f"Config file not found: {config_path}")
            toml_path = p
        else:
            toml_path = find_config(store_root)

        resolved_root = store_root
        if resolved_root is None and toml_path is not None:
            resolved_root = toml_path.parent
        if resolved_root is None:
            resolved_root = find_store_root() or Path.cwd()

        overrides = {k: v for k, v in cli_flags.items() if v is not None}

        _tls.toml_path = toml_path
        try:
            return cls(
                store_root=resolved_root,
                config_path=toml_path,
                **overrides,
            )
        except ValidationError as exc:
            problems = "; ".join(
                f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in exc.errors()
            )
            raise click.ClickException(f"Invalid settings: {problems}") from exc
        finally:
            _tls.toml_path = None
