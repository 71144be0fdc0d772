"""Locating the store a command acts on.

A store root is the directory holding ``gardenctl.toml``, the
``.gardenctl/`` state directory (database, blobs, backups), or both.
Both are found by walking up from the working directory, the way git
finds ``.git/``, so commands work from any subdirectory of a store.
``GARDENCTL_CONFIG`` (or ``--config``) pins the config file explicitly.
"""

from __future__ import annotations

import os
from collections.abc import Iterator
from pathlib import Path

CONFIG_FILENAME = "gardenctl.toml"
CONFIG_ENV_VAR = "GARDENCTL_CONFIG"
STATE_DIRNAME = ".gardenctl"


def _walk_up(start: Path | None) -> Iterator[Path]:
    current = (start or Path.cwd()).resolve()
    yield current
    yield from current.parents


def find_config(start: Path | None = None) -> Path | None:
    """Nearest ``gardenctl.toml`` at or above *start* (default: cwd).

    ``GARDENCTL_CONFIG`` wins when set; if it names a missing file the
    result is None rather than a walk-up match.
    """
    env_path = os.environ.get(CONFIG_ENV_VAR)
    if env_path:
        p = Path(env_path)
        return p if p.is_file() else None

    for directory in _walk_up(start):
        candidate = directory / CONFIG_FILENAME
        if candidate.is_file():
            return candidate
    return None


def find_store_root(start: Path | None = None) -> Path | None:
    """Nearest directory at or above *start* that already holds a store."""
    for directory in _walk_up(start):
        if (directory / CONFIG_FILENAME).is_file() or (directory / STATE_DIRNAME).is_dir():
            return directory
    return None
