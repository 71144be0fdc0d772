"""Schema migrations for the content store.

Alembic is configured in code: the script directory is this package and
the database is located from the store root, so a store needs no
``alembic.ini`` of its own.
"""

from __future__ import annotations

from pathlib import Path

from alembic import command
from alembic.config import Config

from gardenctl.infrastructure.database.engine import db_path_for

STORE_ROOT_OPTION = "gardenctl.store_root"


def config_for_store(store_root: Path) -> Config:
    """Alembic config targeting the database under *store_root*."""
    cfg = Config()
    cfg.set_main_option("script_location", str(Path(__file__).parent))
    cfg.set_main_option(STORE_ROOT_OPTION, str(store_root))
    cfg.set_main_option("sqlalchemy.url", f"sqlite:///{db_path_for(store_root)}")
    return cfg


def stamp_head(store_root: Path) -> None:
    """Record the head revision on a database whose tables were created directly."""
    command.stamp(config_for_store(store_root), "head")
