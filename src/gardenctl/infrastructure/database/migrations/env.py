"""Alembic environment: runs revisions against one store's database."""

from __future__ import annotations

from pathlib import Path
from typing import Any

from alembic import context
from sqlalchemy import create_engine, event, pool

from gardenctl.infrastructure.database.engine import db_path_for
from gardenctl.infrastructure.database.migrations import STORE_ROOT_OPTION
from gardenctl.infrastructure.database.schema import metadata


def _database_url() -> str:
    store_root = context.config.get_main_option(STORE_ROOT_OPTION)
    if store_root:
        return f"sqlite:///{db_path_for(Path(store_root))}"
    url = context.config.get_main_option("sqlalchemy.url")
    if not url:
        raise RuntimeError("Migration config names neither a store root nor a database URL")
    return url


def _on_connect(dbapi_conn: Any, _: Any) -> None:
    cursor = dbapi_conn.cursor()
    cursor.execute("PRAGMA journal_mode=WAL")
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.execute("PRAGMA busy_timeout=5000")
    cursor.close()


def _configure(**kwargs: Any) -> None:
    # SQLite cannot ALTER most constraints; batch mode rebuilds tables instead.
    context.configure(target_metadata=metadata, render_as_batch=True, **kwargs)
    with context.begin_transaction():
        context.run_migrations()


def run_offline() -> None:
    """Emit the migration SQL instead of executing it."""
    _configure(url=_database_url(), literal_binds=True, dialect_opts={"paramstyle": "named"})


def run_online() -> None:
    engine = create_engine(_database_url(), poolclass=pool.NullPool)
    event.listen(engine, "connect", _on_connect)
    try:
        with engine.connect() as connection:
            _configure(connection=connection)
    finally:
        engine.dispose()


if context.is_offline_mode():
    run_offline()
else:
    run_online()
