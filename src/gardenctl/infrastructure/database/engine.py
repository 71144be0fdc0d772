"""Database engine setup for SQLite with WAL mode.

SQLite is the persistence layer: WAL mode for concurrent reads, ACID
transactions for structural mutations.  The DB is stored at
``{store_root}/.gardenctl/gardenctl.db``.

Every transaction opens with ``BEGIN IMMEDIATE`` so the write lock is
taken before the first read.  Two concurrent moves into the same sibling
set therefore serialize instead of both renumbering from the same stale
snapshot.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Connection, Engine

from gardenctl.config.discovery import STATE_DIRNAME
from gardenctl.infrastructure.database.schema import metadata

DB_FILENAME = "gardenctl.db"


def db_path_for(store_root: Path) -> Path:
    """Location of the database file for a store rooted at *store_root*."""
    return store_root / STATE_DIRNAME / DB_FILENAME


def create_db_engine(db_path: Path) -> Engine:
    """Create a SQLite engine with WAL mode, foreign keys, and immediate transactions."""
    engine = create_engine(f"sqlite:///{db_path}", echo=False)

    @event.listens_for(engine, "connect")
    def _set_sqlite_pragma(dbapi_conn: Any, _: Any) -> None:
        # Hand transaction control to SQLAlchemy (pysqlite's implicit BEGIN
        # would otherwise defer locking until the first write).
        dbapi_conn.isolation_level = None
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA journal_mode=WAL")
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.execute("PRAGMA busy_timeout=5000")
        cursor.close()

    @event.listens_for(engine, "begin")
    def _begin_immediate(conn: Connection) -> None:
        conn.exec_driver_sql("BEGIN IMMEDIATE")

    return engine


def init_database(store_root: Path) -> Engine:
    """Initialize the gardenctl database at ``{store_root}/.gardenctl/gardenctl.db``.

    Creates the ``.gardenctl/`` directory structure and all tables from
    :data:`schema.metadata`.

    Idempotent — safe to call on an existing store.

    Returns the engine ready for use.
    """
    state_dir = store_root / STATE_DIRNAME
    state_dir.mkdir(parents=True, exist_ok=True)
    (state_dir / "backups").mkdir(exist_ok=True)
    (state_dir / "blobs").mkdir(exist_ok=True)

    engine = create_db_engine(db_path_for(store_root))
    metadata.create_all(engine)
    return engine
