"""SQLite database engine and schema via SQLAlchemy Core."""

from gardenctl.infrastructure.database.engine import create_db_engine, db_path_for, init_database
from gardenctl.infrastructure.database.schema import (
    PAYLOAD_TABLES,
    content_nodes,
    file_payloads,
    metadata,
    note_payloads,
)

__all__ = [
    "PAYLOAD_TABLES",
    "content_nodes",
    "create_db_engine",
    "db_path_for",
    "file_payloads",
    "init_database",
    "metadata",
    "note_payloads",
]
