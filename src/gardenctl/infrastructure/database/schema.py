"""SQLAlchemy Core table definitions for the gardenctl database.

One ``content_nodes`` table holds the tree.  Each payload kind has its own
side table keyed 1:1 by ``node_id``; ``content_nodes.payload_kind`` records
which one (if any) holds the node's data.
"""

from __future__ import annotations

from sqlalchemy import (
    Column,
    ForeignKey,
    Index,
    Integer,
    MetaData,
    Table,
    Text,
    UniqueConstraint,
)

metadata = MetaData()

content_nodes = Table(
    "content_nodes",
    metadata,
    Column("id", Text, primary_key=True),
    Column("owner_id", Text, nullable=False),
    Column("title", Text, nullable=False),
    Column("slug", Text, nullable=False),
    Column("parent_id", Text, ForeignKey("content_nodes.id")),
    Column("display_order", Integer, nullable=False, default=0, server_default="0"),
    Column("path", Text, nullable=False, default="", server_default=""),  # ancestor ids
    Column("payload_kind", Text, nullable=False, default="folder", server_default="folder"),
    Column("category_id", Text),
    Column("custom_icon", Text),
    Column("icon_color", Text),
    Column("is_published", Integer, default=0, server_default="0"),
    Column("created_at", Text, nullable=False),
    Column("updated_at", Text, nullable=False),
    Column("deleted_at", Text),  # soft-delete tombstone
    UniqueConstraint("owner_id", "slug", name="uq_content_nodes_owner_slug"),
)


def _node_fk() -> Column[str]:
    return Column(
        "node_id",
        Text,
        ForeignKey("content_nodes.id", ondelete="CASCADE"),
        primary_key=True,
    )


note_payloads = Table(
    "note_payloads",
    metadata,
    _node_fk(),
    Column("document", Text, nullable=False, default="{}"),  # JSON object
    Column("markdown", Text, nullable=False, default=""),
    Column("search_text", Text, nullable=False, default=""),
    Column("metadata", Text, nullable=False, default="{}"),  # JSON object
)

file_payloads = Table(
    "file_payloads",
    metadata,
    _node_fk(),
    Column("file_name", Text, nullable=False),
    Column("file_extension", Text),
    Column("mime_type", Text, nullable=False),
    Column("file_size", Integer, nullable=False),
    Column("checksum", Text, nullable=False, default=""),
    Column("storage_key", Text, nullable=False),
    Column("storage_url", Text),
    Column("storage_metadata", Text, nullable=False, default="{}"),  # JSON object
    Column("upload_status", Text, nullable=False, default="uploading"),
    Column("upload_error", Text),
    Column("uploaded_at", Text),
    Column("width", Integer),
    Column("height", Integer),
    Column("duration", Integer),
    Column("thumbnail_key", Text),
)

html_payloads = Table(
    "html_payloads",
    metadata,
    _node_fk(),
    Column("html", Text, nullable=False),
    Column("search_text", Text, nullable=False, default=""),
    Column("is_template", Integer, default=0, server_default="0"),
    Column("template_metadata", Text, nullable=False, default="{}"),  # JSON object
)

code_payloads = Table(
    "code_payloads",
    metadata,
    _node_fk(),
    Column("code", Text, nullable=False),
    Column("language", Text, nullable=False, default="text"),
    Column("metadata", Text, nullable=False, default="{}"),  # JSON object
)

folder_payloads = Table(
    "folder_payloads",
    metadata,
    _node_fk(),
    Column("view_mode", Text, nullable=False, default="list"),
    Column("sort_mode", Text),
    Column("view_prefs", Text, nullable=False, default="{}"),  # JSON object
    Column("include_referenced_content", Integer, default=0, server_default="0"),
)

external_payloads = Table(
    "external_payloads",
    metadata,
    _node_fk(),
    Column("url", Text, nullable=False),
    Column("subtype", Text, nullable=False, default="website"),
    Column("preview", Text, nullable=False, default="{}"),  # JSON object
)

chat_payloads = Table(
    "chat_payloads",
    metadata,
    _node_fk(),
    Column("messages", Text, nullable=False, default="[]"),  # JSON array
    Column("metadata", Text, nullable=False, default="{}"),  # JSON object
)

visualization_payloads = Table(
    "visualization_payloads",
    metadata,
    _node_fk(),
    Column("engine", Text, nullable=False),
    Column("config", Text, nullable=False, default="{}"),  # JSON object
    Column("data", Text, nullable=False, default="{}"),  # JSON object
)

data_payloads = Table(
    "data_payloads",
    metadata,
    _node_fk(),
    Column("columns", Text, nullable=False, default="[]"),  # JSON array
    Column("rows", Text, nullable=False, default="[]"),  # JSON array of arrays
    Column("metadata", Text, nullable=False, default="{}"),  # JSON object
)

goal_payloads = Table(
    "goal_payloads",
    metadata,
    _node_fk(),
    Column("description", Text, nullable=False, default=""),
    Column("status", Text, nullable=False, default="active"),
    Column("due_date", Text),
    Column("progress", Integer, nullable=False, default=0),
)

workflow_payloads = Table(
    "workflow_payloads",
    metadata,
    _node_fk(),
    Column("steps", Text, nullable=False, default="[]"),  # JSON array
    Column("status", Text, nullable=False, default="draft"),
    Column("metadata", Text, nullable=False, default="{}"),  # JSON object
)

# payload kind -> side table
PAYLOAD_TABLES: dict[str, Table] = {
    "note": note_payloads,
    "file": file_payloads,
    "html": html_payloads,
    "code": code_payloads,
    "folder": folder_payloads,
    "external": external_payloads,
    "chat": chat_payloads,
    "visualization": visualization_payloads,
    "data": data_payloads,
    "goal": goal_payloads,
    "workflow": workflow_payloads,
}

# ---------------------------------------------------------------------------
# Indexes for frequently filtered columns
# ---------------------------------------------------------------------------

Index("ix_content_nodes_owner_parent", content_nodes.c.owner_id, content_nodes.c.parent_id)
Index("ix_content_nodes_parent", content_nodes.c.parent_id)
Index("ix_content_nodes_deleted", content_nodes.c.deleted_at)
Index("ix_file_payloads_checksum", file_payloads.c.checksum, file_payloads.c.file_size)
