"""Baseline schema — content tree plus one side table per payload kind.

Revision ID: 001_baseline
Revises: None
Create Date: 2026-10-18

Databases created by ``init_database`` already match this revision and
are stamped instead of migrated.
"""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op

revision: str = "001_baseline"
down_revision: str | None = None
branch_labels: tuple[str, ...] | None = None
depends_on: tuple[str, ...] | None = None


def _node_fk() -> sa.Column:
    return sa.Column(
        "node_id",
        sa.Text,
        sa.ForeignKey("content_nodes.id", ondelete="CASCADE"),
        primary_key=True,
    )


def upgrade() -> None:
    op.create_table(
        "content_nodes",
        sa.Column("id", sa.Text, primary_key=True),
        sa.Column("owner_id", sa.Text, nullable=False),
        sa.Column("title", sa.Text, nullable=False),
        sa.Column("slug", sa.Text, nullable=False),
        sa.Column("parent_id", sa.Text, sa.ForeignKey("content_nodes.id")),
        sa.Column("display_order", sa.Integer, nullable=False, server_default="0"),
        sa.Column("path", sa.Text, nullable=False, server_default=""),
        sa.Column("payload_kind", sa.Text, nullable=False, server_default="folder"),
        sa.Column("category_id", sa.Text),
        sa.Column("custom_icon", sa.Text),
        sa.Column("icon_color", sa.Text),
        sa.Column("is_published", sa.Integer, server_default="0"),
        sa.Column("created_at", sa.Text, nullable=False),
        sa.Column("updated_at", sa.Text, nullable=False),
        sa.Column("deleted_at", sa.Text),
        sa.UniqueConstraint("owner_id", "slug", name="uq_content_nodes_owner_slug"),
    )
    op.create_index("ix_content_nodes_owner_parent", "content_nodes", ["owner_id", "parent_id"])
    op.create_index("ix_content_nodes_parent", "content_nodes", ["parent_id"])
    op.create_index("ix_content_nodes_deleted", "content_nodes", ["deleted_at"])

    op.create_table(
        "note_payloads",
        _node_fk(),
        sa.Column("document", sa.Text, nullable=False),
        sa.Column("markdown", sa.Text, nullable=False),
        sa.Column("search_text", sa.Text, nullable=False),
        sa.Column("metadata", sa.Text, nullable=False),
    )
    op.create_table(
        "file_payloads",
        _node_fk(),
        sa.Column("file_name", sa.Text, nullable=False),
        sa.Column("file_extension", sa.Text),
        sa.Column("mime_type", sa.Text, nullable=False),
        sa.Column("file_size", sa.Integer, nullable=False),
        sa.Column("checksum", sa.Text, nullable=False),
        sa.Column("storage_key", sa.Text, nullable=False),
        sa.Column("storage_url", sa.Text),
        sa.Column("storage_metadata", sa.Text, nullable=False),
        sa.Column("upload_status", sa.Text, nullable=False),
        sa.Column("upload_error", sa.Text),
        sa.Column("uploaded_at", sa.Text),
        sa.Column("width", sa.Integer),
        sa.Column("height", sa.Integer),
        sa.Column("duration", sa.Integer),
        sa.Column("thumbnail_key", sa.Text),
    )
    op.create_index("ix_file_payloads_checksum", "file_payloads", ["checksum", "file_size"])
    op.create_table(
        "html_payloads",
        _node_fk(),
        sa.Column("html", sa.Text, nullable=False),
        sa.Column("search_text", sa.Text, nullable=False),
        sa.Column("is_template", sa.Integer, server_default="0"),
        sa.Column("template_metadata", sa.Text, nullable=False),
    )
    op.create_table(
        "code_payloads",
        _node_fk(),
        sa.Column("code", sa.Text, nullable=False),
        sa.Column("language", sa.Text, nullable=False),
        sa.Column("metadata", sa.Text, nullable=False),
    )
    op.create_table(
        "folder_payloads",
        _node_fk(),
        sa.Column("view_mode", sa.Text, nullable=False),
        sa.Column("sort_mode", sa.Text),
        sa.Column("view_prefs", sa.Text, nullable=False),
        sa.Column("include_referenced_content", sa.Integer, server_default="0"),
    )
    op.create_table(
        "external_payloads",
        _node_fk(),
        sa.Column("url", sa.Text, nullable=False),
        sa.Column("subtype", sa.Text, nullable=False),
        sa.Column("preview", sa.Text, nullable=False),
    )
    op.create_table(
        "chat_payloads",
        _node_fk(),
        sa.Column("messages", sa.Text, nullable=False),
        sa.Column("metadata", sa.Text, nullable=False),
    )
    op.create_table(
        "visualization_payloads",
        _node_fk(),
        sa.Column("engine", sa.Text, nullable=False),
        sa.Column("config", sa.Text, nullable=False),
        sa.Column("data", sa.Text, nullable=False),
    )
    op.create_table(
        "data_payloads",
        _node_fk(),
        sa.Column("columns", sa.Text, nullable=False),
        sa.Column("rows", sa.Text, nullable=False),
        sa.Column("metadata", sa.Text, nullable=False),
    )
    op.create_table(
        "goal_payloads",
        _node_fk(),
        sa.Column("description", sa.Text, nullable=False),
        sa.Column("status", sa.Text, nullable=False),
        sa.Column("due_date", sa.Text),
        sa.Column("progress", sa.Integer, nullable=False),
    )
    op.create_table(
        "workflow_payloads",
        _node_fk(),
        sa.Column("steps", sa.Text, nullable=False),
        sa.Column("status", sa.Text, nullable=False),
        sa.Column("metadata", sa.Text, nullable=False),
    )


def downgrade() -> None:
    for table in (
        "workflow_payloads",
        "goal_payloads",
        "data_payloads",
        "visualization_payloads",
        "chat_payloads",
        "external_payloads",
        "folder_payloads",
        "code_payloads",
        "html_payloads",
        "file_payloads",
        "note_payloads",
    ):
        op.drop_table(table)
    op.drop_table("content_nodes")
