"""Payload registry — persist a node together with its single payload.

The node row carries ``payload_kind`` as its discriminant and at most one
side-table row holds the payload data.  Both are written inside the
caller's transaction so they commit or roll back together.
"""

from __future__ import annotations

import logging
from collections.abc import Collection, Mapping
from typing import TYPE_CHECKING, Any

from sqlalchemy import select

from gardenctl.domain.errors import ValidationError
from gardenctl.domain.nodes import ContentNode, join_path
from gardenctl.domain.payloads import (
    PayloadKind,
    PayloadModel,
    build_payload,
    resolve_payload,
)
from gardenctl.infrastructure.database.schema import PAYLOAD_TABLES

if TYPE_CHECKING:
    from sqlalchemy import Connection

    from gardenctl.infrastructure.store import StoreTransaction

logger = logging.getLogger(__name__)


def node_draft(
    txn: StoreTransaction,
    *,
    node_id: str,
    owner_id: str,
    title: str,
    slug: str,
    parent_id: str | None,
    now: str,
    display_order: int | None = None,
    **attrs: Any,
) -> dict[str, Any]:
    """Column values for a new ``content_nodes`` row.

    Validates the parent (live, owned, a folder), derives the path from it,
    and appends the node at the end of its sibling set unless
    *display_order* is given.
    """
    path = ""
    if parent_id is not None:
        parent = txn.require_folder(parent_id, owner_id)
        path = join_path(parent.path, parent.id)
    if display_order is None:
        display_order = len(txn.sibling_entries(owner_id, parent_id))
    return {
        "id": node_id,
        "owner_id": owner_id,
        "title": title,
        "slug": slug,
        "parent_id": parent_id,
        "display_order": display_order,
        "path": path,
        "category_id": attrs.get("category_id"),
        "custom_icon": attrs.get("custom_icon"),
        "icon_color": attrs.get("icon_color"),
        "is_published": int(bool(attrs.get("is_published", False))),
        "created_at": now,
        "updated_at": now,
    }


def attach_payload(
    txn: StoreTransaction,
    draft: dict[str, Any],
    payload_kind: str | None = None,
    payload_data: PayloadModel | Mapping[str, Any] | None = None,
) -> ContentNode:
    """Insert the node row and its (zero or one) payload row.

    *payload_kind* names the variant and *payload_data* holds its fields.
    With no kind, *payload_data* may describe the whole payload (a model, a
    tagged mapping, or a single-key ``{kind: data}`` mapping).  With
    neither, the node is a plain folder.

    Raises:
        ValidationError: Unknown kind, more than one kind, kind/data
            mismatch, or invalid payload data.
    """
    payload: PayloadModel | None
    if isinstance(payload_data, PayloadModel):
        if payload_kind is not None and payload_data.kind != payload_kind:
            msg = f"Payload kind mismatch: {payload_kind!r} vs {payload_data.kind!r}"
            raise ValidationError(msg)
        payload = payload_data
    elif payload_kind is not None:
        payload = build_payload(payload_kind, payload_data)
    else:
        payload = resolve_payload(payload_data)

    kind = PayloadKind(payload.kind) if payload is not None else PayloadKind.FOLDER
    values = {**draft, "payload_kind": kind.value}
    txn.insert_node(values)
    if payload is not None:
        txn.insert_payload(values["id"], payload)
    logger.debug("Inserted node %s (%s)", values["id"], kind.value)
    return ContentNode.from_row(values, payload)


def payload_index(
    conn: Connection, node_ids: Collection[str] | None = None
) -> dict[str, list[str]]:
    """Map node id to the payload kinds stored for it, across all side tables.

    *node_ids* restricts the scan; None scans every table in full.
    """
    index: dict[str, list[str]] = {}
    for kind, table in PAYLOAD_TABLES.items():
        stmt = select(table.c.node_id)
        if node_ids is not None:
            stmt = stmt.where(table.c.node_id.in_(list(node_ids)))
        for row in conn.execute(stmt):
            index.setdefault(row.node_id, []).append(kind)
    return index
