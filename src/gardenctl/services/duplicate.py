"""DuplicationEngine — deep copy of a node or folder subtree.

Copies get new ids, ``<slug>-copy-<epoch-ms>`` slugs, `` (Copy)`` titles
and ``is_published = False``.  Payloads are copied by value; file copies
point at the original storage key, so the blob itself is shared.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from sqlalchemy.exc import IntegrityError

from gardenctl.domain.errors import SlugConflictError, TreeDepthError
from gardenctl.domain.ids import new_node_id
from gardenctl.domain.nodes import copy_title, is_folder, join_path
from gardenctl.domain.ordering import SiblingEntry, sort_key
from gardenctl.domain.slugs import copy_slug
from gardenctl.services._helpers import now_iso
from gardenctl.services.base import BaseService
from gardenctl.services.payloads import attach_payload
from gardenctl.services.slugs import is_slug_violation, unique_slug
from gardenctl.services.telemetry import annotate

if TYPE_CHECKING:
    from gardenctl.domain.nodes import ContentNode
    from gardenctl.infrastructure.store import StoreTransaction

logger = logging.getLogger(__name__)


class DuplicationEngine(BaseService):
    """Duplicates one node (and its live subtree) per call, atomically."""

    def duplicate(
        self,
        node_id: str,
        owner_id: str,
        target_parent_id: str | None = None,
    ) -> ContentNode:
        """Copy *node_id* next to the original, or under *target_parent_id*.

        The copy keeps the original's display order.  Folder children are
        copied in canonical order under the new folder, level by level.

        Raises:
            NotFoundError: Source or target parent missing or tombstoned.
            ForbiddenError: Source or target parent owned by someone else.
            ValidationError: Target parent is not a folder.
            TreeDepthError: Subtree deeper than the ceiling; nothing is written.
        """
        now = now_iso()
        try:
            with self._store.transaction() as txn:
                source = txn.require_node(node_id, owner_id, with_payload=True)
                parent_id = source.parent_id
                parent_path = source.path
                if target_parent_id is not None:
                    parent = txn.require_folder(target_parent_id, owner_id, label="Target parent")
                    parent_id = parent.id
                    parent_path = join_path(parent.path, parent.id)

                root_copy = self._copy_node(txn, source, parent_id, parent_path, now)
                copied = 1

                worklist = [(source, root_copy, 1)] if is_folder(source) else []
                while worklist:
                    original, copy, depth = worklist.pop()
                    children = self._live_children(txn, original)
                    if children and depth > self.max_depth:
                        msg = f"Tree depth exceeds limit ({self.max_depth}) below {node_id}"
                        raise TreeDepthError(msg, detail={"node_id": node_id})
                    child_path = join_path(copy.path, copy.id)
                    for child in children:
                        child_copy = self._copy_node(txn, child, copy.id, child_path, now)
                        copied += 1
                        if is_folder(child):
                            worklist.append((child, child_copy, depth + 1))
        except IntegrityError as exc:
            if not is_slug_violation(exc):
                raise
            msg = f"Slug collision while duplicating {node_id}"
            raise SlugConflictError(msg, detail={"node_id": node_id}) from None

        logger.debug("Duplicated %s as %s (%d nodes)", node_id, root_copy.id, copied)
        annotate(copied=copied)
        return root_copy

    def _live_children(self, txn: StoreTransaction, node: ContentNode) -> list[ContentNode]:
        children = [
            txn.require_node(child.id, node.owner_id, with_payload=True)
            for child in txn.sibling_nodes(node.owner_id, node.id)
        ]
        return sorted(
            children,
            key=lambda n: sort_key(SiblingEntry(n.id, n.title, n.display_order)),
        )

    def _copy_node(
        self,
        txn: StoreTransaction,
        original: ContentNode,
        parent_id: str | None,
        parent_path: str,
        now: str,
    ) -> ContentNode:
        draft = {
            "id": new_node_id(),
            "owner_id": original.owner_id,
            "title": copy_title(original.title),
            "slug": unique_slug(txn.conn, copy_slug(original.slug), original.owner_id),
            "parent_id": parent_id,
            "display_order": original.display_order,
            "path": parent_path,
            "category_id": original.category_id,
            "custom_icon": original.custom_icon,
            "icon_color": original.icon_color,
            "is_published": 0,
            "created_at": now,
            "updated_at": now,
        }
        payload = original.payload.copy_for_duplicate() if original.payload is not None else None
        return attach_payload(txn, draft, payload_data=payload)
