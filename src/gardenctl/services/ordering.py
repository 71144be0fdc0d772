"""OrderingEngine — reparent and reorder with dense sibling orders.

A move loads the destination's live sibling set in canonical order,
splices the node in at the requested visual index, renumbers the whole
set 0..n-1, and writes the changed rows in one transaction.  When the
parent changes, the source set is compacted in the same transaction and
paths are propagated afterwards.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from gardenctl.domain.errors import TreeDepthError, ValidationError
from gardenctl.domain.ordering import (
    SiblingEntry,
    changed_orders,
    sort_key,
    sort_siblings,
    splice,
)
from gardenctl.services._helpers import now_iso
from gardenctl.services.base import BaseService
from gardenctl.services.paths import PathMaintainer

if TYPE_CHECKING:
    from gardenctl.domain.nodes import ContentNode
    from gardenctl.infrastructure.store import StoreTransaction

logger = logging.getLogger(__name__)


class OrderingEngine(BaseService):
    """Moves nodes between and within sibling sets."""

    def move_to(
        self,
        node_id: str,
        owner_id: str,
        new_parent_id: str | None,
        visual_index: int,
        *,
        keep_parent: bool = False,
    ) -> ContentNode:
        """Place *node_id* at *visual_index* under *new_parent_id* (root when None).

        With *keep_parent*, *new_parent_id* is ignored and the node is only
        reordered among its current siblings.

        Raises:
            NotFoundError: Node or target parent missing or tombstoned.
            ForbiddenError: Node or target parent owned by someone else.
            ValidationError: Target is not a folder, is the node itself, or
                is one of its descendants.
            TreeDepthError: The target's ancestry exceeds the depth ceiling.
        """
        now = now_iso()
        with self._store.transaction() as txn:
            node = txn.require_node(node_id, owner_id)
            target = node.parent_id if keep_parent else new_parent_id

            if target is not None and not keep_parent:
                txn.require_folder(target, owner_id, label="Target parent")
                if target == node_id:
                    raise ValidationError("Cannot move content into itself")
                if self.is_descendant(txn, node_id, target):
                    raise ValidationError("Cannot move content into its own descendant")

            siblings = sort_siblings(txn.sibling_entries(owner_id, target))
            moving = SiblingEntry(id=node.id, title=node.title, display_order=node.display_order)
            ordered = splice(siblings, moving, visual_index)
            parent_changed = target != node.parent_id

            orders = changed_orders(ordered)
            if parent_changed:
                position = next(i for i, e in enumerate(ordered) if e.id == node_id)
                orders.pop(node_id, None)
                txn.update_node(
                    node_id,
                    parent_id=target,
                    display_order=position,
                    updated_at=now,
                )
            txn.set_display_orders(orders, now=now)

            if parent_changed:
                # Node already carries the new parent_id, so it is excluded here.
                source = sort_siblings(txn.sibling_entries(owner_id, node.parent_id))
                txn.set_display_orders(changed_orders(source), now=now)

            logger.debug(
                "Moved %s under %s at %d: %s",
                node_id,
                target or "<root>",
                visual_index,
                [e.id for e in ordered],
            )

        if parent_changed:
            PathMaintainer(self._store).propagate(node_id)

        with self._store.transaction() as txn:
            return txn.require_node(node_id, owner_id)

    def list_siblings(
        self,
        txn: StoreTransaction,
        owner_id: str,
        parent_id: str | None,
    ) -> list[ContentNode]:
        """Live children of *parent_id* (roots when None) in canonical order."""
        nodes = txn.sibling_nodes(owner_id, parent_id)
        return sorted(
            nodes,
            key=lambda n: sort_key(SiblingEntry(n.id, n.title, n.display_order)),
        )

    def is_descendant(self, txn: StoreTransaction, ancestor_id: str, node_id: str) -> bool:
        """True when *node_id* lies strictly below *ancestor_id*.

        Walks *node_id*'s parent chain upward; never trusts stored paths.

        Raises:
            TreeDepthError: The chain exceeds the depth ceiling.
        """
        current = txn.parent_of(node_id)
        hops = 0
        while current is not None:
            if current == ancestor_id:
                return True
            hops += 1
            if hops > self.max_depth:
                msg = f"Tree depth exceeds limit ({self.max_depth}) above {node_id}"
                raise TreeDepthError(msg, detail={"node_id": node_id})
            current = txn.parent_of(current)
        return False
