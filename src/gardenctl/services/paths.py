"""PathMaintainer — materialized ancestry paths.

A node's ``path`` is its ancestor ids, root first, joined with ``/``.
Roots have the empty path.  Paths are derived data: the ``parent_id``
chain is authoritative and :meth:`PathMaintainer.propagate` rewrites the
subtree after any reparent.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from gardenctl.domain.errors import NotFoundError, TreeDepthError
from gardenctl.domain.nodes import PATH_SEPARATOR, join_path
from gardenctl.services._helpers import now_iso
from gardenctl.services.base import BaseService
from gardenctl.services.telemetry import annotate

if TYPE_CHECKING:
    from gardenctl.infrastructure.store import StoreTransaction

logger = logging.getLogger(__name__)


class PathMaintainer(BaseService):
    """Computes, persists, and propagates materialized paths."""

    def compute_path(self, txn: StoreTransaction, node_id: str) -> str:
        """Walk the parent chain of *node_id* up to its root.

        Raises:
            NotFoundError: *node_id* does not exist.
            TreeDepthError: The chain is longer than the depth ceiling.
        """
        ancestors: list[str] = []
        current = txn.parent_of(node_id)
        while current is not None:
            ancestors.append(current)
            if len(ancestors) > self.max_depth:
                msg = f"Tree depth exceeds limit ({self.max_depth}) above {node_id}"
                raise TreeDepthError(msg, detail={"node_id": node_id})
            current = txn.parent_of(current)
        ancestors.reverse()
        return PATH_SEPARATOR.join(ancestors)

    def recompute(self, txn: StoreTransaction, node_id: str) -> str:
        """Compute and persist the path of a single node."""
        path = self.compute_path(txn, node_id)
        txn.update_node(node_id, path=path)
        return path

    def propagate(self, node_id: str) -> int:
        """Recompute *node_id* and every descendant in one transaction.

        Walks the subtree as an explicit worklist.  Tombstoned descendants
        are rewritten too, so a restore never sees a stale path.

        Returns:
            Number of nodes whose path was rewritten.

        Raises:
            TreeDepthError: The subtree is deeper than the ceiling; nothing
                is written.
        """
        with self._store.transaction() as txn:
            if txn.node_row(node_id) is None:
                raise NotFoundError(f"Content not found: {node_id}")
            root_path = self.recompute(txn, node_id)
            count = 1
            worklist = [(node_id, root_path, 1)]
            while worklist:
                parent_id, parent_path, depth = worklist.pop()
                child_ids = txn.child_ids(parent_id)
                if child_ids and depth > self.max_depth:
                    msg = f"Tree depth exceeds limit ({self.max_depth}) below {node_id}"
                    raise TreeDepthError(msg, detail={"node_id": node_id})
                child_path = join_path(parent_path, parent_id)
                for child_id in child_ids:
                    txn.update_node(child_id, path=child_path)
                    count += 1
                    worklist.append((child_id, child_path, depth + 1))
        logger.debug("Propagated paths from %s to %d nodes", node_id, count)
        annotate(paths_rewritten=count)
        return count

    def rebuild_all(self, owner_id: str | None = None) -> int:
        """Recompute every path for *owner_id* (all owners when None).

        Parent chains are resolved in memory from a single read.

        Returns:
            Number of rows whose stored path changed.
        """
        updated = 0
        with self._store.transaction() as txn:
            nodes = txn.owner_nodes(owner_id, include_deleted=True)
            parents = {n.id: n.parent_id for n in nodes}
            for node in nodes:
                path = self._path_from_map(node.id, parents, txn)
                if path != node.path:
                    txn.update_node(node.id, path=path, updated_at=now_iso())
                    updated += 1
        logger.info("Rebuilt paths for %s: %d updated", owner_id or "all owners", updated)
        return updated

    def _path_from_map(
        self,
        node_id: str,
        parents: dict[str, str | None],
        txn: StoreTransaction,
    ) -> str:
        ancestors: list[str] = []
        current = parents[node_id]
        while current is not None:
            ancestors.append(current)
            if len(ancestors) > self.max_depth:
                msg = f"Tree depth exceeds limit ({self.max_depth}) above {node_id}"
                raise TreeDepthError(msg, detail={"node_id": node_id})
            current = parents[current] if current in parents else txn.parent_of(current)
        ancestors.reverse()
        return PATH_SEPARATOR.join(ancestors)
