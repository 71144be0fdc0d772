"""ContentService — the facade over the content tree.

Every public method returns a :class:`ServiceResult`.  Component engines
raise :class:`StoreError` subclasses; this layer converts them into
structured errors, so callers never see exceptions for expected failures.

Pipelines:

- create: VALIDATE → ALLOCATE SLUG → PERSIST NODE + PAYLOAD → RESPOND
- move:   VALIDATE → SPLICE + RENUMBER → PROPAGATE PATHS → RESPOND
- upload: see :mod:`gardenctl.services.upload`
"""

from __future__ import annotations

import logging
from collections import defaultdict
from typing import TYPE_CHECKING, Any

from gardenctl.domain.errors import (
    ForbiddenError,
    NotFoundError,
    StoreError,
    TreeDepthError,
)
from gardenctl.domain.ids import new_node_id
from gardenctl.domain.nodes import validate_title
from gardenctl.domain.ordering import SiblingEntry, changed_orders, sort_key, sort_siblings
from gardenctl.domain.payloads import resolve_payload
from gardenctl.services._helpers import now_iso
from gardenctl.services.base import BaseService
from gardenctl.services.duplicate import DuplicationEngine
from gardenctl.services.ordering import OrderingEngine
from gardenctl.services.payloads import attach_payload, node_draft
from gardenctl.services.result import ServiceResult
from gardenctl.services.slugs import insert_with_slug_retry
from gardenctl.services.telemetry import trace_span, traced
from gardenctl.services.upload import UploadLifecycle

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

    from gardenctl.domain.nodes import ContentNode
    from gardenctl.domain.payloads import PayloadModel
    from gardenctl.infrastructure.store import ContentStore, StoreTransaction

logger = logging.getLogger(__name__)


class ContentService(BaseService):
    """Creates, moves, duplicates, uploads, reads, and trashes content nodes."""

    def __init__(self, store: ContentStore) -> None:
        super().__init__(store)
        self._ordering = OrderingEngine(store)
        self._duplication = DuplicationEngine(store)
        self._uploads = UploadLifecycle(store)

    # ------------------------------------------------------------------
    # Creation
    # ------------------------------------------------------------------

    @traced
    def create_node(
        self,
        owner_id: str,
        title: str,
        *,
        parent_id: str | None = None,
        payload: PayloadModel | Mapping[str, Any] | None = None,
        category_id: str | None = None,
        custom_icon: str | None = None,
        icon_color: str | None = None,
    ) -> ServiceResult:
        """Create a node with at most one payload, appended to its sibling set.

        *payload* is ``None`` (plain folder), a payload model, a tagged
        mapping ``{"kind": ...}``, or a single-key ``{kind: data}`` mapping.
        """
        op = "create_node"
        try:
            max_length = self._store.settings.tree.max_title_length
            clean_title = validate_title(title, max_length=max_length)
            resolved = resolve_payload(payload)
            node_id = new_node_id()
            now = now_iso()

            def write(txn: StoreTransaction, slug: str) -> ContentNode:
                draft = node_draft(
                    txn,
                    node_id=node_id,
                    owner_id=owner_id,
                    title=clean_title,
                    slug=slug,
                    parent_id=parent_id,
                    now=now,
                    category_id=category_id,
                    custom_icon=custom_icon,
                    icon_color=icon_color,
                )
                return attach_payload(txn, draft, payload_data=resolved)

            with trace_span("persist", kind=resolved.kind if resolved else "folder"):
                node = insert_with_slug_retry(
                    self._store,
                    clean_title,
                    owner_id,
                    write,
                    attempts=self._store.settings.tree.slug_retry_attempts,
                )
        except StoreError as exc:
            return self._failure(op, exc)

        logger.debug("Created %s %s (%s)", node.payload_kind, node.id, node.slug)
        return ServiceResult(ok=True, op=op, data=node.to_dict())

    # ------------------------------------------------------------------
    # Structure
    # ------------------------------------------------------------------

    @traced
    def move_node(
        self,
        node_id: str,
        owner_id: str,
        target_parent_id: str | None = None,
        visual_index: int = 0,
        *,
        keep_parent: bool = False,
    ) -> ServiceResult:
        """Reparent and/or reorder a node; ``target_parent_id=None`` means root."""
        op = "move_node"
        try:
            node = self._ordering.move_to(
                node_id,
                owner_id,
                target_parent_id,
                visual_index,
                keep_parent=keep_parent,
            )
        except StoreError as exc:
            return self._failure(op, exc)
        return ServiceResult(ok=True, op=op, data=node.to_dict(include_payload=False))

    @traced
    def duplicate_nodes(
        self,
        node_ids: Iterable[str],
        owner_id: str,
        *,
        target_parent_id: str | None = None,
    ) -> ServiceResult:
        """Duplicate each node independently; failures skip, never abort the batch."""
        op = "duplicate_nodes"
        duplicated: list[dict[str, Any]] = []
        skipped: list[dict[str, Any]] = []
        warnings: list[str] = []

        for node_id in node_ids:
            try:
                with trace_span(f"duplicate:{node_id}"):
                    copy = self._duplication.duplicate(node_id, owner_id, target_parent_id)
            except StoreError as exc:
                logger.warning("Skipping duplicate of %s: %s", node_id, exc.message)
                if isinstance(exc, (NotFoundError, ForbiddenError)):
                    warnings.append(f"Skipped {node_id}: not found or not accessible")
                else:
                    warnings.append(f"Skipped {node_id}: {exc.message}")
                skipped.append({"id": node_id, "code": exc.code, "reason": exc.message})
                continue
            duplicated.append({"original_id": node_id, "new_id": copy.id, "title": copy.title})

        return ServiceResult(
            ok=True,
            op=op,
            data={"duplicated": duplicated, "skipped": skipped},
            warnings=warnings,
        )

    @traced
    def trash_node(self, node_id: str, owner_id: str) -> ServiceResult:
        """Soft-delete a node and its live subtree; compact its sibling set."""
        op = "trash_node"
        now = now_iso()
        try:
            with self._store.transaction() as txn:
                node = txn.require_node(node_id, owner_id)
                trashed = 0
                worklist = [(node_id, 1)]
                while worklist:
                    current, depth = worklist.pop()
                    txn.update_node(current, deleted_at=now, updated_at=now)
                    trashed += 1
                    child_ids = txn.child_ids(current, include_deleted=False)
                    if child_ids and depth > self.max_depth:
                        msg = f"Tree depth exceeds limit ({self.max_depth}) below {node_id}"
                        raise TreeDepthError(msg, detail={"node_id": node_id})
                    worklist.extend((c, depth + 1) for c in child_ids)

                remaining = sort_siblings(txn.sibling_entries(owner_id, node.parent_id))
                txn.set_display_orders(changed_orders(remaining), now=now)
        except StoreError as exc:
            return self._failure(op, exc)

        logger.info("Trashed %s (%d nodes)", node_id, trashed)
        return ServiceResult(ok=True, op=op, data={"node_id": node_id, "trashed": trashed})

    # ------------------------------------------------------------------
    # Uploads
    # ------------------------------------------------------------------

    @traced
    def initiate_upload(
        self,
        owner_id: str,
        file_name: str,
        file_size: int,
        mime_type: str,
        *,
        checksum: str | None = None,
        parent_id: str | None = None,
        title: str | None = None,
        custom_icon: str | None = None,
        icon_color: str | None = None,
    ) -> ServiceResult:
        op = "initiate_upload"
        try:
            data = self._uploads.initiate(
                owner_id,
                file_name,
                file_size,
                mime_type,
                checksum=checksum,
                parent_id=parent_id,
                title=title,
                custom_icon=custom_icon,
                icon_color=icon_color,
            )
        except StoreError as exc:
            return self._failure(op, exc)
        return ServiceResult(ok=True, op=op, data=data)

    @traced
    def finalize_upload(
        self,
        node_id: str,
        owner_id: str,
        *,
        success: bool = True,
        error: str | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> ServiceResult:
        op = "finalize_upload"
        try:
            data = self._uploads.finalize(node_id, owner_id, success, error, metadata)
        except StoreError as exc:
            return self._failure(op, exc)
        return ServiceResult(ok=True, op=op, data=data)

    @traced
    def upload_file(
        self,
        owner_id: str,
        file_name: str,
        data: bytes,
        *,
        mime_type: str | None = None,
        parent_id: str | None = None,
        title: str | None = None,
    ) -> ServiceResult:
        """Single-phase upload: store the bytes and create a ready file node."""
        op = "upload_file"
        try:
            result = self._uploads.upload(
                owner_id,
                file_name,
                data,
                mime_type=mime_type,
                parent_id=parent_id,
                title=title,
            )
        except StoreError as exc:
            return self._failure(op, exc)
        warnings = []
        if result["is_duplicate"]:
            warnings.append(f"Identical content already exists; stored as {result['file_name']!r}")
        return ServiceResult(ok=True, op=op, data=result, warnings=warnings)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    @traced
    def get_node(self, node_id: str, owner_id: str) -> ServiceResult:
        """A live node with its payload."""
        op = "get_node"
        try:
            with self._store.transaction() as txn:
                node = txn.require_node(node_id, owner_id, with_payload=True)
        except StoreError as exc:
            return self._failure(op, exc)
        return ServiceResult(ok=True, op=op, data=node.to_dict())

    @traced
    def list_children(self, owner_id: str, parent_id: str | None = None) -> ServiceResult:
        """Live children of *parent_id* (roots when None) in display order."""
        op = "list_children"
        try:
            with self._store.transaction() as txn:
                if parent_id is not None:
                    txn.require_node(parent_id, owner_id)
                children = self._ordering.list_siblings(txn, owner_id, parent_id)
        except StoreError as exc:
            return self._failure(op, exc)
        items = [c.to_dict(include_payload=False) for c in children]
        return ServiceResult(
            ok=True,
            op=op,
            data={"parent_id": parent_id, "items": items, "count": len(items)},
        )

    @traced
    def get_ancestors(self, node_id: str, owner_id: str) -> ServiceResult:
        """Breadcrumbs root-first, read from the materialized path."""
        op = "get_ancestors"
        try:
            with self._store.transaction() as txn:
                node = txn.require_node(node_id, owner_id)
                ancestors = []
                for ancestor_id in node.ancestor_ids:
                    ancestor = txn.get_node(ancestor_id, include_deleted=True)
                    if ancestor is None:
                        continue
                    ancestors.append(
                        {"id": ancestor.id, "title": ancestor.title, "slug": ancestor.slug}
                    )
        except StoreError as exc:
            return self._failure(op, exc)
        return ServiceResult(ok=True, op=op, data={"node_id": node_id, "ancestors": ancestors})

    @traced
    def get_tree(self, owner_id: str) -> ServiceResult:
        """Nested projection of the owner's live tree, rebuilt from storage."""
        op = "get_tree"
        try:
            with self._store.transaction() as txn:
                nodes = txn.owner_nodes(owner_id)
            tree = self._nest(nodes)
        except StoreError as exc:
            return self._failure(op, exc)
        return ServiceResult(ok=True, op=op, data={"tree": tree, "count": len(nodes)})

    def _nest(self, nodes: list[ContentNode]) -> list[dict[str, Any]]:
        by_parent: dict[str | None, list[ContentNode]] = defaultdict(list)
        for node in nodes:
            by_parent[node.parent_id].append(node)

        def entry(node: ContentNode) -> dict[str, Any]:
            return {
                "id": node.id,
                "title": node.title,
                "slug": node.slug,
                "kind": str(node.payload_kind),
                "display_order": node.display_order,
                "children": [],
            }

        roots = [entry(n) for n in self._sorted(by_parent[None])]
        stack = [(root, 1) for root in roots]
        while stack:
            item, depth = stack.pop()
            children = by_parent.get(item["id"], [])
            if children and depth > self.max_depth:
                msg = f"Tree depth exceeds limit ({self.max_depth}) below {item['id']}"
                raise TreeDepthError(msg, detail={"node_id": item["id"]})
            for child in self._sorted(children):
                child_entry = entry(child)
                item["children"].append(child_entry)
                stack.append((child_entry, depth + 1))
        return roots

    @staticmethod
    def _sorted(nodes: list[ContentNode]) -> list[ContentNode]:
        return sorted(
            nodes,
            key=lambda n: sort_key(SiblingEntry(n.id, n.title, n.display_order)),
        )
