"""ContentStore — repository pattern with transaction coordination.

The ContentStore is the single dependency injected into every service. It
owns the database engine and the blob/metadata collaborators.  The
:meth:`ContentStore.transaction` context manager yields a
:class:`StoreTransaction` whose helpers are the only way services read and
write node rows:

- **DB**: Native SQLAlchemy ``engine.begin()`` with auto-commit/rollback.
  Any exception raised inside the block rolls every write back.
- **Blobs**: never touched inside a transaction.  Network or disk transfer
  happens before or after, so a slow upload never holds the write lock.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Any

from sqlalchemy import and_, insert, select, update

from gardenctl.domain.errors import ForbiddenError, NotFoundError, ValidationError
from gardenctl.domain.nodes import ContentNode, is_folder
from gardenctl.domain.ordering import SiblingEntry
from gardenctl.domain.payloads import PayloadModel, get_payload_model
from gardenctl.infrastructure.blobs import (
    BlobStore,
    ImageExtractor,
    LocalBlobStore,
    MetadataExtractor,
    NullMetadataExtractor,
)
from gardenctl.infrastructure.database.engine import STATE_DIRNAME, init_database
from gardenctl.infrastructure.database.schema import PAYLOAD_TABLES, content_nodes

if TYPE_CHECKING:
    from collections.abc import Iterator

    from sqlalchemy import Connection
    from sqlalchemy.engine import Engine

    from gardenctl.config.settings import GardenSettings

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# StoreTransaction — yielded to callers within transaction()
# ---------------------------------------------------------------------------


@dataclass
class StoreTransaction:
    """Active transaction context with consolidated data-access helpers."""

    conn: Connection

    # ------------------------------------------------------------------
    # Node reads
    # ------------------------------------------------------------------

    def node_row(self, node_id: str) -> Any | None:
        """Raw ``content_nodes`` row (tombstoned rows included)."""
        return self.conn.execute(
            select(content_nodes).where(content_nodes.c.id == node_id)
        ).first()

    def get_node(
        self,
        node_id: str,
        *,
        with_payload: bool = False,
        include_deleted: bool = False,
    ) -> ContentNode | None:
        """Load a node, optionally with its payload.  None if missing."""
        row = self.node_row(node_id)
        if row is None:
            return None
        if row.deleted_at is not None and not include_deleted:
            return None
        payload = self.load_payload(node_id, row.payload_kind) if with_payload else None
        return ContentNode.from_row(row._mapping, payload)

    def require_node(
        self,
        node_id: str,
        owner_id: str,
        *,
        with_payload: bool = False,
        label: str = "Content",
    ) -> ContentNode:
        """Load a live node owned by *owner_id*.

        Raises:
            NotFoundError: Missing or tombstoned.
            ForbiddenError: Owned by someone else.
        """
        node = self.get_node(node_id, with_payload=with_payload)
        if node is None:
            raise NotFoundError(f"{label} not found: {node_id}")
        if node.owner_id != owner_id:
            raise ForbiddenError(f"Access denied to {label.lower()}: {node_id}")
        return node

    def require_folder(self, node_id: str, owner_id: str, *, label: str = "Parent") -> ContentNode:
        """Like :meth:`require_node`, and the node must be able to hold children."""
        node = self.require_node(node_id, owner_id, label=label)
        if not is_folder(node):
            msg = f"{label} is not a folder ({node.payload_kind}): {node_id}"
            raise ValidationError(msg)
        return node

    def parent_of(self, node_id: str) -> str | None:
        row = self.conn.execute(
            select(content_nodes.c.parent_id).where(content_nodes.c.id == node_id)
        ).first()
        if row is None:
            raise NotFoundError(f"Content not found: {node_id}")
        return row.parent_id

    def child_ids(self, parent_id: str, *, include_deleted: bool = True) -> list[str]:
        stmt = select(content_nodes.c.id).where(content_nodes.c.parent_id == parent_id)
        if not include_deleted:
            stmt = stmt.where(content_nodes.c.deleted_at.is_(None))
        return [r.id for r in self.conn.execute(stmt)]

    def sibling_nodes(self, owner_id: str, parent_id: str | None) -> list[ContentNode]:
        """Live sibling set of *parent_id* (roots of *owner_id* when None), unordered."""
        parent_clause = (
            content_nodes.c.parent_id.is_(None)
            if parent_id is None
            else content_nodes.c.parent_id == parent_id
        )
        rows = self.conn.execute(
            select(content_nodes).where(
                and_(
                    content_nodes.c.owner_id == owner_id,
                    parent_clause,
                    content_nodes.c.deleted_at.is_(None),
                )
            )
        ).fetchall()
        return [ContentNode.from_row(r._mapping) for r in rows]

    def sibling_entries(self, owner_id: str, parent_id: str | None) -> list[SiblingEntry]:
        return [
            SiblingEntry(id=n.id, title=n.title, display_order=n.display_order)
            for n in self.sibling_nodes(owner_id, parent_id)
        ]

    def owner_nodes(
        self,
        owner_id: str | None,
        *,
        include_deleted: bool = False,
    ) -> list[ContentNode]:
        """Every node of *owner_id* (all owners when None)."""
        stmt = select(content_nodes)
        if owner_id is not None:
            stmt = stmt.where(content_nodes.c.owner_id == owner_id)
        if not include_deleted:
            stmt = stmt.where(content_nodes.c.deleted_at.is_(None))
        return [ContentNode.from_row(r._mapping) for r in self.conn.execute(stmt)]

    # ------------------------------------------------------------------
    # Payload access
    # ------------------------------------------------------------------

    def load_payload(self, node_id: str, kind: str) -> PayloadModel | None:
        """Load the payload row for *node_id* from the *kind* side table."""
        table = PAYLOAD_TABLES[kind]
        row = self.conn.execute(select(table).where(table.c.node_id == node_id)).first()
        if row is None:
            return None
        return get_payload_model(kind).from_row(row._mapping)

    def insert_payload(self, node_id: str, payload: PayloadModel) -> None:
        table = PAYLOAD_TABLES[payload.kind]
        self.conn.execute(insert(table).values(node_id=node_id, **payload.to_row()))

    # ------------------------------------------------------------------
    # Node writes
    # ------------------------------------------------------------------

    def insert_node(self, values: dict[str, Any]) -> None:
        self.conn.execute(insert(content_nodes).values(**values))

    def update_node(self, node_id: str, **values: Any) -> int:
        result = self.conn.execute(
            update(content_nodes).where(content_nodes.c.id == node_id).values(**values)
        )
        return result.rowcount

    def set_display_orders(self, orders: dict[str, int], *, now: str) -> None:
        """Write new display orders (only the rows passed in)."""
        for node_id, order in orders.items():
            self.update_node(node_id, display_order=order, updated_at=now)


# ---------------------------------------------------------------------------
# ContentStore — the repository
# ---------------------------------------------------------------------------


class ContentStore:
    """Repository encapsulating database and blob-store access.

    Constructed once from :class:`GardenSettings` and shared by every
    service.  Blob and metadata collaborators default to local
    implementations under the store root; embedders pass their own.
    ``[uploads] extract_metadata = false`` swaps in a no-op extractor.
    """

    def __init__(
        self,
        settings: GardenSettings,
        *,
        blobs: BlobStore | None = None,
        extractor: MetadataExtractor | None = None,
    ) -> None:
        self._settings = settings
        self._engine: Engine = init_database(self.root)
        self._blobs: BlobStore = blobs or LocalBlobStore(self.root / STATE_DIRNAME / "blobs")
        if extractor is None:
            extractor = (
                ImageExtractor(self._blobs, thumbnail_size=settings.uploads.thumbnail_size)
                if settings.uploads.extract_metadata
                else NullMetadataExtractor()
            )
        self._extractor: MetadataExtractor = extractor

    @property
    def root(self) -> Path:
        """The store root directory."""
        return self._settings.store_root

    @property
    def engine(self) -> Engine:
        """The underlying SQLAlchemy engine (for direct access when needed)."""
        return self._engine

    @property
    def settings(self) -> GardenSettings:
        return self._settings

    @property
    def blobs(self) -> BlobStore:
        return self._blobs

    @property
    def extractor(self) -> MetadataExtractor:
        return self._extractor

    def close(self) -> None:
        """Dispose of the engine's connection pool."""
        self._engine.dispose()

    @contextmanager
    def transaction(self) -> Iterator[StoreTransaction]:
        """All-or-nothing unit of work against the database.

        Commits when the block exits normally; any exception rolls back
        every write made through the yielded transaction and propagates.

        Usage::

            with store.transaction() as txn:
                txn.insert_node({...})
                txn.insert_payload(node_id, payload)
                # Both commit on success, both roll back on failure.
        """
        with self._engine.begin() as conn:
            yield StoreTransaction(conn=conn)
