"""CheckService — integrity checking and repair.

Single command following the linter pattern.  Five categories: payload
consistency, parent structure, materialized paths, sibling ordering, slugs.
"""

from __future__ import annotations

import shutil
from collections import defaultdict
from pathlib import Path
from typing import TYPE_CHECKING, Any

from gardenctl.domain.errors import StoreError
from gardenctl.domain.nodes import PATH_SEPARATOR
from gardenctl.domain.ordering import changed_orders, is_contiguous, sort_siblings
from gardenctl.domain.payloads import PayloadKind
from gardenctl.domain.slugs import is_valid_slug
from gardenctl.infrastructure.database.engine import STATE_DIRNAME, db_path_for
from gardenctl.services._helpers import backup_stamp, now_iso
from gardenctl.services.base import BaseService
from gardenctl.services.paths import PathMaintainer
from gardenctl.services.payloads import payload_index
from gardenctl.services.result import ServiceResult
from gardenctl.services.telemetry import annotate, trace_span, traced

if TYPE_CHECKING:
    from gardenctl.domain.nodes import ContentNode


# ---------------------------------------------------------------------------
# Issue severity and category constants
# ---------------------------------------------------------------------------

SEVERITY_ERROR = "error"
SEVERITY_WARNING = "warning"
SEVERITY_INFO = "info"

CAT_PAYLOAD = "payload_consistency"
CAT_STRUCTURE = "parent_structure"
CAT_PATHS = "materialized_paths"
CAT_ORDERING = "sibling_ordering"
CAT_SLUGS = "slugs"


def _issue(severity: str, category: str, node_id: str | None, message: str) -> dict[str, Any]:
    return {"severity": severity, "category": category, "node_id": node_id, "message": message}


# ---------------------------------------------------------------------------
# CheckService
# ---------------------------------------------------------------------------


class CheckService(BaseService):
    """Handles content-tree integrity checking and repair."""

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    @traced
    def check(self, owner_id: str | None = None) -> ServiceResult:
        """Report integrity issues without modifying anything."""
        with self._store.transaction() as txn:
            everything = txn.owner_nodes(None, include_deleted=True)
            scope = [n for n in everything if owner_id is None or n.owner_id == owner_id]
            index = payload_index(txn.conn, None if owner_id is None else {n.id for n in scope})

        by_id = {n.id: n for n in everything}

        issues: list[dict[str, Any]] = []
        with trace_span("payload_consistency", nodes=len(scope)):
            issues.extend(self._check_payloads(scope, index))
        with trace_span("parent_structure"):
            structural, broken = self._check_structure(scope, by_id)
            issues.extend(structural)
        with trace_span("materialized_paths", skipped=len(broken)):
            issues.extend(self._check_paths(scope, by_id, broken))
        with trace_span("sibling_ordering"):
            issues.extend(self._check_ordering(scope))
        with trace_span("slugs"):
            issues.extend(
                _issue(SEVERITY_WARNING, CAT_SLUGS, n.id, f"Slug {n.slug!r} is not URL-safe")
                for n in scope
                if not is_valid_slug(n.slug)
            )
        annotate(issues=len(issues))

        return ServiceResult(
            ok=True,
            op="check",
            data={"issues": issues, "count": len(issues)},
        )

    @traced
    def rebuild_paths(self, owner_id: str | None = None) -> ServiceResult:
        """Recompute every materialized path from the parent chains."""
        op = "rebuild_paths"
        backup = self._backup_db()
        try:
            updated = PathMaintainer(self._store).rebuild_all(owner_id)
        except StoreError as exc:
            return self._failure(op, exc)
        return ServiceResult(
            ok=True,
            op=op,
            data={"updated": updated, "backup_path": str(backup)},
        )

    @traced
    def fix(self, owner_id: str | None = None) -> ServiceResult:
        """Repair derived data: paths, then sibling orders."""
        op = "fix"
        backup = self._backup_db()
        fixes: list[str] = []
        try:
            updated = PathMaintainer(self._store).rebuild_all(owner_id)
        except StoreError as exc:
            return self._failure(op, exc)
        if updated:
            fixes.append(f"Rebuilt {updated} materialized paths")

        now = now_iso()
        with self._store.transaction() as txn:
            groups: dict[tuple[str, str | None], list[ContentNode]] = defaultdict(list)
            for node in txn.owner_nodes(owner_id):
                groups[(node.owner_id, node.parent_id)].append(node)
            for (group_owner, parent_id), members in groups.items():
                if is_contiguous(n.display_order for n in members):
                    continue
                ordered = sort_siblings(txn.sibling_entries(group_owner, parent_id))
                txn.set_display_orders(changed_orders(ordered), now=now)
                fixes.append(f"Renumbered {len(ordered)} siblings under {parent_id or '<root>'}")

        return ServiceResult(
            ok=True,
            op=op,
            data={"fixes": fixes, "count": len(fixes), "backup_path": str(backup)},
        )

    # ------------------------------------------------------------------
    # Backups
    # ------------------------------------------------------------------

    def _backup_db(self) -> Path:
        """Create a timestamped backup of the database."""
        backup_dir = self._store.root / STATE_DIRNAME / "backups"
        backup_dir.mkdir(parents=True, exist_ok=True)

        timestamp = backup_stamp()
        backup_path = backup_dir / f"gardenctl-{timestamp}.db"
        shutil.copy2(str(db_path_for(self._store.root)), str(backup_path))

        self._prune_backups(backup_dir)
        return backup_path

    def _prune_backups(self, backup_dir: Path) -> None:
        """Remove old backups beyond the retention count."""
        keep = self._store.settings.check.backup_max_count
        backups = sorted(backup_dir.glob("gardenctl-*.db"))
        if len(backups) > keep:
            for old in backups[: len(backups) - keep]:
                old.unlink(missing_ok=True)

    # ------------------------------------------------------------------
    # Check categories (read-only)
    # ------------------------------------------------------------------

    def _check_payloads(
        self,
        scope: list[ContentNode],
        index: dict[str, list[str]],
    ) -> list[dict[str, Any]]:
        issues = []
        for node in scope:
            kinds = index.get(node.id, [])
            if len(kinds) > 1:
                issues.append(
                    _issue(
                        SEVERITY_ERROR,
                        CAT_PAYLOAD,
                        node.id,
                        f"Node carries {len(kinds)} payloads: {', '.join(sorted(kinds))}",
                    )
                )
            elif kinds and kinds[0] != node.payload_kind:
                issues.append(
                    _issue(
                        SEVERITY_ERROR,
                        CAT_PAYLOAD,
                        node.id,
                        f"payload_kind is {node.payload_kind} but stored payload is {kinds[0]}",
                    )
                )
            elif not kinds and node.payload_kind != PayloadKind.FOLDER:
                issues.append(
                    _issue(
                        SEVERITY_ERROR,
                        CAT_PAYLOAD,
                        node.id,
                        f"payload_kind is {node.payload_kind} but no payload row exists",
                    )
                )
        return issues

    def _check_structure(
        self,
        scope: list[ContentNode],
        by_id: dict[str, ContentNode],
    ) -> tuple[list[dict[str, Any]], set[str]]:
        """Orphans, cross-owner parents, live-under-trashed, cycles.

        Returns the issues plus the ids whose chain could not be walked.
        """
        issues = []
        broken: set[str] = set()
        for node in scope:
            if node.parent_id is None:
                continue
            parent = by_id.get(node.parent_id)
            if parent is None:
                issues.append(
                    _issue(
                        SEVERITY_ERROR,
                        CAT_STRUCTURE,
                        node.id,
                        f"Parent {node.parent_id} does not exist",
                    )
                )
                broken.add(node.id)
                continue
            if parent.owner_id != node.owner_id:
                issues.append(
                    _issue(
                        SEVERITY_ERROR, CAT_STRUCTURE, node.id, "Parent belongs to another owner"
                    )
                )
            if not node.is_deleted and parent.is_deleted:
                issues.append(
                    _issue(
                        SEVERITY_WARNING, CAT_STRUCTURE, node.id, "Live node under a trashed parent"
                    )
                )
            if self._chain(node.id, by_id) is None:
                issues.append(
                    _issue(
                        SEVERITY_ERROR,
                        CAT_STRUCTURE,
                        node.id,
                        f"Parent chain loops or exceeds {self.max_depth} levels",
                    )
                )
                broken.add(node.id)
        return issues, broken

    def _check_paths(
        self,
        scope: list[ContentNode],
        by_id: dict[str, ContentNode],
        broken: set[str],
    ) -> list[dict[str, Any]]:
        issues = []
        for node in scope:
            if node.id in broken:
                continue
            chain = self._chain(node.id, by_id)
            if chain is None:
                continue
            expected = PATH_SEPARATOR.join(chain)
            if node.path != expected:
                issues.append(
                    _issue(
                        SEVERITY_WARNING,
                        CAT_PATHS,
                        node.id,
                        f"Stale path {node.path!r}, expected {expected!r}",
                    )
                )
        return issues

    def _check_ordering(self, scope: list[ContentNode]) -> list[dict[str, Any]]:
        groups: dict[tuple[str, str | None], list[int]] = defaultdict(list)
        for node in scope:
            if not node.is_deleted:
                groups[(node.owner_id, node.parent_id)].append(node.display_order)
        issues = []
        for (_, parent_id), orders in groups.items():
            if not is_contiguous(orders):
                issues.append(
                    _issue(
                        SEVERITY_INFO,
                        CAT_ORDERING,
                        parent_id,
                        f"Sibling orders are not 0..{len(orders) - 1}: {sorted(orders)}",
                    )
                )
        return issues

    def _chain(self, node_id: str, by_id: dict[str, ContentNode]) -> list[str] | None:
        """Ancestor ids root-first, or None when the chain loops, breaks, or is too deep."""
        ancestors: list[str] = []
        current = by_id[node_id].parent_id
        while current is not None:
            if current == node_id or current in ancestors or len(ancestors) >= self.max_depth:
                return None
            parent = by_id.get(current)
            if parent is None:
                return None
            ancestors.append(current)
            current = parent.parent_id
        ancestors.reverse()
        return ancestors
