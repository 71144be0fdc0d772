"""UpgradeService — database migration with Alembic.

Pipeline: BACKUP → MIGRATE → VALIDATE → REPORT
"""

from __future__ import annotations

import logging
from typing import Any

from alembic import command
from alembic.runtime.migration import MigrationContext
from alembic.script import ScriptDirectory
from sqlalchemy import inspect

from gardenctl.infrastructure.database.migrations import config_for_store, stamp_head
from gardenctl.services.base import BaseService
from gardenctl.services.check import SEVERITY_ERROR, CheckService
from gardenctl.services.result import ServiceError, ServiceResult
from gardenctl.services.telemetry import traced

logger = logging.getLogger(__name__)


def _pending_revisions(
    script: ScriptDirectory, head: str | None, current: str | None
) -> list[dict[str, Any]]:
    """Revisions between *current* (exclusive) and *head*, newest first."""
    pending: list[dict[str, Any]] = []
    rev = script.get_revision(head) if head is not None and head != current else None
    while rev is not None and rev.revision != current:
        pending.append({"revision": rev.revision, "description": (rev.doc or "").strip()})
        rev = script.get_revision(str(rev.down_revision)) if rev.down_revision else None
    return pending


class UpgradeService(BaseService):
    """Handles database schema migrations via Alembic."""

    def _tables_exist(self) -> bool:
        """True when the content tables exist without version tracking."""
        return "content_nodes" in inspect(self._store.engine).get_table_names()

    @traced
    def check_pending(self) -> ServiceResult:
        """List pending migrations without applying."""
        op = "upgrade"

        try:
            cfg = config_for_store(self._store.root)
            script = ScriptDirectory.from_config(cfg)
            head = script.get_current_head()

            with self._store.engine.connect() as conn:
                current = MigrationContext.configure(conn).get_current_revision()

            pending = _pending_revisions(script, head, current)
        except Exception as exc:
            logger.debug("Migration check failed", exc_info=True)
            return ServiceResult(
                ok=False,
                op=op,
                error=ServiceError(
                    code="CHECK_FAILED",
                    message=f"Failed to check migrations: {exc}",
                ),
            )

        return ServiceResult(
            ok=True,
            op=op,
            data={
                "pending_count": len(pending),
                "pending": pending,
                "current": current,
                "head": head,
            },
        )

    @traced
    def apply(self) -> ServiceResult:
        """BACKUP → MIGRATE → VALIDATE → REPORT pipeline."""
        op = "upgrade"
        warnings: list[str] = []

        check_result = self.check_pending()
        if not check_result.ok:
            return check_result

        pending_count = check_result.data["pending_count"]
        if pending_count == 0:
            return ServiceResult(
                ok=True,
                op=op,
                data={
                    "applied_count": 0,
                    "current": check_result.data["head"],
                    "message": "Database is already up to date",
                },
            )

        # BACKUP
        try:
            backup_path = CheckService(self._store)._backup_db()
        except OSError as exc:
            return ServiceResult(
                ok=False,
                op=op,
                error=ServiceError(code="BACKUP_FAILED", message=f"Backup failed: {exc}"),
            )

        # MIGRATE (or STAMP when the schema was created directly)
        stamped = check_result.data.get("current") is None and self._tables_exist()
        try:
            if stamped:
                stamp_head(self._store.root)
            else:
                command.upgrade(config_for_store(self._store.root), "head")
        except Exception as exc:
            logger.warning("Migration failed; backup at %s", backup_path, exc_info=True)
            return ServiceResult(
                ok=False,
                op=op,
                error=ServiceError(
                    code="MIGRATION_FAILED",
                    message=f"Migration failed: {exc}. Backup at: {backup_path}",
                    detail={"backup_path": str(backup_path)},
                ),
            )

        # VALIDATE
        integrity = CheckService(self._store).check()
        issues = integrity.data.get("issues", [])
        error_count = sum(1 for i in issues if i.get("severity") == SEVERITY_ERROR)
        if error_count > 0:
            warnings.append(f"Post-migration integrity check found {error_count} errors")

        return ServiceResult(
            ok=True,
            op=op,
            data={
                "applied_count": pending_count,
                "current": check_result.data["head"],
                "stamped": stamped,
                "backup_path": str(backup_path),
            },
            warnings=warnings,
        )
