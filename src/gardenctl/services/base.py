"""BaseService — foundation for all gardenctl services.

Every service receives a :class:`ContentStore` at construction time. The
store provides transactional database access and the blob/metadata
collaborators.  Services own their transaction boundaries via
``self._store.transaction()``.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from gardenctl.services.result import ServiceError, ServiceResult

if TYPE_CHECKING:
    from gardenctl.domain.errors import StoreError
    from gardenctl.infrastructure.store import ContentStore

logger = logging.getLogger(__name__)


class BaseService:
    """Base for all service-layer classes.

    Usage::

        class OrderingEngine(BaseService):
            def move_to(self, node_id: str, ...) -> ContentNode:
                with self._store.transaction() as txn:
                    ...
    """

    def __init__(self, store: ContentStore) -> None:
        self._store = store

    @property
    def max_depth(self) -> int:
        return self._store.settings.tree.max_depth

    @staticmethod
    def _failure(op: str, exc: StoreError, warnings: list[str] | None = None) -> ServiceResult:
        """Convert a domain error into a failed ServiceResult."""
        logger.debug("%s failed: %s %s", op, exc.code, exc.message)
        return ServiceResult(
            ok=False,
            op=op,
            warnings=warnings or [],
            error=ServiceError.from_store_error(exc),
        )
