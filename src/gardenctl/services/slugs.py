"""Slug allocator — owner-unique slugs, paired with the storage constraint.

:func:`allocate` is best-effort: two writers may both see the same slug as
free.  The ``UNIQUE(owner_id, slug)`` constraint catches the loser, and
:func:`insert_with_slug_retry` re-runs its write with a collision slug.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import TYPE_CHECKING, TypeVar

from sqlalchemy import or_, select
from sqlalchemy.exc import IntegrityError

from gardenctl.domain.errors import SlugConflictError
from gardenctl.domain.slugs import collision_slug, slugify, suffixed
from gardenctl.infrastructure.database.schema import content_nodes

if TYPE_CHECKING:
    from sqlalchemy import Connection

    from gardenctl.infrastructure.store import ContentStore, StoreTransaction

logger = logging.getLogger(__name__)

SUFFIX_LIMIT = 1000

_T = TypeVar("_T")


def unique_slug(conn: Connection, candidate: str, owner_id: str) -> str:
    """*candidate* if unused by *owner_id*, else the first free ``<candidate>-N`` (N >= 2).

    Tombstoned nodes keep their slugs, so they count as taken.

    Raises:
        SlugConflictError: No free suffix up to the safety limit.
    """
    rows = conn.execute(
        select(content_nodes.c.slug).where(
            content_nodes.c.owner_id == owner_id,
            or_(
                content_nodes.c.slug == candidate,
                content_nodes.c.slug.like(f"{candidate}-%"),
            ),
        )
    )
    taken = {r.slug for r in rows}
    if candidate not in taken:
        return candidate
    for n in range(2, SUFFIX_LIMIT + 1):
        slug = suffixed(candidate, n)
        if slug not in taken:
            return slug
    msg = f"Unable to allocate a slug for {candidate!r}: suffix limit {SUFFIX_LIMIT} reached"
    raise SlugConflictError(msg)


def allocate(conn: Connection, title: str, owner_id: str) -> str:
    """Normalize *title* and return a slug unused by *owner_id*."""
    return unique_slug(conn, slugify(title), owner_id)


def is_slug_violation(exc: IntegrityError) -> bool:
    """True when *exc* is the ``(owner_id, slug)`` uniqueness constraint."""
    return "content_nodes.slug" in str(exc.orig)


def insert_with_slug_retry(
    store: ContentStore,
    title: str,
    owner_id: str,
    write: Callable[[StoreTransaction, str], _T],
    *,
    attempts: int,
) -> _T:
    """Run ``write(txn, slug)`` in its own transaction, retrying on slug collisions.

    The first attempt uses :func:`allocate`; later attempts use
    :func:`collision_slug`.  Each attempt is a fresh transaction, so a
    failed insert leaves nothing behind.  Other integrity errors propagate.

    Raises:
        SlugConflictError: Every attempt collided.
    """
    base = slugify(title)
    for attempt in range(1, attempts + 1):
        try:
            with store.transaction() as txn:
                slug = allocate(txn.conn, title, owner_id) if attempt == 1 else collision_slug(base)
                return write(txn, slug)
        except IntegrityError as exc:
            if not is_slug_violation(exc):
                raise
            logger.warning(
                "Slug collision for owner %s on %r (attempt %d/%d)",
                owner_id,
                base,
                attempt,
                attempts,
            )
    msg = f"Could not allocate a unique slug for {title!r} after {attempts} attempts"
    raise SlugConflictError(msg, detail={"attempts": attempts})
