"""Sibling ordering rules — pure list arithmetic, no storage.

Canonical order within a sibling set: ``display_order`` ascending, ties
broken by case-folded title, then exact title, then id.  A move splices
the node into the ordered list and renumbers the whole set 0..n-1, so the
stored order always equals the visual order.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass


@dataclass(frozen=True)
class SiblingEntry:
    """The slice of a node the ordering rules need."""

    id: str
    title: str
    display_order: int


def sort_key(entry: SiblingEntry) -> tuple[int, str, str, str]:
    return (entry.display_order, entry.title.casefold(), entry.title, entry.id)


def sort_siblings(entries: Iterable[SiblingEntry]) -> list[SiblingEntry]:
    """Return *entries* in canonical order."""
    return sorted(entries, key=sort_key)


def clamp_index(index: int, length: int) -> int:
    """Clamp a visual index into ``[0, length]``."""
    return max(0, min(index, length))


def splice(ordered: Sequence[SiblingEntry], moving: SiblingEntry, index: int) -> list[SiblingEntry]:
    """Remove *moving* from *ordered* (if present) and re-insert it at *index*.

    *index* is clamped after removal, so any integer is accepted.
    """
    remaining = [e for e in ordered if e.id != moving.id]
    remaining.insert(clamp_index(index, len(remaining)), moving)
    return remaining


def changed_orders(ordered: Sequence[SiblingEntry]) -> dict[str, int]:
    """Map each id whose display order differs from its index in *ordered*.

    Applying the result renumbers the set 0..n-1.
    """
    return {
        entry.id: i for i, entry in enumerate(ordered) if entry.display_order != i
    }


def is_contiguous(orders: Iterable[int]) -> bool:
    """True when *orders* is exactly 0..n-1 with no gaps or duplicates."""
    values = sorted(orders)
    return values == list(range(len(values)))
