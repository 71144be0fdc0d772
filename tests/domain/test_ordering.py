"""Tests for the pure sibling-ordering rules."""

from gardenctl.domain.ordering import (
    SiblingEntry,
    changed_orders,
    clamp_index,
    is_contiguous,
    sort_siblings,
    splice,
)


def _entries(*titles: str) -> list[SiblingEntry]:
    return [SiblingEntry(id=f"id{i}", title=t, display_order=i) for i, t in enumerate(titles)]


class TestSortSiblings:
    def test_by_display_order(self) -> None:
        entries = [
            SiblingEntry("b", "B", 1),
            SiblingEntry("a", "A", 0),
            SiblingEntry("c", "C", 2),
        ]
        assert [e.id for e in sort_siblings(entries)] == ["a", "b", "c"]

    def test_ties_broken_case_insensitively(self) -> None:
        entries = [
            SiblingEntry("1", "beta", 0),
            SiblingEntry("2", "Alpha", 0),
            SiblingEntry("3", "alpha", 0),
        ]
        # casefold ties, then exact title ("Alpha" < "alpha"), then id
        assert [e.id for e in sort_siblings(entries)] == ["2", "3", "1"]

    def test_identical_titles_fall_back_to_id(self) -> None:
        entries = [SiblingEntry("z", "Same", 0), SiblingEntry("a", "Same", 0)]
        assert [e.id for e in sort_siblings(entries)] == ["a", "z"]


class TestSplice:
    def test_move_last_to_front(self) -> None:
        entries = _entries("A", "B", "C", "D", "E")
        result = splice(entries, entries[4], 0)
        assert [e.title for e in result] == ["E", "A", "B", "C", "D"]

    def test_index_applies_after_removal(self) -> None:
        entries = _entries("A", "B", "C")
        result = splice(entries, entries[0], 2)
        assert [e.title for e in result] == ["B", "C", "A"]

    def test_clamps_large_index(self) -> None:
        entries = _entries("A", "B")
        newcomer = SiblingEntry("new", "N", 7)
        assert [e.title for e in splice(entries, newcomer, 99)] == ["A", "B", "N"]

    def test_clamps_negative_index(self) -> None:
        entries = _entries("A", "B")
        newcomer = SiblingEntry("new", "N", 7)
        assert [e.title for e in splice(entries, newcomer, -3)] == ["N", "A", "B"]

    def test_empty_set(self) -> None:
        newcomer = SiblingEntry("new", "N", 3)
        assert splice([], newcomer, 5) == [newcomer]


class TestChangedOrders:
    def test_gapped_set_made_dense(self) -> None:
        entries = [SiblingEntry("a", "A", 0), SiblingEntry("b", "B", 5), SiblingEntry("c", "C", 5)]
        assert changed_orders(entries) == {"b": 1, "c": 2}

    def test_changed_only(self) -> None:
        entries = _entries("A", "B", "C")
        assert changed_orders(entries) == {}
        moved = splice(entries, entries[2], 1)
        assert changed_orders(moved) == {"id2": 1, "id1": 2}


class TestHelpers:
    def test_clamp_index(self) -> None:
        assert clamp_index(-1, 3) == 0
        assert clamp_index(2, 3) == 2
        assert clamp_index(10, 3) == 3

    def test_is_contiguous(self) -> None:
        assert is_contiguous([2, 0, 1])
        assert is_contiguous([])
        assert not is_contiguous([0, 2])
        assert not is_contiguous([0, 0, 1])
