"""
Unit tests for dense sibling ordering.

Every placement must leave the non-archived siblings of a parent at
positions 0..n-1 with no gaps and no duplicates.
"""

import pytest

from kibble.engine.ordering import (
    Shift,
    Sibling,
    clamp_index,
    compute_insertion,
    compute_removal,
    compute_within_parent_move,
)


def _siblings(*ids: int) -> list[Sibling]:
    return [Sibling(id=sibling_id, position=index) for index, sibling_id in enumerate(ids)]


def _apply(siblings, shifts, placed_id, placed_index) -> dict[int, int]:
    """Positions after applying shifts and placing ``placed_id``."""
    deltas = {shift.id: shift.delta for shift in shifts}
    positions = {s.id: s.position + deltas.get(s.id, 0) for s in siblings}
    positions[placed_id] = placed_index
    return positions


def _order(positions: dict[int, int]) -> list[int]:
    return [entity_id for entity_id, _ in sorted(positions.items(), key=lambda item: item[1])]


def _is_dense(positions: dict[int, int]) -> bool:
    return sorted(positions.values()) == list(range(len(positions)))


# -----------------------------------------------------------------------------
# Clamping
# -----------------------------------------------------------------------------
class TestClampIndex:
    def test_none_appends(self):
        assert clamp_index(None, 3) == 3

    def test_negative_clamps_to_zero(self):
        assert clamp_index(-5, 3) == 0

    def test_overflow_clamps_to_count(self):
        assert clamp_index(8, 3) == 3

    def test_in_range_is_kept(self):
        assert clamp_index(2, 3) == 2


# -----------------------------------------------------------------------------
# Insertion and removal
# -----------------------------------------------------------------------------
class TestInsertion:
    def test_append_to_empty_parent(self):
        placement = compute_insertion([], None)
        assert placement.index == 0
        assert placement.shifts == []

    def test_append_shifts_nothing(self):
        placement = compute_insertion(_siblings(1, 2, 3))
        assert placement.index == 3
        assert placement.shifts == []

    def test_insert_at_front_shifts_everyone(self):
        siblings = _siblings(1, 2, 3)
        placement = compute_insertion(siblings, 0)

        assert placement.index == 0
        assert placement.shifts == [Shift(1, 1), Shift(2, 1), Shift(3, 1)]
        positions = _apply(siblings, placement.shifts, 9, placement.index)
        assert _order(positions) == [9, 1, 2, 3]
        assert _is_dense(positions)

    def test_insert_in_middle(self):
        siblings = _siblings(1, 2, 3)
        placement = compute_insertion(siblings, 2)

        assert placement.shifts == [Shift(3, 1)]
        assert _order(_apply(siblings, placement.shifts, 9, placement.index)) == [1, 2, 9, 3]

    @pytest.mark.parametrize("desired, expected", [(-5, 0), (99, 3)])
    def test_out_of_range_index_is_clamped(self, desired, expected):
        siblings = _siblings(1, 2, 3)
        placement = compute_insertion(siblings, desired)

        assert placement.index == expected
        assert _is_dense(_apply(siblings, placement.shifts, 9, placement.index))


class TestRemoval:
    def test_closes_gap_above_removed_position(self):
        # Entity 2 at position 1 removed; the snapshot excludes it
        siblings = [Sibling(1, 0), Sibling(3, 2), Sibling(4, 3)]
        assert compute_removal(siblings, 1) == [Shift(3, -1), Shift(4, -1)]

    def test_removing_last_shifts_nothing(self):
        assert compute_removal([Sibling(1, 0), Sibling(2, 1)], 2) == []


# -----------------------------------------------------------------------------
# Within-parent moves
# -----------------------------------------------------------------------------
class TestWithinParentMove:
    def _snapshot(self, ids, moved_id):
        """Siblings without the moved entity, keeping everyone's current position."""
        return [s for s in _siblings(*ids) if s.id != moved_id]

    def test_move_last_to_front(self):
        # A, B, C -> move C to 0 -> C, A, B
        siblings = self._snapshot([1, 2, 3], moved_id=3)
        placement = compute_within_parent_move(siblings, 2, 0)

        assert placement.index == 0
        assert placement.shifts == [Shift(1, 1), Shift(2, 1)]
        assert _order(_apply(siblings, placement.shifts, 3, placement.index)) == [3, 1, 2]

    def test_move_down(self):
        siblings = self._snapshot([1, 2, 3, 4], moved_id=1)
        placement = compute_within_parent_move(siblings, 0, 2)

        assert placement.shifts == [Shift(2, -1), Shift(3, -1)]
        assert _order(_apply(siblings, placement.shifts, 1, placement.index)) == [2, 3, 1, 4]

    def test_same_index_is_a_noop(self):
        siblings = self._snapshot([1, 2, 3], moved_id=2)
        placement = compute_within_parent_move(siblings, 1, 1)
        assert placement.index == 1
        assert placement.shifts == []

    def test_missing_target_keeps_position(self):
        siblings = self._snapshot([1, 2, 3], moved_id=2)
        placement = compute_within_parent_move(siblings, 1, None)
        assert placement.index == 1
        assert placement.shifts == []

    def test_overflow_clamps_to_last_slot(self):
        siblings = self._snapshot([1, 2, 3], moved_id=1)
        placement = compute_within_parent_move(siblings, 0, 50)

        assert placement.index == 2
        assert _order(_apply(siblings, placement.shifts, 1, placement.index)) == [2, 3, 1]

    def test_clamped_to_current_position_is_a_noop(self):
        siblings = self._snapshot([1, 2, 3], moved_id=1)
        placement = compute_within_parent_move(siblings, 0, -3)
        assert placement.index == 0
        assert placement.shifts == []

    @pytest.mark.parametrize("old_index", range(5))
    def test_every_target_keeps_positions_dense(self, old_index):
        ids = [10, 11, 12, 13, 14]
        moved_id = ids[old_index]
        siblings = self._snapshot(ids, moved_id)

        for target in range(-1, 7):
            placement = compute_within_parent_move(siblings, old_index, target)
            positions = _apply(siblings, placement.shifts, moved_id, placement.index)
            assert _is_dense(positions), (old_index, target)
            assert positions[moved_id] == clamp_index(target, 4)
