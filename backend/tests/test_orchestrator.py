"""
Unit tests for move planning: ordering and lifecycle combined into one batch.
"""

from datetime import datetime

import pytest

from kibble.engine.orchestrator import EntitySnapshot, ParentSnapshot, plan_move
from kibble.engine.ordering import Shift, Sibling
from kibble.errors import BoardArchivedError, CrossOwnerMoveError

NOW = datetime(2024, 5, 1, 12, 0, 0)

BOARD = 1


def _task(position=0, archived=False, role="backlog", parent_id=10, task_id=100):
    return EntitySnapshot(
        id=task_id,
        parent_id=parent_id,
        owner_id=BOARD,
        position=position,
        archived=archived,
        role=role,
    )


def _column(column_id, role, owner_id=BOARD, owner_archived=False):
    return ParentSnapshot(
        id=column_id,
        owner_id=owner_id,
        role=role,
        owner_title="Sprint",
        owner_archived=owner_archived,
    )


class TestWithinParent:
    def test_reorder_only_touches_positions(self):
        siblings = [Sibling(1, 0), Sibling(2, 1)]
        batch = plan_move(_task(position=2), _column(10, "backlog"), siblings, [], 0, NOW)

        assert batch.parent_id is None
        assert batch.position == 0
        assert batch.source_shifts == [Shift(1, 1), Shift(2, 1)]
        assert batch.destination_shifts == []
        assert batch.changes == {}

    def test_same_position_is_empty(self):
        batch = plan_move(
            _task(position=1), _column(10, "backlog"), [Sibling(1, 0)], [], 1, NOW
        )
        assert batch.is_empty

    def test_archived_entity_is_empty(self):
        batch = plan_move(
            _task(position=1, archived=True), _column(10, "backlog"), [Sibling(1, 0)], [], 0, NOW
        )
        assert batch.is_empty

    def test_within_terminal_column_keeps_lock(self):
        batch = plan_move(
            _task(position=0, role="terminal"),
            _column(10, "terminal"),
            [Sibling(1, 1)],
            [],
            1,
            NOW,
        )
        assert batch.changes == {}


class TestCrossParent:
    def test_move_to_terminal_locks_and_shifts_both_parents(self):
        source = [Sibling(1, 0), Sibling(2, 2)]
        destination = [Sibling(5, 0), Sibling(6, 1)]
        batch = plan_move(
            _task(position=1), _column(20, "terminal"), source, destination, 1, NOW
        )

        assert batch.parent_id == 20
        assert batch.position == 1
        assert batch.source_shifts == [Shift(2, -1)]
        assert batch.destination_shifts == [Shift(6, 1)]
        assert batch.changes == {"locked": True, "locked_at": NOW}

    def test_missing_index_appends(self):
        batch = plan_move(
            _task(), _column(20, "in_progress"), [], [Sibling(5, 0)], None, NOW
        )
        assert batch.position == 1
        assert batch.destination_shifts == []

    def test_other_board_is_rejected(self):
        with pytest.raises(CrossOwnerMoveError):
            plan_move(_task(), _column(30, "backlog", owner_id=2), [], [], 0, NOW)

    def test_archived_task_leaving_terminal_is_restored_into_sequence(self):
        batch = plan_move(
            _task(position=4, archived=True, role="terminal", parent_id=20),
            _column(10, "backlog"),
            [Sibling(1, 0)],
            [Sibling(5, 0), Sibling(6, 1)],
            0,
            NOW,
        )

        # The archived task held no slot in its old column
        assert batch.source_shifts == []
        assert batch.destination_shifts == [Shift(5, 1), Shift(6, 1)]
        assert batch.changes["archived"] is False
        assert batch.changes["locked"] is False

    def test_archived_task_between_non_terminal_columns_stays_out_of_sequence(self):
        batch = plan_move(
            _task(position=3, archived=True, role="in_progress"),
            _column(20, "backlog"),
            [],
            [Sibling(5, 0)],
            9,
            NOW,
        )

        assert batch.parent_id == 20
        assert batch.position == 1
        assert batch.source_shifts == []
        assert batch.destination_shifts == []
        assert batch.changes == {}

    def test_unarchiving_into_archived_board_is_rejected(self):
        with pytest.raises(BoardArchivedError):
            plan_move(
                _task(archived=True, role="terminal"),
                _column(20, "in_progress", owner_archived=True),
                [],
                [],
                0,
                NOW,
            )

    def test_columns_have_no_lifecycle(self):
        column = EntitySnapshot(id=7, parent_id=BOARD, owner_id=BOARD, position=0)
        batch = plan_move(
            column,
            ParentSnapshot(id=BOARD, owner_id=BOARD),
            [Sibling(8, 1), Sibling(9, 2)],
            [],
            2,
            NOW,
        )
        assert batch.position == 2
        assert batch.source_shifts == [Shift(8, -1), Shift(9, -1)]
        assert batch.changes == {}
