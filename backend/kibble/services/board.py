"""Board service: board CRUD, reordering and archive/restore cascades."""

import logging
from datetime import datetime
from typing import Optional

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from ..config import get_config
from ..engine.lifecycle import archive_updates, infer_role, restore_updates
from ..engine.ordering import compute_insertion, compute_removal
from ..errors import ForbiddenError, IncompleteReorderError, NotFoundError
from ..models.board import Board
from ..models.column import Column, ColumnRole
from ..models.task import Task
from .store import OrderedStore

logger = logging.getLogger(__name__)


class BoardService:
    """Service for managing boards."""

    def __init__(self, db: AsyncSession):
        self.db = db
        # Boards are ordered per owner; archived boards hold no position
        self.store = OrderedStore(db, Board, "owner")

    async def get_boards(self, owner: str, include_archived: bool = False) -> list[Board]:
        """Get an owner's boards in display order."""
        query = select(Board).where(Board.owner == owner)
        if not include_archived:
            query = query.where(Board.archived == False)

        query = query.order_by(Board.position, Board.created_at)
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def get_board(self, board_id: int) -> Optional[Board]:
        """Get a board with its columns and their tasks loaded."""
        result = await self.db.execute(
            select(Board)
            .options(selectinload(Board.columns).selectinload(Column.tasks))
            .where(Board.id == board_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def _require_board(self, board_id: int) -> Board:
        board = await self.db.get(Board, board_id)
        if board is None:
            raise NotFoundError("Board", board_id)
        return board

    async def create_board(self, owner: str, title: str) -> Board:
        """Create a board with the configured default columns."""
        siblings = await self.store.siblings(owner)
        placement = compute_insertion(siblings)

        board = Board(title=title.strip(), owner=owner, position=placement.index)
        self.db.add(board)
        await self.db.flush()

        for position, column_config in enumerate(get_config().board.default_columns):
            role = (
                ColumnRole(column_config.role)
                if column_config.role
                else infer_role(column_config.title)
            )
            self.db.add(
                Column(
                    board_id=board.id,
                    title=column_config.title,
                    role=role.value,
                    position=position,
                )
            )
        await self.db.flush()

        logger.info(f"Created board {board.id} '{board.title}' for {owner}")
        return await self.get_board(board.id)

    async def rename_board(self, board_id: int, title: str) -> Board:
        board = await self._require_board(board_id)
        board.title = title.strip()
        board.updated_at = datetime.utcnow()
        await self.db.flush()
        return board

    async def delete_board(self, board_id: int) -> None:
        """Permanently delete a board with all of its columns and tasks."""
        board = await self._require_board(board_id)

        shifts = []
        if not board.archived:
            siblings = await self.store.siblings(board.owner, exclude_id=board.id)
            shifts = compute_removal(siblings, board.position)

        column_ids = select(Column.id).where(Column.board_id == board.id)
        await self.db.execute(delete(Task).where(Task.column_id.in_(column_ids)))
        await self.db.execute(delete(Column).where(Column.board_id == board.id))
        await self.db.delete(board)
        await self.db.flush()
        await self.store.apply_shifts(shifts)

        logger.info(f"Deleted board {board_id}")

    async def reorder_boards(self, owner: str, board_ids: list[int]) -> list[Board]:
        """Assign positions 0..n-1 to the owner's boards in the given order.

        ``board_ids`` must list every one of the owner's non-archived boards
        exactly once; a partial list would collide with the boards left out.
        """
        if len(set(board_ids)) != len(board_ids):
            raise ForbiddenError("Board ids must be unique")

        boards = {board.id: board for board in await self.get_boards(owner)}
        if any(board_id not in boards for board_id in board_ids):
            raise ForbiddenError("Unauthorized: some boards do not belong to you")

        missing = sorted(set(boards) - set(board_ids))
        if missing:
            raise IncompleteReorderError(missing)

        for index, board_id in enumerate(board_ids):
            boards[board_id].position = index
        await self.db.flush()

        return [boards[board_id] for board_id in board_ids]

    async def archive_board(self, board_id: int) -> Board:
        """Archive a board and every active task on it with one timestamp."""
        board = await self._require_board(board_id)
        if board.archived:
            return board

        now = datetime.utcnow()
        siblings = await self.store.siblings(board.owner, exclude_id=board.id)
        await self.store.apply_shifts(compute_removal(siblings, board.position))

        column_ids = select(Column.id).where(Column.board_id == board.id)
        result = await self.db.execute(
            update(Task)
            .where(Task.column_id.in_(column_ids), Task.archived == False)
            .values(**archive_updates(now))
            .execution_options(synchronize_session="fetch")
        )

        board.archived = True
        board.archived_at = now
        board.updated_at = now
        await self.db.flush()

        logger.info(f"Archived board {board.id} and {result.rowcount} task(s)")
        return board

    async def restore_board(self, board_id: int) -> Board:
        """Restore a board and every archived task on it; the board goes to the end."""
        board = await self._require_board(board_id)
        if not board.archived:
            return board

        siblings = await self.store.siblings(board.owner, exclude_id=board.id)
        placement = compute_insertion(siblings)

        column_ids = select(Column.id).where(Column.board_id == board.id)
        result = await self.db.execute(
            update(Task)
            .where(Task.column_id.in_(column_ids), Task.archived == True)
            .values(**restore_updates())
            .execution_options(synchronize_session="fetch")
        )

        board.archived = False
        board.archived_at = None
        board.position = placement.index
        board.updated_at = datetime.utcnow()
        await self.db.flush()

        logger.info(f"Restored board {board.id} and {result.rowcount} task(s)")
        return board

    async def get_archived_boards(self, owner: Optional[str] = None) -> list[Board]:
        """Get archived boards, newest first."""
        query = select(Board).where(Board.archived == True)
        if owner is not None:
            query = query.where(Board.owner == owner)

        query = query.order_by(Board.archived_at.desc())
        result = await self.db.execute(query)
        return list(result.scalars().all())
