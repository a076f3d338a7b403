"""Column service for managing Kanban columns."""

import logging
from datetime import datetime
from typing import Optional

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..engine.lifecycle import infer_role
from ..engine.orchestrator import EntitySnapshot, ParentSnapshot, plan_move
from ..engine.ordering import compute_insertion, compute_removal
from ..errors import NotFoundError, ParentNotFoundError
from ..models.board import Board
from ..models.column import Column, ColumnRole
from ..models.task import Task
from .store import OrderedStore

logger = logging.getLogger(__name__)


class ColumnService:
    """Service for managing the ordered columns of a board."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.store = OrderedStore(db, Column, "board_id")

    async def get_columns(self, board_id: int) -> list[Column]:
        """Get a board's columns ordered by position."""
        result = await self.db.execute(
            select(Column).where(Column.board_id == board_id).order_by(Column.position)
        )
        return list(result.scalars().all())

    async def get_column_by_id(self, column_id: int) -> Optional[Column]:
        """Get a column by ID."""
        result = await self.db.execute(
            select(Column).where(Column.id == column_id)
        )
        return result.scalar_one_or_none()

    async def _require_column(self, column_id: int) -> Column:
        column = await self.get_column_by_id(column_id)
        if column is None:
            raise NotFoundError("Column", column_id)
        return column

    async def create_column(
        self,
        board_id: int,
        title: str,
        role: Optional[str] = None,
        desired_index: Optional[int] = None,
    ) -> Column:
        """Create a column; without a position it goes at the end of the board."""
        board = await self.db.get(Board, board_id)
        if board is None:
            raise ParentNotFoundError("Board", board_id)

        column_role = ColumnRole(role) if role else infer_role(title)

        siblings = await self.store.siblings(board_id)
        placement = compute_insertion(siblings, desired_index)
        await self.store.apply_shifts(placement.shifts)

        column = Column(
            board_id=board_id,
            title=title,
            role=column_role.value,
            position=placement.index,
        )
        self.db.add(column)
        await self.db.flush()

        logger.info(
            f"Created column {column.id} '{title}' ({column_role.value}) "
            f"in board {board_id} at position {column.position}"
        )
        return column

    async def rename_column(self, column_id: int, title: str) -> Column:
        """Change a column's title. Its role is kept."""
        column = await self._require_column(column_id)
        column.title = title
        column.updated_at = datetime.utcnow()
        await self.db.flush()
        return column

    async def move_column(self, column_id: int, desired_index: Optional[int]) -> Column:
        """Reorder a column within its board."""
        column = await self._require_column(column_id)
        siblings = await self.store.siblings(column.board_id, exclude_id=column.id)

        batch = plan_move(
            EntitySnapshot(
                id=column.id,
                parent_id=column.board_id,
                owner_id=column.board_id,
                position=column.position,
            ),
            ParentSnapshot(id=column.board_id, owner_id=column.board_id),
            siblings,
            [],
            desired_index,
            datetime.utcnow(),
        )
        await self.store.apply(column, batch)
        return column

    async def delete_column(self, column_id: int) -> None:
        """Delete a column with its tasks and close the gap in the board."""
        column = await self._require_column(column_id)
        siblings = await self.store.siblings(column.board_id, exclude_id=column.id)

        result = await self.db.execute(delete(Task).where(Task.column_id == column.id))
        await self.db.delete(column)
        await self.db.flush()
        await self.store.apply_shifts(compute_removal(siblings, column.position))

        logger.info(f"Deleted column {column_id} and {result.rowcount} task(s)")
