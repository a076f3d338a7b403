"""Permission gate: resolves a resource's owner chain and checks ownership.

Runs before any engine operation. The engine itself never re-derives
ownership; it only trusts that the gate has allowed the request.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..errors import ForbiddenError, NotFoundError
from ..models.board import Board
from ..models.column import Column
from ..models.task import Task
from .auth import Session

logger = logging.getLogger(__name__)


@dataclass
class OwnerChain:
    """Board → column → task ids of an authorized resource."""

    board_id: int
    owner: str
    column_id: Optional[int] = None
    task_id: Optional[int] = None


class PermissionGate:
    """Checks that the session's user owns the board a resource belongs to."""

    def __init__(self, db: AsyncSession):
        self.db = db

    def _check_owner(self, chain: OwnerChain, session: Session, resource: str) -> OwnerChain:
        if session.is_admin or chain.owner == session.username:
            return chain

        logger.warning(
            f"Denied {session.username} access to {resource} "
            f"(board {chain.board_id} owned by {chain.owner})"
        )
        raise ForbiddenError()

    async def authorize_board(self, board_id: int, session: Session) -> OwnerChain:
        result = await self.db.execute(
            select(Board.id, Board.owner).where(Board.id == board_id)
        )
        row = result.one_or_none()
        if row is None:
            raise NotFoundError("Board", board_id)

        chain = OwnerChain(board_id=row.id, owner=row.owner)
        return self._check_owner(chain, session, f"board {board_id}")

    async def authorize_column(self, column_id: int, session: Session) -> OwnerChain:
        result = await self.db.execute(
            select(Column.id, Column.board_id, Board.owner)
            .join(Board, Board.id == Column.board_id)
            .where(Column.id == column_id)
        )
        row = result.one_or_none()
        if row is None:
            raise NotFoundError("Column", column_id)

        chain = OwnerChain(board_id=row.board_id, owner=row.owner, column_id=row.id)
        return self._check_owner(chain, session, f"column {column_id}")

    async def authorize_task(self, task_id: int, session: Session) -> OwnerChain:
        result = await self.db.execute(
            select(Task.id, Task.column_id, Column.board_id, Board.owner)
            .join(Column, Column.id == Task.column_id)
            .join(Board, Board.id == Column.board_id)
            .where(Task.id == task_id)
        )
        row = result.one_or_none()
        if row is None:
            raise NotFoundError("Task", task_id)

        chain = OwnerChain(
            board_id=row.board_id,
            owner=row.owner,
            column_id=row.column_id,
            task_id=row.id,
        )
        return self._check_owner(chain, session, f"task {task_id}")
