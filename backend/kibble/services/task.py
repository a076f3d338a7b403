"""Task service: insert, move, edit, archive and delete Kanban tasks."""

import logging
from datetime import datetime, timedelta
from typing import Any, Optional

from sqlalchemy import select, and_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from ..engine.lifecycle import (
    archive_updates,
    check_board_active,
    check_editable,
    restore_updates,
)
from ..engine.orchestrator import EntitySnapshot, ParentSnapshot, plan_move
from ..engine.ordering import compute_insertion, compute_removal
from ..errors import InvalidCreationTargetError, NotFoundError, ParentNotFoundError
from ..models.board import Board
from ..models.column import Column, ColumnRole
from ..models.task import Task, TaskPriority
from .store import OrderedStore

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = ("title", "description", "due_date", "priority")


class TaskService:
    """Service for managing Kanban tasks."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.store = OrderedStore(db, Task, "column_id")

    async def get_task_by_id(self, task_id: int) -> Optional[Task]:
        """Get a single task with its column and board loaded."""
        result = await self.db.execute(
            select(Task)
            .options(selectinload(Task.column).selectinload(Column.board))
            .where(Task.id == task_id)
        )
        return result.scalar_one_or_none()

    async def _require_task(self, task_id: int) -> Task:
        task = await self.get_task_by_id(task_id)
        if task is None:
            raise NotFoundError("Task", task_id)
        return task

    async def _require_column(self, column_id: int) -> Column:
        result = await self.db.execute(
            select(Column)
            .options(selectinload(Column.board))
            .where(Column.id == column_id)
        )
        column = result.scalar_one_or_none()
        if column is None:
            raise ParentNotFoundError("Column", column_id)
        return column

    async def get_tasks_by_column(
        self, column_id: int, include_archived: bool = False
    ) -> list[Task]:
        query = select(Task).where(Task.column_id == column_id)
        if not include_archived:
            query = query.where(Task.archived == False)

        query = query.order_by(Task.position, Task.created_at)
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def insert_task(
        self,
        column_id: int,
        title: str,
        description: Optional[str] = None,
        due_date: Optional[datetime] = None,
        priority: str = TaskPriority.NORMAL.value,
        desired_index: Optional[int] = None,
    ) -> Task:
        """Create a task in a backlog column, by default at its end."""
        priority = TaskPriority(priority).value
        column = await self._require_column(column_id)

        if column.role != ColumnRole.BACKLOG.value:
            raise InvalidCreationTargetError(column.id, column.title)
        check_board_active(column.board.id, column.board.title, column.board.archived)

        siblings = await self.store.siblings(column_id)
        placement = compute_insertion(siblings, desired_index)
        await self.store.apply_shifts(placement.shifts)

        description = description.strip() if description else None

        task = Task(
            column_id=column_id,
            title=title.strip(),
            description=description or None,
            due_date=due_date,
            priority=priority,
            position=placement.index,
            locked=False,
            archived=False,
        )
        self.db.add(task)
        await self.db.flush()

        logger.info(f"Created task {task.id} in column {column_id} at position {task.position}")
        return task

    async def update_task(self, task_id: int, **changes: Any) -> Task:
        """Edit task content. Title, description and due date are frozen while locked."""
        unknown = set(changes) - set(UPDATABLE_FIELDS)
        if unknown:
            raise TypeError(f"Cannot update task fields: {sorted(unknown)}")

        # A null title or priority means "leave unchanged"
        changes = {
            field: value
            for field, value in changes.items()
            if value is not None or field not in ("title", "priority")
        }

        task = await self._require_task(task_id)
        check_editable(task.id, task.locked, changes.keys())

        if "title" in changes:
            task.title = changes["title"].strip()
        if "description" in changes:
            description = (changes["description"] or "").strip()
            task.description = description or None
        if "due_date" in changes:
            task.due_date = changes["due_date"]
        if "priority" in changes:
            task.priority = TaskPriority(changes["priority"]).value

        task.updated_at = datetime.utcnow()
        await self.db.flush()
        return task

    async def move_task(
        self,
        task_id: int,
        destination_column_id: int,
        desired_index: Optional[int] = None,
    ) -> Task:
        """Move a task within its column or to another column of its board."""
        task = await self._require_task(task_id)
        destination = await self._require_column(destination_column_id)
        source = task.column

        source_siblings = await self.store.siblings(task.column_id, exclude_id=task.id)
        destination_siblings = []
        if destination.id != source.id:
            destination_siblings = await self.store.siblings(destination.id, exclude_id=task.id)

        batch = plan_move(
            EntitySnapshot(
                id=task.id,
                parent_id=source.id,
                owner_id=source.board_id,
                position=task.position,
                archived=task.archived,
                role=source.role,
            ),
            ParentSnapshot(
                id=destination.id,
                owner_id=destination.board_id,
                role=destination.role,
                owner_title=destination.board.title,
                owner_archived=destination.board.archived,
            ),
            source_siblings,
            destination_siblings,
            desired_index,
            datetime.utcnow(),
        )

        if batch.is_empty:
            logger.debug(f"Move of task {task_id} is a no-op")
            return task

        await self.store.apply(task, batch)
        logger.info(
            f"Moved task {task.id} to column {task.column_id} at position {task.position}"
            + (f" ({batch.changes})" if batch.changes else "")
        )
        return task

    async def remove_task(self, task_id: int) -> None:
        """Permanently delete a task and close the gap it leaves."""
        task = await self._require_task(task_id)

        shifts = []
        if not task.archived:
            siblings = await self.store.siblings(task.column_id, exclude_id=task.id)
            shifts = compute_removal(siblings, task.position)

        await self.db.delete(task)
        await self.db.flush()
        await self.store.apply_shifts(shifts)
        logger.info(f"Deleted task {task_id}")

    async def _archive(self, task: Task, now: datetime) -> None:
        # The archived task keeps its position; the siblings above it close the gap
        siblings = await self.store.siblings(task.column_id, exclude_id=task.id)
        await self.store.apply_shifts(compute_removal(siblings, task.position))
        for name, value in archive_updates(now).items():
            setattr(task, name, value)
        task.updated_at = now
        await self.db.flush()

    async def archive_task(self, task_id: int) -> Task:
        """Archive a task (requires its board not to be archived)."""
        task = await self._require_task(task_id)
        board = task.column.board
        check_board_active(board.id, board.title, board.archived)

        if task.archived:
            return task

        await self._archive(task, datetime.utcnow())
        logger.info(f"Archived task {task.id}")
        return task

    async def restore_task(self, task_id: int) -> Task:
        """Restore an archived task at its previous position."""
        task = await self._require_task(task_id)
        board = task.column.board
        check_board_active(board.id, board.title, board.archived)

        if not task.archived:
            return task

        # Not reindexed: the old position may now collide with a sibling
        for name, value in restore_updates().items():
            setattr(task, name, value)
        task.updated_at = datetime.utcnow()
        await self.db.flush()
        logger.info(f"Restored task {task.id} at position {task.position}")
        return task

    async def archive_stale_terminal_tasks(
        self, older_than: timedelta, now: Optional[datetime] = None
    ) -> int:
        """Archive tasks locked in a terminal column for longer than ``older_than``."""
        now = now or datetime.utcnow()
        cutoff = now - older_than

        result = await self.db.execute(
            select(Task)
            .join(Column, Column.id == Task.column_id)
            .join(Board, Board.id == Column.board_id)
            .where(
                and_(
                    Column.role == ColumnRole.TERMINAL.value,
                    Board.archived == False,
                    Task.archived == False,
                    Task.locked == True,
                    Task.locked_at != None,
                    Task.locked_at <= cutoff,
                )
            )
            .order_by(Task.column_id, Task.position.desc())
        )
        tasks = list(result.scalars().all())

        for task in tasks:
            await self._archive(task, now)

        if tasks:
            logger.info(f"Auto-archived {len(tasks)} task(s) locked since before {cutoff}")
        return len(tasks)

    async def get_archived_tasks(self, owner: Optional[str] = None) -> list[Task]:
        """Get archived tasks, newest first, optionally limited to one owner's boards."""
        query = (
            select(Task)
            .options(selectinload(Task.column).selectinload(Column.board))
            .join(Column, Column.id == Task.column_id)
            .join(Board, Board.id == Column.board_id)
            .where(Task.archived == True)
        )
        if owner is not None:
            query = query.where(Board.owner == owner)

        query = query.order_by(Task.archived_at.desc())
        result = await self.db.execute(query)
        return list(result.scalars().all())
