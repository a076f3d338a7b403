"""Task/Kanban API routes."""

from datetime import datetime
from typing import Optional
from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from ..engine.lifecycle import lifecycle_state
from ..models.database import get_db, run_in_transaction
from ..models.task import TaskPriority
from ..services.auth import Session
from ..services.permissions import PermissionGate
from ..services.task import TaskService
from .auth import get_current_session


router = APIRouter(prefix="/api/tasks", tags=["tasks"])


class TaskSchema(BaseModel):
    id: int
    column_id: int
    title: str
    description: Optional[str] = None
    priority: str
    due_date: Optional[str] = None
    position: int
    state: str
    locked: bool
    locked_at: Optional[str] = None
    archived: bool
    archived_at: Optional[str] = None
    created_at: str
    updated_at: str


class CreateTaskRequest(BaseModel):
    column_id: int
    title: str
    description: Optional[str] = None
    due_date: Optional[datetime] = None
    priority: TaskPriority = TaskPriority.NORMAL
    position: Optional[int] = None


class UpdateTaskRequest(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    due_date: Optional[datetime] = None
    priority: Optional[TaskPriority] = None


class MoveTaskRequest(BaseModel):
    column_id: int
    position: Optional[int] = None


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


def task_to_schema(task) -> TaskSchema:
    """Convert a Task model to TaskSchema."""
    return TaskSchema(
        id=task.id,
        column_id=task.column_id,
        title=task.title,
        description=task.description,
        priority=task.priority,
        due_date=_iso(task.due_date),
        position=task.position,
        state=lifecycle_state(task.locked, task.archived).value,
        locked=task.locked,
        locked_at=_iso(task.locked_at),
        archived=task.archived,
        archived_at=_iso(task.archived_at),
        created_at=task.created_at.isoformat(),
        updated_at=task.updated_at.isoformat(),
    )


@router.post("", response_model=TaskSchema, status_code=201)
async def create_task(
    request: CreateTaskRequest,
    db: AsyncSession = Depends(get_db),
    session: Session = Depends(get_current_session),
):
    """Create a new task in a backlog column."""
    await PermissionGate(db).authorize_column(request.column_id, session)

    task = await run_in_transaction(
        lambda tx: TaskService(tx).insert_task(
            column_id=request.column_id,
            title=request.title,
            description=request.description,
            due_date=request.due_date,
            priority=request.priority.value,
            desired_index=request.position,
        )
    )
    return task_to_schema(task)


@router.get("/{task_id}", response_model=TaskSchema)
async def get_task(
    task_id: int,
    db: AsyncSession = Depends(get_db),
    session: Session = Depends(get_current_session),
):
    """Get a single task by ID."""
    await PermissionGate(db).authorize_task(task_id, session)
    task = await TaskService(db).get_task_by_id(task_id)
    return task_to_schema(task)


@router.patch("/{task_id}", response_model=TaskSchema)
async def update_task(
    task_id: int,
    request: UpdateTaskRequest,
    db: AsyncSession = Depends(get_db),
    session: Session = Depends(get_current_session),
):
    """Edit a task's content. Locked tasks only accept priority changes."""
    await PermissionGate(db).authorize_task(task_id, session)

    changes = request.model_dump(exclude_unset=True)
    task = await run_in_transaction(
        lambda tx: TaskService(tx).update_task(task_id, **changes)
    )
    return task_to_schema(task)


@router.post("/{task_id}/move", response_model=TaskSchema)
async def move_task(
    task_id: int,
    request: MoveTaskRequest,
    db: AsyncSession = Depends(get_db),
    session: Session = Depends(get_current_session),
):
    """Move a task to a position in the same or another column (drag-and-drop)."""
    await PermissionGate(db).authorize_task(task_id, session)

    task = await run_in_transaction(
        lambda tx: TaskService(tx).move_task(task_id, request.column_id, request.position)
    )
    return task_to_schema(task)


@router.delete("/{task_id}")
async def delete_task(
    task_id: int,
    db: AsyncSession = Depends(get_db),
    session: Session = Depends(get_current_session),
):
    """Permanently delete a task."""
    await PermissionGate(db).authorize_task(task_id, session)
    await run_in_transaction(lambda tx: TaskService(tx).remove_task(task_id))
    return {"success": True}


@router.post("/{task_id}/archive", response_model=TaskSchema)
async def archive_task(
    task_id: int,
    db: AsyncSession = Depends(get_db),
    session: Session = Depends(get_current_session),
):
    """Archive a task."""
    await PermissionGate(db).authorize_task(task_id, session)
    task = await run_in_transaction(lambda tx: TaskService(tx).archive_task(task_id))
    return task_to_schema(task)


@router.delete("/{task_id}/archive", response_model=TaskSchema)
async def restore_task(
    task_id: int,
    db: AsyncSession = Depends(get_db),
    session: Session = Depends(get_current_session),
):
    """Restore an archived task. Fails while its board is archived."""
    await PermissionGate(db).authorize_task(task_id, session)
    task = await run_in_transaction(lambda tx: TaskService(tx).restore_task(task_id))
    return task_to_schema(task)
