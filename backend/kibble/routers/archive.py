"""Archive listing API routes."""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from ..models.database import get_db
from ..services.auth import Session
from ..services.board import BoardService
from ..services.task import TaskService
from .auth import get_current_session
from .boards import BoardSchema, board_to_schema
from .tasks import TaskSchema, task_to_schema


router = APIRouter(prefix="/api/archive", tags=["archive"])


class ArchivedTaskSchema(TaskSchema):
    column_title: str
    board_id: int
    board_title: str
    board_archived: bool


@router.get("/tasks", response_model=list[ArchivedTaskSchema])
async def get_archived_tasks(
    db: AsyncSession = Depends(get_db),
    session: Session = Depends(get_current_session),
):
    """Get the current user's archived tasks, newest first."""
    tasks = await TaskService(db).get_archived_tasks(owner=session.username)
    return [
        ArchivedTaskSchema(
            **task_to_schema(t).model_dump(),
            column_title=t.column.title,
            board_id=t.column.board.id,
            board_title=t.column.board.title,
            board_archived=t.column.board.archived,
        )
        for t in tasks
    ]


@router.get("/boards", response_model=list[BoardSchema])
async def get_archived_boards(
    db: AsyncSession = Depends(get_db),
    session: Session = Depends(get_current_session),
):
    """Get the current user's archived boards, newest first."""
    boards = await BoardService(db).get_archived_boards(owner=session.username)
    return [board_to_schema(b) for b in boards]
