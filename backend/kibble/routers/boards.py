"""Board API routes."""

from typing import Optional
from fastapi import APIRouter, HTTPException, Depends
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from ..models.database import get_db, run_in_transaction
from ..services.auth import Session
from ..services.board import BoardService
from ..services.permissions import PermissionGate
from .auth import get_current_session
from .columns import ColumnSchema, column_to_schema
from .tasks import TaskSchema, task_to_schema


router = APIRouter(prefix="/api/boards", tags=["boards"])


class BoardSchema(BaseModel):
    id: int
    title: str
    owner: str
    position: int
    archived: bool
    archived_at: Optional[str] = None
    created_at: str
    updated_at: str


class ColumnWithTasksSchema(ColumnSchema):
    tasks: list[TaskSchema]


class BoardDetailSchema(BoardSchema):
    columns: list[ColumnWithTasksSchema]


class BoardTitleRequest(BaseModel):
    title: str


class ReorderBoardsRequest(BaseModel):
    board_ids: list[int]


def board_to_schema(board) -> BoardSchema:
    """Convert a Board model to BoardSchema."""
    return BoardSchema(
        id=board.id,
        title=board.title,
        owner=board.owner,
        position=board.position,
        archived=board.archived,
        archived_at=board.archived_at.isoformat() if board.archived_at else None,
        created_at=board.created_at.isoformat(),
        updated_at=board.updated_at.isoformat(),
    )


def board_to_detail(board, include_archived_tasks: bool = False) -> BoardDetailSchema:
    """Convert a Board with loaded columns and tasks to BoardDetailSchema."""
    columns = []
    for column in board.columns:
        tasks = [t for t in column.tasks if include_archived_tasks or not t.archived]
        columns.append(
            ColumnWithTasksSchema(
                **column_to_schema(column).model_dump(),
                tasks=[task_to_schema(t) for t in tasks],
            )
        )
    return BoardDetailSchema(**board_to_schema(board).model_dump(), columns=columns)


def _require_title(request: BoardTitleRequest) -> str:
    if not request.title.strip():
        raise HTTPException(
            status_code=400, detail="Title is required and must be a non-empty string"
        )
    return request.title.strip()


@router.get("", response_model=list[BoardSchema])
async def get_boards(
    include_archived: bool = False,
    db: AsyncSession = Depends(get_db),
    session: Session = Depends(get_current_session),
):
    """Get the current user's boards in display order."""
    board_service = BoardService(db)
    boards = await board_service.get_boards(
        session.username, include_archived=include_archived
    )
    return [board_to_schema(b) for b in boards]


@router.post("", response_model=BoardDetailSchema, status_code=201)
async def create_board(
    request: BoardTitleRequest,
    session: Session = Depends(get_current_session),
):
    """Create a board with the default columns."""
    title = _require_title(request)
    board = await run_in_transaction(
        lambda tx: BoardService(tx).create_board(session.username, title)
    )
    return board_to_detail(board)


@router.post("/reorder", response_model=list[BoardSchema])
async def reorder_boards(
    request: ReorderBoardsRequest,
    session: Session = Depends(get_current_session),
):
    """Reorder the current user's boards by providing the new order of IDs."""
    if not request.board_ids:
        raise HTTPException(status_code=400, detail="board_ids must not be empty")

    boards = await run_in_transaction(
        lambda tx: BoardService(tx).reorder_boards(session.username, request.board_ids)
    )
    return [board_to_schema(b) for b in boards]


@router.get("/{board_id}", response_model=BoardDetailSchema)
async def get_board(
    board_id: int,
    include_archived_tasks: bool = False,
    db: AsyncSession = Depends(get_db),
    session: Session = Depends(get_current_session),
):
    """Get a board with its columns and tasks."""
    await PermissionGate(db).authorize_board(board_id, session)
    board = await BoardService(db).get_board(board_id)
    return board_to_detail(board, include_archived_tasks=include_archived_tasks)


@router.patch("/{board_id}", response_model=BoardSchema)
async def rename_board(
    board_id: int,
    request: BoardTitleRequest,
    db: AsyncSession = Depends(get_db),
    session: Session = Depends(get_current_session),
):
    """Rename a board."""
    title = _require_title(request)
    await PermissionGate(db).authorize_board(board_id, session)
    board = await run_in_transaction(
        lambda tx: BoardService(tx).rename_board(board_id, title)
    )
    return board_to_schema(board)


@router.delete("/{board_id}")
async def delete_board(
    board_id: int,
    db: AsyncSession = Depends(get_db),
    session: Session = Depends(get_current_session),
):
    """Permanently delete a board with its columns and tasks."""
    await PermissionGate(db).authorize_board(board_id, session)
    await run_in_transaction(lambda tx: BoardService(tx).delete_board(board_id))
    return {"success": True}


@router.post("/{board_id}/archive", response_model=BoardSchema)
async def archive_board(
    board_id: int,
    db: AsyncSession = Depends(get_db),
    session: Session = Depends(get_current_session),
):
    """Archive a board and all of its active tasks."""
    await PermissionGate(db).authorize_board(board_id, session)
    board = await run_in_transaction(lambda tx: BoardService(tx).archive_board(board_id))
    return board_to_schema(board)


@router.delete("/{board_id}/archive", response_model=BoardSchema)
async def restore_board(
    board_id: int,
    db: AsyncSession = Depends(get_db),
    session: Session = Depends(get_current_session),
):
    """Restore a board and all of its archived tasks."""
    await PermissionGate(db).authorize_board(board_id, session)
    board = await run_in_transaction(lambda tx: BoardService(tx).restore_board(board_id))
    return board_to_schema(board)
