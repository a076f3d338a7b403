"""Columns API routes for Kanban columns."""

from typing import Optional
from fastapi import APIRouter, HTTPException, Depends
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from ..models.column import ColumnRole
from ..models.database import get_db, run_in_transaction
from ..services.auth import Session
from ..services.column import ColumnService
from ..services.permissions import PermissionGate
from .auth import get_current_session


router = APIRouter(prefix="/api/columns", tags=["columns"])


class ColumnSchema(BaseModel):
    id: int
    board_id: int
    title: str
    role: str
    position: int


class CreateColumnRequest(BaseModel):
    board_id: int
    title: str
    role: Optional[ColumnRole] = None
    position: Optional[int] = None


class UpdateColumnRequest(BaseModel):
    title: Optional[str] = None
    position: Optional[int] = None


def column_to_schema(column) -> ColumnSchema:
    """Convert a Column model to ColumnSchema."""
    return ColumnSchema(
        id=column.id,
        board_id=column.board_id,
        title=column.title,
        role=column.role,
        position=column.position,
    )


@router.post("", response_model=ColumnSchema, status_code=201)
async def create_column(
    request: CreateColumnRequest,
    db: AsyncSession = Depends(get_db),
    session: Session = Depends(get_current_session),
):
    """Create a new column."""
    if not request.title.strip():
        raise HTTPException(status_code=400, detail="Title is required")

    await PermissionGate(db).authorize_board(request.board_id, session)

    column = await run_in_transaction(
        lambda tx: ColumnService(tx).create_column(
            board_id=request.board_id,
            title=request.title.strip(),
            role=request.role.value if request.role else None,
            desired_index=request.position,
        )
    )
    return column_to_schema(column)


@router.patch("/{column_id}", response_model=ColumnSchema)
async def update_column(
    column_id: int,
    request: UpdateColumnRequest,
    db: AsyncSession = Depends(get_db),
    session: Session = Depends(get_current_session),
):
    """Rename a column and/or move it to a new position in its board."""
    await PermissionGate(db).authorize_column(column_id, session)

    async def work(tx: AsyncSession):
        column_service = ColumnService(tx)
        if request.title and request.title.strip():
            await column_service.rename_column(column_id, request.title.strip())
        if request.position is not None:
            return await column_service.move_column(column_id, request.position)
        return await column_service.get_column_by_id(column_id)

    column = await run_in_transaction(work)
    return column_to_schema(column)


@router.delete("/{column_id}")
async def delete_column(
    column_id: int,
    db: AsyncSession = Depends(get_db),
    session: Session = Depends(get_current_session),
):
    """Delete a column and its tasks."""
    chain = await PermissionGate(db).authorize_column(column_id, session)

    async def work(tx: AsyncSession):
        column_service = ColumnService(tx)
        # Prevent deleting the last one
        columns = await column_service.get_columns(chain.board_id)
        if len(columns) <= 1:
            raise HTTPException(status_code=400, detail="Cannot delete the last column")
        await column_service.delete_column(column_id)

    await run_in_transaction(work)
    return {"message": "Column deleted"}
