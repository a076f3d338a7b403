"""Column model for Kanban boards."""

from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, ForeignKey, Integer, String, Index
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .database import Base

if TYPE_CHECKING:
    from .board import Board
    from .task import Task


class ColumnRole(str, Enum):
    """Behavioural category of a column, independent of its display title."""

    BACKLOG = "backlog"  # the only legal creation target for new tasks
    IN_PROGRESS = "in_progress"
    TERMINAL = "terminal"  # entering locks a task, leaving unlocks it


class Column(Base):
    """Ordered column inside a board."""

    __tablename__ = "columns"
    __table_args__ = (Index("ix_columns_board_position", "board_id", "position"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    board_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("boards.id", ondelete="CASCADE"), nullable=False
    )
    title: Mapped[str] = mapped_column(String(100), nullable=False)
    role: Mapped[str] = mapped_column(
        String(20), default=ColumnRole.IN_PROGRESS.value, nullable=False
    )
    position: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False
    )

    board: Mapped["Board"] = relationship("Board", back_populates="columns")
    tasks: Mapped[list["Task"]] = relationship(
        "Task",
        back_populates="column",
        cascade="all, delete-orphan",
        order_by="Task.position",
    )
