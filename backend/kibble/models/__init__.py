"""Database models for Kibble."""

from .database import Base, get_db, init_db, close_db, run_in_transaction
from .board import Board
from .column import Column, ColumnRole
from .task import Task, TaskPriority

__all__ = [
    "Base",
    "get_db",
    "init_db",
    "close_db",
    "run_in_transaction",
    "Board",
    "Column",
    "ColumnRole",
    "Task",
    "TaskPriority",
]
