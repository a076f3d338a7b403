"""Task lifecycle state machine.

A task is ``active``, ``locked`` (only while it sits in a terminal column)
and, on an orthogonal axis, ``archived``. Only a cross-column move changes
the lock; the side effects of every ``(from_role, to_role)`` pair are
enumerated in ``TRANSITIONS``. Archive and restore are separate operations
guarded by the board's own archive flag.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Iterable, Optional

from ..errors import BoardArchivedError, TaskLockedError
from ..models.column import ColumnRole

# Titles that carried the lifecycle meaning before columns had roles
BACKLOG_TITLE = "To-Do"
TERMINAL_TITLE = "Done"

# Fields that cannot be edited while a task is locked. Priority stays editable.
LOCKED_FIELDS = ("title", "description", "due_date")


class LifecycleState(str, Enum):
    ACTIVE = "active"
    LOCKED = "locked"
    ARCHIVED = "archived"


@dataclass(frozen=True)
class LifecycleChange:
    """Field changes that accompany a cross-column move.

    ``lock`` is ``True`` to lock and stamp ``locked_at``, ``False`` to unlock
    and clear it, ``None`` to leave the lock alone. ``unarchive`` clears the
    archive pair when the task is archived.
    """

    lock: Optional[bool] = None
    unarchive: bool = False

    def apply(self, archived: bool, now: datetime) -> dict[str, Any]:
        updates: dict[str, Any] = {}
        if self.lock is True:
            updates["locked"] = True
            updates["locked_at"] = now
        elif self.lock is False:
            updates["locked"] = False
            updates["locked_at"] = None
        if self.unarchive and archived:
            updates["archived"] = False
            updates["archived_at"] = None
        return updates


NO_CHANGE = LifecycleChange()


def _transition(from_role: ColumnRole, to_role: ColumnRole) -> LifecycleChange:
    if to_role == ColumnRole.TERMINAL:
        return LifecycleChange(lock=True)
    if from_role == ColumnRole.TERMINAL:
        # Leaving the terminal column also brings an archived task back
        return LifecycleChange(lock=False, unarchive=True)
    return NO_CHANGE


TRANSITIONS: dict[tuple[ColumnRole, ColumnRole], LifecycleChange] = {
    (from_role, to_role): _transition(from_role, to_role)
    for from_role in ColumnRole
    for to_role in ColumnRole
}


def infer_role(title: str) -> ColumnRole:
    """Role for a column created without an explicit one."""
    if title == BACKLOG_TITLE:
        return ColumnRole.BACKLOG
    if title == TERMINAL_TITLE:
        return ColumnRole.TERMINAL
    return ColumnRole.IN_PROGRESS


def transition_for(from_role: str, to_role: str) -> LifecycleChange:
    """Look up the side effects of moving between two column roles."""
    return TRANSITIONS[(ColumnRole(from_role), ColumnRole(to_role))]


def lifecycle_state(locked: bool, archived: bool) -> LifecycleState:
    if archived:
        return LifecycleState.ARCHIVED
    if locked:
        return LifecycleState.LOCKED
    return LifecycleState.ACTIVE


def check_editable(task_id: int, locked: bool, fields: Iterable[str]) -> None:
    """Reject content edits on a locked task."""
    if not locked:
        return
    blocked = [name for name in fields if name in LOCKED_FIELDS]
    if blocked:
        raise TaskLockedError(task_id, blocked)


def check_board_active(board_id: int, board_title: str, board_archived: bool) -> None:
    """Tasks of an archived board cannot be archived, restored or un-archived."""
    if board_archived:
        raise BoardArchivedError(board_id, board_title)


def archive_updates(now: datetime) -> dict[str, Any]:
    return {"archived": True, "archived_at": now}


def restore_updates() -> dict[str, Any]:
    return {"archived": False, "archived_at": None}
