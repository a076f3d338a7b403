"""Typed failures raised by the ordering and lifecycle engine."""

from typing import Any, Optional


class KibbleError(Exception):
    """Base for every failure the API surfaces to the caller unchanged."""

    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def detail(self) -> dict[str, Any]:
        """Structured payload returned alongside the message."""
        return {}


class NotFoundError(KibbleError):
    status_code = 404

    def __init__(self, resource: str, resource_id: Any):
        super().__init__(f"{resource} not found")
        self.resource = resource
        self.resource_id = resource_id

    def detail(self) -> dict[str, Any]:
        return {"resource": self.resource, "resource_id": self.resource_id}


class ParentNotFoundError(NotFoundError):
    """The destination column (or board) of an insert or move does not exist."""


class ForbiddenError(KibbleError):
    status_code = 403

    def __init__(self, message: str = "Forbidden: you can only access your own boards"):
        super().__init__(message)


class IncompleteReorderError(KibbleError):
    """A board reorder left out some of the owner's active boards."""

    def __init__(self, missing: list[int]):
        super().__init__("Reorder must list every active board exactly once")
        self.missing = missing

    def detail(self) -> dict[str, Any]:
        return {"missing": self.missing}


class InvalidCreationTargetError(KibbleError):
    def __init__(self, column_id: int, title: str):
        super().__init__(
            f"Tasks can only be created in a backlog column; '{title}' is not one"
        )
        self.column_id = column_id

    def detail(self) -> dict[str, Any]:
        return {"column_id": self.column_id}


class TaskLockedError(KibbleError):
    def __init__(self, task_id: int, fields: Optional[list[str]] = None):
        super().__init__(
            "Cannot edit locked tasks. Tasks in a terminal column are locked."
        )
        self.task_id = task_id
        self.fields = fields or []

    def detail(self) -> dict[str, Any]:
        return {"task_id": self.task_id, "fields": self.fields}


class CrossOwnerMoveError(KibbleError):
    def __init__(self, task_id: int, column_id: int):
        super().__init__("Tasks can only be moved between columns of the same board")
        self.task_id = task_id
        self.column_id = column_id

    def detail(self) -> dict[str, Any]:
        return {"task_id": self.task_id, "column_id": self.column_id}


class BoardArchivedError(KibbleError):
    def __init__(self, board_id: int, board_title: str):
        super().__init__(
            f'This task belongs to an archived board "{board_title}". '
            "Please restore the board first before restoring this task."
        )
        self.board_id = board_id
        self.board_title = board_title

    def detail(self) -> dict[str, Any]:
        return {"board_id": self.board_id, "board_title": self.board_title}


class ConcurrentMoveConflictError(KibbleError):
    """The store rejected the transaction because of a concurrent writer.

    Only retried by re-running the whole operation from a fresh read.
    """

    status_code = 409

    def __init__(self, message: str = "Concurrent update conflict, please retry"):
        super().__init__(message)
