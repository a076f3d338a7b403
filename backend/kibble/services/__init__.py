"""Services for Kibble."""

from .auth import AuthService, Session, get_auth_service
from .board import BoardService
from .column import ColumnService
from .permissions import OwnerChain, PermissionGate
from .store import OrderedStore
from .task import TaskService

__all__ = [
    "AuthService",
    "Session",
    "get_auth_service",
    "BoardService",
    "ColumnService",
    "OwnerChain",
    "PermissionGate",
    "OrderedStore",
    "TaskService",
]
