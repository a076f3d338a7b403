"""
Pytest configuration for Kibble tests.

This module provides:
1. An isolated configuration and SQLite database per test
2. Board/column/task helpers that run through the transactional unit of work
3. An HTTP client bound to the FastAPI app
"""

import bcrypt
import pytest
from httpx import ASGITransport, AsyncClient

from kibble.config import Config, DatabaseConfig, SessionConfig, UserConfig, set_config
from kibble.models.database import close_db, init_db, run_in_transaction
from kibble.services import auth as auth_module
from kibble.services.board import BoardService
from kibble.services.task import TaskService

PASSWORD = "correct horse battery"


def _hash(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds=4)).decode("utf-8")


# -----------------------------------------------------------------------------
# Configuration and database
# -----------------------------------------------------------------------------
@pytest.fixture(autouse=True)
def config(tmp_path):
    """Install a test configuration with three users and a temp database path."""
    password_hash = _hash(PASSWORD)
    test_config = Config(
        database=DatabaseConfig(path=str(tmp_path / "kibble.db")),
        session=SessionConfig(secure_cookies=False),
        users=[
            UserConfig(username="alice", email="alice@example.com", password_hash=password_hash),
            UserConfig(username="bob", email="bob@example.com", password_hash=password_hash),
            UserConfig(
                username="root",
                email="root@example.com",
                password_hash=password_hash,
                role="admin",
            ),
        ],
    )
    set_config(test_config)
    auth_module._auth_service = None

    yield test_config

    set_config(None)
    auth_module._auth_service = None


@pytest.fixture
async def database(config):
    """Create the schema in a fresh SQLite file."""
    await init_db()
    yield
    await close_db()


# -----------------------------------------------------------------------------
# Kanban helpers
# -----------------------------------------------------------------------------
class Kanban:
    """Shortcuts for arranging boards and reading positions back."""

    async def board(self, owner: str = "alice", title: str = "Sprint"):
        return await run_in_transaction(
            lambda tx: BoardService(tx).create_board(owner, title)
        )

    @staticmethod
    def columns(board) -> dict[str, int]:
        """Column ids by title."""
        return {column.title: column.id for column in board.columns}

    async def task(self, column_id: int, title: str, **kwargs):
        return await run_in_transaction(
            lambda tx: TaskService(tx).insert_task(column_id, title, **kwargs)
        )

    async def move(self, task_id: int, column_id: int, position=None):
        return await run_in_transaction(
            lambda tx: TaskService(tx).move_task(task_id, column_id, position)
        )

    async def get(self, task_id: int):
        return await run_in_transaction(lambda tx: TaskService(tx).get_task_by_id(task_id))

    async def titles(self, column_id: int) -> list[str]:
        """Titles of the active tasks in ``column_id``, in position order."""
        tasks = await run_in_transaction(
            lambda tx: TaskService(tx).get_tasks_by_column(column_id)
        )
        return [t.title for t in tasks]

    async def positions(self, column_id: int) -> list[int]:
        tasks = await run_in_transaction(
            lambda tx: TaskService(tx).get_tasks_by_column(column_id)
        )
        return [t.position for t in tasks]


@pytest.fixture
def kanban(database):
    return Kanban()


@pytest.fixture
async def board(kanban):
    """A board owned by alice with the default To-Do/In-Progress/Review/Done columns."""
    return await kanban.board()


# -----------------------------------------------------------------------------
# HTTP client
# -----------------------------------------------------------------------------
@pytest.fixture
async def client(database):
    from kibble.main import app

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as http:
        yield http


async def login(http: AsyncClient, username: str) -> None:
    response = await http.post(
        "/api/auth/login", json={"username": username, "password": PASSWORD}
    )
    assert response.status_code == 200


@pytest.fixture
async def alice(client):
    """HTTP client logged in as alice."""
    await login(client, "alice")
    return client
