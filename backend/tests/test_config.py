"""
Tests for YAML configuration loading, environment overrides and logging levels.
"""

import logging

import pytest

from kibble.config import (
    BoardConfig,
    DefaultColumnConfig,
    get_config,
    load_config,
    set_config,
)
from kibble.models.column import ColumnRole
from kibble.utils.logging import resolve_level, setup_logging


@pytest.fixture
def config_file(tmp_path, monkeypatch):
    path = tmp_path / "config.yml"
    path.write_text(
        "database:\n"
        "  path: /tmp/from-yaml.db\n"
        "logging:\n"
        "  level: warning\n"
        "board:\n"
        "  default_columns:\n"
        "    - title: Inbox\n"
        "      role: backlog\n"
        "    - title: Shipped\n"
        "      role: terminal\n"
        "users:\n"
        "  - username: carol\n"
        "    email: carol@example.com\n"
        "    password_hash: x\n"
    )
    for name in (
        "KIBBLE_DB_PATH",
        "KIBBLE_LOG_LEVEL",
        "KIBBLE_ENGINE_LOG_LEVEL",
        "KIBBLE_AUTO_ARCHIVE_HOURS",
        "KIBBLE_TRANSACTION_ATTEMPTS",
    ):
        monkeypatch.delenv(name, raising=False)
    set_config(None)
    return path


class TestLoadConfig:
    def test_reads_yaml_sections(self, config_file):
        config = load_config(str(config_file))

        assert config.database.path == "/tmp/from-yaml.db"
        assert config.logging.level == "warning"
        assert [c.title for c in config.board.default_columns] == ["Inbox", "Shipped"]
        assert config.users[0].role == "user"
        # Untouched sections keep their defaults
        assert config.engine.transaction_attempts == 3
        assert config.board.auto_archive_after_hours == 24

    def test_environment_overrides_yaml(self, config_file, monkeypatch):
        monkeypatch.setenv("KIBBLE_DB_PATH", "/tmp/from-env.db")
        monkeypatch.setenv("KIBBLE_ENGINE_LOG_LEVEL", "debug")
        monkeypatch.setenv("KIBBLE_AUTO_ARCHIVE_HOURS", "48")
        monkeypatch.setenv("KIBBLE_TRANSACTION_ATTEMPTS", "5")

        config = load_config(str(config_file))

        assert config.database.path == "/tmp/from-env.db"
        assert config.logging.engine_level == "debug"
        assert config.board.auto_archive_after_hours == 48
        assert config.engine.transaction_attempts == 5

    def test_missing_file_uses_defaults(self, tmp_path, config_file):
        config = load_config(str(tmp_path / "absent.yml"))
        assert [c.title for c in config.board.default_columns] == [
            "To-Do",
            "In-Progress",
            "Review",
            "Done",
        ]

    def test_config_is_cached(self, config_file):
        first = load_config(str(config_file))
        assert get_config() is first


class TestDefaultColumns:
    @pytest.mark.asyncio
    async def test_configured_columns_are_used_for_new_boards(self, config, kanban):
        config.board = BoardConfig(
            default_columns=[
                DefaultColumnConfig(title="Inbox", role="backlog"),
                DefaultColumnConfig(title="Done"),
            ]
        )

        board = await kanban.board()
        assert [(c.title, c.role) for c in board.columns] == [
            ("Inbox", ColumnRole.BACKLOG.value),
            ("Done", ColumnRole.TERMINAL.value),
        ]


class TestLogging:
    def test_resolve_level(self):
        assert resolve_level("DEBUG") == logging.DEBUG
        assert resolve_level("bogus") == logging.INFO
        assert resolve_level(None, logging.WARNING) == logging.WARNING

    def test_engine_level_override(self, config):
        config.logging.level = "warning"
        config.logging.engine_level = "debug"

        setup_logging()

        assert logging.getLogger("kibble.engine").level == logging.DEBUG
        assert logging.getLogger("sqlalchemy.engine").level == logging.WARNING

    def test_engine_follows_application_level(self, config):
        config.logging.level = "error"
        config.logging.engine_level = None

        setup_logging()

        assert logging.getLogger("kibble.engine").level == logging.ERROR
