"""Configuration loader for Kibble."""

import os
from pathlib import Path
from typing import Optional
import yaml
from pydantic import BaseModel


class ServerConfig(BaseModel):
    host: str = "0.0.0.0"
    port: int = 8000
    debug: bool = False


class DatabaseConfig(BaseModel):
    path: str = "/app/data/kibble.db"


class SessionConfig(BaseModel):
    timeout_minutes: int = 60
    # Only send the session cookie over HTTPS
    secure_cookies: bool = True


class LoggingConfig(BaseModel):
    level: str = "info"
    # Overrides the level of the kibble.engine loggers when set
    engine_level: Optional[str] = None


class UserConfig(BaseModel):
    username: str
    email: str
    password_hash: str
    role: str = "user"


class DefaultColumnConfig(BaseModel):
    """A column created on every new board."""
    title: str
    # backlog / in_progress / terminal; inferred from the title when empty
    role: Optional[str] = None


class BoardConfig(BaseModel):
    default_columns: list[DefaultColumnConfig] = [
        DefaultColumnConfig(title="To-Do"),
        DefaultColumnConfig(title="In-Progress"),
        DefaultColumnConfig(title="Review"),
        DefaultColumnConfig(title="Done"),
    ]
    # Tasks locked in a terminal column longer than this are archived
    auto_archive_enabled: bool = True
    auto_archive_after_hours: int = 24
    auto_archive_interval_minutes: int = 15


class EngineConfig(BaseModel):
    # Attempts for one operation when the store reports a serialization failure
    transaction_attempts: int = 3


class Config(BaseModel):
    server: ServerConfig = ServerConfig()
    database: DatabaseConfig = DatabaseConfig()
    session: SessionConfig = SessionConfig()
    logging: LoggingConfig = LoggingConfig()
    users: list[UserConfig] = []
    board: BoardConfig = BoardConfig()
    engine: EngineConfig = EngineConfig()


_config: Optional[Config] = None


def load_config(config_path: Optional[str] = None) -> Config:
    """Load configuration from YAML file and environment variables."""
    global _config

    if _config is not None:
        return _config

    # Determine config path
    if config_path is None:
        config_path = os.environ.get("KIBBLE_CONFIG", "/app/config.yml")

    config_data = {}

    # Load from file if exists
    if Path(config_path).exists():
        with open(config_path, "r") as f:
            config_data = yaml.safe_load(f) or {}

    config = Config(**config_data)

    # Override with environment variables
    if os.environ.get("KIBBLE_DB_PATH"):
        config.database.path = os.environ["KIBBLE_DB_PATH"]

    if os.environ.get("KIBBLE_LOG_LEVEL"):
        config.logging.level = os.environ["KIBBLE_LOG_LEVEL"]

    if os.environ.get("KIBBLE_ENGINE_LOG_LEVEL"):
        config.logging.engine_level = os.environ["KIBBLE_ENGINE_LOG_LEVEL"]

    if os.environ.get("KIBBLE_AUTO_ARCHIVE_HOURS"):
        config.board.auto_archive_after_hours = int(os.environ["KIBBLE_AUTO_ARCHIVE_HOURS"])

    if os.environ.get("KIBBLE_TRANSACTION_ATTEMPTS"):
        config.engine.transaction_attempts = int(os.environ["KIBBLE_TRANSACTION_ATTEMPTS"])

    _config = config
    return config


def get_config() -> Config:
    """Get the loaded configuration."""
    global _config
    if _config is None:
        return load_config()
    return _config


def set_config(config: Optional[Config]) -> None:
    """Replace the cached configuration (``None`` forces a reload)."""
    global _config
    _config = config
