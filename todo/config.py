# todo/config.py
"""Environment-driven configuration."""

import logging
import os
from pathlib import Path

DEFAULT_DATA_DIR = Path.home() / ".todo"
DB_FILENAME = "tasks.db"


def get_data_dir() -> Path:
    """Directory holding the task database (``TODO_DATA_DIR``)."""
    return Path(os.getenv("TODO_DATA_DIR", str(DEFAULT_DATA_DIR))).expanduser()


def get_database_url() -> str:
    """SQLAlchemy URL; ``TODO_DATABASE_URL`` overrides the data directory."""
    url = os.getenv("TODO_DATABASE_URL")
    if url:
        return url
    return f"sqlite:///{get_data_dir() / DB_FILENAME}"


def get_log_level() -> int:
    """Level named by ``TODO_LOG_LEVEL``; unknown names fall back to WARNING."""
    name = os.getenv("TODO_LOG_LEVEL", "WARNING").upper()
    level = logging.getLevelName(name)
    return level if isinstance(level, int) else logging.WARNING
