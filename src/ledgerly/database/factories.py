"""Database factory functions for creating database instances."""

import os
from pathlib import Path
from typing import Optional

from ledgerly.database.sqlalchemy_db import SQLAlchemyDatabase

DB_PATH_ENV = "LEDGERLY_DB_PATH"


def default_database_path() -> str:
    """Return ``~/.ledgerly/ledgerly.db``, creating the directory if needed."""
    db_dir = Path.home() / ".ledgerly"
    db_dir.mkdir(exist_ok=True)
    return str(db_dir / "ledgerly.db")


def create_sqlite_database(database_path: Optional[str] = None) -> SQLAlchemyDatabase:
    """Create a SQLite database instance.

    Args:
        database_path: Path to SQLite database file. If None, checks LEDGERLY_DB_PATH
            environment variable, then defaults to ~/.ledgerly/ledgerly.db

    Returns:
        SQLAlchemyDatabase instance configured for SQLite
    """
    if database_path is None:
        database_path = os.environ.get(DB_PATH_ENV) or default_database_path()

    database_url = f"sqlite:///{database_path}"
    return SQLAlchemyDatabase(database_url)
