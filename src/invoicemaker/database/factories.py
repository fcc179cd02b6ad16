"""Factory functions for creating database instances and resolving paths."""

import os
from pathlib import Path
from typing import Optional

from invoicemaker.database.sqlalchemy_db import SQLAlchemyDatabase

DB_PATH_ENV = "INVOICEMAKER_DB_PATH"
BACKUP_DIR_ENV = "INVOICEMAKER_BACKUP_DIR"


def default_data_directory() -> Path:
    """Return ~/.invoicemaker, creating it if needed."""
    data_dir = Path.home() / ".invoicemaker"
    data_dir.mkdir(exist_ok=True)
    return data_dir


def create_sqlite_database(database_path: Optional[str] = None) -> SQLAlchemyDatabase:
    """Create a SQLite database instance.

    Args:
        database_path: Path to SQLite database file. If None, checks
            INVOICEMAKER_DB_PATH environment variable, then defaults to
            ~/.invoicemaker/invoicemaker.db

    Returns:
        SQLAlchemyDatabase instance configured for SQLite
    """
    if database_path is None:
        database_path = os.environ.get(DB_PATH_ENV)

    if database_path is None:
        database_path = str(default_data_directory() / "invoicemaker.db")

    database_url = f"sqlite:///{database_path}"
    return SQLAlchemyDatabase(database_url)


def resolve_backup_directory(backup_dir: Optional[str] = None) -> Path:
    """Resolve where backup and export artifacts are written.

    Args:
        backup_dir: Explicit directory. If None, checks INVOICEMAKER_BACKUP_DIR,
            then defaults to ~/.invoicemaker/backups

    Returns:
        Backup directory path (not created here)
    """
    if backup_dir is None:
        backup_dir = os.environ.get(BACKUP_DIR_ENV)

    if backup_dir is None:
        return default_data_directory() / "backups"

    return Path(backup_dir)
