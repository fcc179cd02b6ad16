"""Database layer for invoicemaker application."""

from invoicemaker.database.base import Database
from invoicemaker.database.factories import create_sqlite_database, resolve_backup_directory

__all__ = ["Database", "create_sqlite_database", "resolve_backup_directory"]
