"""Generic SQLAlchemy database implementation."""

from typing import Optional
from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from invoicemaker.database.base import Database
from invoicemaker.database.models import StoredValue, create_session_factory


class SQLAlchemyDatabase(Database):
    """SQLAlchemy-based implementation of Database interface."""

    def __init__(self, database_url: str):
        """Initialize SQLAlchemy database.

        Args:
            database_url: SQLAlchemy database URL (e.g., 'sqlite:///path/to.db',
                'sqlite:///:memory:', etc.)
        """
        self.database_url = database_url
        self.session_factory = create_session_factory(database_url)
        self._session: Optional[Session] = None

    def _get_session(self) -> Session:
        """Get current session, creating one if needed."""
        if self._session is None:
            self._session = self.session_factory()
        return self._session

    def connect(self) -> None:
        """Connect to the database."""
        # Connection is lazy, so this is a no-op
        pass

    def disconnect(self) -> None:
        """Disconnect from the database."""
        if self._session is not None:
            self._session.close()
            self._session = None

    def initialize_schema(self) -> None:
        """Initialize database schema (create tables)."""
        # Schema is created automatically by create_session_factory
        pass

    def get_value(self, key: str) -> Optional[str]:
        """Return the value stored under key, or None if absent."""
        session = self._get_session()
        # Column select bypasses the identity map so writes from other
        # connections are visible
        return session.execute(
            select(StoredValue.value).where(StoredValue.key == key)
        ).scalar_one_or_none()

    def set_value(self, key: str, value: str) -> None:
        """Store value under key in a single commit."""
        session = self._get_session()
        try:
            row = session.get(StoredValue, key, populate_existing=True)
            if row is None:
                session.add(StoredValue(key=key, value=value))
            else:
                row.value = value
            session.commit()
        except Exception:
            session.rollback()
            raise

    def delete_value(self, key: str) -> None:
        """Remove key if present."""
        session = self._get_session()
        try:
            session.execute(delete(StoredValue).where(StoredValue.key == key))
            session.commit()
        except Exception:
            session.rollback()
            raise
