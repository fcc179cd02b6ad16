"""Abstract database interface."""

from abc import ABC, abstractmethod
from typing import Optional


class Database(ABC):
    """Abstract key-value persistence interface for invoicemaker.

    Collections are stored whole under a single key, so the interface only
    needs to read, write and remove text values.
    """

    @abstractmethod
    def connect(self) -> None:
        """Connect to the database."""
        pass

    @abstractmethod
    def disconnect(self) -> None:
        """Disconnect from the database."""
        pass

    @abstractmethod
    def initialize_schema(self) -> None:
        """Initialize database schema (create tables)."""
        pass

    @abstractmethod
    def get_value(self, key: str) -> Optional[str]:
        """Return the value stored under key, or None if absent."""
        pass

    @abstractmethod
    def set_value(self, key: str, value: str) -> None:
        """Store value under key, replacing any previous value."""
        pass

    @abstractmethod
    def delete_value(self, key: str) -> None:
        """Remove key. Removing an absent key is not an error."""
        pass
