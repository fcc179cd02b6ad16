"""Shared domain error messages and error types."""

from enum import Enum
from typing import Optional
from uuid import UUID


class DomainError(ValueError):
    """Base class for domain-level errors.

    Subclasses provide semantic categories while preserving ValueError
    compatibility for existing error handling.
    """


class ValidationError(DomainError):
    """Invalid input or failed validation in domain logic."""


class NotFoundError(DomainError):
    """Requested domain entity or path does not exist."""


class BackupErrorKind(Enum):
    """Failure categories for export, import and restore."""

    EXPORT_FAILED = "export_failed"
    IMPORT_FAILED = "import_failed"
    INVALID_DATA = "invalid_data"
    FILE_NOT_FOUND = "file_not_found"


class BackupError(DomainError):
    """Failure of a backup operation.

    Returned inside a ``Failure`` rather than raised, so callers can inspect
    ``kind`` and ``reason``.
    """

    def __init__(self, kind: BackupErrorKind, reason: Optional[str] = None):
        self.kind = kind
        self.reason = reason
        super().__init__(self._describe())

    def _describe(self) -> str:
        if self.kind is BackupErrorKind.EXPORT_FAILED:
            return f"Export failed: {self.reason}"
        if self.kind is BackupErrorKind.IMPORT_FAILED:
            return f"Import failed: {self.reason}"
        if self.kind is BackupErrorKind.INVALID_DATA:
            return "Invalid or corrupted backup data"
        return "Backup file not found"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, BackupError):
            return NotImplemented
        return self.kind is other.kind and self.reason == other.reason

    def __hash__(self) -> int:
        return hash((self.kind, self.reason))

    @classmethod
    def export_failed(cls, reason: str) -> "BackupError":
        return cls(BackupErrorKind.EXPORT_FAILED, reason)

    @classmethod
    def import_failed(cls, reason: str) -> "BackupError":
        return cls(BackupErrorKind.IMPORT_FAILED, reason)

    @classmethod
    def invalid_data(cls) -> "BackupError":
        return cls(BackupErrorKind.INVALID_DATA)

    @classmethod
    def file_not_found(cls) -> "BackupError":
        return cls(BackupErrorKind.FILE_NOT_FOUND)


def invoice_not_found(identifier: str | UUID) -> str:
    """Return message for missing invoice."""
    return f"Invoice '{identifier}' not found"


def customer_not_found(identifier: str | UUID) -> str:
    """Return message for missing customer."""
    return f"Customer '{identifier}' not found"


def invalid_line_item(text: str) -> str:
    """Return message for an unparseable line item argument."""
    return (
        f"Invalid item '{text}'. "
        "Use 'description:quantity:unit_price' (e.g. 'Repair:1:180')"
    )
