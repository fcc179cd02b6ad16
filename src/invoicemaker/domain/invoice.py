"""Invoice storage service."""

from typing import Callable, Iterable, Optional
from uuid import UUID

import structlog

from invoicemaker.database import mappers
from invoicemaker.database.base import Database
from invoicemaker.domain.collection import PersistedCollection
from invoicemaker.domain.entities import Invoice as InvoiceEntity

logger = structlog.get_logger(__name__)

INVOICES_KEY = "savedInvoices"
SAVE_COUNT_KEY = "invoiceSaveCount"
AUTO_BACKUP_INTERVAL = 5


class SaveCounter:
    """Persistent count of invoice saves, used to schedule automatic backups.

    Losing or corrupting the counter only delays the next backup; it never
    blocks a save.
    """

    def __init__(self, db: Database, key: str = SAVE_COUNT_KEY, interval: int = AUTO_BACKUP_INTERVAL):
        """Initialize save counter.

        Args:
            db: Database instance
            key: Key the counter is stored under
            interval: A backup is due every ``interval`` saves
        """
        self.db = db
        self.key = key
        self.interval = interval

    @property
    def count(self) -> int:
        raw = self.db.get_value(self.key)
        if raw is None:
            return 0
        try:
            return max(0, int(raw))
        except ValueError:
            logger.warning("save_counter_corrupted", key=self.key, value=raw)
            return 0

    def increment(self) -> bool:
        """Record one save.

        Returns:
            True if this save makes a backup due
        """
        count = self.count + 1
        self.db.set_value(self.key, str(count))
        return count % self.interval == 0

    def reset(self) -> None:
        self.db.delete_value(self.key)


class InvoiceService:
    """Service for storing and retrieving invoices."""

    def __init__(
        self,
        db: Database,
        save_counter: Optional[SaveCounter] = None,
        on_backup_due: Optional[Callable[[], object]] = None,
    ):
        """Initialize invoice service and load stored invoices.

        Args:
            db: Database instance
            save_counter: Counter driving automatic backups (defaults to one
                stored in ``db``)
            on_backup_due: Called after a save that makes a backup due
        """
        self.db = db
        self.save_counter = save_counter if save_counter is not None else SaveCounter(db)
        self.on_backup_due = on_backup_due
        self._collection: PersistedCollection[InvoiceEntity] = PersistedCollection(
            db,
            INVOICES_KEY,
            mappers.invoice_to_record,
            mappers.invoice_from_record,
        )

    @property
    def invoices(self) -> list[InvoiceEntity]:
        """All invoices in storage order."""
        return self._collection.entities

    @property
    def invoice_count(self) -> int:
        return len(self._collection)

    @property
    def invoices_sorted_by_date(self) -> list[InvoiceEntity]:
        """Invoices sorted most recent first."""
        return sorted(self._collection.entities, key=lambda invoice: invoice.date, reverse=True)

    def get_invoice(self, invoice_id: UUID) -> Optional[InvoiceEntity]:
        """Get invoice by ID.

        Args:
            invoice_id: Invoice ID

        Returns:
            Invoice entity or None if not found
        """
        return self._collection.get(invoice_id)

    def find_by_number(self, number: str) -> list[InvoiceEntity]:
        """Return invoices whose number matches exactly (numbers are not unique)."""
        return [invoice for invoice in self._collection.entities if invoice.number == number]

    def save_invoice(self, invoice: InvoiceEntity) -> bool:
        """Save a new invoice or update the one with the same ID.

        Args:
            invoice: Invoice to store

        Returns:
            True if an automatic backup is now due
        """
        self._collection.upsert(invoice)
        logger.info("invoice_saved", invoice_id=str(invoice.id), number=invoice.number)

        # The invoice is stored at this point; counter or backup trouble only
        # skips this round of automatic backup
        try:
            backup_due = self.save_counter.increment()
            if backup_due:
                logger.info("automatic_backup_due", save_count=self.save_counter.count)
                if self.on_backup_due is not None:
                    self.on_backup_due()
        except Exception as e:
            logger.warning("automatic_backup_counter_failed", error=str(e))
            return False
        return backup_due

    def delete_invoice(self, invoice: InvoiceEntity) -> None:
        """Delete an invoice. Deleting an unknown invoice is a no-op."""
        removed = self._collection.remove([invoice.id])
        logger.info("invoice_deleted", invoice_id=str(invoice.id), removed=removed)

    def delete_invoices(self, invoices: Iterable[InvoiceEntity]) -> int:
        """Delete several invoices by ID.

        Returns:
            Number of invoices actually removed
        """
        removed = self._collection.remove(invoice.id for invoice in invoices)
        logger.info("invoices_deleted", removed=removed)
        return removed

    def reload(self) -> None:
        """Re-read invoices from the database."""
        self._collection.reload()
