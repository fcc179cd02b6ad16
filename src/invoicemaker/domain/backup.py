"""Backup, export and restore service.

Every public operation returns a :class:`Success` or :class:`Failure`; none of
them raise for I/O or decoding problems. Operations run once and are never
retried here.
"""

import csv
import io
import json
import os
import tempfile
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Iterable

import structlog

from invoicemaker.database import mappers
from invoicemaker.domain.entities import (
    BackupMetadata,
    BackupSnapshot,
    Customer,
    Invoice,
    utcnow,
)
from invoicemaker.domain.customer import CustomerService
from invoicemaker.domain.errors import BackupError
from invoicemaker.domain.invoice import InvoiceService
from invoicemaker.domain.results import Failure, Result, Success

logger = structlog.get_logger(__name__)

BACKUP_FORMAT_VERSION = "1.0.0"
AUTOMATIC_BACKUP_FILENAME = "automatic_backup.json"

INVOICE_CSV_HEADER = [
    "Invoice Number",
    "Date",
    "Client Name",
    "Subtotal",
    "Discount",
    "Tax",
    "Total",
    "Payment Method",
    "Terms",
    "Notes",
]

CUSTOMER_CSV_HEADER = [
    "Name",
    "Phone",
    "Email",
    "Address",
    "City",
    "Zip Code",
    "Date Added",
    "Last Service Date",
    "Notes",
]


class BackupStatus(Enum):
    """State of the most recent backup operation."""

    IDLE = "idle"
    IN_PROGRESS = "in_progress"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


def _format_money(value: Any) -> str:
    return f"{value:.2f}"


def _format_date(value: datetime) -> str:
    return value.date().isoformat()


def render_csv(header: list[str], rows: Iterable[list[str]]) -> str:
    """Render rows as CSV text.

    Fields containing a comma, quote or newline are wrapped in quotes with
    embedded quotes doubled.
    """
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_MINIMAL, lineterminator="\n")
    writer.writerow(header)
    writer.writerows(rows)
    return buffer.getvalue()


def invoice_csv_row(invoice: Invoice) -> list[str]:
    return [
        invoice.number,
        _format_date(invoice.date),
        invoice.client_name,
        _format_money(invoice.sub_total),
        _format_money(invoice.discount),
        _format_money(invoice.tax),
        _format_money(invoice.total),
        invoice.payment_method.value if invoice.payment_method is not None else "",
        invoice.terms or "",
        invoice.notes,
    ]


def customer_csv_row(customer: Customer) -> list[str]:
    return [
        customer.name,
        customer.phone,
        customer.email,
        customer.address,
        customer.city,
        customer.zip_code,
        _format_date(customer.date_added),
        _format_date(customer.last_service_date) if customer.last_service_date else "",
        customer.notes,
    ]


class BackupService:
    """Service for exporting, validating and restoring data."""

    def __init__(
        self,
        backup_dir: Path,
        brand: str = "InvoiceMaker",
        version: str = BACKUP_FORMAT_VERSION,
    ):
        """Initialize backup service.

        Args:
            backup_dir: Directory artifacts are written to (created on demand)
            brand: Inserted into exported file names
            version: Format version recorded in snapshots
        """
        self.backup_dir = Path(backup_dir)
        self.brand = brand
        self.version = version
        self.status = BackupStatus.IDLE

    @property
    def automatic_backup_path(self) -> Path:
        return self.backup_dir / AUTOMATIC_BACKUP_FILENAME

    # Export

    def export_to_json(
        self, invoices: Iterable[Invoice], customers: Iterable[Customer]
    ) -> Result[Path]:
        """Write a full snapshot to a new timestamped JSON file."""

        def export() -> Result[Path]:
            record = self._snapshot_record(invoices, customers)
            data = json.dumps(record, indent=2, sort_keys=True)
            path = self._write_timestamped(data, prefix="backup", extension="json")
            return Success(path)

        return self._run("export_json", export, failure=BackupError.export_failed)

    def export_invoices_to_csv(self, invoices: Iterable[Invoice]) -> Result[Path]:
        """Write one CSV row per invoice to a new timestamped file."""

        def export() -> Result[Path]:
            data = render_csv(INVOICE_CSV_HEADER, (invoice_csv_row(i) for i in invoices))
            path = self._write_timestamped(data, prefix="invoices", extension="csv")
            return Success(path)

        return self._run("export_invoices_csv", export, failure=BackupError.export_failed)

    def export_customers_to_csv(self, customers: Iterable[Customer]) -> Result[Path]:
        """Write one CSV row per customer to a new timestamped file."""

        def export() -> Result[Path]:
            data = render_csv(CUSTOMER_CSV_HEADER, (customer_csv_row(c) for c in customers))
            path = self._write_timestamped(data, prefix="customers", extension="csv")
            return Success(path)

        return self._run("export_customers_csv", export, failure=BackupError.export_failed)

    # Import

    def validate_backup(self, path: Path) -> Result[BackupMetadata]:
        """Read a snapshot's version, date and counts without loading entities."""
        path = Path(path)

        def validate() -> Result[BackupMetadata]:
            if not path.is_file():
                return Failure(BackupError.file_not_found())
            try:
                record = json.loads(path.read_text(encoding="utf-8"))
                return Success(mappers.metadata_from_record(record))
            except (ValueError, RecursionError) as e:
                logger.warning("backup_invalid", path=str(path), error=str(e))
                return Failure(BackupError.invalid_data())

        return self._run("validate_backup", validate, failure=BackupError.import_failed)

    def import_from_json(self, path: Path) -> Result[BackupSnapshot]:
        """Decode a full snapshot. Nothing is applied to storage here."""
        path = Path(path)

        def load() -> Result[BackupSnapshot]:
            if not path.is_file():
                return Failure(BackupError.file_not_found())
            return Success(self._read_snapshot(path))

        return self._run("import_json", load, failure=BackupError.import_failed)

    def restore_snapshot(
        self,
        snapshot: BackupSnapshot,
        invoice_service: InvoiceService,
        customer_service: CustomerService,
    ) -> tuple[int, int]:
        """Save every entity of the snapshot through the normal save path.

        This merges by ID: stored entities that also appear in the snapshot
        are overwritten, all others are left untouched. Nothing is deleted.

        Returns:
            Tuple of (invoices saved, customers saved)
        """
        for invoice in snapshot.invoices:
            invoice_service.save_invoice(invoice)
        for customer in snapshot.customers:
            customer_service.save_customer(customer)
        logger.info(
            "backup_restored",
            invoices=len(snapshot.invoices),
            customers=len(snapshot.customers),
        )
        return len(snapshot.invoices), len(snapshot.customers)

    # Automatic backup

    def create_automatic_backup(
        self, invoices: Iterable[Invoice], customers: Iterable[Customer]
    ) -> Result[Path]:
        """Write the rolling backup, replacing the previous one."""

        def create() -> Result[Path]:
            data = json.dumps(self._snapshot_record(invoices, customers))
            self._write_atomic(self.automatic_backup_path, data)
            return Success(self.automatic_backup_path)

        return self._run("automatic_backup", create, failure=BackupError.export_failed)

    def get_latest_automatic_backup(self) -> Result[BackupSnapshot]:
        """Read the rolling backup written by :meth:`create_automatic_backup`."""

        def load() -> Result[BackupSnapshot]:
            if not self.automatic_backup_path.is_file():
                return Failure(BackupError.file_not_found())
            return Success(self._read_snapshot(self.automatic_backup_path))

        return self._run("read_automatic_backup", load, failure=BackupError.import_failed)

    # Helpers

    def _run(
        self,
        operation: str,
        action: Callable[[], Result[Any]],
        failure: Callable[[str], BackupError],
    ) -> Result[Any]:
        """Run one operation, tracking status and turning errors into Failure."""
        self.status = BackupStatus.IN_PROGRESS
        try:
            result = action()
        except (OSError, ValueError, TypeError, ArithmeticError, RecursionError) as e:
            result = Failure(failure(str(e)))

        if isinstance(result, Success):
            self.status = BackupStatus.SUCCEEDED
            logger.info(f"{operation}_succeeded", result=_describe(result.value))
        else:
            self.status = BackupStatus.FAILED
            logger.warning(f"{operation}_failed", error=str(result.error))
        return result

    def _snapshot_record(
        self, invoices: Iterable[Invoice], customers: Iterable[Customer]
    ) -> dict[str, Any]:
        snapshot = BackupSnapshot(
            version=self.version,
            export_date=utcnow(),
            invoices=tuple(invoices),
            customers=tuple(customers),
        )
        return mappers.snapshot_to_record(snapshot)

    def _read_snapshot(self, path: Path) -> BackupSnapshot:
        record = json.loads(path.read_text(encoding="utf-8"))
        return mappers.snapshot_from_record(record)

    def _write_timestamped(self, data: str, prefix: str, extension: str) -> Path:
        timestamp = datetime.now().strftime("%Y-%m-%d_%H%M%S")
        stem = f"{prefix}_{self.brand}_{timestamp}"
        path = self.backup_dir / f"{stem}.{extension}"
        suffix = 1
        # Timestamped artifacts are never overwritten
        while path.exists():
            suffix += 1
            path = self.backup_dir / f"{stem}_{suffix}.{extension}"
        self._write_atomic(path, data)
        return path

    def _write_atomic(self, path: Path, data: str) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8", newline="") as f:
                f.write(data)
            os.replace(tmp_name, path)
        except BaseException:
            if os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise


def _describe(value: Any) -> str:
    if isinstance(value, BackupSnapshot):
        return f"{len(value.invoices)} invoices, {len(value.customers)} customers"
    if isinstance(value, BackupMetadata):
        return f"version {value.version}"
    return str(value)
