"""Domain layer for invoicemaker application."""

from invoicemaker.domain.invoice import InvoiceService
from invoicemaker.domain.customer import CustomerService
from invoicemaker.domain.backup import BackupService

__all__ = [
    "InvoiceService",
    "CustomerService",
    "BackupService",
]
