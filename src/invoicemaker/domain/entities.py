"""Domain model entities for invoicemaker.

These are pure data classes representing business concepts, independent of
how they are persisted. Financial fields are derived on access so a stored
record never carries a stale total.
"""

from dataclasses import dataclass, field
from datetime import datetime, date, UTC
from decimal import Decimal
from enum import Enum
from typing import Optional
from uuid import UUID, uuid4

from invoicemaker.utils.phone import clean_phone_number, format_phone_number

ZERO = Decimal("0")
UNNAMED_CUSTOMER = "Unnamed Customer"


def utcnow() -> datetime:
    """Return the current time as an aware UTC datetime."""
    return datetime.now(UTC)


class PaymentMethod(Enum):
    """How an invoice was paid."""

    CASH = "Cash"
    CARD = "Card"
    CHECK = "Check"
    ZELLE = "Zelle"
    OTHER = "Other"


class CustomerSortOption(Enum):
    """Sort orders offered for the customer list."""

    NAME = "Name"
    DATE_ADDED = "Date Added"
    LAST_SERVICE = "Last Service"


@dataclass(frozen=True)
class LineItem:
    """A single billable line on an invoice."""

    id: UUID = field(default_factory=uuid4)
    description: str = ""
    quantity: Decimal = Decimal("1")
    unit_price: Decimal = ZERO

    @property
    def line_total(self) -> Decimal:
        """Quantity times unit price, with negative inputs clamped to zero."""
        return max(ZERO, self.quantity) * max(ZERO, self.unit_price)


@dataclass(frozen=True)
class Invoice:
    """Invoice domain entity.

    ``discount`` is a fixed currency amount, ``tax_rate`` a fraction
    (``Decimal("0.085")`` is 8.5%). Tax is applied after the discount.
    """

    number: str
    id: UUID = field(default_factory=uuid4)
    date: datetime = field(default_factory=utcnow)
    client_name: str = ""
    items: tuple[LineItem, ...] = ()
    discount: Decimal = ZERO
    tax_rate: Decimal = ZERO
    notes: str = ""
    payment_method: Optional[PaymentMethod] = None
    terms: Optional[str] = None

    @property
    def sub_total(self) -> Decimal:
        """Sum of all line totals before discount and tax."""
        return sum((item.line_total for item in self.items), ZERO)

    @property
    def discounted(self) -> Decimal:
        """Subtotal minus discount, never below zero."""
        return max(ZERO, self.sub_total - max(ZERO, self.discount))

    @property
    def tax(self) -> Decimal:
        """Tax on the discounted amount."""
        return self.discounted * max(ZERO, self.tax_rate)

    @property
    def total(self) -> Decimal:
        return self.discounted + self.tax

    @property
    def has_items(self) -> bool:
        return len(self.items) > 0

    @property
    def has_discount(self) -> bool:
        return self.discount > 0

    @property
    def has_tax(self) -> bool:
        return self.tax_rate > 0


@dataclass(frozen=True)
class Customer:
    """Customer domain entity with contact details and service history dates."""

    id: UUID = field(default_factory=uuid4)
    name: str = ""
    phone: str = ""
    email: str = ""
    address: str = ""
    city: str = ""
    zip_code: str = ""
    notes: str = ""
    date_added: datetime = field(default_factory=utcnow)
    last_service_date: Optional[datetime] = None

    @property
    def full_address(self) -> str:
        """Non-empty address components joined with commas."""
        components = [part for part in (self.address, self.city, self.zip_code) if part]
        return ", ".join(components)

    @property
    def formatted_phone(self) -> str:
        """Phone as ``(XXX) XXX-XXXX`` when it has 10 digits, else unchanged."""
        if not self.phone:
            return ""
        return format_phone_number(self.phone)

    @property
    def phone_digits(self) -> str:
        return clean_phone_number(self.phone)

    @property
    def display_name(self) -> str:
        return self.name if self.name else UNNAMED_CUSTOMER

    @property
    def is_new_customer(self) -> bool:
        """True when the customer was added during the current calendar month."""
        now = utcnow()
        added = self.date_added.astimezone(UTC)
        return added.year == now.year and added.month == now.month

    @property
    def days_since_last_service(self) -> Optional[int]:
        """Calendar days since the last service, or None if never serviced."""
        if self.last_service_date is None:
            return None
        serviced_on: date = self.last_service_date.astimezone(UTC).date()
        return (utcnow().date() - serviced_on).days


@dataclass(frozen=True)
class CustomerServiceRecord:
    """Invoices attributed to one customer, with summary figures."""

    customer_id: UUID
    invoices: tuple[Invoice, ...]

    @property
    def total_spent(self) -> Decimal:
        return sum((invoice.total for invoice in self.invoices), ZERO)

    @property
    def last_service_date(self) -> Optional[datetime]:
        if not self.invoices:
            return None
        return max(invoice.date for invoice in self.invoices)

    @property
    def service_count(self) -> int:
        return len(self.invoices)

    @property
    def average_invoice_amount(self) -> Decimal:
        if not self.invoices:
            return ZERO
        return self.total_spent / len(self.invoices)


@dataclass(frozen=True)
class BackupMetadata:
    """Summary of a backup snapshot, readable without loading its entities."""

    version: str
    export_date: datetime
    invoice_count: int
    customer_count: int


@dataclass(frozen=True)
class BackupSnapshot:
    """Point-in-time copy of both collections."""

    version: str
    export_date: datetime
    invoices: tuple[Invoice, ...]
    customers: tuple[Customer, ...]

    @property
    def metadata(self) -> BackupMetadata:
        return BackupMetadata(
            version=self.version,
            export_date=self.export_date,
            invoice_count=len(self.invoices),
            customer_count=len(self.customers),
        )
