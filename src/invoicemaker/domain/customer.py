"""Customer storage service."""

from dataclasses import replace
from datetime import datetime, timedelta, UTC
from typing import Iterable, Optional
from uuid import UUID

import structlog
from dateutil.relativedelta import relativedelta

from invoicemaker.database import mappers
from invoicemaker.database.base import Database
from invoicemaker.domain.collection import PersistedCollection
from invoicemaker.domain.entities import (
    Customer as CustomerEntity,
    CustomerServiceRecord,
    CustomerSortOption,
    Invoice as InvoiceEntity,
    utcnow,
)
from invoicemaker.domain.integration import invoices_for_customer

logger = structlog.get_logger(__name__)

CUSTOMERS_KEY = "savedCustomers"
RECENT_CUSTOMER_DAYS = 30
FOLLOW_UP_MONTHS = 6

# Stand-in for "never serviced" so those customers sort last
_NEVER = datetime.min.replace(tzinfo=UTC)


def sample_customers(now: Optional[datetime] = None) -> list[CustomerEntity]:
    """Demo customers with dates relative to ``now``."""
    now = now or utcnow()
    return [
        CustomerEntity(
            name="John Smith",
            phone="8165551234",
            email="john.smith@email.com",
            address="123 Oak Street",
            city="Overland Park",
            zip_code="66213",
            notes="Prefers morning appointments. Has 2 HVAC units.",
            date_added=now - timedelta(days=45),
            last_service_date=now - timedelta(days=15),
        ),
        CustomerEntity(
            name="Sarah Johnson",
            phone="9135557890",
            email="s.johnson@gmail.com",
            address="456 Maple Avenue",
            city="Leawood",
            zip_code="66224",
            notes="Annual maintenance customer. Large home with 3 units.",
            date_added=now - relativedelta(months=6),
            last_service_date=now - relativedelta(months=2),
        ),
        CustomerEntity(
            name="Mike Davis",
            phone="8165559876",
            email="",
            address="789 Pine Road",
            city="Shawnee",
            zip_code="66203",
            notes="Rental property owner. Multiple locations.",
            date_added=now - timedelta(days=10),
            last_service_date=None,
        ),
        CustomerEntity(
            name="Lisa Wilson",
            phone="9135554321",
            email="lisa.wilson@company.com",
            address="321 Cedar Lane",
            city="Olathe",
            zip_code="66051",
            notes="Business customer. Office building maintenance.",
            date_added=now - relativedelta(years=1),
            last_service_date=now - timedelta(days=21),
        ),
    ]


class CustomerService:
    """Service for storing, searching and sorting customers."""

    def __init__(self, db: Database):
        """Initialize customer service and load stored customers.

        Args:
            db: Database instance
        """
        self.db = db
        self._collection: PersistedCollection[CustomerEntity] = PersistedCollection(
            db,
            CUSTOMERS_KEY,
            mappers.customer_to_record,
            mappers.customer_from_record,
        )

    @property
    def customers(self) -> list[CustomerEntity]:
        """All customers in storage order."""
        return self._collection.entities

    @property
    def customer_count(self) -> int:
        return len(self._collection)

    def get_customer(self, customer_id: UUID) -> Optional[CustomerEntity]:
        """Get customer by ID.

        Args:
            customer_id: Customer ID

        Returns:
            Customer entity or None if not found
        """
        return self._collection.get(customer_id)

    def save_customer(self, customer: CustomerEntity) -> None:
        """Save a new customer or update the one with the same ID."""
        self._collection.upsert(customer)
        logger.info("customer_saved", customer_id=str(customer.id))

    def delete_customer(self, customer: CustomerEntity) -> None:
        """Delete a customer. Deleting an unknown customer is a no-op."""
        removed = self._collection.remove([customer.id])
        logger.info("customer_deleted", customer_id=str(customer.id), removed=removed)

    def search_customers(self, query: str) -> list[CustomerEntity]:
        """Search customers.

        Name, email and city match case-insensitively; the phone matches as
        an exact substring of the stored phone, or of its digits when the
        query is all digits.

        Args:
            query: Search text; empty returns every customer

        Returns:
            Matching customers in storage order
        """
        if not query:
            return self._collection.entities

        lowered = query.lower()

        def matches(customer: CustomerEntity) -> bool:
            return (
                lowered in customer.name.lower()
                or query in customer.phone
                or (query.isdigit() and query in customer.phone_digits)
                or lowered in customer.email.lower()
                or lowered in customer.city.lower()
            )

        return [customer for customer in self._collection.entities if matches(customer)]

    def get_customers(self, sort_option: CustomerSortOption) -> list[CustomerEntity]:
        """Return customers in the requested order.

        Args:
            sort_option: NAME ascending (case-insensitive), DATE_ADDED newest
                first, or LAST_SERVICE most recent first with never-serviced
                customers last

        Returns:
            Sorted list of customers
        """
        customers = self._collection.entities
        if sort_option is CustomerSortOption.NAME:
            return sorted(customers, key=lambda c: c.name.casefold())
        if sort_option is CustomerSortOption.DATE_ADDED:
            return sorted(customers, key=lambda c: c.date_added, reverse=True)
        return sorted(
            customers,
            key=lambda c: c.last_service_date or _NEVER,
            reverse=True,
        )

    @property
    def recent_customers(self) -> list[CustomerEntity]:
        """Customers added in the last 30 days, newest first."""
        cutoff = utcnow() - timedelta(days=RECENT_CUSTOMER_DAYS)
        recent = [c for c in self._collection.entities if c.date_added > cutoff]
        return sorted(recent, key=lambda c: c.date_added, reverse=True)

    @property
    def customers_needing_follow_up(self) -> list[CustomerEntity]:
        """Customers not serviced (or, if never serviced, added) in 6 months."""
        cutoff = utcnow() - relativedelta(months=FOLLOW_UP_MONTHS)
        return [
            c
            for c in self._collection.entities
            if (c.last_service_date or c.date_added) < cutoff
        ]

    def update_last_service_date(self, customer_id: UUID, service_date: datetime) -> bool:
        """Set a customer's last service date.

        Returns:
            False if no customer has that ID (nothing is written)
        """
        customer = self._collection.get(customer_id)
        if customer is None:
            return False
        self._collection.upsert(replace(customer, last_service_date=service_date))
        return True

    def get_service_history(
        self, customer: CustomerEntity, invoices: Iterable[InvoiceEntity]
    ) -> CustomerServiceRecord:
        """Collect the customer's invoices by matching client name."""
        return CustomerServiceRecord(
            customer_id=customer.id,
            invoices=tuple(invoices_for_customer(customer, invoices)),
        )

    def add_sample_customers(self) -> int:
        """Add demo customers whose names are not already present.

        Returns:
            Number of customers added
        """
        existing = {c.name for c in self._collection.entities}
        added = 0
        for customer in sample_customers():
            if customer.name not in existing:
                self.save_customer(customer)
                added += 1
        return added

    def reload(self) -> None:
        """Re-read customers from the database."""
        self._collection.reload()
