"""Links between customers and invoices.

Invoices do not reference customers by ID; an invoice belongs to a customer
when its client name equals the customer's display name, ignoring case.
Renaming a customer therefore detaches their earlier invoices, and two
customers sharing a display name share invoices. Both are known limitations
of the stored data, kept so existing records keep resolving the same way.
"""

import random
from dataclasses import replace
from datetime import datetime
from decimal import Decimal
from typing import Iterable, Optional

from invoicemaker.domain.entities import (
    Customer,
    Invoice,
    PaymentMethod,
    ZERO,
    utcnow,
)

DEFAULT_TAX_RATE = Decimal("0.085")
INVOICE_NUMBER_PREFIX = "RL"


def _same_name(client_name: str, customer: Customer) -> bool:
    return client_name.lower() == customer.display_name.lower()


def invoices_for_customer(customer: Customer, invoices: Iterable[Invoice]) -> list[Invoice]:
    """Return the invoices whose client name matches the customer."""
    return [invoice for invoice in invoices if _same_name(invoice.client_name, customer)]


def total_spent_by_customer(customer: Customer, invoices: Iterable[Invoice]) -> Decimal:
    return sum((i.total for i in invoices_for_customer(customer, invoices)), ZERO)


def average_invoice_for_customer(customer: Customer, invoices: Iterable[Invoice]) -> Decimal:
    matched = invoices_for_customer(customer, invoices)
    if not matched:
        return ZERO
    return sum((i.total for i in matched), ZERO) / len(matched)


def last_invoice_date_for_customer(
    customer: Customer, invoices: Iterable[Invoice]
) -> Optional[datetime]:
    matched = invoices_for_customer(customer, invoices)
    if not matched:
        return None
    return max(i.date for i in matched)


def find_customer_for_invoice(invoice: Invoice, customers: Iterable[Customer]) -> Optional[Customer]:
    """Return the first customer whose display name matches the invoice."""
    for customer in customers:
        if _same_name(invoice.client_name, customer):
            return customer
    return None


def sync_invoice_with_customer(invoice: Invoice, customers: Iterable[Customer]) -> Invoice:
    """Normalize the invoice's client name to the matching customer's spelling."""
    customer = find_customer_for_invoice(invoice, customers)
    if customer is None:
        return invoice
    return replace(invoice, client_name=customer.display_name)


def generate_invoice_number(now: Optional[datetime] = None) -> str:
    """Return a number like ``RL-20250912-4821``."""
    now = now or utcnow()
    return f"{INVOICE_NUMBER_PREFIX}-{now:%Y%m%d}-{random.randint(1000, 9999)}"


def create_invoice_for_customer(customer: Customer) -> Invoice:
    """Start a new invoice pre-filled for the customer."""
    return Invoice(
        number=generate_invoice_number(),
        client_name=customer.display_name,
        tax_rate=DEFAULT_TAX_RATE,
        notes=f"Service for {customer.display_name}",
        payment_method=PaymentMethod.CASH,
    )
