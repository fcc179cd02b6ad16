"""Utility for resolving command-line references to stored entities."""

from uuid import UUID

from invoicemaker.domain.customer import CustomerService
from invoicemaker.domain.entities import Customer, Invoice
from invoicemaker.domain.errors import NotFoundError, ValidationError, customer_not_found, invoice_not_found
from invoicemaker.domain.invoice import InvoiceService


def _by_id_prefix(entities: list, reference: str) -> list:
    reference = reference.lower()
    return [e for e in entities if str(e.id).startswith(reference)]


def resolve_invoice(invoice_service: InvoiceService, reference: str) -> Invoice:
    """Resolve an invoice ID, ID prefix or invoice number to an invoice.

    Args:
        invoice_service: InvoiceService instance
        reference: Full UUID, leading part of a UUID, or invoice number

    Returns:
        Invoice entity

    Raises:
        NotFoundError: If nothing matches
        ValidationError: If the reference matches more than one invoice
    """
    try:
        invoice = invoice_service.get_invoice(UUID(reference))
        if invoice is not None:
            return invoice
    except ValueError:
        # Not a full UUID, try prefix and number
        pass

    matches = invoice_service.find_by_number(reference) or _by_id_prefix(
        invoice_service.invoices, reference
    )
    if not matches:
        raise NotFoundError(invoice_not_found(reference))
    if len(matches) > 1:
        raise ValidationError(
            f"'{reference}' matches {len(matches)} invoices; use the invoice ID instead"
        )
    return matches[0]


def resolve_customer(customer_service: CustomerService, reference: str) -> Customer:
    """Resolve a customer ID, ID prefix or exact name (any case) to a customer.

    Raises:
        NotFoundError: If nothing matches
        ValidationError: If the reference matches more than one customer
    """
    try:
        customer = customer_service.get_customer(UUID(reference))
        if customer is not None:
            return customer
    except ValueError:
        pass

    lowered = reference.lower()
    matches = [
        c for c in customer_service.customers if c.display_name.lower() == lowered
    ] or _by_id_prefix(customer_service.customers, reference)
    if not matches:
        raise NotFoundError(customer_not_found(reference))
    if len(matches) > 1:
        raise ValidationError(
            f"'{reference}' matches {len(matches)} customers; use the customer ID instead"
        )
    return matches[0]
