"""Form validation rules.

Every rule is a pure function returning a :class:`ValidationResult`; none of
them raise for bad input. Forms call them before allowing a save.
"""

import re
from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable, Optional

from invoicemaker.domain.entities import Customer, Invoice, LineItem, ZERO
from invoicemaker.utils.phone import clean_phone_number, digits_only

_EMAIL_PATTERN = re.compile(r"[A-Z0-9a-z._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,64}")

MAX_QUANTITY = Decimal("10000")
MAX_PRICE = Decimal("1000000")


@dataclass(frozen=True)
class ValidationResult:
    """Outcome of a single validation rule."""

    error_message: Optional[str] = None

    @property
    def is_valid(self) -> bool:
        return self.error_message is None

    @classmethod
    def valid(cls) -> "ValidationResult":
        return cls()

    @classmethod
    def invalid(cls, message: str) -> "ValidationResult":
        return cls(error_message=message)


VALID = ValidationResult.valid()


# Customer validation


def validate_name(name: str) -> ValidationResult:
    trimmed = name.strip()
    if not trimmed:
        return ValidationResult.invalid("Name is required")
    if len(trimmed) < 2:
        return ValidationResult.invalid("Name must be at least 2 characters")
    if len(trimmed) > 100:
        return ValidationResult.invalid("Name is too long (max 100 characters)")
    return VALID


def validate_phone(phone: str) -> ValidationResult:
    """Phone is optional, but if provided must have 10 digits."""
    trimmed = phone.strip()
    if not trimmed:
        return VALID
    if len(clean_phone_number(trimmed)) != 10:
        return ValidationResult.invalid("Phone must be 10 digits")
    return VALID


def validate_email(email: str) -> ValidationResult:
    trimmed = email.strip()
    if not trimmed:
        return VALID
    if not _EMAIL_PATTERN.fullmatch(trimmed):
        return ValidationResult.invalid("Invalid email format")
    return VALID


def validate_zip_code(zip_code: str) -> ValidationResult:
    trimmed = zip_code.strip()
    if not trimmed:
        return VALID
    if len(digits_only(trimmed)) != 5:
        return ValidationResult.invalid("ZIP code must be 5 digits")
    return VALID


# Invoice validation


def validate_invoice_number(number: str) -> ValidationResult:
    trimmed = number.strip()
    if not trimmed:
        return ValidationResult.invalid("Invoice number is required")
    if len(trimmed) < 3:
        return ValidationResult.invalid("Invoice number too short")
    if len(trimmed) > 50:
        return ValidationResult.invalid("Invoice number too long (max 50 characters)")
    return VALID


def validate_client_name(name: str) -> ValidationResult:
    trimmed = name.strip()
    if not trimmed:
        return ValidationResult.invalid("Client name is required")
    if len(trimmed) < 2:
        return ValidationResult.invalid("Client name must be at least 2 characters")
    return VALID


def validate_item_description(description: str) -> ValidationResult:
    trimmed = description.strip()
    if not trimmed:
        return ValidationResult.invalid("Item description is required")
    if len(trimmed) < 3:
        return ValidationResult.invalid("Description too short (min 3 characters)")
    return VALID


def validate_quantity(quantity: Decimal) -> ValidationResult:
    if quantity <= 0:
        return ValidationResult.invalid("Quantity must be greater than 0")
    if quantity > MAX_QUANTITY:
        return ValidationResult.invalid("Quantity too large (max 10,000)")
    return VALID


def validate_price(price: Decimal) -> ValidationResult:
    if price < 0:
        return ValidationResult.invalid("Price cannot be negative")
    if price > MAX_PRICE:
        return ValidationResult.invalid("Price too large (max $1,000,000)")
    return VALID


def validate_discount_percentage(percentage: Decimal) -> ValidationResult:
    """Validate the percentage typed into the invoice form (not the stored amount)."""
    if percentage < 0:
        return ValidationResult.invalid("Discount cannot be negative")
    if percentage > 100:
        return ValidationResult.invalid("Discount cannot exceed 100%")
    return VALID


# Authentication validation


def validate_username(username: str) -> ValidationResult:
    trimmed = username.strip()
    if not trimmed:
        return ValidationResult.invalid("Username is required")
    if len(trimmed) < 3:
        return ValidationResult.invalid("Username must be at least 3 characters")
    if len(trimmed) > 50:
        return ValidationResult.invalid("Username too long (max 50 characters)")
    return VALID


def validate_password(password: str) -> ValidationResult:
    if not password:
        return ValidationResult.invalid("Password is required")
    if len(password) < 6:
        return ValidationResult.invalid("Password must be at least 6 characters")
    if len(password) > 100:
        return ValidationResult.invalid("Password too long (max 100 characters)")
    return VALID


def validate_new_password(password: str) -> ValidationResult:
    """Stricter rules for the change-password flow."""
    if not password:
        return ValidationResult.invalid("Password is required")
    if len(password) < 8:
        return ValidationResult.invalid("Password must be at least 8 characters")
    if len(password) > 100:
        return ValidationResult.invalid("Password too long")
    if not any(ch.isdigit() for ch in password):
        return ValidationResult.invalid("Password must contain at least one number")
    if not any(ch.isalpha() for ch in password):
        return ValidationResult.invalid("Password must contain at least one letter")
    return VALID


def validate_password_confirmation(password: str, confirmation: str) -> ValidationResult:
    if password != confirmation:
        return ValidationResult.invalid("Passwords do not match")
    return VALID


# Whole-entity checks


def first_failure(results: Iterable[ValidationResult]) -> ValidationResult:
    """Return the first invalid result, or a valid one if all pass."""
    for result in results:
        if not result.is_valid:
            return result
    return VALID


def validate_line_item(item: LineItem) -> ValidationResult:
    return first_failure(
        (
            validate_item_description(item.description),
            validate_quantity(item.quantity),
            validate_price(item.unit_price),
        )
    )


def validate_customer(customer: Customer) -> ValidationResult:
    """Run the customer form rules against a whole customer."""
    return first_failure(
        (
            validate_name(customer.name),
            validate_phone(customer.phone),
            validate_email(customer.email),
            validate_zip_code(customer.zip_code),
        )
    )


def validate_invoice(invoice: Invoice) -> ValidationResult:
    """Run the invoice form rules against an invoice and its items."""
    header = first_failure(
        (
            validate_invoice_number(invoice.number),
            validate_client_name(invoice.client_name),
        )
    )
    if not header.is_valid:
        return header
    return first_failure(validate_line_item(item) for item in invoice.items)


# Discount conversion used by the invoice form


def discount_amount_from_percentage(sub_total: Decimal, percentage: Decimal) -> Decimal:
    """Convert the form's discount percentage into the stored fixed amount."""
    return sub_total * percentage / 100


def discount_percentage_from_amount(sub_total: Decimal, amount: Decimal) -> Decimal:
    """Approximate the percentage for a stored fixed discount (0 when not computable)."""
    if amount <= 0 or sub_total <= 0:
        return ZERO
    return amount / sub_total * 100
