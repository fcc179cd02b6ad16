"""Mapper functions to convert between domain entities and stored records.

Records are plain JSON-ready dicts with camelCase keys, matching backup
files written by the mobile app, so collection blobs and backup snapshots
share one encoding. Decoders raise :class:`RecordError` for anything malformed.
"""

from datetime import datetime, UTC
from decimal import Decimal, InvalidOperation
from typing import Any, Optional
from uuid import UUID

from invoicemaker.domain import entities as domain


class RecordError(ValueError):
    """A stored record could not be decoded into a domain entity."""


def _encode_datetime(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return value.isoformat()


def _decode_datetime(value: Any) -> datetime:
    if not isinstance(value, str):
        raise RecordError(f"Expected ISO-8601 string, got {value!r}")
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


def _decode_optional_datetime(value: Any) -> Optional[datetime]:
    if value is None:
        return None
    return _decode_datetime(value)


def _decode_decimal(value: Any) -> Decimal:
    if isinstance(value, bool) or not isinstance(value, (str, int, float)):
        raise RecordError(f"Expected number, got {value!r}")
    try:
        # Floats go through str() so 0.085 stays 0.085
        number = Decimal(str(value))
    except InvalidOperation:
        raise RecordError(f"Invalid number {value!r}")
    if not number.is_finite():
        raise RecordError(f"Number must be finite, got {value!r}")
    return number


def _decode_str(value: Any) -> str:
    if not isinstance(value, str):
        raise RecordError(f"Expected string, got {value!r}")
    return value


def _decode_optional_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    return _decode_str(value)


def _require_mapping(record: Any, kind: str) -> dict[str, Any]:
    if not isinstance(record, dict):
        raise RecordError(f"Expected {kind} object, got {type(record).__name__}")
    return record


def _require_list(value: Any, kind: str) -> list[Any]:
    if not isinstance(value, list):
        raise RecordError(f"Expected list of {kind}, got {type(value).__name__}")
    return value


def line_item_to_record(item: domain.LineItem) -> dict[str, Any]:
    """Convert LineItem entity to a record."""
    return {
        "id": str(item.id),
        "descriptionText": item.description,
        "quantity": str(item.quantity),
        "unitPrice": str(item.unit_price),
    }


def line_item_from_record(record: Any) -> domain.LineItem:
    """Convert a record to LineItem entity."""
    record = _require_mapping(record, "line item")
    try:
        return domain.LineItem(
            id=UUID(_decode_str(record["id"])),
            description=_decode_str(record["descriptionText"]),
            quantity=_decode_decimal(record["quantity"]),
            unit_price=_decode_decimal(record["unitPrice"]),
        )
    except KeyError as e:
        raise RecordError(f"Line item missing field {e}")


def invoice_to_record(invoice: domain.Invoice) -> dict[str, Any]:
    """Convert Invoice entity to a record."""
    record: dict[str, Any] = {
        "id": str(invoice.id),
        "number": invoice.number,
        "date": _encode_datetime(invoice.date),
        "clientName": invoice.client_name,
        "items": [line_item_to_record(item) for item in invoice.items],
        "discount": str(invoice.discount),
        "taxRate": str(invoice.tax_rate),
        "notes": invoice.notes,
    }
    if invoice.payment_method is not None:
        record["paymentMethod"] = invoice.payment_method.value
    if invoice.terms is not None:
        record["terms"] = invoice.terms
    return record


def invoice_from_record(record: Any) -> domain.Invoice:
    """Convert a record to Invoice entity."""
    record = _require_mapping(record, "invoice")
    try:
        payment_method = record.get("paymentMethod")
        return domain.Invoice(
            id=UUID(_decode_str(record["id"])),
            number=_decode_str(record["number"]),
            date=_decode_datetime(record["date"]),
            client_name=_decode_str(record["clientName"]),
            items=tuple(
                line_item_from_record(item)
                for item in _require_list(record["items"], "line items")
            ),
            discount=_decode_decimal(record["discount"]),
            tax_rate=_decode_decimal(record["taxRate"]),
            notes=_decode_str(record["notes"]),
            payment_method=(
                domain.PaymentMethod(payment_method) if payment_method is not None else None
            ),
            terms=_decode_optional_str(record.get("terms")),
        )
    except KeyError as e:
        raise RecordError(f"Invoice missing field {e}")


def customer_to_record(customer: domain.Customer) -> dict[str, Any]:
    """Convert Customer entity to a record."""
    record: dict[str, Any] = {
        "id": str(customer.id),
        "name": customer.name,
        "phone": customer.phone,
        "email": customer.email,
        "address": customer.address,
        "city": customer.city,
        "zipCode": customer.zip_code,
        "notes": customer.notes,
        "dateAdded": _encode_datetime(customer.date_added),
    }
    if customer.last_service_date is not None:
        record["lastServiceDate"] = _encode_datetime(customer.last_service_date)
    return record


def customer_from_record(record: Any) -> domain.Customer:
    """Convert a record to Customer entity."""
    record = _require_mapping(record, "customer")
    try:
        return domain.Customer(
            id=UUID(_decode_str(record["id"])),
            name=_decode_str(record["name"]),
            phone=_decode_str(record["phone"]),
            email=_decode_str(record["email"]),
            address=_decode_str(record["address"]),
            city=_decode_str(record["city"]),
            zip_code=_decode_str(record["zipCode"]),
            notes=_decode_str(record["notes"]),
            date_added=_decode_datetime(record["dateAdded"]),
            last_service_date=_decode_optional_datetime(record.get("lastServiceDate")),
        )
    except KeyError as e:
        raise RecordError(f"Customer missing field {e}")


def invoices_from_records(records: Any) -> list[domain.Invoice]:
    return [invoice_from_record(record) for record in _require_list(records, "invoices")]


def customers_from_records(records: Any) -> list[domain.Customer]:
    return [customer_from_record(record) for record in _require_list(records, "customers")]


def snapshot_to_record(snapshot: domain.BackupSnapshot) -> dict[str, Any]:
    """Convert BackupSnapshot to a record."""
    return {
        "version": snapshot.version,
        "exportDate": _encode_datetime(snapshot.export_date),
        "invoices": [invoice_to_record(invoice) for invoice in snapshot.invoices],
        "customers": [customer_to_record(customer) for customer in snapshot.customers],
    }


def snapshot_from_record(record: Any) -> domain.BackupSnapshot:
    """Convert a record to BackupSnapshot, decoding every entity."""
    record = _require_mapping(record, "backup")
    try:
        return domain.BackupSnapshot(
            version=_decode_str(record["version"]),
            export_date=_decode_datetime(record["exportDate"]),
            invoices=tuple(invoices_from_records(record["invoices"])),
            customers=tuple(customers_from_records(record["customers"])),
        )
    except KeyError as e:
        raise RecordError(f"Backup missing field {e}")


def metadata_from_record(record: Any) -> domain.BackupMetadata:
    """Read snapshot metadata and counts without decoding the entities."""
    record = _require_mapping(record, "backup")
    try:
        return domain.BackupMetadata(
            version=_decode_str(record["version"]),
            export_date=_decode_datetime(record["exportDate"]),
            invoice_count=len(_require_list(record["invoices"], "invoices")),
            customer_count=len(_require_list(record["customers"], "customers")),
        )
    except KeyError as e:
        raise RecordError(f"Backup missing field {e}")
