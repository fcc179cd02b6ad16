"""Tests for record mappers."""

import json

import pytest
from datetime import datetime, UTC
from decimal import Decimal

from invoicemaker.database import mappers
from invoicemaker.domain.entities import BackupSnapshot, Customer, Invoice, PaymentMethod


class TestInvoiceMapper:
    """Tests for invoice records."""

    def test_record_uses_stored_key_names(self, sample_invoice):
        record = mappers.invoice_to_record(sample_invoice)

        assert record["clientName"] == "Jane Doe"
        assert record["taxRate"] == "0.085"
        assert record["paymentMethod"] == "Card"
        assert record["terms"] == "Due on receipt"
        assert record["items"][0]["descriptionText"] == "Diagnosis"
        assert record["items"][0]["unitPrice"] == "79.00"

    def test_round_trip_through_json(self, sample_invoice):
        record = json.loads(json.dumps(mappers.invoice_to_record(sample_invoice)))
        assert mappers.invoice_from_record(record) == sample_invoice

    def test_optional_fields_omitted(self):
        invoice = Invoice(number="RL-1", client_name="Jane")
        record = mappers.invoice_to_record(invoice)

        assert "paymentMethod" not in record
        assert "terms" not in record
        decoded = mappers.invoice_from_record(record)
        assert decoded.payment_method is None
        assert decoded.terms is None

    def test_numeric_json_values_accepted(self, sample_invoice):
        """Records written with plain JSON numbers still decode exactly."""
        record = mappers.invoice_to_record(sample_invoice)
        record["taxRate"] = 0.085
        record["discount"] = 0
        decoded = mappers.invoice_from_record(record)
        assert decoded.tax_rate == Decimal("0.085")
        assert decoded.discount == 0

    def test_naive_date_read_as_utc(self, sample_invoice):
        record = mappers.invoice_to_record(sample_invoice)
        record["date"] = "2025-09-12T15:30:00"
        assert mappers.invoice_from_record(record).date == datetime(2025, 9, 12, 15, 30, tzinfo=UTC)

    @pytest.mark.parametrize(
        "field,value",
        [
            ("id", "not-a-uuid"),
            ("date", "yesterday-ish"),
            ("discount", "lots"),
            ("discount", True),
            ("discount", "NaN"),
            ("taxRate", "Infinity"),
            ("taxRate", float("nan")),
            ("discount", 1e400),
            ("items", {"not": "a list"}),
            ("paymentMethod", "Bitcoin"),
            ("notes", 42),
        ],
    )
    def test_bad_field_raises_value_error(self, sample_invoice, field, value):
        record = mappers.invoice_to_record(sample_invoice)
        record[field] = value
        with pytest.raises(ValueError):
            mappers.invoice_from_record(record)

    def test_missing_field_raises_record_error(self, sample_invoice):
        record = mappers.invoice_to_record(sample_invoice)
        del record["clientName"]
        with pytest.raises(mappers.RecordError, match="clientName"):
            mappers.invoice_from_record(record)

    def test_non_object_record(self):
        with pytest.raises(mappers.RecordError):
            mappers.invoice_from_record(["RL-1"])


class TestCustomerMapper:
    """Tests for customer records."""

    def test_round_trip(self):
        customer = Customer(
            name="Jane Doe",
            phone="8165551234",
            zip_code="64105",
            last_service_date=datetime(2025, 3, 1, tzinfo=UTC),
        )
        record = mappers.customer_to_record(customer)

        assert record["zipCode"] == "64105"
        assert "lastServiceDate" in record
        assert mappers.customer_from_record(record) == customer

    def test_never_serviced(self):
        record = mappers.customer_to_record(Customer(name="Jane"))
        assert "lastServiceDate" not in record
        assert mappers.customer_from_record(record).last_service_date is None

    def test_list_decoding_requires_list(self):
        with pytest.raises(ValueError):
            mappers.customers_from_records({"name": "Jane"})


class TestSnapshotMapper:
    """Tests for backup snapshot records."""

    def test_round_trip(self, sample_invoice):
        snapshot = BackupSnapshot(
            version="1.0.0",
            export_date=datetime(2025, 9, 12, tzinfo=UTC),
            invoices=(sample_invoice,),
            customers=(Customer(name="Jane Doe"),),
        )
        record = json.loads(json.dumps(mappers.snapshot_to_record(snapshot)))

        assert set(record) == {"version", "exportDate", "invoices", "customers"}
        assert mappers.snapshot_from_record(record) == snapshot

    def test_metadata_counts_without_decoding(self):
        record = {
            "version": "1.0.0",
            "exportDate": "2025-09-12T00:00:00+00:00",
            "invoices": [{}, {}],
            "customers": [{}],
        }
        metadata = mappers.metadata_from_record(record)
        assert metadata.invoice_count == 2
        assert metadata.customer_count == 1

    def test_snapshot_missing_collection(self):
        with pytest.raises(mappers.RecordError):
            mappers.snapshot_from_record({"version": "1.0.0", "exportDate": "2025-09-12T00:00:00"})

    def test_payment_method_values(self):
        assert [m.value for m in PaymentMethod] == ["Cash", "Card", "Check", "Zelle", "Other"]


class TestLineItemMapper:
    @pytest.mark.parametrize("field", ["quantity", "unitPrice"])
    def test_non_finite_amount_rejected(self, field):
        record = {"id": "6f1c1b6e-6d4a-4c83-9a6f-5bd1c1f0a2aa", "descriptionText": "Repair", "quantity": "1", "unitPrice": "180"}
        record[field] = "-Infinity"
        with pytest.raises(mappers.RecordError, match="finite"):
            mappers.line_item_from_record(record)
