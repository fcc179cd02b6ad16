"""Tests for backup, export and restore."""

import csv
import json
import re
from dataclasses import replace
from datetime import datetime, UTC
from decimal import Decimal

import pytest

from invoicemaker.domain.backup import (
    AUTOMATIC_BACKUP_FILENAME,
    CUSTOMER_CSV_HEADER,
    INVOICE_CSV_HEADER,
    BackupService,
    BackupStatus,
    render_csv,
)
from invoicemaker.domain.entities import Customer, Invoice, LineItem
from invoicemaker.domain.errors import BackupError, BackupErrorKind
from invoicemaker.domain.results import Failure, Success

TIMESTAMPED = r"{prefix}_InvoiceMaker_\d{{4}}-\d{{2}}-\d{{2}}_\d{{6}}(_\d+)?\.{ext}"


def read_csv(path):
    with open(path, newline="", encoding="utf-8") as f:
        return list(csv.reader(f))


class TestBackupError:
    def test_messages(self):
        assert str(BackupError.export_failed("disk full")) == "Export failed: disk full"
        assert str(BackupError.import_failed("bad json")) == "Import failed: bad json"
        assert str(BackupError.invalid_data()) == "Invalid or corrupted backup data"
        assert str(BackupError.file_not_found()) == "Backup file not found"

    def test_equality(self):
        assert BackupError.export_failed("x") == BackupError.export_failed("x")
        assert BackupError.export_failed("x") != BackupError.import_failed("x")
        assert BackupError.file_not_found() == BackupError.file_not_found()

    def test_result_types(self):
        assert Success(1).is_success
        failure = Failure(BackupError.invalid_data())
        assert not failure.is_success
        assert failure.error.kind is BackupErrorKind.INVALID_DATA


class TestJsonExport:
    """Tests for full JSON snapshots."""

    def test_export_writes_snapshot(self, backup_service, backup_dir, sample_invoice):
        customers = [Customer(name="Jane Doe")]
        result = backup_service.export_to_json([sample_invoice], customers)

        assert isinstance(result, Success)
        path = result.value
        assert path.parent == backup_dir
        assert re.fullmatch(TIMESTAMPED.format(prefix="backup", ext="json"), path.name)

        record = json.loads(path.read_text(encoding="utf-8"))
        assert record["version"] == "1.0.0"
        assert len(record["invoices"]) == 1
        assert record["customers"][0]["name"] == "Jane Doe"

    def test_export_names_never_collide(self, backup_service, sample_invoice):
        first = backup_service.export_to_json([sample_invoice], []).value
        second = backup_service.export_to_json([], []).value

        assert first != second
        assert first.exists() and second.exists()
        assert len(json.loads(first.read_text())["invoices"]) == 1

    def test_export_empty_collections(self, backup_service):
        result = backup_service.export_to_json([], [])
        record = json.loads(result.value.read_text())
        assert record["invoices"] == []
        assert record["customers"] == []

    def test_export_failure_is_returned(self, tmp_path, sample_invoice):
        blocked = tmp_path / "blocked"
        blocked.write_text("not a directory")
        service = BackupService(blocked)

        result = service.export_to_json([sample_invoice], [])

        assert isinstance(result, Failure)
        assert result.error.kind is BackupErrorKind.EXPORT_FAILED
        assert service.status is BackupStatus.FAILED

    def test_status_tracks_last_operation(self, backup_service):
        assert backup_service.status is BackupStatus.IDLE
        backup_service.export_to_json([], [])
        assert backup_service.status is BackupStatus.SUCCEEDED


class TestCsvExport:
    """Tests for spreadsheet exports."""

    def test_invoice_csv(self, backup_service, sample_invoice):
        path = backup_service.export_invoices_to_csv([sample_invoice]).value

        assert re.fullmatch(TIMESTAMPED.format(prefix="invoices", ext="csv"), path.name)
        rows = read_csv(path)
        assert rows[0] == INVOICE_CSV_HEADER
        assert rows[1] == [
            "RL-00123",
            "2025-09-12",
            "Jane Doe",
            "259.00",
            "0.00",
            "22.02",
            "281.02",
            "Card",
            "Due on receipt",
            "Replaced capacitor",
        ]

    def test_fields_with_commas_are_quoted(self, backup_service, sample_invoice):
        invoice = replace(sample_invoice, client_name="Doe, Jane", notes='Said "call first"')
        path = backup_service.export_invoices_to_csv([invoice]).value

        line = path.read_text(encoding="utf-8").splitlines()[1]
        assert '"Doe, Jane"' in line
        assert '"Said ""call first"""' in line
        assert read_csv(path)[1][2] == "Doe, Jane"

    def test_discount_column_is_amount(self, backup_service):
        invoice = Invoice(
            number="RL-1",
            client_name="Bob",
            date=datetime(2025, 1, 2, tzinfo=UTC),
            items=(LineItem(description="Visit", unit_price=Decimal("100")),),
            discount=Decimal("15"),
        )
        row = read_csv(backup_service.export_invoices_to_csv([invoice]).value)[1]
        assert row[4] == "15.00"
        assert row[6] == "85.00"
        assert row[7] == ""
        assert row[8] == ""

    def test_customer_csv(self, backup_service):
        customers = [
            Customer(
                name="Jane Doe",
                phone="8165551234",
                city="Kansas City",
                date_added=datetime(2024, 5, 1, tzinfo=UTC),
                last_service_date=datetime(2025, 2, 3, tzinfo=UTC),
            ),
            Customer(name="Bob Brown", date_added=datetime(2024, 6, 1, tzinfo=UTC)),
        ]
        path = backup_service.export_customers_to_csv(customers).value

        assert re.fullmatch(TIMESTAMPED.format(prefix="customers", ext="csv"), path.name)
        rows = read_csv(path)
        assert rows[0] == CUSTOMER_CSV_HEADER
        assert rows[1][0] == "Jane Doe"
        assert rows[1][6:8] == ["2024-05-01", "2025-02-03"]
        assert rows[2][7] == ""

    def test_uncomputable_amount_is_returned_as_failure(self, backup_service, sample_invoice):
        broken = replace(sample_invoice, discount=Decimal("NaN"))

        result = backup_service.export_invoices_to_csv([broken])

        assert isinstance(result, Failure)
        assert result.error.kind is BackupErrorKind.EXPORT_FAILED
        assert backup_service.status is BackupStatus.FAILED

    def test_empty_export_has_header_only(self, backup_service):
        path = backup_service.export_customers_to_csv([]).value
        assert read_csv(path) == [CUSTOMER_CSV_HEADER]

    def test_render_csv(self):
        text = render_csv(["A", "B"], [["1", "x\ny"]])
        assert text == 'A,B\n1,"x\ny"\n'


class TestValidateAndImport:
    """Tests for reading snapshots back."""

    def test_validate_reports_metadata(self, backup_service, sample_invoice):
        path = backup_service.export_to_json(
            [sample_invoice], [Customer(name="A1"), Customer(name="B2")]
        ).value

        metadata = backup_service.validate_backup(path).value

        assert metadata.version == "1.0.0"
        assert metadata.invoice_count == 1
        assert metadata.customer_count == 2
        assert metadata.export_date.tzinfo is not None

    def test_validate_missing_file(self, backup_service, tmp_path):
        result = backup_service.validate_backup(tmp_path / "nope.json")
        assert result.error == BackupError.file_not_found()

    @pytest.mark.parametrize(
        "content",
        ["{not json", "[]", '{"version": "1.0.0"}', '{"version": "1", "exportDate": "x", "invoices": [], "customers": []}'],
    )
    def test_validate_invalid_data(self, backup_service, tmp_path, content):
        path = tmp_path / "broken.json"
        path.write_text(content)

        result = backup_service.validate_backup(path)

        assert result.error == BackupError.invalid_data()

    def test_import_round_trip(self, backup_service, sample_invoice):
        customers = [Customer(name="Jane Doe", phone="8165551234")]
        path = backup_service.export_to_json([sample_invoice], customers).value

        snapshot = backup_service.import_from_json(path).value

        assert snapshot.invoices == (sample_invoice,)
        assert snapshot.customers == tuple(customers)

    def test_import_missing_file(self, backup_service, tmp_path):
        result = backup_service.import_from_json(tmp_path / "nope.json")
        assert result.error.kind is BackupErrorKind.FILE_NOT_FOUND

    def test_import_corrupted_file(self, backup_service, tmp_path):
        path = tmp_path / "broken.json"
        path.write_text('{"version": "1.0.0", "exportDate": "2025-01-01T00:00:00", "invoices": [{"id": 1}], "customers": []}')

        result = backup_service.import_from_json(path)

        assert result.error.kind is BackupErrorKind.IMPORT_FAILED
        assert backup_service.status is BackupStatus.FAILED

    @pytest.mark.parametrize("field,value", [("discount", "NaN"), ("taxRate", float("inf"))])
    def test_import_rejects_non_finite_amounts(self, backup_service, sample_invoice, field, value):
        path = backup_service.export_to_json([sample_invoice], []).value
        record = json.loads(path.read_text())
        record["invoices"][0][field] = value
        path.write_text(json.dumps(record))

        result = backup_service.import_from_json(path)

        assert result.error.kind is BackupErrorKind.IMPORT_FAILED

    def test_deeply_nested_file_is_invalid(self, backup_service, tmp_path):
        path = tmp_path / "nested.json"
        path.write_text("[" * 100_000 + "]" * 100_000)

        assert backup_service.validate_backup(path).error == BackupError.invalid_data()
        assert backup_service.import_from_json(path).error.kind is BackupErrorKind.IMPORT_FAILED


class TestRestore:
    """Restoring merges a snapshot into storage by ID."""

    def test_restore_merges_by_id(
        self, backup_service, invoice_service, customer_service, sample_invoice
    ):
        kept = Invoice(number="RL-KEEP", client_name="Bob")
        invoice_service.save_invoice(sample_invoice)
        invoice_service.save_invoice(kept)
        customer = Customer(name="Jane Doe")
        customer_service.save_customer(customer)

        edited = replace(sample_invoice, notes="From backup")
        added = Invoice(number="RL-NEW", client_name="Jane Doe")
        path = backup_service.export_to_json(
            [edited, added], [replace(customer, city="Leawood")]
        ).value
        snapshot = backup_service.import_from_json(path).value

        counts = backup_service.restore_snapshot(snapshot, invoice_service, customer_service)

        assert counts == (2, 1)
        assert [i.number for i in invoice_service.invoices] == ["RL-00123", "RL-KEEP", "RL-NEW"]
        assert invoice_service.get_invoice(sample_invoice.id).notes == "From backup"
        assert customer_service.customers[0].city == "Leawood"

    def test_restore_into_empty_storage(self, temp_db, backup_service, invoice_service, customer_service, sample_invoice):
        path = backup_service.export_to_json([sample_invoice], [Customer(name="Jane Doe")]).value
        snapshot = backup_service.import_from_json(path).value

        backup_service.restore_snapshot(snapshot, invoice_service, customer_service)

        assert invoice_service.invoices == [sample_invoice]
        assert customer_service.customer_count == 1


class TestAutomaticBackup:
    """Tests for the rolling automatic backup."""

    def test_latest_without_backup(self, backup_service):
        result = backup_service.get_latest_automatic_backup()
        assert result.error == BackupError.file_not_found()

    def test_create_and_read(self, backup_service, backup_dir, sample_invoice):
        path = backup_service.create_automatic_backup([sample_invoice], []).value

        assert path == backup_dir / AUTOMATIC_BACKUP_FILENAME
        snapshot = backup_service.get_latest_automatic_backup().value
        assert snapshot.invoices == (sample_invoice,)

    def test_each_backup_replaces_the_last(self, backup_service, backup_dir, sample_invoice):
        backup_service.create_automatic_backup([sample_invoice], [])
        backup_service.create_automatic_backup([], [Customer(name="Jane Doe")])

        snapshot = backup_service.get_latest_automatic_backup().value
        assert snapshot.invoices == ()
        assert len(snapshot.customers) == 1
        assert [p.name for p in backup_dir.iterdir()] == [AUTOMATIC_BACKUP_FILENAME]

    def test_fifth_save_triggers_backup(self, temp_db, backup_service, customer_service):
        from invoicemaker.domain.invoice import InvoiceService

        def on_due():
            backup_service.create_automatic_backup(service.invoices, customer_service.customers)

        service = InvoiceService(temp_db, on_backup_due=on_due)
        for n in range(4):
            service.save_invoice(Invoice(number=f"RL-{n}", client_name="Jane"))
        assert not backup_service.automatic_backup_path.exists()

        service.save_invoice(Invoice(number="RL-4", client_name="Jane"))

        snapshot = backup_service.get_latest_automatic_backup().value
        assert len(snapshot.invoices) == 5
