"""Shared pytest fixtures for invoicemaker tests."""

import tempfile
import os
from datetime import datetime, timedelta, UTC
from decimal import Decimal

import pytest

from invoicemaker.database.factories import create_sqlite_database
from invoicemaker.domain.backup import BackupService
from invoicemaker.domain.customer import CustomerService
from invoicemaker.domain.entities import Customer, Invoice, LineItem, PaymentMethod
from invoicemaker.domain.invoice import InvoiceService


@pytest.fixture
def temp_db():
    """Create a temporary database for testing."""
    fd, db_path = tempfile.mkstemp(suffix=".db")
    os.close(fd)

    db = create_sqlite_database(database_path=db_path)
    # Store the path for tests that drive the CLI
    db.database_path = db_path
    db.connect()
    db.initialize_schema()

    yield db

    db.disconnect()
    if os.path.exists(db_path):
        os.unlink(db_path)


@pytest.fixture
def invoice_service(temp_db):
    """Create an InvoiceService with a temporary database."""
    return InvoiceService(temp_db)


@pytest.fixture
def customer_service(temp_db):
    """Create a CustomerService with a temporary database."""
    return CustomerService(temp_db)


@pytest.fixture
def backup_dir(tmp_path):
    """Directory for backup artifacts (not created up front)."""
    return tmp_path / "backups"


@pytest.fixture
def backup_service(backup_dir):
    """Create a BackupService writing into a temporary directory."""
    return BackupService(backup_dir)


@pytest.fixture
def sample_invoice():
    """Diagnosis plus repair, 8.5% tax: subtotal 259.00, total 281.015."""
    return Invoice(
        number="RL-00123",
        date=datetime(2025, 9, 12, 15, 30, tzinfo=UTC),
        client_name="Jane Doe",
        items=(
            LineItem(description="Diagnosis", quantity=Decimal("1"), unit_price=Decimal("79.00")),
            LineItem(description="Repair", quantity=Decimal("1"), unit_price=Decimal("180.00")),
        ),
        tax_rate=Decimal("0.085"),
        notes="Replaced capacitor",
        payment_method=PaymentMethod.CARD,
        terms="Due on receipt",
    )


@pytest.fixture
def sample_customers(customer_service):
    """Store three customers with known dates and return them."""
    now = datetime.now(UTC)
    customers = [
        Customer(
            name="Jane Doe",
            phone="(816) 555-1234",
            email="jane@example.com",
            address="12 Elm St",
            city="Kansas City",
            zip_code="64105",
            date_added=now - timedelta(days=400),
            last_service_date=now - timedelta(days=300),
        ),
        Customer(
            name="Sarah Johnson",
            phone="9135557890",
            email="s.johnson@gmail.com",
            city="Leawood",
            zip_code="66224",
            date_added=now - timedelta(days=5),
            last_service_date=now - timedelta(days=2),
        ),
        Customer(
            name="bob Brown",
            phone="8165550000",
            city="Olathe",
            date_added=now - timedelta(days=60),
        ),
    ]
    for customer in customers:
        customer_service.save_customer(customer)
    return customers


@pytest.fixture
def cli_runner():
    """Create a Click CLI test runner."""
    from click.testing import CliRunner

    return CliRunner()


@pytest.fixture
def cli_args(temp_db, backup_dir):
    """Global CLI options pointing at the temporary database and backup dir."""
    return ["--db-path", temp_db.database_path, "--backup-dir", str(backup_dir)]
