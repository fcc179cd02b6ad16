"""Backup, export and restore commands."""

from pathlib import Path

import click
from invoicemaker.domain.backup import BackupService
from invoicemaker.domain.customer import CustomerService
from invoicemaker.domain.entities import BackupSnapshot
from invoicemaker.domain.invoice import InvoiceService
from invoicemaker.domain.results import Result


def _services(ctx: click.Context) -> tuple[BackupService, InvoiceService, CustomerService]:
    db = ctx.obj["db"]
    return BackupService(ctx.obj["backup_dir"]), InvoiceService(db), CustomerService(db)


def _unwrap(ctx: click.Context, result: Result):
    """Return the value of a Success, or report the Failure and exit."""
    if not result.is_success:
        click.echo(f"Error: {result.error}", err=True)
        ctx.exit(1)
    return result.value


def _restore(ctx: click.Context, snapshot: BackupSnapshot) -> None:
    backup_service, invoice_service, customer_service = _services(ctx)
    invoices, customers = backup_service.restore_snapshot(
        snapshot, invoice_service, customer_service
    )
    click.echo("Data restored successfully!")
    click.echo(f"  Invoices: {invoices}")
    click.echo(f"  Customers: {customers}")


@click.group()
def backup_group():
    """Back up, export and restore data."""
    pass


@backup_group.command("export")
@click.pass_context
def export_backup(ctx):
    """Export all invoices and customers to a JSON backup file."""
    backup_service, invoice_service, customer_service = _services(ctx)
    path = _unwrap(
        ctx,
        backup_service.export_to_json(invoice_service.invoices, customer_service.customers),
    )
    click.echo(f"Backup exported successfully to {path}")


@backup_group.command("csv")
@click.argument("collection", type=click.Choice(["invoices", "customers"], case_sensitive=False))
@click.pass_context
def export_csv(ctx, collection: str):
    """Export invoices or customers to a CSV file for spreadsheets."""
    backup_service, invoice_service, customer_service = _services(ctx)
    if collection.lower() == "invoices":
        result = backup_service.export_invoices_to_csv(invoice_service.invoices)
    else:
        result = backup_service.export_customers_to_csv(customer_service.customers)
    path = _unwrap(ctx, result)
    click.echo(f"{collection.capitalize()} exported to CSV: {path}")


@backup_group.command("validate")
@click.argument("backup_file", type=click.Path(path_type=Path))
@click.pass_context
def validate_backup(ctx, backup_file: Path):
    """Check a backup file and show what it contains."""
    backup_service = BackupService(ctx.obj["backup_dir"])
    metadata = _unwrap(ctx, backup_service.validate_backup(backup_file))
    click.echo("Backup is valid:")
    click.echo(f"  Version: {metadata.version}")
    click.echo(f"  Exported: {metadata.export_date:%Y-%m-%d %H:%M:%S}")
    click.echo(f"  Invoices: {metadata.invoice_count}")
    click.echo(f"  Customers: {metadata.customer_count}")


@backup_group.command("restore")
@click.argument("backup_file", type=click.Path(path_type=Path))
@click.option("--yes", is_flag=True, help="Do not ask for confirmation")
@click.pass_context
def restore_backup(ctx, backup_file: Path, yes: bool):
    """Restore invoices and customers from a JSON backup file.

    Entities in the backup overwrite stored ones with the same ID; anything
    not in the backup is kept.
    """
    backup_service = BackupService(ctx.obj["backup_dir"])
    metadata = _unwrap(ctx, backup_service.validate_backup(backup_file))
    if not yes:
        click.confirm(
            f"Restore {metadata.invoice_count} invoices and "
            f"{metadata.customer_count} customers from {backup_file.name}?",
            abort=True,
        )
    snapshot = _unwrap(ctx, backup_service.import_from_json(backup_file))
    _restore(ctx, snapshot)


@backup_group.command("auto")
@click.pass_context
def create_automatic_backup(ctx):
    """Write the rolling automatic backup now."""
    backup_service, invoice_service, customer_service = _services(ctx)
    path = _unwrap(
        ctx,
        backup_service.create_automatic_backup(
            invoice_service.invoices, customer_service.customers
        ),
    )
    click.echo(f"Automatic backup created: {path}")


@backup_group.command("restore-auto")
@click.option("--yes", is_flag=True, help="Do not ask for confirmation")
@click.pass_context
def restore_automatic_backup(ctx, yes: bool):
    """Restore from the rolling automatic backup."""
    backup_service = BackupService(ctx.obj["backup_dir"])
    snapshot = _unwrap(ctx, backup_service.get_latest_automatic_backup())
    if not yes:
        click.confirm(
            f"Restore {len(snapshot.invoices)} invoices and "
            f"{len(snapshot.customers)} customers from the automatic backup?",
            abort=True,
        )
    _restore(ctx, snapshot)


def register_commands(cli):
    """Register backup commands with main CLI."""
    cli.add_command(backup_group, name="backup")
