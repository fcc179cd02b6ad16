"""Customer management commands."""

from dataclasses import replace

import click
from invoicemaker.cli.commands.invoice import format_money, invoice_service_with_backup, print_invoice
from invoicemaker.cli.error_handling import exit_if_invalid, handle_domain_error
from invoicemaker.domain.customer import CustomerService
from invoicemaker.domain.entities import Customer, CustomerSortOption, utcnow
from invoicemaker.domain.errors import DomainError
from invoicemaker.domain.integration import create_invoice_for_customer
from invoicemaker.domain.invoice import InvoiceService
from invoicemaker.domain.validation import validate_customer
from invoicemaker.utils.date_parser import parse_datetime
from invoicemaker.utils.entity_resolver import resolve_customer

SORT_CHOICES = {
    "name": CustomerSortOption.NAME,
    "date-added": CustomerSortOption.DATE_ADDED,
    "last-service": CustomerSortOption.LAST_SERVICE,
}


def print_customer_table(customers: list[Customer]) -> None:
    click.echo("-" * 96)
    click.echo(
        f"{'ID':<10} {'Name':<24} {'Phone':<16} {'City':<18} {'Added':<12} {'Last service':<12}"
    )
    click.echo("-" * 96)
    for customer in customers:
        last_service = (
            f"{customer.last_service_date:%Y-%m-%d}" if customer.last_service_date else "Never"
        )
        click.echo(
            f"{str(customer.id)[:8]:<10} {customer.display_name[:24]:<24} "
            f"{customer.formatted_phone[:16]:<16} {customer.city[:18]:<18} "
            f"{customer.date_added:%Y-%m-%d}   {last_service:<12}"
        )


@click.group()
def customer_group():
    """Manage customers."""
    pass


@customer_group.command("add")
@click.argument("name")
@click.option("--phone", default="", help="Phone number (10 digits)")
@click.option("--email", default="", help="Email address")
@click.option("--address", default="", help="Street address")
@click.option("--city", default="", help="City")
@click.option("--zip", "zip_code", default="", help="ZIP code (5 digits)")
@click.option("--notes", default="", help="Free-text notes")
@click.pass_context
def add_customer(ctx, name: str, phone: str, email: str, address: str, city: str, zip_code: str, notes: str):
    """Add a new customer.

    Examples:
        invoicemaker customer add "Sarah Johnson" --phone 9135557890 --city Leawood
    """
    service = CustomerService(ctx.obj["db"])
    customer = Customer(
        name=name.strip(),
        phone=phone.strip(),
        email=email.strip(),
        address=address.strip(),
        city=city.strip(),
        zip_code=zip_code.strip(),
        notes=notes,
    )
    exit_if_invalid(ctx, validate_customer(customer))

    service.save_customer(customer)
    click.echo(f"Added customer '{customer.display_name}' (ID: {customer.id})")


@customer_group.command("edit")
@click.argument("customer_ref", metavar="CUSTOMER")
@click.option("--name", help="New name (invoices are linked by name)")
@click.option("--phone", help="Phone number")
@click.option("--email", help="Email address")
@click.option("--address", help="Street address")
@click.option("--city", help="City")
@click.option("--zip", "zip_code", help="ZIP code")
@click.option("--notes", help="Free-text notes")
@click.pass_context
def edit_customer(ctx, customer_ref: str, **fields):
    """Edit a customer, keeping its ID.

    Renaming a customer detaches invoices issued under the old name.
    """
    service = CustomerService(ctx.obj["db"])
    try:
        customer = resolve_customer(service, customer_ref)
    except DomainError as e:
        handle_domain_error(ctx, e)
        return

    # Notes are kept verbatim, as in add
    changes = {
        key: value if key == "notes" else value.strip()
        for key, value in fields.items()
        if value is not None
    }
    updated = replace(customer, **changes)
    exit_if_invalid(ctx, validate_customer(updated))

    service.save_customer(updated)
    click.echo(f"Updated customer '{updated.display_name}'")


@customer_group.command("list")
@click.option(
    "--sort",
    "sort_key",
    type=click.Choice(list(SORT_CHOICES), case_sensitive=False),
    help="Sort order (default: name)",
)
@click.option("--search", "query", help="Filter by name, email, city or phone")
@click.option("--recent", is_flag=True, help="Only customers added in the last 30 days")
@click.option("--follow-up", is_flag=True, help="Only customers not serviced in 6 months")
@click.pass_context
def list_customers(ctx, sort_key: str | None, query: str | None, recent: bool, follow_up: bool):
    """List customers."""
    if recent and follow_up:
        click.echo("Error: --recent and --follow-up cannot be combined.", err=True)
        ctx.exit(1)
    if sort_key and (recent or follow_up):
        click.echo("Error: --sort cannot be combined with --recent or --follow-up.", err=True)
        ctx.exit(1)

    service = CustomerService(ctx.obj["db"])

    if recent:
        customers = service.recent_customers
    elif follow_up:
        customers = service.customers_needing_follow_up
    else:
        customers = service.get_customers(SORT_CHOICES[(sort_key or "name").lower()])

    if query:
        matching = {c.id for c in service.search_customers(query)}
        customers = [c for c in customers if c.id in matching]

    if not customers:
        click.echo("No customers found.")
        return

    click.echo(f"\nFound {len(customers)} customer(s):")
    print_customer_table(customers)


@customer_group.command("show")
@click.argument("customer_ref", metavar="CUSTOMER")
@click.pass_context
def show_customer(ctx, customer_ref: str):
    """Show a customer with their service history."""
    db = ctx.obj["db"]
    service = CustomerService(db)
    try:
        customer = resolve_customer(service, customer_ref)
    except DomainError as e:
        handle_domain_error(ctx, e)
        return

    history = service.get_service_history(customer, InvoiceService(db).invoices)

    click.echo(f"\n{customer.display_name}")
    click.echo("=" * 60)
    click.echo(f"  ID: {customer.id}")
    if customer.phone:
        click.echo(f"  Phone: {customer.formatted_phone}")
    if customer.email:
        click.echo(f"  Email: {customer.email}")
    if customer.full_address:
        click.echo(f"  Address: {customer.full_address}")
    click.echo(f"  Customer since: {customer.date_added:%Y-%m-%d}" + (" (new)" if customer.is_new_customer else ""))
    if customer.days_since_last_service is not None:
        click.echo(f"  Last service: {customer.days_since_last_service} days ago")
    else:
        click.echo("  Last service: Never")
    if customer.notes:
        click.echo(f"  Notes: {customer.notes}")

    click.echo("-" * 60)
    click.echo(f"  Invoices: {history.service_count}")
    click.echo(f"  Total spent: {format_money(history.total_spent)}")
    click.echo(f"  Average invoice: {format_money(history.average_invoice_amount)}")
    if history.last_service_date is not None:
        click.echo(f"  Last invoice: {history.last_service_date:%Y-%m-%d}")


@customer_group.command("delete")
@click.argument("customer_ref", metavar="CUSTOMER")
@click.pass_context
def delete_customer(ctx, customer_ref: str):
    """Delete a customer. Their invoices are kept."""
    service = CustomerService(ctx.obj["db"])
    try:
        customer = resolve_customer(service, customer_ref)
    except DomainError as e:
        handle_domain_error(ctx, e)
        return

    service.delete_customer(customer)
    click.echo(f"Deleted customer '{customer.display_name}'")


@customer_group.command("serviced")
@click.argument("customer_ref", metavar="CUSTOMER")
@click.option("--date", "date_str", help="Service date (default: now)")
@click.pass_context
def mark_serviced(ctx, customer_ref: str, date_str: str | None):
    """Record a service visit for a customer."""
    service = CustomerService(ctx.obj["db"])
    try:
        customer = resolve_customer(service, customer_ref)
        service_date = parse_datetime(date_str) if date_str else utcnow()
    except (DomainError, ValueError) as e:
        handle_domain_error(ctx, e)
        return

    service.update_last_service_date(customer.id, service_date)
    click.echo(f"Recorded service for '{customer.display_name}' on {service_date:%Y-%m-%d}")


@customer_group.command("new-invoice")
@click.argument("customer_ref", metavar="CUSTOMER")
@click.pass_context
def new_invoice_for_customer(ctx, customer_ref: str):
    """Start an empty invoice pre-filled for a customer."""
    db = ctx.obj["db"]
    service = CustomerService(db)
    try:
        customer = resolve_customer(service, customer_ref)
    except DomainError as e:
        handle_domain_error(ctx, e)
        return

    invoice = create_invoice_for_customer(customer)
    invoice_service_with_backup(ctx).save_invoice(invoice)
    click.echo(f"Created invoice '{invoice.number}' (ID: {invoice.id})")
    print_invoice(invoice)


@customer_group.command("add-samples")
@click.pass_context
def add_sample_customers(ctx):
    """Add demo customers (skips names that already exist)."""
    service = CustomerService(ctx.obj["db"])
    added = service.add_sample_customers()
    click.echo(f"Added {added} sample customer(s)")


def register_commands(cli):
    """Register customer commands with main CLI."""
    cli.add_command(customer_group, name="customer")
