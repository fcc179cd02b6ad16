"""Invoice management commands."""

from dataclasses import replace
from decimal import Decimal

import click
from invoicemaker.cli.error_handling import exit_if_invalid, handle_domain_error
from invoicemaker.domain.backup import BackupService
from invoicemaker.domain.customer import CustomerService
from invoicemaker.domain.entities import Invoice, LineItem, PaymentMethod
from invoicemaker.domain.errors import DomainError, invalid_line_item
from invoicemaker.domain.integration import sync_invoice_with_customer
from invoicemaker.domain.invoice import InvoiceService
from invoicemaker.domain.validation import (
    discount_amount_from_percentage,
    validate_discount_percentage,
    validate_invoice,
)
from invoicemaker.utils.amount_parser import parse_amount, parse_percentage
from invoicemaker.utils.date_parser import parse_datetime
from invoicemaker.utils.entity_resolver import resolve_invoice

PAYMENT_METHOD_CHOICES = [method.value.lower() for method in PaymentMethod]


def format_money(amount: Decimal) -> str:
    return f"${amount:,.2f}"


def parse_line_item(text: str) -> LineItem:
    """Parse 'description:quantity:unit_price' into a LineItem.

    The description may itself contain colons; quantity and price are taken
    from the last two fields.

    Raises:
        ValueError: If the text is malformed
    """
    parts = text.rsplit(":", 2)
    if len(parts) != 3:
        raise ValueError(invalid_line_item(text))
    description, quantity, unit_price = parts
    try:
        return LineItem(
            description=description.strip(),
            quantity=parse_amount(quantity),
            unit_price=parse_amount(unit_price),
        )
    except ValueError:
        raise ValueError(invalid_line_item(text))


def _payment_method(value: str | None) -> PaymentMethod | None:
    if value is None:
        return None
    return PaymentMethod(value.capitalize())


def invoice_service_with_backup(ctx: click.Context) -> InvoiceService:
    """Invoice service that writes the rolling backup whenever one is due."""
    db = ctx.obj["db"]
    backup_service = BackupService(ctx.obj["backup_dir"])
    service: InvoiceService

    def create_backup() -> None:
        result = backup_service.create_automatic_backup(
            service.invoices, CustomerService(db).customers
        )
        if result.is_success:
            click.echo(f"Automatic backup saved to {result.value}")
        else:
            click.echo(f"Warning: {result.error}", err=True)

    service = InvoiceService(db, on_backup_due=create_backup)
    return service


def _resolve_discount(
    ctx: click.Context, items: tuple[LineItem, ...], discount: str | None, discount_percent: str | None
) -> Decimal | None:
    if discount is not None and discount_percent is not None:
        click.echo("Error: Use either --discount or --discount-percent, not both", err=True)
        ctx.exit(1)
    if discount is not None:
        return parse_amount(discount)
    if discount_percent is not None:
        percentage = parse_amount(discount_percent.rstrip("%"))
        exit_if_invalid(ctx, validate_discount_percentage(percentage))
        sub_total = Invoice(number="", items=items).sub_total
        return discount_amount_from_percentage(sub_total, percentage)
    return None


def print_invoice(invoice: Invoice) -> None:
    """Print a detailed invoice view."""
    click.echo(f"\nInvoice {invoice.number}")
    click.echo("=" * 60)
    click.echo(f"  ID: {invoice.id}")
    click.echo(f"  Date: {invoice.date:%Y-%m-%d}")
    click.echo(f"  Client: {invoice.client_name}")
    if invoice.payment_method is not None:
        click.echo(f"  Payment: {invoice.payment_method.value}")
    if invoice.terms:
        click.echo(f"  Terms: {invoice.terms}")

    if invoice.has_items:
        click.echo("-" * 60)
        click.echo(f"  {'Description':<28} {'Qty':>6} {'Price':>10} {'Total':>11}")
        for item in invoice.items:
            click.echo(
                f"  {item.description[:28]:<28} {item.quantity:>6} "
                f"{format_money(item.unit_price):>10} {format_money(item.line_total):>11}"
            )
    else:
        click.echo("  No items")

    click.echo("-" * 60)
    click.echo(f"  {'Subtotal:':<46}{format_money(invoice.sub_total):>12}")
    if invoice.has_discount:
        click.echo(f"  {'Discount:':<46}{'-' + format_money(invoice.discount):>12}")
    if invoice.has_tax:
        percent = (invoice.tax_rate * 100).normalize()
        click.echo(f"  {f'Tax ({percent:f}%):':<46}{format_money(invoice.tax):>12}")
    click.echo(f"  {'Total:':<46}{format_money(invoice.total):>12}")
    if invoice.notes:
        click.echo(f"\n  Notes: {invoice.notes}")


@click.group()
def invoice_group():
    """Manage invoices."""
    pass


@invoice_group.command("create")
@click.argument("number")
@click.option("--client", required=True, help="Client name")
@click.option(
    "--item",
    "items",
    multiple=True,
    help="Line item as 'description:quantity:unit_price' (repeatable)",
)
@click.option("--discount", help="Fixed discount amount (e.g. 25.00)")
@click.option("--discount-percent", help="Discount as a percentage of the subtotal (0-100)")
@click.option("--tax", help="Tax rate in percent (e.g. 8.5)")
@click.option(
    "--payment-method",
    type=click.Choice(PAYMENT_METHOD_CHOICES, case_sensitive=False),
    help="How the invoice was paid",
)
@click.option("--terms", help="Payment terms")
@click.option("--notes", default="", help="Free-text notes")
@click.option("--date", "date_str", help="Invoice date (default: today)")
@click.pass_context
def create_invoice(
    ctx,
    number: str,
    client: str,
    items: tuple[str, ...],
    discount: str | None,
    discount_percent: str | None,
    tax: str | None,
    payment_method: str | None,
    terms: str | None,
    notes: str,
    date_str: str | None,
):
    """Create a new invoice.

    Examples:
        invoicemaker invoice create RL-00123 --client "Jane Doe" \\
            --item "Diagnosis:1:79" --item "Repair:1:180" --tax 8.5
    """
    db = ctx.obj["db"]
    service = invoice_service_with_backup(ctx)

    try:
        line_items = tuple(parse_line_item(item) for item in items)
        discount_amount = _resolve_discount(ctx, line_items, discount, discount_percent)
        invoice = Invoice(
            number=number.strip(),
            client_name=client.strip(),
            items=line_items,
            discount=discount_amount if discount_amount is not None else Decimal("0"),
            tax_rate=parse_percentage(tax) if tax is not None else Decimal("0"),
            notes=notes,
            payment_method=_payment_method(payment_method),
            terms=terms,
        )
        if date_str is not None:
            invoice = replace(invoice, date=parse_datetime(date_str))
    except (DomainError, ValueError) as e:
        handle_domain_error(ctx, e)
        return

    exit_if_invalid(ctx, validate_invoice(invoice))
    invoice = sync_invoice_with_customer(invoice, CustomerService(db).customers)

    service.save_invoice(invoice)
    click.echo(f"Created invoice '{invoice.number}' (ID: {invoice.id})")
    click.echo(f"Total: {format_money(invoice.total)}")


@invoice_group.command("edit")
@click.argument("invoice_ref", metavar="INVOICE")
@click.option("--number", help="New invoice number")
@click.option("--client", help="New client name")
@click.option("--add-item", "add_items", multiple=True, help="Append a line item")
@click.option("--clear-items", is_flag=True, help="Remove all existing line items first")
@click.option("--discount", help="New fixed discount amount")
@click.option("--tax", help="New tax rate in percent")
@click.option(
    "--payment-method",
    type=click.Choice(PAYMENT_METHOD_CHOICES, case_sensitive=False),
    help="How the invoice was paid",
)
@click.option("--terms", help="Payment terms")
@click.option("--notes", help="Free-text notes")
@click.pass_context
def edit_invoice(
    ctx,
    invoice_ref: str,
    number: str | None,
    client: str | None,
    add_items: tuple[str, ...],
    clear_items: bool,
    discount: str | None,
    tax: str | None,
    payment_method: str | None,
    terms: str | None,
    notes: str | None,
):
    """Edit an existing invoice, keeping its ID.

    INVOICE can be an invoice number, ID, or the start of an ID.
    """
    service = invoice_service_with_backup(ctx)

    try:
        invoice = resolve_invoice(service, invoice_ref)
        changes: dict = {}
        if number is not None:
            changes["number"] = number.strip()
        if client is not None:
            changes["client_name"] = client.strip()
        if add_items or clear_items:
            existing = () if clear_items else invoice.items
            changes["items"] = existing + tuple(parse_line_item(item) for item in add_items)
        if discount is not None:
            changes["discount"] = parse_amount(discount)
        if tax is not None:
            changes["tax_rate"] = parse_percentage(tax)
        if payment_method is not None:
            changes["payment_method"] = _payment_method(payment_method)
        if terms is not None:
            changes["terms"] = terms or None
        if notes is not None:
            changes["notes"] = notes
    except (DomainError, ValueError) as e:
        handle_domain_error(ctx, e)
        return

    updated = replace(invoice, **changes)
    exit_if_invalid(ctx, validate_invoice(updated))
    service.save_invoice(updated)
    click.echo(f"Updated invoice '{updated.number}' (ID: {updated.id})")
    click.echo(f"Total: {format_money(updated.total)}")


@invoice_group.command("list")
@click.pass_context
def list_invoices(ctx):
    """List invoices, most recent first."""
    service = InvoiceService(ctx.obj["db"])

    invoices = service.invoices_sorted_by_date
    if not invoices:
        click.echo("No invoices found.")
        return

    click.echo(f"\nFound {len(invoices)} invoice(s):")
    click.echo("-" * 84)
    click.echo(f"{'ID':<10} {'Number':<18} {'Date':<12} {'Client':<28} {'Total':>12}")
    click.echo("-" * 84)
    for invoice in invoices:
        click.echo(
            f"{str(invoice.id)[:8]:<10} {invoice.number[:18]:<18} {invoice.date:%Y-%m-%d}   "
            f"{invoice.client_name[:28]:<28} {format_money(invoice.total):>12}"
        )


@invoice_group.command("show")
@click.argument("invoice_ref", metavar="INVOICE")
@click.pass_context
def show_invoice(ctx, invoice_ref: str):
    """Show one invoice with its line items and totals."""
    service = InvoiceService(ctx.obj["db"])
    try:
        invoice = resolve_invoice(service, invoice_ref)
    except DomainError as e:
        handle_domain_error(ctx, e)
        return
    print_invoice(invoice)


@invoice_group.command("delete")
@click.argument("invoice_refs", metavar="INVOICE...", nargs=-1, required=True)
@click.pass_context
def delete_invoices(ctx, invoice_refs: tuple[str, ...]):
    """Delete one or more invoices."""
    service = InvoiceService(ctx.obj["db"])
    try:
        targets = [resolve_invoice(service, ref) for ref in invoice_refs]
    except DomainError as e:
        handle_domain_error(ctx, e)
        return

    if len(targets) == 1:
        service.delete_invoice(targets[0])
        click.echo(f"Deleted invoice '{targets[0].number}'")
    else:
        removed = service.delete_invoices(targets)
        click.echo(f"Deleted {removed} invoices")


def register_commands(cli):
    """Register invoice commands with main CLI."""
    cli.add_command(invoice_group, name="invoice")
