"""CLI error handling helpers."""

import click

from invoicemaker.domain.errors import DomainError
from invoicemaker.domain.validation import ValidationResult


def handle_domain_error(ctx: click.Context, error: DomainError | ValueError) -> None:
    """Render a domain error and exit with failure."""
    click.echo(f"Error: {error}", err=True)
    ctx.exit(1)


def exit_if_invalid(ctx: click.Context, result: ValidationResult) -> None:
    """Render a failed validation result and exit; do nothing when valid."""
    if not result.is_valid:
        click.echo(f"Error: {result.error_message}", err=True)
        ctx.exit(1)
