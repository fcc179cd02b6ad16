"""Main CLI entry point."""

import click
from invoicemaker.database.factories import create_sqlite_database, resolve_backup_directory
from invoicemaker.utils.log import configure_logging

# Import and register all commands at module level
from invoicemaker.cli.commands import backup, customer, invoice


@click.group()
@click.option(
    "--db-path",
    type=click.Path(),
    help="Path to database file (overrides INVOICEMAKER_DB_PATH environment variable)",
    envvar="INVOICEMAKER_DB_PATH",
)
@click.option(
    "--backup-dir",
    type=click.Path(file_okay=False),
    help="Directory for backups and exports (overrides INVOICEMAKER_BACKUP_DIR)",
    envvar="INVOICEMAKER_BACKUP_DIR",
)
@click.option("--verbose", "-v", is_flag=True, help="Show debug logging")
@click.pass_context
def cli(ctx, db_path: str | None, backup_dir: str | None, verbose: bool):
    """Invoice Maker - invoices and customers for a home-services business.

    Create and edit invoices, keep a customer list, and export or restore
    backups as JSON and CSV files.
    """
    ctx.ensure_object(dict)
    configure_logging(verbose=verbose)

    # Initialize database connection only when actually running a command
    # (not when showing help)
    if ctx.invoked_subcommand is not None:
        db = create_sqlite_database(database_path=db_path)
        db.connect()
        db.initialize_schema()
        ctx.obj["db"] = db
        ctx.obj["backup_dir"] = resolve_backup_directory(backup_dir)
        ctx.call_on_close(db.disconnect)


# Register all commands
invoice.register_commands(cli)
customer.register_commands(cli)
backup.register_commands(cli)


def main():
    """Main entry point for CLI."""
    cli()


if __name__ == "__main__":
    main()
