"""Main CLI entry point."""

import click
from ledgerly.database.factories import DB_PATH_ENV, create_sqlite_database
from ledgerly.logging_setup import configure_logging

# Import and register all commands at module level
from ledgerly.cli.commands import (
    account,
    category,
    import_cmd,
    init_categories,
    recurring,
    rule,
    settings,
    sip_rule,
    transaction,
)


@click.group()
@click.option(
    "--db-path",
    type=click.Path(),
    help=f"Path to database file (overrides {DB_PATH_ENV} environment variable)",
    envvar=DB_PATH_ENV,
)
@click.option(
    "--log-level",
    help="Log level name or number (overrides LEDGERLY_LOG_LEVEL environment variable)",
    envvar="LEDGERLY_LOG_LEVEL",
)
@click.pass_context
def cli(ctx, db_path: str | None, log_level: str | None):
    """Ledgerly - Bank statement import and reconciliation.

    Import CSV, Excel and PDF bank statements, categorize them with rules and
    reconcile SIP installments and recurring payments.
    """
    ctx.ensure_object(dict)
    configure_logging(log_level)

    # Initialize database connection only when actually running a command
    # (not when showing help)
    if ctx.invoked_subcommand is not None:
        db = create_sqlite_database(database_path=db_path)
        db.connect()
        db.initialize_schema()
        ctx.obj["db"] = db
        ctx.call_on_close(db.disconnect)


# Register all commands
account.register_commands(cli)
category.register_commands(cli)
init_categories.register_commands(cli)
import_cmd.register_commands(cli)
rule.register_commands(cli)
sip_rule.register_commands(cli)
recurring.register_commands(cli)
transaction.register_commands(cli)
settings.register_commands(cli)


def main():
    """Main entry point for CLI."""
    cli()


if __name__ == "__main__":
    main()
