"""Initialize default categories."""

import click
from ledgerly.domain.category import CategoryService


@click.command("init-categories")
@click.pass_context
def init_categories(ctx):
    """Initialize database with the default category tree.

    Categories that already exist are left alone, so running this again only
    adds what is missing.
    """
    db = ctx.obj["db"]
    service = CategoryService(db)

    click.echo("Creating initial category tree...")
    created = service.initialize_defaults()
    if created:
        click.echo(f"Successfully created {created} categories.")
    else:
        click.echo("All default categories already exist.")


def register_commands(cli):
    """Register init-categories command with main CLI."""
    cli.add_command(init_categories)
