"""Category management commands."""

import click
from ledgerly.cli.error_handling import handle_domain_error
from ledgerly.domain.category import CategoryService


def print_category_tree(service: CategoryService, parent_id: str | None = None, indent: int = 0) -> None:
    """Recursively print category tree."""
    for cat in service.list_categories(parent_id=parent_id):
        prefix = "  " * indent
        click.echo(f"{prefix}{cat.name} (ID: {cat.id})")
        print_category_tree(service, cat.id, indent + 1)


@click.group()
def category_group():
    """Manage categories."""
    pass


@category_group.command("list")
@click.pass_context
def list_categories(ctx):
    """List all categories in tree format."""
    db = ctx.obj["db"]
    service = CategoryService(db)

    if not service.list_all_categories():
        click.echo("No categories found. Run 'init-categories' to create default categories.")
        return

    click.echo("\nCategories:")
    print_category_tree(service)


@category_group.command("create")
@click.argument("name")
@click.option("--parent", help="Parent category ID (e.g., 'food')")
@click.option("--id", "category_id", help="Category ID (derived from the name by default)")
@click.pass_context
def create_category(ctx, name: str, parent: str | None, category_id: str | None):
    """Create a new category."""
    db = ctx.obj["db"]
    service = CategoryService(db)

    try:
        category_id = service.create_category(name=name, parent_id=parent, category_id=category_id)
        parent_str = f" under '{parent}'" if parent else ""
        click.echo(f"Created category '{name}'{parent_str} (ID: {category_id})")
    except ValueError as e:
        handle_domain_error(ctx, e)


def register_commands(cli):
    """Register category commands with main CLI."""
    cli.add_command(category_group, name="category")
