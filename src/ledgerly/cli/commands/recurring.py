"""Recurring transaction commands."""

import click
from ledgerly.cli.account_resolution import resolve_account_or_exit
from ledgerly.cli.error_handling import handle_domain_error
from ledgerly.domain.account import AccountService
from ledgerly.domain.recurring import FREQUENCIES
from ledgerly.domain.rules import RecurringService
from ledgerly.utils.amount_parser import parse_amount
from ledgerly.utils.date_parser import parse_date


@click.group()
def recurring_group():
    """Manage recurring payments."""
    pass


@recurring_group.command("add")
@click.argument("name")
@click.option("--amount", required=True, help="Expected amount (e.g., 649 or 1,499.00)")
@click.option("--frequency", type=click.Choice(FREQUENCIES), default="monthly", help="How often it recurs")
@click.option("--next-due", required=True, help="Next due date (YYYY-MM-DD or relative like 'today')")
@click.option("--category", "category_id", help="Category ID")
@click.pass_context
def add_recurring(ctx, name: str, amount: str, frequency: str, next_due: str, category_id: str | None):
    """Create a recurring payment template.

    Examples:
        ledgerly recurring add "Netflix" --amount 649 --next-due 2024-05-01 --category streaming
    """
    service = RecurringService(ctx.obj["db"])
    try:
        recurring_id = service.create_recurring(
            name=name,
            amount=abs(parse_amount(amount)),
            frequency=frequency,
            next_due=parse_date(next_due),
            category_id=category_id,
        )
        click.echo(f"Created recurring '{name}' (ID: {recurring_id})")
    except ValueError as e:
        handle_domain_error(ctx, e)


@recurring_group.command("list")
@click.pass_context
def list_recurring(ctx):
    """List recurring payment templates."""
    service = RecurringService(ctx.obj["db"])
    templates = service.list_recurring()
    if not templates:
        click.echo("No recurring transactions found.")
        return

    click.echo("\nRecurring transactions:")
    click.echo("-" * 80)
    for item in templates:
        click.echo(
            f"ID: {item.id:3d} | {item.name:20s} | {item.amount:>10} | {item.frequency:9s} | "
            f"next due {item.next_due_date}"
        )


@recurring_group.command("matches")
@click.argument("recurring_id", type=int)
@click.option("--account", help="Limit to an account (name or ID)")
@click.pass_context
def recurring_matches(ctx, recurring_id: int, account: str | None):
    """Show transactions linked to or likely paying a template."""
    db = ctx.obj["db"]
    service = RecurringService(db)
    account_id = resolve_account_or_exit(ctx, AccountService(db), account) if account else None

    try:
        matches = service.find_matches(recurring_id, account_id=account_id)
    except ValueError as e:
        handle_domain_error(ctx, e)
        return

    if not matches:
        click.echo("No matching transactions found.")
        return

    for txn in matches:
        linked = "linked" if txn.recurring_id == recurring_id else "suggested"
        click.echo(f"  {txn.id:5d} | {txn.date} | {txn.amount:>12} | {linked:9s} | {txn.description[:50]}")


@recurring_group.command("link")
@click.argument("recurring_id", type=int)
@click.argument("transaction_id", type=int)
@click.pass_context
def link_recurring(ctx, recurring_id: int, transaction_id: int):
    """Link a transaction to a recurring template."""
    service = RecurringService(ctx.obj["db"])
    try:
        template = service.link_transaction(recurring_id, transaction_id)
        click.echo(f"Linked transaction {transaction_id} to '{template.name}'")
        click.echo(f"Next due: {template.next_due_date}")
    except ValueError as e:
        handle_domain_error(ctx, e)


def register_commands(cli):
    """Register recurring commands with main CLI."""
    cli.add_command(recurring_group, name="recurring")
