"""Transaction commands."""

import click
from ledgerly.cli.account_resolution import resolve_account_or_exit
from ledgerly.cli.error_handling import handle_domain_error
from ledgerly.domain.account import AccountService
from ledgerly.domain.categorization import ATTRIBUTED, REINFORCED
from ledgerly.domain.category import CategoryService
from ledgerly.domain.entities import TRANSACTION_TYPES
from ledgerly.domain.transaction import TransactionService
from ledgerly.utils.date_parser import parse_date


@click.group()
def transaction_group():
    """View and edit transactions."""
    pass


@transaction_group.command("list")
@click.option("--start-date", help="Start date (YYYY-MM-DD or relative like 'last month')")
@click.option("--end-date", help="End date (YYYY-MM-DD or relative like 'today')")
@click.option("--category", "category_id", help="Category ID")
@click.option("--account", help="Account name or ID")
@click.option("--uncategorized", is_flag=True, help="Show only transactions in a generic category")
@click.option("--verbose", "-v", is_flag=True, help="Show rule links, tags and notes")
@click.pass_context
def list_transactions(
    ctx,
    start_date: str | None,
    end_date: str | None,
    category_id: str | None,
    account: str | None,
    uncategorized: bool,
    verbose: bool,
):
    """View transactions with optional filters."""
    db = ctx.obj["db"]
    service = TransactionService(db)
    account_service = AccountService(db)

    start = None
    if start_date:
        try:
            start = parse_date(start_date)
        except ValueError as e:
            click.echo(f"Error: Invalid start date: {e}", err=True)
            ctx.exit(1)

    end = None
    if end_date:
        try:
            end = parse_date(end_date)
        except ValueError as e:
            click.echo(f"Error: Invalid end date: {e}", err=True)
            ctx.exit(1)

    account_id = resolve_account_or_exit(ctx, account_service, account) if account else None

    transactions = service.list_transactions(
        start_date=start,
        end_date=end,
        category_id=category_id,
        account_id=account_id,
        uncategorized=uncategorized,
    )
    if not transactions:
        click.echo("No transactions found.")
        return

    accounts = {acc.id: acc.name for acc in account_service.list_accounts()}

    click.echo(f"\nFound {len(transactions)} transaction(s):")
    click.echo("-" * 110)
    for txn in transactions:
        account_name = accounts.get(txn.account_id, "Unknown")
        click.echo(
            f"{txn.id:5d} | {txn.date} | {account_name:15s} | {txn.amount:>12} | {txn.type:10s} | "
            f"{txn.category_id or '':15s} | {txn.description[:40]}"
        )
        if verbose:
            click.echo(
                f"        rule: {txn.applied_rule_id or '-'}  sip rule: {txn.sip_rule_id or '-'}  "
                f"recurring: {txn.recurring_id or '-'}  tags: {', '.join(txn.tags) or '-'}  "
                f"notes: {txn.notes or '-'}"
            )


@transaction_group.command("show")
@click.argument("transaction_id", type=int)
@click.pass_context
def show_transaction(ctx, transaction_id: int):
    """Show a transaction, repairing its rule attribution if needed."""
    db = ctx.obj["db"]
    service = TransactionService(db)
    category_service = CategoryService(db)

    try:
        txn, decision = service.show_transaction(transaction_id)
    except ValueError as e:
        handle_domain_error(ctx, e)
        return

    category = category_service.format_category_path(txn.category_id) if txn.category_id else "-"
    click.echo(f"Transaction {txn.id}")
    click.echo(f"  Date:        {txn.date}")
    click.echo(f"  Amount:      {txn.amount}")
    click.echo(f"  Type:        {txn.type}")
    click.echo(f"  Description: {txn.description}")
    click.echo(f"  Category:    {category}")
    click.echo(f"  Rule:        {txn.applied_rule_id or '-'}")
    if txn.sip_rule_id:
        click.echo(f"  SIP rule:    {txn.sip_rule_id}")
    if txn.recurring_id:
        click.echo(f"  Recurring:   {txn.recurring_id}")
    if txn.tags:
        click.echo(f"  Tags:        {', '.join(txn.tags)}")
    if txn.notes:
        click.echo(f"  Notes:       {txn.notes}")
    if decision.state in (ATTRIBUTED, REINFORCED):
        click.echo(f"  (attributed to rule {decision.rule.id} '{decision.rule.pattern}')")


@transaction_group.command("categorize")
@click.argument("transaction_id", type=int)
@click.argument("category_id")
@click.pass_context
def categorize_transaction(ctx, transaction_id: int, category_id: str):
    """Set a transaction's category by hand."""
    service = TransactionService(ctx.obj["db"])
    try:
        service.update_category(transaction_id, category_id)
        click.echo(f"Transaction {transaction_id} categorized as '{category_id}'")
    except ValueError as e:
        handle_domain_error(ctx, e)


@transaction_group.command("update")
@click.argument("transaction_id", type=int)
@click.option("--type", "transaction_type", type=click.Choice(TRANSACTION_TYPES), help="Transaction type")
@click.option("--notes", help="Notes (empty string clears them)")
@click.pass_context
def update_transaction(ctx, transaction_id: int, transaction_type: str | None, notes: str | None):
    """Update a transaction's type or notes."""
    service = TransactionService(ctx.obj["db"])
    try:
        if transaction_type is not None:
            service.update_type(transaction_id, transaction_type)
        if notes is not None:
            service.update_notes(transaction_id, notes or None)
        click.echo(f"Updated transaction {transaction_id}")
    except ValueError as e:
        handle_domain_error(ctx, e)


@transaction_group.command("repair")
@click.option("--account", help="Limit to an account (name or ID)")
@click.pass_context
def repair_transactions(ctx, account: str | None):
    """Re-attribute transactions whose categorizing rule is missing."""
    db = ctx.obj["db"]
    service = TransactionService(db)
    account_id = resolve_account_or_exit(ctx, AccountService(db), account) if account else None

    counts = service.repair_transactions(account_id=account_id)
    click.echo("Repair complete:")
    click.echo(f"  Attributed: {counts.get(ATTRIBUTED, 0)}")
    click.echo(f"  Reinforced: {counts.get(REINFORCED, 0)}")
    click.echo(f"  Unchanged:  {sum(n for state, n in counts.items() if state not in (ATTRIBUTED, REINFORCED))}")


def register_commands(cli):
    """Register transaction commands with main CLI."""
    cli.add_command(transaction_group, name="transaction")
