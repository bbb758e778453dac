"""Category rule commands."""

import click
from ledgerly.cli.account_resolution import resolve_account_or_exit
from ledgerly.cli.error_handling import handle_domain_error
from ledgerly.domain.account import AccountService
from ledgerly.domain.categorization import MATCH_TYPES
from ledgerly.domain.entities import TRANSACTION_TYPES
from ledgerly.domain.rules import CategoryRuleService


@click.group()
def rule_group():
    """Manage category rules."""
    pass


@rule_group.command("add")
@click.argument("pattern")
@click.option("--category", "category_id", required=True, help="Category ID assigned on match")
@click.option("--match", "match_type", type=click.Choice(MATCH_TYPES), default="partial", help="Match type (default: partial)")
@click.option("--type", "transaction_type", type=click.Choice(TRANSACTION_TYPES), help="Transaction type assigned on match")
@click.option("--priority", type=int, default=0, help="Higher priorities are evaluated first")
@click.pass_context
def add_rule(ctx, pattern: str, category_id: str, match_type: str, transaction_type: str | None, priority: int):
    """Create a category rule.

    Examples:
        ledgerly rule add "SWIGGY" --category delivery
        ledgerly rule add "ZERODHA" --category stocks --type investment --priority 10
    """
    service = CategoryRuleService(ctx.obj["db"])
    try:
        rule_id = service.create_rule(
            pattern=pattern,
            category_id=category_id,
            match_type=match_type,
            transaction_type=transaction_type,
            priority=priority,
        )
        click.echo(f"Created rule '{pattern}' -> {category_id} (ID: {rule_id})")
    except ValueError as e:
        handle_domain_error(ctx, e)


@rule_group.command("list")
@click.option("--active", "active_only", is_flag=True, help="Show only active rules")
@click.pass_context
def list_rules(ctx, active_only: bool):
    """List category rules in evaluation order."""
    service = CategoryRuleService(ctx.obj["db"])
    rules = sorted(service.list_rules(active_only=active_only), key=lambda r: -r.priority)
    if not rules:
        click.echo("No rules found.")
        return

    click.echo("\nCategory rules:")
    click.echo("-" * 100)
    for rule in rules:
        status = "on " if rule.is_active else "off"
        rule_type = rule.transaction_type or "-"
        click.echo(
            f"ID: {rule.id:3d} | {status} | P{rule.priority:<3d} | {rule.match_type:7s} | "
            f"{rule.pattern:25s} -> {rule.category_id:15s} | {rule_type:10s} | used {rule.match_count}x"
        )


@rule_group.command("toggle")
@click.argument("rule_id", type=int)
@click.pass_context
def toggle_rule(ctx, rule_id: int):
    """Enable or disable a rule."""
    service = CategoryRuleService(ctx.obj["db"])
    try:
        active = service.toggle_rule(rule_id)
        click.echo(f"Rule {rule_id} {'enabled' if active else 'disabled'}")
    except ValueError as e:
        handle_domain_error(ctx, e)


@rule_group.command("delete")
@click.argument("rule_id", type=int)
@click.option("--yes", is_flag=True, help="Do not ask for confirmation")
@click.pass_context
def delete_rule(ctx, rule_id: int, yes: bool):
    """Delete a rule.

    Transactions categorized by the rule keep their category; their
    attribution is repaired the next time they are shown.
    """
    service = CategoryRuleService(ctx.obj["db"])
    try:
        rule = service.get_rule(rule_id)
    except ValueError as e:
        handle_domain_error(ctx, e)
        return

    if not yes and not click.confirm(f"Delete rule '{rule.pattern}' (ID: {rule_id})?"):
        click.echo("Deletion cancelled.")
        return

    service.delete_rule(rule_id)
    click.echo(f"Deleted rule '{rule.pattern}'")


@rule_group.command("test")
@click.argument("description")
@click.pass_context
def test_rule(ctx, description: str):
    """Show which rule would categorize DESCRIPTION."""
    service = CategoryRuleService(ctx.obj["db"])
    suggestion = service.suggest(description)
    if not suggestion.matched:
        click.echo(f"No rule matches; category would be '{suggestion.category_id}'")
        return

    rule = suggestion.applied_rule
    click.echo(f"Matched rule {rule.id} ('{rule.pattern}', {rule.match_type})")
    click.echo(f"  Category: {suggestion.category_id}")
    if suggestion.transaction_type:
        click.echo(f"  Type: {suggestion.transaction_type}")


@rule_group.command("apply")
@click.argument("rule_id", type=int)
@click.option("--account", help="Limit to an account (name or ID)")
@click.option("--preview", is_flag=True, help="List matching transactions without changing them")
@click.pass_context
def apply_rule(ctx, rule_id: int, account: str | None, preview: bool):
    """Apply a rule to already imported transactions."""
    db = ctx.obj["db"]
    service = CategoryRuleService(db)
    account_id = resolve_account_or_exit(ctx, AccountService(db), account) if account else None

    try:
        if preview:
            matching = service.preview(rule_id, account_id=account_id)
            click.echo(f"{len(matching)} transaction(s) match rule {rule_id}:")
            for txn in matching:
                click.echo(f"  {txn.id:5d} | {txn.date} | {txn.amount:>12} | {txn.category_id or '':15s} | {txn.description[:50]}")
            return

        result = service.apply_rule_to_transactions(rule_id, account_id=account_id)
    except ValueError as e:
        handle_domain_error(ctx, e)
        return

    click.echo(f"Matched: {result['matched']} transactions")
    click.echo(f"Updated: {result['updated']} transactions")


@rule_group.command("seed-defaults")
@click.pass_context
def seed_defaults(ctx):
    """Create the built-in rule set (existing patterns are kept)."""
    service = CategoryRuleService(ctx.obj["db"])
    created = service.seed_defaults()
    click.echo(f"Created {created} default rules.")


def register_commands(cli):
    """Register rule commands with main CLI."""
    cli.add_command(rule_group, name="rule")
