"""SIP rule commands."""

from decimal import Decimal

import click
from ledgerly.cli.error_handling import handle_domain_error
from ledgerly.domain.rules import SIPRuleService
from ledgerly.domain.sip_matching import SIP_MATCH_TYPES


@click.group()
def sip_rule_group():
    """Manage SIP (systematic investment plan) rules."""
    pass


@sip_rule_group.command("add")
@click.argument("pattern")
@click.option("--amount", type=click.FLOAT, required=True, help="Installment amount")
@click.option("--tolerance", type=click.FLOAT, default=0.0, help="Amount tolerance in percent")
@click.option("--day", "expected_day", type=click.IntRange(1, 31), help="Expected day of month")
@click.option("--day-tolerance", "date_tolerance", type=int, default=3, help="Allowed distance from --day in days")
@click.option("--match", "match_type", type=click.Choice(SIP_MATCH_TYPES), default="contains", help="Match type (default: contains)")
@click.option("--priority", type=int, default=0, help="Higher priorities are evaluated first")
@click.option("--asset", "asset_id", help="Asset the installments belong to")
@click.pass_context
def add_sip_rule(
    ctx,
    pattern: str,
    amount: float,
    tolerance: float,
    expected_day: int | None,
    date_tolerance: int,
    match_type: str,
    priority: int,
    asset_id: str | None,
):
    """Create a SIP rule.

    Examples:
        ledgerly sip-rule add "GROWW" --amount 5000 --tolerance 2 --day 5
        ledgerly sip-rule add "^BSE.*MF" --match regex --amount 2500 --asset nifty50
    """
    service = SIPRuleService(ctx.obj["db"])
    try:
        rule_id = service.create_rule(
            pattern=pattern,
            amount=Decimal(str(amount)),
            amount_tolerance=Decimal(str(tolerance)),
            expected_day=expected_day,
            date_tolerance=date_tolerance,
            match_type=match_type,
            priority=priority,
            asset_id=asset_id,
        )
        click.echo(f"Created SIP rule '{pattern}' (ID: {rule_id})")
    except ValueError as e:
        handle_domain_error(ctx, e)


@sip_rule_group.command("list")
@click.pass_context
def list_sip_rules(ctx):
    """List SIP rules."""
    service = SIPRuleService(ctx.obj["db"])
    rules = service.list_rules()
    if not rules:
        click.echo("No SIP rules found.")
        return

    click.echo("\nSIP rules:")
    click.echo("-" * 100)
    for rule in rules:
        status = "on " if rule.is_active else "off"
        day = f"day {rule.expected_day}±{rule.date_tolerance}" if rule.expected_day else "any day"
        click.echo(
            f"ID: {rule.id:3d} | {status} | P{rule.priority:<3d} | {rule.match_type:8s} | {rule.pattern:20s} | "
            f"{rule.amount}±{rule.amount_tolerance}% | {day} | asset {rule.asset_id or '-'} | used {rule.match_count}x"
        )


@sip_rule_group.command("toggle")
@click.argument("rule_id", type=int)
@click.pass_context
def toggle_sip_rule(ctx, rule_id: int):
    """Enable or disable a SIP rule."""
    service = SIPRuleService(ctx.obj["db"])
    try:
        active = service.toggle_rule(rule_id)
        click.echo(f"SIP rule {rule_id} {'enabled' if active else 'disabled'}")
    except ValueError as e:
        handle_domain_error(ctx, e)


def register_commands(cli):
    """Register SIP rule commands with main CLI."""
    cli.add_command(sip_rule_group, name="sip-rule")
