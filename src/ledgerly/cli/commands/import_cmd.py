"""Statement import command."""

import click
from ledgerly.cli.account_resolution import resolve_account_or_exit
from ledgerly.cli.error_handling import handle_domain_error
from ledgerly.domain.account import AccountService
from ledgerly.domain.column_mapping import FIELD_LABELS, FIELDS, MappingBuilder, infer_mapping
from ledgerly.domain.import_service import (
    Failed,
    NeedsMapping,
    NeedsPassword,
    StatementImportService,
)
from ledgerly.domain.settings import SettingsService
from ledgerly.domain.statement_parser import StatementFile

PREVIEW_ROWS = 10


def parse_map_options(entries: tuple[str, ...], header: list[str]) -> list[tuple[str, int]]:
    """Turn ``field=column`` options into ``(field, column index)`` pairs.

    A column is a zero-based index or the text of a header cell
    (case-insensitive). Order is kept so later entries can override
    earlier ones.

    Raises:
        click.BadParameter: If an entry is malformed or names an unknown column
    """
    normalized_header = [cell.strip().lower() for cell in header]
    assignments = []
    for entry in entries:
        field_name, sep, column = entry.partition("=")
        field_name = field_name.strip().lower()
        column = column.strip()
        if not sep or not field_name or not column:
            raise click.BadParameter(f"Expected FIELD=COLUMN, got '{entry}'", param_hint="--map")
        if field_name not in FIELDS:
            raise click.BadParameter(
                f"Unknown field '{field_name}' (choose from {', '.join(FIELDS)})", param_hint="--map"
            )
        if column.isdigit():
            assignments.append((field_name, int(column)))
        elif column.lower() in normalized_header:
            assignments.append((field_name, normalized_header.index(column.lower())))
        else:
            raise click.BadParameter(f"No column named '{column}' in the header row", param_hint="--map")
    return assignments


def build_mapping(raw_table, header_row: int, map_entries: tuple[str, ...]):
    """Start from the columns the header row names, then apply ``--map`` entries in order.

    Returns:
        Tuple of (ColumnMapping, header row index)

    Raises:
        MappingValidationError: If the header row is outside the table or the
            resulting mapping is incomplete
        click.BadParameter: If a ``--map`` entry is invalid
    """
    builder = MappingBuilder(raw_table)
    builder.select_header_row(header_row)
    for field_name, column in infer_mapping(builder.headers).items():
        builder.assign(field_name, column)
    for field_name, column in parse_map_options(map_entries, builder.headers):
        builder.assign(field_name, column)
    return builder.confirm()


def show_raw_table(raw_table: list[list[str]]) -> None:
    """Print the first rows of an undetected table with their indices."""
    click.echo("\nFirst rows of the file:")
    for index, row in enumerate(raw_table[:PREVIEW_ROWS]):
        cells = " | ".join(f"[{col}] {cell}" for col, cell in enumerate(row))
        click.echo(f"  Row {index}: {cells}")
    fields = ", ".join(f"{name} ({label})" for name, label in FIELD_LABELS.items())
    click.echo(f"\nRe-run with --header-row N and --map FIELD=COLUMN. Fields: {fields}")


def show_preview(transactions, category_names: dict[str, str]) -> None:
    click.echo(f"\nParsed {len(transactions)} transaction(s):")
    click.echo("-" * 100)
    for txn in transactions:
        category = category_names.get(txn.category_id, txn.category_id or "")
        sip = f" [SIP rule {txn.sip_rule_id}]" if txn.sip_rule_id else ""
        click.echo(
            f"{txn.date}  {txn.amount:>12}  {txn.type:10s}  {category:20s}  {txn.description[:40]}{sip}"
        )


def show_possible_duplicates(candidates) -> None:
    if not candidates:
        return
    click.echo(f"  Possible duplicates: {len(candidates)}")
    for candidate in candidates:
        txn, other = candidate.transaction, candidate.duplicate_of
        where = "earlier in this file" if candidate.within_file else f"stored transaction {other.id}"
        click.echo(
            f"    Row {candidate.position}: {txn.date} {txn.amount} {txn.description[:40]}"
            f" ~ {where} ({other.date} {other.amount} {other.description[:40]}), {candidate.confidence}%"
        )


@click.command("import")
@click.argument("statement_file", type=click.Path(exists=True, dir_okay=False))
@click.option("--account", required=True, help="Account name or ID")
@click.option("--password", help="Password for encrypted PDF statements")
@click.option("--header-row", type=int, help="Zero-based header row (when it cannot be detected)")
@click.option(
    "--map",
    "map_entries",
    multiple=True,
    metavar="FIELD=COLUMN",
    help="Assign a column to a field; later entries override earlier ones",
)
@click.option("--dry-run", is_flag=True, help="Parse and categorize without saving")
@click.pass_context
def import_statement(
    ctx,
    statement_file: str,
    account: str,
    password: str | None,
    header_row: int | None,
    map_entries: tuple[str, ...],
    dry_run: bool,
):
    """Import transactions from a CSV, Excel or PDF bank statement.

    The header row and columns are detected automatically. When detection
    fails the first rows are shown so the columns can be mapped by hand.
    With --header-row alone the columns are inferred from that row.

    Examples:
        ledgerly import statement.csv --account "HDFC Savings"
        ledgerly import statement.pdf --account 1 --password secret
        ledgerly import export.xlsx --account 1 --header-row 3 \\
            --map date=0 --map description=Narration --map debit=3 --map credit=4
    """
    db = ctx.obj["db"]
    account_id = resolve_account_or_exit(ctx, AccountService(db), account)
    service = StatementImportService(db)
    settings = SettingsService(db).get_duplicate_detection()
    file = StatementFile.from_path(statement_file)

    try:
        if map_entries or header_row is not None:
            raw_table = service.load_table(file, settings)
            mapping, index = build_mapping(raw_table, header_row or 0, map_entries)
            outcome = service.process_with_mapping(file, raw_table, mapping, index)
        else:
            outcome = service.process_file(file, settings, password=password)
    except ValueError as e:
        handle_domain_error(ctx, e)
        return

    if isinstance(outcome, NeedsMapping):
        click.echo("Error: Could not detect the header row.", err=True)
        show_raw_table(outcome.raw_table)
        ctx.exit(1)
    elif isinstance(outcome, NeedsPassword):
        if outcome.incorrect:
            click.echo("Error: Incorrect password.", err=True)
        else:
            click.echo(f"Error: '{outcome.file_name}' is password protected. Use --password.", err=True)
        ctx.exit(1)
    elif isinstance(outcome, Failed):
        click.echo(f"Error: {outcome.reason}", err=True)
        ctx.exit(1)

    transactions = service.annotate(outcome.transactions)

    if dry_run:
        category_names = {cat.id: cat.name for cat in db.list_categories(all_levels=True)}
        show_preview(transactions, category_names)
        if settings.enabled:
            show_possible_duplicates(service.find_possible_duplicates(account_id, transactions))
        click.echo("\nDry run: nothing was saved.")
        return

    try:
        result = service.save(
            account_id, transactions, fingerprint=outcome.fingerprint, check_near_duplicates=settings.enabled
        )
    except ValueError as e:
        handle_domain_error(ctx, e)
        return

    click.echo(f"\nImport complete:")
    click.echo(f"  Imported: {result['imported']} transactions")
    click.echo(f"  Skipped: {result['skipped']} duplicates")
    show_possible_duplicates(result["possible_duplicates"])
    if result["errors"]:
        click.echo(f"  Errors: {len(result['errors'])}")
        for error in result["errors"]:
            click.echo(f"    {error}", err=True)


def register_commands(cli):
    """Register import command with main CLI."""
    cli.add_command(import_statement)
