"""Tests for the import command."""

import pytest
from ledgerly.cli.commands.import_cmd import build_mapping
from ledgerly.cli.main import cli
from ledgerly.domain.column_mapping import ColumnMapping


@pytest.fixture
def hdfc_file(fixtures_dir):
    return str(fixtures_dir / "hdfc_statement.csv")


def invoke(cli_runner, temp_db, *args):
    return cli_runner.invoke(cli, ["--db-path", temp_db.database_path, *args])


def test_import_statement(cli_runner, temp_db, sample_account, sample_categories, hdfc_file):
    """Identical rows in one statement are both imported."""
    invoke(cli_runner, temp_db, "rule", "seed-defaults")

    result = invoke(cli_runner, temp_db, "import", hdfc_file, "--account", "Test Account")

    assert result.exit_code == 0
    assert "Imported: 4 transactions" in result.output
    assert "Skipped: 0 duplicates" in result.output
    assert "Possible duplicates: 1" in result.output
    assert "Row 4: 2024-04-05 -450.50" in result.output
    assert "earlier in this file" in result.output

    listing = invoke(cli_runner, temp_db, "transaction", "list", "--category", "delivery")
    assert "Found 2 transaction(s)" in listing.output
    assert "-450.50" in listing.output


def test_import_same_file_twice_is_refused(cli_runner, temp_db, sample_account, hdfc_file):
    first = invoke(cli_runner, temp_db, "import", hdfc_file, "--account", str(sample_account.id))
    assert first.exit_code == 0

    second = invoke(cli_runner, temp_db, "import", hdfc_file, "--account", str(sample_account.id))

    assert second.exit_code == 1
    assert "has already been imported" in second.output


def test_import_twice_with_file_warnings_off_skips_rows(cli_runner, temp_db, sample_account, hdfc_file):
    invoke(cli_runner, temp_db, "import", hdfc_file, "--account", "Test Account")
    invoke(cli_runner, temp_db, "settings", "duplicates", "--no-file-warnings")

    result = invoke(cli_runner, temp_db, "import", hdfc_file, "--account", "Test Account")

    assert result.exit_code == 0
    assert "Imported: 0 transactions" in result.output
    assert "Skipped: 4 duplicates" in result.output


def test_import_dry_run(cli_runner, temp_db, sample_account, sample_categories, hdfc_file):
    invoke(cli_runner, temp_db, "rule", "add", "NETFLIX", "--category", "streaming")

    result = invoke(cli_runner, temp_db, "import", hdfc_file, "--account", "Test Account", "--dry-run")

    assert result.exit_code == 0
    assert "Parsed 4 transaction(s)" in result.output
    assert "Streaming" in result.output
    assert "Possible duplicates: 1" in result.output
    assert "Dry run: nothing was saved." in result.output

    listing = invoke(cli_runner, temp_db, "transaction", "list")
    assert "No transactions found" in listing.output
    rules = invoke(cli_runner, temp_db, "rule", "list")
    assert "used 0x" in rules.output


def test_import_unknown_account(cli_runner, temp_db, hdfc_file):
    result = invoke(cli_runner, temp_db, "import", hdfc_file, "--account", "Nope")

    assert result.exit_code == 1
    assert "Account 'Nope' not found" in result.output


def test_import_without_header_shows_rows(cli_runner, temp_db, sample_account, fixtures_dir):
    result = invoke(cli_runner, temp_db, "import", str(fixtures_dir / "no_header.csv"), "--account", "Test Account")

    assert result.exit_code == 1
    assert "Could not detect the header row" in result.output
    assert "Row 0: [0] 01/04/2024 | [1] COFFEE HOUSE | [2] -120.00" in result.output
    assert "--map FIELD=COLUMN" in result.output


def test_import_with_manual_mapping(cli_runner, temp_db, sample_account, fixtures_dir):
    result = invoke(
        cli_runner,
        temp_db,
        "import",
        str(fixtures_dir / "amount_column.csv"),
        "--account",
        "Test Account",
        "--header-row",
        "0",
        "--map",
        "date=Transaction Date",
        "--map",
        "description=1",
        "--map",
        "amount=Amount",
    )

    assert result.exit_code == 0
    assert "Imported: 3 transactions" in result.output


def test_import_with_incomplete_mapping(cli_runner, temp_db, sample_account, fixtures_dir):
    result = invoke(
        cli_runner,
        temp_db,
        "import",
        str(fixtures_dir / "no_header.csv"),
        "--account",
        "Test Account",
        "--map",
        "date=0",
        "--map",
        "amount=2",
    )

    assert result.exit_code == 1
    assert "Please map at least Date and Description columns." in result.output


def test_import_with_bad_map_option(cli_runner, temp_db, sample_account, fixtures_dir):
    result = invoke(
        cli_runner,
        temp_db,
        "import",
        str(fixtures_dir / "no_header.csv"),
        "--account",
        "Test Account",
        "--map",
        "payee=1",
    )

    assert result.exit_code == 2
    assert "Unknown field 'payee'" in result.output


def test_import_unsupported_file(cli_runner, temp_db, sample_account, tmp_path):
    notes = tmp_path / "notes.txt"
    notes.write_text("hello")

    result = invoke(cli_runner, temp_db, "import", str(notes), "--account", "Test Account")

    assert result.exit_code == 1
    assert "Unsupported file format" in result.output


def test_import_later_map_entry_overrides_earlier(cli_runner, temp_db, sample_account, fixtures_dir):
    """Re-targeting a column moves the field; the vacated field can be mapped again."""
    result = invoke(
        cli_runner,
        temp_db,
        "import",
        str(fixtures_dir / "no_header.csv"),
        "--account",
        "Test Account",
        "--map",
        "date=0",
        "--map",
        "amount=1",
        "--map",
        "description=1",
        "--map",
        "amount=2",
    )

    assert result.exit_code == 0, result.output
    assert "Imported: 2 transactions" in result.output
    listing = invoke(cli_runner, temp_db, "transaction", "list")
    assert "BOOK STORE" in listing.output
    assert "-350.00" in listing.output


def test_import_header_row_alone_infers_columns(cli_runner, temp_db, sample_account, fixtures_dir):
    result = invoke(
        cli_runner,
        temp_db,
        "import",
        str(fixtures_dir / "hdfc_statement.csv"),
        "--account",
        "Test Account",
        "--header-row",
        "4",
    )

    assert result.exit_code == 0, result.output
    assert "Imported: 4 transactions" in result.output


def test_import_header_row_outside_table(cli_runner, temp_db, sample_account, fixtures_dir):
    result = invoke(
        cli_runner,
        temp_db,
        "import",
        str(fixtures_dir / "amount_column.csv"),
        "--account",
        "Test Account",
        "--header-row",
        "99",
    )

    assert result.exit_code == 1
    assert "Header row 99 is outside the table" in result.output


def test_import_with_mapping_respects_size_limit(cli_runner, temp_db, sample_account, fixtures_dir, monkeypatch):
    monkeypatch.setattr("ledgerly.domain.import_service.MAX_UPLOAD_BYTES", 10)

    result = invoke(
        cli_runner,
        temp_db,
        "import",
        str(fixtures_dir / "amount_column.csv"),
        "--account",
        "Test Account",
        "--map",
        "date=0",
    )

    assert result.exit_code == 1
    assert "maximum accepted size is 10 bytes" in result.output
    assert "Imported" not in result.output


def test_build_mapping_amount_replaces_inferred_debit_credit():
    table = [["Date", "Narration", "Withdrawal", "Deposit", "Net"], ["01/04/2024", "X", "1.00", "", "-1.00"]]

    mapping, index = build_mapping(table, 0, ("amount=Net",))

    assert index == 0
    assert mapping == ColumnMapping(date=0, description=1, amount=4)


def test_build_mapping_retargeted_column_drops_previous_field():
    table = [["Date", "Narration", "Amount"], ["01/04/2024", "X", "1.00"]]

    mapping, _ = build_mapping(table, 0, ("description=0", "date=1", "amount=2"))

    assert mapping == ColumnMapping(date=1, description=0, amount=2)
