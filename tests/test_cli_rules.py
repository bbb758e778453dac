"""Tests for rule, SIP rule, recurring, transaction and settings commands."""

import pytest
from datetime import date
from decimal import Decimal

from ledgerly.cli.main import cli


def invoke(cli_runner, temp_db, *args, **kwargs):
    return cli_runner.invoke(cli, ["--db-path", temp_db.database_path, *args], **kwargs)


@pytest.fixture
def stored_transactions(temp_db, sample_account):
    """Two food delivery payments, a salary credit and a subscription."""
    rows = [
        ("UPI-SWIGGY-409512345678", "-450.50", date(2024, 4, 5), "expense"),
        ("UPI-SWIGGY-409612345678", "-230.00", date(2024, 4, 6), "expense"),
        ("SALARY APR 2024", "50000.00", date(2024, 4, 1), "income"),
        ("NETFLIX.COM", "-649.00", date(2024, 5, 3), "expense"),
    ]
    return [
        temp_db.create_transaction(
            unique_id=f"txn-{index}",
            account_id=sample_account.id,
            date=when,
            amount=Decimal(amount),
            description=description,
            type=txn_type,
            category_id="other",
        )
        for index, (description, amount, when, txn_type) in enumerate(rows)
    ]


class TestRuleCommands:
    def test_add_and_list(self, cli_runner, temp_db, sample_categories):
        result = invoke(cli_runner, temp_db, "rule", "add", "SWIGGY", "--category", "delivery", "--priority", "5")

        assert result.exit_code == 0
        assert "Created rule 'SWIGGY' -> delivery (ID: 1)" in result.output

        listing = invoke(cli_runner, temp_db, "rule", "list")
        assert "SWIGGY" in listing.output
        assert "P5" in listing.output
        assert "used 0x" in listing.output

    def test_add_unknown_category(self, cli_runner, temp_db):
        result = invoke(cli_runner, temp_db, "rule", "add", "SWIGGY", "--category", "nope")

        assert result.exit_code == 1
        assert "Category 'nope' not found" in result.output

    def test_list_empty(self, cli_runner, temp_db):
        result = invoke(cli_runner, temp_db, "rule", "list")

        assert "No rules found." in result.output

    def test_toggle(self, cli_runner, temp_db, sample_categories):
        invoke(cli_runner, temp_db, "rule", "add", "SWIGGY", "--category", "delivery")

        assert "Rule 1 disabled" in invoke(cli_runner, temp_db, "rule", "toggle", "1").output
        assert "No rules found." in invoke(cli_runner, temp_db, "rule", "list", "--active").output
        assert "Rule 1 enabled" in invoke(cli_runner, temp_db, "rule", "toggle", "1").output

    def test_toggle_unknown(self, cli_runner, temp_db):
        result = invoke(cli_runner, temp_db, "rule", "toggle", "9")

        assert result.exit_code == 1
        assert "Category rule 9 not found" in result.output

    def test_test_description(self, cli_runner, temp_db, sample_categories):
        invoke(cli_runner, temp_db, "rule", "add", "ZERODHA", "--category", "stocks", "--type", "investment")

        matched = invoke(cli_runner, temp_db, "rule", "test", "ACH ZERODHA BROKING")
        assert "Matched rule 1 ('ZERODHA', partial)" in matched.output
        assert "Category: stocks" in matched.output
        assert "Type: investment" in matched.output

        unmatched = invoke(cli_runner, temp_db, "rule", "test", "CORNER SHOP")
        assert "No rule matches; category would be 'other'" in unmatched.output

    def test_apply_and_preview(self, cli_runner, temp_db, sample_categories, stored_transactions):
        invoke(cli_runner, temp_db, "rule", "add", "SWIGGY", "--category", "delivery")

        preview = invoke(cli_runner, temp_db, "rule", "apply", "1", "--preview")
        assert "2 transaction(s) match rule 1" in preview.output

        applied = invoke(cli_runner, temp_db, "rule", "apply", "1", "--account", "Test Account")
        assert applied.exit_code == 0
        assert "Matched: 2 transactions" in applied.output
        assert "Updated: 2 transactions" in applied.output

        again = invoke(cli_runner, temp_db, "rule", "apply", "1")
        assert "Updated: 0 transactions" in again.output
        assert "used 2x" in invoke(cli_runner, temp_db, "rule", "list").output

    def test_delete_asks_for_confirmation(self, cli_runner, temp_db, sample_categories):
        invoke(cli_runner, temp_db, "rule", "add", "SWIGGY", "--category", "delivery")

        cancelled = invoke(cli_runner, temp_db, "rule", "delete", "1", input="n\n")
        assert "Deletion cancelled." in cancelled.output

        deleted = invoke(cli_runner, temp_db, "rule", "delete", "1", "--yes")
        assert "Deleted rule 'SWIGGY'" in deleted.output
        assert "No rules found." in invoke(cli_runner, temp_db, "rule", "list").output

    def test_seed_defaults_is_repeatable(self, cli_runner, temp_db, sample_categories):
        first = invoke(cli_runner, temp_db, "rule", "seed-defaults")
        second = invoke(cli_runner, temp_db, "rule", "seed-defaults")

        assert "Created 0 default rules." not in first.output
        assert "Created 0 default rules." in second.output


class TestSIPRuleCommands:
    def test_add_and_list(self, cli_runner, temp_db):
        result = invoke(
            cli_runner, temp_db, "sip-rule", "add", "GROWW", "--amount", "5000", "--tolerance", "2", "--day", "5"
        )

        assert result.exit_code == 0
        assert "Created SIP rule 'GROWW' (ID: 1)" in result.output

        listing = invoke(cli_runner, temp_db, "sip-rule", "list")
        assert "GROWW" in listing.output
        assert "day 5±3" in listing.output

    def test_invalid_regex(self, cli_runner, temp_db):
        result = invoke(cli_runner, temp_db, "sip-rule", "add", "[", "--match", "regex", "--amount", "100")

        assert result.exit_code == 1
        assert "Invalid regular expression" in result.output

    def test_rejects_non_positive_amount(self, cli_runner, temp_db):
        result = invoke(cli_runner, temp_db, "sip-rule", "add", "GROWW", "--amount", "0")

        assert result.exit_code == 1
        assert "SIP amount must be positive" in result.output

    def test_toggle(self, cli_runner, temp_db):
        invoke(cli_runner, temp_db, "sip-rule", "add", "GROWW", "--amount", "5000")

        result = invoke(cli_runner, temp_db, "sip-rule", "toggle", "1")

        assert "SIP rule 1 disabled" in result.output


class TestRecurringCommands:
    def test_add_match_and_link(self, cli_runner, temp_db, stored_transactions):
        created = invoke(
            cli_runner,
            temp_db,
            "recurring",
            "add",
            "Netflix",
            "--amount",
            "649",
            "--next-due",
            "2024-05-01",
            "--category",
            "streaming",
        )
        assert "Created recurring 'Netflix' (ID: 1)" in created.output

        matches = invoke(cli_runner, temp_db, "recurring", "matches", "1")
        assert "suggested" in matches.output
        assert "NETFLIX.COM" in matches.output

        netflix_id = stored_transactions[3]
        linked = invoke(cli_runner, temp_db, "recurring", "link", "1", str(netflix_id))
        assert linked.exit_code == 0
        assert "Next due: 2024-06-01" in linked.output

        matches = invoke(cli_runner, temp_db, "recurring", "matches", "1")
        assert "linked" in matches.output

    def test_list_empty(self, cli_runner, temp_db):
        result = invoke(cli_runner, temp_db, "recurring", "list")

        assert "No recurring transactions found." in result.output

    def test_link_unknown_transaction(self, cli_runner, temp_db):
        invoke(cli_runner, temp_db, "recurring", "add", "Rent", "--amount", "25,000", "--next-due", "2024-05-01")

        result = invoke(cli_runner, temp_db, "recurring", "link", "1", "99")

        assert result.exit_code == 1
        assert "Transaction 99 not found" in result.output


class TestTransactionCommands:
    def test_show_repairs_attribution(self, cli_runner, temp_db, sample_categories, stored_transactions):
        invoke(cli_runner, temp_db, "rule", "add", "SWIGGY", "--category", "delivery")

        result = invoke(cli_runner, temp_db, "transaction", "show", str(stored_transactions[0]))

        assert result.exit_code == 0
        assert "Food & Dining > Food Delivery" in result.output
        assert "(attributed to rule 1 'SWIGGY')" in result.output

    def test_show_unknown(self, cli_runner, temp_db):
        result = invoke(cli_runner, temp_db, "transaction", "show", "99")

        assert result.exit_code == 1
        assert "Transaction 99 not found" in result.output

    def test_repair(self, cli_runner, temp_db, sample_categories, stored_transactions):
        invoke(cli_runner, temp_db, "rule", "add", "SWIGGY", "--category", "delivery")

        result = invoke(cli_runner, temp_db, "transaction", "repair", "--account", "Test Account")

        assert "Attributed: 2" in result.output
        assert "Reinforced: 0" in result.output
        assert "Unchanged:  2" in result.output

    def test_list_uncategorized_and_verbose(self, cli_runner, temp_db, sample_categories, stored_transactions):
        invoke(cli_runner, temp_db, "transaction", "categorize", str(stored_transactions[2]), "salary")
        invoke(cli_runner, temp_db, "transaction", "update", str(stored_transactions[3]), "--notes", "family plan")

        uncategorized = invoke(cli_runner, temp_db, "transaction", "list", "--uncategorized", "-v")

        assert "Found 3 transaction(s)" in uncategorized.output
        assert "SALARY" not in uncategorized.output
        assert "notes: family plan" in uncategorized.output

    def test_list_date_filter(self, cli_runner, temp_db, stored_transactions):
        result = invoke(cli_runner, temp_db, "transaction", "list", "--start-date", "2024-05-01")

        assert "Found 1 transaction(s)" in result.output
        assert "NETFLIX.COM" in result.output

    def test_list_invalid_date(self, cli_runner, temp_db):
        result = invoke(cli_runner, temp_db, "transaction", "list", "--start-date", "not a date")

        assert result.exit_code == 1
        assert "Invalid start date" in result.output

    def test_categorize_unknown_category(self, cli_runner, temp_db, stored_transactions):
        result = invoke(cli_runner, temp_db, "transaction", "categorize", str(stored_transactions[0]), "nope")

        assert result.exit_code == 1
        assert "Category 'nope' not found" in result.output

    def test_update_type(self, cli_runner, temp_db, stored_transactions):
        result = invoke(cli_runner, temp_db, "transaction", "update", str(stored_transactions[3]), "--type", "insurance")

        assert result.exit_code == 0
        assert f"Updated transaction {stored_transactions[3]}" in result.output


class TestSettingsCommands:
    def test_show_defaults(self, cli_runner, temp_db):
        result = invoke(cli_runner, temp_db, "settings", "show")

        assert "Enabled:            on" in result.output
        assert "File warnings:      on" in result.output

    def test_change_duplicate_detection(self, cli_runner, temp_db):
        result = invoke(cli_runner, temp_db, "settings", "duplicates", "--disable")

        assert result.exit_code == 0
        assert "Duplicate detection off, file warnings on" in result.output
        assert "Enabled:            off" in invoke(cli_runner, temp_db, "settings", "show").output
