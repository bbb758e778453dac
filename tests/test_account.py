"""Tests for account commands."""

import pytest
from ledgerly.cli.main import cli
from ledgerly.domain.errors import ConflictError, ValidationError


def test_account_create_with_bank(cli_runner, temp_db):
    """Test creating an account with --bank option."""
    result = cli_runner.invoke(
        cli, ["--db-path", temp_db.database_path, "account", "create", "HDFC Savings", "--bank", "HDFC"]
    )

    assert result.exit_code == 0
    assert "Created account 'HDFC Savings'" in result.output
    assert "ID:" in result.output


def test_account_create_without_bank(cli_runner, temp_db):
    """Test creating an account without --bank option (short form)."""
    result = cli_runner.invoke(cli, ["--db-path", temp_db.database_path, "account", "create", "ICICI"])

    assert result.exit_code == 0
    assert "Created account 'ICICI'" in result.output
    assert "Bank name set to 'ICICI'" in result.output


def test_account_list_empty(cli_runner, temp_db):
    """Test listing accounts when none exist."""
    result = cli_runner.invoke(cli, ["--db-path", temp_db.database_path, "account", "list"])

    assert result.exit_code == 0
    assert "No accounts found" in result.output


def test_account_list_with_data(cli_runner, temp_db, sample_account):
    """Test listing accounts with data."""
    result = cli_runner.invoke(cli, ["--db-path", temp_db.database_path, "account", "list"])

    assert result.exit_code == 0
    assert "Test Account" in result.output
    assert "Test Bank" in result.output


def test_account_create_duplicate(cli_runner, temp_db):
    """Test creating duplicate account name fails."""
    result1 = cli_runner.invoke(
        cli, ["--db-path", temp_db.database_path, "account", "create", "Test Account", "--bank", "Bank1"]
    )
    assert result1.exit_code == 0

    result2 = cli_runner.invoke(
        cli, ["--db-path", temp_db.database_path, "account", "create", "Test Account", "--bank", "Bank2"]
    )

    assert result2.exit_code == 1
    assert "already exists" in result2.output.lower()


def test_account_service_rejects_blank_and_duplicate_names(account_service):
    account_service.create_account("Savings", "HDFC")

    with pytest.raises(ValidationError):
        account_service.create_account("   ", "HDFC")
    with pytest.raises(ConflictError):
        account_service.create_account(" Savings ", "SBI")
