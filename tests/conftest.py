"""Shared pytest fixtures for ledgerly tests."""

import tempfile
import os
from pathlib import Path
import pytest

from ledgerly.database.factories import create_sqlite_database
from ledgerly.domain.account import AccountService
from ledgerly.domain.category import CategoryService
from ledgerly.domain.import_service import StatementImportService
from ledgerly.domain.rules import CategoryRuleService, RecurringService, SIPRuleService
from ledgerly.domain.settings import SettingsService
from ledgerly.domain.transaction import TransactionService


@pytest.fixture
def temp_db():
    """Create a temporary database for testing."""
    fd, db_path = tempfile.mkstemp(suffix=".db")
    os.close(fd)

    db = create_sqlite_database(database_path=db_path)
    db.database_path = db_path
    db.connect()
    db.initialize_schema()

    yield db

    db.disconnect()
    if os.path.exists(db_path):
        os.unlink(db_path)


@pytest.fixture
def account_service(temp_db):
    """Create an AccountService with a temporary database."""
    return AccountService(temp_db)


@pytest.fixture
def category_service(temp_db):
    """Create a CategoryService with a temporary database."""
    return CategoryService(temp_db)


@pytest.fixture
def transaction_service(temp_db):
    """Create a TransactionService with a temporary database."""
    return TransactionService(temp_db)


@pytest.fixture
def rule_service(temp_db):
    return CategoryRuleService(temp_db)


@pytest.fixture
def sip_rule_service(temp_db):
    return SIPRuleService(temp_db)


@pytest.fixture
def recurring_service(temp_db):
    return RecurringService(temp_db)


@pytest.fixture
def settings_service(temp_db):
    return SettingsService(temp_db)


@pytest.fixture
def import_service(temp_db):
    """Create a StatementImportService with a temporary database."""
    return StatementImportService(temp_db)


@pytest.fixture
def sample_account(account_service):
    """Create a sample account for testing."""
    account_id = account_service.create_account(name="Test Account", bank_name="Test Bank")
    return account_service.get_account(account_id)


@pytest.fixture
def sample_categories(category_service):
    """Initialize the default category tree."""
    category_service.initialize_defaults()
    return {cat.id: cat for cat in category_service.list_all_categories()}


@pytest.fixture
def cli_runner():
    """Create a Click CLI test runner."""
    from click.testing import CliRunner

    return CliRunner()


@pytest.fixture
def fixtures_dir():
    """Return the path to the test fixtures directory."""
    return Path(__file__).parent / "fixtures"
