"""Mapper functions to convert SQLAlchemy models into domain entities.

Keeps the ORM schema (comma-joined tags, integer file timestamps) out of the
domain layer.
"""

from decimal import Decimal

from ledgerly.domain import entities as domain
from ledgerly.database.models import (
    Account as ORMAccount,
    Category as ORMCategory,
    CategoryRule as ORMCategoryRule,
    ImportHistory as ORMImportHistory,
    RecurringTransaction as ORMRecurringTransaction,
    SIPRule as ORMSIPRule,
    Transaction as ORMTransaction,
)

TAG_SEPARATOR = ","


def tags_to_column(tags) -> str:
    """Serialize tags for the ``transactions.tags`` column."""
    return TAG_SEPARATOR.join(tag.strip() for tag in tags if tag and tag.strip())


def tags_from_column(value) -> tuple[str, ...]:
    if not value:
        return ()
    return tuple(tag for tag in value.split(TAG_SEPARATOR) if tag)


def account_to_domain(orm_account: ORMAccount) -> domain.Account:
    """Convert SQLAlchemy Account model to domain Account entity."""
    return domain.Account(
        id=orm_account.id,
        name=orm_account.name,
        bank_name=orm_account.bank_name,
        created_at=orm_account.created_at,
    )


def category_to_domain(orm_category: ORMCategory) -> domain.Category:
    """Convert SQLAlchemy Category model to domain Category entity."""
    return domain.Category(
        id=orm_category.id,
        name=orm_category.name,
        parent_id=orm_category.parent_id,
        created_at=orm_category.created_at,
    )


def transaction_to_domain(orm_transaction: ORMTransaction) -> domain.Transaction:
    """Convert SQLAlchemy Transaction model to domain Transaction entity."""
    return domain.Transaction(
        id=orm_transaction.id,
        unique_id=orm_transaction.unique_id,
        account_id=orm_transaction.account_id,
        date=orm_transaction.date,
        amount=Decimal(orm_transaction.amount),
        description=orm_transaction.description,
        type=orm_transaction.type,
        category_id=orm_transaction.category_id,
        applied_rule_id=orm_transaction.applied_rule_id,
        sip_rule_id=orm_transaction.sip_rule_id,
        recurring_id=orm_transaction.recurring_id,
        tags=tags_from_column(orm_transaction.tags),
        notes=orm_transaction.notes,
        imported_at=orm_transaction.imported_at,
    )


def category_rule_to_domain(orm_rule: ORMCategoryRule) -> domain.CategoryRule:
    """Convert SQLAlchemy CategoryRule model to domain CategoryRule entity."""
    return domain.CategoryRule(
        id=orm_rule.id,
        pattern=orm_rule.pattern,
        category_id=orm_rule.category_id,
        match_type=orm_rule.match_type,
        transaction_type=orm_rule.transaction_type,
        priority=orm_rule.priority,
        is_active=orm_rule.is_active,
        match_count=orm_rule.match_count,
        last_used=orm_rule.last_used,
        created_at=orm_rule.created_at,
    )


def sip_rule_to_domain(orm_rule: ORMSIPRule) -> domain.SIPRule:
    """Convert SQLAlchemy SIPRule model to domain SIPRule entity."""
    return domain.SIPRule(
        id=orm_rule.id,
        pattern=orm_rule.pattern,
        amount=Decimal(orm_rule.amount),
        amount_tolerance=Decimal(orm_rule.amount_tolerance),
        expected_day=orm_rule.expected_day,
        date_tolerance=orm_rule.date_tolerance,
        match_type=orm_rule.match_type,
        priority=orm_rule.priority,
        is_active=orm_rule.is_active,
        asset_id=orm_rule.asset_id,
        match_count=orm_rule.match_count,
        last_used=orm_rule.last_used,
        created_at=orm_rule.created_at,
    )


def recurring_to_domain(orm_recurring: ORMRecurringTransaction) -> domain.RecurringTransaction:
    """Convert SQLAlchemy RecurringTransaction model to domain entity."""
    return domain.RecurringTransaction(
        id=orm_recurring.id,
        name=orm_recurring.name,
        amount=Decimal(orm_recurring.amount),
        frequency=orm_recurring.frequency,
        next_due_date=orm_recurring.next_due_date,
        category_id=orm_recurring.category_id,
        is_active=orm_recurring.is_active,
        created_at=orm_recurring.created_at,
    )


def import_record_to_domain(orm_record: ORMImportHistory) -> domain.ImportRecord:
    """Convert SQLAlchemy ImportHistory model to domain ImportRecord entity."""
    return domain.ImportRecord(
        id=orm_record.id,
        fingerprint=domain.FileFingerprint(
            file_name=orm_record.file_name,
            size=orm_record.file_size,
            last_modified=float(orm_record.last_modified),
        ),
        transaction_count=orm_record.transaction_count,
        imported_at=orm_record.imported_at,
    )
