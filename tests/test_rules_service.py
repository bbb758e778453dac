"""Tests for category rule, SIP rule and recurring services."""

import pytest
from datetime import date
from decimal import Decimal

from ledgerly.domain.categorization import DEFAULT_CATEGORY_RULES
from ledgerly.domain.errors import NotFoundError, ValidationError


def add_transaction(temp_db, account_id, description, amount="-100.00", when=date(2024, 4, 1), **kwargs):
    kwargs.setdefault("type", "expense")
    kwargs.setdefault("category_id", "other")
    return temp_db.create_transaction(
        unique_id=f"{description}-{amount}-{when}",
        account_id=account_id,
        date=when,
        amount=Decimal(amount),
        description=description,
        **kwargs,
    )


def test_create_rule_validates_input(rule_service, sample_categories):
    with pytest.raises(ValidationError):
        rule_service.create_rule("  ", "delivery")
    with pytest.raises(ValidationError):
        rule_service.create_rule("SWIGGY", "delivery", match_type="regex")
    with pytest.raises(ValidationError):
        rule_service.create_rule("SWIGGY", "delivery", transaction_type="gift")
    with pytest.raises(NotFoundError):
        rule_service.create_rule("SWIGGY", "no_such_category")


def test_toggle_and_delete_rule(rule_service, sample_categories):
    rule_id = rule_service.create_rule("SWIGGY", "delivery")

    assert rule_service.toggle_rule(rule_id) is False
    assert rule_service.list_rules(active_only=True) == []
    assert rule_service.toggle_rule(rule_id) is True

    rule_service.delete_rule(rule_id)
    with pytest.raises(NotFoundError):
        rule_service.get_rule(rule_id)


def test_categorize_records_usage(rule_service, sample_categories):
    rule_id = rule_service.create_rule("SWIGGY", "delivery")

    suggestion = rule_service.categorize("UPI-SWIGGY-409512345678")

    assert suggestion.category_id == "delivery"
    rule = rule_service.get_rule(rule_id)
    assert rule.match_count == 1
    assert rule.last_used is not None


def test_suggest_does_not_record_usage(rule_service, sample_categories):
    rule_id = rule_service.create_rule("SWIGGY", "delivery")

    rule_service.suggest("SWIGGY")

    assert rule_service.get_rule(rule_id).match_count == 0


def test_apply_rule_to_transactions(temp_db, rule_service, sample_account, sample_categories):
    rule_id = rule_service.create_rule("ZERODHA", "stocks", transaction_type="investment")
    matching = add_transaction(temp_db, sample_account.id, "ZERODHA BROKING", "-5000.00")
    add_transaction(temp_db, sample_account.id, "SWIGGY ORDER")

    result = rule_service.apply_rule_to_transactions(rule_id)

    assert result == {"matched": 1, "updated": 1}
    txn = temp_db.get_transaction(matching)
    assert txn.category_id == "stocks"
    assert txn.type == "investment"
    assert txn.applied_rule_id == rule_id
    assert rule_service.get_rule(rule_id).match_count == 1

    # Applying again finds nothing left to change
    assert rule_service.apply_rule_to_transactions(rule_id) == {"matched": 1, "updated": 0}


def test_preview_lists_matches(temp_db, rule_service, sample_account, sample_categories):
    rule_id = rule_service.create_rule("SWIGGY", "delivery")
    add_transaction(temp_db, sample_account.id, "SWIGGY ORDER")
    add_transaction(temp_db, sample_account.id, "ZOMATO ORDER")

    assert [t.description for t in rule_service.preview(rule_id)] == ["SWIGGY ORDER"]


def test_seed_defaults_is_idempotent(rule_service, sample_categories):
    rule_service.create_rule("netflix", "streaming")

    created = rule_service.seed_defaults()

    assert created == len(DEFAULT_CATEGORY_RULES) - 1
    assert rule_service.seed_defaults() == 0


def test_sip_rule_validation(sip_rule_service):
    with pytest.raises(ValidationError):
        sip_rule_service.create_rule("GROWW", Decimal("0"))
    with pytest.raises(ValidationError):
        sip_rule_service.create_rule("GROWW", Decimal("5000"), amount_tolerance=Decimal("101"))
    with pytest.raises(ValidationError):
        sip_rule_service.create_rule("GROWW", Decimal("5000"), expected_day=32)
    with pytest.raises(ValidationError):
        sip_rule_service.create_rule("GROWW", Decimal("5000"), date_tolerance=-1)
    with pytest.raises(ValidationError):
        sip_rule_service.create_rule("([bad", Decimal("5000"), match_type="regex")
    with pytest.raises(ValidationError):
        sip_rule_service.create_rule("GROWW", "five thousand")


def test_sip_rule_match_and_toggle(sip_rule_service, sample_account, temp_db):
    rule_id = sip_rule_service.create_rule(
        "GROWW", Decimal("5000"), amount_tolerance=Decimal("1"), expected_day=5, asset_id="nifty50"
    )
    txn_id = add_transaction(temp_db, sample_account.id, "ACH GROWW MF", "-5025.00", date(2024, 4, 7))
    txn = temp_db.get_transaction(txn_id)

    rule = sip_rule_service.match(txn)
    assert rule.id == rule_id
    assert rule.asset_id == "nifty50"
    assert rule.amount == Decimal("5000")

    sip_rule_service.toggle_rule(rule_id)
    assert sip_rule_service.match(txn) is None


def test_create_recurring_validation(recurring_service):
    with pytest.raises(ValidationError):
        recurring_service.create_recurring("", Decimal("649"), "monthly", date(2024, 5, 1))
    with pytest.raises(ValidationError):
        recurring_service.create_recurring("Netflix", Decimal("-649"), "monthly", date(2024, 5, 1))
    with pytest.raises(ValidationError):
        recurring_service.create_recurring("Netflix", Decimal("649"), "hourly", date(2024, 5, 1))


def test_link_transaction_advances_due_date(temp_db, recurring_service, sample_account):
    recurring_id = recurring_service.create_recurring("Netflix", Decimal("649"), "monthly", date(2024, 5, 1))
    txn_id = add_transaction(temp_db, sample_account.id, "NETFLIX", "-649.00", date(2024, 5, 2))

    assert [t.id for t in recurring_service.find_matches(recurring_id)] == [txn_id]

    template = recurring_service.link_transaction(recurring_id, txn_id)

    assert template.next_due_date == date(2024, 6, 1)
    assert temp_db.get_transaction(txn_id).recurring_id == recurring_id
    assert [t.id for t in recurring_service.find_matches(recurring_id)] == [txn_id]


def test_link_old_transaction_keeps_due_date(temp_db, recurring_service, sample_account):
    recurring_id = recurring_service.create_recurring("Netflix", Decimal("649"), "monthly", date(2024, 5, 1))
    txn_id = add_transaction(temp_db, sample_account.id, "NETFLIX", "-649.00", date(2024, 3, 1))

    template = recurring_service.link_transaction(recurring_id, txn_id)

    assert template.next_due_date == date(2024, 5, 1)


def test_link_missing_transaction(recurring_service):
    recurring_id = recurring_service.create_recurring("Netflix", Decimal("649"), "monthly", date(2024, 5, 1))

    with pytest.raises(NotFoundError):
        recurring_service.link_transaction(recurring_id, 999)
