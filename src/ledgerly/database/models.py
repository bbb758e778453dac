"""SQLAlchemy models for ledgerly database."""

from datetime import datetime, UTC
from sqlalchemy import (
    Column,
    Integer,
    String,
    ForeignKey,
    DateTime,
    Date,
    Numeric,
    Boolean,
    UniqueConstraint,
    create_engine,
)
from sqlalchemy.orm import declarative_base, relationship, sessionmaker, Session

Base = declarative_base()


def _now() -> datetime:
    return datetime.now(UTC)


class Account(Base):
    """Bank account model."""

    __tablename__ = "accounts"

    id = Column(Integer, primary_key=True)
    name = Column(String, unique=True, nullable=False)
    bank_name = Column(String, nullable=False)
    created_at = Column(DateTime, default=_now, nullable=False)

    # Relationships
    transactions = relationship("Transaction", back_populates="account", cascade="all, delete-orphan")


class Category(Base):
    """Category model keyed by slug, with optional parent."""

    __tablename__ = "categories"

    id = Column(String, primary_key=True)
    name = Column(String, nullable=False)
    parent_id = Column(String, ForeignKey("categories.id"), nullable=True)
    created_at = Column(DateTime, default=_now, nullable=False)

    # Relationships
    parent = relationship("Category", remote_side=[id], backref="children")


class Transaction(Base):
    """Transaction model.

    Rule links (``applied_rule_id``, ``sip_rule_id``, ``recurring_id``) are
    plain columns: deleting a rule leaves them in place to be repaired later.
    """

    __tablename__ = "transactions"

    id = Column(Integer, primary_key=True)
    unique_id = Column(String, nullable=False)
    account_id = Column(Integer, ForeignKey("accounts.id"), nullable=False)
    date = Column(Date, nullable=False)
    amount = Column(Numeric(12, 2), nullable=False)
    description = Column(String, nullable=False, default="")
    type = Column(String, nullable=False, default="expense")
    category_id = Column(String, nullable=True)
    applied_rule_id = Column(Integer, nullable=True)
    sip_rule_id = Column(Integer, nullable=True)
    recurring_id = Column(Integer, nullable=True)
    tags = Column(String, nullable=False, default="")
    notes = Column(String, nullable=True)
    imported_at = Column(DateTime, default=_now, nullable=False)

    # Unique constraint on account_id + unique_id
    __table_args__ = (UniqueConstraint("account_id", "unique_id", name="uq_account_unique_id"),)

    # Relationships
    account = relationship("Account", back_populates="transactions")


class CategoryRule(Base):
    """Description pattern to category rule."""

    __tablename__ = "category_rules"

    id = Column(Integer, primary_key=True)
    pattern = Column(String, nullable=False)
    category_id = Column(String, nullable=False)
    match_type = Column(String, nullable=False, default="partial")
    transaction_type = Column(String, nullable=True)
    priority = Column(Integer, nullable=False, default=0)
    is_active = Column(Boolean, nullable=False, default=True)
    match_count = Column(Integer, nullable=False, default=0)
    last_used = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=_now, nullable=False)


class SIPRule(Base):
    """Rule linking investment debits to an asset."""

    __tablename__ = "sip_rules"

    id = Column(Integer, primary_key=True)
    pattern = Column(String, nullable=False)
    amount = Column(Numeric(12, 2), nullable=False)
    amount_tolerance = Column(Numeric(5, 2), nullable=False, default=0)
    expected_day = Column(Integer, nullable=True)
    date_tolerance = Column(Integer, nullable=False, default=3)
    match_type = Column(String, nullable=False, default="contains")
    priority = Column(Integer, nullable=False, default=0)
    is_active = Column(Boolean, nullable=False, default=True)
    asset_id = Column(String, nullable=True)
    match_count = Column(Integer, nullable=False, default=0)
    last_used = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=_now, nullable=False)


class RecurringTransaction(Base):
    """Recurring payment template."""

    __tablename__ = "recurring_transactions"

    id = Column(Integer, primary_key=True)
    name = Column(String, nullable=False)
    amount = Column(Numeric(12, 2), nullable=False)
    frequency = Column(String, nullable=False)
    next_due_date = Column(Date, nullable=False)
    category_id = Column(String, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, default=_now, nullable=False)


class ImportHistory(Base):
    """Fingerprints of files that were imported successfully."""

    __tablename__ = "import_history"

    id = Column(Integer, primary_key=True)
    file_name = Column(String, nullable=False)
    file_size = Column(Integer, nullable=False)
    last_modified = Column(Integer, nullable=False)
    transaction_count = Column(Integer, nullable=False, default=0)
    imported_at = Column(DateTime, default=_now, nullable=False)

    __table_args__ = (
        UniqueConstraint("file_name", "file_size", "last_modified", name="uq_import_fingerprint"),
    )


class Setting(Base):
    """Key/value user preference."""

    __tablename__ = "settings"

    key = Column(String, primary_key=True)
    value = Column(String, nullable=False)


def create_session_factory(database_url: str) -> sessionmaker[Session]:
    """Create a SQLAlchemy session factory."""
    engine = create_engine(database_url, echo=False)
    Base.metadata.create_all(engine)
    return sessionmaker(bind=engine)
