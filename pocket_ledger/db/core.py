import os
from contextlib import contextmanager
from typing import Optional
from sqlalchemy import create_engine, ForeignKey, Index, UniqueConstraint, Boolean, Integer, String, LargeBinary, DECIMAL, DateTime
from sqlalchemy.types import Enum
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker, DeclarativeBase, Mapped, relationship, mapped_column
from datetime import datetime
from uuid import UUID
from decimal import Decimal
from dotenv import load_dotenv
import enum

load_dotenv()

DATABASE_URL = os.environ.get("DATABASE_URL", "sqlite:///pocket_ledger.db")


# ===== ERRORS =====

class NotFoundError(Exception):
    pass


class InvalidAmountError(ValueError):
    pass


class BudgetAlreadyExistsError(ValueError):
    def __init__(self, category: "TransactionCategory"):
        self.category = category
        super().__init__(f"A budget for {category.display_name} already exists in this period")


class AccountHasTransactionsError(ValueError):
    def __init__(self, account_id: int):
        self.account_id = account_id
        super().__init__(f"Cannot delete account {account_id} while it has transactions")


class UnauthenticatedError(Exception):
    pass


class StorageError(Exception):
    """Record store I/O failed. The original exception is kept as ``__cause__``."""

    def __init__(self, context: str, cause: Exception):
        self.context = context
        super().__init__(f"Storage failure during {context}: {cause}")


# ===== ENUMERATIONS =====

class AccountType(enum.Enum):
    CHECKING = "CHECKING"
    SAVINGS = "SAVINGS"
    CREDIT = "CREDIT"
    INVESTMENT = "INVESTMENT"

    @property
    def display_name(self) -> str:
        return ACCOUNT_TYPE_NAMES[self]


class TransactionType(enum.Enum):
    INCOME = "INCOME"
    EXPENSE = "EXPENSE"

    @property
    def display_name(self) -> str:
        return TRANSACTION_TYPE_NAMES[self]


class TransactionCategory(enum.Enum):
    FOOD = "FOOD"
    TRANSPORT = "TRANSPORT"
    ENTERTAINMENT = "ENTERTAINMENT"
    HEALTHCARE = "HEALTHCARE"
    SHOPPING = "SHOPPING"
    BILLS = "BILLS"
    SALARY = "SALARY"
    INVESTMENT = "INVESTMENT"
    OTHER = "OTHER"

    @property
    def display_name(self) -> str:
        return CATEGORY_NAMES[self]

    @property
    def icon_name(self) -> str:
        return CATEGORY_ICONS[self]


ACCOUNT_TYPE_NAMES = {
    AccountType.CHECKING: "Checking",
    AccountType.SAVINGS: "Savings",
    AccountType.CREDIT: "Credit Card",
    AccountType.INVESTMENT: "Investment",
}

TRANSACTION_TYPE_NAMES = {
    TransactionType.INCOME: "Income",
    TransactionType.EXPENSE: "Expense",
}

CATEGORY_NAMES = {
    TransactionCategory.FOOD: "Food",
    TransactionCategory.TRANSPORT: "Transport",
    TransactionCategory.ENTERTAINMENT: "Entertainment",
    TransactionCategory.HEALTHCARE: "Healthcare",
    TransactionCategory.SHOPPING: "Shopping",
    TransactionCategory.BILLS: "Bills",
    TransactionCategory.SALARY: "Salary",
    TransactionCategory.INVESTMENT: "Investment",
    TransactionCategory.OTHER: "Other",
}

CATEGORY_ICONS = {
    TransactionCategory.FOOD: "fork.knife",
    TransactionCategory.TRANSPORT: "car",
    TransactionCategory.ENTERTAINMENT: "gamecontroller",
    TransactionCategory.HEALTHCARE: "cross",
    TransactionCategory.SHOPPING: "bag",
    TransactionCategory.BILLS: "doc.text",
    TransactionCategory.SALARY: "dollarsign.circle",
    TransactionCategory.INVESTMENT: "chart.line.uptrend.xyaxis",
    TransactionCategory.OTHER: "questionmark.circle",
}


class Base(DeclarativeBase):
    pass


class UserDB(Base):
    __tablename__ = "users"

    __table_args__ = (
        UniqueConstraint("email", name="uq_user_email"),
        Index("idx_users_email", "email"),
    )

    # Core User Identification
    db_id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    id: Mapped[UUID] = mapped_column(unique=True, nullable=False)

    # Authentication
    email: Mapped[str] = mapped_column(String(255), nullable=False)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)

    # Profile
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    profile_image: Mapped[Optional[bytes]] = mapped_column(LargeBinary)
    preferred_currency: Mapped[str] = mapped_column(String(3), default="BRL")

    # Audit Trail
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    accounts = relationship("AccountDB", back_populates="user")
    transactions = relationship("TransactionDB", back_populates="user")
    budgets = relationship("BudgetDB", back_populates="user")


class AccountDB(Base):
    __tablename__ = "accounts"

    __table_args__ = (
        # Prevent duplicate account names per user
        UniqueConstraint("user_id", "account_name", name="uq_user_account_name"),
        Index("idx_accounts_user_active", "user_id", "is_active"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.db_id"), nullable=False)

    account_name: Mapped[str] = mapped_column(String(255), nullable=False)
    account_type: Mapped[AccountType] = mapped_column(Enum(AccountType))

    # Balance Tracking
    opening_balance: Mapped[Decimal] = mapped_column(DECIMAL(15, 2), default=Decimal("0.00"))
    balance: Mapped[Decimal] = mapped_column(DECIMAL(15, 2), default=Decimal("0.00"))
    balance_last_updated: Mapped[Optional[datetime]] = mapped_column(DateTime)

    # Soft delete
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    # Audit Trail
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    user = relationship("UserDB", back_populates="accounts")
    transactions = relationship("TransactionDB", back_populates="account")


class TransactionDB(Base):
    __tablename__ = "transactions"

    __table_args__ = (
        # Performance indexes for common queries
        Index("idx_transactions_user_date", "user_id", "transaction_date"),
        Index("idx_transactions_user_account", "user_id", "account_id"),
        Index("idx_transactions_date", "transaction_date"),
    )

    # Core Transaction Identification
    db_id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    id: Mapped[UUID] = mapped_column(unique=True, nullable=False)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.db_id"), nullable=False)
    account_id: Mapped[Optional[int]] = mapped_column(ForeignKey("accounts.id"))

    # Basic Transaction Data
    transaction_date: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    amount: Mapped[Decimal] = mapped_column(DECIMAL(15, 2), nullable=False)
    transaction_type: Mapped[TransactionType] = mapped_column(Enum(TransactionType), nullable=False)
    category: Mapped[TransactionCategory] = mapped_column(Enum(TransactionCategory), nullable=False)
    description: Mapped[str] = mapped_column(String(500), default="")

    # Audit Trail
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    user = relationship("UserDB", back_populates="transactions")
    account = relationship("AccountDB", back_populates="transactions")


class BudgetDB(Base):
    __tablename__ = "budgets"

    __table_args__ = (
        # One budget per category and period for a user
        UniqueConstraint("user_id", "category", "month", "year", name="uq_user_category_period"),
        Index("idx_budgets_user_period", "user_id", "year", "month"),
    )

    budget_id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.db_id"), nullable=False)

    category: Mapped[TransactionCategory] = mapped_column(Enum(TransactionCategory), nullable=False)
    limit_amount: Mapped[Decimal] = mapped_column(DECIMAL(15, 2), nullable=False)
    spent: Mapped[Decimal] = mapped_column(DECIMAL(15, 2), default=Decimal("0.00"), nullable=False)
    month: Mapped[int] = mapped_column(Integer, nullable=False)
    year: Mapped[int] = mapped_column(Integer, nullable=False)

    # Audit Trail
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    user = relationship("UserDB", back_populates="budgets")


engine = create_engine(DATABASE_URL, echo=os.getenv("SQL_ECHO", "false").lower() == "true")
session_local = sessionmaker(autocommit=False, autoflush=False, bind=engine)


# Dependency to get the database session
def get_db():
    database = session_local()
    try:
        yield database
    finally:
        database.close()


@contextmanager
def unit_of_work(db, telemetry, context: str):
    """
    Commit everything flushed inside the block as one unit.

    A SQLAlchemy failure rolls the whole unit back, is reported to the telemetry
    sink and surfaces as StorageError. Business-rule errors roll back and propagate
    unchanged.
    """
    try:
        yield
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        telemetry.record_error(e, context)
        raise StorageError(context, e) from e
    except Exception:
        db.rollback()
        raise


@contextmanager
def storage_guard(telemetry, context: str):
    """Read-side counterpart of unit_of_work: report and wrap store failures."""
    try:
        yield
    except SQLAlchemyError as e:
        telemetry.record_error(e, context)
        raise StorageError(context, e) from e
