import sys
import os
import argparse
import random
from sqlalchemy.orm import Session
from datetime import date, datetime, timedelta
from decimal import Decimal
from faker import Faker

# Add the project root to the Python path
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from pocket_ledger.db.core import (
    Base,
    engine,
    session_local,
    UserDB,
    AccountDB,
    TransactionDB,
    BudgetDB,
    AccountType,
    TransactionType,
    TransactionCategory,
)
from pocket_ledger.crud.crud_account import create_db_account
from pocket_ledger.logging_config import setup_logging
from pocket_ledger.models.account import AccountCreate
from pocket_ledger.models.transaction import TransactionCreate
from pocket_ledger.models.user import UserCreate
from pocket_ledger.services.budget_tracker import BudgetTracker
from pocket_ledger.services.identity import LocalIdentityGateway
from pocket_ledger.services.ledger import LedgerAggregator
from pocket_ledger.services.periods import shift_month
from pocket_ledger.services.telemetry import LoggingTelemetrySink
from pocket_ledger.services.transactions import TransactionService

fake = Faker()

DEMO_EMAIL = "demo@example.com"
DEMO_PASSWORD = "DemoPass123"

EXPENSE_CATEGORIES = [
    (TransactionCategory.FOOD, (15, 180)),
    (TransactionCategory.TRANSPORT, (8, 60)),
    (TransactionCategory.ENTERTAINMENT, (20, 120)),
    (TransactionCategory.HEALTHCARE, (30, 250)),
    (TransactionCategory.SHOPPING, (25, 300)),
    (TransactionCategory.BILLS, (60, 400)),
]


def clear_database(db: Session):
    """Delete every row, children before parents."""
    db.query(TransactionDB).delete()
    db.query(BudgetDB).delete()
    db.query(AccountDB).delete()
    db.query(UserDB).delete()
    db.commit()
    print("All data cleared.")


def seed_database(history_months: int = 5, clear: bool = False):
    """
    Creates a demo user with four accounts, current-month budgets, the recent
    transactions behind them, and a few months of generated history for reports.
    """
    Base.metadata.create_all(bind=engine)
    db: Session = session_local()
    telemetry = LoggingTelemetrySink()

    try:
        if clear:
            clear_database(db)

        # Check if data exists to prevent duplicate seeding
        if db.query(UserDB).count() > 0:
            print("Database appears to be already seeded. Exiting.")
            return

        print("Seeding database with demo data...")

        # 1. Create the demo user
        identity = LocalIdentityGateway(telemetry)
        user = identity.sign_up(db, UserCreate(
            email=DEMO_EMAIL,
            name="Demo User",
            password=DEMO_PASSWORD,
            confirm_password=DEMO_PASSWORD,
            preferred_currency="BRL",
        ))
        print(f"Created user {user.email} (password: {DEMO_PASSWORD})")

        # 2. Create accounts with their opening balances
        print("Creating accounts...")
        accounts = {}
        for name, account_type, opening_balance in [
            ("Main Checking", AccountType.CHECKING, Decimal("2500.00")),
            ("Savings", AccountType.SAVINGS, Decimal("15000.00")),
            ("Credit Card", AccountType.CREDIT, Decimal("-800.00")),
            ("Investments", AccountType.INVESTMENT, Decimal("25000.00")),
        ]:
            accounts[account_type] = create_db_account(db, user.db_id, AccountCreate(
                account_name=name, account_type=account_type, opening_balance=opening_balance
            ))

        # 3. Budgets for the current month; spent is filled in by the transactions below
        print("Creating budgets...")
        tracker = BudgetTracker(db, telemetry)
        for category, limit in [
            (TransactionCategory.FOOD, Decimal("800.00")),
            (TransactionCategory.TRANSPORT, Decimal("300.00")),
            (TransactionCategory.ENTERTAINMENT, Decimal("200.00")),
            (TransactionCategory.SHOPPING, Decimal("400.00")),
        ]:
            tracker.create_budget(user.db_id, category, limit)

        service = TransactionService(db, LedgerAggregator(db, telemetry), tracker, telemetry)
        checking = accounts[AccountType.CHECKING]
        credit = accounts[AccountType.CREDIT]

        # 4. Recent transactions
        print("Creating recent transactions...")
        now = datetime.utcnow()
        recent = [
            (Decimal("5000.00"), "Salary", 5, TransactionCategory.SALARY, TransactionType.INCOME, checking),
            (Decimal("-120.50"), "Grocery store", 3, TransactionCategory.FOOD, TransactionType.EXPENSE, checking),
            (Decimal("-45.00"), "Uber", 2, TransactionCategory.TRANSPORT, TransactionType.EXPENSE, credit),
            (Decimal("-80.00"), "Cinema", 1, TransactionCategory.ENTERTAINMENT, TransactionType.EXPENSE, credit),
        ]
        for amount, description, days_ago, category, transaction_type, account in recent:
            service.create_transaction(user.db_id, TransactionCreate(
                account_id=account.id,
                transaction_date=now - timedelta(days=days_ago),
                amount=amount,
                transaction_type=transaction_type,
                category=category,
                description=description,
            ))

        # 5. Generated history for the months before this one
        print(f"Creating {history_months} months of history...")
        today = date.today()
        for offset in range(1, history_months + 1):
            year, month = shift_month(today.year, today.month, -offset)
            service.create_transaction(user.db_id, TransactionCreate(
                account_id=checking.id,
                transaction_date=datetime(year, month, 5, 9, 0),
                amount=Decimal("5000.00"),
                transaction_type=TransactionType.INCOME,
                category=TransactionCategory.SALARY,
                description="Salary",
            ))
            for _ in range(random.randint(8, 15)):
                category, (low, high) = random.choice(EXPENSE_CATEGORIES)
                amount = Decimal(str(round(random.uniform(low, high), 2)))
                service.create_transaction(user.db_id, TransactionCreate(
                    account_id=random.choice([checking.id, credit.id]),
                    transaction_date=datetime(year, month, random.randint(1, 28), random.randint(8, 21), 0),
                    amount=-amount,
                    transaction_type=TransactionType.EXPENSE,
                    category=category,
                    description=fake.company(),
                ))

        print("Database seeded successfully!")

    except Exception as e:
        print(f"An error occurred: {e}")
        db.rollback()
        raise
    finally:
        db.close()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Seed the database with demo data")
    parser.add_argument("--months", type=int, default=5, help="Months of generated history before the current one")
    parser.add_argument("--clear", action="store_true", help="Delete all existing data first")
    args = parser.parse_args()

    setup_logging()
    seed_database(history_months=args.months, clear=args.clear)
