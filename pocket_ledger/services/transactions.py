"""
Transaction lifecycle

Creates, edits and deletes transactions. Each operation writes the row, moves the
account balance and moves the matching budget's spent total as one committed unit.
"""
import uuid
from datetime import datetime
from decimal import Decimal
from typing import Optional, Tuple

from sqlalchemy.orm import Session

from pocket_ledger.crud.crud_account import read_db_account
from pocket_ledger.crud.crud_transaction import read_db_transaction
from pocket_ledger.db.core import (
    TransactionDB,
    TransactionType,
    NotFoundError,
    InvalidAmountError,
    storage_guard,
    unit_of_work,
)
from pocket_ledger.logging_config import get_logger
from pocket_ledger.models.budget import BudgetAlert
from pocket_ledger.models.transaction import TransactionCreate, TransactionUpdate, MAX_TRANSACTION_AMOUNT
from pocket_ledger.services.budget_tracker import BudgetTracker
from pocket_ledger.services.ledger import LedgerAggregator
from pocket_ledger.services.telemetry import TelemetrySink

logger = get_logger(__name__)


def validate_amount(amount: Decimal, transaction_type: TransactionType) -> None:
    """Expenses are negative, income positive, never zero and within the maximum."""
    if amount == 0:
        raise InvalidAmountError("Amount must not be zero")
    if abs(amount) > MAX_TRANSACTION_AMOUNT:
        raise InvalidAmountError(f"Amount must not exceed {MAX_TRANSACTION_AMOUNT}")
    if transaction_type == TransactionType.EXPENSE and amount > 0:
        raise InvalidAmountError("Expense amounts must be negative")
    if transaction_type == TransactionType.INCOME and amount < 0:
        raise InvalidAmountError("Income amounts must be positive")


class TransactionService:

    def __init__(self, db: Session, ledger: LedgerAggregator, tracker: BudgetTracker, telemetry: TelemetrySink):
        self.db = db
        self.ledger = ledger
        self.tracker = tracker
        self.telemetry = telemetry

    def create_transaction(self, user_id: int,
                           transaction_data: TransactionCreate) -> Tuple[TransactionDB, Optional[BudgetAlert]]:
        validate_amount(transaction_data.amount, transaction_data.transaction_type)
        self._check_account(transaction_data.account_id, user_id)

        # Alert is computed against spent before this expense is recorded
        budget_alert = None
        if self._is_current_month_expense(transaction_data.transaction_type, transaction_data.transaction_date):
            budget_alert = self.tracker.check_threshold(user_id, transaction_data.category, transaction_data.amount)

        db_transaction = TransactionDB(
            id=uuid.uuid4(),
            user_id=user_id,
            account_id=transaction_data.account_id,
            transaction_date=transaction_data.transaction_date,
            amount=transaction_data.amount,
            transaction_type=transaction_data.transaction_type,
            category=transaction_data.category,
            description=transaction_data.description,
            created_at=datetime.utcnow(),
            updated_at=datetime.utcnow()
        )

        with unit_of_work(self.db, self.telemetry, "TransactionService.create_transaction"):
            self.db.add(db_transaction)
            self.db.flush()
            self._apply_effects(db_transaction)

        self.db.refresh(db_transaction)
        self.telemetry.record_event("transaction_created", {
            "type": db_transaction.transaction_type.value,
            "category": db_transaction.category.value,
            "amount": str(db_transaction.amount),
        })
        if budget_alert:
            logger.info(f"Budget alert for user {user_id}: {budget_alert.alert_type.value} {budget_alert.message}")

        return db_transaction, budget_alert

    def update_transaction(self, transaction_id: int, user_id: int,
                           transaction_updates: TransactionUpdate) -> TransactionDB:
        db_transaction = self._get_transaction(transaction_id, user_id)
        update_data = transaction_updates.model_dump(exclude_unset=True)
        # Only the account may be cleared; a null anywhere else means "unchanged"
        update_data = {k: v for k, v in update_data.items() if v is not None or k == "account_id"}

        new_amount = update_data.get("amount", db_transaction.amount)
        new_type = update_data.get("transaction_type", db_transaction.transaction_type)
        validate_amount(new_amount, new_type)
        if "account_id" in update_data and update_data["account_id"] != db_transaction.account_id:
            self._check_account(update_data["account_id"], user_id)

        with unit_of_work(self.db, self.telemetry, "TransactionService.update_transaction"):
            self._reverse_effects(db_transaction)
            for field, value in update_data.items():
                setattr(db_transaction, field, value)
            db_transaction.updated_at = datetime.utcnow()
            self.db.flush()
            self._apply_effects(db_transaction)

        self.db.refresh(db_transaction)
        self.telemetry.record_event("transaction_updated", {
            "transaction_id": transaction_id,
            "fields": sorted(update_data.keys()),
        })
        return db_transaction

    def delete_transaction(self, transaction_id: int, user_id: int) -> bool:
        db_transaction = self._get_transaction(transaction_id, user_id)
        category = db_transaction.category

        with unit_of_work(self.db, self.telemetry, "TransactionService.delete_transaction"):
            self._reverse_effects(db_transaction)
            self.db.delete(db_transaction)

        self.telemetry.record_event("transaction_deleted", {
            "transaction_id": transaction_id,
            "category": category.value,
        })
        return True

    # Balance first, then budget

    def _apply_effects(self, db_transaction: TransactionDB) -> None:
        self.ledger.apply_transaction(db_transaction)
        if db_transaction.transaction_type == TransactionType.EXPENSE:
            self.tracker.record_expense(
                db_transaction.user_id,
                db_transaction.category,
                db_transaction.amount,
                db_transaction.transaction_date.month,
                db_transaction.transaction_date.year,
            )

    def _reverse_effects(self, db_transaction: TransactionDB) -> None:
        self.ledger.reverse_transaction(db_transaction)
        if db_transaction.transaction_type == TransactionType.EXPENSE:
            self.tracker.reverse_expense(
                db_transaction.user_id,
                db_transaction.category,
                db_transaction.amount,
                db_transaction.transaction_date.month,
                db_transaction.transaction_date.year,
            )

    def _is_current_month_expense(self, transaction_type: TransactionType, transaction_date: datetime) -> bool:
        if transaction_type != TransactionType.EXPENSE:
            return False
        current = self.tracker.today()
        return transaction_date.month == current.month and transaction_date.year == current.year

    def _check_account(self, account_id: Optional[int], user_id: int) -> None:
        if account_id is None:
            return
        with storage_guard(self.telemetry, "TransactionService.read_account"):
            db_account = read_db_account(self.db, account_id, user_id, active_only=True)
        if not db_account:
            raise NotFoundError(f"Account with id {account_id} not found")

    def _get_transaction(self, transaction_id: int, user_id: int) -> TransactionDB:
        with storage_guard(self.telemetry, "TransactionService.read_transaction"):
            db_transaction = read_db_transaction(self.db, transaction_id, user_id)
        if not db_transaction:
            raise NotFoundError(f"Transaction with id {transaction_id} not found")
        return db_transaction
