"""
Budget Tracker

Owns Budget.spent. Keeps one running total per (user, category, month, year),
moved incrementally by expense transactions, and raises threshold alerts.
"""
from datetime import date, datetime
from decimal import Decimal
from typing import Callable, Dict, List, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from pocket_ledger.crud.crud_budget import find_budget, read_db_budget, read_db_budgets
from pocket_ledger.crud.crud_transaction import read_transactions_in_range
from pocket_ledger.db.core import (
    BudgetDB,
    UserDB,
    TransactionCategory,
    TransactionType,
    NotFoundError,
    InvalidAmountError,
    BudgetAlreadyExistsError,
    StorageError,
    storage_guard,
    unit_of_work,
)
from pocket_ledger.logging_config import get_logger
from pocket_ledger.models.budget import BudgetAlert, BudgetAlertType, BudgetStatus, BudgetSummary, status_for
from pocket_ledger.services.periods import month_bounds
from pocket_ledger.services.telemetry import TelemetrySink

logger = get_logger(__name__)

WARNING_RATIO = Decimal("0.8")
ZERO = Decimal("0.00")


class BudgetTracker:

    def __init__(self, db: Session, telemetry: TelemetrySink, today: Callable[[], date] = date.today):
        self.db = db
        self.telemetry = telemetry
        self.today = today

    # ===== LIFECYCLE =====

    def create_budget(self, user_id: int, category: TransactionCategory, limit: Decimal,
                      month: Optional[int] = None, year: Optional[int] = None) -> BudgetDB:
        """Create a budget for a category and month; spent starts at zero."""
        if limit is None or limit <= 0:
            raise InvalidAmountError("Budget limit must be greater than zero")

        current = self.today()
        month = month if month is not None else current.month
        year = year if year is not None else current.year
        if not 1 <= month <= 12:
            raise ValueError(f"Invalid month: {month}")

        with storage_guard(self.telemetry, "BudgetTracker.create_budget"):
            if not self.db.query(UserDB).filter(UserDB.db_id == user_id).first():
                raise NotFoundError(f"User with id {user_id} not found")
            if find_budget(self.db, user_id, category, month, year):
                raise BudgetAlreadyExistsError(category)

        db_budget = BudgetDB(
            user_id=user_id,
            category=category,
            limit_amount=limit,
            spent=ZERO,
            month=month,
            year=year,
            created_at=datetime.utcnow(),
            updated_at=datetime.utcnow()
        )

        # The unique constraint on the key catches writers that raced past the check above
        try:
            self.db.add(db_budget)
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            raise BudgetAlreadyExistsError(category) from e
        except SQLAlchemyError as e:
            self.db.rollback()
            self.telemetry.record_error(e, "BudgetTracker.create_budget")
            raise StorageError("BudgetTracker.create_budget", e) from e

        self.db.refresh(db_budget)
        self.telemetry.record_event("budget_created", {
            "category": category.value,
            "limit": str(limit),
            "month": month,
            "year": year,
        })
        logger.info(f"Budget created: {category.display_name} {month:02d}/{year} limit {limit}")
        return db_budget

    def update_limit(self, budget_id: int, user_id: int, new_limit: Decimal) -> BudgetDB:
        if new_limit is None or new_limit <= 0:
            raise InvalidAmountError("Budget limit must be greater than zero")

        db_budget = self._get_budget(budget_id, user_id)
        with unit_of_work(self.db, self.telemetry, "BudgetTracker.update_limit"):
            db_budget.limit_amount = new_limit
            db_budget.updated_at = datetime.utcnow()

        self.db.refresh(db_budget)
        self.telemetry.record_event("budget_updated", {
            "budget_id": budget_id,
            "limit": str(new_limit),
            "spent": str(db_budget.spent),
        })
        return db_budget

    def delete_budget(self, budget_id: int, user_id: int) -> bool:
        db_budget = self._get_budget(budget_id, user_id)
        category = db_budget.category
        with unit_of_work(self.db, self.telemetry, "BudgetTracker.delete_budget"):
            self.db.delete(db_budget)

        self.telemetry.record_event("budget_deleted", {"budget_id": budget_id, "category": category.value})
        return True

    # ===== SPENT TRACKING =====
    # record/reverse only flush; they run inside the caller's unit of work.

    def record_expense(self, user_id: int, category: TransactionCategory, amount: Decimal,
                       month: int, year: int) -> Optional[BudgetDB]:
        """Add |amount| to the matching budget. Untracked categories are a no-op."""
        db_budget = find_budget(self.db, user_id, category, month, year)
        if not db_budget:
            return None

        was_over = db_budget.spent > db_budget.limit_amount
        db_budget.spent = db_budget.spent + abs(amount)
        db_budget.updated_at = datetime.utcnow()
        self.db.flush()

        if not was_over and db_budget.spent > db_budget.limit_amount:
            self.telemetry.record_event("budget_exceeded", {
                "category": category.value,
                "limit": str(db_budget.limit_amount),
                "spent": str(db_budget.spent),
                "excess": str(db_budget.spent - db_budget.limit_amount),
            })
        return db_budget

    def reverse_expense(self, user_id: int, category: TransactionCategory, amount: Decimal,
                        month: int, year: int) -> Optional[BudgetDB]:
        """Subtract |amount| from the matching budget; inverse of record_expense."""
        db_budget = find_budget(self.db, user_id, category, month, year)
        if not db_budget:
            return None

        # An expense recorded before the budget existed was never added to it
        remaining = db_budget.spent - abs(amount)
        if remaining < ZERO:
            logger.debug(f"Budget {db_budget.budget_id} spent clamped at 0 (would have been {remaining})")
        db_budget.spent = max(remaining, ZERO)
        db_budget.updated_at = datetime.utcnow()
        self.db.flush()
        return db_budget

    def recompute_spent(self, user_id: int, month: int, year: int) -> List[BudgetDB]:
        """
        Reconciliation utility: overwrite `spent` for every budget of the month with the
        sum of that month's expense transactions. Not used when transactions change.
        """
        start, end = month_bounds(year, month)
        with storage_guard(self.telemetry, "BudgetTracker.recompute_spent"):
            budgets = read_db_budgets(self.db, user_id, month=month, year=year, limit=None)
            transactions = read_transactions_in_range(self.db, user_id, start, end)

        totals: Dict[TransactionCategory, Decimal] = {}
        for transaction in transactions:
            if transaction.transaction_type == TransactionType.EXPENSE:
                totals[transaction.category] = totals.get(transaction.category, ZERO) + abs(transaction.amount)

        with unit_of_work(self.db, self.telemetry, "BudgetTracker.recompute_spent"):
            for db_budget in budgets:
                recomputed = totals.get(db_budget.category, ZERO)
                if db_budget.spent != recomputed:
                    logger.info(f"Budget {db_budget.budget_id} spent corrected from {db_budget.spent} to {recomputed}")
                    db_budget.spent = recomputed
                    db_budget.updated_at = datetime.utcnow()

        for db_budget in budgets:
            self.db.refresh(db_budget)
        return budgets

    # ===== ALERTS & SUMMARIES =====

    def check_threshold(self, user_id: int, category: TransactionCategory,
                        incoming_amount: Decimal) -> Optional[BudgetAlert]:
        """
        Project the current month's budget with one more expense and classify it.

        Order matters, first match wins: over the limit is EXCEEDED, exactly at the limit
        is DANGER, at least 80% is WARNING.
        """
        current = self.today()
        with storage_guard(self.telemetry, "BudgetTracker.check_threshold"):
            db_budget = find_budget(self.db, user_id, category, current.month, current.year)
        if not db_budget:
            return None

        limit = db_budget.limit_amount
        if limit <= 0:
            return None

        projected = db_budget.spent + abs(incoming_amount)
        remaining = limit - projected

        if projected > limit:
            alert_type = BudgetAlertType.EXCEEDED
            message = f"{category.display_name} budget exceeded!"
        elif projected == limit:
            alert_type = BudgetAlertType.DANGER
            message = f"{category.display_name} budget exhausted!"
        elif projected / limit >= WARNING_RATIO:
            alert_type = BudgetAlertType.WARNING
            message = f"Heads up: only {remaining:.2f} left in the {category.display_name} budget"
        else:
            return None

        return BudgetAlert(
            budget_id=db_budget.budget_id,
            category=category,
            alert_type=alert_type,
            projected_spent=projected,
            limit_amount=limit,
            remaining=remaining,
            message=message,
        )

    def summary(self, user_id: int, month: int, year: int) -> BudgetSummary:
        with storage_guard(self.telemetry, "BudgetTracker.summary"):
            budgets = read_db_budgets(self.db, user_id, month=month, year=year, limit=None)

        total_budgeted = sum((b.limit_amount for b in budgets), ZERO)
        total_spent = sum((b.spent for b in budgets), ZERO)
        over_budget_count = len([b for b in budgets if b.spent > b.limit_amount])

        if total_budgeted > 0:
            utilization_percentage = float(total_spent / total_budgeted * 100)
        else:
            utilization_percentage = 0.0

        return BudgetSummary(
            month=month,
            year=year,
            total_budgeted=total_budgeted,
            total_spent=total_spent,
            total_remaining=total_budgeted - total_spent,
            budget_count=len(budgets),
            over_budget_count=over_budget_count,
            utilization_percentage=utilization_percentage,
        )

    @staticmethod
    def budget_status(db_budget: BudgetDB) -> BudgetStatus:
        return status_for(db_budget.spent, db_budget.limit_amount)

    def _get_budget(self, budget_id: int, user_id: int) -> BudgetDB:
        with storage_guard(self.telemetry, "BudgetTracker.read_budget"):
            db_budget = read_db_budget(self.db, budget_id, user_id)
        if not db_budget:
            raise NotFoundError(f"Budget with id {budget_id} not found")
        return db_budget
