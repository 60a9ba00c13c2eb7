from sqlalchemy.orm import Session
from sqlalchemy import desc
from typing import Optional, List

from pocket_ledger.db.core import BudgetDB, TransactionCategory


# ===== DATABASE OPERATIONS =====
# Creation and every change to `spent` go through BudgetTracker.

def read_db_budget(db: Session, budget_id: int, user_id: Optional[int] = None) -> Optional[BudgetDB]:
    """Read a budget by ID"""

    query = db.query(BudgetDB).filter(BudgetDB.budget_id == budget_id)

    if user_id:
        query = query.filter(BudgetDB.user_id == user_id)

    return query.first()


def read_db_budgets(db: Session, user_id: int, month: Optional[int] = None, year: Optional[int] = None,
                    skip: int = 0, limit: Optional[int] = 100) -> List[BudgetDB]:
    """Read budgets for a user, newest period first"""

    query = db.query(BudgetDB).filter(BudgetDB.user_id == user_id)

    if month is not None:
        query = query.filter(BudgetDB.month == month)
    if year is not None:
        query = query.filter(BudgetDB.year == year)

    query = query.order_by(desc(BudgetDB.year), desc(BudgetDB.month), BudgetDB.category)
    return query.offset(skip).limit(limit).all()


def find_budget(db: Session, user_id: int, category: TransactionCategory, month: int, year: int) -> Optional[BudgetDB]:
    """Find the budget for an exact (user, category, month, year) key"""
    return db.query(BudgetDB).filter(
        BudgetDB.user_id == user_id,
        BudgetDB.category == category,
        BudgetDB.month == month,
        BudgetDB.year == year
    ).first()
