from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session
from typing import List, Optional
from decimal import Decimal

from pocket_ledger.crud.crud_budget import read_db_budget, read_db_budgets
from pocket_ledger.db.core import get_db, NotFoundError, TransactionCategory, BudgetAlreadyExistsError
from pocket_ledger.dependencies import get_current_user_id, get_budget_tracker
from pocket_ledger.models.budget import BudgetCreate, BudgetUpdate, BudgetResponse, BudgetSummary, BudgetAlert
from pocket_ledger.services.budget_tracker import BudgetTracker

router = APIRouter(
    prefix="/budgets",
    tags=["budgets"],
)


@router.post("/", response_model=BudgetResponse, status_code=status.HTTP_201_CREATED)
def create_budget(
    budget: BudgetCreate,
    tracker: BudgetTracker = Depends(get_budget_tracker),
    user_id: int = Depends(get_current_user_id)
):
    """
    Create a budget for a category and month (defaults to the current month).
    """
    try:
        db_budget = tracker.create_budget(user_id, budget.category, budget.limit_amount, budget.month, budget.year)
    except BudgetAlreadyExistsError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    return BudgetResponse.model_validate(db_budget)


@router.get("/", response_model=List[BudgetResponse])
def read_budgets(
    month: Optional[int] = Query(None, ge=1, le=12),
    year: Optional[int] = Query(None, ge=1000, le=9999),
    skip: int = 0,
    limit: int = 100,
    db: Session = Depends(get_db),
    user_id: int = Depends(get_current_user_id)
):
    budgets = read_db_budgets(db, user_id, month=month, year=year, skip=skip, limit=limit)
    return [BudgetResponse.model_validate(b) for b in budgets]


@router.get("/summary", response_model=BudgetSummary)
def read_budget_summary(
    month: Optional[int] = Query(None, ge=1, le=12),
    year: Optional[int] = Query(None, ge=1000, le=9999),
    tracker: BudgetTracker = Depends(get_budget_tracker),
    user_id: int = Depends(get_current_user_id)
):
    """
    Totals across the user's budgets for a month (defaults to the current month).
    """
    current = tracker.today()
    return tracker.summary(user_id, month or current.month, year or current.year)


@router.get("/check", response_model=Optional[BudgetAlert])
def check_budget_threshold(
    category: TransactionCategory,
    amount: Decimal,
    tracker: BudgetTracker = Depends(get_budget_tracker),
    user_id: int = Depends(get_current_user_id)
):
    """
    Preview the alert a new expense of `amount` in `category` would raise this month.
    """
    return tracker.check_threshold(user_id, category, amount)


@router.post("/recompute", response_model=List[BudgetResponse])
def recompute_budgets(
    month: Optional[int] = Query(None, ge=1, le=12),
    year: Optional[int] = Query(None, ge=1000, le=9999),
    tracker: BudgetTracker = Depends(get_budget_tracker),
    user_id: int = Depends(get_current_user_id)
):
    """
    Rebuild spent totals for a month from stored expense transactions.
    """
    current = tracker.today()
    budgets = tracker.recompute_spent(user_id, month or current.month, year or current.year)
    return [BudgetResponse.model_validate(b) for b in budgets]


@router.get("/{budget_id}", response_model=BudgetResponse)
def read_budget(
    budget_id: int,
    db: Session = Depends(get_db),
    user_id: int = Depends(get_current_user_id)
):
    db_budget = read_db_budget(db, budget_id, user_id)
    if not db_budget:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Budget not found")
    return BudgetResponse.model_validate(db_budget)


@router.patch("/{budget_id}", response_model=BudgetResponse)
def update_budget(
    budget_id: int,
    budget: BudgetUpdate,
    tracker: BudgetTracker = Depends(get_budget_tracker),
    user_id: int = Depends(get_current_user_id)
):
    try:
        db_budget = tracker.update_limit(budget_id, user_id, budget.limit_amount)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    return BudgetResponse.model_validate(db_budget)


@router.delete("/{budget_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_budget(
    budget_id: int,
    tracker: BudgetTracker = Depends(get_budget_tracker),
    user_id: int = Depends(get_current_user_id)
):
    try:
        tracker.delete_budget(budget_id, user_id)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
