from fastapi import APIRouter, Depends, Query
from typing import List, Optional

from pocket_ledger.dependencies import get_current_user_id, get_report_engine
from pocket_ledger.models.report import CategoryExpense, MonthlyIncomeExpense, DashboardSummary
from pocket_ledger.services.reports import ReportEngine

router = APIRouter(
    prefix="/reports",
    tags=["reports"],
)


@router.get("/expenses-by-category", response_model=List[CategoryExpense])
def read_expenses_by_category(
    month: Optional[int] = Query(None, ge=1, le=12),
    year: Optional[int] = Query(None, ge=1000, le=9999),
    reports: ReportEngine = Depends(get_report_engine),
    user_id: int = Depends(get_current_user_id)
):
    """
    Expense totals per category for a month, largest first.
    """
    current = reports.today()
    totals = reports.expenses_by_category(user_id, month or current.month, year or current.year)
    rows = [
        CategoryExpense(category=category, display_name=category.display_name, total=total)
        for category, total in totals.items()
    ]
    return sorted(rows, key=lambda row: row.total, reverse=True)


@router.get("/income-vs-expenses", response_model=List[MonthlyIncomeExpense])
def read_income_vs_expenses(
    months_back: int = 6,
    reports: ReportEngine = Depends(get_report_engine),
    user_id: int = Depends(get_current_user_id)
):
    return reports.income_vs_expenses(user_id, months_back)


@router.get("/dashboard", response_model=DashboardSummary)
def read_dashboard(
    reports: ReportEngine = Depends(get_report_engine),
    user_id: int = Depends(get_current_user_id)
):
    return reports.dashboard(user_id)
