from pydantic import BaseModel
from typing import List
from decimal import Decimal

from pocket_ledger.db.core import TransactionCategory
from pocket_ledger.models.transaction import TransactionResponse


class CategoryExpense(BaseModel):
    category: TransactionCategory
    display_name: str
    total: Decimal


class MonthlyIncomeExpense(BaseModel):
    month_label: str  # e.g. "Oct 2026"
    month: int
    year: int
    income: Decimal
    expenses: Decimal


class DashboardSummary(BaseModel):
    total_balance: Decimal
    monthly_income: Decimal
    monthly_expenses: Decimal
    monthly_savings: Decimal
    savings_rate: float
    recent_transactions: List[TransactionResponse]
