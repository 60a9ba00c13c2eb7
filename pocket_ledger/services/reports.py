"""
Report Engine

Read-only aggregations computed from stored transactions. Budget.spent is never
consulted, so reports stay correct even if a running total drifts.
"""
from datetime import date
from decimal import Decimal
from typing import Callable, Dict, List

from sqlalchemy.orm import Session

from pocket_ledger.crud.crud_account import read_db_accounts
from pocket_ledger.crud.crud_transaction import read_db_transactions, read_transactions_in_range
from pocket_ledger.db.core import TransactionCategory, TransactionType, storage_guard
from pocket_ledger.logging_config import get_logger
from pocket_ledger.models.report import DashboardSummary, MonthlyIncomeExpense
from pocket_ledger.models.transaction import TransactionResponse
from pocket_ledger.services.periods import month_bounds, month_label, shift_month
from pocket_ledger.services.telemetry import TelemetrySink

logger = get_logger(__name__)

ZERO = Decimal("0.00")
RECENT_TRANSACTIONS = 5


class ReportEngine:

    def __init__(self, db: Session, telemetry: TelemetrySink, today: Callable[[], date] = date.today):
        self.db = db
        self.telemetry = telemetry
        self.today = today

    def expenses_by_category(self, user_id: int, month: int, year: int) -> Dict[TransactionCategory, Decimal]:
        """Absolute expense totals per category for one calendar month"""
        start, end = month_bounds(year, month)
        with storage_guard(self.telemetry, "ReportEngine.expenses_by_category"):
            transactions = read_transactions_in_range(self.db, user_id, start, end)

        totals: Dict[TransactionCategory, Decimal] = {}
        for transaction in transactions:
            if transaction.transaction_type != TransactionType.EXPENSE:
                continue
            totals[transaction.category] = totals.get(transaction.category, ZERO) + abs(transaction.amount)
        return totals

    def income_vs_expenses(self, user_id: int, months_back: int) -> List[MonthlyIncomeExpense]:
        """
        Income and expense totals for the last `months_back` calendar months, the
        current one included, oldest first.
        """
        if months_back <= 0:
            return []

        current = self.today()
        results = []
        with storage_guard(self.telemetry, "ReportEngine.income_vs_expenses"):
            for i in range(months_back):
                year, month = shift_month(current.year, current.month, -i)
                income, expenses = self._month_totals(user_id, year, month)
                results.append(MonthlyIncomeExpense(
                    month_label=month_label(year, month),
                    month=month,
                    year=year,
                    income=income,
                    expenses=expenses,
                ))

        results.reverse()
        return results

    def dashboard(self, user_id: int) -> DashboardSummary:
        current = self.today()
        with storage_guard(self.telemetry, "ReportEngine.dashboard"):
            accounts = read_db_accounts(self.db, user_id, limit=None)
            income, expenses = self._month_totals(user_id, current.year, current.month)
            recent = read_db_transactions(self.db, user_id, limit=RECENT_TRANSACTIONS)

        savings = income - expenses
        savings_rate = float(savings / income * 100) if income > 0 else 0.0

        return DashboardSummary(
            total_balance=sum((account.balance for account in accounts), ZERO),
            monthly_income=income,
            monthly_expenses=expenses,
            monthly_savings=savings,
            savings_rate=savings_rate,
            recent_transactions=[TransactionResponse.model_validate(t) for t in recent],
        )

    def _month_totals(self, user_id: int, year: int, month: int):
        start, end = month_bounds(year, month)
        income = ZERO
        expenses = ZERO
        for transaction in read_transactions_in_range(self.db, user_id, start, end):
            if transaction.transaction_type == TransactionType.INCOME:
                income += transaction.amount
            else:
                expenses += abs(transaction.amount)
        return income, expenses
