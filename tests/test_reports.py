from datetime import date, datetime
from decimal import Decimal

from conftest import expense, income, make_account
from pocket_ledger.crud.crud_account import deactivate_db_account
from pocket_ledger.db.core import TransactionCategory
from pocket_ledger.services.reports import ReportEngine


def test_expenses_by_category_sums_absolute_values_in_the_month(service, reports, user):
    service.create_transaction(user.db_id, expense("-120.50"))
    service.create_transaction(user.db_id, expense("-29.50"))
    service.create_transaction(user.db_id, expense("-45.00", TransactionCategory.TRANSPORT))
    service.create_transaction(user.db_id, income("5000.00"))
    # Boundaries of the October window
    service.create_transaction(user.db_id, expense("-1.00", when=datetime(2026, 10, 1, 0, 0)))
    service.create_transaction(user.db_id, expense("-999.00", when=datetime(2026, 11, 1, 0, 0)))
    service.create_transaction(user.db_id, expense("-999.00", when=datetime(2026, 9, 30, 23, 59)))

    totals = reports.expenses_by_category(user.db_id, 10, 2026)

    assert totals == {
        TransactionCategory.FOOD: Decimal("151.00"),
        TransactionCategory.TRANSPORT: Decimal("45.00"),
    }


def test_expenses_by_category_is_empty_for_a_quiet_month(reports, user):
    assert reports.expenses_by_category(user.db_id, 1, 2026) == {}


def test_income_vs_expenses_runs_oldest_to_newest(service, reports, user):
    service.create_transaction(user.db_id, income("5000.00", when=datetime(2026, 8, 5, 9, 0)))
    service.create_transaction(user.db_id, expense("-300.00", when=datetime(2026, 8, 20, 9, 0)))
    service.create_transaction(user.db_id, income("5200.00"))
    service.create_transaction(user.db_id, expense("-80.00"))

    months = reports.income_vs_expenses(user.db_id, 3)

    assert [m.month_label for m in months] == ["Aug 2026", "Sep 2026", "Oct 2026"]
    assert (months[0].income, months[0].expenses) == (Decimal("5000.00"), Decimal("300.00"))
    assert (months[1].income, months[1].expenses) == (Decimal("0.00"), Decimal("0.00"))
    assert (months[2].income, months[2].expenses) == (Decimal("5200.00"), Decimal("80.00"))


def test_income_vs_expenses_crosses_the_year_boundary(db, telemetry, user):
    reports = ReportEngine(db, telemetry, today=lambda: date(2026, 1, 15))

    labels = [m.month_label for m in reports.income_vs_expenses(user.db_id, 3)]

    assert labels == ["Nov 2025", "Dec 2025", "Jan 2026"]


def test_income_vs_expenses_with_no_months(reports, user):
    assert reports.income_vs_expenses(user.db_id, 0) == []
    assert reports.income_vs_expenses(user.db_id, -3) == []


def test_reports_are_idempotent(service, reports, user):
    service.create_transaction(user.db_id, expense("-10.00"))
    service.create_transaction(user.db_id, income("100.00"))

    assert reports.expenses_by_category(user.db_id, 10, 2026) == reports.expenses_by_category(user.db_id, 10, 2026)
    assert reports.income_vs_expenses(user.db_id, 6) == reports.income_vs_expenses(user.db_id, 6)


def test_reports_ignore_budget_spent(db, tracker, service, reports, user):
    budget = tracker.create_budget(user.db_id, TransactionCategory.FOOD, Decimal("100.00"))
    service.create_transaction(user.db_id, expense("-10.00"))
    budget.spent = Decimal("9999.00")
    db.commit()

    assert reports.expenses_by_category(user.db_id, 10, 2026)[TransactionCategory.FOOD] == Decimal("10.00")


def test_dashboard(db, service, reports, user, account):
    savings = make_account(db, user.db_id, name="Savings", opening_balance="500.00")
    closed = make_account(db, user.db_id, name="Old", opening_balance="123.00")
    deactivate_db_account(db, closed.id, user.db_id)
    service.create_transaction(user.db_id, income("4000.00", account_id=account.id))
    for day in range(1, 7):
        service.create_transaction(user.db_id, expense("-100.00", account_id=account.id,
                                                       when=datetime(2026, 10, day, 12, 0)))
    # Last month counts for the balance but not for the monthly figures
    service.create_transaction(user.db_id, expense("-50.00", account_id=savings.id,
                                                   when=datetime(2026, 9, 3, 12, 0)))

    dashboard = reports.dashboard(user.db_id)

    assert dashboard.total_balance == Decimal("4850.00")
    assert dashboard.monthly_income == Decimal("4000.00")
    assert dashboard.monthly_expenses == Decimal("600.00")
    assert dashboard.monthly_savings == Decimal("3400.00")
    assert dashboard.savings_rate == 85.0
    assert len(dashboard.recent_transactions) == 5
    assert dashboard.recent_transactions[0].transaction_date == datetime(2026, 10, 6, 12, 0)


def test_dashboard_savings_rate_without_income(reports, user):
    assert reports.dashboard(user.db_id).savings_rate == 0.0
