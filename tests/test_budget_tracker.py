from datetime import datetime
from decimal import Decimal

import pytest
from sqlalchemy.exc import OperationalError

from conftest import expense
from pocket_ledger.db.core import (
    BudgetDB,
    TransactionCategory,
    NotFoundError,
    InvalidAmountError,
    BudgetAlreadyExistsError,
    StorageError,
)
from pocket_ledger.models.budget import BudgetAlertType, BudgetStatus
from pocket_ledger.services import budget_tracker as budget_tracker_module

FOOD = TransactionCategory.FOOD
TRANSPORT = TransactionCategory.TRANSPORT


def test_create_defaults_to_current_month(tracker, telemetry, user):
    budget = tracker.create_budget(user.db_id, FOOD, Decimal("800.00"))

    assert (budget.month, budget.year) == (10, 2026)
    assert budget.spent == Decimal("0.00")
    assert tracker.budget_status(budget) == BudgetStatus.CREATED
    assert telemetry.event_names() == ["budget_created"]


def test_create_rejects_non_positive_limit(tracker, user):
    with pytest.raises(InvalidAmountError):
        tracker.create_budget(user.db_id, FOOD, Decimal("0.00"))
    with pytest.raises(InvalidAmountError):
        tracker.create_budget(user.db_id, FOOD, Decimal("-5.00"))


def test_create_for_unknown_user_raises(tracker):
    with pytest.raises(NotFoundError):
        tracker.create_budget(999, FOOD, Decimal("100.00"))


def test_duplicate_budget_is_rejected(db, tracker, user):
    tracker.create_budget(user.db_id, FOOD, Decimal("800.00"), month=10, year=2026)

    with pytest.raises(BudgetAlreadyExistsError) as exc_info:
        tracker.create_budget(user.db_id, FOOD, Decimal("500.00"), month=10, year=2026)

    assert exc_info.value.category == FOOD
    assert db.query(BudgetDB).count() == 1


def test_same_category_in_another_month_is_allowed(db, tracker, user):
    tracker.create_budget(user.db_id, FOOD, Decimal("800.00"), month=10, year=2026)
    tracker.create_budget(user.db_id, FOOD, Decimal("800.00"), month=11, year=2026)

    assert db.query(BudgetDB).count() == 2


def test_unique_constraint_catches_a_writer_that_skipped_the_check(db, tracker, telemetry, user, monkeypatch):
    tracker.create_budget(user.db_id, FOOD, Decimal("800.00"))
    monkeypatch.setattr(budget_tracker_module, "find_budget", lambda *args: None)

    with pytest.raises(BudgetAlreadyExistsError):
        tracker.create_budget(user.db_id, FOOD, Decimal("500.00"))

    assert db.query(BudgetDB).count() == 1
    assert telemetry.errors == []


def test_record_and_reverse_expense_are_symmetric(db, tracker, user):
    budget = tracker.create_budget(user.db_id, FOOD, Decimal("200.00"))

    tracker.record_expense(user.db_id, FOOD, Decimal("-50.00"), 10, 2026)
    assert budget.spent == Decimal("50.00")
    assert tracker.budget_status(budget) == BudgetStatus.ACCUMULATING

    tracker.reverse_expense(user.db_id, FOOD, Decimal("-50.00"), 10, 2026)
    db.commit()
    db.refresh(budget)
    assert budget.spent == Decimal("0.00")


def test_deleting_an_expense_older_than_its_budget_keeps_spent_at_zero(db, tracker, service, user):
    transaction, _ = service.create_transaction(user.db_id, expense("-50.00"))
    budget = tracker.create_budget(user.db_id, FOOD, Decimal("200.00"))

    service.delete_transaction(transaction.db_id, user.db_id)
    db.refresh(budget)

    assert budget.spent == Decimal("0.00")
    summary = tracker.summary(user.db_id, 10, 2026)
    assert summary.total_spent == Decimal("0.00")
    assert summary.total_remaining == Decimal("200.00")
    assert summary.utilization_percentage == 0.0


def test_record_expense_without_budget_is_a_no_op(tracker, user):
    assert tracker.record_expense(user.db_id, TRANSPORT, Decimal("-10.00"), 10, 2026) is None


def test_crossing_the_limit_emits_budget_exceeded_once(tracker, telemetry, user):
    tracker.create_budget(user.db_id, FOOD, Decimal("100.00"))

    tracker.record_expense(user.db_id, FOOD, Decimal("-90.00"), 10, 2026)
    tracker.record_expense(user.db_id, FOOD, Decimal("-20.00"), 10, 2026)
    tracker.record_expense(user.db_id, FOOD, Decimal("-5.00"), 10, 2026)

    assert telemetry.event_names().count("budget_exceeded") == 1


@pytest.mark.parametrize("incoming, expected", [
    ("-80.00", BudgetAlertType.WARNING),
    ("-100.00", BudgetAlertType.DANGER),
    ("-100.01", BudgetAlertType.EXCEEDED),
    ("-79.99", None),
])
def test_threshold_tie_break(tracker, user, incoming, expected):
    tracker.create_budget(user.db_id, FOOD, Decimal("100.00"))

    alert = tracker.check_threshold(user.db_id, FOOD, Decimal(incoming))

    if expected is None:
        assert alert is None
    else:
        assert alert.alert_type == expected
        assert alert.projected_spent == abs(Decimal(incoming))
        assert alert.remaining == Decimal("100.00") - abs(Decimal(incoming))


def test_threshold_just_past_eighty_percent_is_a_warning(tracker, user):
    tracker.create_budget(user.db_id, TRANSPORT, Decimal("300.00"))
    tracker.record_expense(user.db_id, TRANSPORT, Decimal("-240.00"), 10, 2026)

    alert = tracker.check_threshold(user.db_id, TRANSPORT, Decimal("-0.01"))

    assert alert.alert_type == BudgetAlertType.WARNING
    assert alert.projected_spent == Decimal("240.01")


def test_threshold_only_looks_at_the_current_month(tracker, user):
    tracker.create_budget(user.db_id, FOOD, Decimal("100.00"), month=9, year=2026)

    assert tracker.check_threshold(user.db_id, FOOD, Decimal("-500.00")) is None


def test_threshold_with_zero_limit_returns_no_alert(db, tracker, user):
    budget = tracker.create_budget(user.db_id, FOOD, Decimal("100.00"))
    budget.limit_amount = Decimal("0.00")
    db.commit()

    assert tracker.check_threshold(user.db_id, FOOD, Decimal("-10.00")) is None


def test_summary_totals_the_month(tracker, user):
    tracker.create_budget(user.db_id, FOOD, Decimal("800.00"))
    tracker.create_budget(user.db_id, TRANSPORT, Decimal("100.00"))
    tracker.create_budget(user.db_id, FOOD, Decimal("999.00"), month=9, year=2026)
    tracker.record_expense(user.db_id, FOOD, Decimal("-200.00"), 10, 2026)
    tracker.record_expense(user.db_id, TRANSPORT, Decimal("-250.00"), 10, 2026)

    summary = tracker.summary(user.db_id, 10, 2026)

    assert summary.budget_count == 2
    assert summary.total_budgeted == Decimal("900.00")
    assert summary.total_spent == Decimal("450.00")
    assert summary.total_remaining == Decimal("450.00")
    assert summary.over_budget_count == 1
    assert summary.utilization_percentage == pytest.approx(50.0)


def test_summary_with_no_budgets(tracker, user):
    summary = tracker.summary(user.db_id, 10, 2026)

    assert summary.budget_count == 0
    assert summary.utilization_percentage == 0.0


def test_update_limit_and_delete(db, tracker, telemetry, user):
    budget = tracker.create_budget(user.db_id, FOOD, Decimal("100.00"))

    updated = tracker.update_limit(budget.budget_id, user.db_id, Decimal("250.00"))
    assert updated.limit_amount == Decimal("250.00")

    with pytest.raises(InvalidAmountError):
        tracker.update_limit(budget.budget_id, user.db_id, Decimal("0"))

    assert tracker.delete_budget(budget.budget_id, user.db_id)
    assert db.query(BudgetDB).count() == 0
    assert telemetry.event_names() == ["budget_created", "budget_updated", "budget_deleted"]

    with pytest.raises(NotFoundError):
        tracker.delete_budget(budget.budget_id, user.db_id)


def test_recompute_spent_rebuilds_from_transactions(db, tracker, service, user):
    budget = tracker.create_budget(user.db_id, FOOD, Decimal("500.00"))
    service.create_transaction(user.db_id, expense("-40.00"))
    service.create_transaction(user.db_id, expense("-60.00"))
    # Outside the month window
    service.create_transaction(user.db_id, expense("-999.00", when=datetime(2026, 11, 1, 0, 0)))

    budget.spent = Decimal("7.00")
    db.commit()

    budgets = tracker.recompute_spent(user.db_id, 10, 2026)

    assert [b.budget_id for b in budgets] == [budget.budget_id]
    assert budgets[0].spent == Decimal("100.00")


def test_storage_failure_is_reported_and_wrapped(db, tracker, telemetry, user, monkeypatch):
    def failing_commit():
        raise OperationalError("COMMIT", {}, Exception("disk I/O error"))

    monkeypatch.setattr(db, "commit", failing_commit)

    with pytest.raises(StorageError):
        tracker.create_budget(user.db_id, FOOD, Decimal("100.00"))

    assert len(telemetry.errors) == 1
    assert telemetry.errors[0][1] == "BudgetTracker.create_budget"
