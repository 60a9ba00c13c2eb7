from decimal import Decimal

import pytest

from conftest import expense, income, make_account, make_user
from pocket_ledger.db.core import TransactionDB, NotFoundError, TransactionCategory
from pocket_ledger.crud.crud_account import deactivate_db_account


def test_balance_equals_opening_plus_transactions(db, ledger, service, user, account):
    service.create_transaction(user.db_id, income("2500.00", account_id=account.id))
    service.create_transaction(user.db_id, expense("-120.50", account_id=account.id))
    service.create_transaction(user.db_id, expense("-45.00", TransactionCategory.TRANSPORT, account_id=account.id))

    db.refresh(account)
    assert account.balance == Decimal("3334.50")
    assert ledger.expected_balance(account.id) == account.balance


def test_reverse_is_exact_inverse_of_apply(db, ledger, user, account):
    transaction = TransactionDB(account_id=account.id, amount=Decimal("-75.25"))

    ledger.apply_transaction(transaction)
    assert account.balance == Decimal("924.75")
    assert account.balance_last_updated is not None

    ledger.reverse_transaction(transaction)
    db.commit()
    db.refresh(account)
    assert account.balance == Decimal("1000.00")


def test_transaction_without_account_leaves_balances_alone(db, ledger, user, account):
    ledger.apply_transaction(TransactionDB(account_id=None, amount=Decimal("-10.00")))
    db.commit()

    db.refresh(account)
    assert account.balance == Decimal("1000.00")


def test_apply_to_unknown_account_raises(ledger):
    with pytest.raises(NotFoundError):
        ledger.apply_transaction(TransactionDB(account_id=999, amount=Decimal("1.00")))


def test_total_balance_counts_only_active_accounts(db, ledger, user, account):
    make_account(db, user.db_id, name="Savings", opening_balance="15000.00")
    credit = make_account(db, user.db_id, name="Credit", opening_balance="-800.00")
    assert ledger.total_balance(user.db_id) == Decimal("15200.00")

    deactivate_db_account(db, credit.id, user.db_id)
    assert ledger.total_balance(user.db_id) == Decimal("16000.00")


def test_total_balance_is_zero_without_accounts(ledger, user):
    assert ledger.total_balance(user.db_id) == Decimal("0.00")


def test_reconcile_repairs_a_drifted_balance(db, ledger, service, telemetry, user, account):
    service.create_transaction(user.db_id, expense("-50.00", account_id=account.id))
    account.balance = Decimal("12.34")
    db.commit()

    result = ledger.reconcile_account(account.id, user.db_id)

    assert result.adjusted
    assert result.previous_balance == Decimal("12.34")
    assert result.balance == Decimal("950.00")
    db.refresh(account)
    assert account.balance == Decimal("950.00")
    assert "account_reconciled" in telemetry.event_names()


def test_reconcile_is_a_no_op_when_consistent(ledger, telemetry, user, account):
    result = ledger.reconcile_account(account.id, user.db_id)

    assert not result.adjusted
    assert "account_reconciled" not in telemetry.event_names()


def test_reconcile_rejects_another_users_account(db, ledger, account):
    other = make_user(db, email="other@example.com")

    with pytest.raises(NotFoundError):
        ledger.reconcile_account(account.id, other.db_id)
