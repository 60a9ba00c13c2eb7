"""
Ledger Aggregator

Owns Account.balance. Every balance change comes from applying or reversing a
transaction; apply/reverse only flush, the caller's unit of work commits.
"""
from datetime import datetime
from decimal import Decimal

from sqlalchemy.orm import Session

from pocket_ledger.crud.crud_account import read_db_account, read_db_accounts
from pocket_ledger.crud.crud_transaction import read_account_transactions
from pocket_ledger.db.core import AccountDB, TransactionDB, NotFoundError, storage_guard, unit_of_work
from pocket_ledger.logging_config import get_logger
from pocket_ledger.models.account import AccountReconciliation
from pocket_ledger.services.telemetry import TelemetrySink

logger = get_logger(__name__)


class LedgerAggregator:

    def __init__(self, db: Session, telemetry: TelemetrySink):
        self.db = db
        self.telemetry = telemetry

    def apply_transaction(self, transaction: TransactionDB) -> None:
        """Add the transaction's signed amount to its account. No account, no effect."""
        self._adjust(transaction, transaction.amount)

    def reverse_transaction(self, transaction: TransactionDB) -> None:
        """Exact inverse of apply_transaction."""
        self._adjust(transaction, -transaction.amount)

    def _adjust(self, transaction: TransactionDB, delta: Decimal) -> None:
        if transaction.account_id is None:
            return

        account = self._get_account(transaction.account_id)
        account.balance = account.balance + delta
        account.balance_last_updated = datetime.utcnow()
        self.db.flush()
        logger.debug(f"Account {account.id} balance adjusted by {delta} to {account.balance}")

    def total_balance(self, user_id: int) -> Decimal:
        """Sum of balances over the user's active accounts"""
        with storage_guard(self.telemetry, "LedgerAggregator.total_balance"):
            accounts = read_db_accounts(self.db, user_id, limit=None)
        return sum((account.balance for account in accounts), Decimal("0.00"))

    def expected_balance(self, account_id: int) -> Decimal:
        """Opening balance plus every stored transaction of the account"""
        with storage_guard(self.telemetry, "LedgerAggregator.expected_balance"):
            account = self._get_account(account_id)
            transactions = read_account_transactions(self.db, account_id)
        return account.opening_balance + sum((t.amount for t in transactions), Decimal("0.00"))

    def reconcile_account(self, account_id: int, user_id: int) -> AccountReconciliation:
        """Repair a drifted balance by recomputing it from transaction history"""
        with storage_guard(self.telemetry, "LedgerAggregator.reconcile_account"):
            db_account = read_db_account(self.db, account_id, user_id)
        if not db_account:
            raise NotFoundError(f"Account with id {account_id} not found")

        expected = self.expected_balance(account_id)
        with unit_of_work(self.db, self.telemetry, "LedgerAggregator.reconcile_account"):
            account = self._get_account(account_id)
            previous = account.balance
            adjusted = previous != expected
            if adjusted:
                account.balance = expected
                account.balance_last_updated = datetime.utcnow()

        if adjusted:
            logger.warning(f"Account {account_id} balance reconciled from {previous} to {expected}")
            self.telemetry.record_event("account_reconciled", {
                "account_id": account_id,
                "previous_balance": str(previous),
                "balance": str(expected),
            })

        return AccountReconciliation(
            account_id=account_id,
            previous_balance=previous,
            balance=expected,
            adjusted=adjusted,
        )

    def _get_account(self, account_id: int) -> AccountDB:
        account = read_db_account(self.db, account_id)
        if not account:
            raise NotFoundError(f"Account with id {account_id} not found")
        return account
