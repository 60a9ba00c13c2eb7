from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError
from typing import Optional, List
from datetime import datetime
from decimal import Decimal

from pocket_ledger.db.core import AccountDB, UserDB, TransactionDB, NotFoundError, AccountType, AccountHasTransactionsError
from pocket_ledger.models.account import AccountCreate, AccountUpdate, AccountStats


# ===== DATABASE OPERATIONS =====

def create_db_account(db: Session, user_id: int, account_data: AccountCreate) -> AccountDB:
    """Create a new account for a user with an explicit opening balance"""

    user = db.query(UserDB).filter(UserDB.db_id == user_id).first()
    if not user:
        raise NotFoundError(f"User with id {user_id} not found")

    existing_account = get_account_by_name(db, user_id, account_data.account_name)
    if existing_account:
        raise ValueError(f"Account name '{account_data.account_name}' already exists")

    db_account = AccountDB(
        user_id=user_id,
        account_name=account_data.account_name,
        account_type=account_data.account_type,
        opening_balance=account_data.opening_balance,
        balance=account_data.opening_balance,
        balance_last_updated=datetime.utcnow(),
        is_active=True,
        created_at=datetime.utcnow(),
        updated_at=datetime.utcnow()
    )

    try:
        db.add(db_account)
        db.commit()
        db.refresh(db_account)
        return db_account
    except IntegrityError:
        db.rollback()
        raise ValueError("Account creation failed due to database constraint")


def read_db_account(db: Session, account_id: int, user_id: Optional[int] = None,
                    active_only: bool = False) -> Optional[AccountDB]:
    """Read an account by ID, optionally filtering by user and active flag"""

    query = db.query(AccountDB).filter(AccountDB.id == account_id)

    if user_id:
        query = query.filter(AccountDB.user_id == user_id)
    if active_only:
        query = query.filter(AccountDB.is_active.is_(True))

    return query.first()


def read_db_accounts(db: Session, user_id: int, account_type: Optional[AccountType] = None,
                     include_inactive: bool = False, skip: int = 0, limit: Optional[int] = 100) -> List[AccountDB]:
    """Read accounts for a user, ordered by name"""

    query = db.query(AccountDB).filter(AccountDB.user_id == user_id)

    if not include_inactive:
        query = query.filter(AccountDB.is_active.is_(True))
    if account_type:
        query = query.filter(AccountDB.account_type == account_type)

    return query.order_by(AccountDB.account_name).offset(skip).limit(limit).all()


def update_db_account(db: Session, account_id: int, user_id: int, account_updates: AccountUpdate) -> AccountDB:
    """Rename or retype an account"""

    db_account = read_db_account(db, account_id, user_id)
    if not db_account:
        raise NotFoundError(f"Account with id {account_id} not found")

    if account_updates.account_name and account_updates.account_name != db_account.account_name:
        existing_name = get_account_by_name(db, user_id, account_updates.account_name)
        if existing_name:
            raise ValueError(f"Account name '{account_updates.account_name}' already exists")

    update_data = account_updates.model_dump(exclude_unset=True, exclude_none=True)
    for field, value in update_data.items():
        setattr(db_account, field, value)

    db_account.updated_at = datetime.utcnow()

    try:
        db.commit()
        db.refresh(db_account)
        return db_account
    except IntegrityError:
        db.rollback()
        raise ValueError("Account update failed due to database constraint")


def deactivate_db_account(db: Session, account_id: int, user_id: int) -> AccountDB:
    """Soft delete: the account keeps its balance and transactions but stops counting"""

    db_account = read_db_account(db, account_id, user_id)
    if not db_account:
        raise NotFoundError(f"Account with id {account_id} not found")

    db_account.is_active = False
    db_account.updated_at = datetime.utcnow()
    db.commit()
    db.refresh(db_account)
    return db_account


def delete_db_account(db: Session, account_id: int, user_id: int) -> bool:
    """Delete an account (only if it has no transactions)"""

    db_account = read_db_account(db, account_id, user_id)
    if not db_account:
        raise NotFoundError(f"Account with id {account_id} not found")

    if count_account_transactions(db, account_id) > 0:
        raise AccountHasTransactionsError(account_id)

    db.delete(db_account)
    db.commit()
    return True


def count_account_transactions(db: Session, account_id: int) -> int:
    return db.query(TransactionDB).filter(TransactionDB.account_id == account_id).count()


def get_account_stats(db: Session, user_id: int) -> AccountStats:
    """Get account statistics for a user's active accounts"""

    accounts = read_db_accounts(db, user_id, limit=None)

    accounts_by_type = {}
    total_assets = Decimal('0.00')
    total_liabilities = Decimal('0.00')

    for account in accounts:
        account_type = account.account_type.value
        accounts_by_type[account_type] = accounts_by_type.get(account_type, 0) + 1

        if account.account_type == AccountType.CREDIT:
            # Credit balances are typically negative (what you owe)
            total_liabilities += abs(account.balance)
        else:
            total_assets += account.balance

    return AccountStats(
        total_accounts=len(accounts),
        accounts_by_type=accounts_by_type,
        total_assets=total_assets,
        total_liabilities=total_liabilities,
        net_worth=total_assets - total_liabilities
    )


def get_account_by_name(db: Session, user_id: int, account_name: str) -> Optional[AccountDB]:
    """Get account by name for a specific user"""
    return db.query(AccountDB).filter(
        AccountDB.user_id == user_id,
        AccountDB.account_name == account_name
    ).first()
