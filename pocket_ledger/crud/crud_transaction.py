from sqlalchemy.orm import Session
from sqlalchemy import desc, asc
from typing import Optional, List
from datetime import datetime

from pocket_ledger.db.core import TransactionDB
from pocket_ledger.models.transaction import TransactionFilter


# ===== DATABASE OPERATIONS =====
# Writes go through TransactionService so balance and budget effects commit together.

def read_db_transaction(db: Session, transaction_id: int, user_id: Optional[int] = None) -> Optional[TransactionDB]:
    """Read a transaction by ID"""

    query = db.query(TransactionDB).filter(TransactionDB.db_id == transaction_id)

    if user_id:
        query = query.filter(TransactionDB.user_id == user_id)

    return query.first()


def read_db_transactions(db: Session, user_id: int, filters: Optional[TransactionFilter] = None,
                         skip: int = 0, limit: Optional[int] = 100, order_by: str = "transaction_date",
                         order_desc: bool = True) -> List[TransactionDB]:
    """Read transactions with filtering and pagination"""

    query = db.query(TransactionDB).filter(TransactionDB.user_id == user_id)

    if filters:
        if filters.account_id:
            query = query.filter(TransactionDB.account_id == filters.account_id)

        if filters.transaction_type:
            query = query.filter(TransactionDB.transaction_type == filters.transaction_type)

        if filters.category:
            query = query.filter(TransactionDB.category == filters.category)

        if filters.date_from:
            query = query.filter(TransactionDB.transaction_date >= filters.date_from)

        # Exclusive upper bound so month windows never overlap
        if filters.date_to:
            query = query.filter(TransactionDB.transaction_date < filters.date_to)

    if order_by in TransactionDB.__table__.columns:
        order_column = TransactionDB.__table__.columns[order_by]
    else:
        order_column = TransactionDB.transaction_date

    if order_desc:
        query = query.order_by(desc(order_column), desc(TransactionDB.db_id))
    else:
        query = query.order_by(asc(order_column), asc(TransactionDB.db_id))

    return query.offset(skip).limit(limit).all()


def read_transactions_in_range(db: Session, user_id: int, start: datetime, end: datetime) -> List[TransactionDB]:
    """All of a user's transactions in [start, end)"""
    return read_db_transactions(
        db, user_id, TransactionFilter(date_from=start, date_to=end), limit=None
    )


def read_account_transactions(db: Session, account_id: int) -> List[TransactionDB]:
    return db.query(TransactionDB).filter(TransactionDB.account_id == account_id).all()
