from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from typing import List, Optional
from datetime import datetime

from pocket_ledger.crud.crud_transaction import read_db_transaction, read_db_transactions
from pocket_ledger.db.core import get_db, NotFoundError, TransactionType, TransactionCategory
from pocket_ledger.dependencies import get_current_user_id, get_transaction_service
from pocket_ledger.models.transaction import (
    TransactionCreate,
    TransactionUpdate,
    TransactionResponse,
    TransactionFilter,
    TransactionCreated,
)
from pocket_ledger.services.transactions import TransactionService

router = APIRouter(
    prefix="/transactions",
    tags=["transactions"],
)


@router.post("/", response_model=TransactionCreated, status_code=status.HTTP_201_CREATED)
def create_transaction(
    transaction: TransactionCreate,
    service: TransactionService = Depends(get_transaction_service),
    user_id: int = Depends(get_current_user_id)
):
    """
    Record a transaction. The response carries a budget alert when this expense
    pushes the current month's budget for its category near or past the limit.
    """
    try:
        db_transaction, budget_alert = service.create_transaction(user_id, transaction)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e
    return TransactionCreated(
        transaction=TransactionResponse.model_validate(db_transaction),
        budget_alert=budget_alert,
    )


@router.get("/", response_model=List[TransactionResponse])
def read_transactions(
    account_id: Optional[int] = None,
    transaction_type: Optional[TransactionType] = None,
    category: Optional[TransactionCategory] = None,
    date_from: Optional[datetime] = None,
    date_to: Optional[datetime] = None,
    skip: int = 0,
    limit: int = 100,
    order_by: str = "transaction_date",
    order_desc: bool = True,
    db: Session = Depends(get_db),
    user_id: int = Depends(get_current_user_id)
):
    filters = TransactionFilter(
        account_id=account_id,
        transaction_type=transaction_type,
        category=category,
        date_from=date_from,
        date_to=date_to,
    )
    transactions = read_db_transactions(
        db, user_id, filters=filters, skip=skip, limit=limit, order_by=order_by, order_desc=order_desc
    )
    return [TransactionResponse.model_validate(t) for t in transactions]


@router.get("/{transaction_id}", response_model=TransactionResponse)
def read_transaction(
    transaction_id: int,
    db: Session = Depends(get_db),
    user_id: int = Depends(get_current_user_id)
):
    db_transaction = read_db_transaction(db, transaction_id=transaction_id, user_id=user_id)
    if not db_transaction:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Transaction not found")
    return TransactionResponse.model_validate(db_transaction)


@router.patch("/{transaction_id}", response_model=TransactionResponse)
def update_transaction(
    transaction_id: int,
    transaction: TransactionUpdate,
    service: TransactionService = Depends(get_transaction_service),
    user_id: int = Depends(get_current_user_id)
):
    try:
        db_transaction = service.update_transaction(transaction_id, user_id, transaction)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e
    return TransactionResponse.model_validate(db_transaction)


@router.delete("/{transaction_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_transaction(
    transaction_id: int,
    service: TransactionService = Depends(get_transaction_service),
    user_id: int = Depends(get_current_user_id)
):
    """
    Delete a transaction and undo its effect on the account balance and budget.
    """
    try:
        service.delete_transaction(transaction_id, user_id)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e
