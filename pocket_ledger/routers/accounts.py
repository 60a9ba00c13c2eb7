from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from typing import List, Optional

from pocket_ledger.crud import crud_account
from pocket_ledger.models import account as account_models
from pocket_ledger.db.core import get_db, NotFoundError, AccountType, AccountHasTransactionsError
from pocket_ledger.dependencies import get_current_user_id, get_ledger
from pocket_ledger.services.ledger import LedgerAggregator

router = APIRouter(
    prefix="/accounts",
    tags=["accounts"],
)


@router.post("/", response_model=account_models.AccountResponse, status_code=status.HTTP_201_CREATED)
def create_account(
    account: account_models.AccountCreate,
    db: Session = Depends(get_db),
    user_id: int = Depends(get_current_user_id)
):
    """
    Create a new account for the current user.
    """
    try:
        return crud_account.create_db_account(db=db, user_id=user_id, account_data=account)
    except (ValueError, NotFoundError) as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.get("/", response_model=List[account_models.AccountResponse])
def read_accounts(
    account_type: Optional[AccountType] = None,
    include_inactive: bool = False,
    skip: int = 0,
    limit: int = 100,
    db: Session = Depends(get_db),
    user_id: int = Depends(get_current_user_id)
):
    """
    Retrieve the current user's accounts, active ones only unless asked otherwise.
    """
    return crud_account.read_db_accounts(
        db=db, user_id=user_id, account_type=account_type,
        include_inactive=include_inactive, skip=skip, limit=limit
    )


@router.get("/balance/total", response_model=account_models.TotalBalance)
def read_total_balance(
    db: Session = Depends(get_db),
    ledger: LedgerAggregator = Depends(get_ledger),
    user_id: int = Depends(get_current_user_id)
):
    """
    Sum of balances across the current user's active accounts.
    """
    total = ledger.total_balance(user_id)
    active_accounts = len(crud_account.read_db_accounts(db=db, user_id=user_id, limit=None))
    return account_models.TotalBalance(user_id=user_id, total_balance=total, active_accounts=active_accounts)


@router.get("/stats", response_model=account_models.AccountStats)
def get_account_statistics(
    db: Session = Depends(get_db),
    user_id: int = Depends(get_current_user_id)
):
    """
    Get statistics for the current user's accounts (net worth, totals, etc.).
    """
    return crud_account.get_account_stats(db=db, user_id=user_id)


@router.get("/{account_id}", response_model=account_models.AccountResponse)
def read_account(
    account_id: int,
    db: Session = Depends(get_db),
    user_id: int = Depends(get_current_user_id)
):
    db_account = crud_account.read_db_account(db=db, account_id=account_id, user_id=user_id)
    if db_account is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Account not found")
    return db_account


@router.patch("/{account_id}", response_model=account_models.AccountResponse)
def update_account(
    account_id: int,
    account: account_models.AccountUpdate,
    db: Session = Depends(get_db),
    user_id: int = Depends(get_current_user_id)
):
    """
    Rename or retype an account. The balance is not editable.
    """
    try:
        return crud_account.update_db_account(db=db, account_id=account_id, user_id=user_id, account_updates=account)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.post("/{account_id}/deactivate", response_model=account_models.AccountResponse)
def deactivate_account(
    account_id: int,
    db: Session = Depends(get_db),
    user_id: int = Depends(get_current_user_id)
):
    try:
        return crud_account.deactivate_db_account(db=db, account_id=account_id, user_id=user_id)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


@router.delete("/{account_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_account(
    account_id: int,
    db: Session = Depends(get_db),
    user_id: int = Depends(get_current_user_id)
):
    """
    Delete an account. Fails while it still owns transactions.
    """
    try:
        crud_account.delete_db_account(db=db, account_id=account_id, user_id=user_id)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except AccountHasTransactionsError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))


@router.post("/{account_id}/reconcile", response_model=account_models.AccountReconciliation)
def reconcile_account(
    account_id: int,
    ledger: LedgerAggregator = Depends(get_ledger),
    user_id: int = Depends(get_current_user_id)
):
    """
    Recompute the balance from the opening balance and transaction history.
    """
    try:
        return ledger.reconcile_account(account_id, user_id)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
