from pydantic import BaseModel, Field, field_validator, computed_field
from typing import Optional, Dict
from datetime import datetime
from decimal import Decimal
from enum import Enum

from pocket_ledger.db.core import AccountType


# ===== ACCOUNT PYDANTIC MODELS =====

class AccountStatus(str, Enum):
    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"


class AccountCreate(BaseModel):
    account_name: str = Field(..., min_length=1, max_length=255, description="Account name")
    account_type: AccountType = Field(..., description="Type of account")
    opening_balance: Decimal = Field(default=Decimal('0.00'), description="Initial account balance")

    @field_validator('account_name')
    @classmethod
    def validate_account_name(cls, v: str) -> str:
        return v.strip()

    @field_validator('opening_balance')
    @classmethod
    def validate_opening_balance(cls, v: Decimal) -> Decimal:
        # Round to 2 decimal places
        return round(v, 2)


class AccountUpdate(BaseModel):
    """Update account - the balance is owned by the ledger and cannot be set here"""
    account_name: Optional[str] = Field(None, min_length=1, max_length=255)
    account_type: Optional[AccountType] = None

    @field_validator('account_name')
    @classmethod
    def validate_account_name(cls, v: Optional[str]) -> Optional[str]:
        return v.strip() if v else v


class AccountResponse(BaseModel):
    """Account data returned to client"""
    id: int
    user_id: int
    account_name: str
    account_type: AccountType
    opening_balance: Decimal
    balance: Decimal
    balance_last_updated: Optional[datetime]
    is_active: bool
    created_at: datetime
    updated_at: datetime

    @computed_field
    @property
    def status(self) -> AccountStatus:
        return AccountStatus.ACTIVE if self.is_active else AccountStatus.INACTIVE

    class Config:
        from_attributes = True


class TotalBalance(BaseModel):
    user_id: int
    total_balance: Decimal
    active_accounts: int


class AccountReconciliation(BaseModel):
    account_id: int
    previous_balance: Decimal
    balance: Decimal
    adjusted: bool


class AccountStats(BaseModel):
    """Account statistics"""
    total_accounts: int
    accounts_by_type: Dict[str, int]
    total_assets: Decimal
    total_liabilities: Decimal
    net_worth: Decimal
