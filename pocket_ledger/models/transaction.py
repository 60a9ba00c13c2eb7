from pydantic import BaseModel, Field, field_validator
from typing import Optional
from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pocket_ledger.db.core import TransactionType, TransactionCategory
from pocket_ledger.models.budget import BudgetAlert

MAX_TRANSACTION_AMOUNT = Decimal('999999.99')


# ===== TRANSACTION PYDANTIC MODELS =====

class TransactionCreate(BaseModel):
    account_id: Optional[int] = Field(None, description="Account ID for this transaction")
    transaction_date: datetime = Field(default_factory=datetime.utcnow, description="When the transaction happened")
    amount: Decimal = Field(..., description="Signed amount: negative for expenses, positive for income")
    transaction_type: TransactionType = Field(..., description="Income or expense")
    category: TransactionCategory = Field(..., description="Spending or income category")
    description: str = Field("", max_length=500, description="Transaction description")

    @field_validator('amount')
    @classmethod
    def validate_amount(cls, v: Decimal) -> Decimal:
        return round(v, 2)

    @field_validator('description')
    @classmethod
    def validate_description(cls, v: str) -> str:
        return " ".join(v.split())


class TransactionUpdate(BaseModel):
    """Update transaction - all fields optional"""
    account_id: Optional[int] = None
    transaction_date: Optional[datetime] = None
    amount: Optional[Decimal] = None
    transaction_type: Optional[TransactionType] = None
    category: Optional[TransactionCategory] = None
    description: Optional[str] = Field(None, max_length=500)

    @field_validator('amount')
    @classmethod
    def validate_amount(cls, v: Optional[Decimal]) -> Optional[Decimal]:
        return round(v, 2) if v is not None else v

    @field_validator('description')
    @classmethod
    def validate_description(cls, v: Optional[str]) -> Optional[str]:
        return " ".join(v.split()) if v is not None else v


class TransactionFilter(BaseModel):
    account_id: Optional[int] = None
    transaction_type: Optional[TransactionType] = None
    category: Optional[TransactionCategory] = None
    date_from: Optional[datetime] = None
    date_to: Optional[datetime] = None


class TransactionResponse(BaseModel):
    """Transaction data returned to client"""
    id: UUID
    db_id: int
    user_id: int
    account_id: Optional[int]
    transaction_date: datetime
    amount: Decimal
    transaction_type: TransactionType
    category: TransactionCategory
    description: str
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class TransactionCreated(BaseModel):
    transaction: TransactionResponse
    budget_alert: Optional[BudgetAlert] = None
