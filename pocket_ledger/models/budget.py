from pydantic import BaseModel, Field, field_validator, computed_field
from typing import Optional
from datetime import datetime
from decimal import Decimal
from enum import Enum

from pocket_ledger.db.core import TransactionCategory

# ===== BUDGET PYDANTIC MODELS =====


class BudgetAlertType(str, Enum):
    WARNING = "WARNING"    # 80% of the limit
    DANGER = "DANGER"      # exactly at the limit
    EXCEEDED = "EXCEEDED"  # over the limit


class BudgetStatus(str, Enum):
    CREATED = "CREATED"
    ACCUMULATING = "ACCUMULATING"
    AT_LIMIT = "AT_LIMIT"
    OVER_LIMIT = "OVER_LIMIT"


def status_for(spent: Decimal, limit_amount: Decimal) -> "BudgetStatus":
    if spent > limit_amount:
        return BudgetStatus.OVER_LIMIT
    if spent == limit_amount:
        return BudgetStatus.AT_LIMIT
    if spent > 0:
        return BudgetStatus.ACCUMULATING
    return BudgetStatus.CREATED


class BudgetCreate(BaseModel):
    category: TransactionCategory = Field(..., description="Category the budget applies to")
    limit_amount: Decimal = Field(..., gt=0, description="Spending limit for the month")
    month: Optional[int] = Field(None, ge=1, le=12, description="Target month, defaults to the current one")
    year: Optional[int] = Field(None, ge=1000, le=9999, description="Target year, defaults to the current one")

    @field_validator('limit_amount')
    @classmethod
    def validate_limit_amount(cls, v: Decimal) -> Decimal:
        return round(v, 2)


class BudgetUpdate(BaseModel):
    limit_amount: Decimal = Field(..., gt=0, description="New spending limit")

    @field_validator('limit_amount')
    @classmethod
    def validate_limit_amount(cls, v: Decimal) -> Decimal:
        return round(v, 2)


class BudgetResponse(BaseModel):
    budget_id: int
    user_id: int
    category: TransactionCategory
    limit_amount: Decimal
    spent: Decimal
    month: int
    year: int
    created_at: datetime
    updated_at: datetime

    @computed_field
    @property
    def status(self) -> BudgetStatus:
        return status_for(self.spent, self.limit_amount)

    class Config:
        from_attributes = True


class BudgetSummary(BaseModel):
    """Aggregate view of a user's budgets for one month"""
    month: int
    year: int
    total_budgeted: Decimal
    total_spent: Decimal
    total_remaining: Decimal
    budget_count: int
    over_budget_count: int
    utilization_percentage: float


class BudgetAlert(BaseModel):
    budget_id: int
    category: TransactionCategory
    alert_type: BudgetAlertType
    projected_spent: Decimal
    limit_amount: Decimal
    remaining: Decimal
    message: str
