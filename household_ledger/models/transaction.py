from pydantic import BaseModel, Field, field_validator
from typing import Optional
from datetime import datetime
from enum import Enum

from household_ledger.models.account import validate_owner_id


class ExpenseSubTypeEnum(str, Enum):
    GOAL_SAVED_PORTION = "goal_saved_portion"
    GOAL_CASH_PORTION = "goal_cash_portion"
    DEBT_PAYMENT = "debt_payment"
    LOAN_PAYMENT = "loan_payment"


# ===== EXPENSE MODELS =====

class ExpenseCreate(BaseModel):
    bank_account_id: str
    category_id: str
    payee_id: Optional[str] = None
    amount: int = Field(..., description="Amount in minor units")
    date: datetime = Field(default_factory=datetime.utcnow)
    description: Optional[str] = Field(None, max_length=500)
    expense_for: Optional[str] = Field(None, description="Owner the expense was made for")

    @field_validator('expense_for')
    @classmethod
    def check_expense_for(cls, v: Optional[str]) -> Optional[str]:
        return validate_owner_id(v)


class ExpenseResponse(BaseModel):
    id: str
    owner_id: str
    registered_by_user_id: str
    bank_account_id: str
    category_id: Optional[str]
    payee_id: Optional[str]
    amount: int
    date: datetime
    description: Optional[str]
    sub_type: Optional[ExpenseSubTypeEnum]
    expense_for: Optional[str]
    check_id: Optional[str]
    goal_id: Optional[str]
    loan_payment_id: Optional[str]
    debt_payment_id: Optional[str]
    balance_before: Optional[int]
    balance_after: Optional[int]
    created_at: datetime

    class Config:
        from_attributes = True


# ===== INCOME MODELS =====

class IncomeCreate(BaseModel):
    bank_account_id: str
    amount: int = Field(..., description="Amount in minor units")
    date: datetime = Field(default_factory=datetime.utcnow)
    source: Optional[str] = Field(None, max_length=255)
    description: Optional[str] = Field(None, max_length=500)


class IncomeResponse(BaseModel):
    id: str
    owner_id: str
    registered_by_user_id: str
    bank_account_id: str
    amount: int
    date: datetime
    source: Optional[str]
    description: Optional[str]
    balance_before: Optional[int]
    balance_after: Optional[int]
    created_at: datetime

    class Config:
        from_attributes = True


# ===== TRANSFER MODELS =====

class TransferCreate(BaseModel):
    from_bank_account_id: str
    to_bank_account_id: str
    amount: int = Field(..., description="Amount in minor units")
    transfer_date: datetime = Field(default_factory=datetime.utcnow)
    description: Optional[str] = Field(None, max_length=500)


class TransferResponse(BaseModel):
    id: str
    registered_by_user_id: str
    from_bank_account_id: str
    to_bank_account_id: str
    amount: int
    transfer_date: datetime
    description: Optional[str]
    from_account_balance_before: int
    from_account_balance_after: int
    to_account_balance_before: int
    to_account_balance_after: int

    class Config:
        from_attributes = True
