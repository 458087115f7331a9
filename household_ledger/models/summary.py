from pydantic import BaseModel, model_validator
from typing import Optional, List, Dict
from datetime import date, datetime
from enum import Enum
from typing_extensions import Self


class DateRange(BaseModel):
    """Inclusive date range used by dashboard filters"""
    start: date
    end: date

    @model_validator(mode='after')
    def check_order(self) -> Self:
        if self.start > self.end:
            raise ValueError('Range start must not be after its end')
        return self

    def contains(self, value: datetime | date) -> bool:
        day = value.date() if isinstance(value, datetime) else value
        return self.start <= day <= self.end


class Summary(BaseModel):
    total_income: int
    total_expense: int
    total_assets: int
    pending_checks_amount: int
    remaining_loan_amount: int
    remaining_debts_amount: int
    total_liabilities: int
    net_worth: int


class DeadlineTypeEnum(str, Enum):
    CHECK = "check"
    LOAN = "loan"


class Deadline(BaseModel):
    id: str
    type: DeadlineTypeEnum
    date: date
    title: str
    amount: int


class LedgerRowTypeEnum(str, Enum):
    INCOME = "income"
    EXPENSE = "expense"
    TRANSFER_IN = "transfer_in"
    TRANSFER_OUT = "transfer_out"


class LedgerRow(BaseModel):
    """One historical movement on an account with its replayed balances"""
    id: str
    type: LedgerRowTypeEnum
    date: datetime
    amount: int
    description: Optional[str] = None
    balance_before: int
    balance_after: int


class CategorySpending(BaseModel):
    category_id: Optional[str]
    category_name: str
    total: int


class RecentTransaction(BaseModel):
    id: str
    type: LedgerRowTypeEnum
    date: datetime
    amount: int
    owner_id: str
    bank_account_id: str
    description: Optional[str] = None


class Dashboard(BaseModel):
    summary: Summary
    owner_balances: Dict[str, int]
    upcoming_deadlines: List[Deadline]
    category_spending: List[CategorySpending]
    recent_transactions: List[RecentTransaction]
