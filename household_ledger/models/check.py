from pydantic import BaseModel, Field, field_validator, ValidationInfo
from typing import Optional
from datetime import date, datetime
from enum import Enum

from household_ledger.models.account import reject_null
from household_ledger.models.transaction import ExpenseResponse


def check_sayad_digits(v: Optional[str]) -> Optional[str]:
    if v is not None and not v.isdigit():
        raise ValueError('Sayad id must be numeric')
    return v


class CheckStatusEnum(str, Enum):
    PENDING = "pending"
    CLEARED = "cleared"


class CheckCreate(BaseModel):
    bank_account_id: str
    payee_id: str
    category_id: str
    amount: int = Field(..., gt=0, description="Amount in minor units")
    issue_date: date
    due_date: date
    description: Optional[str] = Field(None, max_length=500)
    sayad_id: Optional[str] = Field(None, min_length=16, max_length=16, description="16-digit Sayad id")
    check_serial_number: Optional[str] = Field(None, max_length=32)

    @field_validator('sayad_id')
    @classmethod
    def validate_sayad_id(cls, v: Optional[str]) -> Optional[str]:
        return check_sayad_digits(v)


class CheckUpdate(BaseModel):
    """Only pending checks can be edited"""
    bank_account_id: Optional[str] = None
    payee_id: Optional[str] = None
    category_id: Optional[str] = None
    amount: Optional[int] = Field(None, gt=0)
    issue_date: Optional[date] = None
    due_date: Optional[date] = None
    description: Optional[str] = Field(None, max_length=500)
    sayad_id: Optional[str] = Field(None, min_length=16, max_length=16)
    check_serial_number: Optional[str] = Field(None, max_length=32)

    @field_validator('bank_account_id', 'payee_id', 'category_id', 'amount', 'issue_date', 'due_date')
    @classmethod
    def check_not_null(cls, v, info: ValidationInfo):
        return reject_null(v, info)

    @field_validator('sayad_id')
    @classmethod
    def validate_sayad_id(cls, v: Optional[str]) -> Optional[str]:
        return check_sayad_digits(v)


class CheckResponse(BaseModel):
    id: str
    owner_id: str
    registered_by_user_id: str
    bank_account_id: str
    payee_id: str
    category_id: str
    amount: int
    issue_date: date
    due_date: date
    status: CheckStatusEnum
    cleared_date: Optional[datetime]
    description: Optional[str]
    sayad_id: Optional[str]
    check_serial_number: Optional[str]

    class Config:
        from_attributes = True


class CheckClearResponse(BaseModel):
    check: CheckResponse
    expense: ExpenseResponse
