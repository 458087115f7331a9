from pydantic import BaseModel, Field, field_validator
from typing import Optional
from datetime import date, datetime

from household_ledger.models.account import validate_owner_id
from household_ledger.models.transaction import ExpenseResponse


# ===== LOAN MODELS =====

class LoanCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    owner_id: str
    payee_id: Optional[str] = None
    amount: int = Field(..., gt=0, description="Principal in minor units")
    installment_amount: int = Field(default=0, ge=0)
    number_of_installments: int = Field(default=0, ge=0)
    start_date: date
    payment_day: int = Field(default=1, ge=1, le=31, description="Day of month installments fall due")
    deposit_to_account_id: Optional[str] = Field(None, description="Account credited with the principal on creation")

    @field_validator('owner_id')
    @classmethod
    def check_owner_id(cls, v: str) -> str:
        return validate_owner_id(v)


class LoanResponse(BaseModel):
    id: str
    owner_id: str
    registered_by_user_id: str
    payee_id: Optional[str]
    title: str
    amount: int
    installment_amount: int
    remaining_amount: int
    start_date: date
    payment_day: int
    number_of_installments: int
    paid_installments: int
    deposit_to_account_id: Optional[str]

    class Config:
        from_attributes = True


class LoanPaymentCreate(BaseModel):
    bank_account_id: str
    amount: int = Field(..., description="Installment amount in minor units")


class LoanPaymentResponse(BaseModel):
    id: str
    registered_by_user_id: str
    loan_id: str
    bank_account_id: str
    amount: int
    payment_date: datetime

    class Config:
        from_attributes = True


class LoanPaymentResult(BaseModel):
    loan: LoanResponse
    payment: LoanPaymentResponse
    expense: ExpenseResponse


# ===== PREVIOUS DEBT MODELS =====

class DebtCreate(BaseModel):
    owner_id: str
    payee_id: str
    description: str = Field(..., min_length=1, max_length=500)
    amount: int = Field(..., gt=0)
    start_date: date

    @field_validator('owner_id')
    @classmethod
    def check_owner_id(cls, v: str) -> str:
        return validate_owner_id(v)


class DebtResponse(BaseModel):
    id: str
    owner_id: str
    registered_by_user_id: str
    payee_id: str
    description: str
    amount: int
    remaining_amount: int
    start_date: date

    class Config:
        from_attributes = True


class DebtPaymentCreate(BaseModel):
    bank_account_id: str
    amount: int


class DebtPaymentResponse(BaseModel):
    id: str
    registered_by_user_id: str
    debt_id: str
    bank_account_id: str
    amount: int
    payment_date: datetime

    class Config:
        from_attributes = True


class DebtPaymentResult(BaseModel):
    debt: DebtResponse
    payment: DebtPaymentResponse
    expense: ExpenseResponse
