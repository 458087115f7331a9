from pydantic import BaseModel, Field, field_validator, ValidationInfo
from typing import Optional
from datetime import datetime
from enum import Enum

from household_ledger.db.core import OWNER_IDS


# ===== ACCOUNT PYDANTIC MODELS =====

class AccountTypeEnum(str, Enum):
    CHECKING = "checking"
    SAVINGS = "savings"


class CardThemeEnum(str, Enum):
    BLUE = "blue"
    GREEN = "green"
    PURPLE = "purple"
    ORANGE = "orange"
    GRAY = "gray"


def reject_null(v, info: ValidationInfo):
    """Update fields may be omitted but not cleared"""
    if v is None:
        raise ValueError(f"{info.field_name} cannot be null")
    return v


def validate_owner_id(v: Optional[str]) -> Optional[str]:
    if v is None:
        return v
    if v not in OWNER_IDS:
        raise ValueError(f"Owner must be one of: {', '.join(OWNER_IDS)}")
    return v


class AccountCreate(BaseModel):
    owner_id: str = Field(..., description="Family member owning the account, or 'shared'")
    bank_name: str = Field(..., min_length=1, max_length=255, description="Bank name")
    account_number: Optional[str] = Field(None, max_length=34)
    card_number: Optional[str] = Field(None, min_length=16, max_length=19, description="Card number (digits only)")
    expiry_date: Optional[str] = Field(None, pattern=r"^(0[1-9]|1[0-2])/\d{2}$", description="MM/YY")
    account_type: AccountTypeEnum = Field(default=AccountTypeEnum.CHECKING)
    theme: CardThemeEnum = Field(default=CardThemeEnum.BLUE)
    initial_balance: int = Field(default=0, ge=0, description="Opening balance in minor units")

    @field_validator('owner_id')
    @classmethod
    def check_owner_id(cls, v: str) -> str:
        return validate_owner_id(v)

    @field_validator('bank_name')
    @classmethod
    def validate_bank_name(cls, v: str) -> str:
        return v.strip()

    @field_validator('card_number')
    @classmethod
    def validate_card_number(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        if not v.isdigit():
            raise ValueError('Card number must be numeric')
        return v


class AccountUpdate(BaseModel):
    """Update account - descriptive fields only, balances belong to the ledger"""
    owner_id: Optional[str] = None
    bank_name: Optional[str] = Field(None, min_length=1, max_length=255)
    account_number: Optional[str] = Field(None, max_length=34)
    card_number: Optional[str] = Field(None, min_length=16, max_length=19)
    expiry_date: Optional[str] = Field(None, pattern=r"^(0[1-9]|1[0-2])/\d{2}$")
    account_type: Optional[AccountTypeEnum] = None
    theme: Optional[CardThemeEnum] = None

    @field_validator('owner_id', 'bank_name', 'account_type', 'theme')
    @classmethod
    def check_not_null(cls, v, info: ValidationInfo):
        return reject_null(v, info)

    @field_validator('owner_id')
    @classmethod
    def check_owner_id(cls, v: Optional[str]) -> Optional[str]:
        return validate_owner_id(v)

    @field_validator('bank_name')
    @classmethod
    def validate_bank_name(cls, v: Optional[str]) -> Optional[str]:
        return v.strip() if v else v


class AccountResponse(BaseModel):
    """Account data returned to client"""
    id: str
    family_id: str
    owner_id: str
    bank_name: str
    account_number: Optional[str]
    card_number: Optional[str]
    expiry_date: Optional[str]
    account_type: AccountTypeEnum
    theme: str
    initial_balance: int
    balance: int
    blocked_balance: int
    available_balance: int
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
