from pydantic import BaseModel, Field, field_validator, model_validator, ValidationInfo
from typing import Optional, List
from datetime import date, datetime
from enum import Enum
from typing_extensions import Self

from household_ledger.models.account import validate_owner_id, reject_null


class GoalPriorityEnum(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class GoalCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    owner_id: str
    target_amount: int = Field(..., gt=0)
    target_date: Optional[date] = None
    priority: GoalPriorityEnum = Field(default=GoalPriorityEnum.MEDIUM)

    # Optional first reservation made together with the goal
    initial_contribution_amount: int = Field(default=0, ge=0)
    initial_contribution_bank_account_id: Optional[str] = None

    @field_validator('owner_id')
    @classmethod
    def check_owner_id(cls, v: str) -> str:
        return validate_owner_id(v)

    @model_validator(mode='after')
    def check_initial_contribution(self) -> Self:
        if self.initial_contribution_amount > 0 and not self.initial_contribution_bank_account_id:
            raise ValueError('An account is required for the initial contribution')
        return self


class GoalUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    owner_id: Optional[str] = None
    target_amount: Optional[int] = Field(None, gt=0)
    target_date: Optional[date] = None
    priority: Optional[GoalPriorityEnum] = None

    @field_validator('name', 'owner_id', 'target_amount', 'priority')
    @classmethod
    def check_not_null(cls, v, info: ValidationInfo):
        return reject_null(v, info)

    @field_validator('owner_id')
    @classmethod
    def check_owner_id(cls, v: Optional[str]) -> Optional[str]:
        return validate_owner_id(v)


class GoalContributionCreate(BaseModel):
    bank_account_id: str
    amount: int


class GoalAchieve(BaseModel):
    actual_cost: int = Field(..., ge=0)
    payment_account_id: Optional[str] = Field(None, description="Account charged for any shortfall over the saved amount")


class GoalContributionResponse(BaseModel):
    bank_account_id: str
    amount: int
    date: datetime

    class Config:
        from_attributes = True


class GoalResponse(BaseModel):
    id: str
    owner_id: str
    registered_by_user_id: str
    name: str
    target_amount: int
    current_amount: int
    actual_cost: int
    target_date: Optional[date]
    is_achieved: bool
    priority: GoalPriorityEnum
    contributions: List[GoalContributionResponse]

    class Config:
        from_attributes = True
