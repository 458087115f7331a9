from pydantic import BaseModel, Field, field_validator, ValidationInfo
from typing import Optional

from household_ledger.models.account import reject_null


# ===== CATEGORY MODELS =====

class CategoryCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=500)

    @field_validator('name')
    @classmethod
    def validate_name(cls, v: str) -> str:
        return v.strip()


class CategoryUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=500)

    @field_validator('name')
    @classmethod
    def validate_name(cls, v: Optional[str]) -> Optional[str]:
        return v.strip() if v else v

    @field_validator('name')
    @classmethod
    def check_not_null(cls, v, info: ValidationInfo):
        return reject_null(v, info)


class CategoryResponse(BaseModel):
    id: str
    name: str
    description: Optional[str]

    class Config:
        from_attributes = True


# ===== PAYEE MODELS =====

class PayeeCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    phone_number: Optional[str] = Field(None, max_length=32)

    @field_validator('name')
    @classmethod
    def validate_name(cls, v: str) -> str:
        return v.strip()


class PayeeUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    phone_number: Optional[str] = Field(None, max_length=32)

    @field_validator('name')
    @classmethod
    def check_not_null(cls, v, info: ValidationInfo):
        return reject_null(v, info)


class PayeeResponse(BaseModel):
    id: str
    name: str
    phone_number: Optional[str]

    class Config:
        from_attributes = True
