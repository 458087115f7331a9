from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from typing import List

from household_ledger.ledger import obligations as ledger
from household_ledger.models import obligation as obligation_models
from household_ledger.db.core import get_db
from household_ledger.routers.dependencies import get_family_id, get_current_user_id

router = APIRouter(
    prefix="/debts",
    tags=["debts"],
)


@router.post("/", response_model=obligation_models.DebtResponse, status_code=status.HTTP_201_CREATED)
def create_debt(
    debt: obligation_models.DebtCreate,
    db: Session = Depends(get_db),
    family_id: str = Depends(get_family_id),
    user_id: str = Depends(get_current_user_id)
):
    return ledger.create_debt(db=db, family_id=family_id, user_id=user_id, debt_data=debt)


@router.get("/", response_model=List[obligation_models.DebtResponse])
def read_debts(
    db: Session = Depends(get_db),
    family_id: str = Depends(get_family_id)
):
    return ledger.read_debts(db=db, family_id=family_id)


@router.get("/{debt_id}", response_model=obligation_models.DebtResponse)
def read_debt(
    debt_id: str,
    db: Session = Depends(get_db),
    family_id: str = Depends(get_family_id)
):
    db_debt = ledger.read_debt(db=db, family_id=family_id, debt_id=debt_id)
    if db_debt is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Debt not found")
    return db_debt


@router.get("/{debt_id}/payments", response_model=List[obligation_models.DebtPaymentResponse])
def read_debt_payments(
    debt_id: str,
    db: Session = Depends(get_db),
    family_id: str = Depends(get_family_id)
):
    return ledger.read_debt_payments(db=db, family_id=family_id, debt_id=debt_id)


@router.post("/{debt_id}/payments", response_model=obligation_models.DebtPaymentResult, status_code=status.HTTP_201_CREATED)
def pay_debt(
    debt_id: str,
    payment: obligation_models.DebtPaymentCreate,
    db: Session = Depends(get_db),
    family_id: str = Depends(get_family_id),
    user_id: str = Depends(get_current_user_id)
):
    db_debt, db_payment, db_expense = ledger.pay_debt(
        db=db, family_id=family_id, user_id=user_id, debt_id=debt_id, payment_data=payment
    )
    return {"debt": db_debt, "payment": db_payment, "expense": db_expense}


@router.delete("/{debt_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_debt(
    debt_id: str,
    db: Session = Depends(get_db),
    family_id: str = Depends(get_family_id)
):
    ledger.delete_debt(db=db, family_id=family_id, debt_id=debt_id)
