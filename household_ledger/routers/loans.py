from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from typing import List

from household_ledger.ledger import obligations as ledger
from household_ledger.models import obligation as obligation_models
from household_ledger.db.core import get_db
from household_ledger.routers.dependencies import get_family_id, get_current_user_id

router = APIRouter(
    prefix="/loans",
    tags=["loans"],
)


@router.post("/", response_model=obligation_models.LoanResponse, status_code=status.HTTP_201_CREATED)
def create_loan(
    loan: obligation_models.LoanCreate,
    db: Session = Depends(get_db),
    family_id: str = Depends(get_family_id),
    user_id: str = Depends(get_current_user_id)
):
    """
    Register a loan. When a deposit account is given, the principal is credited to it.
    """
    return ledger.create_loan(db=db, family_id=family_id, user_id=user_id, loan_data=loan)


@router.get("/", response_model=List[obligation_models.LoanResponse])
def read_loans(
    db: Session = Depends(get_db),
    family_id: str = Depends(get_family_id)
):
    return ledger.read_loans(db=db, family_id=family_id)


@router.get("/{loan_id}", response_model=obligation_models.LoanResponse)
def read_loan(
    loan_id: str,
    db: Session = Depends(get_db),
    family_id: str = Depends(get_family_id)
):
    db_loan = ledger.read_loan(db=db, family_id=family_id, loan_id=loan_id)
    if db_loan is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Loan not found")
    return db_loan


@router.get("/{loan_id}/payments", response_model=List[obligation_models.LoanPaymentResponse])
def read_loan_payments(
    loan_id: str,
    db: Session = Depends(get_db),
    family_id: str = Depends(get_family_id)
):
    return ledger.read_loan_payments(db=db, family_id=family_id, loan_id=loan_id)


@router.post("/{loan_id}/payments", response_model=obligation_models.LoanPaymentResult, status_code=status.HTTP_201_CREATED)
def pay_installment(
    loan_id: str,
    payment: obligation_models.LoanPaymentCreate,
    db: Session = Depends(get_db),
    family_id: str = Depends(get_family_id),
    user_id: str = Depends(get_current_user_id)
):
    """
    Pay an installment from an account.
    """
    db_loan, db_payment, db_expense = ledger.pay_installment(
        db=db, family_id=family_id, user_id=user_id, loan_id=loan_id, payment_data=payment
    )
    return {"loan": db_loan, "payment": db_payment, "expense": db_expense}


@router.delete("/{loan_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_loan(
    loan_id: str,
    db: Session = Depends(get_db),
    family_id: str = Depends(get_family_id)
):
    """
    Delete a loan with no payments, taking back a deposited principal.
    """
    ledger.delete_loan(db=db, family_id=family_id, loan_id=loan_id)
