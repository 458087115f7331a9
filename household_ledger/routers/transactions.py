from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from typing import List, Optional

from household_ledger.ledger import transactions as ledger
from household_ledger.models import transaction as transaction_models
from household_ledger.db.core import get_db
from household_ledger.routers.dependencies import get_family_id, get_current_user_id

expenses_router = APIRouter(prefix="/expenses", tags=["expenses"])
incomes_router = APIRouter(prefix="/incomes", tags=["incomes"])
transfers_router = APIRouter(prefix="/transfers", tags=["transfers"])


# ===== EXPENSES =====

@expenses_router.post("/", response_model=transaction_models.ExpenseResponse, status_code=status.HTTP_201_CREATED)
def create_expense(
    expense: transaction_models.ExpenseCreate,
    db: Session = Depends(get_db),
    family_id: str = Depends(get_family_id),
    user_id: str = Depends(get_current_user_id)
):
    """
    Record an expense and debit its account.
    """
    return ledger.record_expense(db=db, family_id=family_id, user_id=user_id, expense_data=expense)


@expenses_router.get("/", response_model=List[transaction_models.ExpenseResponse])
def read_expenses(
    bank_account_id: Optional[str] = None,
    db: Session = Depends(get_db),
    family_id: str = Depends(get_family_id)
):
    return ledger.read_expenses(db=db, family_id=family_id, bank_account_id=bank_account_id)


@expenses_router.get("/{expense_id}", response_model=transaction_models.ExpenseResponse)
def read_expense(
    expense_id: str,
    db: Session = Depends(get_db),
    family_id: str = Depends(get_family_id)
):
    db_expense = ledger.read_expense(db=db, family_id=family_id, expense_id=expense_id)
    if db_expense is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Expense not found")
    return db_expense


@expenses_router.delete("/{expense_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_expense(
    expense_id: str,
    db: Session = Depends(get_db),
    family_id: str = Depends(get_family_id)
):
    """
    Delete an expense and credit the amount back to its account.
    """
    ledger.delete_expense(db=db, family_id=family_id, expense_id=expense_id)


# ===== INCOMES =====

@incomes_router.post("/", response_model=transaction_models.IncomeResponse, status_code=status.HTTP_201_CREATED)
def create_income(
    income: transaction_models.IncomeCreate,
    db: Session = Depends(get_db),
    family_id: str = Depends(get_family_id),
    user_id: str = Depends(get_current_user_id)
):
    return ledger.record_income(db=db, family_id=family_id, user_id=user_id, income_data=income)


@incomes_router.get("/", response_model=List[transaction_models.IncomeResponse])
def read_incomes(
    bank_account_id: Optional[str] = None,
    db: Session = Depends(get_db),
    family_id: str = Depends(get_family_id)
):
    return ledger.read_incomes(db=db, family_id=family_id, bank_account_id=bank_account_id)


@incomes_router.get("/{income_id}", response_model=transaction_models.IncomeResponse)
def read_income(
    income_id: str,
    db: Session = Depends(get_db),
    family_id: str = Depends(get_family_id)
):
    db_income = ledger.read_income(db=db, family_id=family_id, income_id=income_id)
    if db_income is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Income not found")
    return db_income


@incomes_router.delete("/{income_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_income(
    income_id: str,
    db: Session = Depends(get_db),
    family_id: str = Depends(get_family_id)
):
    ledger.delete_income(db=db, family_id=family_id, income_id=income_id)


# ===== TRANSFERS =====

@transfers_router.post("/", response_model=transaction_models.TransferResponse, status_code=status.HTTP_201_CREATED)
def create_transfer(
    transfer: transaction_models.TransferCreate,
    db: Session = Depends(get_db),
    family_id: str = Depends(get_family_id),
    user_id: str = Depends(get_current_user_id)
):
    """
    Move money between two of the family's accounts.
    """
    return ledger.create_transfer(db=db, family_id=family_id, user_id=user_id, transfer_data=transfer)


@transfers_router.get("/", response_model=List[transaction_models.TransferResponse])
def read_transfers(
    db: Session = Depends(get_db),
    family_id: str = Depends(get_family_id)
):
    return ledger.read_transfers(db=db, family_id=family_id)


@transfers_router.get("/{transfer_id}", response_model=transaction_models.TransferResponse)
def read_transfer(
    transfer_id: str,
    db: Session = Depends(get_db),
    family_id: str = Depends(get_family_id)
):
    db_transfer = ledger.read_transfer(db=db, family_id=family_id, transfer_id=transfer_id)
    if db_transfer is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Transfer not found")
    return db_transfer


@transfers_router.delete("/{transfer_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_transfer(
    transfer_id: str,
    db: Session = Depends(get_db),
    family_id: str = Depends(get_family_id)
):
    """
    Undo both legs of a transfer.
    """
    ledger.delete_transfer(db=db, family_id=family_id, transfer_id=transfer_id)
