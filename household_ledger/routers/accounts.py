from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from typing import List, Optional

from household_ledger.crud import crud_account
from household_ledger.models import account as account_models
from household_ledger.models.summary import LedgerRow
from household_ledger.db.core import get_db
from household_ledger.routers.dependencies import get_family_id
from household_ledger.services.ledger_snapshot import load_snapshot
from household_ledger.services.aggregation import compute_running_ledger

router = APIRouter(
    prefix="/accounts",
    tags=["accounts"],
)


@router.post("/", response_model=account_models.AccountResponse, status_code=status.HTTP_201_CREATED)
def create_account(
    account: account_models.AccountCreate,
    db: Session = Depends(get_db),
    family_id: str = Depends(get_family_id)
):
    """
    Create a new bank account. Its balance starts at the initial balance.
    """
    try:
        return crud_account.create_db_account(db=db, family_id=family_id, account_data=account)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.get("/", response_model=List[account_models.AccountResponse])
def read_accounts(
    owner_id: Optional[str] = None,
    db: Session = Depends(get_db),
    family_id: str = Depends(get_family_id)
):
    """
    Retrieve the family's accounts, optionally for a single owner.
    """
    return crud_account.read_db_accounts(db=db, family_id=family_id, owner_id=owner_id)


@router.get("/{account_id}", response_model=account_models.AccountResponse)
def read_account(
    account_id: str,
    db: Session = Depends(get_db),
    family_id: str = Depends(get_family_id)
):
    db_account = crud_account.read_db_account(db=db, family_id=family_id, account_id=account_id)
    if db_account is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Account not found")
    return db_account


@router.get("/{account_id}/ledger", response_model=List[LedgerRow])
def read_account_ledger(
    account_id: str,
    db: Session = Depends(get_db),
    family_id: str = Depends(get_family_id)
):
    """
    Every movement on the account, newest first, with running balances.
    """
    if crud_account.read_db_account(db=db, family_id=family_id, account_id=account_id) is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Account not found")
    return compute_running_ledger(load_snapshot(db, family_id), account_id)


@router.put("/{account_id}", response_model=account_models.AccountResponse)
def update_account(
    account_id: str,
    account: account_models.AccountUpdate,
    db: Session = Depends(get_db),
    family_id: str = Depends(get_family_id)
):
    """
    Update descriptive account fields. Balances only change through ledger operations.
    """
    try:
        return crud_account.update_db_account(db=db, family_id=family_id, account_id=account_id, account_updates=account)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.delete("/{account_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_account(
    account_id: str,
    db: Session = Depends(get_db),
    family_id: str = Depends(get_family_id)
):
    crud_account.delete_db_account(db=db, family_id=family_id, account_id=account_id)
