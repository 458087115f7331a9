from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from typing import List, Optional

from household_ledger.ledger import checks as ledger
from household_ledger.models import check as check_models
from household_ledger.db.core import get_db, CheckStatus
from household_ledger.routers.dependencies import get_family_id, get_current_user_id

router = APIRouter(
    prefix="/checks",
    tags=["checks"],
)


@router.post("/", response_model=check_models.CheckResponse, status_code=status.HTTP_201_CREATED)
def create_check(
    check: check_models.CheckCreate,
    db: Session = Depends(get_db),
    family_id: str = Depends(get_family_id),
    user_id: str = Depends(get_current_user_id)
):
    """
    Register a pending check. No money moves until it is cleared.
    """
    return ledger.create_check(db=db, family_id=family_id, user_id=user_id, check_data=check)


@router.get("/", response_model=List[check_models.CheckResponse])
def read_checks(
    check_status: Optional[check_models.CheckStatusEnum] = None,
    db: Session = Depends(get_db),
    family_id: str = Depends(get_family_id)
):
    """
    Retrieve checks ordered by due date, optionally filtered by status.
    """
    status_filter = CheckStatus(check_status.value) if check_status else None
    return ledger.read_checks(db=db, family_id=family_id, status=status_filter)


@router.get("/{check_id}", response_model=check_models.CheckResponse)
def read_check(
    check_id: str,
    db: Session = Depends(get_db),
    family_id: str = Depends(get_family_id)
):
    db_check = ledger.read_check(db=db, family_id=family_id, check_id=check_id)
    if db_check is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Check not found")
    return db_check


@router.put("/{check_id}", response_model=check_models.CheckResponse)
def update_check(
    check_id: str,
    check: check_models.CheckUpdate,
    db: Session = Depends(get_db),
    family_id: str = Depends(get_family_id)
):
    return ledger.update_check(db=db, family_id=family_id, check_id=check_id, check_updates=check)


@router.post("/{check_id}/clear", response_model=check_models.CheckClearResponse)
def clear_check(
    check_id: str,
    db: Session = Depends(get_db),
    family_id: str = Depends(get_family_id),
    user_id: str = Depends(get_current_user_id)
):
    """
    Cash a pending check: debit its account and record the linked expense.
    """
    db_check, db_expense = ledger.clear_check(db=db, family_id=family_id, user_id=user_id, check_id=check_id)
    return {"check": db_check, "expense": db_expense}


@router.delete("/{check_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_check(
    check_id: str,
    db: Session = Depends(get_db),
    family_id: str = Depends(get_family_id)
):
    """
    Delete a check. A cleared check's expense is reversed first.
    """
    ledger.delete_check(db=db, family_id=family_id, check_id=check_id)
