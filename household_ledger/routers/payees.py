from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from typing import List

from household_ledger.crud import crud_reference
from household_ledger.models import reference as reference_models
from household_ledger.db.core import get_db
from household_ledger.routers.dependencies import get_family_id

router = APIRouter(
    prefix="/payees",
    tags=["payees"],
)


@router.post("/", response_model=reference_models.PayeeResponse, status_code=status.HTTP_201_CREATED)
def create_payee(
    payee: reference_models.PayeeCreate,
    db: Session = Depends(get_db),
    family_id: str = Depends(get_family_id)
):
    return crud_reference.create_db_payee(db=db, family_id=family_id, payee_data=payee)


@router.get("/", response_model=List[reference_models.PayeeResponse])
def read_payees(
    db: Session = Depends(get_db),
    family_id: str = Depends(get_family_id)
):
    return crud_reference.read_db_payees(db=db, family_id=family_id)


@router.get("/{payee_id}", response_model=reference_models.PayeeResponse)
def read_payee(
    payee_id: str,
    db: Session = Depends(get_db),
    family_id: str = Depends(get_family_id)
):
    db_payee = crud_reference.read_db_payee(db=db, family_id=family_id, payee_id=payee_id)
    if db_payee is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Payee not found")
    return db_payee


@router.put("/{payee_id}", response_model=reference_models.PayeeResponse)
def update_payee(
    payee_id: str,
    payee: reference_models.PayeeUpdate,
    db: Session = Depends(get_db),
    family_id: str = Depends(get_family_id)
):
    return crud_reference.update_db_payee(db=db, family_id=family_id, payee_id=payee_id, payee_updates=payee)


@router.delete("/{payee_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_payee(
    payee_id: str,
    db: Session = Depends(get_db),
    family_id: str = Depends(get_family_id)
):
    """
    Delete a payee that no check, expense, loan or debt refers to.
    """
    crud_reference.delete_db_payee(db=db, family_id=family_id, payee_id=payee_id)
