from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from typing import List

from household_ledger.crud import crud_reference
from household_ledger.models import reference as reference_models
from household_ledger.db.core import get_db
from household_ledger.routers.dependencies import get_family_id

router = APIRouter(
    prefix="/categories",
    tags=["categories"],
)


@router.post("/", response_model=reference_models.CategoryResponse, status_code=status.HTTP_201_CREATED)
def create_category(
    category: reference_models.CategoryCreate,
    db: Session = Depends(get_db),
    family_id: str = Depends(get_family_id)
):
    try:
        return crud_reference.create_db_category(db=db, family_id=family_id, category_data=category)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.post("/defaults", response_model=List[reference_models.CategoryResponse], status_code=status.HTTP_201_CREATED)
def seed_default_categories(
    db: Session = Depends(get_db),
    family_id: str = Depends(get_family_id)
):
    """
    Create the starter category set. Does nothing if the family already has categories.
    """
    return crud_reference.seed_default_categories(db=db, family_id=family_id)


@router.get("/", response_model=List[reference_models.CategoryResponse])
def read_categories(
    db: Session = Depends(get_db),
    family_id: str = Depends(get_family_id)
):
    return crud_reference.read_db_categories(db=db, family_id=family_id)


@router.get("/{category_id}", response_model=reference_models.CategoryResponse)
def read_category(
    category_id: str,
    db: Session = Depends(get_db),
    family_id: str = Depends(get_family_id)
):
    db_category = crud_reference.read_db_category(db=db, family_id=family_id, category_id=category_id)
    if db_category is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Category not found")
    return db_category


@router.put("/{category_id}", response_model=reference_models.CategoryResponse)
def update_category(
    category_id: str,
    category: reference_models.CategoryUpdate,
    db: Session = Depends(get_db),
    family_id: str = Depends(get_family_id)
):
    try:
        return crud_reference.update_db_category(db=db, family_id=family_id, category_id=category_id, category_updates=category)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.delete("/{category_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_category(
    category_id: str,
    db: Session = Depends(get_db),
    family_id: str = Depends(get_family_id)
):
    """
    Delete a category that no expense or check uses.
    """
    crud_reference.delete_db_category(db=db, family_id=family_id, category_id=category_id)
