from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from typing import List, Optional

from household_ledger.ledger import goals as ledger
from household_ledger.models import goal as goal_models
from household_ledger.db.core import get_db
from household_ledger.routers.dependencies import get_family_id, get_current_user_id

router = APIRouter(
    prefix="/goals",
    tags=["goals"],
)


@router.post("/", response_model=goal_models.GoalResponse, status_code=status.HTTP_201_CREATED)
def create_goal(
    goal: goal_models.GoalCreate,
    db: Session = Depends(get_db),
    family_id: str = Depends(get_family_id),
    user_id: str = Depends(get_current_user_id)
):
    """
    Create a financial goal, optionally reserving a first contribution.
    """
    return ledger.create_goal(db=db, family_id=family_id, user_id=user_id, goal_data=goal)


@router.get("/", response_model=List[goal_models.GoalResponse])
def read_goals(
    owner_id: Optional[str] = None,
    db: Session = Depends(get_db),
    family_id: str = Depends(get_family_id)
):
    return ledger.read_goals(db=db, family_id=family_id, owner_id=owner_id)


@router.get("/{goal_id}", response_model=goal_models.GoalResponse)
def read_goal(
    goal_id: str,
    db: Session = Depends(get_db),
    family_id: str = Depends(get_family_id)
):
    db_goal = ledger.read_goal(db=db, family_id=family_id, goal_id=goal_id)
    if db_goal is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Goal not found")
    return db_goal


@router.put("/{goal_id}", response_model=goal_models.GoalResponse)
def update_goal(
    goal_id: str,
    goal: goal_models.GoalUpdate,
    db: Session = Depends(get_db),
    family_id: str = Depends(get_family_id)
):
    return ledger.update_goal(db=db, family_id=family_id, goal_id=goal_id, goal_updates=goal)


@router.post("/{goal_id}/contributions", response_model=goal_models.GoalResponse)
def contribute_to_goal(
    goal_id: str,
    contribution: goal_models.GoalContributionCreate,
    db: Session = Depends(get_db),
    family_id: str = Depends(get_family_id)
):
    """
    Reserve money in an account for the goal.
    """
    return ledger.contribute_to_goal(db=db, family_id=family_id, goal_id=goal_id, contribution=contribution)


@router.post("/{goal_id}/achieve", response_model=goal_models.GoalResponse)
def achieve_goal(
    goal_id: str,
    achieve: goal_models.GoalAchieve,
    db: Session = Depends(get_db),
    family_id: str = Depends(get_family_id),
    user_id: str = Depends(get_current_user_id)
):
    """
    Spend the goal's savings, charging any shortfall to the payment account.
    """
    return ledger.achieve_goal(db=db, family_id=family_id, user_id=user_id, goal_id=goal_id, achieve_data=achieve)


@router.post("/{goal_id}/revert", response_model=goal_models.GoalResponse)
def revert_goal(
    goal_id: str,
    db: Session = Depends(get_db),
    family_id: str = Depends(get_family_id)
):
    return ledger.revert_goal(db=db, family_id=family_id, goal_id=goal_id)


@router.delete("/{goal_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_goal(
    goal_id: str,
    db: Session = Depends(get_db),
    family_id: str = Depends(get_family_id)
):
    ledger.delete_goal(db=db, family_id=family_id, goal_id=goal_id)
