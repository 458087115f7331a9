from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from typing import Dict, List, Optional
from datetime import date

from household_ledger.models.summary import Dashboard, DateRange, Summary, Deadline
from household_ledger.db.core import get_db
from household_ledger.routers.dependencies import get_family_id
from household_ledger.services.ledger_snapshot import load_snapshot
from household_ledger.services import aggregation

router = APIRouter(
    prefix="/dashboard",
    tags=["dashboard"],
)


def get_date_range(
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    preset: Optional[str] = None,
) -> Optional[DateRange]:
    """Resolve the dashboard's date filter from explicit dates or a named preset"""
    try:
        if preset:
            return aggregation.preset_date_range(preset, date.today())
        if start_date and end_date:
            return DateRange(start=start_date, end=end_date)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    return None


@router.get("/", response_model=Dashboard)
def read_dashboard(
    owner: str = aggregation.ALL_OWNERS,
    recent_limit: int = 10,
    date_range: Optional[DateRange] = Depends(get_date_range),
    db: Session = Depends(get_db),
    family_id: str = Depends(get_family_id)
):
    """
    Everything the overview page shows, computed from one snapshot.
    """
    snapshot = load_snapshot(db, family_id)
    return Dashboard(
        summary=aggregation.compute_summary(snapshot, owner, date_range),
        owner_balances=aggregation.compute_owner_balances(snapshot),
        upcoming_deadlines=aggregation.compute_upcoming_deadlines(snapshot, date.today()),
        category_spending=aggregation.compute_category_spending(snapshot, owner, date_range),
        recent_transactions=aggregation.compute_recent_transactions(snapshot, owner, date_range, recent_limit),
    )


@router.get("/summary", response_model=Summary)
def read_summary(
    owner: str = aggregation.ALL_OWNERS,
    date_range: Optional[DateRange] = Depends(get_date_range),
    db: Session = Depends(get_db),
    family_id: str = Depends(get_family_id)
):
    return aggregation.compute_summary(load_snapshot(db, family_id), owner, date_range)


@router.get("/owner-balances", response_model=Dict[str, int])
def read_owner_balances(
    db: Session = Depends(get_db),
    family_id: str = Depends(get_family_id)
):
    return aggregation.compute_owner_balances(load_snapshot(db, family_id))


@router.get("/deadlines", response_model=List[Deadline])
def read_upcoming_deadlines(
    limit: int = 5,
    db: Session = Depends(get_db),
    family_id: str = Depends(get_family_id)
):
    return aggregation.compute_upcoming_deadlines(load_snapshot(db, family_id), date.today(), limit)
