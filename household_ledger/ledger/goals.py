"""
Financial goals: money reserved inside accounts until the goal is bought.

Contributions raise an account's blocked balance without moving money.
Achieving a goal turns the reservations into real expenses (plus a cash
top-up when the actual cost exceeds what was saved); reverting an achieved
goal restores both the balances and the reservations.
"""
from collections import defaultdict
from sqlalchemy.orm import Session
from typing import Optional, List, Dict
from datetime import datetime

from household_ledger.db.core import (
    FinancialGoalDB,
    GoalContributionDB,
    GoalPriority,
    ExpenseDB,
    ExpenseSubType,
    BankAccountDB,
)
from household_ledger.crud.crud_reference import find_or_create_category, GOALS_CATEGORY
from household_ledger.exceptions import NotFound, InvalidState, InvalidOperation
from household_ledger.ledger.unit_of_work import unit_of_work
from household_ledger.ledger.accounts import (
    lock_account,
    lock_accounts,
    require_positive,
    require_available,
    debit,
    credit,
    reserve,
    release,
)
from household_ledger.models.goal import GoalCreate, GoalUpdate, GoalContributionCreate, GoalAchieve
from household_ledger.logging_config import get_logger

logger = get_logger(__name__)


def _get_goal(db: Session, family_id: str, goal_id: str) -> FinancialGoalDB:
    db_goal = read_goal(db, family_id, goal_id)
    if not db_goal:
        raise NotFound(f"Goal {goal_id} not found", context={"goal_id": goal_id})
    return db_goal


def _add_contribution(db: Session, family_id: str, db_goal: FinancialGoalDB, account_id: str, amount: int) -> None:
    require_positive(amount)
    account = lock_account(db, family_id, account_id)
    require_available(account, amount)

    reserve(account, amount)
    db_goal.current_amount = (db_goal.current_amount or 0) + amount
    db_goal.contributions.append(
        GoalContributionDB(bank_account_id=account.id, amount=amount, date=datetime.utcnow())
    )


def _lock_contribution_accounts(
    db: Session, family_id: str, db_goal: FinancialGoalDB, *extra_account_ids: str
) -> Dict[str, BankAccountDB]:
    """Lock every account the goal holds money in, failing before any write if one is gone"""
    account_ids = [contribution.bank_account_id for contribution in db_goal.contributions]
    return lock_accounts(db, family_id, account_ids + list(extra_account_ids))


# ===== GOAL CRUD =====

def create_goal(db: Session, family_id: str, user_id: str, goal_data: GoalCreate) -> FinancialGoalDB:
    """Create a goal, reserving the optional first contribution in the same transaction"""
    with unit_of_work(db):
        db_goal = FinancialGoalDB(
            family_id=family_id,
            owner_id=goal_data.owner_id,
            registered_by_user_id=user_id,
            name=goal_data.name,
            target_amount=goal_data.target_amount,
            current_amount=0,
            actual_cost=0,
            target_date=goal_data.target_date,
            is_achieved=False,
            priority=GoalPriority(goal_data.priority.value),
            created_at=datetime.utcnow(),
        )
        db.add(db_goal)

        if goal_data.initial_contribution_amount > 0:
            _add_contribution(
                db, family_id, db_goal,
                goal_data.initial_contribution_bank_account_id,
                goal_data.initial_contribution_amount,
            )

    db.refresh(db_goal)
    logger.info(f"Goal {db_goal.id} '{db_goal.name}' created with {db_goal.current_amount} saved")
    return db_goal


def read_goal(db: Session, family_id: str, goal_id: str) -> Optional[FinancialGoalDB]:
    return db.query(FinancialGoalDB).filter(FinancialGoalDB.family_id == family_id, FinancialGoalDB.id == goal_id).first()


def read_goals(db: Session, family_id: str, owner_id: Optional[str] = None) -> List[FinancialGoalDB]:
    query = db.query(FinancialGoalDB).filter(FinancialGoalDB.family_id == family_id)
    if owner_id:
        query = query.filter(FinancialGoalDB.owner_id == owner_id)
    return query.order_by(FinancialGoalDB.created_at).all()


def update_goal(db: Session, family_id: str, goal_id: str, goal_updates: GoalUpdate) -> FinancialGoalDB:
    """Edit descriptive fields; saved amounts only change through contributions"""
    with unit_of_work(db):
        db_goal = _get_goal(db, family_id, goal_id)
        update_data = goal_updates.model_dump(exclude_unset=True)
        if 'priority' in update_data and update_data['priority'] is not None:
            update_data['priority'] = GoalPriority(update_data['priority'].value)
        for field, value in update_data.items():
            setattr(db_goal, field, value)

    db.refresh(db_goal)
    return db_goal


# ===== RESERVATIONS =====

def contribute_to_goal(db: Session, family_id: str, goal_id: str, contribution: GoalContributionCreate) -> FinancialGoalDB:
    with unit_of_work(db):
        db_goal = _get_goal(db, family_id, goal_id)
        if db_goal.is_achieved:
            raise InvalidState("Goal is already achieved", context={"goal_id": goal_id})
        _add_contribution(db, family_id, db_goal, contribution.bank_account_id, contribution.amount)

    db.refresh(db_goal)
    logger.info(f"Goal {goal_id}: reserved {contribution.amount} on account {contribution.bank_account_id}")
    return db_goal


def achieve_goal(db: Session, family_id: str, user_id: str, goal_id: str, achieve_data: GoalAchieve) -> FinancialGoalDB:
    """
    Spend a goal's savings.

    Each contribution becomes a saved-portion expense on its account and its
    reservation is released. Whatever the actual cost exceeds the saved
    amount is charged to ``payment_account_id`` as a cash-portion expense.
    """
    with unit_of_work(db):
        db_goal = _get_goal(db, family_id, goal_id)
        if db_goal.is_achieved:
            raise InvalidState("Goal is already achieved", context={"goal_id": goal_id})

        cash_needed = max(0, achieve_data.actual_cost - db_goal.current_amount)
        if cash_needed > 0 and not achieve_data.payment_account_id:
            raise InvalidOperation(
                f"Actual cost exceeds the saved amount by {cash_needed}; a payment account is required",
                context={"goal_id": goal_id, "cash_needed": cash_needed},
            )

        if cash_needed > 0:
            accounts = _lock_contribution_accounts(db, family_id, db_goal, achieve_data.payment_account_id)
            payment_account = accounts[achieve_data.payment_account_id]
            require_available(payment_account, cash_needed)
        else:
            accounts = _lock_contribution_accounts(db, family_id, db_goal)
            payment_account = None

        category = find_or_create_category(db, family_id, GOALS_CATEGORY, "Purchases made from financial goal savings")
        now = datetime.utcnow()

        def add_goal_expense(account: BankAccountDB, amount: int, sub_type: ExpenseSubType, description: str) -> None:
            balance_before, balance_after = debit(account, amount)
            db.add(ExpenseDB(
                family_id=family_id,
                owner_id=account.owner_id,
                registered_by_user_id=user_id,
                bank_account_id=account.id,
                category_id=category.id,
                amount=amount,
                date=now,
                description=description,
                sub_type=sub_type,
                goal_id=db_goal.id,
                balance_before=balance_before,
                balance_after=balance_after,
                created_at=now,
            ))

        for contribution in db_goal.contributions:
            account = accounts[contribution.bank_account_id]
            release(account, contribution.amount)
            add_goal_expense(
                account, contribution.amount, ExpenseSubType.GOAL_SAVED_PORTION,
                f"Goal purchase (saved): {db_goal.name}",
            )

        if payment_account is not None:
            add_goal_expense(
                payment_account, cash_needed, ExpenseSubType.GOAL_CASH_PORTION,
                f"Goal purchase (cash): {db_goal.name}",
            )

        db_goal.is_achieved = True
        db_goal.actual_cost = achieve_data.actual_cost

    db.refresh(db_goal)
    logger.info(f"Goal {goal_id} achieved at cost {db_goal.actual_cost} ({cash_needed} paid in cash)")
    return db_goal


def revert_goal(db: Session, family_id: str, goal_id: str) -> FinancialGoalDB:
    """Undo achieve_goal: refund every goal expense and re-block the contributions"""
    with unit_of_work(db):
        db_goal = _get_goal(db, family_id, goal_id)
        if not db_goal.is_achieved:
            raise InvalidState("Goal is not achieved", context={"goal_id": goal_id})

        goal_expenses = db.query(ExpenseDB).filter(
            ExpenseDB.family_id == family_id,
            ExpenseDB.goal_id == goal_id,
        ).all()

        refunds: Dict[str, int] = defaultdict(int)
        for expense in goal_expenses:
            refunds[expense.bank_account_id] += expense.amount
        reservations: Dict[str, int] = defaultdict(int)
        for contribution in db_goal.contributions:
            reservations[contribution.bank_account_id] += contribution.amount

        # Lock everything first so a missing account aborts before any write
        accounts = lock_accounts(db, family_id, list(refunds) + list(reservations))

        for account_id, amount in refunds.items():
            credit(accounts[account_id], amount)
        for account_id, amount in reservations.items():
            reserve(accounts[account_id], amount)
        for expense in goal_expenses:
            db.delete(expense)

        db_goal.is_achieved = False
        db_goal.actual_cost = 0

    db.refresh(db_goal)
    logger.info(f"Goal {goal_id} reverted")
    return db_goal


def delete_goal(db: Session, family_id: str, goal_id: str) -> None:
    """Delete an open goal, releasing everything it reserved"""
    with unit_of_work(db):
        db_goal = _get_goal(db, family_id, goal_id)
        if db_goal.is_achieved:
            raise InvalidState("Achieved goals must be reverted before deletion", context={"goal_id": goal_id})

        accounts = _lock_contribution_accounts(db, family_id, db_goal)
        for contribution in db_goal.contributions:
            release(accounts[contribution.bank_account_id], contribution.amount)

        db.delete(db_goal)

    logger.info(f"Goal {goal_id} deleted")
