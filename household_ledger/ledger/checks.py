from sqlalchemy.orm import Session
from typing import Optional, List, Tuple
from datetime import datetime

from household_ledger.db.core import CheckDB, CheckStatus, ExpenseDB, PayeeDB, CategoryDB
from household_ledger.exceptions import NotFound, InvalidState
from household_ledger.ledger.unit_of_work import unit_of_work
from household_ledger.ledger.accounts import lock_account, require_available, require_reference, debit
from household_ledger.ledger.transactions import reverse_expense
from household_ledger.models.check import CheckCreate, CheckUpdate
from household_ledger.logging_config import get_logger

logger = get_logger(__name__)


def create_check(db: Session, family_id: str, user_id: str, check_data: CheckCreate) -> CheckDB:
    """Register a pending check; no money moves until it is cleared"""
    with unit_of_work(db):
        account = lock_account(db, family_id, check_data.bank_account_id)
        require_reference(db, PayeeDB, family_id, check_data.payee_id, "Payee")
        require_reference(db, CategoryDB, family_id, check_data.category_id, "Category")

        db_check = CheckDB(
            family_id=family_id,
            owner_id=account.owner_id,
            registered_by_user_id=user_id,
            status=CheckStatus.PENDING,
            created_at=datetime.utcnow(),
            **check_data.model_dump(),
        )
        db.add(db_check)

    db.refresh(db_check)
    return db_check


def read_check(db: Session, family_id: str, check_id: str) -> Optional[CheckDB]:
    return db.query(CheckDB).filter(CheckDB.family_id == family_id, CheckDB.id == check_id).first()


def read_checks(db: Session, family_id: str, status: Optional[CheckStatus] = None) -> List[CheckDB]:
    query = db.query(CheckDB).filter(CheckDB.family_id == family_id)
    if status:
        query = query.filter(CheckDB.status == status)
    return query.order_by(CheckDB.due_date).all()


def update_check(db: Session, family_id: str, check_id: str, check_updates: CheckUpdate) -> CheckDB:
    with unit_of_work(db):
        db_check = read_check(db, family_id, check_id)
        if not db_check:
            raise NotFound(f"Check {check_id} not found", context={"check_id": check_id})
        if db_check.status != CheckStatus.PENDING:
            raise InvalidState("Only pending checks can be edited", context={"check_id": check_id})

        update_data = check_updates.model_dump(exclude_unset=True)
        if 'bank_account_id' in update_data:
            account = lock_account(db, family_id, update_data['bank_account_id'])
            db_check.owner_id = account.owner_id
        if 'payee_id' in update_data:
            require_reference(db, PayeeDB, family_id, update_data['payee_id'], "Payee")
        if 'category_id' in update_data:
            require_reference(db, CategoryDB, family_id, update_data['category_id'], "Category")

        for field, value in update_data.items():
            setattr(db_check, field, value)

    db.refresh(db_check)
    return db_check


def clear_check(db: Session, family_id: str, user_id: str, check_id: str) -> Tuple[CheckDB, ExpenseDB]:
    """Pass a pending check: debit its account and record the linked expense"""
    with unit_of_work(db):
        db_check = read_check(db, family_id, check_id)
        if not db_check:
            raise NotFound(f"Check {check_id} not found", context={"check_id": check_id})
        if db_check.status == CheckStatus.CLEARED:
            raise InvalidState("Check has already been cleared", context={"check_id": check_id})

        account = lock_account(db, family_id, db_check.bank_account_id)
        require_available(account, db_check.amount)

        cleared_date = datetime.utcnow()
        balance_before, balance_after = debit(account, db_check.amount)

        db_check.status = CheckStatus.CLEARED
        db_check.cleared_date = cleared_date

        payee = db.query(PayeeDB).filter(PayeeDB.family_id == family_id, PayeeDB.id == db_check.payee_id).first()
        payee_name = payee.name if payee else "unknown payee"

        db_expense = ExpenseDB(
            family_id=family_id,
            owner_id=account.owner_id,
            registered_by_user_id=user_id,
            bank_account_id=account.id,
            category_id=db_check.category_id,
            payee_id=db_check.payee_id,
            amount=db_check.amount,
            date=cleared_date,
            description=f"Check cleared to: {payee_name}",
            check_id=db_check.id,
            balance_before=balance_before,
            balance_after=balance_after,
            created_at=cleared_date,
        )
        db.add(db_expense)

    db.refresh(db_check)
    db.refresh(db_expense)
    logger.info(f"Check {check_id} cleared: -{db_check.amount} on account {db_check.bank_account_id}")
    return db_check, db_expense


def delete_check(db: Session, family_id: str, check_id: str) -> None:
    """Delete a check, first reversing its expense if it was cleared"""
    with unit_of_work(db):
        db_check = read_check(db, family_id, check_id)
        if not db_check:
            raise NotFound(f"Check {check_id} not found", context={"check_id": check_id})

        if db_check.status == CheckStatus.CLEARED:
            linked_expenses = db.query(ExpenseDB).filter(
                ExpenseDB.family_id == family_id,
                ExpenseDB.check_id == check_id
            ).all()
            for db_expense in linked_expenses:
                reverse_expense(db, family_id, db_expense)

        db.delete(db_check)

    logger.info(f"Check {check_id} deleted")
