from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError
from typing import Optional, List
from datetime import datetime

from household_ledger.db.core import (
    BankAccountDB,
    AccountType,
    SHARED_OWNER,
    ExpenseDB,
    IncomeDB,
    TransferDB,
    CheckDB,
    LoanPaymentDB,
    DebtPaymentDB,
)
from household_ledger.exceptions import NotFound, HasDependents
from household_ledger.ledger.unit_of_work import unit_of_work
from household_ledger.models.account import AccountCreate, AccountUpdate
from household_ledger.logging_config import get_logger

logger = get_logger(__name__)


# ===== DATABASE OPERATIONS =====

def create_db_account(db: Session, family_id: str, account_data: AccountCreate) -> BankAccountDB:
    """Create a new bank account; its balance starts at the initial balance"""

    if account_data.owner_id == SHARED_OWNER:
        existing_shared = db.query(BankAccountDB).filter(
            BankAccountDB.family_id == family_id,
            BankAccountDB.owner_id == SHARED_OWNER
        ).first()
        if existing_shared:
            raise ValueError("A shared account already exists for this family")

    db_account = BankAccountDB(
        family_id=family_id,
        owner_id=account_data.owner_id,
        bank_name=account_data.bank_name,
        account_number=account_data.account_number,
        card_number=account_data.card_number,
        expiry_date=account_data.expiry_date,
        account_type=AccountType(account_data.account_type.value),
        theme=account_data.theme.value,
        initial_balance=account_data.initial_balance,
        balance=account_data.initial_balance,
        blocked_balance=0,
        created_at=datetime.utcnow(),
        updated_at=datetime.utcnow()
    )

    try:
        db.add(db_account)
        db.commit()
        db.refresh(db_account)
    except IntegrityError:
        db.rollback()
        raise ValueError("Account creation failed due to database constraint")

    logger.info(f"Created account {db_account.id} for owner {db_account.owner_id} in family {family_id}")
    return db_account


def read_db_account(db: Session, family_id: str, account_id: str) -> Optional[BankAccountDB]:
    return db.query(BankAccountDB).filter(
        BankAccountDB.id == account_id,
        BankAccountDB.family_id == family_id
    ).first()


def read_db_accounts(db: Session, family_id: str, owner_id: Optional[str] = None) -> List[BankAccountDB]:
    """Read a family's accounts, optionally for a single owner"""
    query = db.query(BankAccountDB).filter(BankAccountDB.family_id == family_id)

    if owner_id:
        query = query.filter(BankAccountDB.owner_id == owner_id)

    return query.order_by(BankAccountDB.created_at).all()


def update_db_account(db: Session, family_id: str, account_id: str, account_updates: AccountUpdate) -> BankAccountDB:
    """Update descriptive account fields; balances are never touched here"""

    db_account = read_db_account(db, family_id, account_id)
    if not db_account:
        raise NotFound(f"Account with id {account_id} not found")

    update_data = account_updates.model_dump(exclude_unset=True)

    if update_data.get('owner_id') == SHARED_OWNER and db_account.owner_id != SHARED_OWNER:
        existing_shared = db.query(BankAccountDB).filter(
            BankAccountDB.family_id == family_id,
            BankAccountDB.owner_id == SHARED_OWNER
        ).first()
        if existing_shared:
            raise ValueError("A shared account already exists for this family")

    for field, value in update_data.items():
        if field == 'account_type' and value:
            setattr(db_account, field, AccountType(value.value))
        elif field == 'theme' and value:
            setattr(db_account, field, value.value)
        else:
            setattr(db_account, field, value)

    db_account.updated_at = datetime.utcnow()

    try:
        db.commit()
        db.refresh(db_account)
        return db_account
    except IntegrityError:
        db.rollback()
        raise ValueError("Account update failed due to database constraint")


def delete_db_account(db: Session, family_id: str, account_id: str) -> None:
    """Delete an account only if nothing references it and nothing is reserved on it"""

    dependency_checks = [
        ("expenses", ExpenseDB.bank_account_id, ExpenseDB),
        ("incomes", IncomeDB.bank_account_id, IncomeDB),
        ("transfers (source)", TransferDB.from_bank_account_id, TransferDB),
        ("transfers (destination)", TransferDB.to_bank_account_id, TransferDB),
        ("checks", CheckDB.bank_account_id, CheckDB),
        ("loan payments", LoanPaymentDB.bank_account_id, LoanPaymentDB),
        ("debt payments", DebtPaymentDB.bank_account_id, DebtPaymentDB),
    ]

    with unit_of_work(db):
        db_account = read_db_account(db, family_id, account_id)
        if not db_account:
            raise NotFound(f"Account with id {account_id} not found")

        for name, column, model in dependency_checks:
            if db.query(model).filter(model.family_id == family_id, column == account_id).first():
                raise HasDependents(
                    f"Account is used by one or more {name}",
                    context={"account_id": account_id, "dependency": name},
                )

        if db_account.blocked_balance and db_account.blocked_balance > 0:
            raise HasDependents(
                "Account has funds reserved for financial goals",
                context={"account_id": account_id, "blocked_balance": db_account.blocked_balance},
            )

        db.delete(db_account)

    logger.info(f"Deleted account {account_id} in family {family_id}")
