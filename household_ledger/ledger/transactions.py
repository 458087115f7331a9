"""
Expenses, incomes and transfers.

Each write runs in a single unit of work: accounts are locked, the request
is validated against the balances just read, and only then are balances and
records written. Deletions apply the exact inverse movement.
"""
from sqlalchemy.orm import Session
from typing import Optional, List
from datetime import datetime

from household_ledger.db.core import ExpenseDB, IncomeDB, TransferDB, BankAccountDB, CategoryDB, PayeeDB
from household_ledger.exceptions import NotFound, InvalidOperation, InsufficientFunds
from household_ledger.ledger.unit_of_work import unit_of_work
from household_ledger.ledger.accounts import (
    lock_account,
    lock_accounts,
    require_positive,
    require_available,
    require_reference,
    debit,
    credit,
)
from household_ledger.models.transaction import ExpenseCreate, IncomeCreate, TransferCreate
from household_ledger.logging_config import get_logger

logger = get_logger(__name__)


def require_balance_covers_reservations(account: BankAccountDB, amount: int) -> None:
    """Reject a reversal that would leave less than the blocked balance in the account"""
    if account.balance - amount < (account.blocked_balance or 0):
        raise InsufficientFunds(
            f"Reversing {amount} would leave account {account.id} below its reserved funds",
            context={"account_id": account.id, "available": account.available_balance, "amount": amount},
        )


# ===== EXPENSES =====

def record_expense(db: Session, family_id: str, user_id: str, expense_data: ExpenseCreate) -> ExpenseDB:
    """Debit an account and store the expense with its balance snapshot"""
    with unit_of_work(db):
        require_positive(expense_data.amount)
        account = lock_account(db, family_id, expense_data.bank_account_id)
        require_reference(db, CategoryDB, family_id, expense_data.category_id, "Category")
        require_reference(db, PayeeDB, family_id, expense_data.payee_id, "Payee")
        require_available(account, expense_data.amount)

        balance_before, balance_after = debit(account, expense_data.amount)

        db_expense = ExpenseDB(
            family_id=family_id,
            owner_id=account.owner_id,
            registered_by_user_id=user_id,
            bank_account_id=account.id,
            category_id=expense_data.category_id,
            payee_id=expense_data.payee_id,
            amount=expense_data.amount,
            date=expense_data.date,
            description=expense_data.description,
            expense_for=expense_data.expense_for,
            balance_before=balance_before,
            balance_after=balance_after,
            created_at=datetime.utcnow(),
        )
        db.add(db_expense)

    db.refresh(db_expense)
    logger.info(f"Expense {db_expense.id}: -{db_expense.amount} on account {db_expense.bank_account_id}")
    return db_expense


def read_expense(db: Session, family_id: str, expense_id: str) -> Optional[ExpenseDB]:
    return db.query(ExpenseDB).filter(ExpenseDB.family_id == family_id, ExpenseDB.id == expense_id).first()


def read_expenses(db: Session, family_id: str, bank_account_id: Optional[str] = None) -> List[ExpenseDB]:
    query = db.query(ExpenseDB).filter(ExpenseDB.family_id == family_id)
    if bank_account_id:
        query = query.filter(ExpenseDB.bank_account_id == bank_account_id)
    return query.order_by(ExpenseDB.date.desc(), ExpenseDB.created_at.desc()).all()


def reverse_expense(db: Session, family_id: str, db_expense: ExpenseDB) -> None:
    """Credit an expense's amount back to its account and delete it.

    Must be called inside an open unit of work.
    """
    account = lock_account(db, family_id, db_expense.bank_account_id)
    credit(account, db_expense.amount)
    db.delete(db_expense)


def delete_expense(db: Session, family_id: str, expense_id: str) -> None:
    """Delete a manually recorded expense and restore the account balance"""
    with unit_of_work(db):
        db_expense = read_expense(db, family_id, expense_id)
        if not db_expense:
            raise NotFound(f"Expense {expense_id} not found", context={"expense_id": expense_id})
        if db_expense.is_generated:
            raise InvalidOperation(
                "This expense belongs to a check, goal or payment; delete or revert that instead",
                context={"expense_id": expense_id},
            )
        reverse_expense(db, family_id, db_expense)

    logger.info(f"Expense {expense_id} deleted and reversed")


# ===== INCOMES =====

def record_income(db: Session, family_id: str, user_id: str, income_data: IncomeCreate) -> IncomeDB:
    """Credit an account; income never needs a funds check"""
    with unit_of_work(db):
        require_positive(income_data.amount)
        account = lock_account(db, family_id, income_data.bank_account_id)

        balance_before, balance_after = credit(account, income_data.amount)

        db_income = IncomeDB(
            family_id=family_id,
            owner_id=account.owner_id,
            registered_by_user_id=user_id,
            bank_account_id=account.id,
            amount=income_data.amount,
            date=income_data.date,
            source=income_data.source,
            description=income_data.description,
            balance_before=balance_before,
            balance_after=balance_after,
            created_at=datetime.utcnow(),
        )
        db.add(db_income)

    db.refresh(db_income)
    logger.info(f"Income {db_income.id}: +{db_income.amount} on account {db_income.bank_account_id}")
    return db_income


def read_income(db: Session, family_id: str, income_id: str) -> Optional[IncomeDB]:
    return db.query(IncomeDB).filter(IncomeDB.family_id == family_id, IncomeDB.id == income_id).first()


def read_incomes(db: Session, family_id: str, bank_account_id: Optional[str] = None) -> List[IncomeDB]:
    query = db.query(IncomeDB).filter(IncomeDB.family_id == family_id)
    if bank_account_id:
        query = query.filter(IncomeDB.bank_account_id == bank_account_id)
    return query.order_by(IncomeDB.date.desc(), IncomeDB.created_at.desc()).all()


def delete_income(db: Session, family_id: str, income_id: str) -> None:
    with unit_of_work(db):
        db_income = read_income(db, family_id, income_id)
        if not db_income:
            raise NotFound(f"Income {income_id} not found", context={"income_id": income_id})

        account = lock_account(db, family_id, db_income.bank_account_id)
        require_balance_covers_reservations(account, db_income.amount)
        debit(account, db_income.amount)
        db.delete(db_income)

    logger.info(f"Income {income_id} deleted and reversed")


# ===== TRANSFERS =====

def create_transfer(db: Session, family_id: str, user_id: str, transfer_data: TransferCreate) -> TransferDB:
    """Move money between two of the family's accounts"""
    with unit_of_work(db):
        if transfer_data.from_bank_account_id == transfer_data.to_bank_account_id:
            raise InvalidOperation(
                "Source and destination accounts must differ",
                context={"account_id": transfer_data.from_bank_account_id},
            )
        require_positive(transfer_data.amount)

        accounts = lock_accounts(db, family_id, [transfer_data.from_bank_account_id, transfer_data.to_bank_account_id])
        from_account = accounts[transfer_data.from_bank_account_id]
        to_account = accounts[transfer_data.to_bank_account_id]
        require_available(from_account, transfer_data.amount)

        from_before, from_after = debit(from_account, transfer_data.amount)
        to_before, to_after = credit(to_account, transfer_data.amount)

        db_transfer = TransferDB(
            family_id=family_id,
            registered_by_user_id=user_id,
            from_bank_account_id=from_account.id,
            to_bank_account_id=to_account.id,
            amount=transfer_data.amount,
            transfer_date=transfer_data.transfer_date,
            description=transfer_data.description,
            from_account_balance_before=from_before,
            from_account_balance_after=from_after,
            to_account_balance_before=to_before,
            to_account_balance_after=to_after,
            created_at=datetime.utcnow(),
        )
        db.add(db_transfer)

    db.refresh(db_transfer)
    logger.info(
        f"Transfer {db_transfer.id}: {db_transfer.amount} from {db_transfer.from_bank_account_id} "
        f"to {db_transfer.to_bank_account_id}"
    )
    return db_transfer


def read_transfer(db: Session, family_id: str, transfer_id: str) -> Optional[TransferDB]:
    return db.query(TransferDB).filter(TransferDB.family_id == family_id, TransferDB.id == transfer_id).first()


def read_transfers(db: Session, family_id: str) -> List[TransferDB]:
    return (
        db.query(TransferDB)
        .filter(TransferDB.family_id == family_id)
        .order_by(TransferDB.transfer_date.desc(), TransferDB.created_at.desc())
        .all()
    )


def delete_transfer(db: Session, family_id: str, transfer_id: str) -> None:
    """Undo both legs of a transfer and delete it"""
    with unit_of_work(db):
        db_transfer = read_transfer(db, family_id, transfer_id)
        if not db_transfer:
            raise NotFound(f"Transfer {transfer_id} not found", context={"transfer_id": transfer_id})

        accounts = lock_accounts(db, family_id, [db_transfer.from_bank_account_id, db_transfer.to_bank_account_id])
        from_account = accounts[db_transfer.from_bank_account_id]
        to_account = accounts[db_transfer.to_bank_account_id]

        # The destination may already have spent the money it received
        require_available(to_account, db_transfer.amount)

        credit(from_account, db_transfer.amount)
        debit(to_account, db_transfer.amount)
        db.delete(db_transfer)

    logger.info(f"Transfer {transfer_id} deleted and reversed")
