"""
Loans and previous debts: amortizing obligations paid down from accounts.

Payment history is append-only. A loan or debt can only be deleted while no
payment has been made against it.
"""
from sqlalchemy.orm import Session
from typing import Optional, List, Tuple
from datetime import datetime

from household_ledger.db.core import (
    LoanDB,
    LoanPaymentDB,
    PreviousDebtDB,
    DebtPaymentDB,
    ExpenseDB,
    ExpenseSubType,
    PayeeDB,
)
from household_ledger.crud.crud_reference import find_category_by_keyword
from household_ledger.exceptions import NotFound, InvalidAmount, HasDependents
from household_ledger.ledger.unit_of_work import unit_of_work
from household_ledger.ledger.accounts import (
    lock_account,
    require_positive,
    require_available,
    require_reference,
    debit,
    credit,
)
from household_ledger.ledger.transactions import require_balance_covers_reservations
from household_ledger.models.obligation import LoanCreate, LoanPaymentCreate, DebtCreate, DebtPaymentCreate
from household_ledger.logging_config import get_logger

logger = get_logger(__name__)

LOAN_CATEGORY_KEYWORD = "install"
DEBT_CATEGORY_KEYWORD = "debt"


def _require_payable(amount: int, remaining_amount: int) -> None:
    require_positive(amount)
    if amount > remaining_amount:
        raise InvalidAmount(
            f"Payment of {amount} exceeds the remaining amount {remaining_amount}",
            context={"amount": amount, "remaining_amount": remaining_amount},
        )


# ===== LOANS =====

def create_loan(db: Session, family_id: str, user_id: str, loan_data: LoanCreate) -> LoanDB:
    """Register a loan, optionally depositing its principal into an account"""
    with unit_of_work(db):
        owner_id = loan_data.owner_id
        require_reference(db, PayeeDB, family_id, loan_data.payee_id, "Payee")
        if loan_data.deposit_to_account_id:
            account = lock_account(db, family_id, loan_data.deposit_to_account_id)
            credit(account, loan_data.amount)
            owner_id = account.owner_id

        db_loan = LoanDB(
            family_id=family_id,
            owner_id=owner_id,
            registered_by_user_id=user_id,
            payee_id=loan_data.payee_id,
            title=loan_data.title,
            amount=loan_data.amount,
            installment_amount=loan_data.installment_amount,
            remaining_amount=loan_data.amount,
            start_date=loan_data.start_date,
            payment_day=loan_data.payment_day,
            number_of_installments=loan_data.number_of_installments,
            paid_installments=0,
            deposit_to_account_id=loan_data.deposit_to_account_id,
            created_at=datetime.utcnow(),
        )
        db.add(db_loan)

    db.refresh(db_loan)
    logger.info(f"Loan {db_loan.id} created for {db_loan.amount}")
    return db_loan


def read_loan(db: Session, family_id: str, loan_id: str) -> Optional[LoanDB]:
    return db.query(LoanDB).filter(LoanDB.family_id == family_id, LoanDB.id == loan_id).first()


def read_loans(db: Session, family_id: str) -> List[LoanDB]:
    return db.query(LoanDB).filter(LoanDB.family_id == family_id).order_by(LoanDB.start_date).all()


def read_loan_payments(db: Session, family_id: str, loan_id: str) -> List[LoanPaymentDB]:
    if not read_loan(db, family_id, loan_id):
        raise NotFound(f"Loan {loan_id} not found", context={"loan_id": loan_id})
    return db.query(LoanPaymentDB).filter(LoanPaymentDB.loan_id == loan_id).order_by(LoanPaymentDB.payment_date).all()


def pay_installment(
    db: Session, family_id: str, user_id: str, loan_id: str, payment_data: LoanPaymentCreate
) -> Tuple[LoanDB, LoanPaymentDB, ExpenseDB]:
    """Pay one installment from an account and book it as an expense"""
    with unit_of_work(db):
        db_loan = read_loan(db, family_id, loan_id)
        if not db_loan:
            raise NotFound(f"Loan {loan_id} not found", context={"loan_id": loan_id})
        account = lock_account(db, family_id, payment_data.bank_account_id)

        _require_payable(payment_data.amount, db_loan.remaining_amount)
        require_available(account, payment_data.amount)

        now = datetime.utcnow()
        balance_before, balance_after = debit(account, payment_data.amount)
        db_loan.paid_installments += 1
        db_loan.remaining_amount -= payment_data.amount

        db_payment = LoanPaymentDB(
            family_id=family_id,
            registered_by_user_id=user_id,
            loan_id=db_loan.id,
            bank_account_id=account.id,
            amount=payment_data.amount,
            payment_date=now,
        )
        db.add(db_payment)
        db.flush()

        category = find_category_by_keyword(db, family_id, LOAN_CATEGORY_KEYWORD)
        db_expense = ExpenseDB(
            family_id=family_id,
            owner_id=account.owner_id,
            registered_by_user_id=user_id,
            bank_account_id=account.id,
            category_id=category.id,
            payee_id=db_loan.payee_id,
            amount=payment_data.amount,
            date=now,
            description=f"Loan installment: {db_loan.title}",
            sub_type=ExpenseSubType.LOAN_PAYMENT,
            loan_payment_id=db_payment.id,
            balance_before=balance_before,
            balance_after=balance_after,
            created_at=now,
        )
        db.add(db_expense)

    for row in (db_loan, db_payment, db_expense):
        db.refresh(row)
    logger.info(f"Loan {loan_id} installment {db_loan.paid_installments} paid: {payment_data.amount}")
    return db_loan, db_payment, db_expense


def delete_loan(db: Session, family_id: str, loan_id: str) -> None:
    """Delete an unpaid loan, taking back the principal if it was deposited"""
    with unit_of_work(db):
        db_loan = read_loan(db, family_id, loan_id)
        if not db_loan:
            raise NotFound(f"Loan {loan_id} not found", context={"loan_id": loan_id})
        if db_loan.paid_installments > 0:
            raise HasDependents(
                "Loan has payment history and cannot be deleted",
                context={"loan_id": loan_id, "paid_installments": db_loan.paid_installments},
            )

        if db_loan.deposit_to_account_id:
            account = lock_account(db, family_id, db_loan.deposit_to_account_id)
            require_balance_covers_reservations(account, db_loan.amount)
            debit(account, db_loan.amount)

        db.delete(db_loan)

    logger.info(f"Loan {loan_id} deleted")


# ===== PREVIOUS DEBTS =====

def create_debt(db: Session, family_id: str, user_id: str, debt_data: DebtCreate) -> PreviousDebtDB:
    with unit_of_work(db):
        require_reference(db, PayeeDB, family_id, debt_data.payee_id, "Payee")
        db_debt = PreviousDebtDB(
            family_id=family_id,
            registered_by_user_id=user_id,
            remaining_amount=debt_data.amount,
            created_at=datetime.utcnow(),
            **debt_data.model_dump(),
        )
        db.add(db_debt)

    db.refresh(db_debt)
    return db_debt


def read_debt(db: Session, family_id: str, debt_id: str) -> Optional[PreviousDebtDB]:
    return db.query(PreviousDebtDB).filter(PreviousDebtDB.family_id == family_id, PreviousDebtDB.id == debt_id).first()


def read_debts(db: Session, family_id: str) -> List[PreviousDebtDB]:
    return db.query(PreviousDebtDB).filter(PreviousDebtDB.family_id == family_id).order_by(PreviousDebtDB.start_date).all()


def read_debt_payments(db: Session, family_id: str, debt_id: str) -> List[DebtPaymentDB]:
    if not read_debt(db, family_id, debt_id):
        raise NotFound(f"Debt {debt_id} not found", context={"debt_id": debt_id})
    return db.query(DebtPaymentDB).filter(DebtPaymentDB.debt_id == debt_id).order_by(DebtPaymentDB.payment_date).all()


def pay_debt(
    db: Session, family_id: str, user_id: str, debt_id: str, payment_data: DebtPaymentCreate
) -> Tuple[PreviousDebtDB, DebtPaymentDB, ExpenseDB]:
    with unit_of_work(db):
        db_debt = read_debt(db, family_id, debt_id)
        if not db_debt:
            raise NotFound(f"Debt {debt_id} not found", context={"debt_id": debt_id})
        account = lock_account(db, family_id, payment_data.bank_account_id)

        _require_payable(payment_data.amount, db_debt.remaining_amount)
        require_available(account, payment_data.amount)

        now = datetime.utcnow()
        balance_before, balance_after = debit(account, payment_data.amount)
        db_debt.remaining_amount -= payment_data.amount

        db_payment = DebtPaymentDB(
            family_id=family_id,
            registered_by_user_id=user_id,
            debt_id=db_debt.id,
            bank_account_id=account.id,
            amount=payment_data.amount,
            payment_date=now,
        )
        db.add(db_payment)
        db.flush()

        category = find_category_by_keyword(db, family_id, DEBT_CATEGORY_KEYWORD)
        db_expense = ExpenseDB(
            family_id=family_id,
            owner_id=account.owner_id,
            registered_by_user_id=user_id,
            bank_account_id=account.id,
            category_id=category.id,
            payee_id=db_debt.payee_id,
            amount=payment_data.amount,
            date=now,
            description=f"Debt payment: {db_debt.description}",
            sub_type=ExpenseSubType.DEBT_PAYMENT,
            debt_payment_id=db_payment.id,
            balance_before=balance_before,
            balance_after=balance_after,
            created_at=now,
        )
        db.add(db_expense)

    for row in (db_debt, db_payment, db_expense):
        db.refresh(row)
    logger.info(f"Debt {debt_id} paid down by {payment_data.amount}, {db_debt.remaining_amount} remaining")
    return db_debt, db_payment, db_expense


def delete_debt(db: Session, family_id: str, debt_id: str) -> None:
    with unit_of_work(db):
        db_debt = read_debt(db, family_id, debt_id)
        if not db_debt:
            raise NotFound(f"Debt {debt_id} not found", context={"debt_id": debt_id})
        if db_debt.remaining_amount < db_debt.amount:
            raise HasDependents("Debt has payment history and cannot be deleted", context={"debt_id": debt_id})

        db.delete(db_debt)

    logger.info(f"Debt {debt_id} deleted")
