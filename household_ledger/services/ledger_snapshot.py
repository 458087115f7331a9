"""
Ledger Snapshot

Reads every collection of a family once so that the aggregation functions
can work on a consistent, in-memory view without touching the database.
"""
from dataclasses import dataclass, field
from typing import List

from sqlalchemy.orm import Session

from household_ledger.db.core import (
    BankAccountDB,
    IncomeDB,
    ExpenseDB,
    TransferDB,
    CheckDB,
    LoanDB,
    LoanPaymentDB,
    PreviousDebtDB,
    DebtPaymentDB,
    FinancialGoalDB,
    CategoryDB,
    PayeeDB,
)


@dataclass
class LedgerSnapshot:
    accounts: List[BankAccountDB] = field(default_factory=list)
    incomes: List[IncomeDB] = field(default_factory=list)
    expenses: List[ExpenseDB] = field(default_factory=list)
    transfers: List[TransferDB] = field(default_factory=list)
    checks: List[CheckDB] = field(default_factory=list)
    loans: List[LoanDB] = field(default_factory=list)
    loan_payments: List[LoanPaymentDB] = field(default_factory=list)
    debts: List[PreviousDebtDB] = field(default_factory=list)
    debt_payments: List[DebtPaymentDB] = field(default_factory=list)
    goals: List[FinancialGoalDB] = field(default_factory=list)
    categories: List[CategoryDB] = field(default_factory=list)
    payees: List[PayeeDB] = field(default_factory=list)


def load_snapshot(db: Session, family_id: str) -> LedgerSnapshot:
    """Load all of a family's rows; the session's open transaction gives one consistent read"""
    return LedgerSnapshot(
        accounts=db.query(BankAccountDB).filter(BankAccountDB.family_id == family_id).all(),
        incomes=db.query(IncomeDB).filter(IncomeDB.family_id == family_id).all(),
        expenses=db.query(ExpenseDB).filter(ExpenseDB.family_id == family_id).all(),
        transfers=db.query(TransferDB).filter(TransferDB.family_id == family_id).all(),
        checks=db.query(CheckDB).filter(CheckDB.family_id == family_id).all(),
        loans=db.query(LoanDB).filter(LoanDB.family_id == family_id).all(),
        loan_payments=db.query(LoanPaymentDB).filter(LoanPaymentDB.family_id == family_id).all(),
        debts=db.query(PreviousDebtDB).filter(PreviousDebtDB.family_id == family_id).all(),
        debt_payments=db.query(DebtPaymentDB).filter(DebtPaymentDB.family_id == family_id).all(),
        goals=db.query(FinancialGoalDB).filter(FinancialGoalDB.family_id == family_id).all(),
        categories=db.query(CategoryDB).filter(CategoryDB.family_id == family_id).all(),
        payees=db.query(PayeeDB).filter(PayeeDB.family_id == family_id).all(),
    )
