from datetime import date

import pytest

from household_ledger.db.core import ExpenseSubType
from household_ledger.exceptions import InvalidAmount, InsufficientFunds, HasDependents, NotFound, InvalidOperation
from household_ledger.ledger import obligations as ledger
from household_ledger.ledger.transactions import record_expense, delete_expense, read_expenses
from household_ledger.crud.crud_reference import create_db_category, read_db_categories, INSTALLMENTS_CATEGORY
from household_ledger.models.obligation import LoanCreate, LoanPaymentCreate, DebtCreate, DebtPaymentCreate
from household_ledger.models.reference import CategoryCreate
from household_ledger.models.transaction import ExpenseCreate
from conftest import FAMILY_ID, USER_ID


def new_loan(db, amount=1000, deposit_to=None, installments=10, payee_id=None):
    return ledger.create_loan(db, FAMILY_ID, USER_ID, LoanCreate(
        title="Car loan",
        owner_id="ali",
        payee_id=payee_id,
        amount=amount,
        installment_amount=amount // installments,
        number_of_installments=installments,
        start_date=date(2024, 1, 1),
        payment_day=15,
        deposit_to_account_id=deposit_to,
    ))


def pay(db, loan, account, amount):
    return ledger.pay_installment(db, FAMILY_ID, USER_ID, loan.id, LoanPaymentCreate(bank_account_id=account.id, amount=amount))


# ===== LOANS =====

def test_new_loan_owes_its_full_amount(db):
    loan = new_loan(db)

    assert loan.remaining_amount == 1000
    assert loan.paid_installments == 0


def test_loan_deposit_credits_account_and_sets_owner(db, make_account):
    account = make_account(balance=100, owner_id="fatemeh")

    loan = new_loan(db, amount=5000, deposit_to=account.id)

    assert account.balance == 5100
    assert loan.owner_id == "fatemeh"


def test_loan_deposit_to_missing_account(db):
    with pytest.raises(NotFound):
        new_loan(db, deposit_to="missing")

    assert ledger.read_loans(db, FAMILY_ID) == []


def test_loan_lender_must_be_a_known_payee(db, make_account):
    account = make_account(balance=0)

    with pytest.raises(NotFound):
        new_loan(db, deposit_to=account.id, payee_id="ghost")

    assert account.balance == 0
    assert ledger.read_loans(db, FAMILY_ID) == []


def test_paying_off_loan_then_overpaying(db, make_account):
    account = make_account(balance=2000)
    loan = new_loan(db, amount=1000)

    loan, payment, expense = pay(db, loan, account, 1000)

    assert loan.remaining_amount == 0
    assert loan.paid_installments == 1
    assert account.balance == 1000
    assert payment.amount == 1000
    assert expense.sub_type == ExpenseSubType.LOAN_PAYMENT
    assert expense.loan_payment_id == payment.id
    assert (expense.balance_before, expense.balance_after) == (2000, 1000)

    with pytest.raises(InvalidAmount):
        pay(db, loan, account, 1)

    assert account.balance == 1000


@pytest.mark.parametrize("amount", [0, -100, 1001])
def test_installment_amount_bounds(db, make_account, amount):
    account = make_account(balance=5000)
    loan = new_loan(db, amount=1000)

    with pytest.raises(InvalidAmount):
        pay(db, loan, account, amount)

    assert account.balance == 5000


def test_installment_needs_available_funds(db, make_account):
    account = make_account(balance=50)
    loan = new_loan(db, amount=1000)

    with pytest.raises(InsufficientFunds):
        pay(db, loan, account, 100)

    loan = ledger.read_loan(db, FAMILY_ID, loan.id)
    assert loan.remaining_amount == 1000
    assert loan.paid_installments == 0
    assert ledger.read_loan_payments(db, FAMILY_ID, loan.id) == []


def test_installment_category_is_found_by_keyword(db, make_account):
    create_db_category(db, FAMILY_ID, CategoryCreate(name="Food"))
    installments = create_db_category(db, FAMILY_ID, CategoryCreate(name="Loan Installments"))
    account = make_account(balance=5000)
    loan = new_loan(db)

    _, _, expense = pay(db, loan, account, 100)

    assert expense.category_id == installments.id


def test_installment_category_is_created_when_none_exist(db, make_account):
    account = make_account(balance=5000)
    loan = new_loan(db)

    _, _, expense = pay(db, loan, account, 100)

    names = [c.name for c in read_db_categories(db, FAMILY_ID)]
    assert names == [INSTALLMENTS_CATEGORY]
    assert expense.category_id is not None


def test_loan_with_payments_cannot_be_deleted(db, make_account):
    account = make_account(balance=5000)
    loan = new_loan(db)
    pay(db, loan, account, 100)

    with pytest.raises(HasDependents):
        ledger.delete_loan(db, FAMILY_ID, loan.id)


def test_installment_expense_cannot_be_deleted_directly(db, make_account):
    account = make_account(balance=5000)
    loan = new_loan(db)
    _, _, expense = pay(db, loan, account, 100)

    with pytest.raises(InvalidOperation):
        delete_expense(db, FAMILY_ID, expense.id)


def test_deleting_unpaid_loan_takes_back_deposit(db, make_account):
    account = make_account(balance=100)
    loan = new_loan(db, amount=1000, deposit_to=account.id)

    ledger.delete_loan(db, FAMILY_ID, loan.id)

    assert account.balance == 100
    assert ledger.read_loan(db, FAMILY_ID, loan.id) is None


def test_deleting_loan_whose_deposit_was_spent_is_rejected(db, make_account, category):
    account = make_account(balance=0)
    loan = new_loan(db, amount=1000, deposit_to=account.id)
    record_expense(db, FAMILY_ID, USER_ID, ExpenseCreate(bank_account_id=account.id, category_id=category.id, amount=600))

    with pytest.raises(InsufficientFunds):
        ledger.delete_loan(db, FAMILY_ID, loan.id)

    assert account.balance == 400
    assert ledger.read_loan(db, FAMILY_ID, loan.id) is not None


# ===== PREVIOUS DEBTS =====

@pytest.fixture
def debt(db, payee):
    return ledger.create_debt(db, FAMILY_ID, USER_ID, DebtCreate(
        owner_id="ali", payee_id=payee.id, description="Borrowed from a friend",
        amount=800, start_date=date(2023, 6, 1),
    ))


def test_paying_debt_books_expense_for_its_payee(db, make_account, debt, payee):
    account = make_account(balance=1000)

    debt, payment, expense = ledger.pay_debt(db, FAMILY_ID, USER_ID, debt.id, DebtPaymentCreate(bank_account_id=account.id, amount=300))

    assert debt.remaining_amount == 500
    assert account.balance == 700
    assert expense.sub_type == ExpenseSubType.DEBT_PAYMENT
    assert expense.debt_payment_id == payment.id
    assert expense.payee_id == payee.id
    assert len(ledger.read_debt_payments(db, FAMILY_ID, debt.id)) == 1


def test_debt_payment_cannot_exceed_remaining(db, make_account, debt):
    account = make_account(balance=5000)

    with pytest.raises(InvalidAmount):
        ledger.pay_debt(db, FAMILY_ID, USER_ID, debt.id, DebtPaymentCreate(bank_account_id=account.id, amount=801))

    assert read_expenses(db, FAMILY_ID) == []


def test_debt_with_payments_cannot_be_deleted(db, make_account, debt):
    account = make_account(balance=1000)
    ledger.pay_debt(db, FAMILY_ID, USER_ID, debt.id, DebtPaymentCreate(bank_account_id=account.id, amount=1))

    with pytest.raises(HasDependents):
        ledger.delete_debt(db, FAMILY_ID, debt.id)


def test_unpaid_debt_can_be_deleted(db, debt):
    ledger.delete_debt(db, FAMILY_ID, debt.id)

    assert ledger.read_debts(db, FAMILY_ID) == []


def test_debt_creditor_must_be_a_known_payee(db):
    with pytest.raises(NotFound):
        ledger.create_debt(db, FAMILY_ID, USER_ID, DebtCreate(
            owner_id="ali", payee_id="ghost", description="Borrowed from a friend",
            amount=800, start_date=date(2023, 6, 1),
        ))

    assert ledger.read_debts(db, FAMILY_ID) == []
