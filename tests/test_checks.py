from datetime import date

import pytest

from household_ledger.db.core import CheckStatus
from household_ledger.exceptions import InsufficientFunds, InvalidState, NotFound, HasDependents, InvalidOperation
from household_ledger.ledger import checks as ledger
from household_ledger.ledger.transactions import read_expenses, delete_expense
from household_ledger.crud.crud_reference import delete_db_payee, delete_db_category
from household_ledger.models.check import CheckCreate, CheckUpdate
from conftest import FAMILY_ID, USER_ID


@pytest.fixture
def make_check(db, payee, category):
    def _make_check(account, amount):
        return ledger.create_check(db, FAMILY_ID, USER_ID, CheckCreate(
            bank_account_id=account.id,
            payee_id=payee.id,
            category_id=category.id,
            amount=amount,
            issue_date=date(2024, 1, 1),
            due_date=date(2024, 2, 1),
        ))
    return _make_check


def test_new_check_is_pending_and_moves_no_money(make_account, make_check):
    account = make_account(balance=1000, owner_id="fatemeh")

    check = make_check(account, 400)

    assert check.status == CheckStatus.PENDING
    assert check.owner_id == "fatemeh"
    assert account.balance == 1000


def test_check_needs_existing_payee(db, make_account, category):
    account = make_account(balance=1000)

    with pytest.raises(NotFound):
        ledger.create_check(db, FAMILY_ID, USER_ID, CheckCreate(
            bank_account_id=account.id, payee_id="missing", category_id=category.id,
            amount=10, issue_date=date(2024, 1, 1), due_date=date(2024, 1, 2),
        ))


def test_clearing_check_debits_and_links_expense(db, make_account, make_check, payee):
    account = make_account(balance=1000)
    check = make_check(account, 400)

    cleared, expense = ledger.clear_check(db, FAMILY_ID, USER_ID, check.id)

    assert cleared.status == CheckStatus.CLEARED
    assert cleared.cleared_date is not None
    assert account.balance == 600
    assert expense.check_id == check.id
    assert expense.payee_id == payee.id
    assert (expense.balance_before, expense.balance_after) == (1000, 600)
    assert payee.name in expense.description


def test_clearing_check_without_funds_changes_nothing(db, make_account, make_check):
    account = make_account(balance=300)
    check = make_check(account, 400)

    with pytest.raises(InsufficientFunds):
        ledger.clear_check(db, FAMILY_ID, USER_ID, check.id)

    assert account.balance == 300
    assert ledger.read_check(db, FAMILY_ID, check.id).status == CheckStatus.PENDING
    assert read_expenses(db, FAMILY_ID) == []


def test_check_cannot_be_cleared_twice(db, make_account, make_check):
    account = make_account(balance=1000)
    check = make_check(account, 400)
    ledger.clear_check(db, FAMILY_ID, USER_ID, check.id)

    with pytest.raises(InvalidState):
        ledger.clear_check(db, FAMILY_ID, USER_ID, check.id)

    assert account.balance == 600


def test_cleared_check_cannot_be_edited(db, make_account, make_check):
    account = make_account(balance=1000)
    check = make_check(account, 400)

    updated = ledger.update_check(db, FAMILY_ID, check.id, CheckUpdate(amount=500))
    assert updated.amount == 500

    ledger.clear_check(db, FAMILY_ID, USER_ID, check.id)
    with pytest.raises(InvalidState):
        ledger.update_check(db, FAMILY_ID, check.id, CheckUpdate(amount=100))


def test_check_expense_cannot_be_deleted_on_its_own(db, make_account, make_check):
    account = make_account(balance=1000)
    check = make_check(account, 400)
    _, expense = ledger.clear_check(db, FAMILY_ID, USER_ID, check.id)

    with pytest.raises(InvalidOperation):
        delete_expense(db, FAMILY_ID, expense.id)

    assert account.balance == 600


def test_deleting_cleared_check_reverses_its_expense(db, make_account, make_check):
    account = make_account(balance=1000)
    check = make_check(account, 400)
    ledger.clear_check(db, FAMILY_ID, USER_ID, check.id)

    ledger.delete_check(db, FAMILY_ID, check.id)

    assert account.balance == 1000
    assert read_expenses(db, FAMILY_ID) == []
    assert ledger.read_check(db, FAMILY_ID, check.id) is None


def test_deleting_pending_check_is_plain_delete(db, make_account, make_check):
    account = make_account(balance=1000)
    check = make_check(account, 400)

    ledger.delete_check(db, FAMILY_ID, check.id)

    assert account.balance == 1000
    assert ledger.read_checks(db, FAMILY_ID) == []


def test_payee_and_category_in_use_cannot_be_deleted(db, make_account, make_check, payee, category):
    account = make_account(balance=1000)
    make_check(account, 400)

    with pytest.raises(HasDependents):
        delete_db_payee(db, FAMILY_ID, payee.id)
    with pytest.raises(HasDependents):
        delete_db_category(db, FAMILY_ID, category.id)
