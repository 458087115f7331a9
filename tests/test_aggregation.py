from datetime import date, datetime

import pytest

from household_ledger.db.core import (
    BankAccountDB, IncomeDB, ExpenseDB, TransferDB, CheckDB, CheckStatus, LoanDB, PreviousDebtDB, CategoryDB, PayeeDB,
)
from household_ledger.models.summary import DateRange, DeadlineTypeEnum, LedgerRowTypeEnum
from household_ledger.services import aggregation
from household_ledger.services.ledger_snapshot import LedgerSnapshot, load_snapshot
from household_ledger.ledger.transactions import record_expense, record_income, create_transfer
from household_ledger.models.transaction import ExpenseCreate, IncomeCreate, TransferCreate
from conftest import FAMILY_ID, USER_ID


def account(id, owner_id, balance):
    return BankAccountDB(id=id, owner_id=owner_id, balance=balance, blocked_balance=0)


def income(id, account_id, owner_id, amount, when):
    return IncomeDB(id=id, bank_account_id=account_id, owner_id=owner_id, amount=amount, date=when, created_at=when)


def expense(id, account_id, owner_id, amount, when, category_id=None):
    return ExpenseDB(id=id, bank_account_id=account_id, owner_id=owner_id, amount=amount, date=when,
                     created_at=when, category_id=category_id)


@pytest.fixture
def snapshot():
    return LedgerSnapshot(
        accounts=[account("a1", "ali", 5000), account("a2", "fatemeh", 3000), account("a3", "shared", 2000)],
        incomes=[
            income("i1", "a1", "ali", 4000, datetime(2024, 3, 1)),
            income("i2", "a2", "fatemeh", 1000, datetime(2024, 4, 10)),
        ],
        expenses=[
            expense("e1", "a1", "ali", 300, datetime(2024, 3, 5), "food"),
            expense("e2", "a2", "fatemeh", 200, datetime(2024, 3, 20), "food"),
            expense("e3", "a1", "ali", 700, datetime(2024, 4, 2), "rent"),
        ],
        checks=[
            CheckDB(id="c1", owner_id="ali", payee_id="p1", amount=900, due_date=date(2024, 5, 20), status=CheckStatus.PENDING),
            CheckDB(id="c2", owner_id="fatemeh", payee_id="p1", amount=100, due_date=date(2024, 5, 1), status=CheckStatus.CLEARED),
        ],
        loans=[
            LoanDB(id="l1", owner_id="ali", title="Car", remaining_amount=2500, installment_amount=250,
                   payment_day=10, paid_installments=2, number_of_installments=12),
            LoanDB(id="l2", owner_id="fatemeh", title="Done", remaining_amount=0, installment_amount=100,
                   payment_day=1, paid_installments=5, number_of_installments=5),
        ],
        debts=[PreviousDebtDB(id="d1", owner_id="fatemeh", remaining_amount=400)],
        categories=[CategoryDB(id="food", name="Food"), CategoryDB(id="rent", name="Housing")],
        payees=[PayeeDB(id="p1", name="Landlord")],
    )


# ===== SUMMARY =====

def test_summary_for_whole_family(snapshot):
    summary = aggregation.compute_summary(snapshot)

    assert summary.total_income == 5000
    assert summary.total_expense == 1200
    assert summary.total_assets == 10000
    assert summary.pending_checks_amount == 900
    assert summary.remaining_loan_amount == 2500
    assert summary.remaining_debts_amount == 400
    assert summary.total_liabilities == 3800
    assert summary.net_worth == 6200


def test_summary_for_one_owner(snapshot):
    summary = aggregation.compute_summary(snapshot, owner_filter="fatemeh")

    assert summary.total_income == 1000
    assert summary.total_expense == 200
    assert summary.total_assets == 3000
    assert summary.pending_checks_amount == 0
    assert summary.total_liabilities == 400
    assert summary.net_worth == 2600


def test_summary_date_range_is_inclusive(snapshot):
    march = DateRange(start=date(2024, 3, 1), end=date(2024, 3, 20))

    summary = aggregation.compute_summary(snapshot, date_range=march)

    assert summary.total_income == 4000
    assert summary.total_expense == 500
    # Positions ignore the date range
    assert summary.total_assets == 10000


def test_date_range_must_be_ordered():
    with pytest.raises(ValueError):
        DateRange(start=date(2024, 2, 1), end=date(2024, 1, 1))


def test_owner_balances_include_every_owner():
    snapshot = LedgerSnapshot(accounts=[account("a1", "ali", 100), account("a2", "ali", 50)])

    assert aggregation.compute_owner_balances(snapshot) == {"ali": 150, "fatemeh": 0, "shared": 0}


# ===== DEADLINES =====

@pytest.mark.parametrize("payment_day, today, expected", [
    (15, date(2024, 3, 10), date(2024, 3, 15)),
    (10, date(2024, 3, 10), date(2024, 3, 10)),
    (5, date(2024, 3, 10), date(2024, 4, 5)),
    (31, date(2024, 4, 2), date(2024, 4, 30)),
    (31, date(2024, 2, 10), date(2024, 2, 29)),
    (5, date(2024, 12, 20), date(2025, 1, 5)),
    (30, date(2024, 1, 31), date(2024, 2, 29)),
])
def test_next_due_date(payment_day, today, expected):
    assert aggregation.next_due_date(payment_day, today) == expected


def test_upcoming_deadlines(snapshot):
    deadlines = aggregation.compute_upcoming_deadlines(snapshot, today=date(2024, 5, 12))

    assert [(d.type, d.id, d.date) for d in deadlines] == [
        (DeadlineTypeEnum.CHECK, "c1", date(2024, 5, 20)),
        (DeadlineTypeEnum.LOAN, "l1", date(2024, 6, 10)),
    ]
    assert deadlines[0].title == "Check to Landlord"
    assert deadlines[1].amount == 250


def test_upcoming_deadlines_are_limited():
    snapshot = LedgerSnapshot(checks=[
        CheckDB(id=f"c{i}", payee_id="x", amount=1, due_date=date(2024, 1, i + 1), status=CheckStatus.PENDING)
        for i in range(8)
    ])

    deadlines = aggregation.compute_upcoming_deadlines(snapshot, today=date(2024, 1, 1))

    assert [d.id for d in deadlines] == ["c0", "c1", "c2", "c3", "c4"]
    assert deadlines[0].title == "Check to unknown payee"


# ===== RUNNING LEDGER =====

def test_running_ledger_replays_from_current_balance():
    snapshot = LedgerSnapshot(
        accounts=[account("a1", "ali", 1300), account("a2", "fatemeh", 0)],
        incomes=[income("i1", "a1", "ali", 1000, datetime(2024, 1, 1))],
        expenses=[expense("e1", "a1", "ali", 200, datetime(2024, 1, 3))],
        transfers=[
            TransferDB(id="t1", from_bank_account_id="a2", to_bank_account_id="a1", amount=500,
                       transfer_date=datetime(2024, 1, 2), created_at=datetime(2024, 1, 2)),
        ],
    )

    rows = aggregation.compute_running_ledger(snapshot, "a1")

    assert [(r.id, r.type, r.balance_before, r.balance_after) for r in rows] == [
        ("e1", LedgerRowTypeEnum.EXPENSE, 1500, 1300),
        ("t1", LedgerRowTypeEnum.TRANSFER_IN, 1000, 1500),
        ("i1", LedgerRowTypeEnum.INCOME, 0, 1000),
    ]

    other = aggregation.compute_running_ledger(snapshot, "a2")
    assert [(r.type, r.balance_before, r.balance_after) for r in other] == [
        (LedgerRowTypeEnum.TRANSFER_OUT, 500, 0),
    ]


def test_running_ledger_breaks_same_day_ties_by_creation_time():
    day = datetime(2024, 1, 1)
    snapshot = LedgerSnapshot(
        accounts=[account("a1", "ali", 50)],
        expenses=[
            ExpenseDB(id="first", bank_account_id="a1", owner_id="ali", amount=30, date=day, created_at=datetime(2024, 1, 1, 9)),
            ExpenseDB(id="second", bank_account_id="a1", owner_id="ali", amount=20, date=day, created_at=datetime(2024, 1, 1, 18)),
        ],
    )

    rows = aggregation.compute_running_ledger(snapshot, "a1")

    assert [(r.id, r.balance_before, r.balance_after) for r in rows] == [("second", 70, 50), ("first", 100, 70)]


def test_running_ledger_for_unknown_account(snapshot):
    assert aggregation.compute_running_ledger(snapshot, "missing") == []


# ===== DASHBOARD LISTS =====

def test_category_spending_sorted_by_total(snapshot):
    spending = aggregation.compute_category_spending(snapshot)

    assert [(s.category_name, s.total) for s in spending] == [("Housing", 700), ("Food", 500)]


def test_recent_transactions_newest_first(snapshot):
    recent = aggregation.compute_recent_transactions(snapshot, limit=3)

    assert [t.id for t in recent] == ["i2", "e3", "e2"]


def test_preset_date_ranges():
    today = date(2024, 3, 14)  # Thursday

    assert aggregation.preset_date_range("this_month", today) == DateRange(start=date(2024, 3, 1), end=date(2024, 3, 31))
    assert aggregation.preset_date_range("last_month", today) == DateRange(start=date(2024, 2, 1), end=date(2024, 2, 29))
    assert aggregation.preset_date_range("this_week", today) == DateRange(start=date(2024, 3, 10), end=date(2024, 3, 16))
    assert aggregation.preset_date_range("this_year", today).end == date(2024, 12, 31)
    with pytest.raises(ValueError):
        aggregation.preset_date_range("someday", today)


# ===== SNAPSHOT FROM THE DATABASE =====

def test_running_ledger_matches_stored_snapshots(db, make_account, category):
    a = make_account(balance=1000)
    b = make_account(balance=0, owner_id="fatemeh")
    record_income(db, FAMILY_ID, USER_ID, IncomeCreate(bank_account_id=a.id, amount=500, date=datetime(2024, 1, 1)))
    create_transfer(db, FAMILY_ID, USER_ID, TransferCreate(from_bank_account_id=a.id, to_bank_account_id=b.id, amount=300,
                                                           transfer_date=datetime(2024, 1, 2)))
    stored = record_expense(db, FAMILY_ID, USER_ID, ExpenseCreate(bank_account_id=a.id, category_id=category.id, amount=100,
                                                                  date=datetime(2024, 1, 3)))

    snapshot = load_snapshot(db, FAMILY_ID)
    rows = aggregation.compute_running_ledger(snapshot, a.id)

    assert len(snapshot.accounts) == 2
    assert (rows[0].balance_before, rows[0].balance_after) == (stored.balance_before, stored.balance_after)
    assert rows[-1].balance_before == 1000
    assert load_snapshot(db, "other-family").accounts == []
