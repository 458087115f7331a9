"""
Derived Aggregation

Read-only rollups over a LedgerSnapshot: the dashboard summary, balances per
owner, upcoming deadlines and the per-account running ledger. None of these
functions touch the database.
"""
import calendar
from collections import defaultdict
from datetime import date, datetime, timedelta
from typing import Dict, List, Optional, Tuple

from household_ledger.db.core import OWNER_IDS, CheckStatus
from household_ledger.models.summary import (
    DateRange,
    Summary,
    Deadline,
    DeadlineTypeEnum,
    LedgerRow,
    LedgerRowTypeEnum,
    CategorySpending,
    RecentTransaction,
)
from household_ledger.services.ledger_snapshot import LedgerSnapshot

ALL_OWNERS = "all"
UNCATEGORIZED = "Uncategorized"


def _owner_matches(owner_id: str, owner_filter: str) -> bool:
    return owner_filter == ALL_OWNERS or owner_id == owner_filter


def _in_range(value: datetime, date_range: Optional[DateRange]) -> bool:
    return date_range is None or date_range.contains(value)


def _filtered_incomes(snapshot: LedgerSnapshot, owner_filter: str, date_range: Optional[DateRange]):
    return [i for i in snapshot.incomes if _owner_matches(i.owner_id, owner_filter) and _in_range(i.date, date_range)]


def _filtered_expenses(snapshot: LedgerSnapshot, owner_filter: str, date_range: Optional[DateRange]):
    return [e for e in snapshot.expenses if _owner_matches(e.owner_id, owner_filter) and _in_range(e.date, date_range)]


# ===== DATE HELPERS =====

def next_due_date(payment_day: int, today: date) -> date:
    """
    Next date a monthly installment falls due.

    The payment day is clamped to the length of the month, so day 31 falls on
    the 30th in April. A due date equal to today counts as upcoming.
    """
    last_day = calendar.monthrange(today.year, today.month)[1]
    due = today.replace(day=min(payment_day, last_day))
    if due >= today:
        return due

    year, month = (today.year + 1, 1) if today.month == 12 else (today.year, today.month + 1)
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, min(payment_day, last_day))


def preset_date_range(preset: str, today: date) -> DateRange:
    """Named dashboard ranges: this_week, last_week, this_month, last_month, this_year"""
    # Weeks start on Sunday
    week_start = today - timedelta(days=(today.weekday() + 1) % 7)

    if preset == "this_week":
        return DateRange(start=week_start, end=week_start + timedelta(days=6))
    if preset == "last_week":
        start = week_start - timedelta(days=7)
        return DateRange(start=start, end=start + timedelta(days=6))
    if preset == "last_month":
        last_of_previous = today.replace(day=1) - timedelta(days=1)
        return DateRange(start=last_of_previous.replace(day=1), end=last_of_previous)
    if preset == "this_year":
        return DateRange(start=date(today.year, 1, 1), end=date(today.year, 12, 31))
    if preset == "this_month":
        last_day = calendar.monthrange(today.year, today.month)[1]
        return DateRange(start=today.replace(day=1), end=today.replace(day=last_day))
    raise ValueError(f"Unknown date range preset '{preset}'")


# ===== SUMMARY =====

def compute_summary(snapshot: LedgerSnapshot, owner_filter: str = ALL_OWNERS, date_range: Optional[DateRange] = None) -> Summary:
    """
    Totals for the dashboard cards.

    Income and expense totals respect both filters; assets and liabilities
    are current positions and only respect the owner filter.
    """
    total_income = sum(i.amount for i in _filtered_incomes(snapshot, owner_filter, date_range))
    total_expense = sum(e.amount for e in _filtered_expenses(snapshot, owner_filter, date_range))

    total_assets = sum(a.balance for a in snapshot.accounts if _owner_matches(a.owner_id, owner_filter))

    pending_checks_amount = sum(
        c.amount for c in snapshot.checks
        if c.status == CheckStatus.PENDING and _owner_matches(c.owner_id, owner_filter)
    )
    remaining_loan_amount = sum(l.remaining_amount for l in snapshot.loans if _owner_matches(l.owner_id, owner_filter))
    remaining_debts_amount = sum(d.remaining_amount for d in snapshot.debts if _owner_matches(d.owner_id, owner_filter))

    total_liabilities = pending_checks_amount + remaining_loan_amount + remaining_debts_amount

    return Summary(
        total_income=total_income,
        total_expense=total_expense,
        total_assets=total_assets,
        pending_checks_amount=pending_checks_amount,
        remaining_loan_amount=remaining_loan_amount,
        remaining_debts_amount=remaining_debts_amount,
        total_liabilities=total_liabilities,
        net_worth=total_assets - total_liabilities,
    )


def compute_owner_balances(snapshot: LedgerSnapshot) -> Dict[str, int]:
    """Sum of balances per owner; always global, every known owner present"""
    balances: Dict[str, int] = {owner_id: 0 for owner_id in OWNER_IDS}
    for account in snapshot.accounts:
        balances[account.owner_id] = balances.get(account.owner_id, 0) + account.balance
    return balances


# ===== DEADLINES =====

def compute_upcoming_deadlines(snapshot: LedgerSnapshot, today: date, limit: int = 5) -> List[Deadline]:
    payee_names = {p.id: p.name for p in snapshot.payees}

    deadlines = [
        Deadline(
            id=c.id,
            type=DeadlineTypeEnum.CHECK,
            date=c.due_date,
            title=f"Check to {payee_names.get(c.payee_id, 'unknown payee')}",
            amount=c.amount,
        )
        for c in snapshot.checks if c.status == CheckStatus.PENDING
    ]
    deadlines += [
        Deadline(
            id=l.id,
            type=DeadlineTypeEnum.LOAN,
            date=next_due_date(l.payment_day, today),
            title=f"Loan installment: {l.title}",
            amount=l.installment_amount,
        )
        for l in snapshot.loans if l.paid_installments < l.number_of_installments
    ]

    deadlines.sort(key=lambda d: d.date)
    return deadlines[:limit]


# ===== RUNNING LEDGER =====

def compute_running_ledger(snapshot: LedgerSnapshot, account_id: str) -> List[LedgerRow]:
    """
    Every movement on one account, newest first, with balances replayed
    backwards from the account's current balance.

    The stored snapshots on each record are ignored here: replaying keeps the
    history consistent even after older rows have been deleted.
    """
    account = next((a for a in snapshot.accounts if a.id == account_id), None)
    if account is None:
        return []

    # (row type, record, signed amount, date, description)
    movements: List[Tuple[LedgerRowTypeEnum, object, int, datetime, Optional[str]]] = []
    for i in snapshot.incomes:
        if i.bank_account_id == account_id:
            movements.append((LedgerRowTypeEnum.INCOME, i, i.amount, i.date, i.description or i.source))
    for e in snapshot.expenses:
        if e.bank_account_id == account_id:
            movements.append((LedgerRowTypeEnum.EXPENSE, e, -e.amount, e.date, e.description))
    for t in snapshot.transfers:
        if t.from_bank_account_id == account_id:
            movements.append((LedgerRowTypeEnum.TRANSFER_OUT, t, -t.amount, t.transfer_date, t.description))
        if t.to_bank_account_id == account_id:
            movements.append((LedgerRowTypeEnum.TRANSFER_IN, t, t.amount, t.transfer_date, t.description))

    movements.sort(key=lambda m: (m[3], m[1].created_at or m[3]), reverse=True)

    rows = []
    running = account.balance
    for row_type, record, signed_amount, when, description in movements:
        balance_before = running - signed_amount
        rows.append(LedgerRow(
            id=record.id,
            type=row_type,
            date=when,
            amount=abs(signed_amount),
            description=description,
            balance_before=balance_before,
            balance_after=running,
        ))
        running = balance_before
    return rows


# ===== DASHBOARD LISTS =====

def compute_category_spending(
    snapshot: LedgerSnapshot, owner_filter: str = ALL_OWNERS, date_range: Optional[DateRange] = None
) -> List[CategorySpending]:
    """Expense totals per category, largest first"""
    category_names = {c.id: c.name for c in snapshot.categories}
    totals: Dict[Optional[str], int] = defaultdict(int)
    for e in _filtered_expenses(snapshot, owner_filter, date_range):
        totals[e.category_id] += e.amount

    spending = [
        CategorySpending(
            category_id=category_id,
            category_name=category_names.get(category_id, UNCATEGORIZED),
            total=total,
        )
        for category_id, total in totals.items()
    ]
    spending.sort(key=lambda s: s.total, reverse=True)
    return spending


def compute_recent_transactions(
    snapshot: LedgerSnapshot,
    owner_filter: str = ALL_OWNERS,
    date_range: Optional[DateRange] = None,
    limit: int = 10,
) -> List[RecentTransaction]:
    """Incomes and expenses, most recently registered first"""
    transactions = [
        RecentTransaction(
            id=i.id, type=LedgerRowTypeEnum.INCOME, date=i.date, amount=i.amount,
            owner_id=i.owner_id, bank_account_id=i.bank_account_id, description=i.description or i.source,
        )
        for i in _filtered_incomes(snapshot, owner_filter, date_range)
    ]
    created = {i.id: i.created_at or i.date for i in snapshot.incomes}

    for e in _filtered_expenses(snapshot, owner_filter, date_range):
        transactions.append(RecentTransaction(
            id=e.id, type=LedgerRowTypeEnum.EXPENSE, date=e.date, amount=e.amount,
            owner_id=e.owner_id, bank_account_id=e.bank_account_id, description=e.description,
        ))
        created[e.id] = e.created_at or e.date

    transactions.sort(key=lambda t: created[t.id], reverse=True)
    return transactions[:limit]
