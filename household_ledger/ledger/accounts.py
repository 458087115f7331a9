"""
Balance primitives shared by every ledger operation.

Nothing outside the ledger package writes ``balance`` or ``blocked_balance``;
all operations read accounts through ``lock_account`` or ``lock_accounts``
and then use the helpers below, which validate before they mutate.
"""
from typing import Dict, Iterable, Optional, Tuple

from sqlalchemy.orm import Session

from household_ledger.db.core import BankAccountDB
from household_ledger.exceptions import NotFound, InsufficientFunds, InvalidAmount


def lock_account(db: Session, family_id: str, account_id: str) -> BankAccountDB:
    """Read an account row for update within the current transaction"""
    account = (
        db.query(BankAccountDB)
        .filter(BankAccountDB.id == account_id, BankAccountDB.family_id == family_id)
        .with_for_update()
        .first()
    )
    if not account:
        raise NotFound(f"Bank account {account_id} not found", context={"account_id": account_id})
    return account


def lock_accounts(db: Session, family_id: str, account_ids: Iterable[str]) -> Dict[str, BankAccountDB]:
    """Lock several accounts, always in ascending id order"""
    return {account_id: lock_account(db, family_id, account_id) for account_id in sorted(set(account_ids))}


def require_reference(db: Session, model, family_id: str, ref_id: Optional[str], label: str) -> None:
    """Fail with NotFound unless ``ref_id`` names a row of ``model`` in the family (None is allowed)"""
    if ref_id is None:
        return
    if not db.query(model).filter(model.family_id == family_id, model.id == ref_id).first():
        raise NotFound(f"{label} {ref_id} not found", context={"id": ref_id})


def require_positive(amount: int) -> None:
    if amount <= 0:
        raise InvalidAmount(f"Amount must be greater than zero (got {amount})", context={"amount": amount})


def require_available(account: BankAccountDB, amount: int) -> None:
    available = account.available_balance
    if available < amount:
        raise InsufficientFunds(
            f"Available balance {available} of account {account.id} is less than {amount}",
            context={"account_id": account.id, "available": available, "amount": amount},
        )


def debit(account: BankAccountDB, amount: int) -> Tuple[int, int]:
    """Take money out of the account. Returns (balance_before, balance_after)."""
    before = account.balance
    account.balance = before - amount
    return before, account.balance


def credit(account: BankAccountDB, amount: int) -> Tuple[int, int]:
    """Put money into the account. Returns (balance_before, balance_after)."""
    before = account.balance
    account.balance = before + amount
    return before, account.balance


def reserve(account: BankAccountDB, amount: int) -> None:
    account.blocked_balance = (account.blocked_balance or 0) + amount


def release(account: BankAccountDB, amount: int) -> None:
    account.blocked_balance = (account.blocked_balance or 0) - amount
