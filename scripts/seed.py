import sys
import os
import random
from argparse import ArgumentParser
from sqlalchemy.orm import Session
from faker import Faker

# Add the project root to the Python path
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from household_ledger.db.core import session_local, engine, Base, BankAccountDB, FAMILY_OWNERS, DEFAULT_FAMILY_ID
from household_ledger.crud.crud_reference import seed_default_categories, read_db_categories, create_db_payee
from household_ledger.crud.crud_account import create_db_account
from household_ledger.ledger.transactions import record_expense, record_income
from household_ledger.exceptions import InsufficientFunds
from household_ledger.models.account import AccountCreate
from household_ledger.models.reference import PayeeCreate
from household_ledger.models.transaction import ExpenseCreate, IncomeCreate
from household_ledger.logging_config import setup_logging

fake = Faker()

SEED_USER_ID = "seed-script"


def seed_sample_data(db: Session, family_id: str, transactions_per_account: int):
    """Create one account per owner plus payees and a history of incomes and expenses"""
    categories = read_db_categories(db, family_id)

    print("Creating payees...")
    payees = [
        create_db_payee(db, family_id, PayeeCreate(name=fake.company(), phone_number=fake.msisdn()[:11]))
        for _ in range(5)
    ]

    print("Creating accounts...")
    accounts = [
        create_db_account(db, family_id, AccountCreate(
            owner_id=owner_id,
            bank_name=fake.company(),
            initial_balance=random.randint(5_000_000, 50_000_000),
        ))
        for owner_id in FAMILY_OWNERS
    ]

    print("Recording incomes and expenses...")
    for account in accounts:
        for _ in range(transactions_per_account):
            when = fake.date_time_between(start_date="-6M", end_date="now")
            if random.random() < 0.3:
                record_income(db, family_id, SEED_USER_ID, IncomeCreate(
                    bank_account_id=account.id,
                    amount=random.randint(1_000_000, 20_000_000),
                    date=when,
                    source=fake.job(),
                ))
                continue
            try:
                record_expense(db, family_id, SEED_USER_ID, ExpenseCreate(
                    bank_account_id=account.id,
                    category_id=random.choice(categories).id,
                    payee_id=random.choice(payees).id,
                    amount=random.randint(50_000, 2_000_000),
                    date=when,
                    description=fake.catch_phrase(),
                ))
            except InsufficientFunds:
                # Account ran dry; keep going with the next one
                break


def seed_database(family_id: str, sample: bool, transactions_per_account: int):
    """
    Creates the default categories for a family and, optionally, sample data.
    """
    Base.metadata.create_all(bind=engine)
    db: Session = session_local()

    try:
        created = seed_default_categories(db, family_id)
        print(f"Created {len(created)} default categories for family '{family_id}'.")

        if sample:
            if db.query(BankAccountDB).filter(BankAccountDB.family_id == family_id).count() > 0:
                print("Family already has accounts; skipping sample data.")
                return
            seed_sample_data(db, family_id, transactions_per_account)

        print("Successfully seeded database.")
    finally:
        db.close()


if __name__ == "__main__":
    parser = ArgumentParser(description="Seed the household ledger database")
    parser.add_argument("--family-id", default=DEFAULT_FAMILY_ID, help="Family namespace to seed")
    parser.add_argument("--sample", action="store_true", help="Also create sample accounts and transactions")
    parser.add_argument("--transactions", type=int, default=20, help="Transactions per sample account")
    args = parser.parse_args()

    setup_logging()
    seed_database(args.family_id, args.sample, args.transactions)
