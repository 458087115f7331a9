import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from fastapi.testclient import TestClient

from household_ledger.db.core import Base, get_db
from household_ledger.crud.crud_account import create_db_account
from household_ledger.crud.crud_reference import create_db_category, create_db_payee
from household_ledger.models.account import AccountCreate
from household_ledger.models.reference import CategoryCreate, PayeeCreate
from household_ledger.main import app

FAMILY_ID = "test-family"
USER_ID = "tester"


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db(engine):
    session = sessionmaker(autocommit=False, autoflush=False, bind=engine)()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client(engine):
    testing_session = sessionmaker(autocommit=False, autoflush=False, bind=engine)

    def override_get_db():
        database = testing_session()
        try:
            yield database
        finally:
            database.close()

    app.dependency_overrides[get_db] = override_get_db
    test_client = TestClient(app, headers={"X-Family-Id": FAMILY_ID, "X-User-Id": USER_ID})
    yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def make_account(db):
    def _make_account(balance: int = 0, owner_id: str = "ali", bank_name: str = "Test Bank"):
        return create_db_account(db, FAMILY_ID, AccountCreate(
            owner_id=owner_id,
            bank_name=bank_name,
            initial_balance=balance,
        ))
    return _make_account


@pytest.fixture
def category(db):
    return create_db_category(db, FAMILY_ID, CategoryCreate(name="Food & Dining"))


@pytest.fixture
def payee(db):
    return create_db_payee(db, FAMILY_ID, PayeeCreate(name="Landlord"))
