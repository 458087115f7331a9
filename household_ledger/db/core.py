import os
import enum
from typing import Optional, List
from uuid import uuid4
from datetime import datetime, date

from sqlalchemy import event, create_engine, ForeignKey, Index, UniqueConstraint, Integer, BigInteger, String, Text, Boolean, DateTime, Date
from sqlalchemy.types import Enum
from sqlalchemy.orm import sessionmaker, DeclarativeBase, Mapped, relationship, mapped_column


DATABASE_URL = os.environ.get("DATABASE_URL", "sqlite:///household_ledger.db")
DEFAULT_FAMILY_ID = os.environ.get("DEFAULT_FAMILY_ID", "shared-data")

# Owners of accounts and obligations; "shared" is the joint pseudo-owner.
SHARED_OWNER = "shared"
FAMILY_OWNERS = [o.strip() for o in os.environ.get("FAMILY_OWNERS", "ali,fatemeh").split(",") if o.strip()]
OWNER_IDS = FAMILY_OWNERS + [SHARED_OWNER]


def new_id() -> str:
    return uuid4().hex


class Base(DeclarativeBase):
    pass


class AccountType(str, enum.Enum):
    CHECKING = "checking"
    SAVINGS = "savings"


class CheckStatus(str, enum.Enum):
    PENDING = "pending"
    CLEARED = "cleared"


class ExpenseSubType(str, enum.Enum):
    GOAL_SAVED_PORTION = "goal_saved_portion"
    GOAL_CASH_PORTION = "goal_cash_portion"
    DEBT_PAYMENT = "debt_payment"
    LOAN_PAYMENT = "loan_payment"


class GoalPriority(str, enum.Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class BankAccountDB(Base):
    __tablename__ = "bank_accounts"

    __table_args__ = (
        Index("idx_bank_accounts_family", "family_id"),
        Index("idx_bank_accounts_family_owner", "family_id", "owner_id"),
    )

    # Core Account Identification
    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=new_id)
    family_id: Mapped[str] = mapped_column(String(64), nullable=False)
    owner_id: Mapped[str] = mapped_column(String(32), nullable=False)

    # Card Details
    bank_name: Mapped[str] = mapped_column(String(255), nullable=False)
    account_number: Mapped[Optional[str]] = mapped_column(String(34))
    card_number: Mapped[Optional[str]] = mapped_column(String(19))
    expiry_date: Mapped[Optional[str]] = mapped_column(String(5))  # MM/YY
    account_type: Mapped[AccountType] = mapped_column(Enum(AccountType), default=AccountType.CHECKING)
    theme: Mapped[str] = mapped_column(String(20), default="blue")

    # Balance Tracking (integer minor units)
    initial_balance: Mapped[int] = mapped_column(BigInteger, default=0)
    balance: Mapped[int] = mapped_column(BigInteger, default=0)
    blocked_balance: Mapped[int] = mapped_column(BigInteger, default=0)

    # Audit Trail
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    @property
    def available_balance(self) -> int:
        return self.balance - (self.blocked_balance or 0)


class CategoryDB(Base):
    __tablename__ = "categories"

    __table_args__ = (
        UniqueConstraint("family_id", "name", name="uq_family_category_name"),
    )

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=new_id)
    family_id: Mapped[str] = mapped_column(String(64), nullable=False)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(String(500))


class PayeeDB(Base):
    __tablename__ = "payees"

    __table_args__ = (
        Index("idx_payees_family", "family_id"),
    )

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=new_id)
    family_id: Mapped[str] = mapped_column(String(64), nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    phone_number: Mapped[Optional[str]] = mapped_column(String(32))


class IncomeDB(Base):
    __tablename__ = "incomes"

    __table_args__ = (
        Index("idx_incomes_family_date", "family_id", "date"),
        Index("idx_incomes_account", "bank_account_id"),
    )

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=new_id)
    family_id: Mapped[str] = mapped_column(String(64), nullable=False)
    owner_id: Mapped[str] = mapped_column(String(32), nullable=False)
    registered_by_user_id: Mapped[str] = mapped_column(String(128), nullable=False)
    bank_account_id: Mapped[str] = mapped_column(String(32), nullable=False)

    # Income Data
    amount: Mapped[int] = mapped_column(BigInteger, nullable=False)
    date: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    source: Mapped[Optional[str]] = mapped_column(String(255))
    description: Mapped[Optional[str]] = mapped_column(String(500))

    # Balance Snapshot
    balance_before: Mapped[Optional[int]] = mapped_column(BigInteger)
    balance_after: Mapped[Optional[int]] = mapped_column(BigInteger)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)


class ExpenseDB(Base):
    __tablename__ = "expenses"

    __table_args__ = (
        Index("idx_expenses_family_date", "family_id", "date"),
        Index("idx_expenses_account", "bank_account_id"),
        Index("idx_expenses_check", "check_id"),
        Index("idx_expenses_goal", "goal_id"),
    )

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=new_id)
    family_id: Mapped[str] = mapped_column(String(64), nullable=False)
    owner_id: Mapped[str] = mapped_column(String(32), nullable=False)
    registered_by_user_id: Mapped[str] = mapped_column(String(128), nullable=False)
    bank_account_id: Mapped[str] = mapped_column(String(32), nullable=False)
    category_id: Mapped[Optional[str]] = mapped_column(String(32))
    payee_id: Mapped[Optional[str]] = mapped_column(String(32))

    # Expense Data
    amount: Mapped[int] = mapped_column(BigInteger, nullable=False)
    date: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    description: Mapped[Optional[str]] = mapped_column(String(500))
    sub_type: Mapped[Optional[ExpenseSubType]] = mapped_column(Enum(ExpenseSubType))
    expense_for: Mapped[Optional[str]] = mapped_column(String(32))

    # Links to the entity that generated this expense
    check_id: Mapped[Optional[str]] = mapped_column(String(32))
    goal_id: Mapped[Optional[str]] = mapped_column(String(32))
    loan_payment_id: Mapped[Optional[str]] = mapped_column(String(32))
    debt_payment_id: Mapped[Optional[str]] = mapped_column(String(32))

    # Balance Snapshot
    balance_before: Mapped[Optional[int]] = mapped_column(BigInteger)
    balance_after: Mapped[Optional[int]] = mapped_column(BigInteger)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    @property
    def is_generated(self) -> bool:
        return any((self.check_id, self.goal_id, self.loan_payment_id, self.debt_payment_id))


class TransferDB(Base):
    __tablename__ = "transfers"

    __table_args__ = (
        Index("idx_transfers_family_date", "family_id", "transfer_date"),
        Index("idx_transfers_from", "from_bank_account_id"),
        Index("idx_transfers_to", "to_bank_account_id"),
    )

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=new_id)
    family_id: Mapped[str] = mapped_column(String(64), nullable=False)
    registered_by_user_id: Mapped[str] = mapped_column(String(128), nullable=False)
    from_bank_account_id: Mapped[str] = mapped_column(String(32), nullable=False)
    to_bank_account_id: Mapped[str] = mapped_column(String(32), nullable=False)

    amount: Mapped[int] = mapped_column(BigInteger, nullable=False)
    transfer_date: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    description: Mapped[Optional[str]] = mapped_column(String(500))

    # Both legs' balance snapshots
    from_account_balance_before: Mapped[int] = mapped_column(BigInteger, nullable=False)
    from_account_balance_after: Mapped[int] = mapped_column(BigInteger, nullable=False)
    to_account_balance_before: Mapped[int] = mapped_column(BigInteger, nullable=False)
    to_account_balance_after: Mapped[int] = mapped_column(BigInteger, nullable=False)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)


class CheckDB(Base):
    __tablename__ = "checks"

    __table_args__ = (
        Index("idx_checks_family_status", "family_id", "status"),
        Index("idx_checks_account", "bank_account_id"),
    )

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=new_id)
    family_id: Mapped[str] = mapped_column(String(64), nullable=False)
    owner_id: Mapped[str] = mapped_column(String(32), nullable=False)
    registered_by_user_id: Mapped[str] = mapped_column(String(128), nullable=False)
    bank_account_id: Mapped[str] = mapped_column(String(32), nullable=False)
    payee_id: Mapped[str] = mapped_column(String(32), nullable=False)
    category_id: Mapped[str] = mapped_column(String(32), nullable=False)

    amount: Mapped[int] = mapped_column(BigInteger, nullable=False)
    issue_date: Mapped[date] = mapped_column(Date, nullable=False)
    due_date: Mapped[date] = mapped_column(Date, nullable=False)
    status: Mapped[CheckStatus] = mapped_column(Enum(CheckStatus), default=CheckStatus.PENDING)
    cleared_date: Mapped[Optional[datetime]] = mapped_column(DateTime)
    description: Mapped[Optional[str]] = mapped_column(String(500))
    sayad_id: Mapped[Optional[str]] = mapped_column(String(16))
    check_serial_number: Mapped[Optional[str]] = mapped_column(String(32))

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)


class LoanDB(Base):
    __tablename__ = "loans"

    __table_args__ = (
        Index("idx_loans_family", "family_id"),
    )

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=new_id)
    family_id: Mapped[str] = mapped_column(String(64), nullable=False)
    owner_id: Mapped[str] = mapped_column(String(32), nullable=False)
    registered_by_user_id: Mapped[str] = mapped_column(String(128), nullable=False)
    payee_id: Mapped[Optional[str]] = mapped_column(String(32))

    title: Mapped[str] = mapped_column(String(255), nullable=False)
    amount: Mapped[int] = mapped_column(BigInteger, nullable=False)
    installment_amount: Mapped[int] = mapped_column(BigInteger, default=0)
    remaining_amount: Mapped[int] = mapped_column(BigInteger, nullable=False)
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    payment_day: Mapped[int] = mapped_column(Integer, default=1)  # day of month
    number_of_installments: Mapped[int] = mapped_column(Integer, default=0)
    paid_installments: Mapped[int] = mapped_column(Integer, default=0)
    deposit_to_account_id: Mapped[Optional[str]] = mapped_column(String(32))

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    payments = relationship("LoanPaymentDB", back_populates="loan", order_by="LoanPaymentDB.payment_date")


class LoanPaymentDB(Base):
    __tablename__ = "loan_payments"

    __table_args__ = (
        Index("idx_loan_payments_loan", "loan_id"),
        Index("idx_loan_payments_account", "bank_account_id"),
    )

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=new_id)
    family_id: Mapped[str] = mapped_column(String(64), nullable=False)
    registered_by_user_id: Mapped[str] = mapped_column(String(128), nullable=False)
    loan_id: Mapped[str] = mapped_column(ForeignKey("loans.id"), nullable=False)
    bank_account_id: Mapped[str] = mapped_column(String(32), nullable=False)

    amount: Mapped[int] = mapped_column(BigInteger, nullable=False)
    payment_date: Mapped[datetime] = mapped_column(DateTime, nullable=False)

    loan = relationship("LoanDB", back_populates="payments")


class PreviousDebtDB(Base):
    __tablename__ = "previous_debts"

    __table_args__ = (
        Index("idx_previous_debts_family", "family_id"),
    )

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=new_id)
    family_id: Mapped[str] = mapped_column(String(64), nullable=False)
    owner_id: Mapped[str] = mapped_column(String(32), nullable=False)
    registered_by_user_id: Mapped[str] = mapped_column(String(128), nullable=False)
    payee_id: Mapped[str] = mapped_column(String(32), nullable=False)

    description: Mapped[str] = mapped_column(String(500), nullable=False)
    amount: Mapped[int] = mapped_column(BigInteger, nullable=False)
    remaining_amount: Mapped[int] = mapped_column(BigInteger, nullable=False)
    start_date: Mapped[date] = mapped_column(Date, nullable=False)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    payments = relationship("DebtPaymentDB", back_populates="debt", order_by="DebtPaymentDB.payment_date")


class DebtPaymentDB(Base):
    __tablename__ = "debt_payments"

    __table_args__ = (
        Index("idx_debt_payments_debt", "debt_id"),
        Index("idx_debt_payments_account", "bank_account_id"),
    )

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=new_id)
    family_id: Mapped[str] = mapped_column(String(64), nullable=False)
    registered_by_user_id: Mapped[str] = mapped_column(String(128), nullable=False)
    debt_id: Mapped[str] = mapped_column(ForeignKey("previous_debts.id"), nullable=False)
    bank_account_id: Mapped[str] = mapped_column(String(32), nullable=False)

    amount: Mapped[int] = mapped_column(BigInteger, nullable=False)
    payment_date: Mapped[datetime] = mapped_column(DateTime, nullable=False)

    debt = relationship("PreviousDebtDB", back_populates="payments")


class FinancialGoalDB(Base):
    __tablename__ = "financial_goals"

    __table_args__ = (
        Index("idx_financial_goals_family", "family_id"),
    )

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=new_id)
    family_id: Mapped[str] = mapped_column(String(64), nullable=False)
    owner_id: Mapped[str] = mapped_column(String(32), nullable=False)
    registered_by_user_id: Mapped[str] = mapped_column(String(128), nullable=False)

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    target_amount: Mapped[int] = mapped_column(BigInteger, nullable=False)
    current_amount: Mapped[int] = mapped_column(BigInteger, default=0)
    actual_cost: Mapped[int] = mapped_column(BigInteger, default=0)
    target_date: Mapped[Optional[date]] = mapped_column(Date)
    is_achieved: Mapped[bool] = mapped_column(Boolean, default=False)
    priority: Mapped[GoalPriority] = mapped_column(Enum(GoalPriority), default=GoalPriority.MEDIUM)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    contributions: Mapped[List["GoalContributionDB"]] = relationship(
        back_populates="goal",
        cascade="all, delete-orphan",
        order_by="GoalContributionDB.seq",
    )


class GoalContributionDB(Base):
    __tablename__ = "goal_contributions"

    __table_args__ = (
        Index("idx_goal_contributions_goal", "goal_id"),
        Index("idx_goal_contributions_account", "bank_account_id"),
    )

    seq: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    goal_id: Mapped[str] = mapped_column(ForeignKey("financial_goals.id"), nullable=False)
    bank_account_id: Mapped[str] = mapped_column(String(32), nullable=False)
    amount: Mapped[int] = mapped_column(BigInteger, nullable=False)
    date: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    goal: Mapped["FinancialGoalDB"] = relationship(back_populates="contributions")


def use_immediate_transactions(sqlite_engine) -> None:
    """
    Make every SQLite transaction take the database write lock when it begins.

    pysqlite defers BEGIN until the first write, so a read-validate-write block
    would hold no lock while it validates. With BEGIN IMMEDIATE a second writer
    waits at BEGIN until the first one commits, which serializes operations the
    way SELECT ... FOR UPDATE does on PostgreSQL.
    """

    @event.listens_for(sqlite_engine, "connect")
    def disable_driver_begin(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(sqlite_engine, "begin")
    def begin_immediate(connection):
        connection.exec_driver_sql("BEGIN IMMEDIATE")


engine = create_engine(DATABASE_URL, echo=os.getenv("SQL_ECHO", "false").lower() == "true")
if engine.dialect.name == "sqlite":
    use_immediate_transactions(engine)
session_local = sessionmaker(autocommit=False, autoflush=False, bind=engine)


# Dependency to get the database session
def get_db():
    database = session_local()
    try:
        yield database
    finally:
        database.close()
