from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError
from typing import List, Optional

from household_ledger.db.core import CategoryDB, PayeeDB, ExpenseDB, CheckDB, LoanDB, PreviousDebtDB
from household_ledger.exceptions import NotFound, HasDependents
from household_ledger.models.reference import CategoryCreate, CategoryUpdate, PayeeCreate, PayeeUpdate

INSTALLMENTS_CATEGORY = "Installments & Debts"
GOALS_CATEGORY = "Financial Goals"

DEFAULT_CATEGORIES = [
    ("Food & Dining", "Restaurants, cafes and groceries"),
    ("Transportation", "Taxi, bus, fuel and car repairs"),
    ("Housing", "Rent, building charges, utility bills and home repairs"),
    ("Clothing", "Clothes, shoes and accessories"),
    ("Entertainment", "Cinema, theatre, travel and other leisure"),
    ("Education", "Classes, books and online courses"),
    ("Health", "Medical costs, medicine and insurance"),
    (INSTALLMENTS_CATEGORY, "Loan installments and other debt payments"),
    ("Investments", "Stocks, gold and other investments"),
    ("Miscellaneous", "Other unplanned expenses"),
]


# ===== CATEGORIES =====

def create_db_category(db: Session, family_id: str, category_data: CategoryCreate) -> CategoryDB:
    """Create a new category for a family"""

    existing_category = db.query(CategoryDB).filter(
        CategoryDB.family_id == family_id,
        CategoryDB.name.ilike(category_data.name)
    ).first()
    if existing_category:
        raise ValueError(f"Category with name '{category_data.name}' already exists")

    db_category = CategoryDB(family_id=family_id, name=category_data.name, description=category_data.description)

    try:
        db.add(db_category)
        db.commit()
        db.refresh(db_category)
        return db_category
    except IntegrityError:
        db.rollback()
        raise ValueError("Category creation failed due to a database constraint.")


def read_db_categories(db: Session, family_id: str) -> List[CategoryDB]:
    return db.query(CategoryDB).filter(CategoryDB.family_id == family_id).order_by(CategoryDB.name).all()


def read_db_category(db: Session, family_id: str, category_id: str) -> Optional[CategoryDB]:
    return db.query(CategoryDB).filter(CategoryDB.family_id == family_id, CategoryDB.id == category_id).first()


def update_db_category(db: Session, family_id: str, category_id: str, category_updates: CategoryUpdate) -> CategoryDB:
    db_category = read_db_category(db, family_id, category_id)
    if not db_category:
        raise NotFound(f"Category with id {category_id} not found")

    update_data = category_updates.model_dump(exclude_unset=True)

    if 'name' in update_data:
        existing = db.query(CategoryDB).filter(
            CategoryDB.family_id == family_id,
            CategoryDB.name.ilike(update_data['name']),
            CategoryDB.id != category_id
        ).first()
        if existing:
            raise ValueError(f"Category with name '{update_data['name']}' already exists")

    for field, value in update_data.items():
        setattr(db_category, field, value)

    db.commit()
    db.refresh(db_category)
    return db_category


def delete_db_category(db: Session, family_id: str, category_id: str) -> None:
    """Delete a category that no expense or check refers to"""
    db_category = read_db_category(db, family_id, category_id)
    if not db_category:
        raise NotFound(f"Category with id {category_id} not found")

    if db.query(ExpenseDB).filter(ExpenseDB.family_id == family_id, ExpenseDB.category_id == category_id).first():
        raise HasDependents("Category is used by one or more expenses", context={"category_id": category_id})
    if db.query(CheckDB).filter(CheckDB.family_id == family_id, CheckDB.category_id == category_id).first():
        raise HasDependents("Category is used by one or more checks", context={"category_id": category_id})

    db.delete(db_category)
    db.commit()


def find_or_create_category(db: Session, family_id: str, name: str, description: Optional[str] = None) -> CategoryDB:
    """Look a category up by exact name, adding it to the session if missing.

    Does not commit; callers run inside a ledger unit of work.
    """
    category = db.query(CategoryDB).filter(CategoryDB.family_id == family_id, CategoryDB.name == name).first()
    if category:
        return category
    category = CategoryDB(family_id=family_id, name=name, description=description)
    db.add(category)
    db.flush()
    return category


def find_category_by_keyword(db: Session, family_id: str, keyword: str) -> CategoryDB:
    """First category whose name contains the keyword, else any category, else the installments category."""
    categories = read_db_categories(db, family_id)
    for category in categories:
        if keyword.lower() in category.name.lower():
            return category
    if categories:
        return categories[0]
    return find_or_create_category(db, family_id, INSTALLMENTS_CATEGORY, "Loan installments and other debt payments")


def seed_default_categories(db: Session, family_id: str) -> List[CategoryDB]:
    """Create the starter category set for a family that has none yet"""
    if db.query(CategoryDB).filter(CategoryDB.family_id == family_id).count() > 0:
        return []

    created = [CategoryDB(family_id=family_id, name=name, description=description) for name, description in DEFAULT_CATEGORIES]
    db.add_all(created)
    db.commit()
    return created


# ===== PAYEES =====

def create_db_payee(db: Session, family_id: str, payee_data: PayeeCreate) -> PayeeDB:
    db_payee = PayeeDB(family_id=family_id, **payee_data.model_dump())
    db.add(db_payee)
    db.commit()
    db.refresh(db_payee)
    return db_payee


def read_db_payees(db: Session, family_id: str) -> List[PayeeDB]:
    return db.query(PayeeDB).filter(PayeeDB.family_id == family_id).order_by(PayeeDB.name).all()


def read_db_payee(db: Session, family_id: str, payee_id: str) -> Optional[PayeeDB]:
    return db.query(PayeeDB).filter(PayeeDB.family_id == family_id, PayeeDB.id == payee_id).first()


def update_db_payee(db: Session, family_id: str, payee_id: str, payee_updates: PayeeUpdate) -> PayeeDB:
    db_payee = read_db_payee(db, family_id, payee_id)
    if not db_payee:
        raise NotFound(f"Payee with id {payee_id} not found")

    for field, value in payee_updates.model_dump(exclude_unset=True).items():
        setattr(db_payee, field, value)

    db.commit()
    db.refresh(db_payee)
    return db_payee


def delete_db_payee(db: Session, family_id: str, payee_id: str) -> None:
    """Delete a payee that no check, expense, loan or debt refers to"""
    db_payee = read_db_payee(db, family_id, payee_id)
    if not db_payee:
        raise NotFound(f"Payee with id {payee_id} not found")

    dependency_checks = [
        ("checks", CheckDB),
        ("expenses", ExpenseDB),
        ("loans", LoanDB),
        ("previous debts", PreviousDebtDB),
    ]
    for name, model in dependency_checks:
        if db.query(model).filter(model.family_id == family_id, model.payee_id == payee_id).first():
            raise HasDependents(f"Payee is used by one or more {name}", context={"payee_id": payee_id})

    db.delete(db_payee)
    db.commit()
