import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from fastapi.testclient import TestClient
from datetime import date
from decimal import Decimal
from uuid import uuid4

from backend.app.models.models import Base, Category, TransactionType
from backend.app.database import get_db_session
from backend.app.main import app
from backend.app.schemas.budgets import BudgetCreate
from backend.app.schemas.transactions import TransactionCreate
from backend.app.services.budget_service import create_budget
from backend.app.services.transaction_service import create_transaction

# Use an in-memory SQLite database for testing
TEST_DATABASE_URL = "sqlite:///:memory:"

engine = create_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

OCTOBER_START = date(2025, 10, 1)
OCTOBER_END = date(2025, 10, 31)
MID_OCTOBER = date(2025, 10, 15)

@pytest.fixture(scope="function")
def db_session():
    """Returns a fresh SQLAlchemy session over empty tables for each test"""
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()

    yield session

    session.close()
    Base.metadata.drop_all(bind=engine)

@pytest.fixture
def client(db_session):
    """Test client fixture that uses the db_session fixture"""
    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db_session] = override_get_db
    test_client = TestClient(app)
    yield test_client
    app.dependency_overrides.clear()

@pytest.fixture
def test_user_id():
    return "user-" + str(uuid4())

@pytest.fixture
def other_user_id():
    return "other-" + str(uuid4())

def _category(db_session, user_id, name, category_type):
    category = Category(
        id=str(uuid4()),
        user_id=user_id,
        name=name,
        type=category_type
    )
    db_session.add(category)
    db_session.commit()
    db_session.refresh(category)
    return category

@pytest.fixture
def groceries(db_session, test_user_id):
    return _category(db_session, test_user_id, "Groceries", TransactionType.EXPENSE)

@pytest.fixture
def dining(db_session, test_user_id):
    return _category(db_session, test_user_id, "Dining", TransactionType.EXPENSE)

@pytest.fixture
def salary(db_session, test_user_id):
    return _category(db_session, test_user_id, "Salary", TransactionType.INCOME)

@pytest.fixture
def make_budget(db_session, test_user_id):
    """Factory creating budgets through the budget service"""
    def _make(**overrides):
        data = {
            "user_id": test_user_id,
            "name": "Monthly",
            "amount": Decimal("1000000"),
            "period": "monthly",
            "start_date": OCTOBER_START,
            "end_date": OCTOBER_END,
            "category_ids": [],
            "alert_threshold": Decimal("80"),
        }
        data.update(overrides)
        return create_budget(db_session, BudgetCreate(**data))
    return _make

@pytest.fixture
def add_transaction(db_session, test_user_id):
    """Factory recording transactions through the transaction service"""
    def _add(category, amount, on=MID_OCTOBER, description=None, user_id=None):
        return create_transaction(db_session, TransactionCreate(
            user_id=user_id or test_user_id,
            amount=Decimal(str(amount)),
            type=category.type,
            category_id=category.id,
            description=description,
            date=on
        ))
    return _add
