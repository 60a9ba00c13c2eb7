"""Shared fixtures: an in-memory database per test, a recording telemetry sink,
a fixed clock (17 Oct 2026) and an API client wired to all three."""

from datetime import date, datetime
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from pocket_ledger import dependencies
from pocket_ledger.crud.crud_account import create_db_account
from pocket_ledger.crud.crud_user import create_db_user
from pocket_ledger.db.core import Base, get_db, AccountType, TransactionCategory, TransactionType
from pocket_ledger.main import app
from pocket_ledger.models.account import AccountCreate
from pocket_ledger.models.transaction import TransactionCreate
from pocket_ledger.models.user import UserCreate
from pocket_ledger.services.budget_tracker import BudgetTracker
from pocket_ledger.services.identity import LocalIdentityGateway
from pocket_ledger.services.ledger import LedgerAggregator
from pocket_ledger.services.reports import ReportEngine
from pocket_ledger.services.telemetry import TelemetrySink
from pocket_ledger.services.transactions import TransactionService

TODAY = date(2026, 10, 17)
PASSWORD = "Secret123"


def fixed_clock():
    return TODAY


class RecordingTelemetrySink(TelemetrySink):
    def __init__(self):
        self.events = []
        self.errors = []

    def _emit_event(self, name, parameters):
        self.events.append((name, parameters))

    def _emit_error(self, error, context):
        self.errors.append((error, context))

    def event_names(self):
        return [name for name, _ in self.events]


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db(engine):
    session = sessionmaker(autocommit=False, autoflush=False, bind=engine)()
    yield session
    session.close()


@pytest.fixture
def telemetry():
    return RecordingTelemetrySink()


@pytest.fixture
def ledger(db, telemetry):
    return LedgerAggregator(db, telemetry)


@pytest.fixture
def tracker(db, telemetry):
    return BudgetTracker(db, telemetry, today=fixed_clock)


@pytest.fixture
def reports(db, telemetry):
    return ReportEngine(db, telemetry, today=fixed_clock)


@pytest.fixture
def service(db, ledger, tracker, telemetry):
    return TransactionService(db, ledger, tracker, telemetry)


def make_user(db, email="demo@example.com"):
    return create_db_user(db, UserCreate(
        email=email, name="Demo User", password=PASSWORD, confirm_password=PASSWORD
    ))


def make_account(db, user_id, name="Checking", opening_balance="1000.00", account_type=AccountType.CHECKING):
    return create_db_account(db, user_id, AccountCreate(
        account_name=name, account_type=account_type, opening_balance=Decimal(opening_balance)
    ))


def expense(amount, category=TransactionCategory.FOOD, account_id=None, when=datetime(2026, 10, 10, 12, 0),
            description=""):
    return TransactionCreate(
        account_id=account_id,
        transaction_date=when,
        amount=Decimal(amount),
        transaction_type=TransactionType.EXPENSE,
        category=category,
        description=description,
    )


def income(amount, account_id=None, when=datetime(2026, 10, 5, 9, 0), category=TransactionCategory.SALARY):
    return TransactionCreate(
        account_id=account_id,
        transaction_date=when,
        amount=Decimal(amount),
        transaction_type=TransactionType.INCOME,
        category=category,
        description="Salary",
    )


@pytest.fixture
def user(db):
    return make_user(db)


@pytest.fixture
def account(db, user):
    return make_account(db, user.db_id)


@pytest.fixture
def client(db, telemetry):
    identity = LocalIdentityGateway(telemetry)

    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[dependencies.get_telemetry] = lambda: telemetry
    app.dependency_overrides[dependencies.get_identity_gateway] = lambda: identity
    app.dependency_overrides[dependencies.get_clock] = lambda: fixed_clock

    yield TestClient(app)

    app.dependency_overrides.clear()
