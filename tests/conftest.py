"""Shared fixtures. The ledger itself is described in tests/factories.py."""

from decimal import Decimal

import pytest

from src.audit import AuditLogger
from src.config import EngineSettings
from src.engine import ReconciliationService
from src.models.ledger import Account, Category, TransactionType
from src.services.storage import InMemoryAuditStorage, InMemoryLedgerStore
from tests.factories import TODAY, build_household_store


@pytest.fixture
def household_store() -> InMemoryLedgerStore:
    return build_household_store()


@pytest.fixture
def audit_storage() -> InMemoryAuditStorage:
    return InMemoryAuditStorage()


@pytest.fixture
def service(household_store, audit_storage) -> ReconciliationService:
    return ReconciliationService(
        store=household_store,
        audit_logger=AuditLogger(audit_storage),
        settings=EngineSettings(),
        today=lambda: TODAY,
    )


@pytest.fixture
def account() -> Account:
    return Account(id="10", owner_id="1", name="Girokonto", initial_balance=Decimal("1000"))


@pytest.fixture
def fitness() -> Category:
    return Category(
        id="100", account_id="10", name="Fitness",
        transaction_type=TransactionType.EXPENSE, emoji="🏋️",
    )


@pytest.fixture
def gehalt() -> Category:
    return Category(
        id="101", account_id="10", name="Gehalt",
        transaction_type=TransactionType.INCOME,
    )


@pytest.fixture
def lebensmittel() -> Category:
    return Category(
        id="102", account_id="10", name="Lebensmittel",
        transaction_type=TransactionType.EXPENSE,
    )
