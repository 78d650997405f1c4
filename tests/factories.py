"""
Row and model builders shared by the tests.

The household ledger:

Owner "1", account "10" (Girokonto, initial balance 1000)
- Fitness (EXPENSE): 40 on 2025-11-03, 40 on 2025-11-20
- Lebensmittel (EXPENSE): 70 on 2025-11-10
- Gehalt (INCOME): 2500 on 2025-10-01, 2700 on 2025-11-01
- Budgets for 2025-11: Fitness 40, Gehalt 500

Owner "2", account "20": one expense category, one transaction and
one budget in November, used to prove owner isolation.
"""

from datetime import date, datetime
from decimal import Decimal

from src.models.ledger import Transaction
from src.services.storage import InMemoryLedgerStore


TODAY = date(2025, 11, 15)


def account_rows() -> list[dict]:
    return [
        {"id": 10, "owner_id": 1, "name": "Girokonto", "type": "CHECKING",
         "initial_balance": "1000", "is_active": True},
        {"id": 20, "owner_id": 2, "name": "Other Owner", "type": "SAVINGS",
         "initial_balance": "300", "is_active": True},
    ]


def category_rows() -> list[dict]:
    return [
        {"id": 100, "account_id": 10, "name": "Fitness", "transaction_type": "EXPENSE",
         "emoji": "🏋️", "color": "#FF5722"},
        {"id": 101, "account_id": 10, "name": "Gehalt", "transaction_type": "INCOME",
         "emoji": "💰"},
        {"id": 102, "account_id": 10, "name": "Lebensmittel", "transaction_type": "EXPENSE"},
        {"id": 200, "account_id": 20, "name": "Hobby", "transaction_type": "EXPENSE"},
    ]


def transaction_rows() -> list[dict]:
    return [
        {"id": 1, "account_id": 10, "category_id": 100, "date": "2025-11-03", "amount": "40"},
        {"id": 2, "account_id": 10, "category_id": 100, "date": "2025-11-20", "amount": "40"},
        {"id": 3, "account_id": 10, "category_id": 102, "date": "2025-11-10", "amount": "70"},
        {"id": 4, "account_id": 10, "category_id": 101, "date": "2025-10-01", "amount": "2500"},
        {"id": 5, "account_id": 10, "category_id": 101, "date": "2025-11-01", "amount": "2700"},
        {"id": 9, "account_id": 20, "category_id": 200, "date": "2025-11-05", "amount": "50"},
    ]


def budget_rows() -> list[dict]:
    return [
        {"id": 1000, "category_id": 100, "year": 2025, "month": 11, "total_amount": "40"},
        {"id": 1001, "category_id": 101, "year": 2025, "month": 11, "total_amount": "500"},
        {"id": 2000, "category_id": 200, "year": 2025, "month": 11, "total_amount": "25"},
    ]


def build_household_store() -> InMemoryLedgerStore:
    store = InMemoryLedgerStore()
    issues = store.load_rows(
        accounts=account_rows(),
        categories=category_rows(),
        transactions=transaction_rows(),
        budgets=budget_rows(),
    )
    assert issues == []
    return store


def txn(id, category_id, when, amount, account_id="10") -> Transaction:
    """Shorthand for building a transaction in tests."""
    if isinstance(when, date) and not isinstance(when, datetime):
        when = datetime(when.year, when.month, when.day)
    return Transaction(
        id=str(id),
        account_id=account_id,
        category_id=category_id,
        date=when,
        amount=Decimal(str(amount)),
    )
