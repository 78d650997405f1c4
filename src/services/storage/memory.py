"""
In-Memory Ledger Storage

DESIGN DECISION: Owner scoping and filtering live in LedgerSnapshot,
which works on plain lists of models. Every backend loads its rows
into a snapshot and answers reads from it, so two backends holding the
same rows always give the same answers.

InMemoryLedgerStore keeps one long-lived set of rows and offers write
helpers standing in for whatever maintains the ledger. It is used for
tests and for running without Google credentials.
"""

from datetime import datetime
from typing import Any, Iterable, Optional, Union
from uuid import UUID

import structlog

from src.models.audit import AuditEvent
from src.models.ledger import Account, Budget, Category, Transaction
from src.models.reports import IntegrityIssue
from src.services.storage.interface import AuditStorageInterface, LedgerStoreInterface
from src.services.storage.rows import DataIntegrityError, LedgerRowMapper


logger = structlog.get_logger(__name__)


class LedgerSnapshot:
    """
    Owner-scoped queries over a fixed set of ledger rows.

    Ownership chain: Account.owner_id, then Category.account_id,
    then Transaction.account_id and Budget.category_id.
    """

    def __init__(
        self,
        accounts: Iterable[Account] = (),
        categories: Iterable[Category] = (),
        transactions: Iterable[Transaction] = (),
        budgets: Iterable[Budget] = (),
    ):
        self.accounts = list(accounts)
        self.categories = list(categories)
        self.transactions = list(transactions)
        self.budgets = list(budgets)

    def _owned_accounts(self, owner_id: str) -> dict[str, Account]:
        return {a.id: a for a in self.accounts if a.owner_id == owner_id}

    def _reachable_categories(self, owner_id: str) -> dict[str, Category]:
        account_ids = self._owned_accounts(owner_id)
        return {
            c.id: c for c in self.categories
            if c.account_id is not None and c.account_id in account_ids
        }

    def get_account(self, owner_id: str, account_id: str) -> Optional[Account]:
        account = self._owned_accounts(owner_id).get(account_id)
        return account.model_copy(deep=True) if account else None

    def list_accounts(self, owner_id: str) -> list[Account]:
        return [a.model_copy(deep=True) for a in self._owned_accounts(owner_id).values()]

    def list_categories(
        self,
        owner_id: str,
        account_id: Optional[str] = None,
    ) -> list[Category]:
        return [
            c.model_copy(deep=True)
            for c in self._reachable_categories(owner_id).values()
            if account_id is None or c.account_id == account_id
        ]

    def get_category(self, owner_id: str, category_id: str) -> Optional[Category]:
        category = self._reachable_categories(owner_id).get(category_id)
        return category.model_copy(deep=True) if category else None

    def list_transactions(
        self,
        owner_id: str,
        account_id: Optional[str] = None,
        category_id: Optional[str] = None,
        date_from: Optional[datetime] = None,
        date_until: Optional[datetime] = None,
    ) -> list[Transaction]:
        account_ids = self._owned_accounts(owner_id)
        results = []
        for txn in self.transactions:
            if txn.account_id not in account_ids:
                continue
            if account_id is not None and txn.account_id != account_id:
                continue
            if category_id is not None and txn.category_id != category_id:
                continue
            if date_from is not None and txn.date < date_from:
                continue
            if date_until is not None and txn.date >= date_until:
                continue
            results.append(txn.model_copy(deep=True))
        return results

    def list_budgets(
        self,
        owner_id: str,
        year: Optional[int] = None,
        month: Optional[int] = None,
        account_id: Optional[str] = None,
    ) -> list[Budget]:
        categories = self._reachable_categories(owner_id)
        results = []
        for budget in self.budgets:
            category = categories.get(budget.category_id)
            if category is None:
                continue
            if year is not None and budget.year != year:
                continue
            if month is not None and budget.month != month:
                continue
            if account_id is not None and category.account_id != account_id:
                continue
            results.append(
                budget.model_copy(update={"category": category.model_copy(deep=True)}, deep=True)
            )
        return results

    def get_budget(self, owner_id: str, budget_id: str) -> Optional[Budget]:
        for budget in self.list_budgets(owner_id):
            if budget.id == budget_id:
                return budget
        return None


class InMemoryLedgerStore(LedgerStoreInterface):
    """
    Dict-backed ledger store.

    Reads return copies; mutating a returned model never changes
    stored state.
    """

    def __init__(self, mapper: Optional[LedgerRowMapper] = None):
        self._mapper = mapper or LedgerRowMapper()
        self._accounts: dict[str, Account] = {}
        self._categories: dict[str, Category] = {}
        self._transactions: dict[str, Transaction] = {}
        self._budgets: dict[str, Budget] = {}

    # -------------------------------------------------------------------------
    # Write helpers
    # -------------------------------------------------------------------------

    def add_account(self, account: Union[Account, dict[str, Any]]) -> Account:
        if not isinstance(account, Account):
            account = self._mapper.account(account)
        self._accounts[account.id] = account
        return account

    def add_category(self, category: Union[Category, dict[str, Any]]) -> Category:
        if not isinstance(category, Category):
            category = self._mapper.category(category)
        self._categories[category.id] = category
        return category

    def add_transaction(self, transaction: Union[Transaction, dict[str, Any]]) -> Transaction:
        if not isinstance(transaction, Transaction):
            transaction = self._mapper.transaction(transaction)
        self._transactions[transaction.id] = transaction
        return transaction

    def add_budget(self, budget: Union[Budget, dict[str, Any]]) -> Budget:
        if not isinstance(budget, Budget):
            budget = self._mapper.budget(budget, list(self._categories.values()))
        # Category is attached on read, never stored
        budget = budget.model_copy(update={"category": None})
        self._budgets[budget.id] = budget
        return budget

    def remove_transaction(self, transaction_id: str) -> bool:
        return self._transactions.pop(transaction_id, None) is not None

    def load_rows(
        self,
        accounts: Iterable[dict[str, Any]] = (),
        categories: Iterable[dict[str, Any]] = (),
        transactions: Iterable[dict[str, Any]] = (),
        budgets: Iterable[dict[str, Any]] = (),
    ) -> list[IntegrityIssue]:
        """
        Bulk-load raw rows, skipping the ones that cannot be mapped.

        Categories load before budgets so legacy budget labels can be
        matched.

        Returns:
            One issue per skipped row
        """
        issues = []
        batches = [
            (accounts, self.add_account),
            (categories, self.add_category),
            (transactions, self.add_transaction),
            (budgets, self.add_budget),
        ]
        for rows, add in batches:
            for row in rows:
                try:
                    add(row)
                except DataIntegrityError as e:
                    logger.warning("ledger_row_skipped", **e.issue.model_dump())
                    issues.append(e.issue)
        return issues

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    def _snapshot(self) -> LedgerSnapshot:
        return LedgerSnapshot(
            accounts=self._accounts.values(),
            categories=self._categories.values(),
            transactions=self._transactions.values(),
            budgets=self._budgets.values(),
        )

    async def get_account(self, owner_id: str, account_id: str) -> Optional[Account]:
        return self._snapshot().get_account(owner_id, account_id)

    async def list_accounts(self, owner_id: str) -> list[Account]:
        return self._snapshot().list_accounts(owner_id)

    async def list_categories(
        self,
        owner_id: str,
        account_id: Optional[str] = None,
    ) -> list[Category]:
        return self._snapshot().list_categories(owner_id, account_id)

    async def get_category(self, owner_id: str, category_id: str) -> Optional[Category]:
        return self._snapshot().get_category(owner_id, category_id)

    async def list_transactions(
        self,
        owner_id: str,
        account_id: Optional[str] = None,
        category_id: Optional[str] = None,
        date_from: Optional[datetime] = None,
        date_until: Optional[datetime] = None,
    ) -> list[Transaction]:
        return self._snapshot().list_transactions(
            owner_id,
            account_id=account_id,
            category_id=category_id,
            date_from=date_from,
            date_until=date_until,
        )

    async def list_budgets(
        self,
        owner_id: str,
        year: Optional[int] = None,
        month: Optional[int] = None,
        account_id: Optional[str] = None,
    ) -> list[Budget]:
        return self._snapshot().list_budgets(owner_id, year, month, account_id)

    async def get_budget(self, owner_id: str, budget_id: str) -> Optional[Budget]:
        return self._snapshot().get_budget(owner_id, budget_id)


class InMemoryAuditStorage(AuditStorageInterface):
    """Append-only audit log held in a list."""

    def __init__(self):
        self._events: list[AuditEvent] = []

    @property
    def events(self) -> list[AuditEvent]:
        return list(self._events)

    async def append_event(self, event: AuditEvent) -> bool:
        self._events.append(event.model_copy(deep=True))
        return True

    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        events = [e for e in self._events if e.correlation_id == correlation_id]
        events.sort(key=lambda e: e.timestamp)
        return events

    async def get_events_by_entity(
        self,
        entity_type: str,
        entity_id: str,
    ) -> list[AuditEvent]:
        events = [
            e for e in self._events
            if e.entity_type == entity_type and e.entity_id == entity_id
        ]
        events.sort(key=lambda e: e.timestamp)
        return events

    async def get_recent_events(self, limit: int = 100) -> list[AuditEvent]:
        events = sorted(self._events, key=lambda e: e.timestamp, reverse=True)
        return events[:limit]
