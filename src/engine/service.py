"""
Reconciliation Service

The async entry point for every engine read. Each call:
1. Resolves and validates the requested period
2. Reads what it needs from the ledger store (concurrently)
3. Hands the rows to a pure calculator
4. Audits the result and any absorbed data problems

DESIGN DECISION: The owner id is an explicit argument of every call.
There is no ambient or default owner. A record that belongs to someone
else is reported exactly like a record that does not exist.
"""

import asyncio
from datetime import date
from decimal import Decimal
from typing import Callable, Optional
from uuid import UUID

from src.audit import AuditLogger, create_correlation_id
from src.config import EngineSettings
from src.engine.balance import BalanceCalculator
from src.engine.budget import BudgetAggregator, group_budgets
from src.engine.classification import build_category_lookup, collect_issues
from src.engine.period import InvalidPeriodError, Period, resolve_period
from src.engine.summary import SummaryComposer
from src.models.ledger import Account, TransactionType
from src.models.reports import (
    AccountBalance,
    AccountStatistics,
    BudgetProgress,
    PeriodSummary,
)
from src.services.storage import LedgerStoreInterface, NotFoundError, StorageError


class ReconciliationService:
    """
    Derives balances, budget progress and period summaries on demand.

    Nothing is cached: every call reads the store and recomputes.
    """

    def __init__(
        self,
        store: LedgerStoreInterface,
        audit_logger: Optional[AuditLogger] = None,
        settings: Optional[EngineSettings] = None,
        today: Callable[[], date] = date.today,
    ):
        self._store = store
        self._audit = audit_logger or AuditLogger()
        self._settings = settings or EngineSettings()
        self._today = today

        self._balance = BalanceCalculator()
        self._aggregator = BudgetAggregator(
            default_icon=self._settings.default_category_icon,
            default_color=self._settings.default_category_color,
        )
        self._composer = SummaryComposer(
            aggregator=self._aggregator,
            uncategorized_label=self._settings.uncategorized_label,
            uncategorized_icon=self._settings.uncategorized_icon,
        )

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    async def _resolve_period(
        self,
        owner_id: str,
        year: Optional[int],
        month: Optional[int],
        correlation_id: UUID,
    ) -> Period:
        try:
            return resolve_period(
                year,
                month,
                today=self._today(),
                min_year=self._settings.min_year,
                max_year=self._settings.max_year,
            )
        except InvalidPeriodError as e:
            await self._audit.log_invalid_period(
                owner_id, year, month, str(e), correlation_id=correlation_id,
            )
            raise

    async def _not_found(
        self,
        owner_id: str,
        entity_type: str,
        entity_id: str,
        correlation_id: UUID,
    ) -> NotFoundError:
        await self._audit.log_not_found(
            owner_id, entity_type, entity_id, correlation_id=correlation_id,
        )
        return NotFoundError(entity_type, entity_id)

    async def _read(self, operation: str, owner_id: str, correlation_id: UUID, *reads):
        """Run independent store reads concurrently, auditing storage failures."""
        try:
            return await asyncio.gather(*reads)
        except StorageError as e:
            await self._audit.log_storage_error(
                operation, str(e), owner_id=owner_id, correlation_id=correlation_id,
            )
            raise

    async def _balance_of(
        self,
        owner_id: str,
        account: Account,
        correlation_id: UUID,
    ) -> AccountBalance:
        transactions, categories = await self._read(
            "get_account_balance", owner_id, correlation_id,
            self._store.list_transactions(owner_id, account_id=account.id),
            self._store.list_categories(owner_id),
        )
        balance = self._balance.calculate(account, transactions, categories)
        await self._audit.log_integrity_issues(
            owner_id, balance.integrity_issues, correlation_id=correlation_id,
        )
        await self._audit.log_balance_calculated(
            owner_id,
            account.id,
            balance.balance,
            balance.transaction_count,
            correlation_id=correlation_id,
        )
        return balance

    # -------------------------------------------------------------------------
    # Balances
    # -------------------------------------------------------------------------

    async def get_account_balance(
        self,
        owner_id: str,
        account_id: str,
    ) -> AccountBalance:
        """
        Current balance of one account, derived from all its transactions.

        Raises:
            NotFoundError: Account missing or owned by someone else
        """
        correlation_id = create_correlation_id()
        (account,) = await self._read(
            "get_account_balance", owner_id, correlation_id,
            self._store.get_account(owner_id, account_id),
        )
        if account is None or account.owner_id != owner_id:
            raise await self._not_found(owner_id, "account", account_id, correlation_id)
        return await self._balance_of(owner_id, account, correlation_id)

    async def _all_balances(
        self,
        owner_id: str,
        operation: str,
    ) -> list[tuple[Account, AccountBalance]]:
        correlation_id = create_correlation_id()
        accounts, transactions, categories = await self._read(
            operation, owner_id, correlation_id,
            self._store.list_accounts(owner_id),
            self._store.list_transactions(owner_id),
            self._store.list_categories(owner_id),
        )

        owned = [a for a in accounts if a.owner_id == owner_id]
        by_account: dict[str, list] = {account.id: [] for account in owned}
        for txn in transactions:
            if txn.account_id in by_account:
                by_account[txn.account_id].append(txn)

        results = []
        issues = []
        for account in owned:
            balance = self._balance.calculate(account, by_account[account.id], categories)
            issues.extend(balance.integrity_issues)
            results.append((account, balance))

        await self._audit.log_integrity_issues(owner_id, issues, correlation_id=correlation_id)
        return results

    async def list_account_balances(self, owner_id: str) -> list[AccountBalance]:
        """Derived balances of all of an owner's accounts, in store order."""
        return [balance for _, balance in await self._all_balances(owner_id, "list_account_balances")]

    async def get_account_statistics(self, owner_id: str) -> AccountStatistics:
        """
        Totals across accounts.

        total_balance sums the derived balances of active accounts only.
        """
        results = await self._all_balances(owner_id, "get_account_statistics")
        active = [balance for account, balance in results if account.is_active]
        return AccountStatistics(
            total_balance=sum((b.balance for b in active), Decimal("0")),
            active_accounts=len(active),
            total_accounts=len(results),
        )

    # -------------------------------------------------------------------------
    # Budgets
    # -------------------------------------------------------------------------

    async def get_budget_progress(
        self,
        owner_id: str,
        *,
        budget_id: Optional[str] = None,
        category_id: Optional[str] = None,
        year: Optional[int] = None,
        month: Optional[int] = None,
    ) -> BudgetProgress:
        """
        Progress of one budgeted category in one month.

        Look up by budget_id or by category_id, not both. With budget_id,
        a missing year or month is taken from the budget itself; with
        category_id it defaults to the current month.
        Every budget row of the resolved (category, year, month) slot is
        summed into the cap.

        Raises:
            ValueError: Neither or both of budget_id and category_id given
            NotFoundError: Budget/category missing, foreign, or no budget
                exists for the slot
            InvalidPeriodError: Invalid year or month
        """
        if (budget_id is None) == (category_id is None):
            raise ValueError("Provide exactly one of budget_id or category_id")

        correlation_id = create_correlation_id()

        if budget_id is not None:
            (budget,) = await self._read(
                "get_budget_progress", owner_id, correlation_id,
                self._store.get_budget(owner_id, budget_id),
            )
            if budget is None:
                raise await self._not_found(owner_id, "budget", budget_id, correlation_id)
            category_id = budget.category_id
            if year is None:
                year = budget.year
            if month is None:
                month = budget.month

        period = await self._resolve_period(owner_id, year, month, correlation_id)

        (category,) = await self._read(
            "get_budget_progress", owner_id, correlation_id,
            self._store.get_category(owner_id, category_id),
        )
        if category is None:
            raise await self._not_found(owner_id, "category", category_id, correlation_id)

        # INCOME budgets measure every expense on the account
        txn_category = None if category.transaction_type == TransactionType.INCOME else category.id
        budgets, transactions, categories = await self._read(
            "get_budget_progress", owner_id, correlation_id,
            self._store.list_budgets(owner_id, year=period.year, month=period.month),
            self._store.list_transactions(
                owner_id,
                account_id=category.account_id,
                category_id=txn_category,
                date_from=period.start,
                date_until=period.end,
            ),
            self._store.list_categories(owner_id, account_id=category.account_id),
        )

        group = [b for b in budgets if b.category_id == category.id]
        if not group:
            raise await self._not_found(
                owner_id, "budget", f"{category.id}/{period.label}", correlation_id,
            )

        await self._audit.log_integrity_issues(
            owner_id,
            collect_issues(transactions, build_category_lookup(categories)),
            correlation_id=correlation_id,
        )
        progress = self._aggregator.aggregate(group, period, transactions, categories)
        if progress is None:
            raise await self._not_found(owner_id, "category", category.id, correlation_id)

        await self._audit.log_budget_progress(
            owner_id,
            category.id,
            period.label,
            progress.spent,
            progress.percentage_used,
            correlation_id=correlation_id,
        )
        return progress

    async def list_budget_progress(
        self,
        owner_id: str,
        year: Optional[int] = None,
        month: Optional[int] = None,
        account_id: Optional[str] = None,
    ) -> list[BudgetProgress]:
        """
        Progress rows for every budgeted category in one month.

        Raises:
            NotFoundError: account_id given but missing or foreign
            InvalidPeriodError: Invalid year or month
        """
        correlation_id = create_correlation_id()
        period = await self._resolve_period(owner_id, year, month, correlation_id)

        if account_id is not None:
            (account,) = await self._read(
                "list_budget_progress", owner_id, correlation_id,
                self._store.get_account(owner_id, account_id),
            )
            if account is None:
                raise await self._not_found(owner_id, "account", account_id, correlation_id)

        budgets, transactions, categories = await self._read(
            "list_budget_progress", owner_id, correlation_id,
            self._store.list_budgets(
                owner_id, year=period.year, month=period.month, account_id=account_id,
            ),
            self._store.list_transactions(
                owner_id,
                account_id=account_id,
                date_from=period.start,
                date_until=period.end,
            ),
            self._store.list_categories(owner_id, account_id=account_id),
        )

        await self._audit.log_integrity_issues(
            owner_id,
            collect_issues(transactions, build_category_lookup(categories)),
            correlation_id=correlation_id,
        )
        rows = []
        for group in group_budgets(budgets):
            progress = self._aggregator.aggregate(group, period, transactions, categories)
            if progress is not None:
                rows.append(progress)
        return rows

    # -------------------------------------------------------------------------
    # Summaries
    # -------------------------------------------------------------------------

    async def get_period_summary(
        self,
        owner_id: str,
        account_id: Optional[str] = None,
        year: Optional[int] = None,
        month: Optional[int] = None,
        recent_limit: Optional[int] = None,
        top_categories: Optional[int] = None,
    ) -> PeriodSummary:
        """
        Dashboard summary of one month, optionally for one account.

        Raises:
            NotFoundError: account_id given but missing or foreign
            InvalidPeriodError: Invalid year or month
            ValueError: Negative recent_limit or top_categories
        """
        if recent_limit is None:
            recent_limit = self._settings.recent_transactions_limit
        if top_categories is None:
            top_categories = self._settings.top_categories_limit
        if recent_limit < 0 or (top_categories is not None and top_categories < 0):
            raise ValueError("recent_limit and top_categories must not be negative")

        correlation_id = create_correlation_id()
        period = await self._resolve_period(owner_id, year, month, correlation_id)

        accounts, categories, transactions, budgets = await self._read(
            "get_period_summary", owner_id, correlation_id,
            self._store.list_accounts(owner_id),
            self._store.list_categories(owner_id),
            self._store.list_transactions(owner_id, account_id=account_id),
            self._store.list_budgets(owner_id, year=period.year, month=period.month),
        )

        if account_id is not None and not any(a.id == account_id for a in accounts):
            raise await self._not_found(owner_id, "account", account_id, correlation_id)

        summary = self._composer.compose(
            owner_id,
            period,
            accounts,
            categories,
            transactions,
            budgets,
            account_id=account_id,
            recent_limit=recent_limit,
            top_categories=top_categories,
        )

        await self._audit.log_integrity_issues(
            owner_id, summary.integrity_issues, correlation_id=correlation_id,
        )
        await self._audit.log_summary_composed(
            owner_id,
            period.label,
            account_id,
            summary.kpis.transaction_count,
            len(summary.budget_progress),
            correlation_id=correlation_id,
        )
        return summary
