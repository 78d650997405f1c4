"""
Summary Composer

Builds the one-month dashboard view: KPIs, expense breakdown by
category, budget progress rows and the most recent transactions.

DESIGN DECISION: The composer is pure and works on rows already read
for one owner. It still re-checks ownership itself, so a store that
leaks another owner's rows cannot leak them into a summary.

Note: the recent-transactions list is NOT limited to the period. It is
the latest activity on the (filtered) accounts, whatever the month.
"""

from decimal import Decimal
from typing import Iterable, Optional

from src.engine.budget import BudgetAggregator, group_budgets
from src.engine.classification import build_category_lookup, classify
from src.engine.period import Period
from src.models.ledger import Account, Budget, Category, Transaction, TransactionType
from src.models.reports import (
    BudgetProgress,
    CategoryBreakdownItem,
    IntegrityIssue,
    PeriodKPIs,
    PeriodSummary,
    RecentTransaction,
)


class SummaryComposer:
    """Composes a PeriodSummary from an owner's ledger rows."""

    def __init__(
        self,
        aggregator: Optional[BudgetAggregator] = None,
        uncategorized_label: str = "Uncategorized",
        uncategorized_icon: str = "📝",
    ):
        self._aggregator = aggregator or BudgetAggregator()
        self._uncategorized_label = uncategorized_label
        self._uncategorized_icon = uncategorized_icon

    def compose(
        self,
        owner_id: str,
        period: Period,
        accounts: Iterable[Account],
        categories: Iterable[Category],
        transactions: Iterable[Transaction],
        budgets: Iterable[Budget],
        account_id: Optional[str] = None,
        recent_limit: int = 10,
        top_categories: Optional[int] = None,
    ) -> PeriodSummary:
        """
        Compose the summary of one month.

        Args:
            owner_id: Owner the rows belong to
            period: Month to summarize
            accounts, categories, transactions, budgets: The owner's rows
            account_id: Restrict everything to one account
            recent_limit: Length of the recent transactions list
            top_categories: Keep only the largest N breakdown rows

        Returns:
            The summary; an empty month yields all-zero KPIs and empty lists
        """
        owned_ids = {a.id for a in accounts if a.owner_id == owner_id}
        if account_id is not None:
            scope_ids = owned_ids & {account_id}
        else:
            scope_ids = owned_ids

        categories = list(categories)
        owner_categories = [c for c in categories if c.account_id in owned_ids]
        lookup = build_category_lookup(owner_categories)
        allowed_category_ids = {c.id for c in owner_categories if c.account_id in scope_ids}

        scoped = [t for t in transactions if t.account_id in scope_ids]
        in_window = [t for t in scoped if period.contains(t.date)]

        issues: list[IntegrityIssue] = []
        total_income = Decimal("0")
        total_expenses = Decimal("0")
        classified_count = 0
        breakdown: dict[str, list] = {}

        for txn in in_window:
            result = classify(txn, lookup)
            issues.extend(result.issues)
            if result.transaction_type is None:
                continue
            classified_count += 1
            if result.transaction_type == TransactionType.INCOME:
                total_income += result.amount
            else:
                total_expenses += result.amount
                entry = breakdown.setdefault(txn.category_id, [Decimal("0"), 0])
                entry[0] += result.amount
                entry[1] += 1

        savings_rate = (
            (total_income - total_expenses) / total_income * 100
            if total_income > 0 else Decimal("0")
        )
        kpis = PeriodKPIs(
            total_income=total_income,
            total_expenses=total_expenses,
            net_balance=total_income - total_expenses,
            savings_rate=savings_rate,
            transaction_count=classified_count,
        )

        return PeriodSummary(
            owner_id=owner_id,
            account_id=account_id,
            year=period.year,
            month=period.month,
            period_start=period.start,
            period_end=period.end,
            kpis=kpis,
            category_breakdown=self._breakdown(breakdown, lookup, top_categories),
            budget_progress=self._budget_rows(
                budgets, period, scoped, owner_categories, allowed_category_ids,
                {c.id for c in categories}, issues,
            ),
            recent_transactions=self._recent(scoped, lookup, recent_limit),
            integrity_issues=issues,
        )

    def _breakdown(
        self,
        totals: dict[str, list],
        lookup: dict[str, Category],
        top_categories: Optional[int],
    ) -> list[CategoryBreakdownItem]:
        items = []
        for category_id, (amount, count) in totals.items():
            category = lookup[category_id]
            items.append(CategoryBreakdownItem(
                category_id=category_id,
                category_name=category.name,
                category_icon=category.emoji,
                category_color=category.color,
                amount=amount,
                transaction_count=count,
            ))
        items.sort(key=lambda item: item.amount, reverse=True)
        if top_categories is not None:
            items = items[:top_categories]
        return items

    def _budget_rows(
        self,
        budgets: Iterable[Budget],
        period: Period,
        transactions: list[Transaction],
        categories: list[Category],
        allowed_category_ids: set[str],
        known_ids: set[str],
        issues: list[IntegrityIssue],
    ) -> list[BudgetProgress]:
        # known_ids spans every category passed in; a budget on another
        # owner's category is skipped silently, not reported
        in_period = []
        for budget in budgets:
            if budget.year != period.year or budget.month != period.month:
                continue
            if budget.category_id not in known_ids:
                issues.append(IntegrityIssue(
                    record_type="budget",
                    record_id=budget.id,
                    issue_type="dangling_category",
                    message=f"Budget category {budget.category_id} does not exist",
                ))
                continue
            if budget.category_id in allowed_category_ids:
                in_period.append(budget)

        rows = []
        for group in group_budgets(in_period):
            progress = self._aggregator.aggregate(group, period, transactions, categories)
            if progress is not None:
                rows.append(progress)
        return rows

    def _recent(
        self,
        transactions: list[Transaction],
        lookup: dict[str, Category],
        limit: int,
    ) -> list[RecentTransaction]:
        rows = []
        for txn in sorted(transactions, key=lambda t: t.date, reverse=True):
            if len(rows) >= limit:
                break
            result = classify(txn, lookup)
            if result.excluded:
                continue
            category = lookup.get(txn.category_id) if txn.category_id else None
            rows.append(RecentTransaction(
                id=txn.id,
                account_id=txn.account_id,
                category_id=txn.category_id,
                date=txn.date,
                amount=result.amount if result.transaction_type else abs(txn.amount),
                note=txn.note,
                category_name=category.name if category else self._uncategorized_label,
                category_icon=(category.emoji if category and category.emoji
                               else self._uncategorized_icon),
                transaction_type=result.transaction_type,
            ))
        return rows
