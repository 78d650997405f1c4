"""
Budget Aggregator

Computes progress of a budgeted (category, year, month) slot against
the transactions of that month.

What "spent" means depends on the category type:
- EXPENSE category: sum of that category's transactions in the month
- INCOME category: sum of ALL expense transactions on the category's
  account in the month

CRITICAL: The INCOME rule is intentional. An income budget is a savings
target, and its progress is measured against total outflow, not against
the income itself.

DESIGN DECISION: Several stored budgets for the same slot are one budget
whose cap is their sum. Grouping is deterministic (first appearance).
"""

from decimal import Decimal
from typing import Iterable, Optional

from src.engine.classification import build_category_lookup, classify
from src.engine.period import Period
from src.models.ledger import Budget, Category, Transaction, TransactionType
from src.models.reports import BudgetProgress


def group_budgets(budgets: Iterable[Budget]) -> list[list[Budget]]:
    """Group budget rows by (category_id, year, month), in first-appearance order."""
    groups: dict[tuple[str, int, int], list[Budget]] = {}
    for budget in budgets:
        groups.setdefault(budget.key, []).append(budget)
    return list(groups.values())


class BudgetAggregator:
    """Derives spent/remaining/percentage for one budget group."""

    def __init__(
        self,
        default_icon: str = "📦",
        default_color: str = "#4CAF50",
    ):
        self._default_icon = default_icon
        self._default_color = default_color

    def aggregate(
        self,
        budgets: list[Budget],
        period: Period,
        transactions: Iterable[Transaction],
        categories: Iterable[Category],
    ) -> Optional[BudgetProgress]:
        """
        Compute progress for one group of budgets sharing a category.

        Args:
            budgets: Budget rows of one (category, year, month) slot
            period: Month whose window is measured
            transactions: Candidate transactions; only those in the window
                and relevant to the category are used
            categories: Categories used to classify transactions

        Returns:
            The progress row, or None when the budget's category cannot
            be resolved (dangling budgets are skipped, never fatal)

        Raises:
            ValueError: If budgets is empty or mixes categories
        """
        if not budgets:
            raise ValueError("At least one budget is required")
        category_ids = {budget.category_id for budget in budgets}
        if len(category_ids) != 1:
            raise ValueError(f"Budgets span several categories: {sorted(category_ids)}")

        lookup = build_category_lookup(categories)
        first = budgets[0]
        category = lookup.get(first.category_id) or first.category
        if category is None:
            return None
        lookup.setdefault(category.id, category)

        spent = Decimal("0")
        count = 0
        last_date = None

        for txn in transactions:
            if not period.contains(txn.date):
                continue
            if not self._is_relevant(txn, category):
                continue
            result = classify(txn, lookup)
            if result.transaction_type != TransactionType.EXPENSE:
                continue
            spent += result.amount
            count += 1
            if last_date is None or txn.date > last_date:
                last_date = txn.date

        total = sum((budget.total_amount for budget in budgets), Decimal("0"))
        percentage = spent / total * 100 if total > 0 else Decimal("0")

        return BudgetProgress(
            budget_id=first.id,
            budget_ids=[budget.id for budget in budgets],
            category_id=category.id,
            category_name=category.name,
            category_icon=category.emoji or self._default_icon,
            category_color=category.color or self._default_color,
            category_type=category.transaction_type,
            year=period.year,
            month=period.month,
            total_amount=total,
            spent=spent,
            remaining=total - spent,
            percentage_used=percentage,
            transaction_count=count,
            last_transaction_date=last_date,
            is_over_budget=spent > total,
        )

    @staticmethod
    def _is_relevant(txn: Transaction, category: Category) -> bool:
        if category.transaction_type == TransactionType.INCOME:
            return category.account_id is not None and txn.account_id == category.account_id
        return txn.category_id == category.id
