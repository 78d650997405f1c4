"""
Derived Report Models

Everything the engine hands back to a caller. None of these are stored:
they are recomputed from the ledger on every read.

DESIGN DECISION: Monetary values stay Decimal all the way out.
They serialize as strings in to_api_dict() so no precision is lost
on the way to a client.
"""

from datetime import datetime
from decimal import Decimal
from typing import Literal, Optional

from pydantic import Field

from src.models.ledger import EntityId, LedgerModel, Timestamp, TransactionType


ZERO = Decimal("0")

IssueType = Literal[
    "missing_category",
    "dangling_category",
    "unparseable_amount",
    "negative_amount",
    "foreign_account",
    "unmapped_row",
]


class IntegrityIssue(LedgerModel):
    """
    A data problem that was absorbed instead of raised.

    The offending record was skipped (or, for negative amounts, corrected)
    and the result is still valid for everything else.
    """

    record_type: str = Field(
        ...,
        description="Kind of record: transaction, budget, category, account"
    )
    record_id: Optional[str] = None
    issue_type: IssueType
    message: str = Field(
        ...,
        max_length=500,
    )


# =============================================================================
# BALANCES
# =============================================================================

class AccountBalance(LedgerModel):
    """Current derived balance of one account."""

    account_id: EntityId
    account_name: str
    initial_balance: Decimal
    balance: Decimal
    total_income: Decimal = ZERO
    total_expenses: Decimal = ZERO
    transaction_count: int = Field(
        default=0,
        ge=0,
        description="Transactions folded into the balance"
    )
    last_transaction_date: Optional[Timestamp] = None
    integrity_issues: list[IntegrityIssue] = Field(default_factory=list)


class AccountStatistics(LedgerModel):
    """Totals across all of an owner's accounts."""

    total_balance: Decimal = Field(
        default=ZERO,
        description="Sum of derived balances of active accounts"
    )
    active_accounts: int = Field(default=0, ge=0)
    total_accounts: int = Field(default=0, ge=0)


# =============================================================================
# BUDGETS
# =============================================================================

class BudgetProgress(LedgerModel):
    """
    Progress of one budgeted (category, year, month) slot.

    budget_ids lists every stored row that was summed into total_amount;
    budget_id is the first of them.
    """

    budget_id: EntityId
    budget_ids: list[EntityId] = Field(default_factory=list)
    category_id: EntityId
    category_name: str
    category_icon: str
    category_color: str
    category_type: TransactionType
    year: int
    month: int
    total_amount: Decimal
    spent: Decimal = ZERO
    remaining: Decimal = ZERO
    percentage_used: Decimal = Field(
        default=ZERO,
        description="spent / total_amount * 100, 0 when total_amount is 0"
    )
    transaction_count: int = Field(default=0, ge=0)
    last_transaction_date: Optional[Timestamp] = None
    is_over_budget: bool = False


# =============================================================================
# PERIOD SUMMARY
# =============================================================================

class PeriodKPIs(LedgerModel):
    """Headline numbers for one month."""

    total_income: Decimal = ZERO
    total_expenses: Decimal = ZERO
    net_balance: Decimal = ZERO
    savings_rate: Decimal = Field(
        default=ZERO,
        description="(income - expenses) / income * 100, 0 when there is no income"
    )
    transaction_count: int = Field(default=0, ge=0)


class CategoryBreakdownItem(LedgerModel):
    """Expense total of one category within the period."""

    category_id: EntityId
    category_name: str
    category_icon: Optional[str] = None
    category_color: Optional[str] = None
    amount: Decimal
    transaction_count: int = Field(default=0, ge=0)


class RecentTransaction(LedgerModel):
    """A transaction row annotated for display."""

    id: EntityId
    account_id: EntityId
    category_id: Optional[EntityId] = None
    date: Timestamp
    amount: Decimal
    note: Optional[str] = None
    category_name: str
    category_icon: str
    transaction_type: Optional[TransactionType] = Field(
        default=None,
        description="None when the category cannot be resolved"
    )


class PeriodSummary(LedgerModel):
    """Everything a dashboard needs for one month."""

    owner_id: EntityId
    account_id: Optional[EntityId] = None
    year: int
    month: int
    period_start: datetime
    period_end: datetime = Field(
        ...,
        description="Exclusive upper bound of the window"
    )
    kpis: PeriodKPIs = Field(default_factory=PeriodKPIs)
    category_breakdown: list[CategoryBreakdownItem] = Field(default_factory=list)
    budget_progress: list[BudgetProgress] = Field(default_factory=list)
    recent_transactions: list[RecentTransaction] = Field(default_factory=list)
    integrity_issues: list[IntegrityIssue] = Field(default_factory=list)
