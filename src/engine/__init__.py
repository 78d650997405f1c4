"""
Reconciliation Engine Package

Pure calculators (balance, budget, summary) plus the async
ReconciliationService that feeds them from a ledger store.
"""

from src.engine.balance import BalanceCalculator
from src.engine.budget import BudgetAggregator, group_budgets
from src.engine.classification import Classified, build_category_lookup, classify
from src.engine.period import InvalidPeriodError, Period, resolve_period
from src.engine.summary import SummaryComposer
from src.engine.service import ReconciliationService

__all__ = [
    # Calculators
    "BalanceCalculator",
    "BudgetAggregator",
    "SummaryComposer",
    "group_budgets",
    # Classification
    "Classified",
    "build_category_lookup",
    "classify",
    # Periods
    "InvalidPeriodError",
    "Period",
    "resolve_period",
    # Service
    "ReconciliationService",
]
