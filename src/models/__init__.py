"""
Data Models Package

This package contains all Pydantic models used in the Ledger Reconciler.
All data flowing through the engine must conform to these schemas.
"""

from src.models.ledger import (
    Account,
    AccountType,
    Budget,
    Category,
    EntityId,
    LedgerModel,
    Transaction,
    TransactionType,
)
from src.models.reports import (
    AccountBalance,
    AccountStatistics,
    BudgetProgress,
    CategoryBreakdownItem,
    IntegrityIssue,
    PeriodKPIs,
    PeriodSummary,
    RecentTransaction,
)
from src.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Ledger models
    "Account",
    "AccountType",
    "Budget",
    "Category",
    "EntityId",
    "LedgerModel",
    "Transaction",
    "TransactionType",
    # Report models
    "AccountBalance",
    "AccountStatistics",
    "BudgetProgress",
    "CategoryBreakdownItem",
    "IntegrityIssue",
    "PeriodKPIs",
    "PeriodSummary",
    "RecentTransaction",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
