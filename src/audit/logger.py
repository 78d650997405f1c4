"""
Audit Logger

DESIGN DECISION: Every engine read that produces figures is logged.
This provides:
1. Traceability of what was computed for which owner
2. A record of every data problem that was absorbed instead of raised
3. Debugging capability

The audit logger:
- Is async to not block main flow
- Gracefully handles failures (doesn't crash a read if logging fails)
- Supports correlation IDs to trace the events of one request
"""

from typing import Any, Optional
from uuid import UUID, uuid4

import structlog

from src.models.audit import AuditEvent, AuditEventBuilder, AuditSeverity
from src.models.reports import IntegrityIssue
from src.services.storage import AuditStorageInterface


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


class AuditLogger:
    """
    Central audit logging service.

    Logs events both to:
    1. Structured local log (for debugging)
    2. Audit storage, when configured (in memory or a Sheets tab)
    """

    def __init__(
        self,
        storage: Optional[AuditStorageInterface] = None,
    ):
        """
        Initialize audit logger.

        Args:
            storage: Storage backend for persistence.
                    If None, only logs locally.
        """
        self._storage = storage
        self._logger = structlog.get_logger("audit")

    async def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Always logs locally. Persists to storage if available.

        Returns True if storage write succeeded (or no storage configured).
        """
        log_dict = event.to_log_dict()

        if event.severity in (AuditSeverity.ERROR, AuditSeverity.CRITICAL):
            self._logger.error("audit_event", **log_dict)
        elif event.severity == AuditSeverity.WARNING:
            self._logger.warning("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)

        if self._storage:
            try:
                return await self._storage.append_event(event)
            except Exception as e:
                # Log failure but don't raise
                self._logger.error(
                    "audit_storage_failed",
                    error=str(e),
                    event_id=str(event.event_id),
                )
                return False

        return True

    async def log_balance_calculated(
        self,
        owner_id: str,
        account_id: str,
        balance: Any,
        transaction_count: int,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a derived account balance."""
        event = AuditEventBuilder.balance_calculated(
            owner_id=owner_id,
            account_id=account_id,
            balance=str(balance),
            transaction_count=transaction_count,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_budget_progress(
        self,
        owner_id: str,
        category_id: str,
        period: str,
        spent: Any,
        percentage_used: Any,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a budget progress computation."""
        event = AuditEventBuilder.budget_progress_calculated(
            owner_id=owner_id,
            category_id=category_id,
            period=period,
            spent=str(spent),
            percentage_used=str(percentage_used),
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_summary_composed(
        self,
        owner_id: str,
        period: str,
        account_id: Optional[str],
        transaction_count: int,
        budget_count: int,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a composed period summary."""
        event = AuditEventBuilder.period_summary_composed(
            owner_id=owner_id,
            period=period,
            account_id=account_id,
            transaction_count=transaction_count,
            budget_count=budget_count,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_integrity_issues(
        self,
        owner_id: str,
        issues: list[IntegrityIssue],
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log absorbed data problems. Nothing is logged for an empty list."""
        if not issues:
            return
        event = AuditEventBuilder.data_integrity_warning(
            owner_id=owner_id,
            issues=[issue.model_dump() for issue in issues],
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_not_found(
        self,
        owner_id: str,
        entity_type: str,
        entity_id: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a lookup that found nothing for this owner."""
        event = AuditEventBuilder.record_not_found(
            owner_id=owner_id,
            entity_type=entity_type,
            entity_id=entity_id,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_invalid_period(
        self,
        owner_id: str,
        year: Any,
        month: Any,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a rejected period."""
        event = AuditEventBuilder.invalid_period(
            owner_id=owner_id,
            year=year,
            month=month,
            error_message=error_message,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_storage_error(
        self,
        operation: str,
        error_message: str,
        owner_id: Optional[str] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a failed ledger read."""
        event = AuditEventBuilder.storage_error(
            operation=operation,
            error_message=error_message,
            owner_id=owner_id,
            correlation_id=correlation_id,
        )
        await self.log(event)


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use this at the start of each engine request.
    Pass it through all subsequent operations.
    """
    return uuid4()
