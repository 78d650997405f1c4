"""
Audit Models for the Ledger Reconciler

Every engine read that produces a figure a user will act on is logged.
This provides:
1. Traceability of what was computed, for whom, and from how many rows
2. A visible trail of data problems that were absorbed instead of raised
3. Debugging information when things go wrong

DESIGN DECISION: Audit logs are append-only. We never delete or modify them.
"""

import json
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


def _utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


class AuditEventType(str, Enum):
    """
    Types of events we audit.

    Every engine operation has its own event type.
    """
    # Computations
    BALANCE_CALCULATED = "balance_calculated"
    BUDGET_PROGRESS_CALCULATED = "budget_progress_calculated"
    PERIOD_SUMMARY_COMPOSED = "period_summary_composed"

    # Absorbed problems
    DATA_INTEGRITY_WARNING = "data_integrity_warning"

    # Caller errors
    RECORD_NOT_FOUND = "record_not_found"
    INVALID_PERIOD = "invalid_period"

    # System events
    STORAGE_ERROR = "storage_error"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AuditEvent(BaseModel):
    """
    A single audit event.

    This is the core unit of our audit trail.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=_utcnow,
        description="When the event occurred (UTC)"
    )

    # Event classification
    event_type: AuditEventType = Field(
        ...,
        description="Type of event"
    )
    severity: AuditSeverity = Field(
        default=AuditSeverity.INFO,
        description="Event severity"
    )

    # Context - what entity is this about?
    owner_id: Optional[str] = Field(
        default=None,
        description="Owner the computation was scoped to"
    )
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'account', 'budget', 'period')"
    )
    entity_id: Optional[str] = Field(
        default=None,
        description="ID of the entity this event relates to"
    )

    # Correlation - for tracking related events
    correlation_id: Optional[UUID] = Field(
        default=None,
        description="ID to correlate the events of one request"
    )

    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )
    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional event-specific data"
    )

    # Error information (if applicable)
    error_code: Optional[str] = None
    error_message: Optional[str] = None

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "owner_id": self.owner_id,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_code": self.error_code,
            "error_message": self.error_message,
        }

    def to_sheets_row(self) -> list:
        """
        Convert to a row suitable for Google Sheets storage.

        Returns columns in order:
        [event_id, timestamp, event_type, severity, owner_id, entity_type,
         entity_id, correlation_id, description, details_json, error_message]
        """
        return [
            str(self.event_id),
            self.timestamp.isoformat(),
            self.event_type.value,
            self.severity.value,
            self.owner_id or "",
            self.entity_type or "",
            self.entity_id or "",
            str(self.correlation_id) if self.correlation_id else "",
            self.description,
            json.dumps(self.details, default=str) if self.details else "",
            self.error_message or "",
        ]


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.balance_calculated(owner_id, account_id, "920", 2, cid)
        event = AuditEventBuilder.record_not_found(owner_id, "account", "7", cid)
    """

    @staticmethod
    def balance_calculated(
        owner_id: str,
        account_id: str,
        balance: str,
        transaction_count: int,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.BALANCE_CALCULATED,
            owner_id=owner_id,
            entity_type="account",
            entity_id=account_id,
            correlation_id=correlation_id,
            description=f"Balance calculated from {transaction_count} transactions",
            details={
                "balance": balance,
                "transaction_count": transaction_count,
            },
        )

    @staticmethod
    def budget_progress_calculated(
        owner_id: str,
        category_id: str,
        period: str,
        spent: str,
        percentage_used: str,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.BUDGET_PROGRESS_CALCULATED,
            owner_id=owner_id,
            entity_type="budget",
            entity_id=category_id,
            correlation_id=correlation_id,
            description=f"Budget progress for {period}: {percentage_used}% used",
            details={
                "period": period,
                "spent": spent,
                "percentage_used": percentage_used,
            },
        )

    @staticmethod
    def period_summary_composed(
        owner_id: str,
        period: str,
        account_id: Optional[str],
        transaction_count: int,
        budget_count: int,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PERIOD_SUMMARY_COMPOSED,
            owner_id=owner_id,
            entity_type="period",
            entity_id=period,
            correlation_id=correlation_id,
            description=f"Summary for {period} composed",
            details={
                "account_id": account_id,
                "transaction_count": transaction_count,
                "budget_count": budget_count,
            },
        )

    @staticmethod
    def data_integrity_warning(
        owner_id: str,
        issues: list[dict],
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.DATA_INTEGRITY_WARNING,
            severity=AuditSeverity.WARNING,
            owner_id=owner_id,
            correlation_id=correlation_id,
            description=f"{len(issues)} record(s) skipped or corrected",
            details={
                "issues": issues,
            },
        )

    @staticmethod
    def record_not_found(
        owner_id: str,
        entity_type: str,
        entity_id: str,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.RECORD_NOT_FOUND,
            severity=AuditSeverity.WARNING,
            owner_id=owner_id,
            entity_type=entity_type,
            entity_id=entity_id,
            correlation_id=correlation_id,
            description=f"{entity_type.capitalize()} {entity_id} not found",
            error_code="not_found",
        )

    @staticmethod
    def invalid_period(
        owner_id: str,
        year: Any,
        month: Any,
        error_message: str,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.INVALID_PERIOD,
            severity=AuditSeverity.WARNING,
            owner_id=owner_id,
            entity_type="period",
            correlation_id=correlation_id,
            description="Rejected invalid period",
            details={
                "year": year,
                "month": month,
            },
            error_code="invalid_period",
            error_message=error_message,
        )

    @staticmethod
    def storage_error(
        operation: str,
        error_message: str,
        owner_id: Optional[str] = None,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.STORAGE_ERROR,
            severity=AuditSeverity.ERROR,
            owner_id=owner_id,
            correlation_id=correlation_id,
            description=f"Storage error during {operation}",
            details={
                "operation": operation,
            },
            error_message=error_message,
        )
