"""Tests for the audit logger and in-memory audit storage."""

from decimal import Decimal

import pytest

from src.audit import AuditLogger, create_correlation_id
from src.models.audit import AuditEvent, AuditEventType, AuditSeverity
from src.models.reports import IntegrityIssue
from src.services.storage import AuditStorageInterface, InMemoryAuditStorage


class BrokenAuditStorage(AuditStorageInterface):
    """Storage whose writes always fail."""

    async def append_event(self, event: AuditEvent) -> bool:
        raise RuntimeError("disk full")

    async def get_events_by_correlation_id(self, correlation_id):
        return []

    async def get_events_by_entity(self, entity_type, entity_id):
        return []

    async def get_recent_events(self, limit=100):
        return []


class TestAuditLogger:
    """Tests for AuditLogger."""

    @pytest.mark.asyncio
    async def test_events_are_persisted(self, audit_storage):
        """Test logged events reach storage."""
        audit = AuditLogger(audit_storage)
        await audit.log_balance_calculated("1", "10", Decimal("920"), 2)

        (event,) = audit_storage.events
        assert event.event_type == AuditEventType.BALANCE_CALCULATED
        assert event.owner_id == "1"
        assert event.details["balance"] == "920"

    @pytest.mark.asyncio
    async def test_local_only_logger(self):
        """Test a logger without storage reports success."""
        event = AuditEvent(event_type=AuditEventType.BALANCE_CALCULATED, description="x")
        assert await AuditLogger().log(event) is True

    @pytest.mark.asyncio
    async def test_storage_failure_is_swallowed(self):
        """Test a broken audit backend never fails the caller."""
        audit = AuditLogger(BrokenAuditStorage())
        event = AuditEvent(event_type=AuditEventType.STORAGE_ERROR, description="x")

        assert await audit.log(event) is False
        await audit.log_not_found("1", "account", "99")

    @pytest.mark.asyncio
    async def test_empty_integrity_list_logs_nothing(self, audit_storage):
        """Test clean data leaves no warning behind."""
        await AuditLogger(audit_storage).log_integrity_issues("1", [])
        assert audit_storage.events == []

    @pytest.mark.asyncio
    async def test_integrity_issues_become_one_warning(self, audit_storage):
        """Test all issues of one read are grouped into a single event."""
        issues = [
            IntegrityIssue(record_type="transaction", record_id="1",
                           issue_type="missing_category", message="Transaction has no category"),
            IntegrityIssue(record_type="transaction", record_id="2",
                           issue_type="negative_amount", message="Negative amount"),
        ]
        await AuditLogger(audit_storage).log_integrity_issues("1", issues)

        (event,) = audit_storage.events
        assert event.severity == AuditSeverity.WARNING
        assert event.event_type == AuditEventType.DATA_INTEGRITY_WARNING
        assert "2 record(s)" in event.description

    @pytest.mark.asyncio
    async def test_invalid_period_event(self, audit_storage):
        """Test rejected periods keep the raw input."""
        await AuditLogger(audit_storage).log_invalid_period("1", 2025, 13, "month must be 1..12")

        (event,) = audit_storage.events
        assert event.event_type == AuditEventType.INVALID_PERIOD
        assert event.error_message == "month must be 1..12"

    @pytest.mark.asyncio
    async def test_storage_error_is_an_error(self, audit_storage):
        """Test storage failures are logged at error severity."""
        await AuditLogger(audit_storage).log_storage_error("list_accounts", "timeout", owner_id="1")
        (event,) = audit_storage.events
        assert event.severity == AuditSeverity.ERROR


class TestInMemoryAuditStorage:
    """Tests for the in-memory audit log."""

    @pytest.mark.asyncio
    async def test_correlation_groups_one_request(self, service, audit_storage):
        """Test every event of one read shares its correlation id."""
        await service.get_account_balance("1", "10")
        await service.get_account_balance("1", "10")

        first = audit_storage.events[0]
        related = await audit_storage.get_events_by_correlation_id(first.correlation_id)
        assert related == [first]

    @pytest.mark.asyncio
    async def test_events_by_entity(self, audit_storage):
        """Test filtering by entity type and id."""
        audit = AuditLogger(audit_storage)
        await audit.log_not_found("1", "account", "10")
        await audit.log_not_found("1", "budget", "10")

        (event,) = await audit_storage.get_events_by_entity("budget", "10")
        assert event.entity_type == "budget"

    @pytest.mark.asyncio
    async def test_recent_events_limit(self, audit_storage):
        """Test the recent list is limited."""
        audit = AuditLogger(audit_storage)
        correlation_id = create_correlation_id()
        for account_id in range(5):
            await audit.log_not_found("1", "account", str(account_id), correlation_id=correlation_id)

        assert len(await audit_storage.get_recent_events(limit=3)) == 3
        assert len(await audit_storage.get_events_by_correlation_id(correlation_id)) == 5
