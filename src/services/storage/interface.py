"""
Abstract Storage Interface

DESIGN DECISION: We define an abstract interface for ledger reads.
This allows us to:
1. Keep Google Sheets and in-memory backends behind one contract
2. Use in-memory storage for testing
3. Keep the reconciliation engine decoupled from storage implementation

The interface is read-only. The engine never writes to the ledger;
writes belong to whatever maintains the ledger (a form, an import job).

Every method takes the owner id explicitly. There is no ambient or
default owner.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Optional
from uuid import UUID

from src.models.audit import AuditEvent
from src.models.ledger import Account, Budget, Category, Transaction


class LedgerStoreInterface(ABC):
    """
    Abstract interface for ledger storage reads.

    Any storage implementation (Google Sheets, PostgreSQL, etc.)
    must implement these methods. Results are always scoped to the
    given owner: a record owned by someone else behaves exactly like a
    record that does not exist.
    """

    @abstractmethod
    async def get_account(
        self,
        owner_id: str,
        account_id: str,
    ) -> Optional[Account]:
        """
        Retrieve one account.

        Args:
            owner_id: Owner the read is scoped to
            account_id: The account's identifier

        Returns:
            The account if found and owned by owner_id, None otherwise

        Raises:
            StorageError: If the backend read fails
        """
        pass

    @abstractmethod
    async def list_accounts(self, owner_id: str) -> list[Account]:
        """
        List all accounts of an owner, active or not.

        Args:
            owner_id: Owner the read is scoped to

        Returns:
            Accounts in storage order
        """
        pass

    @abstractmethod
    async def list_categories(
        self,
        owner_id: str,
        account_id: Optional[str] = None,
    ) -> list[Category]:
        """
        List categories reachable from the owner's accounts.

        Categories whose account is missing or foreign are not returned.

        Args:
            owner_id: Owner the read is scoped to
            account_id: Restrict to the categories of one account

        Returns:
            Matching categories
        """
        pass

    @abstractmethod
    async def get_category(
        self,
        owner_id: str,
        category_id: str,
    ) -> Optional[Category]:
        """
        Retrieve one category.

        Args:
            owner_id: Owner the read is scoped to
            category_id: The category's identifier

        Returns:
            The category if found and reachable from owner_id, None otherwise
        """
        pass

    @abstractmethod
    async def list_transactions(
        self,
        owner_id: str,
        account_id: Optional[str] = None,
        category_id: Optional[str] = None,
        date_from: Optional[datetime] = None,
        date_until: Optional[datetime] = None,
    ) -> list[Transaction]:
        """
        List transactions with optional filters.

        Args:
            owner_id: Owner the read is scoped to
            account_id: Filter by account
            category_id: Filter by category
            date_from: Transactions on or after this instant
            date_until: Transactions strictly before this instant

        Returns:
            Matching transactions, in no guaranteed order
        """
        pass

    @abstractmethod
    async def list_budgets(
        self,
        owner_id: str,
        year: Optional[int] = None,
        month: Optional[int] = None,
        account_id: Optional[str] = None,
    ) -> list[Budget]:
        """
        List budgets with their category attached.

        Ownership of a budget runs through its category's account, so a
        budget whose category cannot be resolved to one of the owner's
        accounts is not visible. Callers must still treat a None
        category as dangling.

        Args:
            owner_id: Owner the read is scoped to
            year: Filter by budget year
            month: Filter by budget month
            account_id: Filter by the account of the budget's category

        Returns:
            Matching budgets in storage order
        """
        pass

    @abstractmethod
    async def get_budget(
        self,
        owner_id: str,
        budget_id: str,
    ) -> Optional[Budget]:
        """
        Retrieve one budget with its category attached.

        Args:
            owner_id: Owner the read is scoped to
            budget_id: The budget's identifier

        Returns:
            The budget if found and reachable from owner_id, None otherwise
        """
        pass


class AuditStorageInterface(ABC):
    """
    Abstract interface for audit log storage.

    Audit logs are append-only - we never delete or modify them.
    """

    @abstractmethod
    async def append_event(self, event: AuditEvent) -> bool:
        """
        Append an audit event to the log.

        Args:
            event: The audit event to log

        Returns:
            True if logged successfully
        """
        pass

    @abstractmethod
    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        """
        Get all events for a correlation ID (one engine request).

        Args:
            correlation_id: The correlation identifier

        Returns:
            List of related events in chronological order
        """
        pass

    @abstractmethod
    async def get_events_by_entity(
        self,
        entity_type: str,
        entity_id: str,
    ) -> list[AuditEvent]:
        """
        Get all events for a specific entity.

        Args:
            entity_type: Type of entity (e.g., 'account', 'budget')
            entity_id: The entity's ID

        Returns:
            List of events in chronological order
        """
        pass

    @abstractmethod
    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        """
        Get the most recent audit events.

        Args:
            limit: Maximum number of events to return

        Returns:
            List of recent events (newest first)
        """
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class NotFoundError(StorageError):
    """Entity not found in storage (or not visible to the owner)."""

    def __init__(self, entity_type: str, entity_id: str, message: Optional[str] = None):
        self.entity_type = entity_type
        self.entity_id = entity_id
        super().__init__(message or f"{entity_type.capitalize()} not found: {entity_id}")


class ConnectionError(StorageError):
    """Could not connect to storage backend."""
    pass
