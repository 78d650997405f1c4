"""
Storage Services Package

Provides the abstract ledger/audit interfaces and their implementations.
Google Sheets and in-memory backends answer every read through the same
LedgerSnapshot, so they are interchangeable.
"""

from src.services.storage.interface import (
    AuditStorageInterface,
    ConnectionError,
    LedgerStoreInterface,
    NotFoundError,
    StorageError,
)
from src.services.storage.rows import (
    DataIntegrityError,
    LedgerRowMapper,
)
from src.services.storage.memory import (
    InMemoryAuditStorage,
    InMemoryLedgerStore,
    LedgerSnapshot,
)
from src.services.storage.google_sheets import (
    GoogleSheetsAuditStorage,
    GoogleSheetsClient,
    GoogleSheetsLedgerStore,
)

__all__ = [
    # Interfaces
    "AuditStorageInterface",
    "LedgerStoreInterface",
    # Exceptions
    "ConnectionError",
    "DataIntegrityError",
    "NotFoundError",
    "StorageError",
    # Row mapping
    "LedgerRowMapper",
    # In-memory implementation
    "InMemoryAuditStorage",
    "InMemoryLedgerStore",
    "LedgerSnapshot",
    # Google Sheets implementation
    "GoogleSheetsAuditStorage",
    "GoogleSheetsClient",
    "GoogleSheetsLedgerStore",
]
