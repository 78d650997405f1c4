"""Services package."""

from src.services.storage import (
    AuditStorageInterface,
    ConnectionError,
    DataIntegrityError,
    GoogleSheetsAuditStorage,
    GoogleSheetsClient,
    GoogleSheetsLedgerStore,
    InMemoryAuditStorage,
    InMemoryLedgerStore,
    LedgerRowMapper,
    LedgerStoreInterface,
    NotFoundError,
    StorageError,
)

__all__ = [
    # Storage services
    "AuditStorageInterface",
    "ConnectionError",
    "DataIntegrityError",
    "GoogleSheetsAuditStorage",
    "GoogleSheetsClient",
    "GoogleSheetsLedgerStore",
    "InMemoryAuditStorage",
    "InMemoryLedgerStore",
    "LedgerRowMapper",
    "LedgerStoreInterface",
    "NotFoundError",
    "StorageError",
]
