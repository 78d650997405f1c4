"""
Main Orchestrator for the Ledger Reconciler

This module ties together the components:
ledger store -> reconciliation service -> audit logger.

DESIGN DECISION: Wiring lives in one factory. Callers (an HTTP layer,
a CLI, a notebook) ask for components and never construct stores or
loggers themselves, so the backend choice stays a configuration matter.

If Google Sheets is selected but cannot be set up, the factory falls
back to the in-memory backend and says so in the log instead of
failing at startup.
"""

import logging
from typing import Optional

import structlog

from src.audit import AuditLogger
from src.config import get_settings
from src.engine import ReconciliationService
from src.services.storage import (
    GoogleSheetsAuditStorage,
    GoogleSheetsClient,
    GoogleSheetsLedgerStore,
    InMemoryAuditStorage,
    InMemoryLedgerStore,
    LedgerStoreInterface,
)


logger = structlog.get_logger(__name__)


def create_app_components(
    use_storage: bool = True,
) -> tuple[ReconciliationService, LedgerStoreInterface, Optional[GoogleSheetsClient]]:
    """
    Factory function to create all application components.

    Args:
        use_storage: Whether to build the configured storage backend.
                    Set to False for an in-memory ledger with
                    local-only audit logging.

    Returns:
        (reconciliation_service, ledger_store, sheets_client)
    """
    settings = get_settings()
    app_settings = settings.app
    logging.basicConfig(level=app_settings.effective_log_level)

    sheets_client = None
    store: LedgerStoreInterface
    audit_logger: AuditLogger

    if use_storage and app_settings.storage_backend == "google_sheets":
        try:
            sheets_client = GoogleSheetsClient(settings.google_sheets)
            store = GoogleSheetsLedgerStore(sheets_client)
            audit_logger = AuditLogger(GoogleSheetsAuditStorage(sheets_client))
        except Exception as e:
            # Storage not configured - continue without it
            logger.warning("storage_not_configured", backend="google_sheets", error=str(e))
            sheets_client = None
            store = InMemoryLedgerStore()
            audit_logger = AuditLogger(InMemoryAuditStorage())
    elif use_storage:
        store = InMemoryLedgerStore()
        audit_logger = AuditLogger(InMemoryAuditStorage())
    else:
        store = InMemoryLedgerStore()
        audit_logger = AuditLogger()  # Local-only logging

    service = ReconciliationService(
        store=store,
        audit_logger=audit_logger,
        settings=settings.engine,
    )
    logger.info(
        "app_components_created",
        environment=app_settings.app_environment,
        backend=type(store).__name__,
        debug_mode=app_settings.debug_mode,
    )
    return service, store, sheets_client
