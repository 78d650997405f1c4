"""
Google Sheets Storage Implementation

DESIGN DECISION: Google Sheets is used as a storage backend because:
1. Non-technical users can view and edit their ledger directly in Sheets
2. No database setup required
3. Built-in backup (Google's infrastructure)
4. Easy to export/migrate later

TRADEOFFS:
- Not suitable for high-volume data (we're fine for personal use)
- Limited query capabilities (we filter in Python, via LedgerSnapshot)
- Every read fetches whole worksheets; nothing is cached between reads

One worksheet per entity, first row is the header. Cells are zipped
with the header and validated through LedgerRowMapper, exactly as the
in-memory backend validates its rows.
"""

import asyncio
import json
from datetime import datetime
from typing import Any, Callable, Optional
from uuid import UUID

import gspread
import structlog
from google.oauth2.service_account import Credentials
from tenacity import retry, retry_if_not_exception_type, stop_after_attempt, wait_exponential

from src.config import GoogleSheetsSettings, get_settings
from src.models.audit import AuditEvent, AuditEventType, AuditSeverity
from src.models.ledger import Account, Budget, Category, Transaction
from src.services.storage.interface import (
    AuditStorageInterface,
    ConnectionError,
    LedgerStoreInterface,
    StorageError,
)
from src.services.storage.memory import LedgerSnapshot
from src.services.storage.rows import DataIntegrityError, LedgerRowMapper


logger = structlog.get_logger(__name__)


# Column layouts, written as the header row of newly created sheets
ACCOUNT_COLUMNS = [
    "id",
    "owner_id",
    "name",
    "type",
    "initial_balance",
    "is_active",
    "note",
    "created_at",
    "updated_at",
]

CATEGORY_COLUMNS = [
    "id",
    "account_id",
    "name",
    "transaction_type",
    "emoji",
    "color",
    "description",
    "created_at",
    "updated_at",
]

TRANSACTION_COLUMNS = [
    "id",
    "account_id",
    "category_id",
    "date",
    "amount",
    "note",
    "created_at",
    "updated_at",
]

# account_id/name/start_date/end_date only hold legacy budget rows
BUDGET_COLUMNS = [
    "id",
    "category_id",
    "year",
    "month",
    "total_amount",
    "account_id",
    "name",
    "start_date",
    "end_date",
    "created_at",
    "updated_at",
]

AUDIT_COLUMNS = [
    "event_id",
    "timestamp",
    "event_type",
    "severity",
    "owner_id",
    "entity_type",
    "entity_id",
    "correlation_id",
    "description",
    "details_json",
    "error_message",
]


class GoogleSheetsClient:
    """
    Low-level Google Sheets client wrapper.

    Handles authentication and provides retry logic for API calls.
    """

    def __init__(self, settings: Optional[GoogleSheetsSettings] = None):
        self._client: Optional[gspread.Client] = None
        self._spreadsheet: Optional[gspread.Spreadsheet] = None
        self._settings = settings or get_settings().google_sheets

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    def connect(self) -> gspread.Client:
        """
        Establish connection to Google Sheets.

        Uses service account credentials for authentication.
        """
        if self._client is None:
            try:
                scopes = [
                    "https://www.googleapis.com/auth/spreadsheets",
                    "https://www.googleapis.com/auth/drive",
                ]
                credentials = Credentials.from_service_account_file(
                    self._settings.credentials_path,
                    scopes=scopes,
                )
                self._client = gspread.authorize(credentials)
            except FileNotFoundError:
                raise ConnectionError(
                    f"Google credentials file not found: {self._settings.credentials_path}"
                )
            except Exception as e:
                raise ConnectionError(f"Failed to connect to Google Sheets: {e}")

        return self._client

    def get_spreadsheet(self) -> gspread.Spreadsheet:
        """Get the configured spreadsheet."""
        if self._spreadsheet is None:
            client = self.connect()
            try:
                self._spreadsheet = client.open_by_key(
                    self._settings.spreadsheet_id
                )
            except gspread.SpreadsheetNotFound:
                raise ConnectionError(
                    f"Spreadsheet not found: {self._settings.spreadsheet_id}"
                )
        return self._spreadsheet

    def get_worksheet(
        self,
        title: str,
        columns: list[str],
        rows: int = 1000,
    ) -> gspread.Worksheet:
        """Get a worksheet, creating it with a header row if missing."""
        spreadsheet = self.get_spreadsheet()
        try:
            sheet = spreadsheet.worksheet(title)
        except gspread.WorksheetNotFound:
            sheet = spreadsheet.add_worksheet(
                title=title,
                rows=rows,
                cols=len(columns),
            )
            sheet.append_row(columns)
        return sheet

    def get_accounts_sheet(self) -> gspread.Worksheet:
        return self.get_worksheet(self._settings.accounts_sheet_name, ACCOUNT_COLUMNS)

    def get_categories_sheet(self) -> gspread.Worksheet:
        return self.get_worksheet(self._settings.categories_sheet_name, CATEGORY_COLUMNS)

    def get_transactions_sheet(self) -> gspread.Worksheet:
        return self.get_worksheet(
            self._settings.transactions_sheet_name,
            TRANSACTION_COLUMNS,
            rows=5000,
        )

    def get_budgets_sheet(self) -> gspread.Worksheet:
        return self.get_worksheet(self._settings.budgets_sheet_name, BUDGET_COLUMNS)

    def get_audit_sheet(self) -> gspread.Worksheet:
        return self.get_worksheet(
            self._settings.audit_sheet_name,
            AUDIT_COLUMNS,
            rows=5000,  # More rows for audit log
        )


def rows_to_records(values: list[list[str]]) -> list[dict[str, str]]:
    """Zip data rows with the header row, skipping fully blank rows."""
    if not values:
        return []
    header = [cell.strip() for cell in values[0]]
    records = []
    for row in values[1:]:
        if not any(str(cell).strip() for cell in row):
            continue
        records.append(dict(zip(header, row)))
    return records


class GoogleSheetsLedgerStore(LedgerStoreInterface):
    """
    Google Sheets implementation of the ledger store.

    Each read fetches the worksheets in a worker thread, maps the rows,
    and answers the query from a LedgerSnapshot.
    """

    def __init__(
        self,
        client: Optional[GoogleSheetsClient] = None,
        mapper: Optional[LedgerRowMapper] = None,
    ):
        self._client = client or GoogleSheetsClient()
        self._mapper = mapper or LedgerRowMapper()

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        # connect() retries on its own
        retry=retry_if_not_exception_type(ConnectionError),
        reraise=True,
    )
    def _fetch_records(self, get_sheet: Callable[[], gspread.Worksheet]) -> list[dict[str, str]]:
        return rows_to_records(get_sheet().get_all_values())

    def _fetch_all(self) -> dict[str, list[dict[str, str]]]:
        return {
            "accounts": self._fetch_records(self._client.get_accounts_sheet),
            "categories": self._fetch_records(self._client.get_categories_sheet),
            "transactions": self._fetch_records(self._client.get_transactions_sheet),
            "budgets": self._fetch_records(self._client.get_budgets_sheet),
        }

    def _map_records(
        self,
        records: list[dict[str, Any]],
        map_row: Callable[[dict[str, Any]], Any],
    ) -> list:
        mapped = []
        for record in records:
            try:
                mapped.append(map_row(record))
            except DataIntegrityError as e:
                logger.warning("ledger_row_skipped", **e.issue.model_dump())
        return mapped

    async def _load_snapshot(self) -> LedgerSnapshot:
        try:
            records = await asyncio.to_thread(self._fetch_all)
        except ConnectionError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to read ledger sheets: {e}") from e

        accounts = self._map_records(records["accounts"], self._mapper.account)
        categories = self._map_records(records["categories"], self._mapper.category)
        transactions = self._map_records(records["transactions"], self._mapper.transaction)
        budgets = self._map_records(
            records["budgets"],
            lambda row: self._mapper.budget(row, categories),
        )
        return LedgerSnapshot(accounts, categories, transactions, budgets)

    async def get_account(self, owner_id: str, account_id: str) -> Optional[Account]:
        snapshot = await self._load_snapshot()
        return snapshot.get_account(owner_id, account_id)

    async def list_accounts(self, owner_id: str) -> list[Account]:
        snapshot = await self._load_snapshot()
        return snapshot.list_accounts(owner_id)

    async def list_categories(
        self,
        owner_id: str,
        account_id: Optional[str] = None,
    ) -> list[Category]:
        snapshot = await self._load_snapshot()
        return snapshot.list_categories(owner_id, account_id)

    async def get_category(self, owner_id: str, category_id: str) -> Optional[Category]:
        snapshot = await self._load_snapshot()
        return snapshot.get_category(owner_id, category_id)

    async def list_transactions(
        self,
        owner_id: str,
        account_id: Optional[str] = None,
        category_id: Optional[str] = None,
        date_from: Optional[datetime] = None,
        date_until: Optional[datetime] = None,
    ) -> list[Transaction]:
        snapshot = await self._load_snapshot()
        return snapshot.list_transactions(
            owner_id,
            account_id=account_id,
            category_id=category_id,
            date_from=date_from,
            date_until=date_until,
        )

    async def list_budgets(
        self,
        owner_id: str,
        year: Optional[int] = None,
        month: Optional[int] = None,
        account_id: Optional[str] = None,
    ) -> list[Budget]:
        snapshot = await self._load_snapshot()
        return snapshot.list_budgets(owner_id, year, month, account_id)

    async def get_budget(self, owner_id: str, budget_id: str) -> Optional[Budget]:
        snapshot = await self._load_snapshot()
        return snapshot.get_budget(owner_id, budget_id)


class GoogleSheetsAuditStorage(AuditStorageInterface):
    """
    Google Sheets implementation of audit log storage.

    Audit events are append-only.
    """

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    def _row_to_event(self, row: list) -> AuditEvent:
        """Convert a spreadsheet row to an AuditEvent."""
        def safe_get(index: int, default: str = "") -> str:
            try:
                return row[index] if row[index] else default
            except IndexError:
                return default

        return AuditEvent(
            event_id=UUID(safe_get(0)),
            timestamp=datetime.fromisoformat(safe_get(1)),
            event_type=AuditEventType(safe_get(2)),
            severity=AuditSeverity(safe_get(3)),
            owner_id=safe_get(4) or None,
            entity_type=safe_get(5) or None,
            entity_id=safe_get(6) or None,
            correlation_id=UUID(safe_get(7)) if safe_get(7) else None,
            description=safe_get(8),
            details=json.loads(safe_get(9)) if safe_get(9) else {},
            error_message=safe_get(10) or None,
        )

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    def _append_row(self, row: list) -> None:
        self._client.get_audit_sheet().append_row(row, value_input_option="RAW")

    async def append_event(self, event: AuditEvent) -> bool:
        """Append an audit event."""
        try:
            await asyncio.to_thread(self._append_row, event.to_sheets_row())
            return True
        except Exception as e:
            # Audit logging must not break the main flow
            logger.warning(
                "audit_sheet_write_failed",
                error=str(e),
                event_id=str(event.event_id),
            )
            return False

    async def _read_events(self, keep: Callable[[list], bool]) -> list[AuditEvent]:
        try:
            sheet = await asyncio.to_thread(self._client.get_audit_sheet)
            all_rows = (await asyncio.to_thread(sheet.get_all_values))[1:]
        except Exception as e:
            raise StorageError(f"Failed to get audit events: {e}") from e

        events = []
        for row in all_rows:
            if not row or not row[0] or not keep(row):
                continue
            try:
                events.append(self._row_to_event(row))
            except (ValueError, TypeError) as e:
                logger.warning("audit_row_skipped", error=str(e), event_id=row[0])
        return events

    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        """Get events by correlation ID."""
        events = await self._read_events(
            lambda row: len(row) > 7 and row[7] == str(correlation_id)
        )
        events.sort(key=lambda e: e.timestamp)
        return events

    async def get_events_by_entity(
        self,
        entity_type: str,
        entity_id: str,
    ) -> list[AuditEvent]:
        """Get events by entity."""
        events = await self._read_events(
            lambda row: len(row) > 6 and row[5] == entity_type and row[6] == entity_id
        )
        events.sort(key=lambda e: e.timestamp)
        return events

    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        """Get recent events."""
        events = await self._read_events(lambda row: True)
        # Sort newest first
        events.sort(key=lambda e: e.timestamp, reverse=True)
        return events[:limit]
