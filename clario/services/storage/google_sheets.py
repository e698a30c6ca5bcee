"""
Google Sheets Storage Implementation

DESIGN DECISION: Google Sheets is used as the storage backend because:
1. Non-technical users can read their books directly in Sheets
2. No database setup required
3. Built-in backup (Google's infrastructure)
4. Easy to export/migrate later

Each collection in the books gets its own worksheet, one record per row.
Nested fields (journal lines, recurring templates, quarterly payments)
are JSON-serialized into a single cell.

TRADEOFFS:
- A save rewrites every sheet; fine for a sole proprietor's volume
- No transactions across sheets (a failed save is retried as a whole)
- Anyone editing the sheet by hand can break a row; loads fail loudly
"""

import json
from dataclasses import dataclass
from typing import Optional
from uuid import UUID

import gspread
import structlog
from google.oauth2.service_account import Credentials
from pydantic import BaseModel, ValidationError
from tenacity import retry, stop_after_attempt, wait_exponential

from clario.config import get_settings
from clario.models.audit import AuditEvent, AuditEventType, AuditSeverity
from clario.models.ledger import (
    Account,
    Bill,
    BooksSnapshot,
    Invoice,
    Project,
    RecurringSchedule,
    TaxSettings,
    Transaction,
)
from clario.services.storage.interface import (
    AuditStorageInterface,
    BooksStorageInterface,
    StorageConnectionError,
    StorageError,
)


logger = structlog.get_logger(__name__)


# Column mappings for Audit sheet
AUDIT_COLUMNS = [
    "event_id",
    "timestamp",
    "event_type",
    "severity",
    "entity_type",
    "entity_id",
    "correlation_id",
    "description",
    "details_json",
    "error_message",
    "is_user_action",
]


@dataclass(frozen=True)
class SheetTable:
    """How one snapshot collection maps onto a worksheet."""

    snapshot_field: str
    sheet_setting: str
    model: type[BaseModel]
    json_columns: frozenset = frozenset()

    @property
    def columns(self) -> list[str]:
        return list(self.model.model_fields)


BOOKS_TABLES = [
    SheetTable("transactions", "transactions_sheet_name", Transaction, frozenset({"journal"})),
    SheetTable("invoices", "invoices_sheet_name", Invoice),
    SheetTable("bills", "bills_sheet_name", Bill),
    SheetTable("projects", "projects_sheet_name", Project),
    SheetTable("accounts", "accounts_sheet_name", Account),
    SheetTable("recurring", "recurring_sheet_name", RecurringSchedule, frozenset({"template"})),
]

TAX_SETTINGS_TABLE = SheetTable(
    "tax_settings",
    "tax_settings_sheet_name",
    TaxSettings,
    frozenset({"quarterly_payments"}),
)


def model_to_row(record: BaseModel, table: SheetTable) -> list[str]:
    """Convert a model to a spreadsheet row in the table's column order."""
    data = record.model_dump(mode="json")
    row = []
    for column in table.columns:
        value = data.get(column)
        if value is None:
            row.append("")
        elif column in table.json_columns:
            row.append(json.dumps(value))
        elif isinstance(value, bool):
            row.append("true" if value else "false")
        else:
            row.append(str(value))
    return row


def row_to_model(header: list[str], row: list[str], table: SheetTable) -> BaseModel:
    """
    Convert a spreadsheet row back into a model.

    Empty cells fall back to the model's defaults. Scalar cells are
    handed to pydantic as strings; it parses dates, decimals and UUIDs.

    Raises:
        StorageError: If the row can't be parsed
    """
    known = set(table.columns)
    data = {}
    for column, cell in zip(header, row):
        if column not in known or cell == "":
            continue
        if column in table.json_columns:
            try:
                data[column] = json.loads(cell)
            except json.JSONDecodeError as e:
                raise StorageError(f"Bad JSON in column '{column}': {e}")
        else:
            data[column] = cell

    try:
        return table.model.model_validate(data)
    except ValidationError as e:
        raise StorageError(f"Malformed {table.model.__name__} row: {e}")


class GoogleSheetsClient:
    """
    Low-level Google Sheets client wrapper.

    Handles authentication and provides retry logic for API calls.
    """

    def __init__(self):
        self._client: Optional[gspread.Client] = None
        self._spreadsheet: Optional[gspread.Spreadsheet] = None
        self._settings = get_settings().google_sheets

    @property
    def settings(self):
        return self._settings

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
                raise StorageConnectionError(
                    f"Google credentials file not found: {self._settings.credentials_path}"
                )
            except Exception as e:
                raise StorageConnectionError(f"Failed to connect to Google Sheets: {e}")

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
                raise StorageConnectionError(
                    f"Spreadsheet not found: {self._settings.spreadsheet_id}"
                )
        return self._spreadsheet

    def find_worksheet(self, title: str) -> Optional[gspread.Worksheet]:
        """Get a worksheet by title, or None if it doesn't exist."""
        try:
            return self.get_spreadsheet().worksheet(title)
        except gspread.WorksheetNotFound:
            return None

    def get_or_create_worksheet(
        self,
        title: str,
        columns: list[str],
        rows: int = 1000,
    ) -> gspread.Worksheet:
        """Get or create a worksheet, writing the header row on creation."""
        sheet = self.find_worksheet(title)
        if sheet is None:
            sheet = self.get_spreadsheet().add_worksheet(
                title=title,
                rows=rows,
                cols=len(columns),
            )
            sheet.append_row(columns)
        return sheet

    def get_audit_sheet(self) -> gspread.Worksheet:
        """Get or create the Audit worksheet."""
        return self.get_or_create_worksheet(
            self._settings.audit_sheet_name,
            AUDIT_COLUMNS,
            rows=5000,  # More rows for audit log
        )


class GoogleSheetsBooksStorage(BooksStorageInterface):
    """
    Google Sheets implementation of books snapshot storage.

    A save clears and rewrites every books sheet. A load reads them all
    back; a spreadsheet without a Transactions sheet has never been saved.
    """

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    def _sheet_name(self, table: SheetTable) -> str:
        return getattr(self._client.settings, table.sheet_setting)

    def _read_table(self, table: SheetTable) -> list[BaseModel]:
        sheet = self._client.find_worksheet(self._sheet_name(table))
        if sheet is None:
            return []

        values = sheet.get_all_values()
        if not values:
            return []

        header, records = values[0], []
        for row in values[1:]:
            if not row or not any(row):  # Skip empty rows
                continue
            records.append(row_to_model(header, row, table))
        return records

    def _write_table(self, table: SheetTable, records: list[BaseModel]) -> None:
        columns = table.columns
        sheet = self._client.get_or_create_worksheet(self._sheet_name(table), columns)
        values = [columns] + [model_to_row(record, table) for record in records]

        sheet.clear()
        if sheet.row_count < len(values):
            sheet.resize(rows=len(values) + 100)
        sheet.update(range_name="A1", values=values, value_input_option="RAW")

    async def load_books(self) -> Optional[BooksSnapshot]:
        """Read every books sheet into a snapshot."""
        try:
            if self._client.find_worksheet(self._sheet_name(BOOKS_TABLES[0])) is None:
                return None

            data = {table.snapshot_field: self._read_table(table) for table in BOOKS_TABLES}
            tax_rows = self._read_table(TAX_SETTINGS_TABLE)
            if tax_rows:
                data["tax_settings"] = tax_rows[0]
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to load books: {e}")

        snapshot = BooksSnapshot(**data)
        logger.info(
            "books_loaded",
            transactions=len(snapshot.transactions),
            invoices=len(snapshot.invoices),
            bills=len(snapshot.bills),
        )
        return snapshot

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    async def save_books(self, snapshot: BooksSnapshot) -> bool:
        """Rewrite every books sheet from the snapshot."""
        try:
            for table in BOOKS_TABLES:
                self._write_table(table, getattr(snapshot, table.snapshot_field))
            self._write_table(TAX_SETTINGS_TABLE, [snapshot.tax_settings])
        except Exception as e:
            raise StorageError(f"Failed to save books: {e}")

        logger.info("books_saved", transactions=len(snapshot.transactions))
        return True


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
            timestamp=safe_get(1),
            event_type=AuditEventType(safe_get(2)),
            severity=AuditSeverity(safe_get(3)),
            entity_type=safe_get(4) or None,
            entity_id=UUID(safe_get(5)) if safe_get(5) else None,
            correlation_id=UUID(safe_get(6)) if safe_get(6) else None,
            description=safe_get(7),
            details=json.loads(safe_get(8)) if safe_get(8) else {},
            error_message=safe_get(9) or None,
            is_user_action=safe_get(10).lower() == "true",
        )

    def _read_events(self, keep) -> list[AuditEvent]:
        sheet = self._client.get_audit_sheet()
        events = []
        for row in sheet.get_all_values()[1:]:
            if not row or not row[0] or not keep(row):
                continue
            try:
                events.append(self._row_to_event(row))
            except (ValueError, ValidationError) as e:
                logger.warning("audit_row_unreadable", error=str(e), event_id=row[0])
        return events

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    async def append_event(self, event: AuditEvent) -> bool:
        """Append an audit event."""
        try:
            sheet = self._client.get_audit_sheet()
            sheet.append_row(event.to_sheets_row(), value_input_option="RAW")
            return True
        except Exception as e:
            # Audit logging should not break the main flow
            logger.warning("audit_write_failed", error=str(e), event_id=str(event.event_id))
            return False

    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        """Get events by correlation ID."""
        try:
            events = self._read_events(
                lambda row: len(row) > 6 and row[6] == str(correlation_id)
            )
        except Exception as e:
            raise StorageError(f"Failed to get audit events: {e}")
        events.sort(key=lambda e: e.timestamp)
        return events

    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        """Get recent events."""
        try:
            events = self._read_events(lambda row: True)
        except Exception as e:
            raise StorageError(f"Failed to get audit events: {e}")
        # Newest first
        events.sort(key=lambda e: e.timestamp, reverse=True)
        return events[:limit]
