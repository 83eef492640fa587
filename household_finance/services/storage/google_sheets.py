"""
Google Sheets Storage Implementation

DESIGN DECISION: Google Sheets is used as the shared household store because:
1. Every household member can view the data directly in Sheets
2. No database setup required
3. Built-in backup (Google's infrastructure)
4. Easy to export/migrate later

TRADEOFFS:
- Not suitable for high-volume data (we're fine for a household)
- No transactions (we handle this with careful ordering)
- Limited query capabilities (we filter in Python)

Connection and reads are retried with backoff. Writes are NOT retried:
a failed write is reported to the caller, who decides what to do.

The implementation follows the abstract interface, so we can swap
to another store later without changing the report builders.
"""

import json
from datetime import datetime
from typing import Any, Optional
from uuid import UUID, uuid4

import gspread
import structlog
from google.oauth2.service_account import Credentials
from tenacity import retry, stop_after_attempt, wait_exponential

from household_finance.config import GoogleSheetsSettings, get_settings
from household_finance.models.audit import AuditEvent, AuditEventType, AuditSeverity
from household_finance.models.savings import SavingsAccount, SavingsSnapshot
from household_finance.models.transaction import (
    Transaction,
    TransactionType,
    TransactionUpdate,
)
from household_finance.services.storage.interface import (
    AuditStorageInterface,
    NotFoundError,
    SavingsStorageInterface,
    StorageConnectionError,
    StorageError,
    TransactionStorageInterface,
)
from household_finance.services.storage.memory import ACCOUNT_UPDATABLE_FIELDS


logger = structlog.get_logger(__name__)


# Column mappings, one worksheet per record stream
TRANSACTION_COLUMNS = [
    "id",
    "household_id",
    "type",
    "amount",
    "category",
    "description",
    "date",
    "savings_account_id",
    "created_at",
]

ACCOUNT_COLUMNS = [
    "id",
    "household_id",
    "name",
    "starting_amount",
    "current_value",
    "created_at",
]

SNAPSHOT_COLUMNS = [
    "id",
    "household_id",
    "account_id",
    "capital",
    "value",
    "created_at",
]

CATEGORY_COLUMNS = [
    "household_id",
    "name",
]

AUDIT_COLUMNS = [
    "event_id",
    "timestamp",
    "event_type",
    "severity",
    "household_id",
    "entity_type",
    "entity_id",
    "correlation_id",
    "description",
    "details_json",
    "error_message",
    "is_user_action",
]

read_retry = retry(
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, min=2, max=10),
    reraise=True,
)


def _row_to_dict(columns: list[str], row: list) -> dict[str, str]:
    """Map a sheet row onto column names; missing cells read as ""."""
    return {
        name: (row[index] if index < len(row) else "")
        for index, name in enumerate(columns)
    }


def _iso(value: Optional[datetime]) -> str:
    return value.isoformat() if value else ""


def _number(value: Optional[float]) -> str:
    return "" if value is None else repr(float(value))


class GoogleSheetsClient:
    """
    Low-level Google Sheets client wrapper.

    Handles authentication and provides retry logic for API calls.
    """

    def __init__(self, settings: Optional[GoogleSheetsSettings] = None):
        self._client: Optional[gspread.Client] = None
        self._spreadsheet: Optional[gspread.Spreadsheet] = None
        self._settings = settings or get_settings().google_sheets

    @read_retry
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

    def get_sheet(self, title: str, columns: list[str], rows: int = 1000) -> gspread.Worksheet:
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

    def get_transactions_sheet(self) -> gspread.Worksheet:
        return self.get_sheet(self._settings.transactions_sheet_name, TRANSACTION_COLUMNS)

    def get_accounts_sheet(self) -> gspread.Worksheet:
        return self.get_sheet(self._settings.savings_accounts_sheet_name, ACCOUNT_COLUMNS)

    def get_snapshots_sheet(self) -> gspread.Worksheet:
        # Append-only log grows fastest
        return self.get_sheet(
            self._settings.savings_snapshots_sheet_name, SNAPSHOT_COLUMNS, rows=5000
        )

    def get_categories_sheet(self) -> gspread.Worksheet:
        return self.get_sheet(self._settings.categories_sheet_name, CATEGORY_COLUMNS)

    def get_audit_sheet(self) -> gspread.Worksheet:
        return self.get_sheet(self._settings.audit_sheet_name, AUDIT_COLUMNS, rows=5000)


class GoogleSheetsHouseholdStorage(TransactionStorageInterface, SavingsStorageInterface):
    """
    Google Sheets implementation of the household record streams.

    One record per row. Store ids are uuid4 hex strings generated here.
    """

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    # -- row conversion -------------------------------------------------------

    @staticmethod
    def _transaction_to_row(tx: Transaction) -> list:
        return [
            tx.id or "",
            tx.household_id,
            tx.type.value,
            _number(tx.amount),
            tx.category or "",
            tx.description,
            tx.date.isoformat(),
            tx.savings_account_id or "",
            _iso(tx.created_at),
        ]

    @staticmethod
    def _row_to_transaction(row: list) -> Transaction:
        return Transaction.model_validate(_row_to_dict(TRANSACTION_COLUMNS, row))

    @staticmethod
    def _account_to_row(account: SavingsAccount) -> list:
        return [
            account.id or "",
            account.household_id,
            account.name,
            _number(account.starting_amount),
            _number(account.current_value),
            _iso(account.created_at),
        ]

    @staticmethod
    def _row_to_account(row: list) -> SavingsAccount:
        data: dict[str, Any] = _row_to_dict(ACCOUNT_COLUMNS, row)
        # An empty cell means "no asserted value", not zero
        if data["current_value"] == "":
            data["current_value"] = None
        return SavingsAccount.model_validate(data)

    @staticmethod
    def _snapshot_to_row(snapshot: SavingsSnapshot) -> list:
        return [
            snapshot.id or "",
            snapshot.household_id,
            snapshot.account_id,
            _number(snapshot.capital),
            _number(snapshot.value),
            snapshot.created_at.isoformat(),
        ]

    @staticmethod
    def _row_to_snapshot(row: list) -> SavingsSnapshot:
        return SavingsSnapshot.model_validate(_row_to_dict(SNAPSHOT_COLUMNS, row))

    def _parse_rows(self, rows: list[list], parse, kind: str) -> list:
        """Parse data rows, skipping empty and malformed ones."""
        records = []
        for row in rows:
            if not row or not row[0]:
                continue
            try:
                records.append(parse(row))
            except Exception as e:
                logger.warning("malformed_row_skipped", kind=kind, row_id=row[0], error=str(e))
        return records

    def _find_row(self, sheet: gspread.Worksheet, record_id: str) -> tuple[int, Optional[list]]:
        """Sheet row number (1-based, header is row 1) and row of a record id."""
        for idx, row in enumerate(sheet.get_all_values()[1:], start=2):
            if row and row[0] == record_id:
                return idx, row
        return -1, None

    # -- transactions ---------------------------------------------------------

    async def create_transaction(self, transaction: Transaction) -> Transaction:
        """Append a new transaction row."""
        stored = transaction.model_copy(update={"id": uuid4().hex})
        try:
            sheet = self._client.get_transactions_sheet()
            sheet.append_row(self._transaction_to_row(stored), value_input_option="RAW")
        except Exception as e:
            raise StorageError(f"Failed to save transaction: {e}")
        return stored

    @read_retry
    async def get_transaction(self, transaction_id: str) -> Optional[Transaction]:
        try:
            sheet = self._client.get_transactions_sheet()
            _, row = self._find_row(sheet, transaction_id)
        except Exception as e:
            raise StorageError(f"Failed to get transaction: {e}")
        return self._row_to_transaction(row) if row else None

    async def update_transaction(
        self,
        transaction_id: str,
        update: TransactionUpdate,
    ) -> Transaction:
        """Overwrite the editable fields of an existing row."""
        try:
            sheet = self._client.get_transactions_sheet()
            idx, row = self._find_row(sheet, transaction_id)
            if row is None:
                raise NotFoundError(f"Transaction not found: {transaction_id}")

            updated = update.apply_to(self._row_to_transaction(row))
            sheet.update(
                range_name=f"A{idx}",
                values=[self._transaction_to_row(updated)],
                value_input_option="RAW",
            )
            return updated
        except NotFoundError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to update transaction: {e}")

    async def delete_transaction(self, transaction_id: str) -> bool:
        try:
            sheet = self._client.get_transactions_sheet()
            idx, row = self._find_row(sheet, transaction_id)
            if row is None:
                return False
            sheet.delete_rows(idx)
            return True
        except Exception as e:
            raise StorageError(f"Failed to delete transaction: {e}")

    @read_retry
    async def list_transactions(
        self,
        household_id: str,
        transaction_type: Optional[TransactionType] = None,
    ) -> list[Transaction]:
        try:
            sheet = self._client.get_transactions_sheet()
            rows = sheet.get_all_values()[1:]  # Skip header
        except Exception as e:
            raise StorageError(f"Failed to list transactions: {e}")

        rows = [row for row in rows if len(row) > 1 and row[1] == household_id]
        transactions = self._parse_rows(rows, self._row_to_transaction, "transaction")
        if transaction_type is not None:
            transactions = [tx for tx in transactions if tx.type is transaction_type]
        return transactions

    @read_retry
    async def list_custom_categories(self, household_id: str) -> list[str]:
        try:
            sheet = self._client.get_categories_sheet()
            rows = sheet.get_all_values()[1:]
        except Exception as e:
            raise StorageError(f"Failed to list categories: {e}")

        names = []
        for row in rows:
            if len(row) > 1 and row[0] == household_id and row[1] and row[1] not in names:
                names.append(row[1])
        return names

    async def add_custom_category(self, household_id: str, name: str) -> bool:
        if name in await self.list_custom_categories(household_id):
            return False
        try:
            sheet = self._client.get_categories_sheet()
            sheet.append_row([household_id, name], value_input_option="RAW")
            return True
        except Exception as e:
            raise StorageError(f"Failed to add category: {e}")

    # -- savings accounts -----------------------------------------------------

    async def create_account(self, account: SavingsAccount) -> SavingsAccount:
        stored = account.model_copy(update={"id": uuid4().hex})
        try:
            sheet = self._client.get_accounts_sheet()
            sheet.append_row(self._account_to_row(stored), value_input_option="RAW")
        except Exception as e:
            raise StorageError(f"Failed to save savings account: {e}")
        return stored

    @read_retry
    async def get_account(self, account_id: str) -> Optional[SavingsAccount]:
        try:
            sheet = self._client.get_accounts_sheet()
            _, row = self._find_row(sheet, account_id)
        except Exception as e:
            raise StorageError(f"Failed to get savings account: {e}")
        return self._row_to_account(row) if row else None

    async def update_account(
        self,
        account_id: str,
        fields: dict[str, Any],
    ) -> SavingsAccount:
        unknown = set(fields) - ACCOUNT_UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"Fields cannot be updated: {sorted(unknown)}")

        try:
            sheet = self._client.get_accounts_sheet()
            idx, row = self._find_row(sheet, account_id)
            if row is None:
                raise NotFoundError(f"Savings account not found: {account_id}")

            data = self._row_to_account(row).model_dump()
            data.update(fields)
            updated = SavingsAccount.model_validate(data)
            sheet.update(
                range_name=f"A{idx}",
                values=[self._account_to_row(updated)],
                value_input_option="RAW",
            )
            return updated
        except NotFoundError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to update savings account: {e}")

    @read_retry
    async def list_accounts(self, household_id: str) -> list[SavingsAccount]:
        try:
            sheet = self._client.get_accounts_sheet()
            rows = sheet.get_all_values()[1:]
        except Exception as e:
            raise StorageError(f"Failed to list savings accounts: {e}")

        rows = [row for row in rows if len(row) > 1 and row[1] == household_id]
        return self._parse_rows(rows, self._row_to_account, "savings_account")

    # -- snapshots (append-only) ----------------------------------------------

    async def append_snapshot(self, snapshot: SavingsSnapshot) -> SavingsSnapshot:
        stored = snapshot.model_copy(update={"id": uuid4().hex})
        try:
            sheet = self._client.get_snapshots_sheet()
            sheet.append_row(self._snapshot_to_row(stored), value_input_option="RAW")
        except Exception as e:
            raise StorageError(f"Failed to append snapshot: {e}")
        return stored

    @read_retry
    async def list_snapshots(
        self,
        household_id: str,
        account_id: Optional[str] = None,
    ) -> list[SavingsSnapshot]:
        try:
            sheet = self._client.get_snapshots_sheet()
            rows = sheet.get_all_values()[1:]
        except Exception as e:
            raise StorageError(f"Failed to list snapshots: {e}")

        rows = [
            row for row in rows
            if len(row) > 2
            and row[1] == household_id
            and (account_id is None or row[2] == account_id)
        ]
        return self._parse_rows(rows, self._row_to_snapshot, "savings_snapshot")


class GoogleSheetsAuditStorage(AuditStorageInterface):
    """
    Google Sheets implementation of audit log storage.

    Audit events are append-only.
    """

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    def _row_to_event(self, row: list) -> AuditEvent:
        """Convert a spreadsheet row to an AuditEvent."""
        data = _row_to_dict(AUDIT_COLUMNS, row)

        return AuditEvent(
            event_id=UUID(data["event_id"]),
            timestamp=datetime.fromisoformat(data["timestamp"]),
            event_type=AuditEventType(data["event_type"]),
            severity=AuditSeverity(data["severity"]),
            household_id=data["household_id"] or None,
            entity_type=data["entity_type"] or None,
            entity_id=data["entity_id"] or None,
            correlation_id=UUID(data["correlation_id"]) if data["correlation_id"] else None,
            description=data["description"],
            details=json.loads(data["details_json"]) if data["details_json"] else {},
            error_message=data["error_message"] or None,
            is_user_action=data["is_user_action"].lower() == "true",
        )

    async def append_event(self, event: AuditEvent) -> bool:
        """Append an audit event."""
        try:
            sheet = self._client.get_audit_sheet()
            sheet.append_row(event.to_sheets_row(), value_input_option="RAW")
            return True
        except Exception as e:
            # Audit logging should not break the main flow
            logger.warning("audit_append_failed", event_id=str(event.event_id), error=str(e))
            return False

    @read_retry
    def _load_events(self) -> list[AuditEvent]:
        try:
            sheet = self._client.get_audit_sheet()
            rows = sheet.get_all_values()[1:]
        except Exception as e:
            raise StorageError(f"Failed to get audit events: {e}")

        events = []
        for row in rows:
            if not row or not row[0]:
                continue
            try:
                events.append(self._row_to_event(row))
            except Exception as e:
                logger.warning("malformed_audit_row_skipped", row_id=row[0], error=str(e))
        return events

    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        """Get events by correlation ID."""
        events = [e for e in self._load_events() if e.correlation_id == correlation_id]
        events.sort(key=lambda e: e.timestamp)
        return events

    async def get_events_by_entity(
        self,
        entity_type: str,
        entity_id: str,
    ) -> list[AuditEvent]:
        """Get events by entity."""
        events = [
            e for e in self._load_events()
            if e.entity_type == entity_type and e.entity_id == entity_id
        ]
        events.sort(key=lambda e: e.timestamp)
        return events

    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        """Get recent events, newest first."""
        events = self._load_events()
        events.sort(key=lambda e: e.timestamp, reverse=True)
        return events[:limit]
