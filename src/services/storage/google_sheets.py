"""
Google Sheets Storage Implementation

DESIGN DECISION: Google Sheets is used as the persistent backend because:
1. Users can view their budget directly in Sheets
2. No database setup required
3. Built-in backup (Google's infrastructure)

TRADEOFFS:
- No transactions: a Generate Budget click is several independent row writes
- Limited query capabilities (we filter in Python)

The implementation follows the abstract interface, so the stores
never know which backend they talk to.
"""

import json
from datetime import datetime
from typing import Optional
from uuid import UUID

import gspread
from google.oauth2.service_account import Credentials
from tenacity import retry, stop_after_attempt, wait_exponential

from src.config import get_settings
from src.config.settings import GoogleSheetsSettings
from src.models.audit import AuditEvent, AuditEventType, AuditSeverity
from src.models.budget import Budget, Category
from src.services.storage.interface import (
    AuditStorageInterface,
    BudgetStorageInterface,
    CategoryStorageInterface,
    ConnectionError,
    DuplicateError,
    NotFoundError,
    StorageError,
)


BUDGET_COLUMNS = [
    "user_id",
    "total_amount",
]

CATEGORY_COLUMNS = [
    "id",
    "user_id",
    "name",
    "current_amount",
    "min_amount",
    "max_amount",
    "is_fixed",
]

AUDIT_COLUMNS = [
    "event_id",
    "timestamp",
    "event_type",
    "severity",
    "user_id",
    "entity_type",
    "entity_id",
    "correlation_id",
    "description",
    "details_json",
    "error_message",
    "is_user_action",
]


def _safe_get(row: list, index: int, default: str = "") -> str:
    """Read a cell, tolerating short rows."""
    try:
        return row[index] if row[index] else default
    except IndexError:
        return default


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

    def _get_or_create_sheet(
        self,
        title: str,
        columns: list[str],
        rows: int,
    ) -> gspread.Worksheet:
        spreadsheet = self.get_spreadsheet()
        try:
            sheet = spreadsheet.worksheet(title)
        except gspread.WorksheetNotFound:
            # Create the sheet with headers
            sheet = spreadsheet.add_worksheet(
                title=title,
                rows=rows,
                cols=len(columns),
            )
            sheet.append_row(columns)
        return sheet

    def get_budgets_sheet(self) -> gspread.Worksheet:
        """Get or create the Budgets worksheet."""
        return self._get_or_create_sheet(
            self._settings.budgets_sheet_name, BUDGET_COLUMNS, rows=100
        )

    def get_categories_sheet(self) -> gspread.Worksheet:
        """Get or create the Categories worksheet."""
        return self._get_or_create_sheet(
            self._settings.categories_sheet_name, CATEGORY_COLUMNS, rows=1000
        )

    def get_audit_sheet(self) -> gspread.Worksheet:
        """Get or create the Audit worksheet."""
        return self._get_or_create_sheet(
            self._settings.audit_sheet_name, AUDIT_COLUMNS, rows=5000
        )


class GoogleSheetsBudgetStorage(BudgetStorageInterface):
    """
    Google Sheets implementation of budget storage.

    One row per user: [user_id, total_amount].
    """

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    async def get_budget(self, user_id: str) -> Optional[Budget]:
        """Retrieve a user's budget row."""
        try:
            sheet = self._client.get_budgets_sheet()
            for row in sheet.get_all_values()[1:]:
                if row and row[0] == user_id:
                    return Budget(
                        user_id=user_id,
                        total_amount=int(_safe_get(row, 1, "0")),
                    )
            return None
        except Exception as e:
            raise StorageError(f"Failed to get budget: {e}")

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    async def save_budget(self, budget: Budget) -> bool:
        """Insert or overwrite the user's budget row."""
        try:
            sheet = self._client.get_budgets_sheet()
            row = [budget.user_id, str(budget.total_amount)]
            for idx, existing in enumerate(sheet.get_all_values()[1:], start=2):
                if existing and existing[0] == budget.user_id:
                    sheet.update_cell(idx, 2, row[1])
                    return True
            sheet.append_row(row, value_input_option="RAW")
            return True
        except Exception as e:
            raise StorageError(f"Failed to save budget: {e}")


class GoogleSheetsCategoryStorage(CategoryStorageInterface):
    """
    Google Sheets implementation of category storage.

    Categories are stored as rows in a worksheet, one category per row,
    in creation order.
    """

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    def _category_to_row(self, category: Category) -> list:
        """Convert a Category to a spreadsheet row."""
        return [
            str(category.id),
            category.user_id,
            category.name,
            str(category.current_amount),
            str(category.min_amount),
            str(category.max_amount),
            str(category.is_fixed),
        ]

    def _row_to_category(self, row: list) -> Category:
        """Convert a spreadsheet row to a Category."""
        return Category(
            id=UUID(_safe_get(row, 0)),
            user_id=_safe_get(row, 1),
            name=_safe_get(row, 2),
            current_amount=int(_safe_get(row, 3, "0")),
            min_amount=int(_safe_get(row, 4, "0")),
            max_amount=int(_safe_get(row, 5, "0")),
            is_fixed=_safe_get(row, 6).lower() == "true",
        )

    def _find_row(self, sheet: gspread.Worksheet, category_id: UUID) -> Optional[int]:
        """1-based sheet row index of a category, or None."""
        for idx, row in enumerate(sheet.get_all_values()[1:], start=2):
            if row and row[0] == str(category_id):
                return idx
        return None

    async def list_categories(self, user_id: str) -> list[Category]:
        """List a user's categories, skipping malformed rows."""
        try:
            sheet = self._client.get_categories_sheet()
            categories = []
            for row in sheet.get_all_values()[1:]:
                if not row or not row[0] or _safe_get(row, 1) != user_id:
                    continue
                try:
                    categories.append(self._row_to_category(row))
                except ValueError:
                    continue  # Skip malformed rows
            return categories
        except Exception as e:
            raise StorageError(f"Failed to list categories: {e}")

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    async def save_category(self, category: Category) -> bool:
        """Append a new category row."""
        try:
            sheet = self._client.get_categories_sheet()
            if self._find_row(sheet, category.id) is not None:
                raise DuplicateError(f"Category already exists: {category.id}")
            sheet.append_row(self._category_to_row(category), value_input_option="RAW")
            return True
        except DuplicateError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to save category: {e}")

    async def update_category(self, category: Category) -> bool:
        """Rewrite an existing category row."""
        try:
            sheet = self._client.get_categories_sheet()
            idx = self._find_row(sheet, category.id)
            if idx is None:
                raise NotFoundError(f"Category not found: {category.id}")

            for col_idx, value in enumerate(self._category_to_row(category), start=1):
                sheet.update_cell(idx, col_idx, value)
            return True
        except NotFoundError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to update category: {e}")

    async def delete_category(self, category_id: UUID) -> bool:
        """Delete a category row if present."""
        try:
            sheet = self._client.get_categories_sheet()
            idx = self._find_row(sheet, category_id)
            if idx is None:
                return False
            sheet.delete_rows(idx)
            return True
        except Exception as e:
            raise StorageError(f"Failed to delete category: {e}")


class GoogleSheetsAuditStorage(AuditStorageInterface):
    """
    Google Sheets implementation of audit log storage.

    Audit events are append-only.
    """

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    def _row_to_event(self, row: list) -> AuditEvent:
        """Convert a spreadsheet row to an AuditEvent."""
        return AuditEvent(
            event_id=UUID(_safe_get(row, 0)),
            timestamp=datetime.fromisoformat(_safe_get(row, 1)),
            event_type=AuditEventType(_safe_get(row, 2)),
            severity=AuditSeverity(_safe_get(row, 3)),
            user_id=_safe_get(row, 4) or None,
            entity_type=_safe_get(row, 5) or None,
            entity_id=_safe_get(row, 6) or None,
            correlation_id=UUID(_safe_get(row, 7)) if _safe_get(row, 7) else None,
            description=_safe_get(row, 8),
            details=json.loads(_safe_get(row, 9)) if _safe_get(row, 9) else {},
            error_message=_safe_get(row, 10) or None,
            is_user_action=_safe_get(row, 11).lower() == "true",
        )

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
            raise StorageError(f"Failed to write audit event: {e}")

    async def get_recent_events(self, limit: int = 100) -> list[AuditEvent]:
        """Get recent events, newest first."""
        try:
            sheet = self._client.get_audit_sheet()
            events = []
            for row in sheet.get_all_values()[1:]:
                if row and row[0]:
                    try:
                        events.append(self._row_to_event(row))
                    except ValueError:
                        continue
            events.sort(key=lambda e: e.timestamp, reverse=True)
            return events[:limit]
        except Exception as e:
            raise StorageError(f"Failed to get audit events: {e}")
