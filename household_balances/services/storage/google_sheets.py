"""
Google Sheets Storage Implementation

DESIGN DECISION: Google Sheets is used as the storage backend because:
1. Household members can view and fix their data directly in Sheets
2. No database setup required
3. Easy to export/migrate later

TRADEOFFS:
- No joins (splits are joined to their expense in Python)
- No transactions (a settlement updates cells one at a time)
- One read per worksheet per call; that read is the snapshot

The implementation follows the abstract interface, so we can swap
to PostgreSQL/SQLite later without changing business logic.
"""

from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Optional

import gspread
from google.oauth2.service_account import Credentials
from tenacity import retry, stop_after_attempt, wait_exponential

from household_balances.config import get_settings
from household_balances.models.ledger import Expense, ExpenseSplit, Member, SplitExpense
from household_balances.services.storage.interface import (
    ConnectionError,
    LedgerStorageInterface,
    NotFoundError,
    StorageError,
)


# Column mappings for Members sheet
MEMBER_COLUMNS = [
    "id",
    "household_id",
    "full_name",
    "email",
    "payment_link",
]

# Column mappings for Expenses sheet
EXPENSE_COLUMNS = [
    "id",
    "household_id",
    "paid_by",
    "amount",
    "description",
    "date",
    "category",
]

# Column mappings for ExpenseSplits sheet
SPLIT_COLUMNS = [
    "id",
    "expense_id",
    "user_id",
    "amount_owed",
    "is_settled",
]

AMOUNT_OWED_COL = SPLIT_COLUMNS.index("amount_owed") + 1
IS_SETTLED_COL = SPLIT_COLUMNS.index("is_settled") + 1


def _cell(row: list, index: int, default: str = "") -> str:
    """Read a cell, tolerating short rows."""
    try:
        return row[index].strip() if row[index] else default
    except IndexError:
        return default


def _parse_bool(value: str) -> bool:
    return value.strip().lower() in ("true", "1", "yes", "y")


class GoogleSheetsClient:
    """
    Low-level Google Sheets client wrapper.

    Handles authentication and provides retry logic for API calls.
    """

    def __init__(self):
        self._client: Optional[gspread.Client] = None
        self._spreadsheet: Optional[gspread.Spreadsheet] = None
        self._settings = get_settings().google_sheets

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

    def _get_or_create(self, title: str, columns: list[str]) -> gspread.Worksheet:
        spreadsheet = self.get_spreadsheet()
        try:
            sheet = spreadsheet.worksheet(title)
        except gspread.WorksheetNotFound:
            sheet = spreadsheet.add_worksheet(
                title=title,
                rows=1000,
                cols=len(columns),
            )
            sheet.append_row(columns)
        return sheet

    def get_members_sheet(self) -> gspread.Worksheet:
        """Get or create the Members worksheet."""
        return self._get_or_create(self._settings.members_sheet_name, MEMBER_COLUMNS)

    def get_expenses_sheet(self) -> gspread.Worksheet:
        """Get or create the Expenses worksheet."""
        return self._get_or_create(self._settings.expenses_sheet_name, EXPENSE_COLUMNS)

    def get_splits_sheet(self) -> gspread.Worksheet:
        """Get or create the ExpenseSplits worksheet."""
        return self._get_or_create(self._settings.splits_sheet_name, SPLIT_COLUMNS)


class GoogleSheetsLedgerStorage(LedgerStorageInterface):
    """
    Google Sheets implementation of ledger storage.

    One row per member, expense and split. Amounts are stored as
    plain decimal strings. Malformed rows are skipped on read.
    """

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    def _row_to_member(self, row: list) -> Member:
        return Member(
            id=_cell(row, 0),
            household_id=_cell(row, 1) or None,
            full_name=_cell(row, 2),
            email=_cell(row, 3) or None,
            payment_link=_cell(row, 4) or None,
        )

    def _row_to_expense(self, row: list) -> Expense:
        raw_date = _cell(row, 5)
        return Expense(
            id=_cell(row, 0),
            household_id=_cell(row, 1),
            paid_by=_cell(row, 2),
            amount=Decimal(_cell(row, 3, "0")),
            description=_cell(row, 4),
            date=date.fromisoformat(raw_date) if raw_date else None,
            category=_cell(row, 6) or None,
        )

    def _row_to_split(self, row: list, expense: Expense) -> ExpenseSplit:
        return ExpenseSplit(
            id=_cell(row, 0),
            expense_id=_cell(row, 1),
            user_id=_cell(row, 2),
            amount_owed=Decimal(_cell(row, 3, "0")),
            is_settled=_parse_bool(_cell(row, 4, "false")),
            expense=SplitExpense(
                id=expense.id,
                household_id=expense.household_id,
                paid_by=expense.paid_by,
                amount=expense.amount,
                description=expense.description,
                date=expense.date,
            ),
        )

    def _load_expenses(self, household_id: Optional[str] = None) -> dict[str, Expense]:
        sheet = self._client.get_expenses_sheet()
        expenses = {}
        for row in sheet.get_all_values()[1:]:  # Skip header
            if not row or not row[0]:
                continue
            try:
                expense = self._row_to_expense(row)
            except (ValueError, InvalidOperation):
                continue  # Skip malformed rows
            if household_id is not None and expense.household_id != household_id:
                continue
            expenses[expense.id] = expense
        return expenses

    def _find_split_row(self, sheet: gspread.Worksheet, split_id: str) -> Optional[int]:
        """1-based sheet row of a split, or None."""
        for idx, row in enumerate(sheet.get_all_values()[1:], start=2):  # Row 1 is header
            if row and row[0] == split_id:
                return idx
        return None

    async def get_members(self, household_id: str) -> list[Member]:
        """Get all members of a household."""
        try:
            sheet = self._client.get_members_sheet()
            members = []
            for row in sheet.get_all_values()[1:]:
                if not row or not row[0]:
                    continue
                try:
                    member = self._row_to_member(row)
                except ValueError:
                    continue
                if member.household_id == household_id:
                    members.append(member)
            return members
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to load members: {e}")

    async def get_expense_splits(
        self,
        household_id: str,
        include_settled: bool = True,
    ) -> list[ExpenseSplit]:
        """Get all split rows of a household, joined to their expense."""
        try:
            expenses = self._load_expenses(household_id)
            sheet = self._client.get_splits_sheet()

            splits = []
            for row in sheet.get_all_values()[1:]:
                if not row or not row[0]:
                    continue
                expense = expenses.get(_cell(row, 1))
                if expense is None:
                    continue  # Other household, or dangling split
                try:
                    split = self._row_to_split(row, expense)
                except (ValueError, InvalidOperation):
                    continue
                if split.is_settled and not include_settled:
                    continue
                splits.append(split)
            return splits
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to load expense splits: {e}")

    async def get_splits_for_expense(self, expense_id: str) -> list[ExpenseSplit]:
        """Get all splits of one expense."""
        try:
            expense = self._load_expenses().get(expense_id)
            if expense is None:
                raise NotFoundError(f"Expense not found: {expense_id}")

            sheet = self._client.get_splits_sheet()
            splits = []
            for row in sheet.get_all_values()[1:]:
                if row and _cell(row, 1) == expense_id:
                    try:
                        splits.append(self._row_to_split(row, expense))
                    except (ValueError, InvalidOperation):
                        continue
            return splits
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to load splits for expense: {e}")

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    async def mark_splits_settled(self, split_ids: list[str]) -> int:
        """Set is_settled on each split row."""
        try:
            sheet = self._client.get_splits_sheet()
            wanted = set(split_ids)
            updated = 0
            for idx, row in enumerate(sheet.get_all_values()[1:], start=2):
                if row and row[0] in wanted and not _parse_bool(_cell(row, 4, "false")):
                    sheet.update_cell(idx, IS_SETTLED_COL, "TRUE")
                    updated += 1
            return updated
        except Exception as e:
            raise StorageError(f"Failed to settle splits: {e}")

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    async def mark_splits_unsettled(self, split_ids: list[str]) -> int:
        """Clear is_settled on each split row."""
        try:
            sheet = self._client.get_splits_sheet()
            wanted = set(split_ids)
            updated = 0
            for idx, row in enumerate(sheet.get_all_values()[1:], start=2):
                if row and row[0] in wanted and _parse_bool(_cell(row, 4, "false")):
                    sheet.update_cell(idx, IS_SETTLED_COL, "FALSE")
                    updated += 1
            return updated
        except Exception as e:
            raise StorageError(f"Failed to unsettle splits: {e}")

    async def update_split_amount(self, split_id: str, amount_owed: Decimal) -> bool:
        """Overwrite amount_owed on a split row."""
        try:
            sheet = self._client.get_splits_sheet()
            idx = self._find_split_row(sheet, split_id)
            if idx is None:
                raise NotFoundError(f"Split not found: {split_id}")
            sheet.update_cell(idx, AMOUNT_OWED_COL, str(amount_owed))
            return True
        except NotFoundError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to update split: {e}")
