"""
Tests for ledger storage backends.

The Google Sheets backend runs against an in-process fake worksheet,
so no credentials or network are needed.
"""

import asyncio
from decimal import Decimal

import pytest

from household_balances.services.storage import (
    GoogleSheetsLedgerStorage,
    InMemoryLedgerStorage,
    NotFoundError,
    StorageError,
)
from household_balances.services.storage.google_sheets import (
    EXPENSE_COLUMNS,
    MEMBER_COLUMNS,
    SPLIT_COLUMNS,
)


class FakeWorksheet:
    """Just enough of gspread.Worksheet for the storage backend."""

    def __init__(self, rows):
        self.rows = [list(r) for r in rows]

    def get_all_values(self):
        return [list(r) for r in self.rows]

    def update_cell(self, row, col, value):
        self.rows[row - 1][col - 1] = value


class FakeSheetsClient:
    def __init__(self, members, expenses, splits):
        self.members = FakeWorksheet([MEMBER_COLUMNS] + members)
        self.expenses = FakeWorksheet([EXPENSE_COLUMNS] + expenses)
        self.splits = FakeWorksheet([SPLIT_COLUMNS] + splits)

    def get_members_sheet(self):
        return self.members

    def get_expenses_sheet(self):
        return self.expenses

    def get_splits_sheet(self):
        return self.splits


class BrokenSheetsClient:
    def get_members_sheet(self):
        raise RuntimeError("quota exceeded")

    get_expenses_sheet = get_members_sheet
    get_splits_sheet = get_members_sheet


@pytest.fixture
def sheets_client():
    return FakeSheetsClient(
        members=[
            ["A", "house-1", "Alice", "alice@example.com", "https://pay.example/alice"],
            ["B", "house-1", "Bob", "", ""],
            ["Z", "house-2", "Zed", "", ""],
            ["", "", "", "", ""],
        ],
        expenses=[
            ["e1", "house-1", "A", "90", "Groceries", "2024-03-01", "food"],
            ["e2", "house-1", "B", "40", "Taxi", "", ""],
            ["e3", "house-2", "Z", "10", "Other", "", ""],
            ["bad", "house-1", "A", "not-a-number", "Broken", "", ""],
        ],
        splits=[
            ["s1", "e1", "B", "45", "FALSE"],
            ["s2", "e1", "A", "45", "FALSE"],
            ["s3", "e2", "A", "20", "TRUE"],
            ["s4", "e3", "Z", "10", "FALSE"],
            ["s5", "e2", "A", "oops", "FALSE"],
            ["s6", "missing", "B", "5", "FALSE"],
        ],
    )


class TestInMemoryStorage:
    """Tests for the dict-backed store."""

    def test_members_are_filtered_by_household(self, alice, bob, household_expenses):
        storage = InMemoryLedgerStorage(members=[alice, bob], expenses=household_expenses)

        assert [m.id for m in asyncio.run(storage.get_members("house-1"))] == ["A", "B"]
        assert asyncio.run(storage.get_members("house-2")) == []

    def test_splits_are_joined_to_their_expense(self, alice, household_expenses, ledger_rows):
        storage = InMemoryLedgerStorage([alice], household_expenses, ledger_rows)
        splits = asyncio.run(storage.get_expense_splits("house-1"))

        assert len(splits) == 6
        first = splits[0]
        assert first.payer_id == "A"
        assert first.expense.description == "Groceries"
        assert first.amount_owed == Decimal("30")

    def test_settled_splits_can_be_excluded(self, household_expenses, ledger_rows):
        storage = InMemoryLedgerStorage([], household_expenses, ledger_rows)
        splits = asyncio.run(storage.get_expense_splits("house-1", include_settled=False))

        assert "i-c" not in {s.id for s in splits}
        assert len(splits) == 5

    def test_mark_settled_counts_new_settlements(self, household_expenses, ledger_rows):
        storage = InMemoryLedgerStorage([], household_expenses, ledger_rows)

        assert asyncio.run(storage.mark_splits_settled(["g-b", "i-c", "nope"])) == 1

    def test_mark_unsettled_reverts_settlement(self, household_expenses, ledger_rows):
        storage = InMemoryLedgerStorage([], household_expenses, ledger_rows)
        asyncio.run(storage.mark_splits_settled(["g-b"]))

        assert asyncio.run(storage.mark_splits_unsettled(["g-b", "g-c", "nope"])) == 1
        splits = asyncio.run(storage.get_expense_splits("house-1", include_settled=False))
        assert "g-b" in {s.id for s in splits}

    def test_update_missing_split(self, household_expenses):
        storage = InMemoryLedgerStorage([], household_expenses)

        with pytest.raises(NotFoundError):
            asyncio.run(storage.update_split_amount("nope", Decimal("1")))

    def test_splits_for_unknown_expense(self):
        with pytest.raises(NotFoundError):
            asyncio.run(InMemoryLedgerStorage().get_splits_for_expense("nope"))


class TestGoogleSheetsStorage:
    """Tests for row parsing and writes against a fake spreadsheet."""

    def test_members(self, sheets_client):
        storage = GoogleSheetsLedgerStorage(sheets_client)
        members = asyncio.run(storage.get_members("house-1"))

        assert [m.id for m in members] == ["A", "B"]
        assert members[0].payment_link == "https://pay.example/alice"
        assert members[1].email is None

    def test_expense_splits_skip_malformed_rows(self, sheets_client):
        storage = GoogleSheetsLedgerStorage(sheets_client)
        splits = asyncio.run(storage.get_expense_splits("house-1"))

        assert [s.id for s in splits] == ["s1", "s2", "s3"]
        assert splits[0].payer_id == "A"
        assert splits[0].expense.date.isoformat() == "2024-03-01"
        assert splits[2].is_settled

    def test_expense_splits_without_settled(self, sheets_client):
        storage = GoogleSheetsLedgerStorage(sheets_client)
        splits = asyncio.run(storage.get_expense_splits("house-1", include_settled=False))

        assert [s.id for s in splits] == ["s1", "s2"]

    def test_empty_household_id_matches_nothing(self, sheets_client):
        storage = GoogleSheetsLedgerStorage(sheets_client)

        assert asyncio.run(storage.get_expense_splits("")) == []

    def test_splits_for_expense(self, sheets_client):
        storage = GoogleSheetsLedgerStorage(sheets_client)
        splits = asyncio.run(storage.get_splits_for_expense("e1"))

        assert {s.id for s in splits} == {"s1", "s2"}

    def test_splits_for_unknown_expense(self, sheets_client):
        storage = GoogleSheetsLedgerStorage(sheets_client)

        with pytest.raises(NotFoundError):
            asyncio.run(storage.get_splits_for_expense("nope"))

    def test_mark_splits_settled_writes_cells(self, sheets_client):
        storage = GoogleSheetsLedgerStorage(sheets_client)

        updated = asyncio.run(storage.mark_splits_settled(["s1", "s3"]))

        assert updated == 1
        assert sheets_client.splits.rows[1][4] == "TRUE"

    def test_mark_splits_unsettled_writes_cells(self, sheets_client):
        storage = GoogleSheetsLedgerStorage(sheets_client)

        updated = asyncio.run(storage.mark_splits_unsettled(["s1", "s3"]))

        assert updated == 1
        assert sheets_client.splits.rows[3][4] == "FALSE"
        assert sheets_client.splits.rows[1][4] == "FALSE"

    def test_update_split_amount(self, sheets_client):
        storage = GoogleSheetsLedgerStorage(sheets_client)

        assert asyncio.run(storage.update_split_amount("s2", Decimal("12.50")))
        assert sheets_client.splits.rows[2][3] == "12.50"

    def test_update_missing_split(self, sheets_client):
        storage = GoogleSheetsLedgerStorage(sheets_client)

        with pytest.raises(NotFoundError):
            asyncio.run(storage.update_split_amount("nope", Decimal("1")))

    def test_backend_errors_become_storage_errors(self):
        storage = GoogleSheetsLedgerStorage(BrokenSheetsClient())

        with pytest.raises(StorageError, match="quota exceeded"):
            asyncio.run(storage.get_members("house-1"))
        with pytest.raises(StorageError):
            asyncio.run(storage.get_expense_splits("house-1"))
