"""
In-Memory Storage Implementation

Holds members, expenses and splits in plain dicts.
Used by the test suite and for running the UI without Google Sheets.

Split rows are stored flat and joined to their parent expense on read,
the same way the Sheets backend does it.
"""

from decimal import Decimal
from typing import Iterable, Optional

from household_balances.models.ledger import Expense, ExpenseSplit, Member, SplitExpense
from household_balances.services.storage.interface import (
    LedgerStorageInterface,
    NotFoundError,
)


class InMemoryLedgerStorage(LedgerStorageInterface):
    """Dict-backed ledger storage."""

    def __init__(
        self,
        members: Optional[Iterable[Member]] = None,
        expenses: Optional[Iterable[Expense]] = None,
        splits: Optional[Iterable[dict]] = None,
    ):
        """
        Args:
            members: Household members
            expenses: Expenses, keyed internally by id
            splits: Raw split rows: dicts with id, expense_id, user_id,
                    amount_owed and is_settled
        """
        self._members: list[Member] = list(members or [])
        self._expenses: dict[str, Expense] = {e.id: e for e in expenses or []}
        self._splits: dict[str, dict] = {}
        for row in splits or []:
            self.add_split(**row)

    def add_split(
        self,
        id: str,
        expense_id: str,
        user_id: str,
        amount_owed: Decimal,
        is_settled: bool = False,
    ) -> None:
        self._splits[id] = {
            "id": id,
            "expense_id": expense_id,
            "user_id": user_id,
            "amount_owed": Decimal(str(amount_owed)),
            "is_settled": is_settled,
        }

    def _join(self, row: dict) -> ExpenseSplit:
        expense = self._expenses[row["expense_id"]]
        return ExpenseSplit(
            **row,
            expense=SplitExpense(
                id=expense.id,
                household_id=expense.household_id,
                paid_by=expense.paid_by,
                amount=expense.amount,
                description=expense.description,
                date=expense.date,
            ),
        )

    async def get_members(self, household_id: str) -> list[Member]:
        return [m for m in self._members if m.household_id == household_id]

    async def get_expense_splits(
        self,
        household_id: str,
        include_settled: bool = True,
    ) -> list[ExpenseSplit]:
        splits = []
        for row in self._splits.values():
            expense = self._expenses.get(row["expense_id"])
            if expense is None or expense.household_id != household_id:
                continue
            if row["is_settled"] and not include_settled:
                continue
            splits.append(self._join(row))
        return splits

    async def get_splits_for_expense(self, expense_id: str) -> list[ExpenseSplit]:
        if expense_id not in self._expenses:
            raise NotFoundError(f"Expense not found: {expense_id}")
        return [
            self._join(row)
            for row in self._splits.values()
            if row["expense_id"] == expense_id
        ]

    async def mark_splits_settled(self, split_ids: list[str]) -> int:
        updated = 0
        for split_id in split_ids:
            row = self._splits.get(split_id)
            if row is not None and not row["is_settled"]:
                row["is_settled"] = True
                updated += 1
        return updated

    async def mark_splits_unsettled(self, split_ids: list[str]) -> int:
        updated = 0
        for split_id in split_ids:
            row = self._splits.get(split_id)
            if row is not None and row["is_settled"]:
                row["is_settled"] = False
                updated += 1
        return updated

    async def update_split_amount(self, split_id: str, amount_owed: Decimal) -> bool:
        row = self._splits.get(split_id)
        if row is None:
            raise NotFoundError(f"Split not found: {split_id}")
        row["amount_owed"] = amount_owed
        return True
