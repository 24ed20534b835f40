"""
Abstract Storage Interface

DESIGN DECISION: We define an abstract interface for storage operations.
This allows us to:
1. Swap Google Sheets for a real database later
2. Use in-memory storage for testing
3. Inject the store into services explicitly (no module-level clients)

The interface is intentionally small: balances are derived, so the store
only has to hand over members and split rows, and accept the two writes a
settlement needs.
"""

from abc import ABC, abstractmethod
from decimal import Decimal

from household_balances.models.ledger import ExpenseSplit, Member


class LedgerStorageInterface(ABC):
    """
    Abstract interface for household ledger storage.

    Any storage implementation (Google Sheets, PostgreSQL, etc.)
    must implement these methods.
    """

    @abstractmethod
    async def get_members(self, household_id: str) -> list[Member]:
        """
        Get the full roster of a household.

        Args:
            household_id: The household's identifier

        Returns:
            Members in a stable order (empty if the household has none)

        Raises:
            StorageError: If the store cannot be read
        """
        pass

    @abstractmethod
    async def get_expense_splits(
        self,
        household_id: str,
        include_settled: bool = True,
    ) -> list[ExpenseSplit]:
        """
        Get every split of every expense in a household.

        Each split is annotated with its parent expense (at least paid_by).
        All rows come from one read, so callers see one consistent snapshot.

        Args:
            household_id: The household's identifier
            include_settled: If False, settled splits are filtered out

        Returns:
            Split rows in a stable order

        Raises:
            StorageError: If the store cannot be read
        """
        pass

    @abstractmethod
    async def get_splits_for_expense(self, expense_id: str) -> list[ExpenseSplit]:
        """
        Get all splits of one expense.

        Raises:
            NotFoundError: If the expense doesn't exist
            StorageError: If the store cannot be read
        """
        pass

    @abstractmethod
    async def mark_splits_settled(self, split_ids: list[str]) -> int:
        """
        Mark splits as settled.

        Returns:
            Number of splits updated

        Raises:
            StorageError: If the update fails
        """
        pass

    @abstractmethod
    async def mark_splits_unsettled(self, split_ids: list[str]) -> int:
        """
        Clear is_settled on splits. Used to revert a settlement that could
        not be applied in full.

        Returns:
            Number of splits updated

        Raises:
            StorageError: If the update fails
        """
        pass

    @abstractmethod
    async def update_split_amount(self, split_id: str, amount_owed: Decimal) -> bool:
        """
        Reduce (or otherwise change) what a split still owes.

        Raises:
            NotFoundError: If the split doesn't exist
            StorageError: If the update fails
        """
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class NotFoundError(StorageError):
    """Entity not found in storage."""
    pass


class ConnectionError(StorageError):
    """Could not connect to storage backend."""
    pass
