"""
Viewer Adapter

Fetches a household's splits, runs the balance engine, and narrows the
result to what one member should see.

DESIGN DECISION: The store is injected. Nothing here creates a client.
A failed fetch surfaces as BalanceFetchError and the engine is never run.
There are no retries here; the recovery path is "fetch and compute again".
"""

from decimal import Decimal
from typing import Iterable, Optional
from uuid import UUID

from household_balances.audit import AuditLogger
from household_balances.balances.engine import compute_balances
from household_balances.models.ledger import Balance, HouseholdBalances, ViewerBalances
from household_balances.services.storage import LedgerStorageInterface, StorageError


class BalanceFetchError(Exception):
    """Household data could not be fetched from storage."""

    def __init__(self, household_id: str, message: str):
        super().__init__(message)
        self.household_id = household_id


def summarize_for_viewer(
    balances: Iterable[Balance],
    viewer_id: str,
) -> ViewerBalances:
    """
    Keep the balances that involve the viewer and total them.

    net_balance is positive when the viewer is owed more than they owe.
    """
    mine = [b for b in balances if b.involves(viewer_id)]
    net = sum((b.signed_amount_for(viewer_id) for b in mine), Decimal("0"))
    return ViewerBalances(viewer_id=viewer_id, balances=mine, net_balance=net)


class BalanceService:
    """
    Read side of the ledger: balances for a household or a viewer.

    GUARANTEES:
    - Read-only; never writes to storage
    - One fetch per call, no caching (callers may cache briefly)
    """

    def __init__(
        self,
        repository: LedgerStorageInterface,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._repository = repository
        self._audit_logger = audit_logger

    async def get_household_balances(
        self,
        household_id: str,
        correlation_id: Optional[UUID] = None,
    ) -> HouseholdBalances:
        """
        Compute all pairwise balances of a household.

        Raises:
            BalanceFetchError: If members or splits cannot be fetched
        """
        try:
            members = await self._repository.get_members(household_id)
            splits = await self._repository.get_expense_splits(
                household_id, include_settled=False
            )
        except StorageError as e:
            if self._audit_logger:
                await self._audit_logger.log_balance_fetch_failed(
                    household_id=household_id,
                    error_message=str(e),
                    correlation_id=correlation_id,
                )
            raise BalanceFetchError(
                household_id, f"Failed to fetch balances: {e}"
            ) from e

        balances = compute_balances(splits, members)

        if self._audit_logger:
            await self._audit_logger.log_balances_computed(
                household_id=household_id,
                balance_count=len(balances),
                split_count=len(splits),
                correlation_id=correlation_id,
            )

        return HouseholdBalances(
            household_id=household_id,
            members=members,
            balances=balances,
        )

    async def get_viewer_balances(
        self,
        household_id: str,
        viewer_id: str,
        correlation_id: Optional[UUID] = None,
    ) -> ViewerBalances:
        """
        Balances involving one member, plus their net position.

        Raises:
            BalanceFetchError: If members or splits cannot be fetched
        """
        household = await self.get_household_balances(household_id, correlation_id)
        return household.for_viewer(viewer_id)
