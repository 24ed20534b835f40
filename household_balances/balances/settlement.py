"""
Settlement Planning

Turns "A paid B this much" into concrete changes to split rows.

Planning is pure and happens first, so a rejected payment never touches a
row. A plan is applied one split at a time, reductions before settled marks.
If storage fails partway, the writes already made are reverted. Any write
that cannot be reverted is reported on SettlementError.applied_updates.

PAYMENT ALLOCATION:
Only splits where the payer of the balance is the debtor (and the
receiver paid the expense) are reduced, largest amount first. Splits in
the opposite direction are left alone; they already offset the net.
"""

from decimal import ROUND_DOWN, Decimal, InvalidOperation
from typing import Optional, Sequence, Union
from uuid import UUID

from household_balances.audit import AuditLogger
from household_balances.models.ledger import (
    Balance,
    ExpenseSplit,
    SettlementPlan,
    SplitUpdate,
)
from household_balances.services.storage import LedgerStorageInterface, StorageError


class SettlementError(Exception):
    """
    A settlement could not be planned or applied.

    applied_updates lists the updates still written to storage after a
    failed revert. It is empty when storage was left as it was.
    """

    def __init__(self, message: str, applied_updates: Optional[list] = None):
        super().__init__(message)
        self.applied_updates = list(applied_updates or [])


class InvalidPaymentError(SettlementError):
    """Payment amount is not positive or exceeds the balance."""
    pass


class AlreadySettledError(SettlementError):
    """There is nothing left to settle."""
    pass


class SplitNotFoundError(SettlementError):
    """The acting member has no split on the expense."""
    pass


def _to_decimal(value: Union[Decimal, int, float, str]) -> Decimal:
    try:
        amount = value if isinstance(value, Decimal) else Decimal(str(value))
    except InvalidOperation:
        raise InvalidPaymentError(f"Invalid payment amount: {value!r}")
    if not amount.is_finite():
        raise InvalidPaymentError(f"Invalid payment amount: {value!r}")
    return amount


def clamp_payment(balance: Balance, entered: Union[Decimal, int, float, str]) -> Decimal:
    """
    Turn an amount typed into a form into a payment plan_payment accepts.

    Cents are truncated, never rounded up, and the result never exceeds
    balance.amount.
    """
    amount = _to_decimal(entered).quantize(Decimal("0.01"), rounding=ROUND_DOWN)
    return min(amount, balance.amount)


def plan_payment(
    balance: Balance,
    amount: Union[Decimal, int, float, str],
    note: Optional[str] = None,
) -> SettlementPlan:
    """
    Plan a payment from balance.from_user to balance.to_user.

    A split the payment fully covers is marked settled. The first split
    it only partly covers has its amount_owed reduced, and allocation stops.

    Raises:
        InvalidPaymentError: If amount <= 0 or amount > balance.amount
    """
    amount = _to_decimal(amount)
    if amount <= 0 or amount > balance.amount:
        raise InvalidPaymentError(
            f"Invalid payment amount: {amount} (balance is {balance.amount})"
        )

    payable = [
        split for split in balance.related_splits
        if split.user_id == balance.from_user.id
        and split.payer_id == balance.to_user.id
        and not split.is_settled
    ]
    payable.sort(key=lambda s: s.amount_owed, reverse=True)

    remaining = amount
    updates = []
    for split in payable:
        if remaining <= 0:
            break

        if remaining >= split.amount_owed:
            remaining -= split.amount_owed
            updates.append(
                SplitUpdate(
                    split_id=split.id,
                    new_amount_owed=Decimal("0"),
                    mark_settled=True,
                    previous_amount_owed=split.amount_owed,
                )
            )
        else:
            updates.append(
                SplitUpdate(
                    split_id=split.id,
                    new_amount_owed=split.amount_owed - remaining,
                    mark_settled=False,
                    previous_amount_owed=split.amount_owed,
                )
            )
            remaining = Decimal("0")

    return SettlementPlan(
        from_user_id=balance.from_user.id,
        to_user_id=balance.to_user.id,
        amount=amount,
        updates=updates,
        note=note,
    )


def plan_expense_settlement(
    splits: Sequence[ExpenseSplit],
    actor_id: str,
) -> list[SplitUpdate]:
    """
    Plan settling an expense on behalf of actor_id.

    The payer settles every outstanding split of the expense (they were
    paid outside the app, or forgive the debt). Anyone else settles only
    their own split.

    Raises:
        SplitNotFoundError: If the expense has no splits, or actor has none
        AlreadySettledError: If there is nothing left to settle
    """
    if not splits:
        raise SplitNotFoundError("No splits found for expense")

    payer_id = splits[0].payer_id

    if actor_id == payer_id:
        outstanding = [s for s in splits if not s.is_settled]
        if not outstanding:
            raise AlreadySettledError("All splits are already settled")
    else:
        own = next((s for s in splits if s.user_id == actor_id), None)
        if own is None:
            raise SplitNotFoundError("No split found for current user")
        if own.is_settled:
            raise AlreadySettledError("Your split is already settled")
        outstanding = [own]

    return [
        SplitUpdate(
            split_id=s.id,
            new_amount_owed=s.amount_owed,
            mark_settled=True,
            previous_amount_owed=s.amount_owed,
        )
        for s in outstanding
    ]


class SettlementService:
    """
    Write side of the ledger: applies settlement plans to storage.

    Callers recompute balances afterwards; nothing here returns
    updated balances.
    """

    def __init__(
        self,
        repository: LedgerStorageInterface,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._repository = repository
        self._audit_logger = audit_logger

    async def _write(self, update: SplitUpdate) -> None:
        if update.mark_settled:
            await self._repository.mark_splits_settled([update.split_id])
        else:
            await self._repository.update_split_amount(
                update.split_id, update.new_amount_owed
            )

    async def _apply(
        self,
        updates: list[SplitUpdate],
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """
        Write updates one split at a time, reductions first.

        Raises:
            SettlementError: If a write fails. Earlier writes are reverted
                first; applied_updates holds any that could not be.
        """
        written = []
        for update in sorted(updates, key=lambda u: u.mark_settled):
            try:
                await self._write(update)
            except StorageError as e:
                stuck = await self._revert(written, correlation_id)
                raise SettlementError(
                    f"Failed to apply settlement: {e}",
                    applied_updates=stuck,
                ) from e
            written.append(update)

    async def _revert(
        self,
        written: list[SplitUpdate],
        correlation_id: Optional[UUID],
    ) -> list[SplitUpdate]:
        """Undo writes newest first. Returns the ones still in storage."""
        stuck = []
        for update in reversed(written):
            try:
                if update.mark_settled:
                    await self._repository.mark_splits_unsettled([update.split_id])
                elif update.previous_amount_owed is not None:
                    await self._repository.update_split_amount(
                        update.split_id, update.previous_amount_owed
                    )
                else:
                    stuck.append(update)
            except StorageError as e:
                stuck.append(update)
                if self._audit_logger:
                    await self._audit_logger.log_error(
                        error_type="settlement_revert_failed",
                        error_message=str(e),
                        details={"split_id": update.split_id},
                        correlation_id=correlation_id,
                    )
        stuck.reverse()
        return stuck

    async def _fail(
        self,
        entity_type: str,
        entity_id: str,
        error: Exception,
        correlation_id: Optional[UUID],
    ) -> None:
        if self._audit_logger:
            await self._audit_logger.log_settlement_failed(
                entity_type=entity_type,
                entity_id=entity_id,
                error_message=str(error),
                correlation_id=correlation_id,
            )

    async def settle_payment(
        self,
        balance: Balance,
        amount: Union[Decimal, int, float, str],
        note: Optional[str] = None,
        correlation_id: Optional[UUID] = None,
    ) -> SettlementPlan:
        """
        Record a payment against a balance.

        Raises:
            InvalidPaymentError: If the amount is out of range or not a number
            SettlementError: If storage rejects an update
        """
        entity_id = f"{balance.from_user.id}:{balance.to_user.id}"
        try:
            plan = plan_payment(balance, amount, note=note)
        except SettlementError as e:
            await self._fail("balance", entity_id, e, correlation_id)
            raise

        try:
            await self._apply(plan.updates, correlation_id)
        except SettlementError as e:
            await self._fail("balance", entity_id, e, correlation_id)
            raise

        if self._audit_logger:
            await self._audit_logger.log_payment_settled(
                from_user_id=plan.from_user_id,
                to_user_id=plan.to_user_id,
                amount=plan.amount,
                settled_split_ids=plan.settled_split_ids,
                reduced_split_ids=[u.split_id for u in plan.reduced_splits],
                correlation_id=correlation_id,
            )

        return plan

    async def settle_expense(
        self,
        expense_id: str,
        actor_id: str,
        correlation_id: Optional[UUID] = None,
    ) -> list[SplitUpdate]:
        """
        Settle an expense on behalf of actor_id.

        Raises:
            SplitNotFoundError, AlreadySettledError: See plan_expense_settlement
            SettlementError: If storage cannot be read or updated
        """
        try:
            splits = await self._repository.get_splits_for_expense(expense_id)
            updates = plan_expense_settlement(splits, actor_id)
            await self._apply(updates, correlation_id)
        except SettlementError as e:
            await self._fail("expense", expense_id, e, correlation_id)
            raise
        except StorageError as e:
            await self._fail("expense", expense_id, e, correlation_id)
            raise SettlementError(f"Failed to settle expense: {e}") from e

        if self._audit_logger:
            await self._audit_logger.log_expense_settled(
                expense_id=expense_id,
                actor_id=actor_id,
                settled_split_ids=[u.split_id for u in updates],
                correlation_id=correlation_id,
            )

        return updates
