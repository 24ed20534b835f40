"""
Core Data Models for Household Balances

These models define the strict schemas for all data flowing through the system.
They are designed to:
1. Enforce type safety at runtime
2. Keep money as Decimal from storage to screen
3. Be immutable once built (a balance computation never mutates its inputs)

DESIGN DECISION: Balances are DERIVED values. They have no identity and are
never persisted. They are recomputed from expense splits on every read.
"""

import datetime as dt
from decimal import Decimal
from typing import Optional

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    model_validator,
)


# Two nets closer than this are the same amount.
SETTLED_EPSILON = Decimal("0.01")


# =============================================================================
# HOUSEHOLD MODELS
# =============================================================================

class Member(BaseModel):
    """
    A household participant.

    payment_link is an external deep-link (e.g. a payment app URL)
    that other members use to send this member money.
    """
    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    id: str = Field(
        ...,
        min_length=1,
        description="Unique member ID"
    )
    full_name: str = Field(
        ...,
        description="Display name"
    )
    payment_link: Optional[str] = Field(
        default=None,
        description="Deep-link for sending this member money"
    )
    household_id: Optional[str] = None
    email: Optional[str] = None


class Expense(BaseModel):
    """A shared expense paid by one member."""
    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    id: str
    household_id: str
    paid_by: str = Field(
        ...,
        description="Member ID of the payer"
    )
    amount: Decimal = Field(
        ...,
        ge=0,
        description="Total amount paid"
    )
    description: str = ""
    date: Optional[dt.date] = None
    category: Optional[str] = None


class SplitExpense(BaseModel):
    """
    The parent-expense annotation carried on each split row.

    Only paid_by is required: that is all the balance engine needs.
    The rest is carried along for display ("from N expenses").
    """
    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    paid_by: str
    id: Optional[str] = None
    household_id: Optional[str] = None
    amount: Optional[Decimal] = None
    description: Optional[str] = None
    date: Optional[dt.date] = None


class ExpenseSplit(BaseModel):
    """
    One member's share of one expense.

    CRITICAL: a split with is_settled=True has been reconciled and
    must never re-enter balance computation.
    """
    model_config = ConfigDict(
        frozen=True,
        populate_by_name=True,
        str_strip_whitespace=True,
    )

    id: str
    expense_id: str
    user_id: str = Field(
        ...,
        description="Member ID of the member who owes this share"
    )
    amount_owed: Decimal = Field(
        ...,
        ge=0,
        description="Amount this member owes the payer"
    )
    is_settled: bool = False
    expense: SplitExpense = Field(
        ...,
        validation_alias=AliasChoices("expense", "expenses"),
    )

    @property
    def payer_id(self) -> str:
        return self.expense.paid_by

    @property
    def is_self_payment(self) -> bool:
        """A payer's own share creates no debt."""
        return self.user_id == self.expense.paid_by


# =============================================================================
# DERIVED BALANCE MODELS
# =============================================================================

class Balance(BaseModel):
    """
    from_user owes to_user `amount`.

    For any two members at most one Balance exists, in one direction.
    related_splits holds the unsettled splits from BOTH directions of the
    pair, even though only the net is owed.
    """
    model_config = ConfigDict(frozen=True)

    from_user: Member
    to_user: Member
    amount: Decimal = Field(
        ...,
        gt=SETTLED_EPSILON,
        description="Net amount owed"
    )
    related_splits: tuple[ExpenseSplit, ...] = ()
    payment_link: Optional[str] = Field(
        default=None,
        description="to_user's payment link"
    )

    @model_validator(mode='after')
    def validate_direction(self) -> 'Balance':
        if self.from_user.id == self.to_user.id:
            raise ValueError("A member cannot owe themselves")
        return self

    @property
    def expense_count(self) -> int:
        """Number of distinct expenses behind this balance."""
        return len({split.expense_id for split in self.related_splits})

    def involves(self, member_id: str) -> bool:
        return member_id in (self.from_user.id, self.to_user.id)

    def signed_amount_for(self, member_id: str) -> Decimal:
        """
        Amount from member_id's point of view.

        Positive when the member is owed, negative when the member owes,
        zero when the balance does not involve them.
        """
        if self.to_user.id == member_id:
            return self.amount
        if self.from_user.id == member_id:
            return -self.amount
        return Decimal("0")


class ViewerBalances(BaseModel):
    """The balances one member sees, and where they stand overall."""

    viewer_id: str
    balances: list[Balance] = Field(default_factory=list)
    net_balance: Decimal = Field(
        default=Decimal("0"),
        description="Positive = net creditor, negative = net debtor"
    )

    @property
    def is_settled_up(self) -> bool:
        return not self.balances

    @property
    def amount_owed_to_viewer(self) -> Decimal:
        return sum(
            (b.amount for b in self.balances if b.to_user.id == self.viewer_id),
            Decimal("0"),
        )

    @property
    def amount_viewer_owes(self) -> Decimal:
        return sum(
            (b.amount for b in self.balances if b.from_user.id == self.viewer_id),
            Decimal("0"),
        )


class HouseholdBalances(BaseModel):
    """One consistent snapshot of a household's balances."""

    household_id: str
    members: list[Member] = Field(default_factory=list)
    balances: list[Balance] = Field(default_factory=list)
    computed_at: dt.datetime = Field(
        default_factory=dt.datetime.utcnow,
        description="When this snapshot was computed"
    )

    def member(self, member_id: str) -> Optional[Member]:
        for m in self.members:
            if m.id == member_id:
                return m
        return None

    def for_viewer(self, viewer_id: str) -> ViewerBalances:
        from household_balances.balances.viewer import summarize_for_viewer

        return summarize_for_viewer(self.balances, viewer_id)


# =============================================================================
# SETTLEMENT MODELS
# =============================================================================

class SplitUpdate(BaseModel):
    """
    One planned change to a split row.

    Either the split is marked settled, or its amount_owed is reduced.
    previous_amount_owed is what the split owed before, so the change can
    be reverted.
    """
    model_config = ConfigDict(frozen=True)

    split_id: str
    new_amount_owed: Decimal = Field(..., ge=0)
    mark_settled: bool
    previous_amount_owed: Optional[Decimal] = Field(default=None, ge=0)


class SettlementPlan(BaseModel):
    """How a payment between two members is applied to their splits."""

    from_user_id: str
    to_user_id: str
    amount: Decimal = Field(..., gt=0)
    updates: list[SplitUpdate] = Field(default_factory=list)
    note: Optional[str] = Field(
        default=None,
        max_length=500,
    )

    @property
    def settled_split_ids(self) -> list[str]:
        return [u.split_id for u in self.updates if u.mark_settled]

    @property
    def reduced_splits(self) -> list[SplitUpdate]:
        return [u for u in self.updates if not u.mark_settled]
