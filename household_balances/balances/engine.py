"""
Balance Engine

Turns a household's expense splits into pairwise net balances.

GUARANTEES:
- At most one Balance per pair of members, in one direction
- No Balance at or below SETTLED_EPSILON
- Settled splits and self-payments never contribute
- Pure: same inputs, same output, no hidden state

Splits that reference a member missing from the roster are skipped and
logged. They never raise.
"""

from collections import defaultdict
from decimal import Decimal
from typing import Iterable, Sequence

import structlog

from household_balances.models.audit import AuditEventBuilder
from household_balances.models.ledger import (
    SETTLED_EPSILON,
    Balance,
    ExpenseSplit,
    Member,
)


logger = structlog.get_logger(__name__)

ZERO = Decimal("0")


def _unique_roster(members: Iterable[Member]) -> list[Member]:
    """Roster in its given order, first occurrence of each id wins."""
    seen = set()
    roster = []
    for member in members:
        if member.id in seen:
            continue
        seen.add(member.id)
        roster.append(member)
    return roster


def _countable_splits(
    splits: Sequence[ExpenseSplit],
    member_ids: set[str],
) -> Iterable[tuple[int, ExpenseSplit]]:
    """
    Yield (position, split) for every split that can create a debt.

    Skips settled splits, self-payments, and splits whose payer or
    debtor is not a household member.
    """
    for position, split in enumerate(splits):
        if split.is_settled or split.is_self_payment:
            continue

        missing = next(
            (uid for uid in (split.payer_id, split.user_id) if uid not in member_ids),
            None,
        )
        if missing is not None:
            event = AuditEventBuilder.orphan_split_skipped(
                split_id=split.id,
                missing_member_id=missing,
                household_id=split.expense.household_id,
            )
            logger.warning("audit_event", **event.to_log_dict())
            continue

        yield position, split


def compute_balances(
    splits: Sequence[ExpenseSplit],
    members: Sequence[Member],
) -> list[Balance]:
    """
    Compute the net balance between every pair of household members.

    Args:
        splits: Every split row for the household, settled or not,
                each annotated with its parent expense's payer.
        members: The household roster. Pairs are visited in roster order.

    Returns:
        Balances ordered by the position of the pair in the roster.
        Empty when everyone is settled up.
    """
    splits = list(splits)
    roster = _unique_roster(members)
    if not roster or not splits:
        return []

    member_ids = {m.id for m in roster}

    # (payer_id, debtor_id) -> what debtor owes payer
    owed: dict[tuple[str, str], Decimal] = defaultdict(lambda: ZERO)
    contributors: dict[tuple[str, str], list[int]] = defaultdict(list)

    for position, split in _countable_splits(splits, member_ids):
        key = (split.payer_id, split.user_id)
        owed[key] += split.amount_owed
        contributors[key].append(position)

    balances = []
    for i, a in enumerate(roster):
        for b in roster[i + 1:]:
            b_owes_a = owed.get((a.id, b.id), ZERO)
            a_owes_b = owed.get((b.id, a.id), ZERO)
            net = b_owes_a - a_owes_b

            if abs(net) <= SETTLED_EPSILON:
                continue

            debtor, creditor = (b, a) if net > 0 else (a, b)
            positions = sorted(
                contributors.get((a.id, b.id), []) + contributors.get((b.id, a.id), [])
            )

            balances.append(
                Balance(
                    from_user=debtor,
                    to_user=creditor,
                    amount=abs(net),
                    related_splits=tuple(splits[p] for p in positions),
                    payment_link=creditor.payment_link,
                )
            )

    return balances


def net_positions(
    splits: Sequence[ExpenseSplit],
    members: Sequence[Member],
) -> dict[str, Decimal]:
    """
    Each member's signed position straight from the raw splits.

    Positive = the household owes them, negative = they owe the household.
    Applies the same exclusions as compute_balances, but no pairwise
    netting and no epsilon.
    """
    roster = _unique_roster(members)
    positions = {m.id: ZERO for m in roster}

    for _, split in _countable_splits(splits, set(positions)):
        positions[split.payer_id] += split.amount_owed
        positions[split.user_id] -= split.amount_owed

    return positions
