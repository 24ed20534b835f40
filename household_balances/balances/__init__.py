"""Balance computation and settlement package."""

from household_balances.balances.engine import compute_balances, net_positions
from household_balances.balances.settlement import (
    AlreadySettledError,
    InvalidPaymentError,
    SettlementError,
    SettlementService,
    SplitNotFoundError,
    clamp_payment,
    plan_expense_settlement,
    plan_payment,
)
from household_balances.balances.viewer import (
    BalanceFetchError,
    BalanceService,
    summarize_for_viewer,
)

__all__ = [
    # Engine
    "compute_balances",
    "net_positions",
    # Viewer adapter
    "BalanceFetchError",
    "BalanceService",
    "summarize_for_viewer",
    # Settlement
    "AlreadySettledError",
    "InvalidPaymentError",
    "SettlementError",
    "SettlementService",
    "SplitNotFoundError",
    "clamp_payment",
    "plan_expense_settlement",
    "plan_payment",
]
