"""
Data Models Package

This package contains all Pydantic models used in Household Balances.
All data flowing through the system must conform to these schemas.
"""

from household_balances.models.ledger import (
    SETTLED_EPSILON,
    Balance,
    Expense,
    ExpenseSplit,
    HouseholdBalances,
    Member,
    SettlementPlan,
    SplitExpense,
    SplitUpdate,
    ViewerBalances,
)
from household_balances.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Ledger models
    "SETTLED_EPSILON",
    "Balance",
    "Expense",
    "ExpenseSplit",
    "HouseholdBalances",
    "Member",
    "SettlementPlan",
    "SplitExpense",
    "SplitUpdate",
    "ViewerBalances",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
