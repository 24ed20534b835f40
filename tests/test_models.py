"""
Tests for Household Balances models

Test strategy:
1. Unit tests for individual components (models, builders)
2. Service tests against the in-memory store
3. No real API calls in tests (Google Sheets is faked)
"""

import pytest
from datetime import date
from decimal import Decimal

from household_balances.models.ledger import (
    Balance,
    Expense,
    ExpenseSplit,
    Member,
    SettlementPlan,
    SplitExpense,
    SplitUpdate,
)
from household_balances.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)


class TestLedgerModels:
    """Tests for household and split models."""

    def test_member_strips_whitespace(self):
        """Test that whitespace is stripped from member fields."""
        member = Member(id="  m1 ", full_name="  Alice  ")
        assert member.id == "m1"
        assert member.full_name == "Alice"
        assert member.payment_link is None

    def test_member_requires_id(self):
        with pytest.raises(ValueError):
            Member(id="", full_name="Nobody")

    def test_expense_rejects_negative_amount(self):
        """Test that negative amounts are rejected."""
        with pytest.raises(ValueError):
            Expense(id="e1", household_id="h1", paid_by="A", amount=Decimal("-1"))

    def test_expense_parses_date(self):
        expense = Expense(
            id="e1",
            household_id="h1",
            paid_by="A",
            amount=Decimal("12.50"),
            date="2024-03-01",
        )
        assert expense.date == date(2024, 3, 1)

    def test_split_reads_expense_alias(self):
        """Rows joined as `expenses` are accepted too."""
        split = ExpenseSplit.model_validate({
            "id": "s1",
            "expense_id": "e1",
            "user_id": "B",
            "amount_owed": "25.00",
            "expenses": {"paid_by": "A"},
        })
        assert split.payer_id == "A"
        assert split.amount_owed == Decimal("25.00")
        assert split.is_settled is False

    def test_split_strips_member_ids(self):
        """Ids match the stripped Member ids."""
        split = ExpenseSplit(
            id="s1",
            expense_id="e1",
            user_id="B ",
            amount_owed=Decimal("10"),
            expense=SplitExpense(paid_by=" A"),
        )
        assert split.user_id == "B"
        assert split.payer_id == "A"

    def test_split_self_payment(self):
        split = ExpenseSplit(
            id="s1",
            expense_id="e1",
            user_id="A",
            amount_owed=Decimal("10"),
            expense=SplitExpense(paid_by="A"),
        )
        assert split.is_self_payment

    def test_split_rejects_negative_amount(self):
        with pytest.raises(ValueError):
            ExpenseSplit(
                id="s1",
                expense_id="e1",
                user_id="B",
                amount_owed=Decimal("-10"),
                expense=SplitExpense(paid_by="A"),
            )

    def test_split_is_immutable(self):
        split = ExpenseSplit(
            id="s1",
            expense_id="e1",
            user_id="B",
            amount_owed=Decimal("10"),
            expense=SplitExpense(paid_by="A"),
        )
        with pytest.raises(ValueError):
            split.is_settled = True


class TestBalanceModel:
    """Tests for the derived Balance value."""

    def test_balance_rejects_negligible_amount(self, alice, bob):
        with pytest.raises(ValueError):
            Balance(from_user=bob, to_user=alice, amount=Decimal("0.01"))

    def test_balance_rejects_self_debt(self, alice):
        with pytest.raises(ValueError):
            Balance(from_user=alice, to_user=alice, amount=Decimal("5"))

    def test_signed_amount(self, alice, bob, carol):
        balance = Balance(from_user=bob, to_user=alice, amount=Decimal("5"))

        assert balance.signed_amount_for("A") == Decimal("5")
        assert balance.signed_amount_for("B") == Decimal("-5")
        assert balance.signed_amount_for("C") == Decimal("0")
        assert balance.involves("B")
        assert not balance.involves("C")
        assert balance.expense_count == 0


class TestSettlementModels:
    """Tests for settlement plans."""

    def test_plan_splits_updates_by_kind(self):
        plan = SettlementPlan(
            from_user_id="B",
            to_user_id="A",
            amount=Decimal("40"),
            updates=[
                SplitUpdate(split_id="s1", new_amount_owed=Decimal("0"), mark_settled=True),
                SplitUpdate(split_id="s2", new_amount_owed=Decimal("5"), mark_settled=False),
            ],
        )
        assert plan.settled_split_ids == ["s1"]
        assert [u.split_id for u in plan.reduced_splits] == ["s2"]

    def test_plan_rejects_zero_amount(self):
        with pytest.raises(ValueError):
            SettlementPlan(from_user_id="B", to_user_id="A", amount=Decimal("0"))


class TestAuditModels:
    """Tests for audit-related models."""

    def test_audit_event_creation(self):
        """Test AuditEvent model creation."""
        event = AuditEvent(
            event_type=AuditEventType.BALANCES_COMPUTED,
            description="Computed balances",
        )
        assert event.event_type == AuditEventType.BALANCES_COMPUTED
        assert event.severity == AuditSeverity.INFO
        assert event.event_id is not None

    def test_audit_event_to_log_dict(self):
        """Test conversion to log dictionary."""
        event = AuditEvent(
            event_type=AuditEventType.BALANCE_FETCH_FAILED,
            severity=AuditSeverity.ERROR,
            description="Fetch failed",
            error_message="timeout",
        )
        log_dict = event.to_log_dict()

        assert log_dict["event_type"] == "balance_fetch_failed"
        assert log_dict["severity"] == "error"
        assert log_dict["error_message"] == "timeout"
        assert log_dict["correlation_id"] is None

    def test_builder_orphan_split(self):
        event = AuditEventBuilder.orphan_split_skipped(
            split_id="s9",
            missing_member_id="ghost",
            household_id="h1",
        )
        assert event.event_type == AuditEventType.ORPHAN_SPLIT_SKIPPED
        assert event.severity == AuditSeverity.WARNING
        assert event.entity_id == "s9"
        assert event.details["missing_member_id"] == "ghost"

    def test_builder_payment_settled(self):
        event = AuditEventBuilder.payment_settled(
            from_user_id="B",
            to_user_id="A",
            amount=Decimal("25.50"),
            settled_split_ids=["s1"],
            reduced_split_ids=["s2"],
        )
        assert event.is_user_action
        assert event.entity_id == "B:A"
        assert event.details["amount"] == "25.50"

    def test_builder_settlement_failed(self):
        event = AuditEventBuilder.settlement_failed(
            entity_type="expense",
            entity_id="e1",
            error_message="boom",
        )
        assert event.severity == AuditSeverity.ERROR
        assert event.error_message == "boom"
