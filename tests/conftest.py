"""Shared builders for ledger test data."""

from decimal import Decimal

import pytest

from household_balances.models.ledger import Expense, ExpenseSplit, Member, SplitExpense


HOUSEHOLD = "house-1"


def build_split(
    split_id: str,
    payer: str,
    debtor: str,
    amount,
    settled: bool = False,
    expense_id: str = None,
) -> ExpenseSplit:
    """A split where `debtor` owes `payer` `amount`."""
    expense_id = expense_id or f"exp-{split_id}"
    return ExpenseSplit(
        id=split_id,
        expense_id=expense_id,
        user_id=debtor,
        amount_owed=Decimal(str(amount)),
        is_settled=settled,
        expense=SplitExpense(id=expense_id, household_id=HOUSEHOLD, paid_by=payer),
    )


@pytest.fixture
def make_split():
    return build_split


@pytest.fixture
def alice():
    return Member(id="A", full_name="Alice", household_id=HOUSEHOLD,
                  payment_link="https://pay.example/alice")


@pytest.fixture
def bob():
    return Member(id="B", full_name="Bob", household_id=HOUSEHOLD,
                  payment_link="https://pay.example/bob")


@pytest.fixture
def carol():
    return Member(id="C", full_name="Carol", household_id=HOUSEHOLD)


@pytest.fixture
def household_expenses():
    """Expenses backing the in-memory ledger fixture."""
    return [
        Expense(id="groceries", household_id=HOUSEHOLD, paid_by="A",
                amount=Decimal("90"), description="Groceries"),
        Expense(id="internet", household_id=HOUSEHOLD, paid_by="B",
                amount=Decimal("60"), description="Internet"),
        Expense(id="elsewhere", household_id="house-2", paid_by="Z",
                amount=Decimal("10"), description="Other household"),
    ]


@pytest.fixture
def ledger_rows():
    return [
        {"id": "g-a", "expense_id": "groceries", "user_id": "A", "amount_owed": "30"},
        {"id": "g-b", "expense_id": "groceries", "user_id": "B", "amount_owed": "30"},
        {"id": "g-c", "expense_id": "groceries", "user_id": "C", "amount_owed": "30"},
        {"id": "i-a", "expense_id": "internet", "user_id": "A", "amount_owed": "20"},
        {"id": "i-b", "expense_id": "internet", "user_id": "B", "amount_owed": "20"},
        {"id": "i-c", "expense_id": "internet", "user_id": "C", "amount_owed": "20",
         "is_settled": True},
        {"id": "x-z", "expense_id": "elsewhere", "user_id": "Y", "amount_owed": "10"},
    ]
