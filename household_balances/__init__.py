"""
Household Balances - Source Package

Shared-expense bookkeeping for a household: who owes whom, and how much.

DESIGN PRINCIPLES:
1. Balances are derived, never stored
2. Every pair of members has at most one balance
3. Money is Decimal, never float
4. Storage layer is swappable
5. Every settlement is auditable
"""

__version__ = "1.0.0"
__author__ = "Household Balances Team"
