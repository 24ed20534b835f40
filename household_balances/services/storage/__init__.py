"""
Storage Services Package

Provides the abstract ledger interface and concrete implementations.
Google Sheets is the production backend; the in-memory store backs tests
and local runs.
"""

from household_balances.services.storage.interface import (
    ConnectionError,
    LedgerStorageInterface,
    NotFoundError,
    StorageError,
)
from household_balances.services.storage.memory import InMemoryLedgerStorage
from household_balances.services.storage.google_sheets import (
    GoogleSheetsClient,
    GoogleSheetsLedgerStorage,
)

__all__ = [
    # Interfaces
    "LedgerStorageInterface",
    # Exceptions
    "ConnectionError",
    "NotFoundError",
    "StorageError",
    # Implementations
    "GoogleSheetsClient",
    "GoogleSheetsLedgerStorage",
    "InMemoryLedgerStorage",
]
