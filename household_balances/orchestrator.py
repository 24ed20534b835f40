"""
Application Wiring

Builds the read and write services over one storage backend.

DESIGN DECISION: Services never build their own store. This module is the
only place that decides between Google Sheets and in-memory storage, so
tests and the UI can hand the services whatever store they like.
"""

from typing import Optional

import structlog

from household_balances.audit import AuditLogger
from household_balances.balances import BalanceService, SettlementService
from household_balances.services.storage import (
    GoogleSheetsClient,
    GoogleSheetsLedgerStorage,
    InMemoryLedgerStorage,
    LedgerStorageInterface,
)


logger = structlog.get_logger(__name__)


def create_app_components(
    use_storage: bool = True,
    repository: Optional[LedgerStorageInterface] = None,
) -> tuple[BalanceService, SettlementService, Optional[GoogleSheetsClient]]:
    """
    Factory function to create all application components.

    Args:
        use_storage: Whether to connect to Google Sheets.
                    Set to False to run on an in-memory ledger.
        repository: Explicit store; overrides use_storage when given

    Returns:
        (balance_service, settlement_service, sheets_client)
    """
    sheets_client = None
    audit_logger = AuditLogger()

    if repository is None and use_storage:
        try:
            sheets_client = GoogleSheetsClient()
            sheets_client.connect()
            repository = GoogleSheetsLedgerStorage(sheets_client)
        except Exception as e:
            # Storage not configured - continue on an empty in-memory ledger
            logger.warning("storage_not_configured", error=str(e))
            sheets_client = None
            repository = None

    if repository is None:
        repository = InMemoryLedgerStorage()

    balance_service = BalanceService(repository, audit_logger=audit_logger)
    settlement_service = SettlementService(repository, audit_logger=audit_logger)

    return balance_service, settlement_service, sheets_client
