"""
Audit Logger

DESIGN DECISION: Every balance read and settlement is logged.
This provides:
1. Traceability of settlements
2. Debugging capability for failed fetches

The audit logger:
- Is async so services can await it inline
- Never raises (a broken log must not break a settlement)
- Supports correlation IDs to trace related events
"""

import logging
from decimal import Decimal
from typing import Optional
from uuid import UUID, uuid4

import structlog

from household_balances.models.audit import AuditEvent, AuditEventBuilder, AuditSeverity


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


def configure_logging(level: str = "INFO") -> None:
    """Route structlog output through the stdlib root logger at `level`."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(message)s",
    )


class AuditLogger:
    """
    Central audit logging service.

    Events are written to the structured log at the event's severity.
    """

    def __init__(self, logger_name: str = "household_balances.audit"):
        self._logger = structlog.get_logger(logger_name)

    async def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Returns False if the event could not be written.
        """
        log_dict = event.to_log_dict()

        try:
            if event.severity in (AuditSeverity.ERROR, AuditSeverity.CRITICAL):
                self._logger.error("audit_event", **log_dict)
            elif event.severity == AuditSeverity.WARNING:
                self._logger.warning("audit_event", **log_dict)
            elif event.severity == AuditSeverity.DEBUG:
                self._logger.debug("audit_event", **log_dict)
            else:
                self._logger.info("audit_event", **log_dict)
        except Exception:
            logging.getLogger(__name__).exception(
                "Failed to write audit event %s", event.event_id
            )
            return False

        return True

    async def log_balances_computed(
        self,
        household_id: str,
        balance_count: int,
        split_count: int,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a successful balance computation."""
        event = AuditEventBuilder.balances_computed(
            household_id=household_id,
            balance_count=balance_count,
            split_count=split_count,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_balance_fetch_failed(
        self,
        household_id: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a failed split/member fetch."""
        event = AuditEventBuilder.balance_fetch_failed(
            household_id=household_id,
            error_message=error_message,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_payment_settled(
        self,
        from_user_id: str,
        to_user_id: str,
        amount: Decimal,
        settled_split_ids: list[str],
        reduced_split_ids: list[str],
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a payment applied to a balance."""
        event = AuditEventBuilder.payment_settled(
            from_user_id=from_user_id,
            to_user_id=to_user_id,
            amount=amount,
            settled_split_ids=settled_split_ids,
            reduced_split_ids=reduced_split_ids,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_expense_settled(
        self,
        expense_id: str,
        actor_id: str,
        settled_split_ids: list[str],
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log an expense-level settlement."""
        event = AuditEventBuilder.expense_settled(
            expense_id=expense_id,
            actor_id=actor_id,
            settled_split_ids=settled_split_ids,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_settlement_failed(
        self,
        entity_type: str,
        entity_id: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a settlement that could not be applied."""
        event = AuditEventBuilder.settlement_failed(
            entity_type=entity_type,
            entity_id=entity_id,
            error_message=error_message,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_error(
        self,
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log an error."""
        event = AuditEventBuilder.system_error(
            error_type=error_type,
            error_message=error_message,
            details=details,
            correlation_id=correlation_id,
        )
        await self.log(event)


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use this at the start of a new user action (e.g., opening the balances page).
    Pass it through all subsequent operations.
    """
    return uuid4()
