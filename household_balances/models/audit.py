"""
Audit Models for Household Balances

Every balance read and every settlement emits an audit event.
This provides:
1. Traceability of who settled what, and when
2. Debugging information when a fetch or settlement fails
3. Visibility into skipped data (splits pointing at unknown members)

DESIGN DECISION: Audit events go to the structured log only.
They are not a transaction log and are never replayed.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Balance reads
    BALANCES_COMPUTED = "balances_computed"
    BALANCE_FETCH_FAILED = "balance_fetch_failed"
    ORPHAN_SPLIT_SKIPPED = "orphan_split_skipped"

    # Settlements
    PAYMENT_SETTLED = "payment_settled"
    EXPENSE_SETTLED = "expense_settled"
    SETTLEMENT_FAILED = "settlement_failed"

    # System events
    SYSTEM_ERROR = "system_error"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AuditEvent(BaseModel):
    """
    A single audit event.

    Every significant action creates one of these.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=datetime.utcnow,
        description="When the event occurred (UTC)"
    )

    # Event classification
    event_type: AuditEventType = Field(
        ...,
        description="Type of event"
    )
    severity: AuditSeverity = Field(
        default=AuditSeverity.INFO,
        description="Event severity"
    )

    # Context - what is this about?
    household_id: Optional[str] = None
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'balance', 'expense', 'split')"
    )
    entity_id: Optional[str] = Field(
        default=None,
        description="ID of the entity this event relates to"
    )

    # Correlation - for tracking related events
    correlation_id: Optional[UUID] = Field(
        default=None,
        description="ID to correlate related events (e.g., one page load)"
    )

    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )
    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional event-specific data"
    )

    error_message: Optional[str] = None

    is_user_action: bool = Field(
        default=False,
        description="Was this triggered by a user action?"
    )

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "household_id": self.household_id,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
            "is_user_action": self.is_user_action,
        }


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.balances_computed(household_id, 3, 12)
        event = AuditEventBuilder.payment_settled(plan, correlation_id)
    """

    @staticmethod
    def balances_computed(
        household_id: str,
        balance_count: int,
        split_count: int,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.BALANCES_COMPUTED,
            household_id=household_id,
            entity_type="household",
            entity_id=household_id,
            correlation_id=correlation_id,
            description=f"Computed {balance_count} balances from {split_count} splits",
            details={
                "balance_count": balance_count,
                "split_count": split_count,
            },
        )

    @staticmethod
    def balance_fetch_failed(
        household_id: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.BALANCE_FETCH_FAILED,
            severity=AuditSeverity.ERROR,
            household_id=household_id,
            entity_type="household",
            entity_id=household_id,
            correlation_id=correlation_id,
            description="Could not fetch expense splits",
            error_message=error_message,
        )

    @staticmethod
    def orphan_split_skipped(
        split_id: str,
        missing_member_id: str,
        household_id: Optional[str] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ORPHAN_SPLIT_SKIPPED,
            severity=AuditSeverity.WARNING,
            household_id=household_id,
            entity_type="split",
            entity_id=split_id,
            description=f"Split skipped: member {missing_member_id} is not in the household",
            details={
                "missing_member_id": missing_member_id,
            },
        )

    @staticmethod
    def payment_settled(
        from_user_id: str,
        to_user_id: str,
        amount: Decimal,
        settled_split_ids: list[str],
        reduced_split_ids: list[str],
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PAYMENT_SETTLED,
            entity_type="balance",
            entity_id=f"{from_user_id}:{to_user_id}",
            correlation_id=correlation_id,
            description=f"Payment of {amount} from {from_user_id} to {to_user_id}",
            details={
                "amount": str(amount),
                "settled_splits": settled_split_ids,
                "reduced_splits": reduced_split_ids,
            },
            is_user_action=True,
        )

    @staticmethod
    def expense_settled(
        expense_id: str,
        actor_id: str,
        settled_split_ids: list[str],
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXPENSE_SETTLED,
            entity_type="expense",
            entity_id=expense_id,
            correlation_id=correlation_id,
            description=f"{len(settled_split_ids)} splits settled by {actor_id}",
            details={
                "actor_id": actor_id,
                "settled_splits": settled_split_ids,
            },
            is_user_action=True,
        )

    @staticmethod
    def settlement_failed(
        entity_type: str,
        entity_id: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SETTLEMENT_FAILED,
            severity=AuditSeverity.ERROR,
            entity_type=entity_type,
            entity_id=entity_id,
            correlation_id=correlation_id,
            description=f"Settlement failed for {entity_type} {entity_id}",
            error_message=error_message,
        )

    @staticmethod
    def system_error(
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SYSTEM_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"System error: {error_type}",
            error_message=error_message,
            details=details or {},
            correlation_id=correlation_id,
        )
