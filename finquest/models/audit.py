"""
Audit Models for finquest

Every domain event published on the bus is turned into an AuditEvent
and written to the structured log. This gives a readable history of
what each user action did across all stores.

DESIGN DECISION: Audit logs are append-only. We never delete or modify them.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field

from finquest.models.events import DomainEvent, DomainEventType, OperationRejected


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


# Events too chatty for INFO
_DEBUG_EVENTS = {
    DomainEventType.BALANCE_RECALCULATED,
    DomainEventType.GOALS_PROGRESS_CHANGED,
}


class AuditEvent(BaseModel):
    """
    A single audit event.

    This is the core unit of our audit trail.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=datetime.now,
        description="When the event occurred"
    )

    # Event classification
    event_type: DomainEventType = Field(
        ...,
        description="Type of event"
    )
    severity: AuditSeverity = Field(
        default=AuditSeverity.INFO,
        description="Event severity"
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

    error_code: Optional[str] = None

    @classmethod
    def from_domain_event(cls, event: DomainEvent) -> "AuditEvent":
        if isinstance(event, OperationRejected):
            severity = AuditSeverity.WARNING
            error_code = event.error.value
        elif event.event_type in _DEBUG_EVENTS:
            severity = AuditSeverity.DEBUG
            error_code = None
        else:
            severity = AuditSeverity.INFO
            error_code = None

        return cls(
            event_id=event.event_id,
            timestamp=event.occurred_at,
            event_type=event.event_type,
            severity=severity,
            description=event.describe()[:500],
            details=event.model_dump(mode="json", exclude={"event_id", "occurred_at"}),
            error_code=error_code,
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
            "description": self.description,
            "details": self.details,
            "error_code": self.error_code,
        }
