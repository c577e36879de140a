"""
Audit Logger

DESIGN DECISION: Every domain event is logged.
This provides:
1. Traceability of what one user action did across all stores
2. Debugging capability (why did my points go up?)
3. A record of rejected operations and their reasons

The audit logger:
- Subscribes to the bus, so stores never call it directly
- Is synchronous, like everything else in the core
- Never changes state
"""

import logging
import sys
from typing import Optional

import structlog

from finquest.events import EventBus
from finquest.models.audit import AuditEvent, AuditSeverity
from finquest.models.events import DomainEvent


def configure_logging(debug: bool = False) -> None:
    """Configure stdlib logging and structlog for JSON output."""
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=logging.DEBUG if debug else logging.INFO,
    )
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


class AuditLogger:
    """
    Central audit logging service.

    Keeps the most recent events in memory (for "what just happened"
    views and tests) and writes every event to the structured log.
    """

    def __init__(self, history_size: int = 200):
        self._logger = structlog.get_logger("finquest.audit")
        self._history: list[AuditEvent] = []
        self._history_size = history_size

    def attach(self, bus: EventBus) -> None:
        bus.subscribe_all(self.handle)

    def handle(self, event: DomainEvent) -> None:
        self.log(AuditEvent.from_domain_event(event))

    def log(self, event: AuditEvent) -> None:
        log_dict = event.to_log_dict()

        if event.severity == AuditSeverity.ERROR:
            self._logger.error("audit_event", **log_dict)
        elif event.severity == AuditSeverity.WARNING:
            self._logger.warning("audit_event", **log_dict)
        elif event.severity == AuditSeverity.DEBUG:
            self._logger.debug("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)

        self._history.append(event)
        if len(self._history) > self._history_size:
            del self._history[: len(self._history) - self._history_size]

    def recent(self, limit: Optional[int] = None) -> list[AuditEvent]:
        """Most recent events, newest first."""
        events = list(reversed(self._history))
        return events[:limit] if limit is not None else events
