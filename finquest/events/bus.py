"""
In-process Event Bus

Synchronous publish/subscribe. publish() calls every handler before it
returns, in subscription order, so a user action and all of its
cross-store reactions finish as one uninterrupted operation.

Handlers may publish further events (ChallengeTracker reacting to
TransactionAdded publishes ChallengeCompleted); those are delivered
immediately, depth first.

Handler exceptions propagate to the publisher.
"""

from typing import Callable, Dict, List, Type, TypeVar

import structlog

from finquest.models.events import DomainEvent

E = TypeVar("E", bound=DomainEvent)

Handler = Callable[[DomainEvent], None]

logger = structlog.get_logger(__name__)


class EventBus:
    def __init__(self):
        self._subscribers: Dict[Type[DomainEvent], List[Handler]] = {}
        self._global_subscribers: List[Handler] = []

    def subscribe(self, event_cls: Type[E], handler: Callable[[E], None]) -> None:
        if event_cls not in self._subscribers:
            self._subscribers[event_cls] = []
        self._subscribers[event_cls].append(handler)

    def subscribe_all(self, handler: Handler) -> None:
        """Receive every event, before type-specific subscribers."""
        self._global_subscribers.append(handler)

    def unsubscribe(self, event_cls: Type[DomainEvent], handler: Handler) -> None:
        if event_cls in self._subscribers:
            if handler in self._subscribers[event_cls]:
                self._subscribers[event_cls].remove(handler)

    def publish(self, event: DomainEvent) -> None:
        # Snapshot so a handler subscribing mid-publish does not see this event
        handlers = self._global_subscribers + self._subscribers.get(type(event), [])
        logger.debug(
            "event_published",
            event_type=event.event_type.value,
            handler_count=len(handlers),
        )
        for handler in handlers:
            handler(event)

    def handler_count(self, event_cls: Type[DomainEvent]) -> int:
        return len(self._subscribers.get(event_cls, []))
