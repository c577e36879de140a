"""
Common plumbing for the state stores.

Every store:
- owns one aggregate and nothing else
- talks to other stores through the EventBus or explicit handles
- can dump its whole state to a JSON-compatible snapshot and back
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Callable, ClassVar, Optional, Type, TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from finquest.events import EventBus
from finquest.models.events import OperationRejected
from finquest.models.results import ErrorCode, OperationResult
from finquest.services.storage import CorruptedStateError

R = TypeVar("R", bound=OperationResult)
S = TypeVar("S", bound=BaseModel)

Clock = Callable[[], datetime]


class PersistentStore(ABC):
    """Base class for stores persisted under a named partition."""

    partition: ClassVar[str]

    def __init__(self, bus: EventBus, clock: Optional[Clock] = None):
        self._bus = bus
        self._clock: Clock = clock or datetime.now

    @abstractmethod
    def snapshot(self) -> dict:
        """Full state as a JSON-compatible dict."""

    @abstractmethod
    def restore(self, data: dict) -> None:
        """
        Replace state from a snapshot. Publishes nothing.

        Raises:
            CorruptedStateError: If the snapshot does not validate
        """

    def _load_state(self, state_cls: Type[S], data: dict) -> S:
        try:
            return state_cls.model_validate(data)
        except PydanticValidationError as e:
            raise CorruptedStateError(
                f"Partition {self.partition} failed validation: {e.error_count()} errors"
            ) from e

    def _reject(
        self,
        result_cls: Type[R],
        operation: str,
        error: ErrorCode,
        message: str,
        entity_id: Optional[str] = None,
        **extra,
    ) -> R:
        """Publish the rejection for the audit log and build the failure result."""
        self._bus.publish(OperationRejected(
            operation=operation,
            error=error,
            message=message,
            entity_id=entity_id,
        ))
        return result_cls.fail(error, message, entity_id=entity_id, **extra)
