"""Services package."""

from finquest.services.storage import (
    CorruptedStateError,
    InMemoryStorage,
    JsonFileStorage,
    StateStorageInterface,
    StorageError,
)

__all__ = [
    "CorruptedStateError",
    "InMemoryStorage",
    "JsonFileStorage",
    "StateStorageInterface",
    "StorageError",
]
