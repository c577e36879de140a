"""
Storage Services Package

Provides the abstract partition interface and concrete implementations.
JSON files on disk are the default backend; the in-memory one is for tests.
"""

from finquest.services.storage.interface import (
    CorruptedStateError,
    StateStorageInterface,
    StorageError,
)
from finquest.services.storage.json_file import JsonFileStorage
from finquest.services.storage.memory import InMemoryStorage

__all__ = [
    # Interface
    "StateStorageInterface",
    # Exceptions
    "CorruptedStateError",
    "StorageError",
    # Implementations
    "InMemoryStorage",
    "JsonFileStorage",
]
