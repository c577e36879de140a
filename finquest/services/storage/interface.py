"""
Abstract Storage Interface

DESIGN DECISION: Each store persists its whole state as one snapshot
under its own named partition (e.g. "transactions-storage").
This allows us to:
1. Load every store independently at startup
2. Use in-memory storage for testing
3. Swap the JSON files for something else later
4. Keep business logic decoupled from storage implementation

Partitions are NOT cross-validated on load. A stale balance partition
stays stale until the next Ledger mutation recomputes it.
"""

from abc import ABC, abstractmethod
from typing import Optional


class StateStorageInterface(ABC):
    """
    Abstract interface for partitioned state snapshots.

    Snapshots are plain JSON-compatible dicts.
    """

    @abstractmethod
    def load_partition(self, name: str) -> Optional[dict]:
        """
        Load a partition snapshot.

        Returns:
            The snapshot, or None if the partition was never saved

        Raises:
            CorruptedStateError: If the stored data cannot be decoded
            StorageError: If the backend cannot be read
        """
        pass

    @abstractmethod
    def save_partition(self, name: str, data: dict) -> None:
        """
        Replace a partition snapshot.

        Raises:
            StorageError: If the write fails
        """
        pass

    @abstractmethod
    def delete_partition(self, name: str) -> bool:
        """
        Delete a partition.

        Returns:
            True if something was deleted
        """
        pass

    @abstractmethod
    def list_partitions(self) -> list[str]:
        """Names of all saved partitions, sorted."""
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class CorruptedStateError(StorageError):
    """A stored partition could not be decoded."""
    pass
