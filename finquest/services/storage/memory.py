"""In-memory storage, for tests and throwaway sessions."""

import copy
from typing import Optional

from finquest.services.storage.interface import StateStorageInterface


class InMemoryStorage(StateStorageInterface):
    """Keeps deep copies so callers can't mutate stored snapshots."""

    def __init__(self, initial: Optional[dict[str, dict]] = None):
        self._partitions: dict[str, dict] = copy.deepcopy(initial or {})

    def load_partition(self, name: str) -> Optional[dict]:
        data = self._partitions.get(name)
        return copy.deepcopy(data) if data is not None else None

    def save_partition(self, name: str, data: dict) -> None:
        self._partitions[name] = copy.deepcopy(data)

    def delete_partition(self, name: str) -> bool:
        return self._partitions.pop(name, None) is not None

    def list_partitions(self) -> list[str]:
        return sorted(self._partitions)
