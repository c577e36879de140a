"""
JSON File Storage Implementation

One JSON file per partition under the configured data directory:

    .finquest/
        dashboard-storage.json
        goals-storage.json
        transactions-storage.json
        ...

Writes go to a temporary file that is then renamed over the target,
so a crash mid-write never leaves a half-written partition behind.
Transient OS errors on write are retried.
"""

import json
import os
import re
from pathlib import Path
from typing import Optional, Union

import structlog
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from finquest.config import get_settings
from finquest.services.storage.interface import (
    CorruptedStateError,
    StateStorageInterface,
    StorageError,
)

_PARTITION_NAME = re.compile(r"^[A-Za-z0-9_.-]+$")

logger = structlog.get_logger(__name__)


class JsonFileStorage(StateStorageInterface):
    """Partition snapshots as JSON files on local disk."""

    def __init__(
        self,
        data_dir: Optional[Union[str, Path]] = None,
        write_attempts: Optional[int] = None,
    ):
        settings = get_settings().storage
        self._dir = Path(data_dir) if data_dir is not None else settings.data_path
        self._write_attempts = write_attempts or settings.write_attempts

    @property
    def data_dir(self) -> Path:
        return self._dir

    def _path(self, name: str) -> Path:
        if not _PARTITION_NAME.match(name):
            raise StorageError(f"Invalid partition name: {name!r}")
        return self._dir / f"{name}.json"

    def load_partition(self, name: str) -> Optional[dict]:
        path = self._path(name)
        if not path.exists():
            return None

        try:
            with path.open("r", encoding="utf-8") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise CorruptedStateError(f"Partition {name} is not valid JSON: {e}")
        except OSError as e:
            raise StorageError(f"Failed to read partition {name}: {e}")

        if not isinstance(data, dict):
            raise CorruptedStateError(f"Partition {name} does not hold an object")
        return data

    def save_partition(self, name: str, data: dict) -> None:
        path = self._path(name)
        payload = json.dumps(data, ensure_ascii=False, indent=2)

        writer = retry(
            retry=retry_if_exception_type(OSError),
            stop=stop_after_attempt(self._write_attempts),
            wait=wait_exponential(multiplier=0.1, min=0.1, max=2),
            reraise=True,
        )(self._write_atomic)

        try:
            writer(path, payload)
        except OSError as e:
            logger.error("partition_write_failed", partition=name, error=str(e))
            raise StorageError(f"Failed to write partition {name}: {e}")

    def _write_atomic(self, path: Path, payload: str) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        tmp = path.with_suffix(".json.tmp")
        with tmp.open("w", encoding="utf-8") as f:
            f.write(payload)
        os.replace(tmp, path)

    def delete_partition(self, name: str) -> bool:
        path = self._path(name)
        if not path.exists():
            return False
        try:
            path.unlink()
        except OSError as e:
            raise StorageError(f"Failed to delete partition {name}: {e}")
        return True

    def list_partitions(self) -> list[str]:
        if not self._dir.exists():
            return []
        return sorted(p.stem for p in self._dir.glob("*.json"))
