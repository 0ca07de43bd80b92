"""Durable key-value stores for progression state

The engine talks to any object with async get(key, default) and
set_many(values). Two stores ship with the package:
- InMemoryStore: process-local, for tests and embedding
- JsonFileStore: one JSON document on disk, replaced atomically on write
"""
import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional, Protocol

from reward_engine.exceptions import StorageReadError, StorageWriteError, wrap_storage_exception

logger = logging.getLogger(__name__)


class KeyValueStore(Protocol):
    async def get(self, key: str, default: Any = None) -> Any:
        ...

    async def set_many(self, values: Dict[str, Any]) -> None:
        ...


class InMemoryStore:
    """Dictionary-backed store (not persisted across processes)"""

    def __init__(self, initial: Optional[Dict[str, Any]] = None):
        self._data: Dict[str, Any] = dict(initial or {})

    async def get(self, key: str, default: Any = None) -> Any:
        return self._data.get(key, default)

    async def set_many(self, values: Dict[str, Any]) -> None:
        self._data.update(values)
        logger.debug(f"Saved {len(values)} keys to in-memory store")

    def snapshot(self) -> Dict[str, Any]:
        return dict(self._data)


class JsonFileStore:
    """Store backed by a single JSON file"""

    def __init__(self, path: Path):
        self.path = Path(path)
        self._cache: Optional[Dict[str, Any]] = None

    def _read_all(self) -> Dict[str, Any]:
        if self._cache is not None:
            return self._cache

        if not self.path.exists():
            self._cache = {}
            return self._cache

        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            raise wrap_storage_exception(e, operation="load", path=str(self.path))

        if not isinstance(data, dict):
            raise StorageReadError(
                f"Expected a JSON object in {self.path}, got {type(data).__name__}",
                operation="load",
            )

        self._cache = data
        logger.debug(f"Loaded {len(data)} keys from {self.path}")
        return self._cache

    async def get(self, key: str, default: Any = None) -> Any:
        return self._read_all().get(key, default)

    async def set_many(self, values: Dict[str, Any]) -> None:
        try:
            current = self._read_all()
        except StorageReadError as e:
            if isinstance(e.cause, OSError):
                raise StorageWriteError(
                    f"Not overwriting {self.path}, it could not be read: {e.message}",
                    path=str(self.path),
                    operation="save",
                    cause=e.cause,
                )
            # Undecodable file: the new values replace it
            current = {}

        merged = {**current, **values}
        tmp_path = self.path.with_name(self.path.name + ".tmp")

        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path.write_text(json.dumps(merged, indent=2, sort_keys=True), encoding="utf-8")
            os.replace(tmp_path, self.path)
        except OSError as e:
            raise wrap_storage_exception(e, operation="save", path=str(self.path))

        self._cache = merged
        logger.debug(f"Saved {len(values)} keys to {self.path}")
