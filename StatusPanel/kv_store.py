"""Durable key-value storage and the one-slot payload cache built on it."""
import json
import logging
import os
import tempfile
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

CACHE_KEY = "status-panel:last-payload"


class KeyValueStore(ABC):
    """String key-value store that outlives a single view."""

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        pass

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        pass


class MemoryStore(KeyValueStore):
    """Process-local store, used when no cache file is configured and in tests."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._values: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._values.get(key)

    def set(self, key: str, value: str) -> None:
        self._values[key] = value


class JsonFileStore(KeyValueStore):
    """
    Store backed by a single JSON object on disk.

    Every write rewrites the whole file through a temporary file and
    ``os.replace`` so readers never see a partial document. Several
    processes sharing a file simply overwrite each other.
    """

    def __init__(self, path: str):
        """
        Args:
            path: File holding the JSON object (created on first write)
        """
        self.path = path

    def _read_all(self) -> Dict[str, str]:
        try:
            with open(self.path, "r", encoding="utf-8") as fh:
                data = json.load(fh)
        except FileNotFoundError:
            return {}
        except (OSError, ValueError) as e:
            logging.warning(f"Ignoring unreadable store {self.path}: {e}")
            return {}
        if not isinstance(data, dict):
            logging.warning(f"Ignoring store {self.path}: top level is not an object")
            return {}
        return data

    def _write_all(self, data: Dict[str, str]) -> None:
        directory = os.path.dirname(os.path.abspath(self.path))
        os.makedirs(directory, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=directory, prefix=".store-", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(data, fh)
            os.replace(tmp_path, self.path)
        except OSError:
            if os.path.exists(tmp_path):
                os.remove(tmp_path)
            raise

    def get(self, key: str) -> Optional[str]:
        value = self._read_all().get(key)
        return value if isinstance(value, str) else None

    def set(self, key: str, value: str) -> None:
        data = self._read_all()
        data[key] = value
        self._write_all(data)


class CacheSlot:
    """
    Last successfully fetched payload, serialized under a fixed key.

    Only fresh fetches write the slot; failures never clear it.
    """

    def __init__(self, store: KeyValueStore, key: str = CACHE_KEY):
        self.store = store
        self.key = key

    def save(self, payload: Dict[str, Any]) -> None:
        self.store.set(self.key, json.dumps(payload))
        logging.debug(f"Cached payload under {self.key}")

    def load(self) -> Optional[Dict[str, Any]]:
        """Return the cached payload, or None when absent or unreadable."""
        try:
            raw = self.store.get(self.key)
        except OSError as e:
            logging.warning(f"Cache read failed: {e}")
            return None
        if raw is None:
            return None
        try:
            payload = json.loads(raw)
        except ValueError as e:
            logging.warning(f"Discarding corrupt cache entry {self.key}: {e}")
            return None
        if not isinstance(payload, dict):
            logging.warning(f"Discarding cache entry {self.key}: not a JSON object")
            return None
        return payload
