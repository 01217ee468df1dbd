"""Local key-value storage used as the receipt fallback store.

Thread-safe string-to-string storage, in memory or persisted to a JSON file.
"""

import json
import threading
from pathlib import Path
from typing import Dict, Optional, Protocol, Union


class KeyValueStorage(Protocol):
    """Minimal persistent key-value store interface."""

    def get_item(self, key: str) -> Optional[str]: ...

    def set_item(self, key: str, value: str) -> None: ...

    def remove_item(self, key: str) -> None: ...


class MemoryStorage:
    """In-memory key-value storage.

    Thread-safe dictionary-based storage. Contents are lost with the process.
    """

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        """Initialize storage, optionally pre-populated."""
        self._items: Dict[str, str] = dict(initial or {})
        self._lock = threading.RLock()

    def get_item(self, key: str) -> Optional[str]:
        """Get the value stored under key, None if absent."""
        with self._lock:
            return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        """Store value under key, replacing any previous value."""
        with self._lock:
            self._items[key] = value

    def remove_item(self, key: str) -> None:
        """Remove key if present."""
        with self._lock:
            self._items.pop(key, None)

    def clear(self) -> None:
        """Remove all keys."""
        with self._lock:
            self._items.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)

    def __contains__(self, key: str) -> bool:
        with self._lock:
            return key in self._items

    def __repr__(self) -> str:
        return f"MemoryStorage(keys={len(self)})"


class JsonFileStorage:
    """Key-value storage persisted as a JSON object file.

    Every write rewrites the whole file through a temporary file and rename,
    so a crash never leaves a half-written store behind.
    """

    def __init__(self, path: Union[str, Path]):
        """Initialize storage backed by the given file (created on first write)."""
        self._path = Path(path)
        self._lock = threading.RLock()

    @property
    def path(self) -> Path:
        return self._path

    def _read_all(self) -> Dict[str, str]:
        if not self._path.exists():
            return {}
        with open(self._path, encoding="utf-8") as f:
            content = f.read()
        if not content.strip():
            return {}
        data = json.loads(content)
        if not isinstance(data, dict):
            raise ValueError(f"Storage file does not hold a JSON object: {self._path}")
        return data

    def _write_all(self, items: Dict[str, str]) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self._path.with_suffix(self._path.suffix + ".tmp")
        with open(tmp_path, "w", encoding="utf-8") as f:
            json.dump(items, f)
        tmp_path.replace(self._path)

    def get_item(self, key: str) -> Optional[str]:
        """Get the value stored under key, None if absent."""
        with self._lock:
            return self._read_all().get(key)

    def set_item(self, key: str, value: str) -> None:
        """Store value under key, replacing any previous value."""
        with self._lock:
            items = self._read_all()
            items[key] = value
            self._write_all(items)

    def remove_item(self, key: str) -> None:
        """Remove key if present."""
        with self._lock:
            items = self._read_all()
            if key in items:
                del items[key]
                self._write_all(items)

    def __repr__(self) -> str:
        return f"JsonFileStorage(path={str(self._path)!r})"
