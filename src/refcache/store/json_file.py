"""Single-file JSON store.

The whole cache lives in one JSON document whose top-level keys are URLs::

    {
      "https://example.com/schema.json": {"timestamp": 1700000000000, "body": {...}},
      ...
    }

The document is read once at construction and rewritten in full on every
:meth:`JsonFileStore.save`.  Writes go through
:func:`~refcache.config._atomic_write` (temp file, fsync, rename), so a
crash mid-write leaves the previous version intact.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from refcache.config import _atomic_write
from refcache.store.base import PersistentStore

logger = logging.getLogger(__name__)


class JsonFileStore(PersistentStore):
    """Persistent store backed by one JSON file.

    A missing file starts an empty store.  A file that cannot be read, is
    not valid JSON, or whose top level is not an object is logged and
    treated as empty; the next :meth:`save` overwrites it.

    Args:
        path: Location of the JSON document.  Parent directories are
            created on the first save.

    Example::

        store = JsonFileStore("/tmp/refcache/cache.json")
        store.set("https://example.com/a.json", {"timestamp": 0, "body": {}})
        store.save()
    """

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)
        self._data: dict[str, Any] = self._load()

    @property
    def path(self) -> Path:
        """Location of the backing JSON file."""
        return self._path

    def get(self, key: str) -> Any:
        return self._data.get(key)

    def set(self, key: str, value: Any) -> None:
        self._data[key] = value

    def delete(self, key: str) -> None:
        self._data.pop(key, None)

    def items(self) -> list[tuple[str, Any]]:
        return list(self._data.items())

    def save(self) -> None:
        _atomic_write(self._path, json.dumps(self._data, ensure_ascii=False))

    def clear(self) -> None:
        self._data.clear()

    def __len__(self) -> int:
        return len(self._data)

    def __contains__(self, key: object) -> bool:
        return key in self._data

    def _load(self) -> dict[str, Any]:
        """Read the backing file, returning an empty mapping when unusable."""
        if not self._path.is_file():
            return {}
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            logger.warning("Ignoring unreadable cache file %s: %s", self._path, exc)
            return {}
        if not isinstance(data, dict):
            logger.warning(
                "Ignoring cache file %s: expected a JSON object, got %s",
                self._path,
                type(data).__name__,
            )
            return {}
        return data
