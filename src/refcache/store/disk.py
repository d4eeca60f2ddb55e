"""Directory store backed by :mod:`diskcache`.

Each URL is one entry in a :class:`diskcache.Cache` (SQLite index plus
value files).  Entries are stored without a ``diskcache`` expiry: staleness
is decided by :class:`~refcache.cache.RefCache` from the record's own
``timestamp`` so that both backends expire identically.

``diskcache`` commits every ``set``/``delete`` in its own transaction,
which makes :meth:`DiskCacheStore.save` a no-op durability point.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Optional

import diskcache

from refcache.store.base import PersistentStore


class DiskCacheStore(PersistentStore):
    """Persistent store backed by a :class:`diskcache.Cache` directory.

    Args:
        directory: Directory for the cache database.  Created if missing.
    """

    def __init__(self, directory: str | Path) -> None:
        self._directory = Path(directory)
        self._cache: Optional[diskcache.Cache] = diskcache.Cache(str(self._directory))

    @property
    def path(self) -> Path:
        """Location of the ``diskcache`` directory."""
        return self._directory

    def get(self, key: str) -> Any:
        return self._require().get(key)

    def set(self, key: str, value: Any) -> None:
        self._require().set(key, value)

    def delete(self, key: str) -> None:
        self._require().delete(key)

    def items(self) -> list[tuple[str, Any]]:
        cache = self._require()
        pairs = []
        for key in list(cache.iterkeys()):
            # Another process may have removed the key since iterkeys().
            value = cache.get(key, default=None)
            if value is not None:
                pairs.append((key, value))
        return pairs

    def save(self) -> None:
        """No-op: ``diskcache`` has already committed every write."""

    def clear(self) -> None:
        self._require().clear()

    def close(self) -> None:
        if self._cache is not None:
            self._cache.close()
            self._cache = None

    def __len__(self) -> int:
        return len(self._require())

    def _require(self) -> diskcache.Cache:
        if self._cache is None:
            raise RuntimeError(f"DiskCacheStore at {self._directory} is closed")
        return self._cache
