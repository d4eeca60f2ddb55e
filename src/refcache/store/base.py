"""Abstract base class for persistent key/value stores.

A store maps URL strings to JSON-serialisable cache records and survives
across process runs.  :class:`~refcache.cache.RefCache` only ever talks to
this interface, so the backing format (one JSON document, a ``diskcache``
directory, ...) can be swapped without touching the cache logic.

To implement a new backend, subclass :class:`PersistentStore` and provide
every abstract method.  :meth:`PersistentStore.save` is called after every
mutation the cache performs; backends that already commit on each write may
implement it as a no-op.

See Also:
    :class:`~refcache.store.json_file.JsonFileStore`
    :class:`~refcache.store.disk.DiskCacheStore`
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Optional


class PersistentStore(ABC):
    """Durable mapping from URL to cached record.

    Keys are compared exactly (case-sensitive, no URL normalisation).
    Values are whatever JSON-compatible object the caller stored; the store
    does not validate their shape.
    """

    @property
    def path(self) -> Optional[Path]:
        """Where the store lives on disk, if anywhere."""
        return None

    @abstractmethod
    def get(self, key: str) -> Any:
        """Return the value stored under *key*, or ``None`` if absent."""

    @abstractmethod
    def set(self, key: str, value: Any) -> None:
        """Store *value* under *key*, replacing any previous value."""

    @abstractmethod
    def delete(self, key: str) -> None:
        """Remove *key*.  Deleting a missing key is a no-op."""

    @abstractmethod
    def items(self) -> list[tuple[str, Any]]:
        """Return a snapshot of all ``(key, value)`` pairs.

        The returned list is independent of the store, so callers may
        delete keys while iterating over it.
        """

    @abstractmethod
    def save(self) -> None:
        """Flush pending changes to disk."""

    @abstractmethod
    def clear(self) -> None:
        """Remove every entry (not flushed until :meth:`save`)."""

    def close(self) -> None:
        """Release any open resources.  Safe to call more than once."""

    @abstractmethod
    def __len__(self) -> int: ...

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and self.get(key) is not None

    def keys(self) -> list[str]:
        """Return a snapshot of all keys."""
        return [key for key, _ in self.items()]
