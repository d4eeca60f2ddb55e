"""Persistent key/value stores for cached fetch results.

This package provides the :class:`PersistentStore` interface consumed by
:class:`~refcache.cache.RefCache` and two implementations:

* :class:`JsonFileStore` -- the whole cache in one JSON document.
* :class:`DiskCacheStore` -- one :mod:`diskcache` entry per URL.

:func:`open_store` picks the backend named in a
:class:`~refcache.models.CacheConfig`.
"""

from __future__ import annotations

from pathlib import Path

from refcache.models import CacheConfig, StoreBackend
from refcache.store.base import PersistentStore
from refcache.store.disk import DiskCacheStore
from refcache.store.json_file import JsonFileStore

JSON_FILENAME = "cache.json"
DISKCACHE_DIRNAME = "responses"


def open_store(config: CacheConfig, cache_dir: str | Path) -> PersistentStore:
    """Open the store selected by ``config.backend`` under *cache_dir*.

    Args:
        config: Cache settings; only ``backend`` is read here.
        cache_dir: Root directory for cache files.

    Returns:
        A :class:`JsonFileStore` at ``<cache_dir>/cache.json`` or a
        :class:`DiskCacheStore` at ``<cache_dir>/responses/``.
    """
    root = Path(cache_dir)
    if config.backend == StoreBackend.DISKCACHE:
        return DiskCacheStore(root / DISKCACHE_DIRNAME)
    return JsonFileStore(root / JSON_FILENAME)


__all__ = [
    "PersistentStore",
    "JsonFileStore",
    "DiskCacheStore",
    "open_store",
]
