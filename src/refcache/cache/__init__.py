"""Disk-backed, time-expiring fetch cache for JSON documents.

This package provides :class:`RefCache`, which serves JSON documents from a
:class:`~refcache.store.PersistentStore` while they are fresh, fetches them
with :mod:`httpx` otherwise, and refuses to request the same URL more than
:data:`CALL_LIMIT` times per instance.

The cache is consumed by :func:`~refcache.parser.resolver.resolve_refs`
and :func:`~refcache.parser.loader.load_document`, and its ttl and store
backend come from the ``cache`` section of the global configuration
(:class:`~refcache.models.CacheConfig`).
"""

from refcache.cache.cache import CALL_LIMIT, RefCache

__all__ = ["RefCache", "CALL_LIMIT"]
