"""Time-expiring fetch cache with a per-URL call limit.

:class:`RefCache` sits between a ``$ref`` resolver and the network.  Every
call to :meth:`RefCache.fetch` runs three steps in a fixed order:

1. **Depth guard** (:meth:`~RefCache.limit_depth`) -- count how often this
   exact URL has been requested by this instance and raise
   :class:`~refcache.exceptions.CircularReferenceError` on the 11th call.
   Documents that reference each other in a loop would otherwise be
   fetched forever.
2. **Sweep** (:meth:`~RefCache.expire`) -- walk the whole store and evict
   malformed or stale records, flushing after each eviction.
3. **Lookup / fetch** -- serve the body from the store, or ``GET`` the URL
   with :mod:`httpx`, parse it with :func:`json.loads`, and persist it when
   the ttl is non-zero.

Records are plain dicts of the :class:`~refcache.models.CacheRecord` shape.
A ttl of ``0`` disables writing new records; it does not mean "expire
immediately".

Two concurrent fetches of the same uncached URL both reach the network;
no request coalescing is done.
"""

from __future__ import annotations

import copy
import json
import logging
import math
import time
from typing import Any, Callable, Optional

import httpx

from refcache.exceptions import CircularReferenceError, ConfigError, FetchError
from refcache.models import CacheRecord
from refcache.store.base import PersistentStore

logger = logging.getLogger(__name__)

CALL_LIMIT = 10
"""How many times one URL may be requested per :class:`RefCache` instance."""


def _now_ms() -> int:
    """Current wall-clock time in epoch milliseconds."""
    return int(time.time() * 1000)


def _is_well_formed(record: Any) -> bool:
    """Return True if *record* has a finite numeric ``timestamp`` and a ``body``."""
    if not isinstance(record, dict):
        return False
    if "timestamp" not in record or "body" not in record:
        return False
    timestamp = record["timestamp"]
    if isinstance(timestamp, bool) or not isinstance(timestamp, (int, float)):
        return False
    return math.isfinite(timestamp)


class RefCache:
    """Disk-backed JSON fetch cache with expiry and cycle protection.

    Args:
        store: Persistent store holding ``url -> record`` entries.
        ttl: Time-to-live in milliseconds.  ``0`` disables storing new
            entries.  Negative values are rejected.
        client: Optional :class:`httpx.AsyncClient` to send requests with.
            A client passed in is never closed by the cache.
        transport: Optional httpx transport for the client the cache builds
            itself (ignored when *client* is given).
        timeout: Request timeout in seconds for a self-built client.
        verify_ssl: Verify TLS certificates for a self-built client.
        clock: Zero-argument callable returning epoch milliseconds.

    Raises:
        ConfigError: If *ttl* is not a non-negative integer.

    Example::

        store = JsonFileStore("~/.cache/refcache/cache.json")
        async with RefCache(store, ttl=600_000) as cache:
            schema = await cache.fetch("https://json.schemastore.org/package.json")
    """

    def __init__(
        self,
        store: PersistentStore,
        ttl: int,
        *,
        client: Optional[httpx.AsyncClient] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: float = 30.0,
        verify_ssl: bool = True,
        clock: Optional[Callable[[], int]] = None,
    ) -> None:
        if isinstance(ttl, bool) or not isinstance(ttl, int) or ttl < 0:
            raise ConfigError(
                f"ttl must be a non-negative integer number of milliseconds, got: {ttl!r}"
            )
        self._store = store
        self._ttl = ttl
        self._clock = clock or _now_ms
        self._call_counter: dict[str, int] = {}
        self._client = client
        self._owns_client = client is None
        self._transport = transport
        self._timeout = timeout
        self._verify_ssl = verify_ssl

    @property
    def ttl(self) -> int:
        """Configured time-to-live in milliseconds."""
        return self._ttl

    @property
    def store(self) -> PersistentStore:
        """The underlying persistent store."""
        return self._store

    # ------------------------------------------------------------------ #
    # Async context manager
    # ------------------------------------------------------------------ #

    async def __aenter__(self) -> RefCache:
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close the HTTP client if this instance created it."""
        if self._owns_client and self._client is not None:
            await self._client.aclose()
            self._client = None

    # ------------------------------------------------------------------ #
    # Core operations
    # ------------------------------------------------------------------ #

    def expire(self) -> None:
        """Evict malformed and stale records from the store.

        The store is snapshotted before anything is deleted, and flushed
        after every single eviction.
        """
        now = self._clock()
        for url, record in self._store.items():
            if not _is_well_formed(record):
                logger.debug("Cache error: deleting malformed response for %s", url)
            elif now > record["timestamp"] + self._ttl:
                logger.debug("Cache stale: deleting cached response from %s", url)
            else:
                continue
            self._store.delete(url)
            self._store.save()

    def limit_depth(self, url: str) -> None:
        """Count a request for *url* and fail once it exceeds :data:`CALL_LIMIT`.

        Raises:
            CircularReferenceError: On the 11th call for the same URL.
        """
        self._call_counter[url] = self._call_counter.get(url, 0) + 1
        if self._call_counter[url] > CALL_LIMIT:
            raise CircularReferenceError(url, CALL_LIMIT)

    async def fetch(self, url: str) -> Any:
        """Return the parsed JSON body for *url*, from the store or the network.

        Args:
            url: Absolute URL of a JSON document.  Used verbatim as the
                cache key.

        Returns:
            The decoded JSON value. A cache hit returns a copy, so
            mutating it does not change the stored record.

        Raises:
            CircularReferenceError: If *url* was requested too often.
            FetchError: On a non-2xx response (its body is included in the
                message) or a network-level failure, including a URL that
                httpx cannot parse.
            json.JSONDecodeError: If the response body is not valid JSON.
        """
        self.limit_depth(url)
        self.expire()

        cached = self._store.get(url)
        if cached is not None:
            logger.debug("Cache hit: using cached response from %s", url)
            return copy.deepcopy(cached["body"])

        logger.debug("Cache miss: calling %s", url)
        try:
            response = await self._get_client().get(url)
        except (httpx.RequestError, httpx.InvalidURL) as exc:
            raise FetchError(url) from exc

        if not response.is_success:
            raise FetchError(url, status_code=response.status_code, body=response.text)

        parsed = json.loads(response.text)
        if self._ttl > 0:
            record = CacheRecord(timestamp=self._clock(), body=parsed)
            self._store.set(url, record.model_dump())
            self._store.save()
        return parsed

    # ------------------------------------------------------------------ #
    # Maintenance
    # ------------------------------------------------------------------ #

    def call_count(self, url: str) -> int:
        """How many times *url* has been requested through this instance."""
        return self._call_counter.get(url, 0)

    def clear(self) -> None:
        """Remove every stored record and flush."""
        self._store.clear()
        self._store.save()

    def stats(self) -> dict[str, Any]:
        """Return cache statistics.

        Returns:
            A ``dict`` with ``entries`` (stored records), ``ttl_ms``,
            ``call_limit``, and ``calls`` (per-URL counters for this
            process).
        """
        return {
            "entries": len(self._store),
            "ttl_ms": self._ttl,
            "call_limit": CALL_LIMIT,
            "calls": dict(self._call_counter),
        }

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=self._timeout,
                verify=self._verify_ssl,
                follow_redirects=True,
                transport=self._transport,
            )
        return self._client
