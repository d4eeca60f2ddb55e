"""refcache -- a disk-backed, time-expiring cache for JSON fetches.

Resolvers that follow external ``$ref`` pointers (JSON Schema, OpenAPI)
fetch the same documents over and over, and documents that reference each
other can send them into an endless loop. refcache serves each URL from a
persistent store while it is fresh, fetches it with :mod:`httpx` otherwise,
and refuses to request one URL more than ten times per run.

Typical use::

    from refcache import RefCache
    from refcache.store import JsonFileStore

    async with RefCache(JsonFileStore("cache.json"), ttl=600_000) as cache:
        schema = await cache.fetch("https://json.schemastore.org/package.json")

Modules:
    cache: :class:`RefCache` -- expiry sweep, call limit, fetch.
    store: Persistent store interface and backends.
    parser: Document loading and ``$ref`` resolution.
    app: Typer CLI entry point.
    models: Pydantic models for records and configuration.
    config: XDG-aware configuration management.
    exceptions: Exception hierarchy with exit-code mapping.
    output: stdout/stderr formatting and logging setup.
"""

__version__ = "0.1.0"

from refcache.cache import CALL_LIMIT, RefCache  # noqa: E402
from refcache.exceptions import (  # noqa: E402
    CircularReferenceError,
    FetchError,
    RefcacheError,
)

__all__ = [
    "RefCache",
    "CALL_LIMIT",
    "RefcacheError",
    "FetchError",
    "CircularReferenceError",
]
