"""Cache commands -- fetch, resolve, and maintain cached documents.

Each command builds a :class:`~refcache.cache.RefCache` from the effective
configuration (see :func:`~refcache.config.resolve_config`) using the
``--ttl``, ``--cache-dir`` and ``--backend`` overrides that the root
callback stored in ``ctx.obj``.  The functions here are plain callbacks
registered directly on the root app in :mod:`refcache.app`.
"""

from __future__ import annotations

import asyncio
from typing import Any, Optional

import typer

from refcache.cache import RefCache
from refcache.config import resolve_cache_dir, resolve_config
from refcache.models import GlobalConfig
from refcache.output import debug, format_response, info, print_table, success
from refcache.parser import is_url, load_document, resolve_refs
from refcache.store import PersistentStore, open_store


def _open(ctx: typer.Context) -> tuple[GlobalConfig, PersistentStore]:
    """Resolve the effective config and open its store."""
    obj = ctx.obj or {}
    config = resolve_config(
        cli_ttl=obj.get("ttl"),
        cli_cache_dir=obj.get("cache_dir"),
        cli_backend=obj.get("backend"),
    )
    cache_dir = resolve_cache_dir(config)
    debug(f"Opening {config.cache.backend.value} store in {cache_dir}")
    return config, open_store(config.cache, cache_dir)


def _build_cache(config: GlobalConfig, store: PersistentStore) -> RefCache:
    return RefCache(
        store,
        config.cache.ttl_ms,
        timeout=config.request.timeout,
        verify_ssl=config.request.verify_ssl,
    )


def fetch_command(
    ctx: typer.Context,
    url: str = typer.Argument(help="URL of a JSON document."),
) -> None:
    """Fetch a JSON document through the cache and print it.

    Example::

        refcache fetch https://json.schemastore.org/package.json
        refcache --ttl 0 fetch https://example.com/schema.json
    """
    config, store = _open(ctx)

    async def _run() -> Any:
        async with _build_cache(config, store) as cache:
            return await cache.fetch(url)

    try:
        body = asyncio.run(_run())
    finally:
        store.close()
    format_response(body)


def resolve_command(
    ctx: typer.Context,
    source: str = typer.Argument(help="URL, file path, or '-' for stdin."),
    base_url: Optional[str] = typer.Option(
        None,
        "--base-url",
        help="URL that relative $refs are resolved against (defaults to SOURCE when it is a URL).",
    ),
) -> None:
    """Load a document and print it with every $ref inlined.

    External references are fetched through the cache.

    Example::

        refcache resolve https://example.com/schemas/root.json
        refcache resolve ./root.json --base-url https://example.com/schemas/
    """
    config, store = _open(ctx)
    base = base_url or (source if is_url(source) else None)

    async def _run() -> Any:
        async with _build_cache(config, store) as cache:
            document = await load_document(source, cache)
            return await resolve_refs(document, cache, base)

    try:
        resolved = asyncio.run(_run())
    finally:
        store.close()
    format_response(resolved)


def expire_command(ctx: typer.Context) -> None:
    """Evict malformed and stale entries from the cache.

    Example::

        refcache expire
    """
    config, store = _open(ctx)
    try:
        before = len(store)
        _build_cache(config, store).expire()
        remaining = len(store)
    finally:
        store.close()
    success(f"Evicted {before - remaining} entries, {remaining} remaining.")


def clear_command(
    ctx: typer.Context,
    force: bool = typer.Option(False, "--force", "-f", help="Skip confirmation."),
) -> None:
    """Remove every entry from the cache.

    Example::

        refcache clear --force
    """
    if not force:
        confirmed = typer.confirm("Remove all cached documents?")
        if not confirmed:
            info("Cancelled.")
            raise typer.Exit()

    config, store = _open(ctx)
    try:
        _build_cache(config, store).clear()
    finally:
        store.close()
    success("Cache cleared.")


def stats_command(ctx: typer.Context) -> None:
    """Show cache location, backend, size, and ttl.

    Example::

        refcache stats
        refcache --json stats
    """
    config, store = _open(ctx)
    try:
        stats = _build_cache(config, store).stats()
        location = str(store.path) if store.path is not None else ""
    finally:
        store.close()

    rows = [
        ["backend", config.cache.backend.value],
        ["location", location],
        ["entries", str(stats["entries"])],
        ["ttl_ms", str(stats["ttl_ms"])],
        ["call_limit", str(stats["call_limit"])],
    ]
    print_table(["setting", "value"], rows, title="refcache")
