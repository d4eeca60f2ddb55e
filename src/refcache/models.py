"""Canonical Pydantic models shared across all refcache modules.

The models fall into two groups:

**Configuration models** -- serialised as JSON in the user's config directory:
    :class:`CacheConfig`, :class:`RequestConfig`, :class:`OutputConfig`, and
    :class:`GlobalConfig`.

**Storage models** -- the shape of one persisted cache entry:
    :class:`CacheRecord`.

All models use Pydantic v2.
"""

from __future__ import annotations

import enum
from typing import Any, Literal, Optional

from pydantic import BaseModel, Field


# --- Storage ---


class CacheRecord(BaseModel):
    """One cached fetch result, keyed by URL in the persistent store.

    Serialised with :meth:`~pydantic.BaseModel.model_dump` before it is
    handed to a store, so the on-disk form is a plain JSON object::

        {"timestamp": 1700000000000, "body": {"type": "object"}}
    """

    timestamp: int = Field(description="Fetch time in epoch milliseconds")
    body: Any = Field(description="Parsed JSON body of the response")


# --- Config ---


class StoreBackend(str, enum.Enum):
    """Persistent store implementations selectable via :class:`CacheConfig`."""

    JSON = "json"
    DISKCACHE = "diskcache"


class CacheConfig(BaseModel):
    """Cache settings stored in :class:`GlobalConfig`."""

    ttl_ms: int = Field(
        default=600_000,
        ge=0,
        description="Time-to-live in milliseconds; 0 disables storing new entries",
    )
    backend: StoreBackend = Field(
        default=StoreBackend.JSON, description="Persistent store: json, diskcache"
    )
    directory: Optional[str] = Field(
        default=None, description="Override the XDG cache directory"
    )


class RequestConfig(BaseModel):
    """HTTP transport settings used when fetching uncached URLs."""

    timeout: float = Field(default=30.0, description="Request timeout in seconds")
    verify_ssl: bool = Field(default=True, description="Verify SSL certificates")


class OutputConfig(BaseModel):
    """Default output format preferences stored in :class:`GlobalConfig`."""

    format: Literal["auto", "json", "plain", "rich"] = Field(
        default="auto", description="Output format used when no --json or --plain flag is given"
    )


class GlobalConfig(BaseModel):
    """User-wide configuration persisted at ``~/.config/refcache/config.json``.

    Loaded and saved by :func:`~refcache.config.load_global_config` and
    :func:`~refcache.config.save_global_config`. Fields here have the
    lowest precedence and can be overridden by environment variables or CLI
    flags. See :func:`~refcache.config.resolve_config` for the full
    precedence chain.
    """

    cache: CacheConfig = Field(default_factory=CacheConfig)
    request: RequestConfig = Field(default_factory=RequestConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)
