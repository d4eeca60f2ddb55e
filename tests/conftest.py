"""Shared test fixtures for refcache.

Provides a controllable clock, an ``httpx.MockTransport`` that records the
URLs it was asked for, store fixtures for both backends, and config
isolation so that no test touches the real user directories.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Callable

import httpx
import pytest

from refcache.output import reset_output
from refcache.store import DiskCacheStore, JsonFileStore


# ---------------------------------------------------------------------------
# Global state reset
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_global_state() -> None:
    """Reset the global OutputManager and the CLI log handler after every test.

    Both hold references to the sys.stdout/sys.stderr objects that were
    current when the CLI callback ran. Typer's CliRunner closes those
    streams when the invocation ends, so they must not leak into later
    tests.
    """
    yield
    reset_output()
    logger = logging.getLogger("refcache")
    for handler in list(logger.handlers):
        if handler.get_name() == "refcache-cli":
            logger.removeHandler(handler)
    logger.setLevel(logging.NOTSET)


# ---------------------------------------------------------------------------
# Clock
# ---------------------------------------------------------------------------


class FakeClock:
    """Callable returning a settable epoch-millisecond timestamp."""

    def __init__(self, now: int = 0) -> None:
        self.now = now

    def __call__(self) -> int:
        return self.now


@pytest.fixture
def clock() -> FakeClock:
    """A clock frozen at t=0 ms."""
    return FakeClock()


# ---------------------------------------------------------------------------
# Network
# ---------------------------------------------------------------------------


class RecordingTransport(httpx.MockTransport):
    """MockTransport that records every requested URL.

    Args:
        routes: Mapping of URL to either a JSON-serialisable body (served
            with status 200) or a ready-made :class:`httpx.Response`.
            Unknown URLs get a 404 with body ``"not found"``.
    """

    def __init__(self, routes: dict[str, Any] | None = None) -> None:
        self.routes: dict[str, Any] = dict(routes or {})
        self.requested: list[str] = []
        super().__init__(self._handle)

    def _handle(self, request: httpx.Request) -> httpx.Response:
        url = str(request.url)
        self.requested.append(url)
        route = self.routes.get(url)
        if route is None:
            return httpx.Response(404, text="not found")
        if isinstance(route, httpx.Response):
            return route
        return httpx.Response(200, json=route)

    def calls(self, url: str) -> int:
        return self.requested.count(url)


@pytest.fixture
def make_transport() -> Callable[..., RecordingTransport]:
    """Factory for :class:`RecordingTransport` instances."""
    return RecordingTransport


# ---------------------------------------------------------------------------
# Stores
# ---------------------------------------------------------------------------


@pytest.fixture
def json_store(tmp_path: Path) -> JsonFileStore:
    """An empty JSON file store under tmp_path."""
    return JsonFileStore(tmp_path / "cache.json")


@pytest.fixture
def disk_store(tmp_path: Path) -> DiskCacheStore:
    """An empty diskcache store under tmp_path."""
    store = DiskCacheStore(tmp_path / "responses")
    yield store
    store.close()


# ---------------------------------------------------------------------------
# Config isolation fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Isolate configuration to a temporary directory.

    Points XDG_CONFIG_HOME, XDG_CACHE_HOME, and XDG_DATA_HOME at
    subdirectories of tmp_path, forces the XDG code path, and clears all
    REFCACHE_* environment variables.

    Returns:
        The tmp_path root directory for additional file creation.
    """
    monkeypatch.setattr("refcache.config._is_xdg_platform", lambda: True)
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("XDG_CACHE_HOME", str(tmp_path / "cache"))
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))

    for var in ["REFCACHE_TTL", "REFCACHE_CACHE_DIR", "REFCACHE_BACKEND"]:
        monkeypatch.delenv(var, raising=False)

    monkeypatch.chdir(tmp_path)
    return tmp_path
