"""Tests for refcache.config -- XDG paths, atomic writes, global config, precedence."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any
from unittest.mock import patch

import pytest

from refcache.config import (
    _atomic_write,
    get_cache_dir,
    get_config_dir,
    get_data_dir,
    load_global_config,
    resolve_cache_dir,
    resolve_config,
    save_global_config,
)
from refcache.exceptions import ConfigError
from refcache.models import CacheConfig, GlobalConfig, StoreBackend


def _write_json(path: Path, data: Any) -> None:
    """Write a dict as JSON to *path*, creating parent dirs."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data, indent=2), encoding="utf-8")


# ---------------------------------------------------------------------------
# XDG path resolution
# ---------------------------------------------------------------------------


class TestXDGPathsLinux:
    def test_config_dir_xdg_default(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("refcache.config._is_xdg_platform", lambda: True)
        monkeypatch.delenv("XDG_CONFIG_HOME", raising=False)
        monkeypatch.setattr(Path, "home", classmethod(lambda cls: tmp_path))

        result = get_config_dir()
        assert result == tmp_path / ".config" / "refcache"
        assert result.is_dir()

    def test_cache_dir_xdg_custom(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        custom = tmp_path / "custom_cache"
        monkeypatch.setattr("refcache.config._is_xdg_platform", lambda: True)
        monkeypatch.setenv("XDG_CACHE_HOME", str(custom))

        result = get_cache_dir()
        assert result == custom / "refcache"
        assert result.is_dir()

    def test_data_dir_xdg_default(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("refcache.config._is_xdg_platform", lambda: True)
        monkeypatch.delenv("XDG_DATA_HOME", raising=False)
        monkeypatch.setattr(Path, "home", classmethod(lambda cls: tmp_path))

        result = get_data_dir()
        assert result == tmp_path / ".local" / "share" / "refcache"
        assert result.is_dir()


class TestXDGPathsFallback:
    def test_config_dir_fallback(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("refcache.config._is_xdg_platform", lambda: False)
        monkeypatch.setattr(Path, "home", classmethod(lambda cls: tmp_path))
        assert get_config_dir() == tmp_path / ".refcache"

    def test_cache_dir_fallback(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("refcache.config._is_xdg_platform", lambda: False)
        monkeypatch.setattr(Path, "home", classmethod(lambda cls: tmp_path))
        assert get_cache_dir() == tmp_path / ".refcache" / "cache"


# ---------------------------------------------------------------------------
# Atomic writes
# ---------------------------------------------------------------------------


class TestAtomicWrite:
    def test_writes_content(self, tmp_path: Path) -> None:
        target = tmp_path / "sub" / "file.json"
        _atomic_write(target, '{"a": 1}')
        assert target.read_text(encoding="utf-8") == '{"a": 1}'

    def test_replaces_existing(self, tmp_path: Path) -> None:
        target = tmp_path / "file.json"
        target.write_text("old", encoding="utf-8")
        _atomic_write(target, "new")
        assert target.read_text(encoding="utf-8") == "new"

    def test_failure_keeps_original_and_cleans_temp(self, tmp_path: Path) -> None:
        target = tmp_path / "file.json"
        target.write_text("original", encoding="utf-8")

        with patch("refcache.config.os.replace", side_effect=OSError("disk full")):
            with pytest.raises(OSError, match="disk full"):
                _atomic_write(target, "new")

        assert target.read_text(encoding="utf-8") == "original"
        assert [p.name for p in tmp_path.iterdir()] == ["file.json"]


# ---------------------------------------------------------------------------
# Global config
# ---------------------------------------------------------------------------


class TestGlobalConfig:
    def test_defaults_when_missing(self, isolated_config: Path) -> None:
        config = load_global_config()
        assert config.cache.ttl_ms == 600_000
        assert config.cache.backend == StoreBackend.JSON
        assert config.cache.directory is None
        assert config.request.timeout == 30.0

    def test_save_and_load(self, isolated_config: Path) -> None:
        config = GlobalConfig(cache=CacheConfig(ttl_ms=0, backend=StoreBackend.DISKCACHE))
        save_global_config(config)
        loaded = load_global_config()
        assert loaded.cache.ttl_ms == 0
        assert loaded.cache.backend == StoreBackend.DISKCACHE

    def test_invalid_json_raises(self, isolated_config: Path) -> None:
        _write_json(isolated_config / "config" / "refcache" / "config.json", {})
        (isolated_config / "config" / "refcache" / "config.json").write_text("{oops")
        with pytest.raises(ConfigError, match="Invalid global config"):
            load_global_config()

    def test_negative_ttl_in_file_raises(self, isolated_config: Path) -> None:
        _write_json(
            isolated_config / "config" / "refcache" / "config.json",
            {"cache": {"ttl_ms": -5}},
        )
        with pytest.raises(ConfigError):
            load_global_config()


# ---------------------------------------------------------------------------
# Precedence resolution
# ---------------------------------------------------------------------------


class TestResolveConfig:
    def test_file_values_used(self, isolated_config: Path) -> None:
        _write_json(
            isolated_config / "config" / "refcache" / "config.json",
            {"cache": {"ttl_ms": 1234}},
        )
        assert resolve_config().cache.ttl_ms == 1234

    def test_env_overrides_file(self, isolated_config: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        _write_json(
            isolated_config / "config" / "refcache" / "config.json",
            {"cache": {"ttl_ms": 1234}},
        )
        monkeypatch.setenv("REFCACHE_TTL", "99")
        monkeypatch.setenv("REFCACHE_BACKEND", "diskcache")
        monkeypatch.setenv("REFCACHE_CACHE_DIR", str(isolated_config / "elsewhere"))

        config = resolve_config()
        assert config.cache.ttl_ms == 99
        assert config.cache.backend == StoreBackend.DISKCACHE
        assert config.cache.directory == str(isolated_config / "elsewhere")

    def test_cli_overrides_env(self, isolated_config: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("REFCACHE_TTL", "99")
        monkeypatch.setenv("REFCACHE_BACKEND", "diskcache")
        config = resolve_config(cli_ttl=0, cli_backend="json", cli_cache_dir="/tmp/x")
        assert config.cache.ttl_ms == 0
        assert config.cache.backend == StoreBackend.JSON
        assert config.cache.directory == "/tmp/x"

    def test_non_numeric_env_ttl_raises(self, isolated_config: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("REFCACHE_TTL", "ten minutes")
        with pytest.raises(ConfigError, match="REFCACHE_TTL"):
            resolve_config()

    def test_negative_cli_ttl_raises(self, isolated_config: Path) -> None:
        with pytest.raises(ConfigError, match="Invalid configuration"):
            resolve_config(cli_ttl=-1)

    def test_unknown_backend_raises(self, isolated_config: Path) -> None:
        with pytest.raises(ConfigError):
            resolve_config(cli_backend="redis")

    def test_does_not_persist_overrides(self, isolated_config: Path) -> None:
        resolve_config(cli_ttl=5)
        assert load_global_config().cache.ttl_ms == 600_000


class TestResolveCacheDir:
    def test_xdg_default(self, isolated_config: Path) -> None:
        assert resolve_cache_dir(GlobalConfig()) == isolated_config / "cache" / "refcache"

    def test_override_created(self, isolated_config: Path) -> None:
        target = isolated_config / "custom" / "dir"
        config = GlobalConfig(cache=CacheConfig(directory=str(target)))
        assert resolve_cache_dir(config) == target
        assert target.is_dir()
