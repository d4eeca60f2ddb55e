"""Configuration management with XDG paths, atomic writes, and precedence resolution.

This module handles all persistent configuration for refcache:

* **Directory layout** -- XDG Base Directory compliant on Linux/BSD,
  ``~/.refcache/`` on macOS and Windows. See :func:`get_config_dir`,
  :func:`get_cache_dir`, :func:`get_data_dir`.
* **Global config** -- A single :class:`~refcache.models.GlobalConfig`
  JSON file storing the cache ttl, store backend, and request settings.
* **Precedence resolution** -- :func:`resolve_config` merges CLI flags,
  environment variables, and the global config file into the effective
  configuration.

All file writes use an atomic temp-file-then-rename strategy
(:func:`_atomic_write`) to prevent data loss on crash or power failure.
The same helper backs :class:`~refcache.store.json_file.JsonFileStore`.
"""

from __future__ import annotations

import json
import os
import platform
import tempfile
from pathlib import Path
from typing import Any, Optional

from pydantic import ValidationError

from refcache.exceptions import ConfigError
from refcache.models import GlobalConfig

_APP_NAME = "refcache"
_CONFIG_FILENAME = "config.json"

ENV_TTL = "REFCACHE_TTL"
ENV_CACHE_DIR = "REFCACHE_CACHE_DIR"
ENV_BACKEND = "REFCACHE_BACKEND"


# --- XDG path resolution ---


def _is_xdg_platform() -> bool:
    """Return True if the platform supports XDG Base Directory layout (Linux/FreeBSD)."""
    return platform.system() == "Linux" or platform.system().endswith("BSD")


def _fallback_base_dir() -> Path:
    """Fallback base directory for non-XDG platforms (macOS, Windows)."""
    return Path.home() / f".{_APP_NAME}"


def _xdg_base(env_var: str, default_segments: tuple[str, ...]) -> Path:
    """Resolve an XDG base directory from an env var with fallback segments under $HOME."""
    env_value = os.environ.get(env_var, "")
    if env_value:
        return Path(env_value)
    base = Path.home()
    for seg in default_segments:
        base = base / seg
    return base


def get_config_dir() -> Path:
    """Return the configuration directory, creating it if necessary.

    On Linux/BSD: ``$XDG_CONFIG_HOME/refcache/`` (default ``~/.config/refcache/``).
    On macOS/Windows: ``~/.refcache/``.

    Returns:
        Absolute path to the configuration directory (guaranteed to exist).
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_CONFIG_HOME", (".config",)) / _APP_NAME
    else:
        path = _fallback_base_dir()
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_cache_dir() -> Path:
    """Return the cache directory, creating it if necessary.

    Holds the persisted fetch results. Cached data can be safely deleted
    at any time.

    On Linux/BSD: ``$XDG_CACHE_HOME/refcache/`` (default ``~/.cache/refcache/``).
    On macOS/Windows: ``~/.refcache/cache/``.

    Returns:
        Absolute path to the cache directory (guaranteed to exist).
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_CACHE_HOME", (".cache",)) / _APP_NAME
    else:
        path = _fallback_base_dir() / "cache"
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_data_dir() -> Path:
    """Return the data directory (crash logs), creating it if necessary.

    On Linux/BSD: ``$XDG_DATA_HOME/refcache/`` (default ``~/.local/share/refcache/``).
    On macOS/Windows: ``~/.refcache/logs/``.
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_DATA_HOME", (".local", "share")) / _APP_NAME
    else:
        path = _fallback_base_dir() / "logs"
    path.mkdir(parents=True, exist_ok=True)
    return path


# --- Atomic file writes ---


def _atomic_write(path: Path, data: str) -> None:
    """Write data to file atomically using temp file + rename.

    The temporary file is created in the same directory as *path* so that
    ``os.replace`` is guaranteed to be an atomic rename on POSIX systems.
    On success the temp file is renamed over *path*; on any failure the temp
    file is cleaned up.
    """
    path.parent.mkdir(parents=True, exist_ok=True)

    fd = None
    tmp_path: Optional[str] = None
    try:
        fd = tempfile.NamedTemporaryFile(
            mode="w",
            dir=path.parent,
            prefix=f".{path.name}.",
            suffix=".tmp",
            delete=False,
            encoding="utf-8",
        )
        tmp_path = fd.name
        fd.write(data)
        fd.flush()
        os.fsync(fd.fileno())
        fd.close()
        fd = None  # prevent double-close in finally
        os.replace(tmp_path, path)
    except BaseException:
        # Clean up the temp file on any error (including KeyboardInterrupt).
        if fd is not None:
            fd.close()
        if tmp_path is not None:
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
        raise


# --- Global config ---


def _global_config_path() -> Path:
    """Path to the global config file."""
    return get_config_dir() / _CONFIG_FILENAME


def load_global_config() -> GlobalConfig:
    """Load the global configuration from the XDG config directory.

    Returns:
        The deserialised :class:`~refcache.models.GlobalConfig`. If the
        file does not exist, a default instance is returned.

    Raises:
        ConfigError: If the file exists but contains invalid JSON or fails
            Pydantic validation.
    """
    path = _global_config_path()
    if not path.is_file():
        return GlobalConfig()
    try:
        text = path.read_text(encoding="utf-8")
        data = json.loads(text)
        return GlobalConfig.model_validate(data)
    except (json.JSONDecodeError, ValueError) as exc:
        raise ConfigError(f"Invalid global config at {path}: {exc}") from exc


def save_global_config(config: GlobalConfig) -> None:
    """Persist the global configuration atomically to disk."""
    data = config.model_dump(mode="json")
    _atomic_write(_global_config_path(), json.dumps(data, indent=2) + "\n")


# --- Precedence resolution ---


def resolve_config(
    cli_ttl: Optional[int] = None,
    cli_cache_dir: Optional[str] = None,
    cli_backend: Optional[str] = None,
) -> GlobalConfig:
    """Resolve config with full precedence chain.

    Precedence (high to low):
        1. CLI flags (``cli_ttl``, ``cli_cache_dir``, ``cli_backend``)
        2. Environment variables (``REFCACHE_TTL``, ``REFCACHE_CACHE_DIR``,
           ``REFCACHE_BACKEND``)
        3. User config (``~/.config/refcache/config.json``)
        4. Defaults

    Returns:
        The effective :class:`~refcache.models.GlobalConfig`.

    Raises:
        ConfigError: If the config file is invalid, or an override does not
            validate (negative ttl, unknown backend, non-numeric env ttl).
    """
    # 4 + 3. Base config (fills in defaults automatically)
    data = load_global_config().model_dump(mode="json")
    cache: dict[str, Any] = data["cache"]

    # 2. Environment variables
    env_ttl = os.environ.get(ENV_TTL)
    if env_ttl:
        try:
            cache["ttl_ms"] = int(env_ttl)
        except ValueError:
            raise ConfigError(
                f"{ENV_TTL} must be an integer number of milliseconds, got: {env_ttl}"
            ) from None
    env_cache_dir = os.environ.get(ENV_CACHE_DIR)
    if env_cache_dir:
        cache["directory"] = env_cache_dir
    env_backend = os.environ.get(ENV_BACKEND)
    if env_backend:
        cache["backend"] = env_backend

    # 1. CLI flags
    if cli_ttl is not None:
        cache["ttl_ms"] = cli_ttl
    if cli_cache_dir is not None:
        cache["directory"] = cli_cache_dir
    if cli_backend is not None:
        cache["backend"] = cli_backend

    try:
        return GlobalConfig.model_validate(data)
    except ValidationError as exc:
        raise ConfigError(f"Invalid configuration: {exc}") from exc


def resolve_cache_dir(config: GlobalConfig) -> Path:
    """Return the directory that holds the cache store, creating it if necessary.

    Uses ``config.cache.directory`` when set, the XDG cache directory
    otherwise.
    """
    if config.cache.directory:
        path = Path(config.cache.directory).expanduser()
        path.mkdir(parents=True, exist_ok=True)
        return path
    return get_cache_dir()
