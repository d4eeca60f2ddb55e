"""Load JSON documents from a URL, local file, or stdin.

Remote documents are always fetched through a
:class:`~refcache.cache.RefCache`, so they are cached and count against the
per-URL call limit.  Local files and stdin are read directly and parsed as
JSON or YAML with automatic format detection.

The single public function is :func:`load_document`.  Its result is usually
passed on to :func:`~refcache.parser.resolver.resolve_refs`.
"""

from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import TYPE_CHECKING, Any, Optional

import yaml

from refcache.exceptions import DocumentParseError, InvalidUsageError

if TYPE_CHECKING:
    from refcache.cache import RefCache


def is_url(source: str) -> bool:
    """Return True if *source* is an ``http(s)`` URL."""
    return source.startswith(("http://", "https://"))


async def load_document(source: str, cache: Optional[RefCache] = None) -> Any:
    """Load a document from URL, file path, or stdin ('-').

    Args:
        source: A URL (http/https), file path, or '-' for stdin.
        cache: Cache used to fetch URLs.  Required when *source* is a URL.

    Returns:
        The parsed document.

    Raises:
        InvalidUsageError: If *source* is a URL and no cache was given.
        DocumentParseError: If a local source cannot be read or parsed.
        FetchError: If a URL cannot be fetched.
        CircularReferenceError: If the URL was requested too often.
    """
    if source == "-":
        return _load_from_stdin()
    if is_url(source):
        if cache is None:
            raise InvalidUsageError(f"A cache is required to load {source}")
        return await cache.fetch(source)
    return _load_from_file(source)


def _load_from_stdin() -> dict[str, Any]:
    """Read a document from stdin, trying JSON then YAML."""
    try:
        content = sys.stdin.read()
    except OSError as exc:
        raise DocumentParseError(f"Failed to read from stdin: {exc}") from exc

    if not content.strip():
        raise DocumentParseError("No input received from stdin")

    return _parse_content(content, hint="stdin")


def _load_from_file(path: str) -> dict[str, Any]:
    """Load a document from a local file.

    ``.json`` files are parsed strictly as JSON, ``.yaml``/``.yml`` as YAML;
    anything else falls back to content-based detection.
    """
    file_path = Path(path)
    if not file_path.is_file():
        raise DocumentParseError(f"Document not found: {path}")

    try:
        content = file_path.read_text(encoding="utf-8")
    except OSError as exc:
        raise DocumentParseError(f"Failed to read {path}: {exc}") from exc

    if not content.strip():
        raise DocumentParseError(f"Document is empty: {path}")

    suffix = file_path.suffix.lower()
    hint = ""
    if suffix == ".json":
        hint = "json"
    elif suffix in (".yaml", ".yml"):
        hint = "yaml"

    return _parse_content(content, hint=hint)


def _parse_content(content: str, hint: str = "") -> dict[str, Any]:
    """Parse content as JSON or YAML.

    Tries JSON first (unless hint is 'yaml'), then falls back to YAML.
    Valid JSON is also valid YAML, but JSON parsing is stricter and faster.

    Raises:
        DocumentParseError: If the content cannot be parsed as either format,
            or does not contain an object at the top level.
    """
    json_error: Exception | None = None
    yaml_error: Exception | None = None

    if hint != "yaml":
        try:
            result = json.loads(content)
            if not isinstance(result, dict):
                raise DocumentParseError(
                    f"Document must be a JSON/YAML object (got {type(result).__name__})"
                )
            return result
        except json.JSONDecodeError as exc:
            json_error = exc
            if hint == "json":
                raise DocumentParseError(f"Invalid JSON: {exc}") from exc

    try:
        result = yaml.safe_load(content)
        if not isinstance(result, dict):
            raise DocumentParseError(
                "Document must be a JSON/YAML object (got "
                f"{type(result).__name__ if result is not None else 'empty document'})"
            )
        return result
    except yaml.YAMLError as exc:
        yaml_error = exc

    msg = "Failed to parse document as JSON or YAML"
    if json_error:
        msg += f"\n  JSON error: {json_error}"
    if yaml_error:
        msg += f"\n  YAML error: {yaml_error}"
    raise DocumentParseError(msg)
