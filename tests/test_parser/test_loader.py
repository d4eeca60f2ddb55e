"""Tests for refcache.parser.loader."""

from __future__ import annotations

import asyncio
import io
import json
import textwrap
from pathlib import Path
from unittest.mock import patch

import pytest

from refcache.cache import RefCache
from refcache.exceptions import DocumentParseError, InvalidUsageError
from refcache.parser.loader import _parse_content, is_url, load_document

URL = "https://example.com/schema.json"


def _load(source: str, cache: RefCache | None = None):
    return asyncio.run(load_document(source, cache))


# ---------------------------------------------------------------------------
# load_document dispatch
# ---------------------------------------------------------------------------


class TestLoadDocument:
    def test_loads_json_file(self, tmp_path: Path) -> None:
        path = tmp_path / "schema.json"
        path.write_text(json.dumps({"type": "object"}), encoding="utf-8")
        assert _load(str(path)) == {"type": "object"}

    def test_loads_yaml_file(self, tmp_path: Path) -> None:
        path = tmp_path / "schema.yaml"
        path.write_text(
            textwrap.dedent("""\
                type: object
                properties:
                  id:
                    $ref: common.json#/definitions/Id
            """),
            encoding="utf-8",
        )
        result = _load(str(path))
        assert result["properties"]["id"] == {"$ref": "common.json#/definitions/Id"}

    def test_unknown_extension_falls_back_to_yaml(self, tmp_path: Path) -> None:
        path = tmp_path / "schema.txt"
        path.write_text("type: string\n", encoding="utf-8")
        assert _load(str(path)) == {"type": "string"}

    def test_loads_from_stdin(self) -> None:
        with patch("refcache.parser.loader.sys") as mock_sys:
            mock_sys.stdin = io.StringIO('{"type": "null"}')
            assert _load("-") == {"type": "null"}

    def test_empty_stdin_raises(self) -> None:
        with patch("refcache.parser.loader.sys") as mock_sys:
            mock_sys.stdin = io.StringIO("   ")
            with pytest.raises(DocumentParseError, match="No input"):
                _load("-")

    def test_missing_file_raises(self, tmp_path: Path) -> None:
        with pytest.raises(DocumentParseError, match="not found"):
            _load(str(tmp_path / "missing.json"))

    def test_empty_file_raises(self, tmp_path: Path) -> None:
        path = tmp_path / "empty.json"
        path.write_text("\n", encoding="utf-8")
        with pytest.raises(DocumentParseError, match="empty"):
            _load(str(path))

    def test_invalid_json_file_raises(self, tmp_path: Path) -> None:
        path = tmp_path / "bad.json"
        path.write_text("{nope", encoding="utf-8")
        with pytest.raises(DocumentParseError, match="Invalid JSON"):
            _load(str(path))

    def test_url_without_cache_raises(self) -> None:
        with pytest.raises(InvalidUsageError, match="cache is required"):
            _load(URL)

    def test_url_goes_through_cache(self, json_store, make_transport) -> None:
        transport = make_transport({URL: {"type": "boolean"}})

        async def scenario():
            async with RefCache(json_store, 1000, transport=transport) as cache:
                first = await load_document(URL, cache)
                second = await load_document(URL, cache)
                return first, second, cache.call_count(URL)

        first, second, calls = asyncio.run(scenario())
        assert first == second == {"type": "boolean"}
        assert calls == 2
        assert transport.calls(URL) == 1


# ---------------------------------------------------------------------------
# Content parsing
# ---------------------------------------------------------------------------


class TestParseContent:
    def test_json_first(self) -> None:
        assert _parse_content('{"a": 1}') == {"a": 1}

    def test_yaml_hint_skips_json(self) -> None:
        assert _parse_content("a: 1", hint="yaml") == {"a": 1}

    def test_non_object_json_rejected(self) -> None:
        with pytest.raises(DocumentParseError, match="got list"):
            _parse_content("[1, 2]")

    def test_empty_yaml_document_rejected(self) -> None:
        with pytest.raises(DocumentParseError, match="empty document"):
            _parse_content("# only a comment", hint="yaml")

    def test_unparseable_reports_both_errors(self) -> None:
        with pytest.raises(DocumentParseError) as exc_info:
            _parse_content("{a: [}")
        assert "JSON error" in str(exc_info.value)
        assert "YAML error" in str(exc_info.value)


class TestIsUrl:
    @pytest.mark.parametrize(
        ("source", "expected"),
        [
            ("https://example.com/a.json", True),
            ("http://localhost:8000/a.json", True),
            ("./a.json", False),
            ("-", False),
            ("ftp://example.com/a.json", False),
        ],
    )
    def test_is_url(self, source: str, expected: bool) -> None:
        assert is_url(source) is expected
