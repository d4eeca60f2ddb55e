"""Resolve internal and external ``$ref`` pointers in JSON documents.

JSON Schema and OpenAPI documents use ``{"$ref": ...}`` objects to point at
other parts of the same document (``#/definitions/Pet``) or at other
documents entirely (``common.json#/Pet``, ``https://example.com/s.json``).
:func:`resolve_refs` walks a deep copy of a document and replaces every
such object with its target, fetching remote documents through a
:class:`~refcache.cache.RefCache`.

* Relative references are joined against the URL of the document they
  appear in, so a chain of remote documents resolves correctly.
* Each remote URL is fetched once per :func:`resolve_refs` call; the cache
  decides whether that means a network request.
* A reference that is already being resolved further up the current branch
  is a cycle and is left as its ``$ref`` dict.
* The cache's call limit still applies across calls, so repeatedly
  resolving documents that keep pulling in the same URL ends with
  :class:`~refcache.exceptions.CircularReferenceError`.
"""

from __future__ import annotations

import copy
from typing import TYPE_CHECKING, Any, Optional
from urllib.parse import unquote, urldefrag, urljoin, urlsplit

from refcache.exceptions import DocumentParseError

if TYPE_CHECKING:
    from refcache.cache import RefCache


async def resolve_refs(
    document: Any,
    cache: RefCache,
    base_url: Optional[str] = None,
) -> Any:
    """Resolve all ``$ref`` pointers in *document*.

    Args:
        document: The parsed document, as returned by
            :func:`~refcache.parser.loader.load_document`.
        cache: Cache used to fetch external documents.
        base_url: URL the document was loaded from.  Relative external
            references cannot be resolved without it.

    Returns:
        A **new** object (deep copy) with every resolvable ``$ref`` replaced
        by its target.

    Raises:
        DocumentParseError: If a pointer does not exist in its target
            document, or a relative reference has no base URL.
        FetchError: If an external document cannot be fetched.
        CircularReferenceError: If the cache's call limit is hit.

    Example::

        async with RefCache(store, ttl=600_000) as cache:
            raw = await load_document("https://example.com/root.json", cache)
            resolved = await resolve_refs(raw, cache, "https://example.com/root.json")
    """
    root = copy.deepcopy(document)
    base = urldefrag(base_url).url if base_url else None
    resolver = _Resolver(cache)
    if base is not None:
        resolver.documents[base] = root
    return await resolver.resolve(root, root, base, frozenset())


class _Resolver:
    """State for one :func:`resolve_refs` call."""

    def __init__(self, cache: RefCache) -> None:
        self.cache = cache
        self.documents: dict[str, Any] = {}

    async def load(self, url: str) -> Any:
        if url not in self.documents:
            self.documents[url] = await self.cache.fetch(url)
        return self.documents[url]

    async def resolve(
        self,
        obj: Any,
        root: Any,
        base: Optional[str],
        seen: frozenset[str],
    ) -> Any:
        """Recursively resolve *obj*, found inside *root* (fetched from *base*).

        *seen* holds the absolute ``url#pointer`` keys currently being
        resolved on this branch; sibling branches get their own copy.
        """
        if isinstance(obj, dict):
            ref = obj.get("$ref")
            if isinstance(ref, str):
                target_url, pointer = _split_ref(ref, base)
                key = f"{target_url or ''}#{pointer}"
                if key in seen:
                    return obj
                seen = seen | {key}

                if target_url is None or target_url == base:
                    target_doc, target_base = root, base
                else:
                    target_doc, target_base = await self.load(target_url), target_url

                target = _resolve_pointer(pointer, target_doc, ref)
                return await self.resolve(target, target_doc, target_base, seen)

            return {
                key: await self.resolve(value, root, base, seen)
                for key, value in obj.items()
            }

        if isinstance(obj, list):
            return [await self.resolve(item, root, base, seen) for item in obj]

        return obj


def _split_ref(ref: str, base: Optional[str]) -> tuple[Optional[str], str]:
    """Split *ref* into an absolute document URL and a JSON Pointer.

    Returns ``(base, pointer)`` for same-document references.
    """
    if ref.startswith("#"):
        return base, unquote(ref[1:])

    url, _, fragment = ref.partition("#")
    if urlsplit(url).scheme in ("http", "https"):
        target = url
    elif base is not None:
        target = urljoin(base, url)
    else:
        raise DocumentParseError(
            f"Cannot resolve relative $ref '{ref}' without a base URL"
        )
    return target, unquote(fragment)


def _resolve_pointer(pointer: str, document: Any, ref: str) -> Any:
    """Follow an RFC 6901 JSON Pointer (``/a/b/0``) into *document*."""
    if pointer == "":
        return document
    if not pointer.startswith("/"):
        raise DocumentParseError(
            f"Cannot resolve $ref '{ref}': only JSON Pointer fragments are supported"
        )

    current: Any = document
    for segment in pointer[1:].split("/"):
        segment = segment.replace("~1", "/").replace("~0", "~")

        if isinstance(current, dict):
            if segment not in current:
                raise DocumentParseError(
                    f"Cannot resolve $ref '{ref}': key '{segment}' not found at path"
                )
            current = current[segment]
        elif isinstance(current, list):
            try:
                current = current[int(segment)]
            except (ValueError, IndexError) as exc:
                raise DocumentParseError(
                    f"Cannot resolve $ref '{ref}': invalid array index '{segment}'"
                ) from exc
        else:
            raise DocumentParseError(
                f"Cannot resolve $ref '{ref}': cannot navigate into {type(current).__name__}"
            )

    return current
