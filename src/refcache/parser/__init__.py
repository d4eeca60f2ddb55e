"""Document loading and ``$ref`` resolution on top of :class:`~refcache.cache.RefCache`.

Typical usage::

    from refcache.parser import load_document, resolve_refs

    raw = await load_document("https://example.com/schema.json", cache)
    resolved = await resolve_refs(raw, cache, "https://example.com/schema.json")

Sub-modules:

* :mod:`~refcache.parser.loader` -- I/O layer (URL via the cache, file,
  stdin) plus JSON/YAML format detection.
* :mod:`~refcache.parser.resolver` -- recursive internal and external
  ``$ref`` resolution with cycle detection.
"""

from refcache.parser.loader import is_url, load_document
from refcache.parser.resolver import resolve_refs

__all__ = ["load_document", "resolve_refs", "is_url"]
