"""Numeric process exit codes following `clig.dev <https://clig.dev/>`_ conventions.

Each constant maps to a specific error category and is referenced by the
corresponding :class:`~refcache.exceptions.RefcacheError` subclass.
Shell wrappers and CI scripts can inspect the exit code to tell a broken
network fetch from a reference loop without parsing stderr.

Example::

    $ refcache resolve schema.json
    $ echo $?
    8   # EXIT_CIRCULAR_REFERENCE -- the same URL was requested too often
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred."""

EXIT_INVALID_USAGE = 2
"""The command was invoked with invalid arguments or missing required parameters."""

EXIT_FETCH_ERROR = 6
"""A remote document could not be fetched (non-2xx status, timeout, DNS failure)."""

EXIT_DOCUMENT_PARSE_ERROR = 7
"""A local document could not be read or parsed, or a ``$ref`` pointer is invalid."""

EXIT_CIRCULAR_REFERENCE = 8
"""The same URL was requested more often than the call limit allows."""
