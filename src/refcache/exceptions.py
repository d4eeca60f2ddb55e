"""Exception hierarchy for refcache.

All exceptions inherit from :class:`RefcacheError`, which carries an
``exit_code`` attribute mapped to a constant from :mod:`refcache.exit_codes`.
The top-level error handler in :func:`refcache.app.main` catches
``RefcacheError`` and exits with the appropriate code, while unexpected
exceptions produce a crash log and exit with :data:`EXIT_GENERIC_FAILURE`.

Subclass hierarchy::

    RefcacheError (exit 1)
    +-- InvalidUsageError       (exit 2)
    +-- FetchError              (exit 6)
    +-- DocumentParseError      (exit 7)
    +-- CircularReferenceError  (exit 8)
    +-- ConfigError             (exit 1)

JSON decoding failures of a fetched body are deliberately *not* part of this
hierarchy: :meth:`~refcache.cache.RefCache.fetch` lets
:class:`json.JSONDecodeError` propagate unchanged.
"""

from __future__ import annotations

from refcache.exit_codes import (
    EXIT_CIRCULAR_REFERENCE,
    EXIT_DOCUMENT_PARSE_ERROR,
    EXIT_FETCH_ERROR,
    EXIT_GENERIC_FAILURE,
    EXIT_INVALID_USAGE,
)


class RefcacheError(Exception):
    """Base exception for all refcache errors.

    Every subclass sets a class-level ``exit_code`` corresponding to one of
    the constants in :mod:`refcache.exit_codes`. The entry point catches
    this exception type and calls ``sys.exit(exc.exit_code)``.

    Args:
        message: Human-readable error description printed to stderr.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class InvalidUsageError(RefcacheError):
    """Raised for invalid CLI arguments or missing required parameters."""

    exit_code = EXIT_INVALID_USAGE


class FetchError(RefcacheError):
    """Raised when a URL cannot be fetched.

    Covers both non-2xx responses and network-level failures (timeout, DNS
    resolution, connection refused). When the server answered, its body is
    appended to the message on a new line so the upstream reason is visible.

    Args:
        url: The URL that failed.
        status_code: HTTP status of the failed response, or ``None`` when no
            response was received.
        body: Response body text, or ``None`` when no response was received.
    """

    exit_code = EXIT_FETCH_ERROR

    def __init__(
        self,
        url: str,
        status_code: int | None = None,
        body: str | None = None,
    ) -> None:
        message = f"Failed fetching {url}"
        if body is not None:
            message = f"{message}\n{body}"
        super().__init__(message)
        self.url = url
        self.status_code = status_code
        self.body = body


class DocumentParseError(RefcacheError):
    """Raised when a local document cannot be loaded or a ``$ref`` cannot be followed."""

    exit_code = EXIT_DOCUMENT_PARSE_ERROR


class CircularReferenceError(RefcacheError):
    """Raised when the same URL is requested more often than the call limit.

    Args:
        url: The URL whose call counter went over the limit.
        limit: The call limit that was exceeded.
    """

    exit_code = EXIT_CIRCULAR_REFERENCE

    def __init__(self, url: str, limit: int) -> None:
        super().__init__(
            f"Called {url} >{limit} times. Possible circular reference."
        )
        self.url = url
        self.limit = limit


class ConfigError(RefcacheError):
    """Raised for configuration problems (invalid JSON, bad ttl, unknown backend)."""

    exit_code = EXIT_GENERIC_FAILURE
