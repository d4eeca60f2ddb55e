"""Typer application and CLI entry point for refcache.

This module wires together the top-level Typer application and registers the
built-in commands (``fetch``, ``resolve``, ``expire``, ``clear``, ``stats``
and the ``config`` group).

The :func:`main` function is the console-script entry point declared in
``pyproject.toml``. It installs signal handlers and invokes the Typer app.
:class:`~refcache.exceptions.RefcacheError` instances are reported on stderr
and mapped to their exit code; any other exception is written to a crash
log under the data directory.

See Also:
    :mod:`refcache.config`: Configuration resolution for the cache commands.
    :mod:`refcache.output`: Output and logging initialised in :func:`main_callback`.
"""

from __future__ import annotations

import signal
import sys
import traceback
from datetime import datetime
from typing import Any, Optional

import typer

from refcache import __version__
from refcache.commands.cache import (
    clear_command,
    expire_command,
    fetch_command,
    resolve_command,
    stats_command,
)
from refcache.commands.config import config_app
from refcache.exit_codes import EXIT_GENERIC_FAILURE


app = typer.Typer(
    name="refcache",
    help="Fetch JSON documents through a disk-backed, time-expiring cache.",
    no_args_is_help=True,
    add_completion=False,
    rich_markup_mode="rich",
)

app.command("fetch")(fetch_command)
app.command("resolve")(resolve_command)
app.command("expire")(expire_command)
app.command("clear")(clear_command)
app.command("stats")(stats_command)
app.add_typer(config_app, name="config", help="Configuration management.")


def _version_callback(value: bool) -> None:
    """Print version and exit when --version is passed."""
    if value:
        typer.echo(f"refcache {__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    ctx: typer.Context,
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    ttl: Optional[int] = typer.Option(
        None, "--ttl", min=0, help="Cache time-to-live in milliseconds (0 disables storing)."
    ),
    cache_dir: Optional[str] = typer.Option(
        None, "--cache-dir", help="Directory holding the cache store."
    ),
    backend: Optional[str] = typer.Option(
        None, "--backend", help="Store backend: json or diskcache."
    ),
    json_output: bool = typer.Option(
        False, "--json", help="JSON output format."
    ),
    plain_output: bool = typer.Option(
        False, "--plain", help="Plain text output."
    ),
    no_color: bool = typer.Option(
        False, "--no-color", help="Disable color output."
    ),
    quiet: bool = typer.Option(
        False, "--quiet", "-q", help="Suppress non-essential output."
    ),
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Enable debug output (cache hits, misses, evictions)."
    ),
) -> None:
    """Root callback executed before every sub-command.

    Initialises the global :class:`~refcache.output.OutputManager` and the
    ``refcache`` log handler from CLI flags, and stores the cache overrides
    in the Typer context so that commands can read them via ``ctx.obj``.
    """
    from refcache.config import load_global_config
    from refcache.output import OutputFormat, OutputManager, configure_logging, set_output

    if json_output:
        fmt = OutputFormat.JSON
    elif plain_output:
        fmt = OutputFormat.PLAIN
    else:
        fmt = OutputFormat(load_global_config().output.format)

    output = OutputManager(
        format=fmt,
        no_color=no_color,
        quiet=quiet,
        verbose=verbose,
    )
    set_output(output)
    configure_logging(output)

    ctx.ensure_object(dict)
    ctx.obj["ttl"] = ttl
    ctx.obj["cache_dir"] = cache_dir
    ctx.obj["backend"] = backend
    ctx.obj["verbose"] = verbose


def _setup_signal_handlers() -> None:
    """Install a SIGINT handler so Ctrl-C exits cleanly."""

    def _handler(signum: int, frame: Any) -> None:  # noqa: ANN401
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)

    signal.signal(signal.SIGINT, _handler)


def _write_crash_log(exc: Exception) -> str:
    """Write a crash traceback to disk and return the log file path."""
    from refcache.config import get_data_dir

    logs_dir = get_data_dir() / "logs"
    logs_dir.mkdir(parents=True, exist_ok=True)
    timestamp = datetime.now().strftime("%Y%m%d-%H%M%S")
    log_path = logs_dir / f"crash-{timestamp}.log"
    log_path.write_text(
        "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
    )
    return str(log_path)


def main() -> None:
    """CLI entry point invoked by the ``refcache`` console script.

    Unhandled :class:`~refcache.exceptions.RefcacheError` instances cause a
    clean exit with the error's ``exit_code``. A fetched body that is not
    valid JSON is reported with the decoder message. All other exceptions
    produce a crash log and a generic failure exit.

    Raises:
        SystemExit: Always raised (either by Typer or explicitly).
    """
    import json

    from refcache.exceptions import RefcacheError
    from refcache.output import error

    _setup_signal_handlers()
    try:
        app()
    except SystemExit:
        raise
    except KeyboardInterrupt:
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)
    except RefcacheError as exc:
        error(str(exc))
        sys.exit(exc.exit_code)
    except json.JSONDecodeError as exc:
        error(f"Response is not valid JSON: {exc}")
        sys.exit(EXIT_GENERIC_FAILURE)
    except Exception as exc:
        log_path = _write_crash_log(exc)
        error(f"Unexpected error. Debug log: {log_path}")
        sys.exit(EXIT_GENERIC_FAILURE)
