"""Typer application factory and CLI entry point for speccatalog.

This module wires together the top-level Typer application and registers the
built-in sub-commands (``parse``, ``inspect``, ``config``).

The :func:`main` function is the console-script entry point declared in
``pyproject.toml``. It installs signal handlers and invokes the Typer app.
:class:`~speccatalog.exceptions.SpecCatalogError` instances that escape a
command exit with their ``exit_code``; anything else is written to a crash
log under the data directory.

See Also:
    :mod:`speccatalog.config`: Configuration resolution.
    :mod:`speccatalog.output`: Output formatting initialised in :func:`main_callback`.
"""

from __future__ import annotations

import logging
import signal
import sys
import traceback
from datetime import datetime
from typing import Any, Optional

import typer

from speccatalog import __version__
from speccatalog.exit_codes import EXIT_GENERIC_FAILURE


app = typer.Typer(
    name="speccatalog",
    help="Normalize OpenAPI, AsyncAPI, GraphQL, gRPC and WSDL documents into one operation catalog.",
    no_args_is_help=True,
    add_completion=False,
    rich_markup_mode="rich",
)

# ------------------------------------------------------------------ #
# Sub-commands
# ------------------------------------------------------------------ #

from speccatalog.commands.config import config_app  # noqa: E402
from speccatalog.commands.inspect import inspect_app  # noqa: E402
from speccatalog.commands.parse import parse_command  # noqa: E402

app.command("parse")(parse_command)
app.add_typer(inspect_app, name="inspect", help="Inspect the operations of one document.")
app.add_typer(config_app, name="config", help="Configuration management.")


def _version_callback(value: bool) -> None:
    """Print version and exit when --version is passed."""
    if value:
        typer.echo(f"speccatalog {__version__}")
        raise typer.Exit()


def _configure_logging(verbose: bool) -> None:
    """Send ``speccatalog`` log records to stderr at DEBUG level when verbose."""
    if verbose:
        logging.basicConfig(
            stream=sys.stderr,
            format="%(levelname)s %(name)s: %(message)s",
        )
        logging.getLogger("speccatalog").setLevel(logging.DEBUG)


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
        False, "--verbose", "-v", help="Enable debug output."
    ),
    force: bool = typer.Option(
        False, "--force", "-f", help="Skip confirmations."
    ),
    output_file: Optional[str] = typer.Option(
        None, "-o", "--output", help="Write the catalog to this file instead of stdout."
    ),
) -> None:
    """Root callback executed before every sub-command.

    Installs the global :class:`~speccatalog.output.OutputManager`.
    ``--json`` and ``--plain`` win over the ``output.format`` setting, which
    is resolved like every other setting (project config, then user config).
    An invalid configuration stops every command except ``config``, which
    can repair it. Stores ``force`` in ``ctx.obj`` for commands that ask
    for confirmation.
    """
    from speccatalog.config import resolve_config
    from speccatalog.exceptions import ConfigError
    from speccatalog.output import OutputFormat, OutputManager, error, set_output

    cli_format: Optional[str] = None
    if json_output:
        cli_format = OutputFormat.JSON.value
    elif plain_output:
        cli_format = OutputFormat.PLAIN.value

    config_error: Optional[ConfigError] = None
    try:
        fmt = OutputFormat(resolve_config(cli_format=cli_format).output.format)
    except ConfigError as exc:
        config_error = exc
        fmt = OutputFormat(cli_format or OutputFormat.AUTO.value)

    set_output(
        OutputManager(
            format=fmt,
            no_color=no_color,
            quiet=quiet,
            output_file=output_file,
        )
    )
    _configure_logging(verbose)

    if config_error is not None and ctx.invoked_subcommand != "config":
        error(str(config_error))
        raise typer.Exit(code=config_error.exit_code)

    ctx.ensure_object(dict)
    ctx.obj["force"] = force


def _setup_signal_handlers() -> None:
    """Install a SIGINT handler so Ctrl-C exits cleanly."""

    def _handler(signum: int, frame: Any) -> None:  # noqa: ANN401
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)

    signal.signal(signal.SIGINT, _handler)


def _write_crash_log(exc: Exception) -> str:
    """Write the current traceback to disk and return the log file path."""
    from speccatalog.config import get_data_dir

    logs_dir = get_data_dir() / "logs"
    logs_dir.mkdir(parents=True, exist_ok=True)
    timestamp = datetime.now().strftime("%Y%m%d-%H%M%S")
    log_path = logs_dir / f"crash-{timestamp}.log"
    log_path.write_text(traceback.format_exc())
    return str(log_path)


def main() -> None:
    """CLI entry point invoked by the ``speccatalog`` console script.

    Raises:
        SystemExit: Always raised (either by Typer or explicitly).
    """
    _setup_signal_handlers()
    try:
        app()
    except SystemExit:
        raise
    except KeyboardInterrupt:
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)
    except Exception as exc:
        from speccatalog.exceptions import SpecCatalogError
        from speccatalog.output import error

        if isinstance(exc, SpecCatalogError):
            error(str(exc))
            sys.exit(exc.exit_code)
        else:
            log_path = _write_crash_log(exc)
            error(f"Unexpected error. Debug log: {log_path}")
            sys.exit(EXIT_GENERIC_FAILURE)
