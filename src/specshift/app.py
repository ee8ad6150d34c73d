"""Typer application and CLI entry point for specshift.

Registers the built-in sub-commands (``validate``, ``flatten``,
``synthesize``, ``serve``, ``config``) on a single Typer app. The root
callback turns the global flags into an
:class:`~specshift.output.OutputManager` and configures logging.

:func:`main` is the console-script entry point declared in
``pyproject.toml``. :class:`~specshift.exceptions.SpecshiftError` becomes a
clean exit with the error's ``exit_code``; anything else writes a crash log
under the data directory.
"""

from __future__ import annotations

import signal
import sys
import traceback
from datetime import datetime
from typing import Any, Optional

import typer

from specshift import __version__
from specshift.exit_codes import EXIT_GENERIC_FAILURE

app = typer.Typer(
    name="specshift",
    help="Validate, flatten and synthesize OpenAPI 3.0 documents.",
    no_args_is_help=True,
    add_completion=False,
    rich_markup_mode="rich",
)


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"specshift {__version__}")
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
    json_output: bool = typer.Option(False, "--json", help="JSON output format."),
    plain_output: bool = typer.Option(False, "--plain", help="Plain text output."),
    no_color: bool = typer.Option(False, "--no-color", help="Disable color output."),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Suppress non-essential output."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug output."),
    output_file: Optional[str] = typer.Option(
        None, "-o", "--output", help="Write data output to this file."
    ),
) -> None:
    """Root callback executed before every sub-command.

    Initialises the global output manager and the ``specshift`` log
    handler, and stores ``verbose``/``quiet`` in ``ctx.obj`` for
    sub-commands.
    """
    from specshift.output import OutputFormat, OutputManager, set_output, setup_logging

    fmt = OutputFormat.AUTO
    if json_output:
        fmt = OutputFormat.JSON
    elif plain_output:
        fmt = OutputFormat.PLAIN

    set_output(
        OutputManager(
            format=fmt,
            no_color=no_color,
            quiet=quiet,
            verbose=verbose,
            output_file=output_file,
        )
    )

    if verbose:
        level = "DEBUG"
    elif quiet:
        level = "ERROR"
    else:
        level = "WARNING"
    setup_logging(level, no_color=no_color)

    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet
    ctx.obj["no_color"] = no_color


# Built-in commands
from specshift.commands.config import config_app  # noqa: E402
from specshift.commands.pipeline import (  # noqa: E402
    flatten_command,
    synthesize_command,
    validate_command,
)
from specshift.commands.serve import serve_command  # noqa: E402

app.command("validate")(validate_command)
app.command("flatten")(flatten_command)
app.command("synthesize")(synthesize_command)
app.command("serve")(serve_command)
app.add_typer(config_app, name="config", help="Configuration management.")


def _setup_signal_handlers() -> None:
    """Install a SIGINT handler so Ctrl-C exits cleanly."""

    def _handler(signum: int, frame: Any) -> None:  # noqa: ANN401
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)

    signal.signal(signal.SIGINT, _handler)


def _write_crash_log(exc: Exception) -> str:
    """Write the current traceback under ``<data dir>/logs`` and return its path."""
    from specshift.config import get_data_dir

    logs_dir = get_data_dir() / "logs"
    logs_dir.mkdir(parents=True, exist_ok=True)
    timestamp = datetime.now().strftime("%Y%m%d-%H%M%S")
    log_path = logs_dir / f"crash-{timestamp}.log"
    log_path.write_text(f"{type(exc).__name__}: {exc}\n\n{traceback.format_exc()}")
    return str(log_path)


def main() -> None:
    """CLI entry point invoked by the ``specshift`` console script.

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
        from specshift.exceptions import SpecshiftError
        from specshift.output import error

        if isinstance(exc, SpecshiftError):
            error(exc.message)
            if exc.details:
                error(str(exc.details))
            sys.exit(exc.exit_code)
        log_path = _write_crash_log(exc)
        error(f"Unexpected error. Debug log: {log_path}")
        sys.exit(EXIT_GENERIC_FAILURE)
