"""Typer application and CLI entry point for httpapigen.

This module wires together the top-level Typer application and registers
the built-in commands (``generate``, ``validate``, ``inspect``).

The :func:`main` function is the console-script entry point declared in
``pyproject.toml``. It installs a SIGINT handler, invokes the Typer app, and
turns any :class:`~httpapigen.exceptions.HttpApiGenError` that escapes a
command into a clean exit with the error's ``exit_code``.

See Also:
    :mod:`httpapigen.config`: rc-file configuration resolution.
    :mod:`httpapigen.output`: Output formatting initialised in :func:`main_callback`.
"""

from __future__ import annotations

import signal
import sys
import traceback
from typing import Any

import typer

from httpapigen import __version__
from httpapigen.commands.generate import generate_command
from httpapigen.commands.inspect import inspect_app
from httpapigen.commands.validate import validate_command
from httpapigen.exit_codes import EXIT_GENERIC_FAILURE


app = typer.Typer(
    name="httpapigen",
    help="Generate Effect platform HttpApi definitions from OpenAPI 3.0/3.1 documents.",
    no_args_is_help=True,
    add_completion=False,
    rich_markup_mode="rich",
)

app.command("generate")(generate_command)
app.command("validate")(validate_command)
app.add_typer(inspect_app, name="inspect", help="Inspect what the generator sees in a document.")


def _version_callback(value: bool) -> None:
    """Print version and exit when --version is passed."""
    if value:
        typer.echo(f"httpapigen {__version__}")
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
    json_output: bool = typer.Option(
        False, "--json", help="JSON output for tables."
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
) -> None:
    """Root callback executed before every sub-command.

    Initialises the global :class:`~httpapigen.output.OutputManager` and the
    package logger from CLI flags, and stores ``verbose`` in the Typer
    context for sub-commands.
    """
    from httpapigen.output import OutputFormat, OutputManager, set_output, setup_logging

    fmt = OutputFormat.AUTO
    if json_output:
        fmt = OutputFormat.JSON
    elif plain_output:
        fmt = OutputFormat.PLAIN

    set_output(OutputManager(format=fmt, no_color=no_color, quiet=quiet, verbose=verbose))
    setup_logging(verbose=verbose, quiet=quiet, no_color=no_color)

    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose


def _setup_signal_handlers() -> None:
    """Install a SIGINT handler so Ctrl-C exits cleanly."""

    def _handler(signum: int, frame: Any) -> None:  # noqa: ANN401
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)

    signal.signal(signal.SIGINT, _handler)


def main() -> None:
    """CLI entry point invoked by the ``httpapigen`` console script.

    Unhandled :class:`~httpapigen.exceptions.HttpApiGenError` instances
    cause a clean exit with the error's ``exit_code``. Any other exception
    prints its traceback (with ``--verbose``) and exits with
    :data:`~httpapigen.exit_codes.EXIT_GENERIC_FAILURE`.

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
        from httpapigen.exceptions import HttpApiGenError
        from httpapigen.output import debug, error

        if isinstance(exc, HttpApiGenError):
            error(str(exc))
            sys.exit(exc.exit_code)
        debug(traceback.format_exc())
        error(f"Unexpected error: {exc}")
        sys.exit(EXIT_GENERIC_FAILURE)
