"""Console output with strict stdout/stderr discipline.

Follows `clig.dev <https://clig.dev/>`_ conventions:

* **stdout** -- primary data only (reports, tables, JSON). This is what
  downstream tools pipe and parse.
* **stderr** -- all diagnostics (progress, status, warnings, errors,
  suggestions). Never contaminates the data stream.
* **TTY detection** -- Rich formatting when stdout is an interactive
  terminal, plain text when piped to another process.
* **Colour control** -- respects ``NO_COLOR``, ``TERM=dumb``, and the
  ``--no-color`` CLI flag.

The module exposes two layers:

1. :class:`OutputManager` -- a stateful object holding format preferences,
   Rich consoles, and quiet/verbose flags. Created once in
   :func:`~httpapigen.app.main_callback` and installed via :func:`set_output`.
2. Module-level convenience functions (:func:`info`, :func:`error`,
   :func:`debug`, etc.) that delegate to the global ``OutputManager``
   instance so callers do not need to pass the manager around.

Pipeline stages never write here; only CLI commands do.
"""

from __future__ import annotations

import json
import logging
import os
import sys
from enum import Enum
from typing import Any, Optional

from rich.console import Console
from rich.logging import RichHandler
from rich.syntax import Syntax
from rich.table import Table


class OutputFormat(str, Enum):
    """Enumeration of supported output formats.

    ``AUTO`` resolves to ``RICH`` when stdout is an interactive TTY and colour
    is not disabled, or to ``PLAIN`` otherwise.
    """

    AUTO = "auto"
    JSON = "json"
    PLAIN = "plain"
    RICH = "rich"


class OutputManager:
    """Central manager for all CLI output with stdout/stderr discipline.

    Args:
        format: Desired output format. ``AUTO`` resolves based on TTY
            detection.
        no_color: Disable all colour and Rich markup.
        quiet: Suppress non-essential informational messages on stderr.
        verbose: Enable debug-level messages on stderr.
    """

    def __init__(
        self,
        format: OutputFormat = OutputFormat.AUTO,
        no_color: bool = False,
        quiet: bool = False,
        verbose: bool = False,
    ) -> None:
        self._no_color = no_color or _should_disable_color()
        self._quiet = quiet
        self._verbose = verbose

        if format == OutputFormat.AUTO:
            self._format = (
                OutputFormat.RICH if _is_tty() and not self._no_color else OutputFormat.PLAIN
            )
        else:
            self._format = format

        self._stdout = Console(
            file=sys.stdout,
            no_color=self._no_color,
            force_terminal=(self._format == OutputFormat.RICH),
        )
        self._stderr = Console(
            file=sys.stderr,
            no_color=self._no_color,
            stderr=True,
        )

    @property
    def format(self) -> OutputFormat:
        """The resolved output format."""
        return self._format

    @property
    def is_quiet(self) -> bool:
        return self._quiet

    @property
    def is_verbose(self) -> bool:
        return self._verbose

    # ------------------------------------------------------------------ #
    # Data output (stdout)
    # ------------------------------------------------------------------ #

    def print_data(self, text: str) -> None:
        """Print raw text to stdout."""
        print(text, file=sys.stdout, flush=True)

    def print_json(self, data: Any) -> None:
        """Print *data* as JSON, syntax-highlighted in Rich mode."""
        text = json.dumps(data, indent=2, ensure_ascii=False, default=str)
        if self._format == OutputFormat.RICH:
            self._stdout.print(Syntax(text, "json", theme="monokai", word_wrap=True))
        else:
            self.print_data(text)

    def print_table(
        self,
        headers: list[str],
        rows: list[list[str]],
        title: Optional[str] = None,
    ) -> None:
        """Print tabular data to stdout in the active format.

        * **Rich mode** -- styled :class:`~rich.table.Table` with column
          headers.
        * **JSON mode** -- array of objects keyed by header names.
        * **Plain mode** -- tab-separated values, one row per line.
        """
        if self._format == OutputFormat.JSON:
            records = [dict(zip(headers, row)) for row in rows]
            self.print_data(json.dumps(records, indent=2, ensure_ascii=False))

        elif self._format == OutputFormat.PLAIN:
            self.print_data("\t".join(headers))
            for row in rows:
                self.print_data("\t".join(row))

        else:
            table = Table(title=title, show_header=True, header_style="bold cyan")
            for h in headers:
                table.add_column(h)
            for row in rows:
                table.add_row(*row)
            self._stdout.print(table)

    # ------------------------------------------------------------------ #
    # Diagnostics (stderr)
    # ------------------------------------------------------------------ #

    def _emit(self, plain: str, markup: str) -> None:
        if self._no_color:
            print(plain, file=sys.stderr, flush=True)
        else:
            self._stderr.print(markup)

    def info(self, message: str) -> None:
        """Informational line; hidden by ``--quiet``."""
        if not self._quiet:
            self._emit(message, message)

    def success(self, message: str) -> None:
        """Green completion line; hidden by ``--quiet``."""
        if not self._quiet:
            self._emit(message, f"[green]{message}[/green]")

    def warning(self, message: str) -> None:
        """Yellow ``Warning:`` line, shown even with ``--quiet``."""
        self._emit(f"Warning: {message}", f"[yellow]Warning:[/yellow] {message}")

    def error(self, message: str) -> None:
        """Bold-red ``Error:`` line. Always shown."""
        self._emit(f"Error: {message}", f"[bold red]Error:[/bold red] {message}")

    def suggest(self, message: str) -> None:
        """Dimmed ``→`` hint for what to try next; hidden by ``--quiet``."""
        if not self._quiet:
            self._emit(f"→ {message}", f"[dim]→ {message}[/dim]")

    def debug(self, message: str) -> None:
        """``[debug]`` line, only with ``--verbose``."""
        if self._verbose:
            self._emit(f"[debug] {message}", f"[dim]\\[debug] {message}[/dim]")


# ------------------------------------------------------------------ #
# Module-level helpers
# ------------------------------------------------------------------ #


def _is_tty() -> bool:
    """Check if stdout is a TTY."""
    return hasattr(sys.stdout, "isatty") and sys.stdout.isatty()


def _should_disable_color() -> bool:
    """Return True when NO_COLOR is set (any value) or TERM=dumb."""
    if os.environ.get("NO_COLOR") is not None:
        return True
    if os.environ.get("TERM") == "dumb":
        return True
    return False


# ------------------------------------------------------------------ #
# Pipeline logging
# ------------------------------------------------------------------ #

_LOGGER_NAME = "httpapigen"


def setup_logging(
    verbose: bool = False, quiet: bool = False, no_color: bool = False
) -> logging.Logger:
    """Route the package logger to stderr through Rich.

    Pipeline modules log via ``logging.getLogger(__name__)``; this attaches a
    single :class:`~rich.logging.RichHandler` to the ``httpapigen`` logger,
    replacing any handler from an earlier call.
    """
    logger = logging.getLogger(_LOGGER_NAME)
    if verbose:
        level = logging.DEBUG
    elif quiet:
        level = logging.ERROR
    else:
        level = logging.WARNING
    logger.setLevel(level)

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    console = Console(stderr=True, no_color=no_color or _should_disable_color())
    handler = RichHandler(console=console, show_time=False, show_path=False)
    handler.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(handler)
    return logger


# ------------------------------------------------------------------ #
# Global output instance (set during app startup)
# ------------------------------------------------------------------ #

_output: Optional[OutputManager] = None


def get_output() -> OutputManager:
    """Return the global :class:`OutputManager`, creating a default one lazily."""
    global _output
    if _output is None:
        _output = OutputManager()
    return _output


def set_output(output: OutputManager) -> None:
    """Install *output* as the global :class:`OutputManager` instance."""
    global _output
    _output = output


def reset_output() -> None:
    """Reset the global :class:`OutputManager` to ``None``.

    Primarily useful in test suites to ensure a clean state between tests.
    """
    global _output
    _output = None


# ------------------------------------------------------------------ #
# Convenience functions that use the global instance
# ------------------------------------------------------------------ #


def print_data(text: str) -> None:
    """Print raw data to stdout via the global OutputManager."""
    get_output().print_data(text)


def print_json(data: Any) -> None:
    """Print JSON to stdout via the global OutputManager."""
    get_output().print_json(data)


def print_table(
    headers: list[str],
    rows: list[list[str]],
    title: Optional[str] = None,
) -> None:
    """Print tabular data to stdout via the global OutputManager."""
    get_output().print_table(headers, rows, title)


def info(message: str) -> None:
    """Print info message to stderr via the global OutputManager."""
    get_output().info(message)


def error(message: str) -> None:
    """Print error to stderr via the global OutputManager."""
    get_output().error(message)


def success(message: str) -> None:
    """Print success message to stderr via the global OutputManager."""
    get_output().success(message)


def warning(message: str) -> None:
    """Print warning to stderr via the global OutputManager."""
    get_output().warning(message)


def suggest(message: str) -> None:
    """Print next-step suggestion to stderr via the global OutputManager."""
    get_output().suggest(message)


def debug(message: str) -> None:
    """Print debug message to stderr via the global OutputManager."""
    get_output().debug(message)
