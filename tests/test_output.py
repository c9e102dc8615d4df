"""Tests for the output layer.

Covers:
- OutputFormat resolution (auto -> rich/plain based on TTY)
- NO_COLOR / TERM=dumb colour disabling
- stdout vs stderr discipline
- Quiet and verbose rules
- JSON and plain table output
- Global instance management and convenience functions
- Logging setup for pipeline modules
"""

from __future__ import annotations

import json
import logging

import pytest
from rich.logging import RichHandler

from httpapigen import output as output_module
from httpapigen.output import (
    OutputFormat,
    OutputManager,
    _should_disable_color,
    get_output,
    reset_output,
    set_output,
    setup_logging,
)


# ------------------------------------------------------------------ #
# Fixtures
# ------------------------------------------------------------------ #


@pytest.fixture()
def non_tty(monkeypatch):
    """Patch stdout.isatty() to return False."""
    monkeypatch.setattr("httpapigen.output._is_tty", lambda: False)


@pytest.fixture()
def tty(monkeypatch):
    """Patch stdout.isatty() to return True."""
    monkeypatch.setattr("httpapigen.output._is_tty", lambda: True)


@pytest.fixture()
def plain():
    return OutputManager(format=OutputFormat.PLAIN, no_color=True)


@pytest.fixture()
def package_logger():
    """Restore the package logger after setup_logging() changes it."""
    logger = logging.getLogger("httpapigen")
    level, handlers = logger.level, list(logger.handlers)
    yield logger
    logger.setLevel(level)
    logger.handlers[:] = handlers


# ------------------------------------------------------------------ #
# OutputFormat resolution
# ------------------------------------------------------------------ #


class TestOutputFormatResolution:
    def test_auto_resolves_to_plain_when_not_tty(self, non_tty):
        assert OutputManager(format=OutputFormat.AUTO).format == OutputFormat.PLAIN

    def test_auto_resolves_to_rich_when_tty(self, tty, monkeypatch):
        monkeypatch.delenv("NO_COLOR", raising=False)
        monkeypatch.delenv("TERM", raising=False)
        assert OutputManager(format=OutputFormat.AUTO).format == OutputFormat.RICH

    def test_no_color_flag_forces_plain(self, tty, monkeypatch):
        monkeypatch.delenv("NO_COLOR", raising=False)
        monkeypatch.delenv("TERM", raising=False)
        assert OutputManager(no_color=True).format == OutputFormat.PLAIN

    def test_explicit_formats_are_kept(self, non_tty):
        assert OutputManager(format=OutputFormat.JSON).format == OutputFormat.JSON
        assert OutputManager(format=OutputFormat.RICH).format == OutputFormat.RICH


class TestColorDisabling:
    def test_no_color_env_any_value(self, monkeypatch):
        monkeypatch.setenv("NO_COLOR", "")
        assert _should_disable_color() is True

    def test_term_dumb(self, monkeypatch):
        monkeypatch.delenv("NO_COLOR", raising=False)
        monkeypatch.setenv("TERM", "dumb")
        assert _should_disable_color() is True

    def test_normal_term(self, monkeypatch):
        monkeypatch.delenv("NO_COLOR", raising=False)
        monkeypatch.setenv("TERM", "xterm-256color")
        assert _should_disable_color() is False


# ------------------------------------------------------------------ #
# stdout vs stderr discipline
# ------------------------------------------------------------------ #


class TestStdoutStderrDiscipline:
    def test_print_data_goes_to_stdout(self, capfd, plain):
        plain.print_data("report body")
        captured = capfd.readouterr()
        assert captured.out == "report body\n"
        assert captured.err == ""

    @pytest.mark.parametrize(
        "method,expected",
        [
            ("info", "some info"),
            ("success", "some info"),
            ("warning", "Warning: some info"),
            ("error", "Error: some info"),
            ("suggest", "→ some info"),
        ],
    )
    def test_diagnostics_go_to_stderr(self, capfd, plain, method, expected):
        getattr(plain, method)("some info")
        captured = capfd.readouterr()
        assert captured.out == ""
        assert captured.err == f"{expected}\n"


class TestQuietAndVerbose:
    @pytest.mark.parametrize("method", ["info", "success", "suggest"])
    def test_quiet_suppresses(self, capfd, method):
        mgr = OutputManager(format=OutputFormat.PLAIN, no_color=True, quiet=True)
        getattr(mgr, method)("hidden")
        assert capfd.readouterr().err == ""

    @pytest.mark.parametrize("method", ["warning", "error"])
    def test_quiet_keeps_problems(self, capfd, method):
        mgr = OutputManager(format=OutputFormat.PLAIN, no_color=True, quiet=True)
        getattr(mgr, method)("shown")
        assert "shown" in capfd.readouterr().err

    def test_quiet_keeps_data(self, capfd):
        mgr = OutputManager(format=OutputFormat.PLAIN, no_color=True, quiet=True)
        mgr.print_data("data")
        assert capfd.readouterr().out == "data\n"

    def test_debug_needs_verbose(self, capfd, plain):
        plain.debug("hidden")
        assert capfd.readouterr().err == ""
        mgr = OutputManager(format=OutputFormat.PLAIN, no_color=True, verbose=True)
        mgr.debug("trace")
        assert capfd.readouterr().err == "[debug] trace\n"

    def test_flags(self):
        mgr = OutputManager(quiet=True, verbose=True)
        assert mgr.is_quiet
        assert mgr.is_verbose


# ------------------------------------------------------------------ #
# Structured output
# ------------------------------------------------------------------ #


class TestStructuredOutput:
    def test_print_json_plain(self, capfd, plain):
        plain.print_json({"title": "Pet Store", "operations": 5})
        captured = capfd.readouterr()
        assert json.loads(captured.out) == {"title": "Pet Store", "operations": 5}
        assert "\n  " in captured.out

    def test_table_plain_is_tab_separated(self, capfd, plain):
        plain.print_table(["Method", "Path"], [["GET", "/pets"], ["POST", "/pets"]])
        assert capfd.readouterr().out == "Method\tPath\nGET\t/pets\nPOST\t/pets\n"

    def test_table_json_is_records(self, capfd):
        mgr = OutputManager(format=OutputFormat.JSON, no_color=True)
        mgr.print_table(["Method", "Path"], [["GET", "/pets"]])
        assert json.loads(capfd.readouterr().out) == [{"Method": "GET", "Path": "/pets"}]

    def test_table_rich_contains_cells(self, capfd, non_tty, monkeypatch):
        monkeypatch.delenv("NO_COLOR", raising=False)
        mgr = OutputManager(format=OutputFormat.RICH, no_color=True)
        mgr.print_table(["Schema", "Kind"], [["Pet", "object"]], title="Schemas")
        out = capfd.readouterr().out
        assert "Pet" in out
        assert "object" in out


# ------------------------------------------------------------------ #
# Global instance
# ------------------------------------------------------------------ #


class TestGlobalInstance:
    def test_lazy_default(self):
        reset_output()
        first = get_output()
        assert get_output() is first

    def test_set_and_reset(self):
        mgr = OutputManager(format=OutputFormat.PLAIN)
        set_output(mgr)
        assert get_output() is mgr
        reset_output()
        assert get_output() is not mgr

    def test_convenience_functions_delegate(self, capfd):
        set_output(OutputManager(format=OutputFormat.PLAIN, no_color=True))
        output_module.print_data("out")
        output_module.warning("careful")
        captured = capfd.readouterr()
        assert captured.out == "out\n"
        assert captured.err == "Warning: careful\n"


# ------------------------------------------------------------------ #
# Logging
# ------------------------------------------------------------------ #


class TestSetupLogging:
    @pytest.mark.parametrize(
        "kwargs,level",
        [
            ({}, logging.WARNING),
            ({"verbose": True}, logging.DEBUG),
            ({"quiet": True}, logging.ERROR),
        ],
    )
    def test_levels(self, package_logger, kwargs, level):
        logger = setup_logging(**kwargs)
        assert logger is package_logger
        assert logger.level == level

    def test_single_rich_handler(self, package_logger):
        setup_logging()
        setup_logging(verbose=True)
        assert len(package_logger.handlers) == 1
        assert isinstance(package_logger.handlers[0], RichHandler)

    def test_child_records_propagate(self, package_logger, caplog):
        setup_logging()
        with caplog.at_level(logging.WARNING, logger="httpapigen"):
            logging.getLogger("httpapigen.pipeline").warning("tolerated issue")
        assert "tolerated issue" in caplog.text
