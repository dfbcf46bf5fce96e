"""Tests for the CLI output system.

Covers:
- OutputFormat resolution (auto -> rich/plain based on TTY)
- NO_COLOR / TERM=dumb color disabling
- stdout vs stderr discipline and quiet mode
- JSON and plain rendering
- Log handler installation
- Global instance management
"""

from __future__ import annotations

import json
import logging

import pytest
from rich.logging import RichHandler

from authorized_client.output import (
    OutputFormat,
    OutputManager,
    _should_disable_color,
    get_output,
    reset_output,
    set_output,
    setup_logging,
)


@pytest.fixture()
def non_tty(monkeypatch):
    """Patch stdout.isatty() to return False."""
    monkeypatch.setattr("authorized_client.output._is_tty", lambda: False)


class TestFormatResolution:
    def test_auto_is_plain_when_piped(self, non_tty) -> None:
        assert OutputManager().format == OutputFormat.PLAIN

    def test_auto_is_rich_on_tty(self, monkeypatch) -> None:
        monkeypatch.setattr("authorized_client.output._is_tty", lambda: True)
        monkeypatch.delenv("NO_COLOR", raising=False)
        monkeypatch.delenv("TERM", raising=False)
        assert OutputManager().format == OutputFormat.RICH

    def test_explicit_format_wins(self, non_tty) -> None:
        assert OutputManager(format=OutputFormat.JSON).format == OutputFormat.JSON

    def test_no_color_env(self, monkeypatch) -> None:
        monkeypatch.setenv("NO_COLOR", "1")
        assert _should_disable_color()

    def test_term_dumb(self, monkeypatch) -> None:
        monkeypatch.delenv("NO_COLOR", raising=False)
        monkeypatch.setenv("TERM", "dumb")
        assert _should_disable_color()


class TestRendering:
    def test_json_goes_to_stdout(self, capsys) -> None:
        OutputManager(format=OutputFormat.JSON, no_color=True).format_response({"x": 1})
        captured = capsys.readouterr()
        assert json.loads(captured.out) == {"x": 1}
        assert captured.err == ""

    def test_plain_dict_is_tab_separated(self, capsys) -> None:
        OutputManager(format=OutputFormat.PLAIN, no_color=True).format_response({"a": 1, "b": "x"})
        assert capsys.readouterr().out == "a\t1\nb\tx\n"

    def test_plain_list(self, capsys) -> None:
        OutputManager(format=OutputFormat.PLAIN, no_color=True).format_response([1, 2])
        assert capsys.readouterr().out == "1\n2\n"

    def test_info_goes_to_stderr(self, capsys) -> None:
        OutputManager(format=OutputFormat.PLAIN, no_color=True).info("status")
        captured = capsys.readouterr()
        assert captured.out == ""
        assert captured.err == "status\n"

    def test_quiet_suppresses_info_not_errors(self, capsys) -> None:
        output = OutputManager(format=OutputFormat.PLAIN, no_color=True, quiet=True)
        output.info("hidden")
        output.error("boom")
        assert capsys.readouterr().err == "Error: boom\n"


class TestLogging:
    def test_verbose_enables_debug(self) -> None:
        setup_logging(OutputManager(format=OutputFormat.PLAIN, no_color=True, verbose=True))
        logger = logging.getLogger("authorized_client")
        assert logger.level == logging.DEBUG
        assert sum(isinstance(h, RichHandler) for h in logger.handlers) == 1

    def test_default_level_is_warning_and_handler_replaced(self) -> None:
        setup_logging(OutputManager(format=OutputFormat.PLAIN, no_color=True))
        setup_logging(OutputManager(format=OutputFormat.PLAIN, no_color=True))
        logger = logging.getLogger("authorized_client")
        assert logger.level == logging.WARNING
        assert sum(isinstance(h, RichHandler) for h in logger.handlers) == 1


class TestGlobalInstance:
    def test_set_and_reset(self, non_tty) -> None:
        output = OutputManager(format=OutputFormat.JSON)
        set_output(output)
        assert get_output() is output
        reset_output()
        assert get_output() is not output
