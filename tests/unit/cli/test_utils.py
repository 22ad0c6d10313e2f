"""Unit tests for toolkernel.cli.utils module."""

import logging
import sys
from unittest.mock import patch

import pytest
from rich.console import Console

from toolkernel.cli.utils import LOG_FORMAT, get_console, setup_logging


@pytest.mark.unit
@pytest.mark.cli
class TestGetConsole:
    """Tests for get_console function."""

    def test_get_console_returns_console_instance(self):
        """Test that get_console returns a Console instance."""
        assert isinstance(get_console(), Console)

    @patch("sys.stdout")
    def test_get_console_interactive(self, mock_stdout, monkeypatch):
        """Test a terminal gets colour and normal wrapping."""
        mock_stdout.isatty.return_value = True
        monkeypatch.delenv("NO_COLOR", raising=False)

        console = get_console()

        assert not console.no_color
        assert not console.soft_wrap

    @patch("sys.stdout")
    def test_get_console_piped(self, mock_stdout):
        """Test piped output is plain and unwrapped."""
        mock_stdout.isatty.return_value = False

        console = get_console()

        assert console.no_color
        assert console.soft_wrap


@pytest.mark.unit
@pytest.mark.cli
class TestSetupLogging:
    """Tests for setup_logging function."""

    @pytest.mark.parametrize(
        "level,expected",
        [
            ("info", logging.INFO),
            ("WARNING", logging.WARNING),
            ("trace", logging.DEBUG),
            ("nonsense", logging.INFO),
        ],
    )
    def test_level_mapping(self, level, expected):
        """Test log level names map to logging levels."""
        with patch("logging.basicConfig") as mock_basic_config:
            setup_logging(level)

        kwargs = mock_basic_config.call_args.kwargs
        assert kwargs["level"] == expected
        assert kwargs["format"] == LOG_FORMAT
        assert kwargs["stream"] is sys.stderr
        assert kwargs["force"] is True
