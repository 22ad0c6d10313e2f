"""Utility functions for CLI module."""

import logging
import sys

from rich.console import Console

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def get_console() -> Console:
    """Create the Rich console for CLI output.

    When stdout is piped, colour and line wrapping are turned off so that
    printed results, JSON in particular, reach the next process intact.
    """
    if sys.stdout.isatty():
        return Console()
    return Console(no_color=True, soft_wrap=True)


def setup_logging(level: str = "info") -> None:
    """Configure the root logger on stderr.

    Args:
        level: Log level name; "trace" maps to DEBUG
    """
    normalized = level.upper()
    if normalized == "TRACE":
        normalized = "DEBUG"
    numeric_level = getattr(logging, normalized, logging.INFO)

    logging.basicConfig(
        level=numeric_level,
        format=LOG_FORMAT,
        stream=sys.stderr,
        force=True,  # Reconfigure if already configured
    )
    logger.debug(f"Logging configured at {normalized}")
