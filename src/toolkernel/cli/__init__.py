"""Developer CLI for the tool kernel."""

from toolkernel.cli.app import app

__all__ = ["app"]
