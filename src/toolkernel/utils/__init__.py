"""Utility modules for the tool kernel."""

from toolkernel.utils.diff import create_simple_diff
from toolkernel.utils.responses import ToolResult, create_error_response, create_success_response

__all__ = [
    "ToolResult",
    "create_error_response",
    "create_simple_diff",
    "create_success_response",
]
