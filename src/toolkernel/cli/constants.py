"""Constants for CLI module."""


class ExitCodes:
    """Standard exit codes."""

    SUCCESS = 0
    GENERAL_ERROR = 1
    TOOL_FAILED = 2
    INTERRUPTED = 130
