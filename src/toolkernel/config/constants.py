"""Configuration constants for the tool kernel.

This module provides a single source of truth for all default configuration values.
Separated from schema.py to avoid circular imports.
"""

from pathlib import Path

# Default paths
DEFAULT_DATA_DIR = Path.home() / ".toolkernel"
DEFAULT_CONFIG_PATH = DEFAULT_DATA_DIR / "settings.json"
DEFAULT_SANDBOX_ROOT = DEFAULT_DATA_DIR / "sandboxes"

# Filesystem tool limits
DEFAULT_MAX_READ_LINES = 2000
DEFAULT_MAX_READ_BYTES = 10_485_760  # 10 MiB
DEFAULT_MAX_WRITE_BYTES = 10_485_760  # 10 MiB
DEFAULT_RECENT_WINDOW_HOURS = 24.0

# Directories skipped by every recursive scan
DEFAULT_EXCLUDED_DIRS = (
    ".git",
    ".hg",
    ".svn",
    "node_modules",
    "dist",
    "build",
    ".next",
    ".turbo",
    ".cache",
    "coverage",
    "__pycache__",
)

# Version-control metadata, skipped even when ignore rules are disabled
VCS_DIRS = (".git", ".hg", ".svn")

# Sandbox command runner
DEFAULT_WORKING_DIR = "/workspace"
DEFAULT_COMMAND_TIMEOUT = 30  # seconds
MAX_COMMAND_TIMEOUT = 300  # seconds

# Validation pipeline
DEFAULT_TYPE_CHECK_COMMAND = ("pnpm", "type-check")
DEFAULT_BUILD_COMMAND = ("pnpm", "build")
DEFAULT_STAGE_TIMEOUT = 300  # seconds
DEFAULT_MAX_OUTPUT_CHARS = 5000

# Registry
DEFAULT_TOOL_TIMEOUT = 30.0  # seconds
