"""Toolkernel - sandboxed tool execution kernel for AI coding agents."""

from importlib.metadata import PackageNotFoundError, version

# Read version from package metadata (pyproject.toml)
try:
    __version__ = version("toolkernel")
except PackageNotFoundError:
    # Fallback for development environments where package isn't installed
    __version__ = "0.0.0.dev"

from toolkernel.config import KernelSettings
from toolkernel.context import SandboxContext
from toolkernel.registry import ToolRegistry, build_default_registry
from toolkernel.utils.responses import ToolResult

__all__ = [
    "KernelSettings",
    "SandboxContext",
    "ToolRegistry",
    "ToolResult",
    "__version__",
    "build_default_registry",
]
