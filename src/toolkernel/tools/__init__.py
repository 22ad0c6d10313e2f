"""Tool implementations for the kernel."""

from toolkernel.tools.filesystem import FileSystemTools
from toolkernel.tools.shell import ShellTools
from toolkernel.tools.toolset import KernelToolset, ToolExample, ToolMetadata
from toolkernel.tools.validation import ValidationTools

__all__ = [
    "FileSystemTools",
    "KernelToolset",
    "ShellTools",
    "ToolExample",
    "ToolMetadata",
    "ValidationTools",
]
