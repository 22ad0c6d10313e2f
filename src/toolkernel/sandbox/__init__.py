"""Sandbox collaborators: filesystem, command runner and the local backend."""

from toolkernel.sandbox.base import (
    CommandRequest,
    CommandResult,
    CommandRunner,
    FileEntry,
    SandboxFilesystem,
)
from toolkernel.sandbox.local import LocalSandbox

__all__ = [
    "CommandRequest",
    "CommandResult",
    "CommandRunner",
    "FileEntry",
    "LocalSandbox",
    "SandboxFilesystem",
]
