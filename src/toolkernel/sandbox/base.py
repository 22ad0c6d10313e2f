"""Sandbox collaborator interfaces.

The kernel never touches the host filesystem or spawns processes directly.
Everything goes through these two protocols, keyed by sandbox id and an
absolute path inside that sandbox's namespace.
"""

from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Protocol


@dataclass(frozen=True)
class FileEntry:
    """A file or directory inside a sandbox.

    Attributes:
        name: Base name of the entry
        path: Absolute sandbox path
        is_directory: True for directories
        size: Size in bytes (0 for directories)
        modified_time: Modification time as a Unix timestamp
        is_symlink: True when the entry itself is a symbolic link
    """

    name: str
    path: str
    is_directory: bool
    size: int
    modified_time: float
    is_symlink: bool = False


@dataclass(frozen=True)
class CommandRequest:
    """A command to run inside a sandbox."""

    sandbox_id: str
    command: str
    args: Sequence[str] = field(default_factory=tuple)
    working_dir: str = "/workspace"
    timeout_ms: int = 30_000
    user_id: str | None = None

    @property
    def display(self) -> str:
        """Command line as a single string for logs and feedback."""
        return " ".join([self.command, *self.args])


@dataclass(frozen=True)
class CommandResult:
    """Outcome of a sandbox command.

    ``success`` is true only when the process exited with code 0 before the
    timeout. ``error`` explains runner-level failures (timeout, missing
    executable) that produced no exit code of their own.
    """

    stdout: str
    stderr: str
    success: bool
    exit_code: int | None = None
    execution_time_ms: int = 0
    error: str | None = None
    timed_out: bool = False

    @property
    def combined_output(self) -> str:
        if self.stdout and self.stderr:
            return f"{self.stdout}\n{self.stderr}"
        return self.stdout or self.stderr


class SandboxFilesystem(Protocol):
    """Namespaced file store scoped to a sandbox id."""

    async def stat(self, sandbox_id: str, path: str) -> FileEntry | None:
        """Return metadata for ``path`` or None if it does not exist."""
        ...

    async def read_bytes(self, sandbox_id: str, path: str) -> bytes:
        """Read a whole file. Raises FileNotFoundError, IsADirectoryError or OSError."""
        ...

    async def write_bytes(self, sandbox_id: str, path: str, data: bytes) -> None:
        """Create or overwrite a file. The parent directory must exist.

        Implementations must not leave a partially written file behind.
        """
        ...

    async def list_dir(self, sandbox_id: str, path: str) -> list[FileEntry]:
        """List direct children of a directory (unordered).

        Symbolic links report their target's type and set ``is_symlink``.
        """
        ...

    async def mkdir(self, sandbox_id: str, path: str) -> None:
        """Create a directory and any missing parents."""
        ...


class CommandRunner(Protocol):
    """Runs commands inside a sandbox."""

    async def run(self, request: CommandRequest) -> CommandResult:
        """Run a command, honouring ``request.timeout_ms``.

        Implementations must terminate the underlying process when the
        awaiting task is cancelled.
        """
        ...
