"""Local sandbox backend.

Maps every sandbox id to a directory under a base directory on the host and
runs commands with that directory as the filesystem namespace. Absolute
sandbox paths such as ``/workspace/src/app.ts`` are rooted at
``<base_dir>/<sandbox_id>/``. Useful for development, the CLI and tests;
production deployments plug a container-backed implementation of the same
protocols into the toolsets instead.
"""

import asyncio
import logging
import os
import posixpath
import stat as stat_module
import tempfile
import time
from pathlib import Path

from toolkernel.exceptions import SandboxPathError
from toolkernel.sandbox.base import CommandRequest, CommandResult, FileEntry

logger = logging.getLogger(__name__)

# Mode of files created by write_bytes
NEW_FILE_MODE = 0o644


class LocalSandbox:
    """Host-directory implementation of SandboxFilesystem and CommandRunner.

    Example:
        >>> sandbox = LocalSandbox(Path("/tmp/sandboxes"))
        >>> await sandbox.mkdir("sbx-1", "/workspace")
        >>> await sandbox.write_bytes("sbx-1", "/workspace/a.txt", b"hello")
        >>> (await sandbox.stat("sbx-1", "/workspace/a.txt")).size
        5
    """

    def __init__(self, base_dir: Path | str, env: dict[str, str] | None = None):
        """Initialize the backend.

        Args:
            base_dir: Directory holding one subdirectory per sandbox id
            env: Extra environment variables for commands
        """
        self.base_dir = Path(base_dir).expanduser()
        self._env = env or {}

    def root_for(self, sandbox_id: str) -> Path:
        """Return (creating if needed) the host directory backing a sandbox."""
        if not sandbox_id or sandbox_id in (".", "..") or "/" in sandbox_id or "\\" in sandbox_id:
            raise SandboxPathError(f"Invalid sandbox id: {sandbox_id!r}")
        root = self.base_dir / sandbox_id
        root.mkdir(parents=True, exist_ok=True)
        return root.resolve()

    def host_path(self, sandbox_id: str, path: str) -> Path:
        """Translate an absolute sandbox path into a host path.

        Raises:
            SandboxPathError: If the path is relative or resolves outside the sandbox
        """
        if not path.startswith("/"):
            raise SandboxPathError(f"Sandbox paths must be absolute: {path}")

        root = self.root_for(sandbox_id)
        resolved = (root / path.lstrip("/")).resolve()
        if resolved != root and root not in resolved.parents:
            logger.warning(f"Path escapes sandbox {sandbox_id}: {path} -> {resolved}")
            raise SandboxPathError(f"Path escapes sandbox: {path}")

        logger.debug(f"Sandbox path resolved: {sandbox_id}:{path} -> {resolved}")
        return resolved

    def _entry(self, path: str, st: os.stat_result, is_symlink: bool = False) -> FileEntry:
        is_directory = stat_module.S_ISDIR(st.st_mode)
        return FileEntry(
            name=posixpath.basename(path) or "/",
            path=path,
            is_directory=is_directory,
            size=0 if is_directory else st.st_size,
            modified_time=st.st_mtime,
            is_symlink=is_symlink,
        )

    # Host I/O runs in worker threads; the async wrappers are below.

    def _stat(self, sandbox_id: str, path: str) -> FileEntry | None:
        host = self.host_path(sandbox_id, path)
        try:
            st = host.stat()
        except FileNotFoundError:
            return None
        return self._entry(posixpath.normpath(path), st)

    def _write_atomic(self, sandbox_id: str, path: str, data: bytes) -> None:
        target = self.host_path(sandbox_id, path)
        # Same directory as the target for an atomic rename
        temp_fd, temp_path = tempfile.mkstemp(
            dir=target.parent, prefix=f".{target.name}.", suffix=".tmp"
        )
        try:
            with os.fdopen(temp_fd, "wb") as f:
                f.write(data)
            mode = stat_module.S_IMODE(target.stat().st_mode) if target.exists() else NEW_FILE_MODE
            os.chmod(temp_path, mode)
            os.replace(temp_path, target)
        except Exception:
            try:
                os.unlink(temp_path)
            except OSError:
                pass
            raise

    def _list_dir(self, sandbox_id: str, path: str) -> list[FileEntry]:
        host = self.host_path(sandbox_id, path)
        base = posixpath.normpath(path)
        entries = []
        with os.scandir(host) as it:
            for item in it:
                try:
                    st = item.stat()
                except FileNotFoundError:
                    # Dangling symlink or removed mid-scan
                    continue
                entries.append(
                    self._entry(posixpath.join(base, item.name), st, is_symlink=item.is_symlink())
                )
        return entries

    async def stat(self, sandbox_id: str, path: str) -> FileEntry | None:
        return await asyncio.to_thread(self._stat, sandbox_id, path)

    async def read_bytes(self, sandbox_id: str, path: str) -> bytes:
        return await asyncio.to_thread(lambda: self.host_path(sandbox_id, path).read_bytes())

    async def write_bytes(self, sandbox_id: str, path: str, data: bytes) -> None:
        """Write via a temp file and rename, so readers never see a partial file."""
        await asyncio.to_thread(self._write_atomic, sandbox_id, path, data)

    async def list_dir(self, sandbox_id: str, path: str) -> list[FileEntry]:
        return await asyncio.to_thread(self._list_dir, sandbox_id, path)

    async def mkdir(self, sandbox_id: str, path: str) -> None:
        await asyncio.to_thread(
            lambda: self.host_path(sandbox_id, path).mkdir(parents=True, exist_ok=True)
        )

    async def run(self, request: CommandRequest) -> CommandResult:
        """Run a command with the sandbox working directory as cwd.

        The process is killed when the timeout expires or the awaiting task
        is cancelled; cancellation is re-raised to the caller.
        """
        try:
            cwd = self.host_path(request.sandbox_id, request.working_dir)
        except SandboxPathError as e:
            return CommandResult(stdout="", stderr=str(e), success=False, error=str(e))

        if not cwd.is_dir():
            message = f"Working directory not found: {request.working_dir}"
            return CommandResult(stdout="", stderr=message, success=False, error=message)

        timeout = request.timeout_ms / 1000
        start = time.monotonic()

        try:
            process = await asyncio.create_subprocess_exec(
                request.command,
                *request.args,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                cwd=cwd,
                env={**os.environ, **self._env},
            )
        except FileNotFoundError:
            message = f"Command not found: {request.command}"
            return CommandResult(stdout="", stderr=message, success=False, exit_code=127, error=message)
        except OSError as e:
            message = f"Failed to start command {request.command}: {e}"
            return CommandResult(stdout="", stderr=message, success=False, error=message)

        try:
            stdout, stderr = await asyncio.wait_for(process.communicate(), timeout=timeout)
        except TimeoutError:
            process.kill()
            elapsed = int((time.monotonic() - start) * 1000)
            logger.warning(f"Command timed out after {timeout}s: {request.display}")
            message = f"Command timed out after {timeout:g}s"
            return CommandResult(
                stdout="",
                stderr=message,
                success=False,
                execution_time_ms=elapsed,
                error=message,
                timed_out=True,
            )
        except asyncio.CancelledError:
            process.kill()
            logger.info(f"Command cancelled: {request.display}")
            raise

        elapsed = int((time.monotonic() - start) * 1000)
        return CommandResult(
            stdout=stdout.decode("utf-8", errors="replace"),
            stderr=stderr.decode("utf-8", errors="replace"),
            success=process.returncode == 0,
            exit_code=process.returncode,
            execution_time_ms=elapsed,
        )
