"""Per-path mutual exclusion for mutating tools.

write_file and replace read the current content, compute a diff or an
occurrence count, then write. ``PathLocks`` makes that sequence atomic with
respect to other mutations of the same ``(sandbox_id, path)``. Read-only
tools do not take locks.
"""

import asyncio
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from toolkernel.context import normalize_path

logger = logging.getLogger(__name__)

LockKey = tuple[str, str]


class PathLocks:
    """Registry of asyncio locks keyed by sandbox id and normalized path.

    Locks are created on demand and discarded once no task holds or waits
    for them, so the registry does not grow with the number of files ever
    touched.

    Example:
        >>> locks = PathLocks()
        >>> async with locks.hold("sbx-1", "/workspace/a.txt"):
        ...     ...  # read, compute, write
    """

    def __init__(self) -> None:
        self._locks: dict[LockKey, asyncio.Lock] = {}
        self._users: dict[LockKey, int] = {}

    def key(self, sandbox_id: str, path: str) -> LockKey:
        return (sandbox_id, normalize_path(path))

    def is_locked(self, sandbox_id: str, path: str) -> bool:
        lock = self._locks.get(self.key(sandbox_id, path))
        return lock is not None and lock.locked()

    def __len__(self) -> int:
        return len(self._locks)

    @asynccontextmanager
    async def hold(self, sandbox_id: str, path: str) -> AsyncIterator[None]:
        """Hold the lock for ``(sandbox_id, path)`` for the duration of the block."""
        key = self.key(sandbox_id, path)
        lock = self._locks.setdefault(key, asyncio.Lock())
        self._users[key] = self._users.get(key, 0) + 1

        try:
            if lock.locked():
                logger.debug(f"Waiting for lock on {sandbox_id}:{key[1]}")
            async with lock:
                yield
        finally:
            self._users[key] -= 1
            if self._users[key] == 0:
                del self._users[key]
                del self._locks[key]
