"""
Advisory run lock.

Prevents two invocations against the same database target from
overlapping on one host. The lock file lives in the backup directory
and never matches the artifact naming convention.
"""

import logging
import os
import re
from pathlib import Path
from types import TracebackType

try:
    import fcntl
except ImportError:  # Windows
    fcntl = None

from dumpkeeper.core.exceptions import DumpError

logger = logging.getLogger(__name__)


def lock_path_for(directory: Path, prefix: str, database: str) -> Path:
    """Lock file path keyed by artifact prefix and database name."""
    safe_name = re.sub(r"[^A-Za-z0-9_.-]", "_", database)
    return directory / f".{prefix}-{safe_name}.lock"


class RunLock:
    """
    Non-blocking exclusive flock held for the duration of a run.

    Raises DumpError on entry when another process holds the lock.
    The file is left in place on exit; only the lock is released.
    """

    def __init__(self, path: Path, enabled: bool = True):
        self.path = path
        self.enabled = enabled
        self._fd: int | None = None

    def acquire(self) -> None:
        if not self.enabled:
            return
        if fcntl is None:
            logger.debug("fcntl unavailable; run lock skipped")
            return

        try:
            fd = os.open(self.path, os.O_RDWR | os.O_CREAT, 0o644)
        except OSError as e:
            raise DumpError(
                f"Cannot open lock file: {e}",
                reason="lock_failed",
                details={"lock_file": str(self.path)},
            ) from e

        try:
            fcntl.flock(fd, fcntl.LOCK_EX | fcntl.LOCK_NB)
        except OSError:
            os.close(fd)
            raise DumpError(
                "Another backup run holds the lock",
                reason="lock_held",
                details={"lock_file": str(self.path)},
            ) from None

        os.ftruncate(fd, 0)
        os.write(fd, f"{os.getpid()}\n".encode())
        self._fd = fd
        logger.debug(f"Acquired run lock {self.path.name}")

    def release(self) -> None:
        if self._fd is None:
            return
        try:
            fcntl.flock(self._fd, fcntl.LOCK_UN)
        except OSError as e:
            logger.debug(f"Unlock of {self.path.name} failed, closing anyway: {e}")
        os.close(self._fd)
        self._fd = None
        logger.debug(f"Released run lock {self.path.name}")

    def __enter__(self) -> "RunLock":
        self.acquire()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.release()
