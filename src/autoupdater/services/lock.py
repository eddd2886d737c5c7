"""Single-instance run lock."""

import fcntl
import logging
import os
from pathlib import Path
from typing import Optional, Union

from autoupdater.errors import LockContentionError, LockFileError

DEFAULT_LOCK_FILE = Path("/var/run/autoupdater.lock")


class RunLock:
    """An acquired exclusive flock.

    The lock belongs to the open file description, so the kernel drops it
    when the process exits for any reason; release() only frees it early.
    """

    def __init__(self, path: Path, fd: int):
        self.path = path
        self._fd: Optional[int] = fd

    @property
    def held(self) -> bool:
        return self._fd is not None

    def release(self) -> None:
        if self._fd is None:
            return
        os.close(self._fd)
        self._fd = None

    def __enter__(self) -> "RunLock":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.release()


class LockManager:
    """Acquires the process-wide autoupdater lock without blocking."""

    def __init__(self, path: Union[str, Path] = DEFAULT_LOCK_FILE):
        self.path = Path(path)
        self.logger = logging.getLogger("autoupdater.lock")

    def acquire(self) -> RunLock:
        """Take the lock or fail immediately.

        Raises:
            LockFileError: If the lock file cannot be opened
            LockContentionError: If another process holds the lock
        """
        try:
            fd = os.open(self.path, os.O_CREAT | os.O_RDONLY, 0o666)
        except OSError as e:
            raise LockFileError(f"unable to open lock file {self.path}: {e}")

        try:
            fcntl.flock(fd, fcntl.LOCK_EX | fcntl.LOCK_NB)
        except BlockingIOError:
            os.close(fd)
            self.logger.debug(f"Lock {self.path} is held by another process")
            raise LockContentionError(str(self.path))
        except OSError as e:
            os.close(fd)
            raise LockFileError(f"unable to lock {self.path}: {e}")

        self.logger.debug(f"Acquired lock {self.path}")
        return RunLock(self.path, fd)
