"""
InstanceLock - Single-instance guard based on an OS file lock.

The lock file lives in the temp directory. The operating system drops the
lock when the owning process exits, so a crashed instance never leaves a
stale lock behind.
"""

import logging
import os
import tempfile
from typing import Optional

from filelock import FileLock, Timeout

logger = logging.getLogger(__name__)

# How long a restarted instance waits for its predecessor to exit
RESTART_LOCK_TIMEOUT = 15.0
RESTART_LOCK_POLL = 0.5


class InstanceLock:
    """
    Exclusive lock for one running instance.

    Args:
        app_name: Lock file base name
        lock_dir: Directory for the lock file, defaults to the temp dir
    """

    def __init__(self, app_name: str = "nfcuid", lock_dir: Optional[str] = None):
        self.path = os.path.join(lock_dir or tempfile.gettempdir(), f"{app_name}.lock")
        self._lock = FileLock(self.path)

    @property
    def held(self) -> bool:
        return self._lock.is_locked

    def acquire(self, timeout: float = 0.0, poll: float = RESTART_LOCK_POLL) -> bool:
        """
        Acquire the lock, retrying until timeout seconds have passed.

        A restarted instance uses a timeout because its predecessor may
        still be shutting down.

        Returns:
            False if another instance holds the lock
        """
        try:
            self._lock.acquire(timeout=max(timeout, 0.0), poll_interval=poll)
        except Timeout:
            logger.info(f"Lock {self.path} is held by another instance")
            return False
        except OSError as e:
            logger.warning(f"Failed to lock {self.path}: {e}")
            return False
        logger.debug(f"Acquired lock file {self.path}")
        return True

    def try_acquire(self) -> bool:
        """Single attempt, no waiting."""
        return self.acquire(timeout=0.0)

    def release(self) -> None:
        """Drop the lock if this instance holds it."""
        if not self.held:
            return
        self._lock.release()
        logger.debug(f"Released lock file {self.path}")
