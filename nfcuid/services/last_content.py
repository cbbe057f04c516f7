"""
LastContent - Remembers the most recently typed card output for repeats.
"""

import threading
import time
from typing import Callable, Optional


def format_age(seconds: float) -> str:
    """
    Short age text for notifications.

    Example:
        42 -> "42s", 600 -> "10m", 5400 -> "1.5h"
    """
    if seconds < 60:
        return f"{seconds:.0f}s"
    if seconds < 3600:
        return f"{seconds / 60:.0f}m"
    return f"{seconds / 3600:.1f}h"


class LastContent:
    """
    Thread-safe holder of the last typed output.

    Args:
        timeout_seconds: Content older than this is gone; 0 keeps it forever
        clock: Monotonic time source, injectable for tests
    """

    def __init__(self, timeout_seconds: float = 300, clock: Callable[[], float] = time.monotonic):
        self._timeout = timeout_seconds
        self._clock = clock
        self._content = ""
        self._stored_at = 0.0
        self._lock = threading.Lock()

    def store(self, content: str) -> None:
        with self._lock:
            self._content = content
            self._stored_at = self._clock()

    def retrieve(self) -> Optional[str]:
        """The stored content, or None when empty or expired."""
        with self._lock:
            if not self._content:
                return None
            if self._timeout > 0 and self._clock() - self._stored_at > self._timeout:
                return None
            return self._content

    @property
    def has_content(self) -> bool:
        return self.retrieve() is not None

    def clear(self) -> None:
        with self._lock:
            self._content = ""
            self._stored_at = 0.0

    @property
    def age(self) -> float:
        """Seconds since the content was stored, 0 when empty."""
        with self._lock:
            if not self._content:
                return 0.0
            return self._clock() - self._stored_at
