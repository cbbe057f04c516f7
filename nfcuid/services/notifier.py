"""
Notifiers without a GUI: console delivery and a recording mock.

The tray notifier lives in views/tray_icon.py because it needs Qt.
"""

import logging
import sys
from typing import List, Optional, Tuple

logger = logging.getLogger(__name__)


class ConsoleNotifier:
    """Prints notifications to the log and rings the terminal bell."""

    def __init__(self, audio_enabled: bool = True, stream=None):
        self._audio_enabled = audio_enabled
        self._stream = stream or sys.stdout

    def notify(self, title: str, message: str, level: str = "info") -> None:
        if level == "error":
            logger.error(f"{title}: {message}")
        else:
            logger.info(f"{title}: {message}")

    def play_sound(self, success: bool) -> None:
        if not self._audio_enabled:
            return
        # One bell for success, two for errors
        self._stream.write("\a" if success else "\a\a")
        self._stream.flush()


class MockNotifier:
    """
    Mock notifier for testing.

    Records deliveries instead of showing them.
    """

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.notifications: List[Tuple[str, str, str]] = []
        self.sounds: List[bool] = []

    def notify(self, title: str, message: str, level: str = "info") -> None:
        if self.fail:
            raise RuntimeError("Mock notifier failure")
        self.notifications.append((title, message, level))

    def play_sound(self, success: bool) -> None:
        self.sounds.append(success)

    def titles(self, level: Optional[str] = None) -> List[str]:
        return [t for t, _, lvl in self.notifications if level is None or lvl == level]
