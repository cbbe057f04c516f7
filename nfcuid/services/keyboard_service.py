"""
KeyboardService - Types formatted UIDs into the focused window.

Uses pyautogui for keystroke emulation. Newline and tab glyphs are sent as
Enter and Tab key presses so separators behave like real keys.
"""

import logging
import sys
import time
from typing import Callable, List, Optional, Tuple

from ..models.errors import KeyboardWriteError

logger = logging.getLogger(__name__)

# X11 needs a moment before the first synthetic key event is accepted
LINUX_SETTLE_SECONDS = 2.0

SPECIAL_KEYS = {
    "\n": "enter",
    "\t": "tab",
}

VK_CAPITAL = 0x14


def caps_lock_is_on() -> bool:
    """
    Current caps-lock toggle state.

    Only Windows exposes it without extra libraries; elsewhere caps lock is
    assumed off.
    """
    if sys.platform != "win32":
        return False
    import ctypes

    return bool(ctypes.windll.user32.GetKeyState(VK_CAPITAL) & 0x0001)


def split_keystrokes(text: str) -> List[Tuple[str, str]]:
    """
    Split text into typed runs and special key presses.

    Example:
        "04-ae\\n" -> [("write", "04-ae"), ("press", "enter")]
    """
    chunks: List[Tuple[str, str]] = []
    current = ""
    for char in text:
        if char in SPECIAL_KEYS:
            if current:
                chunks.append(("write", current))
                current = ""
            chunks.append(("press", SPECIAL_KEYS[char]))
        else:
            current += char
    if current:
        chunks.append(("write", current))
    return chunks


class KeyboardService:
    """
    Keystroke sink backed by pyautogui.

    An active caps lock is switched off while typing and restored afterwards
    so the typed case matches the formatted output.

    Args:
        interval: Delay between typed characters in seconds
        settle_delay: Seconds to wait before the first write; defaults to
            LINUX_SETTLE_SECONDS on Linux and 0 elsewhere
        caps_lock_state: Returns whether caps lock is on
    """

    def __init__(
        self,
        interval: float = 0.0,
        settle_delay: Optional[float] = None,
        sleep: Callable[[float], None] = time.sleep,
        caps_lock_state: Callable[[], bool] = caps_lock_is_on,
    ):
        self._interval = interval
        if settle_delay is None:
            settle_delay = LINUX_SETTLE_SECONDS if sys.platform.startswith("linux") else 0.0
        self._settle_delay = settle_delay
        self._sleep = sleep
        self._caps_lock_state = caps_lock_state
        self._prepared = False

    def prepare(self) -> None:
        """Apply the one-time settle delay before the first keystroke."""
        if self._prepared:
            return
        if self._settle_delay > 0:
            logger.info(f"Applying keyboard settle delay of {self._settle_delay:g}s")
            self._sleep(self._settle_delay)
        self._prepared = True

    def write(self, text: str) -> None:
        """
        Type the text.

        Raises:
            KeyboardWriteError: pyautogui is unavailable or a key event failed
        """
        self.prepare()
        try:
            import pyautogui

            caps_was_on = self._caps_lock_state()
            if caps_was_on:
                logger.debug("Caps lock is on, switching it off while typing")
                pyautogui.press("capslock")
            try:
                for action, value in split_keystrokes(text):
                    if action == "press":
                        pyautogui.press(value)
                    else:
                        pyautogui.write(value, interval=self._interval)
            finally:
                if self._caps_lock_state() != caps_was_on:
                    pyautogui.press("capslock")
        except Exception as e:
            raise KeyboardWriteError(f"Failed to write keyboard output: {e}") from e


class MockKeyboardService(KeyboardService):
    """
    Mock KeyboardService for testing.

    Records written text instead of sending key events.
    """

    def __init__(self, fail: bool = False):
        super().__init__(settle_delay=0.0)
        self.fail = fail
        self.written: List[str] = []

    def write(self, text: str) -> None:
        if self.fail:
            raise KeyboardWriteError("Mock keyboard failure")
        self.written.append(text)
