"""
CommandThread - Console commands for the tray-less mode.

Typing "repeat" or "r" followed by Enter types the last card output again.
"""

import logging
import threading
from typing import Callable

logger = logging.getLogger(__name__)

REPEAT_COMMANDS = ("repeat", "r")


class CommandThread(threading.Thread):
    """
    Reads console lines and dispatches known commands.

    A daemon thread, since a blocking console read cannot be interrupted
    on shutdown.

    Args:
        on_repeat: Called for a repeat command, in this thread
        input_func: Console line source
    """

    def __init__(self, on_repeat: Callable[[], object], input_func: Callable[[], str] = input):
        super().__init__(name="console-commands", daemon=True)
        self._on_repeat = on_repeat
        self._input = input_func
        self._stop_event = threading.Event()

    def run(self):
        logger.info("Repeat ready: type 'repeat' or 'r' and press Enter")
        while not self._stop_event.is_set():
            try:
                line = self._input()
            except (EOFError, OSError, RuntimeError):
                logger.info("Console input closed, command reader stopped")
                return

            command = line.strip().lower()
            if command in REPEAT_COMMANDS:
                try:
                    self._on_repeat()
                except Exception as e:
                    logger.error(f"Repeat command failed: {e}", exc_info=True)
            elif command:
                logger.debug(f"Unknown console command {command!r}")

    def stop(self):
        """Stop after the current read returns."""
        self._stop_event.set()
