"""
Threads - Background workers for the reader loop, update checks and
console commands.
"""

from .command_thread import CommandThread
from .reader_thread import ReaderThread
from .update_thread import UpdateCheckThread

__all__ = ["CommandThread", "ReaderThread", "UpdateCheckThread"]
