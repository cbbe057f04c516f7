"""
RestartService - Consecutive PC/SC failure tracking and self-restart.

One counter is shared by every tracked failure kind (context,
enumeration, status monitoring, connection). When it reaches
max_context_failures and self-restart is enabled, a replacement process
is spawned with the same arguments plus --auto-restart and the current
process exits.

The restart is a real process replacement: failure counts and
notification history start from zero in the new process.
"""

import logging
import subprocess
import sys
import threading
import time
from typing import Callable, List, Optional, Sequence, TYPE_CHECKING

from ..models.config import AdvancedConfig
from ..models.errors import SystemFailureKind

if TYPE_CHECKING:
    from .notification_service import NotificationService

logger = logging.getLogger(__name__)


AUTO_RESTART_FLAG = "--auto-restart"

# Time given to the restart notification to show up before the process exits
NOTIFICATION_SETTLE_SECONDS = 2.0

# A child that dies this fast did not start properly
SPAWN_CONFIRM_SECONDS = 0.5


def build_restart_command(
    argv: Optional[Sequence[str]] = None,
    executable: Optional[str] = None,
) -> List[str]:
    """
    Build the command line for the replacement process.

    Frozen builds (PyInstaller) re-run the executable directly; otherwise
    the interpreter re-runs the original script.
    """
    argv = list(sys.argv if argv is None else argv)
    executable = executable or sys.executable

    if getattr(sys, "frozen", False):
        command = [executable, *argv[1:]]
    else:
        command = [executable, *argv]

    if AUTO_RESTART_FLAG not in command:
        command.append(AUTO_RESTART_FLAG)
    return command


class RestartService:
    """
    Tracks consecutive system-level failures and supervises self-restart.

    Args:
        config: Advanced settings (self_restart, max_context_failures,
            restart_delay)
        notifications: Throttled notifier used to announce the restart
        shutdown: Called with the exit code to end this process. The
            application's shutdown routine releases owned resources first.
        spawn: Starts the replacement process from a command list
        sleep: Injectable for tests
    """

    def __init__(
        self,
        config: AdvancedConfig,
        notifications: Optional["NotificationService"] = None,
        shutdown: Optional[Callable[[int], None]] = None,
        spawn: Callable[[List[str]], "subprocess.Popen"] = None,
        sleep: Callable[[float], None] = time.sleep,
        argv: Optional[Sequence[str]] = None,
    ):
        self._config = config
        self._notifications = notifications
        self._shutdown = shutdown or sys.exit
        self._spawn = spawn or self._default_spawn
        self._sleep = sleep
        self._argv = argv
        self._lock = threading.Lock()
        self._failure_count = 0
        self._restart_started = False

    @property
    def failure_count(self) -> int:
        with self._lock:
            return self._failure_count

    @property
    def restart_started(self) -> bool:
        with self._lock:
            return self._restart_started

    def track_failure(self, kind: SystemFailureKind, error: BaseException) -> bool:
        """
        Count a system-level failure.

        Returns:
            True if the restart sequence was started (the caller must not
            treat the failure as retryable), False otherwise
        """
        with self._lock:
            if self._restart_started:
                return True
            self._failure_count += 1
            count = self._failure_count
            threshold = self._config.max_context_failures
            trigger = self._config.self_restart and count >= threshold
            if trigger:
                self._restart_started = True

        logger.warning(f"{kind.value} failure {count}/{threshold}: {error}")

        if trigger:
            self._perform_restart(kind)
            return True
        return False

    def reset_failures(self) -> None:
        """Reset the counter after a context was established."""
        with self._lock:
            if self._failure_count == 0:
                return
            self._failure_count = 0
        logger.info("PC/SC context established successfully, resetting failure count")

    # =========================================================================
    # Restart sequence
    # =========================================================================

    def _perform_restart(self, kind: SystemFailureKind) -> None:
        message = (
            f"Maximum {kind.value} failures reached "
            f"({self._config.max_context_failures}). Restarting application..."
        )
        logger.warning(message)
        self._notify_info(message)

        self._sleep(NOTIFICATION_SETTLE_SECONDS)
        if self._config.restart_delay > 0:
            logger.info(f"Waiting {self._config.restart_delay} seconds before restart...")
            self._sleep(self._config.restart_delay)

        command = build_restart_command(self._argv)
        logger.info(f"Restarting application: {' '.join(command)}")

        try:
            process = self._spawn(command)
            self._confirm_started(process)
        except (OSError, subprocess.SubprocessError) as e:
            error_message = f"Failed to restart application: {e}"
            logger.error(error_message)
            if self._notifications is not None:
                self._notifications.notify_error(error_message)
            self._shutdown(1)
            return

        self._notify_info("Application restart initiated")
        logger.info("New process started successfully. Exiting current instance.")
        self._shutdown(0)

    def _confirm_started(self, process: "subprocess.Popen") -> None:
        try:
            return_code = process.wait(timeout=SPAWN_CONFIRM_SECONDS)
        except subprocess.TimeoutExpired:
            return
        raise subprocess.SubprocessError(
            f"replacement process exited immediately with code {return_code}"
        )

    def _notify_info(self, message: str) -> None:
        if self._notifications is not None:
            self._notifications.notify_info("NFC Reader", message)

    @staticmethod
    def _default_spawn(command: List[str]) -> "subprocess.Popen":
        return subprocess.Popen(
            command,
            stdin=sys.stdin,
            stdout=sys.stdout,
            stderr=sys.stderr,
        )
