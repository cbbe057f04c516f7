"""
ReaderService - Supervising read loop.

Owns the endless loop around CardWatcher sessions, turns UIDs into
keystrokes and is the only place that decides on user-visible feedback
(notifications and sounds). Lower layers only raise typed errors.
"""

import logging
import threading
from dataclasses import replace
from typing import Callable, Optional, TYPE_CHECKING

from ..models.config import ConfigData
from ..models.errors import (
    DeviceSelectionError,
    ErrorCategory,
    KeyboardWriteError,
    NFCUIDError,
    RestartTriggered,
    ServiceStoppedError,
)
from ..models.status import ServiceStatus
from .card_watcher import CardWatcher
from .last_content import LastContent, format_age
from .retry import RetryPolicy
from .uid_codec import format_uid, uid_to_hex

if TYPE_CHECKING:
    from .interfaces import IKeyboardService, IPCSCService
    from .notification_service import NotificationService
    from .restart_service import RestartService

logger = logging.getLogger(__name__)


CONNECTION_LOST_MESSAGE = "Connection to the NFC reader lost. Please check the device."
CARD_DETECT_FAILED_MESSAGE = "Card could not be detected. Please check the NFC reader."
CARD_READ_FAILED_MESSAGE = "Card could not be read. Please try again."
KEYBOARD_FAILED_MESSAGE = "Card ID could not be typed. Is the cursor in the right field?"
FORMAT_FALLBACK_MESSAGE = "Could not convert the card ID to decimal. Using the hex format."
RELEASE_FAILED_MESSAGE = "Error while waiting for card removal. The card was read anyway."

REPEAT_TITLE = "Repeat Key"
NO_PREVIOUS_SCAN_MESSAGE = "No previous scan available to repeat."
NO_CONTENT_MESSAGE = "No content available to repeat."
REPEAT_FAILED_MESSAGE = "Repeated input failed. Is the cursor in the right field?"


class ReaderService:
    """
    Top-level driver of the read-and-recover engine.

    Args:
        config: Application configuration (nfc output and advanced sections)
        pcsc: Smartcard access layer
        keyboard: Keystroke sink
        notifications: Throttled notification front-end
        restart_service: Failure tracker / restart supervisor
        input_func: Console input used when the device is chosen interactively
        sleep_func: Retry backoff sleep, injectable for tests
        last_content: Store for the last typed output, injectable for tests
    """

    def __init__(
        self,
        config: ConfigData,
        pcsc: "IPCSCService",
        keyboard: "IKeyboardService",
        notifications: "NotificationService",
        restart_service: "RestartService",
        input_func: Callable[[str], str] = input,
        sleep_func: Optional[Callable[[float], None]] = None,
        last_content: Optional[LastContent] = None,
    ):
        self._config = config
        self._pcsc = pcsc
        self._keyboard = keyboard
        self._notifications = notifications
        self._restart = restart_service
        self._input = input_func
        self._format = config.output_format()
        # Interactive choice is kept for later sessions
        self._device = config.nfc.device

        advanced = config.advanced
        if sleep_func is None:
            self._retry = RetryPolicy(advanced.retry_attempts, advanced.reconnect_delay)
        else:
            self._retry = RetryPolicy(advanced.retry_attempts, advanced.reconnect_delay, sleep_func)

        if last_content is None:
            last_content = LastContent(config.repeat_key.content_timeout)
        self._last_content = last_content
        # Card output and repeats come from different threads
        self._keyboard_lock = threading.Lock()

        self._stop_event = threading.Event()
        self._status = ServiceStatus()
        self._status_lock = threading.Lock()
        self.on_status: Optional[Callable[[ServiceStatus], None]] = None
        self.watcher: Optional[CardWatcher] = None

    # =========================================================================
    # Status
    # =========================================================================

    @property
    def status(self) -> ServiceStatus:
        with self._status_lock:
            return replace(self._status)

    @property
    def last_output(self) -> Optional[str]:
        with self._status_lock:
            return self._status.last_card_output

    def _update_status(self, **changes) -> None:
        with self._status_lock:
            for key, value in changes.items():
                setattr(self._status, key, value)
            snapshot = replace(self._status)

        if self.on_status is not None:
            try:
                self.on_status(snapshot)
            except Exception as e:
                logger.warning(f"Status callback failed: {e}")

    # =========================================================================
    # Supervising loop
    # =========================================================================

    def stop(self) -> None:
        """
        Ask the loop to stop.

        A blocking PC/SC wait is not interrupted; the loop exits at its next
        check point.
        """
        self._stop_event.set()

    @property
    def is_stopped(self) -> bool:
        return self._stop_event.is_set()

    def run(self) -> None:
        """
        Run sessions until stopped.

        Raises:
            ServiceStoppedError: a session failed and auto-reconnect is off
        """
        logger.info("Service starting main loop")
        advanced = self._config.advanced

        while not self._stop_event.is_set():
            try:
                self.run_session()
            except RestartTriggered:
                logger.info("Restart in progress, leaving service loop")
                self._update_status(status="Restarting", is_scanning=False)
                return
            except DeviceSelectionError as e:
                logger.error(f"Device selection failed: {e}")
                self._update_status(status="Stopped", is_scanning=False, last_error=str(e))
                self._notifications.notify_error(str(e), e.category)
                raise ServiceStoppedError(f"Service stopped: {e}") from e
            except Exception as e:
                logger.error(f"Service loop error: {e}")
                self._update_status(status="Error", is_scanning=False, last_error=str(e))
                self._notifications.notify_error_throttled(
                    ErrorCategory.SERVICE, CONNECTION_LOST_MESSAGE
                )

                if not advanced.auto_reconnect:
                    logger.error("Service stopped due to error with auto-reconnect disabled")
                    raise ServiceStoppedError(f"Service stopped due to error: {e}") from e

                logger.warning(
                    f"Attempting to restart service in {advanced.reconnect_delay} seconds..."
                )
                self._update_status(status="Reconnecting")
                self._stop_event.wait(advanced.reconnect_delay)
                continue

        self._update_status(status="Stopped", is_scanning=False)
        logger.info("Service stopped")

    def run_session(self) -> None:
        """
        One pass: context, enumeration, selection, then the card loop.

        The context is always released when the session ends.
        """
        logger.info("Starting service loop")
        watcher = CardWatcher(
            self._pcsc,
            self._retry,
            self._restart,
            device=self._device,
            input_func=self._input,
        )
        self.watcher = watcher
        self._update_status(status="Connecting", is_scanning=False)

        watcher.establish_context()
        self._restart.reset_failures()
        try:
            readers = watcher.list_readers()
            logger.info(f"Found {len(readers)} device(s)")
            for number, name in enumerate(readers, start=1):
                logger.info(f"[{number}] {name}")

            device = watcher.select_device(readers)
            self._device = device
            name = watcher.reader_name
            logger.info(f"Selected device: [{device}] {name}")
            self._update_status(
                status="Device selected",
                device_name=name,
                device_index=device,
                available_devices=list(readers),
            )

            self._keyboard.prepare()

            self._card_loop(watcher)
        finally:
            watcher.release()

    # =========================================================================
    # Card loop
    # =========================================================================

    def _card_loop(self, watcher: CardWatcher) -> None:
        name = watcher.reader_name
        logger.info(f"Ready for card scanning on {name}")
        self._update_status(status="Ready for scanning", is_scanning=True)

        while not self._stop_event.is_set():
            self._update_status(status="Waiting for card")
            try:
                watcher.wait_for_card()
            except RestartTriggered:
                raise
            except NFCUIDError as e:
                logger.error(f"Card detection failed on {name}: {e}")
                self._notifications.notify_error_throttled(
                    ErrorCategory.CARD, CARD_DETECT_FAILED_MESSAGE
                )
                if self._config.advanced.auto_reconnect:
                    logger.warning("Retrying card detection due to auto-reconnect enabled")
                    continue
                raise

            logger.info(f"Card detected on {name}")
            self._update_status(status="Processing card")
            self.process_card(watcher)

    def process_card(self, watcher: CardWatcher) -> bool:
        """
        Read, format and type one card, then wait for its removal.

        Per-card failures are reported and swallowed so the loop keeps
        going; only RestartTriggered escapes.

        Returns:
            True if the UID was typed
        """
        name = watcher.reader_name
        try:
            uid = watcher.read_uid()
        except RestartTriggered:
            raise
        except NFCUIDError as e:
            logger.error(f"Card processing failed on {name}: {e}")
            self._update_status(last_error=str(e))
            self._notifications.notify_error_throttled(
                ErrorCategory.CARD, CARD_READ_FAILED_MESSAGE
            )
            return False

        uid_hex = uid_to_hex(uid, separator=" ")
        logger.info(f"UID is: {uid_hex} (device {name})")

        formatted = format_uid(uid, self._format)
        if formatted.fallback:
            logger.warning(f"UID of {len(uid)} bytes cannot be shown as decimal, using hex")
            self._notifications.notify_error(FORMAT_FALLBACK_MESSAGE, ErrorCategory.GENERAL)
        output = formatted.text

        typed = False
        try:
            logger.info(f"Sending keyboard output {output!r}")
            with self._keyboard_lock:
                self._keyboard.write(output)
            typed = True
        except KeyboardWriteError as e:
            logger.error(f"Keyboard output failed for {output!r}: {e}")
            self._update_status(last_error=str(e))
            self._notifications.notify_error_throttled(
                ErrorCategory.KEYBOARD, KEYBOARD_FAILED_MESSAGE
            )
            self._notifications.play_sound(False)

        if typed:
            logger.info(f"Card processing completed successfully, output {output!r}")
            self._last_content.store(output)
            self._update_status(last_card_output=output, last_error=None)
            self._notifications.notify_success(f"Card UID: {output}")
            self._notifications.play_sound(True)

        self._update_status(status="Waiting for card removal")
        try:
            watcher.wait_for_release()
            logger.info(f"Card removed from {name}")
        except RestartTriggered:
            raise
        except NFCUIDError as e:
            logger.error(f"Error waiting for card removal on {name}: {e}")
            self._notifications.notify_error(RELEASE_FAILED_MESSAGE, ErrorCategory.CARD)

        return typed

    # =========================================================================
    # Repeat
    # =========================================================================

    def repeat_last_input(self) -> bool:
        """
        Type the last card output again.

        Safe to call from any thread while the card loop runs.

        Returns:
            True if the output was typed
        """
        settings = self._config.repeat_key
        if not settings.enabled:
            logger.info("Repeat key functionality is disabled")
            return False

        if settings.require_previous_scan and not self._last_content.has_content:
            logger.info("No previous scan available to repeat")
            if settings.notification:
                self._notifications.notify_info(REPEAT_TITLE, NO_PREVIOUS_SCAN_MESSAGE)
            return False

        content = self._last_content.retrieve()
        if content is None:
            logger.info("No content available to repeat")
            if settings.notification:
                self._notifications.notify_info(REPEAT_TITLE, NO_CONTENT_MESSAGE)
            return False

        logger.info(f"Repeating last scanned content {content!r}")
        try:
            with self._keyboard_lock:
                self._keyboard.write(content)
        except KeyboardWriteError as e:
            logger.error(f"Failed to write repeated keyboard output: {e}")
            self._notifications.notify_error(REPEAT_FAILED_MESSAGE, ErrorCategory.KEYBOARD)
            self._notifications.play_sound(False)
            return False

        if settings.notification:
            age = format_age(self._last_content.age)
            self._notifications.notify_info(
                REPEAT_TITLE, f"Last card repeated (scanned {age} ago)"
            )
        self._notifications.play_sound(True)
        logger.info("Repeat action completed successfully")
        return True
