# main.py
import logging
import os
import signal
import sys
import threading
import webbrowser
from typing import List, Optional

from PyQt5.QtCore import QCoreApplication, QTimer
from PyQt5.QtWidgets import QApplication

from nfcuid import APP_NAME, __version__
from nfcuid.logging import configure_logging, level_from_name
from nfcuid.models.config import ConfigData
from nfcuid.models.errors import ConfigError, ErrorCategory
from nfcuid.services.config_service import load_config
from nfcuid.services.instance_lock import InstanceLock, RESTART_LOCK_TIMEOUT
from nfcuid.services.keyboard_service import KeyboardService
from nfcuid.services.notification_service import APP_TITLE, NotificationService
from nfcuid.services.notifier import ConsoleNotifier
from nfcuid.services.pcsc_service import PCSCService
from nfcuid.services.reader_service import ReaderService
from nfcuid.services.restart_service import RestartService
from nfcuid.services.update_service import UpdateService
from nfcuid.threads.command_thread import CommandThread
from nfcuid.threads.reader_thread import ReaderThread
from nfcuid.threads.update_thread import UpdateCheckThread

logger = logging.getLogger("nfcuid.main")

SHUTDOWN_POLL_MS = 200
THREAD_JOIN_MS = 1000


def open_website(config: ConfigData, notifications: NotificationService) -> bool:
    """Open the configured URL; failures are reported, never fatal."""
    url = config.web.website_url
    logger.info(f"Opening website {url}")
    try:
        if config.web.fullscreen:
            opened = webbrowser.open_new(url)
        else:
            opened = webbrowser.open(url)
    except webbrowser.Error as e:
        logger.error(f"Failed to open browser: {e}")
        opened = False

    if not opened:
        notifications.notify_error_throttled(
            ErrorCategory.BROWSER, f"Could not open {url} in the browser."
        )
    return opened


class Application:
    """
    Owns the process-wide resources: instance lock, threads, notifier.

    Shutdown requests (signals, tray menu, restart supervisor, service
    failure) only record the exit code; a timer in the GUI thread picks it
    up and ends the event loop.
    """

    def __init__(self, config: ConfigData, no_tray: bool = False):
        self.config = config
        self.no_tray = no_tray
        self.lock = InstanceLock(APP_NAME)

        self._qt_app: Optional[QCoreApplication] = None
        self._tray = None
        self.notifications: Optional[NotificationService] = None
        self.reader_service: Optional[ReaderService] = None
        self.reader_thread: Optional[ReaderThread] = None
        self.update_thread: Optional[UpdateCheckThread] = None
        self.command_thread: Optional[CommandThread] = None

        self._shutdown_requested = threading.Event()
        self._exit_code = 0
        self._poll_timer: Optional[QTimer] = None

    # =========================================================================
    # Startup
    # =========================================================================

    def run(self, argv: List[str]) -> int:
        timeout = RESTART_LOCK_TIMEOUT if self.config.auto_restart else 0.0
        if not self.lock.acquire(timeout=timeout):
            print(f"{APP_TITLE} is already running.")
            return 1

        try:
            self._qt_app = self._create_qt_app(argv)
            self._build()
            self._install_signal_handlers()

            if self.config.web.open_website:
                open_website(self.config, self.notifications)

            self.reader_thread.start()
            if self.update_thread is not None:
                self.update_thread.start()

            logger.info(f"{APP_TITLE} {__version__} started")
            self._qt_app.exec_()
        finally:
            code = self.shutdown(self._exit_code)
        return code

    def _create_qt_app(self, argv: List[str]) -> QCoreApplication:
        if self.no_tray:
            return QCoreApplication(argv)
        app = QApplication(argv)
        app.setQuitOnLastWindowClosed(False)
        return app

    def _build(self) -> None:
        config = self.config
        if self.no_tray:
            notifier = ConsoleNotifier(audio_enabled=config.audio.enabled)
        else:
            from nfcuid.views.tray_icon import TrayNotifier

            notifier = TrayNotifier(
                APP_TITLE,
                audio_enabled=config.audio.enabled,
                repeat_enabled=config.repeat_key.enabled,
            )
            notifier.quit_requested.connect(lambda: self.request_shutdown(0))
            notifier.repeat_requested.connect(self._start_repeat)
            self._tray = notifier

        self.notifications = NotificationService(notifier, config.notifications)
        restart = RestartService(
            config.advanced, self.notifications, shutdown=self.request_shutdown
        )
        service = ReaderService(
            config, PCSCService(), KeyboardService(), self.notifications, restart
        )
        self.reader_service = service

        self.reader_thread = ReaderThread(service)
        self.reader_thread.service_stopped.connect(self.request_shutdown)
        if self._tray is not None:
            self.reader_thread.status_changed.connect(self._tray.show_status)
        elif config.repeat_key.enabled:
            self.command_thread = CommandThread(service.repeat_last_input)
            self.reader_thread.status_changed.connect(self._start_commands)

        if config.updates.enabled:
            self.update_thread = UpdateCheckThread(
                UpdateService(self.notifications), config.updates.check_interval_hours
            )
            self.update_thread.update_available.connect(self._on_update_available)

    def _start_repeat(self) -> None:
        """Tray action: type the last output again without blocking the GUI thread."""
        threading.Thread(
            target=self.reader_service.repeat_last_input, name="repeat", daemon=True
        ).start()

    def _start_commands(self, status) -> None:
        # The console belongs to the device prompt until scanning starts
        thread = self.command_thread
        if thread is not None and status.is_scanning and thread.ident is None:
            thread.start()

    def _on_update_available(self, tag_name: str) -> None:
        logger.info(f"Update {tag_name} available")
        if self._tray is not None:
            self._tray.show_update(tag_name)

    def _install_signal_handlers(self) -> None:
        def handle_signal(signum, frame):
            logger.info(f"Received signal {signum}, shutting down")
            self.request_shutdown(0)

        signal.signal(signal.SIGINT, handle_signal)
        signal.signal(signal.SIGTERM, handle_signal)

        # Lets the interpreter run signal handlers while Qt owns the loop
        self._poll_timer = QTimer()
        self._poll_timer.timeout.connect(self._check_shutdown)
        self._poll_timer.start(SHUTDOWN_POLL_MS)

    # =========================================================================
    # Shutdown
    # =========================================================================

    def request_shutdown(self, code: int = 0) -> None:
        """Thread-safe: record the exit code and let the GUI thread exit."""
        if not self._shutdown_requested.is_set():
            self._exit_code = code
            self._shutdown_requested.set()

    def _check_shutdown(self) -> None:
        if self._shutdown_requested.is_set() and self._qt_app is not None:
            self._qt_app.exit(self._exit_code)

    def shutdown(self, code: int) -> int:
        """Stop workers and release the lock. Returns the exit code."""
        logger.info(f"Shutting down with exit code {code}")
        if self._poll_timer is not None:
            self._poll_timer.stop()

        if self.update_thread is not None:
            self.update_thread.stop()
            self.update_thread.wait(THREAD_JOIN_MS)

        if self.command_thread is not None:
            self.command_thread.stop()

        reader_running = False
        if self.reader_thread is not None:
            self.reader_thread.stop()
            reader_running = not self.reader_thread.wait(THREAD_JOIN_MS)

        if self._tray is not None:
            self._tray.hide()
        self.lock.release()

        if reader_running:
            # Blocked in a PC/SC wait, which cannot be interrupted
            logger.info("Reader thread still waiting for the card reader, exiting process")
            logging.shutdown()
            os._exit(code)
        return code


def main(argv: Optional[List[str]] = None) -> int:
    argv = list(sys.argv if argv is None else argv)
    try:
        config, args = load_config(argv[1:])
    except ConfigError as e:
        print(f"Configuration error: {e}")
        return 1

    configure_logging(
        level=level_from_name(config.logging.level),
        log_dir=config.logging.directory,
    )
    if config.auto_restart:
        logger.info("Started by automatic restart")

    return Application(config, no_tray=args.no_tray).run(argv)


if __name__ == "__main__":
    sys.exit(main())
