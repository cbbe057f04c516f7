"""
TrayIcon - System tray presence and desktop notification delivery.

Notifications may be requested from worker threads; they are forwarded to
the GUI thread through a queued signal before QSystemTrayIcon is touched.
"""

import logging
from typing import Optional

from PyQt5.QtCore import QObject, Qt, pyqtSignal
from PyQt5.QtGui import QIcon
from PyQt5.QtWidgets import QAction, QApplication, QMenu, QStyle, QSystemTrayIcon

from ..models.status import ServiceStatus

logger = logging.getLogger(__name__)

MESSAGE_TIMEOUT_MS = 5000

_ICONS = {
    "info": QSystemTrayIcon.Information,
    "success": QSystemTrayIcon.Information,
    "error": QSystemTrayIcon.Critical,
}


def tooltip_text(app_name: str, status: str = "", update_tag: str = "") -> str:
    lines = [app_name]
    if status:
        lines.append(status)
    if update_tag:
        lines.append(f"Update available: {update_tag}")
    return "\n".join(lines)


class TrayNotifier(QObject):
    """
    Notifier backed by a QSystemTrayIcon.

    Falls back to log-only delivery when the desktop has no system tray.

    Signals:
    - quit_requested: Quit was chosen from the tray menu
    - repeat_requested: Repeat last input was chosen from the tray menu
    """

    quit_requested = pyqtSignal()
    repeat_requested = pyqtSignal()

    # Internal, carries deliveries into the GUI thread
    _message_signal = pyqtSignal(str, str, str)  # title, message, level
    _sound_signal = pyqtSignal(bool)
    _tooltip_signal = pyqtSignal(str)

    def __init__(
        self,
        app_name: str = "NFC Reader",
        audio_enabled: bool = True,
        repeat_enabled: bool = False,
        parent=None,
    ):
        super().__init__(parent)
        self._app_name = app_name
        self._audio_enabled = audio_enabled
        self._repeat_enabled = repeat_enabled
        self._tray: Optional[QSystemTrayIcon] = None
        self._status_text = ""
        self._update_tag = ""

        if QSystemTrayIcon.isSystemTrayAvailable():
            self._tray = self._create_tray()
        else:
            logger.warning("System tray not available, notifications go to the log only")

        self._message_signal.connect(self._show_message, Qt.QueuedConnection)
        self._sound_signal.connect(self._beep, Qt.QueuedConnection)
        self._tooltip_signal.connect(self._set_tooltip, Qt.QueuedConnection)

    @property
    def available(self) -> bool:
        return self._tray is not None

    def _create_tray(self) -> QSystemTrayIcon:
        icon = QIcon.fromTheme(
            "nfc",
            QApplication.style().standardIcon(QStyle.SP_DriveNetIcon),
        )
        tray = QSystemTrayIcon(icon, self)
        tray.setToolTip(self._app_name)

        menu = QMenu()
        if self._repeat_enabled:
            repeat_action = QAction("Repeat last input", menu)
            repeat_action.triggered.connect(self.repeat_requested.emit)
            menu.addAction(repeat_action)
            menu.addSeparator()
        quit_action = QAction("Quit", menu)
        quit_action.triggered.connect(self.quit_requested.emit)
        menu.addAction(quit_action)
        tray.setContextMenu(menu)
        self._menu = menu  # keep a reference, Qt does not own it

        tray.show()
        return tray

    # =========================================================================
    # Notifier interface (any thread)
    # =========================================================================

    def notify(self, title: str, message: str, level: str = "info") -> None:
        log = logger.error if level == "error" else logger.info
        log(f"{title}: {message}")
        self._message_signal.emit(title, message, level)

    def play_sound(self, success: bool) -> None:
        if self._audio_enabled:
            self._sound_signal.emit(success)

    def show_status(self, status: ServiceStatus) -> None:
        """Mirror the reader status in the tooltip."""
        self._status_text = status.summary
        self._tooltip_signal.emit(self._tooltip())

    def show_update(self, tag_name: str) -> None:
        """Keep a pending update visible in the tooltip."""
        self._update_tag = tag_name
        self._tooltip_signal.emit(self._tooltip())

    def _tooltip(self) -> str:
        return tooltip_text(self._app_name, self._status_text, self._update_tag)

    # =========================================================================
    # GUI thread slots
    # =========================================================================

    def _show_message(self, title: str, message: str, level: str) -> None:
        if self._tray is None:
            return
        icon = _ICONS.get(level, QSystemTrayIcon.Information)
        self._tray.showMessage(title, message, icon, MESSAGE_TIMEOUT_MS)

    def _beep(self, success: bool) -> None:
        QApplication.beep()
        if not success:
            QApplication.beep()

    def _set_tooltip(self, text: str) -> None:
        if self._tray is not None:
            self._tray.setToolTip(text)

    def hide(self) -> None:
        if self._tray is not None:
            self._tray.hide()
