"""
UpdateCheckThread - Periodic release check without blocking the UI.
"""

from threading import Event
from typing import TYPE_CHECKING

from PyQt5.QtCore import QThread, pyqtSignal

if TYPE_CHECKING:
    from ..services.update_service import UpdateService


class UpdateCheckThread(QThread):
    """
    Runs UpdateService.perform_check() now and then every interval.

    Signals:
    - update_available: (tag_name) - Emitted when a newer release exists
    """

    update_available = pyqtSignal(str)

    def __init__(self, service: "UpdateService", interval_hours: float = 24.0, parent=None):
        super().__init__(parent)
        self._service = service
        self._interval = max(interval_hours, 0.0) * 3600
        self._stop_event = Event()

    def run(self):
        while not self._stop_event.is_set():
            release = self._service.perform_check()
            if release is not None:
                self.update_available.emit(release.tag_name)
            if self._interval <= 0:
                return
            self._stop_event.wait(self._interval)

    def stop(self):
        """Stop the checking thread."""
        self._stop_event.set()
