"""
ReaderThread - Runs the ReaderService loop off the GUI thread.
"""

import logging
from typing import TYPE_CHECKING

from PyQt5.QtCore import QThread, pyqtSignal

from ..models.errors import ServiceStoppedError
from ..models.status import ServiceStatus

if TYPE_CHECKING:
    from ..services.reader_service import ReaderService

logger = logging.getLogger(__name__)


class ReaderThread(QThread):
    """
    Background thread hosting the read-and-recover loop.

    Signals:
    - status_changed: (ServiceStatus) - Emitted on every status update
    - service_stopped: (exit_code) - Emitted when the loop ends on its own
    """

    status_changed = pyqtSignal(object)
    service_stopped = pyqtSignal(int)

    def __init__(self, service: "ReaderService", parent=None):
        """
        Initialize the reader thread.

        Args:
            service: The reader service to run
            parent: Optional QThread parent
        """
        super().__init__(parent)
        self._service = service
        self._service.on_status = self._emit_status

    @property
    def service(self) -> "ReaderService":
        return self._service

    def _emit_status(self, status: ServiceStatus) -> None:
        self.status_changed.emit(status)

    def run(self):
        """Execute the service loop in the background thread."""
        try:
            self._service.run()
        except ServiceStoppedError as e:
            logger.error(str(e))
            self.service_stopped.emit(1)
            return
        except Exception as e:
            logger.error(f"Reader thread crashed: {e}", exc_info=True)
            self.service_stopped.emit(1)
            return

        if not self._service.is_stopped:
            # Left for a self-restart; the restart service ends the process
            return
        self.service_stopped.emit(0)

    def stop(self):
        """
        Ask the service to stop.

        A PC/SC wait in progress is not interrupted.
        """
        self._service.stop()
