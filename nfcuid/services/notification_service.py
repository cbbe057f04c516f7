"""
NotificationService - Throttled user-facing alerts.

Decides whether an error should reach the desktop right now and forwards
the survivors to a Notifier for delivery. The first occurrence of a
category always notifies; repeats follow a per-category schedule so a
sustained failure does not flood the desktop.

Thread safety: the decision and the state update run under one lock.
Delivery happens after the lock is released.
"""

import logging
import threading
from datetime import datetime, timedelta
from typing import Callable, Dict, Optional, TYPE_CHECKING

from ..models.config import NotificationConfig
from ..models.errors import ErrorCategory

if TYPE_CHECKING:
    from .interfaces import INotifier

logger = logging.getLogger(__name__)


APP_TITLE = "NFC Reader"
ERROR_TITLE = "NFC Reader Error"
SYSTEM_ERROR_TITLE = "NFC System Error"
SUCCESS_TITLE = "NFC card read"

# Minimum quiet period after which a repeated error notifies regardless of count
TIME_OVERRIDES = {
    "critical": timedelta(minutes=5),
    ErrorCategory.CARD: timedelta(minutes=2),
    ErrorCategory.SERVICE: timedelta(minutes=3),
    "default": timedelta(minutes=1),
}


def count_schedule_allows(category: ErrorCategory, count: int) -> bool:
    """
    Occurrence-count part of the throttling schedule.

    Args:
        category: Error category
        count: Number of earlier occurrences (0-based)
    """
    if category.is_critical:
        # 1st, 3rd, 5th, then every 10th
        return count in (0, 2, 4) or (count >= 10 and count % 10 == 0)
    if category is ErrorCategory.CARD:
        return count % 5 == 0
    if category is ErrorCategory.SERVICE:
        return count <= 1 or count % 5 == 0
    return count % 3 == 0


def quiet_period(category: ErrorCategory) -> timedelta:
    if category.is_critical:
        return TIME_OVERRIDES["critical"]
    return TIME_OVERRIDES.get(category, TIME_OVERRIDES["default"])


class NotificationService:
    """
    Throttling front-end over a Notifier.

    State per category: when it last produced a notification and how many
    times it has occurred since the last recovery.
    """

    def __init__(
        self,
        notifier: "INotifier",
        config: Optional[NotificationConfig] = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self._notifier = notifier
        self._config = config or NotificationConfig()
        self._clock = clock
        self._lock = threading.Lock()
        self._last_notified: Dict[ErrorCategory, datetime] = {}
        self._error_counts: Dict[ErrorCategory, int] = {}

    @property
    def notifier(self) -> "INotifier":
        return self._notifier

    # =========================================================================
    # Decision
    # =========================================================================

    def should_notify(self, category: ErrorCategory, now: Optional[datetime] = None) -> bool:
        """Pure throttling decision for a new error of this category."""
        now = now or self._clock()
        with self._lock:
            return self._should_notify_locked(category, now)

    def _should_notify_locked(self, category: ErrorCategory, now: datetime) -> bool:
        last = self._last_notified.get(category)
        if last is None:
            return True

        count = self._error_counts.get(category, 0)
        if count_schedule_allows(category, count):
            return True
        return now - last >= quiet_period(category)

    def _record_error(self, category: ErrorCategory) -> Optional[int]:
        """
        Decide and update state in one step.

        Returns:
            Number of earlier occurrences if a notification should be
            delivered, else None
        """
        now = self._clock()
        with self._lock:
            notify = self._should_notify_locked(category, now)
            count = self._error_counts.get(category, 0)
            self._error_counts[category] = count + 1
            if notify:
                self._last_notified[category] = now
                return count
            return None

    # =========================================================================
    # Notifications
    # =========================================================================

    def notify_info(self, title: str, message: str) -> None:
        """Informational message, never throttled."""
        if not self._config.enabled:
            return
        self._deliver(title, message, "info")

    def notify_error(
        self, message: str, category: ErrorCategory = ErrorCategory.GENERAL
    ) -> None:
        """Error from the application itself, throttled by its category."""
        self._notify_throttled(category, message, ERROR_TITLE)

    def notify_error_throttled(self, category: ErrorCategory, message: str) -> None:
        """Error from the PC/SC system, throttled by its category."""
        self._notify_throttled(category, message, SYSTEM_ERROR_TITLE)

    def _notify_throttled(self, category: ErrorCategory, message: str, title: str) -> None:
        if not self._config.enabled or not self._config.show_errors:
            return

        earlier = self._record_error(category)
        if earlier is None:
            logger.debug(f"Suppressed {category.value} notification: {message}")
            return

        # Count of earlier occurrences, shown once there were at least two
        if earlier > 1:
            title = f"{title} (x{earlier})"
        self._deliver(title, message, "error")

    def notify_success(self, message: str) -> bool:
        """
        Announce a success, but only when recovering from errors.

        Clears every category's occurrence count when it fires.

        Returns:
            True if a notification was delivered
        """
        with self._lock:
            if not any(count > 0 for count in self._error_counts.values()):
                return False
            self._error_counts.clear()

        # Recovery resets the counts even when success toasts are disabled
        if not self._config.enabled or not self._config.show_success:
            return False
        self._deliver(SUCCESS_TITLE, message, "success")
        return True

    def play_sound(self, success: bool) -> None:
        self._notifier.play_sound(success)

    def _deliver(self, title: str, message: str, level: str) -> None:
        try:
            self._notifier.notify(title, message, level)
        except Exception as e:
            logger.warning(f"Failed to deliver {level} notification: {e}")

    # =========================================================================
    # Introspection
    # =========================================================================

    def has_recent_errors(self) -> bool:
        with self._lock:
            return any(count > 0 for count in self._error_counts.values())

    def error_count(self, category: ErrorCategory) -> int:
        with self._lock:
            return self._error_counts.get(category, 0)
