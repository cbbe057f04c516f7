"""
Services - Business logic without Qt dependencies.

Services handle PC/SC access, the read-and-recover engine, keystrokes,
configuration and notification throttling.
"""

from .card_watcher import CardWatcher, WatcherState
from .config_service import ConfigService, MockConfigService, load_config
from .instance_lock import InstanceLock
from .keyboard_service import KeyboardService, MockKeyboardService
from .last_content import LastContent
from .notification_service import NotificationService
from .notifier import ConsoleNotifier, MockNotifier
from .pcsc_service import PCSCService, MockPCSCService
from .reader_service import ReaderService
from .restart_service import RestartService
from .retry import RetryPolicy
from .uid_codec import FormattedUID, format_uid
from .update_service import UpdateService, is_newer_version

__all__ = [
    "CardWatcher",
    "WatcherState",
    "ConfigService",
    "MockConfigService",
    "load_config",
    "InstanceLock",
    "KeyboardService",
    "MockKeyboardService",
    "LastContent",
    "NotificationService",
    "ConsoleNotifier",
    "MockNotifier",
    "PCSCService",
    "MockPCSCService",
    "ReaderService",
    "RestartService",
    "RetryPolicy",
    "FormattedUID",
    "format_uid",
    "UpdateService",
    "is_newer_version",
]
