"""
Models - Pure Python dataclasses representing application state.

No Qt dependencies in this package.
"""

from .config import (
    ConfigData,
    NFCConfig,
    WebConfig,
    NotificationConfig,
    AudioConfig,
    AdvancedConfig,
    UpdateConfig,
    LoggingConfig,
)
from .errors import (
    ErrorCategory,
    SystemFailureKind,
    NFCUIDError,
    PCSCError,
    NoReadersError,
    DeviceSelectionError,
    CardReadError,
    KeyboardWriteError,
    UIDFormatError,
    ConfigError,
    UpdateCheckError,
    ServiceStoppedError,
    RetryExhaustedError,
    RestartTriggered,
)
from .output_format import CharFlag, OutputFormat
from .status import ServiceStatus

__all__ = [
    "ConfigData",
    "NFCConfig",
    "WebConfig",
    "NotificationConfig",
    "AudioConfig",
    "AdvancedConfig",
    "UpdateConfig",
    "LoggingConfig",
    "ErrorCategory",
    "SystemFailureKind",
    "NFCUIDError",
    "PCSCError",
    "NoReadersError",
    "DeviceSelectionError",
    "CardReadError",
    "KeyboardWriteError",
    "UIDFormatError",
    "ConfigError",
    "UpdateCheckError",
    "ServiceStoppedError",
    "RetryExhaustedError",
    "RestartTriggered",
    "CharFlag",
    "OutputFormat",
    "ServiceStatus",
]
