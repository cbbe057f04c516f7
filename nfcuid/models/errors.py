"""
Error types for the reader engine.

Every error carries an explicit ErrorCategory chosen where it is raised.
Notification throttling keys off that category, never off message text.
"""

from enum import Enum
from typing import Optional


class ErrorCategory(Enum):
    """Throttling category attached to an error."""
    PCSC_CONTEXT = "pc-sc-context"
    READER = "reader-error"
    CARD = "card-error"
    KEYBOARD = "keyboard-error"
    SERVICE = "service-error"
    BROWSER = "browser-error"
    UPDATE = "update-error"
    GENERAL = "general-error"

    @property
    def is_critical(self) -> bool:
        return self in (ErrorCategory.PCSC_CONTEXT, ErrorCategory.READER)


class SystemFailureKind(Enum):
    """PC/SC failures that count toward the self-restart threshold."""
    CONTEXT = "PC/SC Context"
    ENUMERATION = "Reader Enumeration"
    STATUS_MONITORING = "Reader Status Monitoring"
    CONNECTION = "Reader Connection"

    @property
    def category(self) -> ErrorCategory:
        if self is SystemFailureKind.CONTEXT:
            return ErrorCategory.PCSC_CONTEXT
        return ErrorCategory.READER


class NFCUIDError(Exception):
    """Base exception for nfcuid."""

    category = ErrorCategory.GENERAL

    def __init__(self, message: str, category: Optional[ErrorCategory] = None):
        super().__init__(message)
        self.message = message
        if category is not None:
            self.category = category


class PCSCError(NFCUIDError):
    """A PC/SC call failed."""

    def __init__(self, kind: SystemFailureKind, message: str, hresult: int = 0):
        super().__init__(message, kind.category)
        self.kind = kind
        self.hresult = hresult


class NoReadersError(NFCUIDError):
    """No readers are attached. Not transient, not tracked."""
    category = ErrorCategory.READER


class DeviceSelectionError(NFCUIDError):
    """Configured device number is outside the current reader list."""
    category = ErrorCategory.READER


class CardReadError(NFCUIDError):
    """A single tag returned a short or unsuccessful response."""
    category = ErrorCategory.CARD


class KeyboardWriteError(NFCUIDError):
    """The keystroke sink failed."""
    category = ErrorCategory.KEYBOARD


class UIDFormatError(NFCUIDError):
    """UID cannot be rendered in the requested format."""
    category = ErrorCategory.CARD


class ConfigError(NFCUIDError):
    """Configuration file or command line is invalid."""
    pass


class UpdateCheckError(NFCUIDError):
    """Release lookup failed."""
    category = ErrorCategory.UPDATE


class ServiceStoppedError(NFCUIDError):
    """The service loop gave up because auto-reconnect is disabled."""
    category = ErrorCategory.SERVICE


class RetryExhaustedError(NFCUIDError):
    """All retry attempts failed."""

    def __init__(self, attempts: int, last_error: BaseException):
        category = getattr(last_error, "category", None)
        super().__init__(
            f"operation failed after {attempts} attempts, last error: {last_error}",
            category,
        )
        self.attempts = attempts
        self.last_error = last_error


class RestartTriggered(Exception):
    """
    Raised once the restart sequence has been started.

    Unwinds the reader loop so the failure that triggered the restart is
    not handled a second time as a retryable error.
    """
    pass
