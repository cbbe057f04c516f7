"""
Service interfaces (Protocols) for dependency injection and testing.

These protocols define the contracts that the reader engine consumes,
enabling easy mocking in tests and loose coupling between components.
"""

from typing import Protocol, List, Tuple


class INotifier(Protocol):
    """Delivers notifications unconditionally. Throttling happens upstream."""

    def notify(self, title: str, message: str, level: str = "info") -> None:
        """
        Show a desktop notification.

        Args:
            title: Notification title
            message: Body text
            level: 'info', 'success' or 'error'
        """
        ...

    def play_sound(self, success: bool) -> None:
        """Audible feedback for a card read (success) or a failure."""
        ...


class IPCSCService(Protocol):
    """Interface for the PC/SC smartcard access layer."""

    def establish_context(self) -> int:
        """
        Acquire a PC/SC context.

        Returns:
            Context handle

        Raises:
            PCSCError: kind CONTEXT
        """
        ...

    def list_readers(self, context: int) -> List[str]:
        """
        List reader names. An empty list means no readers are attached.

        Raises:
            PCSCError: kind ENUMERATION
        """
        ...

    def wait_for_status_change(
        self, context: int, reader_states: List[Tuple[str, int]], timeout: int = -1
    ) -> List[Tuple[str, int]]:
        """
        Block until a reader state differs from the given current state.

        Args:
            context: Context handle
            reader_states: (reader name, current state bitmask) pairs
            timeout: Milliseconds, -1 waits forever

        Returns:
            (reader name, event state bitmask) pairs

        Raises:
            PCSCError: kind STATUS_MONITORING
        """
        ...

    def connect(self, context: int, reader: str) -> Tuple[int, int]:
        """
        Connect to the card in a reader.

        Returns:
            (card handle, active protocol)

        Raises:
            PCSCError: kind CONNECTION
        """
        ...

    def transmit(self, card: int, protocol: int, apdu: List[int]) -> List[int]:
        """
        Send an APDU.

        Returns:
            Response bytes including the two status bytes

        Raises:
            CardReadError: transmission failed
        """
        ...

    def disconnect(self, card: int) -> None:
        """Disconnect and reset the card."""
        ...

    def release_context(self, context: int) -> None:
        """Release a context handle."""
        ...


class IKeyboardService(Protocol):
    """Interface for the keystroke sink."""

    def prepare(self) -> None:
        """Called once per session before the first write."""
        ...

    def write(self, text: str) -> None:
        """
        Type text into the focused window.

        Raises:
            KeyboardWriteError: if emulation fails
        """
        ...
