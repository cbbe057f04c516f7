"""
CardWatcher - Card presence state machine over a PC/SC session.

States run in order:

    CONTEXT_PENDING -> CONTEXT_ESTABLISHED -> READERS_LISTED
    -> DEVICE_SELECTED -> AWAITING_CARD -> CARD_PRESENT -> AWAITING_RELEASE

and loop from AWAITING_RELEASE back to AWAITING_CARD. Any unrecovered
error unwinds to CONTEXT_PENDING via release().

Context acquisition, status-change waits and card reads are retried
through RetryPolicy; each failed PC/SC attempt is reported to the RestartService.
The watcher never logs errors for the user or notifies: it raises typed
errors and leaves the decision to the ReaderService.
"""

import logging
from enum import Enum
from typing import Callable, List, Optional, TYPE_CHECKING

from ..models.errors import (
    CardReadError,
    DeviceSelectionError,
    NoReadersError,
    PCSCError,
    RestartTriggered,
)
from .pcsc_service import (
    GET_UID_APDU,
    INFINITE_TIMEOUT,
    SCARD_STATE_CHANGED,
    SCARD_STATE_EMPTY,
    SCARD_STATE_PRESENT,
    SCARD_STATE_UNAWARE,
    SUCCESS_TRAILER,
)
from .retry import RetryPolicy

if TYPE_CHECKING:
    from .interfaces import IPCSCService
    from .restart_service import RestartService

logger = logging.getLogger(__name__)


class WatcherState(Enum):
    CONTEXT_PENDING = "context_pending"
    CONTEXT_ESTABLISHED = "context_established"
    READERS_LISTED = "readers_listed"
    DEVICE_SELECTED = "device_selected"
    AWAITING_CARD = "awaiting_card"
    CARD_PRESENT = "card_present"
    AWAITING_RELEASE = "awaiting_release"


def parse_uid_response(response: List[int]) -> bytearray:
    """
    Split a GET UID response into the UID.

    Raises:
        CardReadError: response shorter than the status trailer, or the
            trailer is not 90 00
    """
    if len(response) < 2:
        raise CardReadError("insufficient response bytes from card")

    trailer = list(response[-2:])
    if trailer != SUCCESS_TRAILER:
        raise CardReadError(
            "card operation failed, response code: "
            + " ".join(f"{b:02x}" for b in trailer)
        )
    return bytearray(response[:-2])


def prompt_device_number(
    reader_count: int,
    input_func: Callable[[str], str] = input,
    output_func: Callable[[str], None] = print,
) -> int:
    """Ask on the console until a valid 1-based reader number is entered."""
    while True:
        answer = input_func("Enter device number to start: ").strip()
        try:
            number = int(answer)
        except ValueError:
            output_func("Please input integer value")
            continue
        if number < 1 or number > reader_count:
            output_func(f"Value should be between 1 and {reader_count}")
            continue
        return number


class CardWatcher:
    """
    Drives one PC/SC session from context acquisition to card release.

    Args:
        pcsc: Smartcard access layer
        retry: Retry policy for fallible PC/SC steps
        restart_service: Failure tracker receiving every system failure
        device: Configured 1-based reader number, 0 to prompt
        input_func: Console input for interactive selection
    """

    def __init__(
        self,
        pcsc: "IPCSCService",
        retry: RetryPolicy,
        restart_service: "RestartService",
        device: int = 0,
        input_func: Callable[[str], str] = input,
    ):
        self._pcsc = pcsc
        self._retry = retry
        self._restart = restart_service
        self._device = device
        self._input = input_func

        self.state = WatcherState.CONTEXT_PENDING
        self.context: Optional[int] = None
        self.readers: List[str] = []
        self.device_index: int = 0  # 1-based, valid after select_device()
        self._card_index: int = 0

    @property
    def reader_name(self) -> Optional[str]:
        if self.device_index < 1:
            return None
        return self.readers[self.device_index - 1]

    def _tracked(self, step: Callable):
        """Wrap a PC/SC step so each failure is reported to the tracker."""
        def attempt():
            try:
                return step()
            except PCSCError as e:
                if self._restart.track_failure(e.kind, e):
                    raise RestartTriggered() from e
                raise
        return attempt

    # =========================================================================
    # Session setup
    # =========================================================================

    def establish_context(self) -> int:
        """
        CONTEXT_PENDING -> CONTEXT_ESTABLISHED.

        Raises:
            RetryExhaustedError: every attempt failed
            RestartTriggered: the failure threshold was reached
        """
        self.context = self._retry.run(
            self._tracked(self._pcsc.establish_context), "Establish PC/SC context"
        )
        self.state = WatcherState.CONTEXT_ESTABLISHED
        logger.info("PC/SC context established successfully")
        return self.context

    def list_readers(self) -> List[str]:
        """
        CONTEXT_ESTABLISHED -> READERS_LISTED.

        Raises:
            PCSCError: enumeration failed (tracked)
            NoReadersError: nothing attached
        """
        try:
            readers = self._pcsc.list_readers(self.context)
        except PCSCError as e:
            if self._restart.track_failure(e.kind, e):
                raise RestartTriggered() from e
            raise

        if not readers:
            raise NoReadersError(
                "No NFC reader found. Please connect a reader."
            )
        self.readers = list(readers)
        self.state = WatcherState.READERS_LISTED
        return self.readers

    def select_device(self, readers: Optional[List[str]] = None) -> int:
        """
        READERS_LISTED -> DEVICE_SELECTED.

        The configured number is checked against the current enumeration
        because the reader set can change between sessions.

        Returns:
            The selected 1-based reader number

        Raises:
            DeviceSelectionError: configured number out of range
        """
        if readers is not None:
            self.readers = list(readers)
        count = len(self.readers)

        if self._device == 0:
            self.device_index = prompt_device_number(count, self._input)
        elif 1 <= self._device <= count:
            self.device_index = self._device
        else:
            raise DeviceSelectionError(
                f"device number should be between 1 and {count}, got: {self._device}"
            )

        self.state = WatcherState.DEVICE_SELECTED
        return self.device_index

    # =========================================================================
    # Card loop
    # =========================================================================

    def wait_for_card(self) -> int:
        """
        Block until a card is present. -> AWAITING_CARD -> CARD_PRESENT.

        There is no timeout: an idle reader is a valid state.

        Returns:
            Index of the reader holding the card within the watched list
        """
        self.state = WatcherState.AWAITING_CARD
        index = self._retry.run(
            self._tracked(self._wait_until_present), "Wait for card"
        )
        self._card_index = index
        self.state = WatcherState.CARD_PRESENT
        return index

    def _wait_until_present(self) -> int:
        watched = [self.reader_name]
        states = [(name, SCARD_STATE_UNAWARE) for name in watched]
        while True:
            events = self._pcsc.wait_for_status_change(self.context, states, INFINITE_TIMEOUT)
            for index, (_, event_state) in enumerate(events):
                if event_state & SCARD_STATE_PRESENT:
                    return index
            states = [(name, event & ~SCARD_STATE_CHANGED) for name, event in events]

    def read_uid(self) -> bytearray:
        """
        Connect, send GET UID and return the UID bytes.

        Connect, transmit and the trailer check are retried together. Only
        connection failures count toward a restart; a bad answer stays local
        to this card.

        Raises:
            RetryExhaustedError: every attempt failed
            RestartTriggered: the failure threshold was reached
        """
        return self._retry.run(self._read_uid_once, "Read card UID")

    def _read_uid_once(self) -> bytearray:
        card, protocol = self._tracked(
            lambda: self._pcsc.connect(self.context, self.reader_name)
        )()
        logger.info(f"Connected to card on {self.reader_name}")
        try:
            response = self._pcsc.transmit(card, protocol, GET_UID_APDU)
            return parse_uid_response(response)
        finally:
            self._pcsc.disconnect(card)
            logger.debug(f"Disconnected from card on {self.reader_name}")

    def wait_for_release(self) -> None:
        """Block until the card is removed. -> AWAITING_RELEASE -> AWAITING_CARD."""
        self.state = WatcherState.AWAITING_RELEASE
        self._retry.run(self._tracked(self._wait_until_empty), "Wait for card removal")
        self.state = WatcherState.AWAITING_CARD

    def _wait_until_empty(self) -> None:
        states = [(self.reader_name, SCARD_STATE_PRESENT)]
        while True:
            events = self._pcsc.wait_for_status_change(self.context, states, INFINITE_TIMEOUT)
            name, event_state = events[0]
            if event_state & SCARD_STATE_EMPTY:
                return
            states = [(name, event_state & ~SCARD_STATE_CHANGED)]

    # =========================================================================
    # Teardown
    # =========================================================================

    def release(self) -> None:
        """Release the context and return to CONTEXT_PENDING."""
        if self.context is not None:
            try:
                self._pcsc.release_context(self.context)
                logger.info("PC/SC context released")
            finally:
                self.context = None
        self.state = WatcherState.CONTEXT_PENDING
