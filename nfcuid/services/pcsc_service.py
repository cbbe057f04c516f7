"""
PCSCService - Low-level PC/SC access via pyscard.

Wraps the smartcard.scard module (the thin SCard* API) so the watcher can
block on SCardGetStatusChange instead of polling. Every failing call is
turned into a typed PCSCError naming the failure kind.
"""

import logging
from typing import List, Optional, Tuple, Union

from ..models.errors import CardReadError, PCSCError, SystemFailureKind

logger = logging.getLogger(__name__)


# Reader state bits (identical across PC/SC implementations)
SCARD_STATE_UNAWARE = 0x00000000
SCARD_STATE_CHANGED = 0x00000002
SCARD_STATE_UNAVAILABLE = 0x00000008
SCARD_STATE_EMPTY = 0x00000010
SCARD_STATE_PRESENT = 0x00000020

INFINITE_TIMEOUT = -1

# GET DATA (UID) pseudo-APDU understood by PC/SC contactless readers
GET_UID_APDU = [0xFF, 0xCA, 0x00, 0x00, 0x00]
SUCCESS_TRAILER = [0x90, 0x00]


def _error_message(hresult: int) -> str:
    try:
        from smartcard.scard import SCardGetErrorMessage
        return SCardGetErrorMessage(hresult)
    except ImportError:
        return f"0x{hresult & 0xFFFFFFFF:08X}"


class PCSCService:
    """
    Service for PC/SC context, reader and card handling.

    Handles are the integers returned by pyscard; they are owned by the
    caller and must be released through this service.
    """

    def establish_context(self) -> int:
        from smartcard.scard import SCardEstablishContext, SCARD_SCOPE_USER, SCARD_S_SUCCESS

        hresult, context = SCardEstablishContext(SCARD_SCOPE_USER)
        if hresult != SCARD_S_SUCCESS:
            raise PCSCError(
                SystemFailureKind.CONTEXT,
                f"Failed to establish context: {_error_message(hresult)}",
                hresult,
            )
        return context

    def list_readers(self, context: int) -> List[str]:
        from smartcard.scard import (
            SCardListReaders,
            SCARD_S_SUCCESS,
            SCARD_E_NO_READERS_AVAILABLE,
        )

        hresult, readers = SCardListReaders(context, [])
        if hresult == SCARD_E_NO_READERS_AVAILABLE:
            return []
        if hresult != SCARD_S_SUCCESS:
            raise PCSCError(
                SystemFailureKind.ENUMERATION,
                f"Failed to list readers: {_error_message(hresult)}",
                hresult,
            )
        return list(readers or [])

    def wait_for_status_change(
        self,
        context: int,
        reader_states: List[Tuple[str, int]],
        timeout: int = INFINITE_TIMEOUT,
    ) -> List[Tuple[str, int]]:
        from smartcard.scard import SCardGetStatusChange, SCARD_S_SUCCESS, INFINITE

        wait_ms = INFINITE if timeout < 0 else timeout
        hresult, new_states = SCardGetStatusChange(context, wait_ms, list(reader_states))
        if hresult != SCARD_S_SUCCESS:
            raise PCSCError(
                SystemFailureKind.STATUS_MONITORING,
                f"Failed to get reader status: {_error_message(hresult)}",
                hresult,
            )
        return [(state[0], state[1]) for state in new_states]

    def connect(self, context: int, reader: str) -> Tuple[int, int]:
        from smartcard.scard import (
            SCardConnect,
            SCARD_S_SUCCESS,
            SCARD_SHARE_SHARED,
            SCARD_PROTOCOL_T0,
            SCARD_PROTOCOL_T1,
        )

        hresult, card, protocol = SCardConnect(
            context, reader, SCARD_SHARE_SHARED, SCARD_PROTOCOL_T0 | SCARD_PROTOCOL_T1
        )
        if hresult != SCARD_S_SUCCESS:
            raise PCSCError(
                SystemFailureKind.CONNECTION,
                f"Failed to connect to card: {_error_message(hresult)}",
                hresult,
            )
        return card, protocol

    def transmit(self, card: int, protocol: int, apdu: List[int]) -> List[int]:
        from smartcard.scard import SCardTransmit, SCARD_S_SUCCESS

        hresult, response = SCardTransmit(card, protocol, list(apdu))
        if hresult != SCARD_S_SUCCESS:
            raise CardReadError(f"Card transmission failed: {_error_message(hresult)}")
        return list(response)

    def disconnect(self, card: int) -> None:
        from smartcard.scard import SCardDisconnect, SCARD_S_SUCCESS, SCARD_RESET_CARD

        hresult = SCardDisconnect(card, SCARD_RESET_CARD)
        if hresult != SCARD_S_SUCCESS:
            logger.warning(f"Failed to disconnect card: {_error_message(hresult)}")

    def release_context(self, context: int) -> None:
        from smartcard.scard import SCardReleaseContext, SCARD_S_SUCCESS

        hresult = SCardReleaseContext(context)
        if hresult != SCARD_S_SUCCESS:
            logger.warning(f"Failed to release context: {_error_message(hresult)}")


class ScriptExhausted(BaseException):
    """Raised by MockPCSCService when the status script runs out."""
    pass


class MockPCSCService(PCSCService):
    """
    Mock PCSCService for testing.

    Simulates readers and cards without requiring actual hardware.
    Status changes and card responses are scripted; when the status script
    is empty, ScriptExhausted (a BaseException) unwinds the caller.
    """

    def __init__(self, readers: Optional[List[str]] = None):
        self.readers: List[str] = list(readers or [])
        self.context_errors = 0
        self.list_errors = 0
        self.connect_errors = 0
        self.status_script: List[Union[int, Exception]] = []
        self.responses: List[Union[List[int], Exception]] = []
        self.calls: List[str] = []
        self.released_contexts: List[int] = []
        self.disconnected_cards: List[int] = []
        self._next_handle = 1

    def _handle(self) -> int:
        handle = self._next_handle
        self._next_handle += 1
        return handle

    def add_card(
        self, uid: List[int], trailer: Optional[List[int]] = None, answers: int = 1
    ) -> None:
        """
        Script one tag tap: present, GET UID response, then removal.

        answers repeats the response for each read attempt on this tap.
        """
        self.status_script.extend([SCARD_STATE_PRESENT, SCARD_STATE_EMPTY])
        for _ in range(answers):
            self.responses.append(list(uid) + list(trailer or SUCCESS_TRAILER))

    def establish_context(self) -> int:
        self.calls.append("establish_context")
        if self.context_errors > 0:
            self.context_errors -= 1
            raise PCSCError(SystemFailureKind.CONTEXT, "Mock context failure")
        return self._handle()

    def list_readers(self, context: int) -> List[str]:
        self.calls.append("list_readers")
        if self.list_errors > 0:
            self.list_errors -= 1
            raise PCSCError(SystemFailureKind.ENUMERATION, "Mock enumeration failure")
        return list(self.readers)

    def wait_for_status_change(
        self,
        context: int,
        reader_states: List[Tuple[str, int]],
        timeout: int = INFINITE_TIMEOUT,
    ) -> List[Tuple[str, int]]:
        self.calls.append("wait_for_status_change")
        if not self.status_script:
            raise ScriptExhausted()
        item = self.status_script.pop(0)
        if isinstance(item, Exception):
            raise item
        return [(name, item) for name, _ in reader_states]

    def connect(self, context: int, reader: str) -> Tuple[int, int]:
        self.calls.append("connect")
        if self.connect_errors > 0:
            self.connect_errors -= 1
            raise PCSCError(SystemFailureKind.CONNECTION, "Mock connection failure")
        return self._handle(), 2

    def transmit(self, card: int, protocol: int, apdu: List[int]) -> List[int]:
        self.calls.append("transmit")
        if not self.responses:
            raise CardReadError("Mock card did not answer")
        item = self.responses.pop(0)
        if isinstance(item, Exception):
            raise item
        return list(item)

    def disconnect(self, card: int) -> None:
        self.calls.append("disconnect")
        self.disconnected_cards.append(card)

    def release_context(self, context: int) -> None:
        self.calls.append("release_context")
        self.released_contexts.append(context)
