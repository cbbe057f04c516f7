"""
UID codec - renders raw tag UIDs as the text that gets typed.

Pure functions, no I/O.
"""

import struct
from dataclasses import dataclass

from ..models.errors import UIDFormatError
from ..models.output_format import OutputFormat


@dataclass
class FormattedUID:
    """Result of formatting a UID."""
    text: str
    fallback: bool = False  # decimal was requested but hex was produced


def uid_to_uint32(uid: bytes) -> int:
    """Interpret a 4-byte UID as an unsigned little-endian integer."""
    if len(uid) != 4:
        raise UIDFormatError(f"UID must be 4 bytes, got {len(uid)} bytes")
    return struct.unpack("<I", bytes(uid))[0]


def uid_to_hex(uid: bytes, upper: bool = False, separator: str = "") -> str:
    byte_format = "{:02X}" if upper else "{:02x}"
    return separator.join(byte_format.format(b) for b in uid)


def format_uid(uid: bytearray, fmt: OutputFormat) -> FormattedUID:
    """
    Format a UID according to the output settings.

    Note: when fmt.reverse is set the given bytearray is reversed in place.

    Args:
        uid: Raw UID bytes as read from the tag
        fmt: Output settings

    Returns:
        FormattedUID; fallback is True when decimal output was requested for
        a UID that is not exactly 4 bytes long
    """
    if fmt.reverse:
        uid.reverse()

    if fmt.decimal:
        try:
            number = uid_to_uint32(uid)
        except UIDFormatError:
            text = uid_to_hex(uid, fmt.caps_lock, fmt.in_char.glyph)
            return FormattedUID(text + fmt.end_char.glyph, fallback=True)

        if fmt.decimal_padding > 0:
            text = str(number).zfill(fmt.decimal_padding)
        else:
            text = str(number)
        return FormattedUID(text + fmt.end_char.glyph)

    text = uid_to_hex(uid, fmt.caps_lock, fmt.in_char.glyph)
    return FormattedUID(text + fmt.end_char.glyph)
