"""
Output formatting models for UID rendering.
"""

from dataclasses import dataclass
from enum import Enum
from typing import List, Optional


class CharFlag(Enum):
    """Separator/terminator glyphs that can be typed around a UID."""
    NONE = "none"
    SPACE = "space"
    TAB = "tab"
    HYPHEN = "hyphen"
    ENTER = "enter"
    SEMICOLON = "semicolon"
    COLON = "colon"
    COMMA = "comma"

    @property
    def glyph(self) -> str:
        return _GLYPHS[self]

    @classmethod
    def parse(cls, name: str) -> Optional["CharFlag"]:
        """Look up a flag by name, case-insensitively. Returns None if unknown."""
        try:
            return cls(str(name).strip().lower())
        except ValueError:
            return None

    @classmethod
    def options(cls) -> List[str]:
        return [flag.value for flag in cls]


_GLYPHS = {
    CharFlag.NONE: "",
    CharFlag.SPACE: " ",
    CharFlag.TAB: "\t",
    CharFlag.HYPHEN: "-",
    CharFlag.ENTER: "\n",
    CharFlag.SEMICOLON: ";",
    CharFlag.COLON: ":",
    CharFlag.COMMA: ",",
}


@dataclass
class OutputFormat:
    """How a UID is rendered before it is typed."""
    caps_lock: bool = False
    reverse: bool = False
    decimal: bool = False
    decimal_padding: int = 0
    end_char: CharFlag = CharFlag.NONE
    in_char: CharFlag = CharFlag.NONE
