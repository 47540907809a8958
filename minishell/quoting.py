"""Quote tracking and quote-marker encoding for command lines."""

from __future__ import annotations

from enum import Enum

ENC_DQ = "\ufdd0"
"""Marker replacing a double quote that opens or closes a quoted section."""

ENC_SQ = "\ufdd1"
"""Marker replacing a single quote that opens or closes a quoted section."""

_MARKERS = {ENC_DQ, ENC_SQ}


class QuoteMode(Enum):
    """Quoting state while scanning a line."""

    UNQUOTED = 1
    S_QUOTED = 2
    D_QUOTED = 3


def _toggle(mode: QuoteMode, char: str, single: str, double: str) -> QuoteMode:
    if char == single:
        if mode is QuoteMode.S_QUOTED:
            return QuoteMode.UNQUOTED
        if mode is QuoteMode.UNQUOTED:
            return QuoteMode.S_QUOTED
    elif char == double:
        if mode is QuoteMode.D_QUOTED:
            return QuoteMode.UNQUOTED
        if mode is QuoteMode.UNQUOTED:
            return QuoteMode.D_QUOTED
    return mode


def switch_mode(mode: QuoteMode, char: str) -> QuoteMode:
    """Return the quoting state after reading a literal character."""
    return _toggle(mode, char, "'", '"')


def encoded_switch_mode(mode: QuoteMode, char: str) -> QuoteMode:
    """Return the quoting state after reading a character of an encoded line."""
    return _toggle(mode, char, ENC_SQ, ENC_DQ)


def encode_quotes(line: str) -> str:
    """Replace every quote that delimits a quoted section with its marker.

    Quotes that are themselves quoted (a single quote inside double quotes
    and the reverse) are left as literal characters.
    """
    mode = QuoteMode.UNQUOTED
    out = []
    for char in line:
        mode = switch_mode(mode, char)
        if char == '"' and mode in (QuoteMode.D_QUOTED, QuoteMode.UNQUOTED):
            char = ENC_DQ
        elif char == "'" and mode in (QuoteMode.S_QUOTED, QuoteMode.UNQUOTED):
            char = ENC_SQ
        out.append(char)
    return "".join(out)


def remove_quotes(text: str) -> str:
    """Drop all quote markers from an encoded string."""
    return "".join(char for char in text if char not in _MARKERS)