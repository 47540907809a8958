"""Filename expansion of unquoted ``*`` in encoded words."""

from __future__ import annotations

import os

from minishell.quoting import ENC_DQ, ENC_SQ, QuoteMode, encoded_switch_mode, remove_quotes

_MARKERS = (ENC_DQ, ENC_SQ)


def has_wildcard(word: str) -> bool:
    """Return True if the encoded word holds an unquoted ``*``."""
    mode = QuoteMode.UNQUOTED
    for char in word:
        if mode is QuoteMode.UNQUOTED and char == "*":
            return True
        mode = encoded_switch_mode(mode, char)
    return False


def _match(pattern: str, p: int, name: str, n: int, mode: QuoteMode) -> bool:
    start = n
    while True:
        while p < len(pattern) and pattern[p] in _MARKERS:
            mode = encoded_switch_mode(mode, pattern[p])
            p += 1
        if p == len(pattern):
            return n == len(name)
        if mode is QuoteMode.UNQUOTED and pattern[p] == "*":
            while p < len(pattern) and (
                pattern[p] in _MARKERS
                or (mode is QuoteMode.UNQUOTED and pattern[p] == "*")
            ):
                mode = encoded_switch_mode(mode, pattern[p])
                p += 1
            hidden = n == start and name[n:n + 1] == "."
            if hidden or pattern[p:p + 1] == "/":
                return False
            if p == len(pattern):
                return True
            return any(
                _match(pattern, p, name, k, mode) for k in range(n, len(name))
            )
        if n >= len(name) or pattern[p] != name[n]:
            return False
        p += 1
        n += 1


def match(pattern: str, name: str) -> bool:
    """Match a file name against an encoded pattern.

    Only unquoted ``*`` is special. A leading ``*`` never matches a name
    starting with ``.``, and a ``*`` followed by ``/`` matches nothing.
    """
    return _match(pattern, 0, name, 0, QuoteMode.UNQUOTED)


def expand_word(word: str, directory: str = ".") -> list[str]:
    """Expand an encoded word into the sorted matching entries of ``directory``.

    Without a wildcard, or when nothing matches, the word itself is returned
    with its quote markers removed. Raises OSError if the directory cannot be
    read.
    """
    if has_wildcard(word):
        entries = [".", "..", *os.listdir(directory)]
        found = sorted(entry for entry in entries if match(word, entry))
        if found:
            return found
    return [remove_quotes(word)]