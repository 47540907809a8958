"""Tokeniser for encoded command lines."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from minishell.quoting import QuoteMode, encoded_switch_mode

METACHARACTERS = " \t\n|&()<>"


class TokenType(Enum):
    """Kinds of token; ERROR marks a line that cannot be tokenised."""

    ERROR = -1
    EOF = 0
    PIPE = 1
    INPUT = 2
    OUTPUT = 3
    APPEND = 4
    HEREDOC = 5
    STR = 6


class LexError(Enum):
    """Why the last ERROR token was produced."""

    EOF = 0  # a quoted section is not closed
    EOT = 1  # an unrecognized token


@dataclass(frozen=True)
class Token:
    """A token and the text it covers."""

    type: TokenType
    text: str = ""

    @property
    def length(self) -> int:
        return len(self.text)


_OPERATORS = (
    ("|", TokenType.PIPE),
    ("<<", TokenType.HEREDOC),
    ("<", TokenType.INPUT),
    (">>", TokenType.APPEND),
    (">", TokenType.OUTPUT),
)


class Lexer:
    """Reads tokens from a line whose quotes have been encoded.

    ``offset`` is the absolute position reached, ``last_advance`` the number
    of characters consumed by the most recent step, and ``error`` the reason
    for the most recent ERROR token.
    """

    def __init__(self, line: str) -> None:
        self.line = line
        self.offset = 0
        self.last_advance = 0
        self.error: Optional[LexError] = None

    @property
    def rest(self) -> str:
        return self.line[self.offset:]

    def _advance(self, count: int) -> None:
        count = min(count, len(self.line) - self.offset)
        self.offset += count
        self.last_advance = count

    def _skip_spaces(self) -> None:
        rest = self.rest
        self._advance(len(rest) - len(rest.lstrip(" ")))

    def _word(self) -> Token:
        mode = QuoteMode.UNQUOTED
        length = 0
        for char in self.rest:
            if mode is QuoteMode.UNQUOTED and char in METACHARACTERS:
                break
            mode = encoded_switch_mode(mode, char)
            length += 1
        if length == 0:
            self.error = LexError.EOT
            return Token(TokenType.ERROR)
        if mode is not QuoteMode.UNQUOTED:
            self.error = LexError.EOF
            return Token(TokenType.ERROR)
        return Token(TokenType.STR, self.rest[:length])

    def peek(self) -> Token:
        """Return the next token without consuming it (leading spaces are)."""
        self._skip_spaces()
        rest = self.rest
        if not rest:
            return Token(TokenType.EOF)
        for text, kind in _OPERATORS:
            if rest.startswith(text):
                return Token(kind, text)
        return self._word()

    def next(self) -> Token:
        """Return the next token and consume it."""
        token = self.peek()
        self._advance(token.length)
        return token