"""Parsing of command lines into commands, redirections and pipelines."""

from __future__ import annotations

import contextlib
import itertools
import os
import tempfile
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Iterator, Optional, Union

from minishell.environment import Environment
from minishell.expand import expand
from minishell.lexer import Lexer, LexError, Token, TokenType
from minishell.quoting import ENC_DQ, ENC_SQ, encode_quotes, remove_quotes
from minishell.wildcard import expand_word

HeredocReader = Callable[[str], Optional[str]]

_HEREDOC_IDS = itertools.count()
_HEREDOC_PROMPT = "> "


class RedirectionType(Enum):
    """Kinds of redirection."""

    HEREDOC = 1
    APPEND = 2
    INPUT = 3
    OUTPUT = 4


_REDIRECTIONS = {
    TokenType.HEREDOC: RedirectionType.HEREDOC,
    TokenType.APPEND: RedirectionType.APPEND,
    TokenType.INPUT: RedirectionType.INPUT,
    TokenType.OUTPUT: RedirectionType.OUTPUT,
}


@dataclass
class Redirection:
    """A redirection and the file it refers to.

    For a here-document ``target`` is the temporary file holding its text.
    """

    type: RedirectionType
    target: str

    def cleanup(self) -> None:
        """Remove the temporary file of a here-document."""
        if self.type is RedirectionType.HEREDOC:
            with contextlib.suppress(OSError):
                os.unlink(self.target)


@dataclass
class Command:
    """A simple command: its words and its redirections, in order."""

    argv: list[str] = field(default_factory=list)
    redirections: list[Redirection] = field(default_factory=list)


@dataclass
class Pipe:
    """Two parts of a pipeline; ``right`` may be a further pipe."""

    left: Command
    right: Union[Command, "Pipe"]


Node = Union[Command, Pipe]


class ParseSyntaxError(Exception):
    """A line that cannot be parsed; ``str()`` is the message to report."""


def cleanup_tree(node: Optional[Node]) -> None:
    """Remove every here-document file referenced by a parsed tree."""
    if node is None:
        return
    if isinstance(node, Pipe):
        cleanup_tree(node.left)
        cleanup_tree(node.right)
        return
    for redirection in node.redirections:
        redirection.cleanup()


def _prompt_reader(prompt: str) -> Optional[str]:
    try:
        return input(prompt)
    except EOFError:
        return None


def _syntax_error(lexer: Lexer, token: Token) -> ParseSyntaxError:
    if token.type is TokenType.EOF or (
        token.type is TokenType.ERROR and lexer.error is LexError.EOF
    ):
        return ParseSyntaxError("minishell: syntax error: unexpected end of file")
    if token.type is TokenType.ERROR:
        return ParseSyntaxError(
            "minishell: syntax error: unrecognized token at position "
            f"{lexer.last_advance + 1}"
        )
    return ParseSyntaxError(
        f"minishell: syntax error near unexpected token '{token.text}'"
    )


class Parser:
    """Turns command lines into trees of commands and pipes.

    Here-documents are read while parsing through ``heredoc_reader``, which
    is called with a prompt and returns a line, or None at end of input.
    Wildcards are matched against the entries of ``directory``.
    """

    def __init__(
        self,
        env: Environment,
        exit_status: int = 0,
        heredoc_reader: Optional[HeredocReader] = None,
        directory: str = ".",
    ) -> None:
        self.env = env
        self.exit_status = exit_status
        self.heredoc_reader = heredoc_reader or _prompt_reader
        self.directory = directory

    def parse(self, line: str) -> Optional[Node]:
        """Parse one line; return None when it holds no command.

        Raises ParseSyntaxError for malformed input and OSError when a file
        needed during parsing cannot be used.
        """
        lexer = Lexer(expand(encode_quotes(line), self.env, self.exit_status))
        created: list[Redirection] = []
        try:
            node = self._pipeline(lexer, created)
            if node is None:
                return None
            token = lexer.next()
            if token.type is not TokenType.EOF:
                raise _syntax_error(lexer, token)
            return node
        except BaseException:
            for redirection in created:
                redirection.cleanup()
            raise

    def _pipeline(self, lexer: Lexer, created: list[Redirection]) -> Optional[Node]:
        command = self._command(lexer, created)
        if command is None:
            return None
        if lexer.peek().type is not TokenType.PIPE:
            return command
        lexer.next()
        right = self._pipeline(lexer, created)
        if right is None:
            raise _syntax_error(lexer, lexer.peek())
        return Pipe(command, right)

    def _command(self, lexer: Lexer, created: list[Redirection]) -> Optional[Command]:
        command = Command()
        while True:
            token = lexer.peek()
            if token.type is TokenType.STR:
                lexer.next()
                command.argv.extend(expand_word(token.text, self.directory))
            elif token.type in _REDIRECTIONS:
                lexer.next()
                word = lexer.next()
                if word.type is not TokenType.STR:
                    raise _syntax_error(lexer, word)
                redirection = self._redirection(_REDIRECTIONS[token.type], word.text)
                created.append(redirection)
                command.redirections.append(redirection)
            else:
                break
        if not command.argv and not command.redirections:
            return None
        return command

    def _redirection(self, kind: RedirectionType, word: str) -> Redirection:
        if kind is RedirectionType.HEREDOC:
            return Redirection(kind, self._heredoc(word))
        names = expand_word(word, self.directory)
        if len(names) != 1:
            raise ParseSyntaxError(f"error redirection in: {remove_quotes(word)}")
        return Redirection(kind, names[0])

    def _heredoc(self, word: str) -> str:
        expand_lines = ENC_SQ not in word and ENC_DQ not in word
        delimiter = remove_quotes(word)
        path = os.path.join(
            tempfile.gettempdir(), f"minishell-heredoc-{next(_HEREDOC_IDS)}"
        )
        try:
            with open(path, "w", encoding="utf-8") as handle:
                for text in self._heredoc_lines(delimiter):
                    if expand_lines:
                        text = expand(text, self.env, self.exit_status)
                    handle.write(text + "\n")
        except BaseException:
            with contextlib.suppress(OSError):
                os.unlink(path)
            raise
        return path

    def _heredoc_lines(self, delimiter: str) -> Iterator[str]:
        while True:
            try:
                text = self.heredoc_reader(_HEREDOC_PROMPT)
            except KeyboardInterrupt:
                return
            if text is None or text == delimiter:
                return
            yield text


def parse(
    line: str,
    env: Environment,
    exit_status: int = 0,
    heredoc_reader: Optional[HeredocReader] = None,
) -> Optional[Node]:
    """Parse one line in the current directory; see Parser.parse."""
    return Parser(env, exit_status, heredoc_reader).parse(line)