"""The interactive loop: read lines, parse and run them."""

from __future__ import annotations

import contextlib
import os
import signal
import sys
from typing import Iterable, Iterator, Optional, Sequence, TextIO

from minishell.builtins import ShellExit
from minishell.executor import execute
from minishell.parser import ParseSyntaxError, Parser, cleanup_tree
from minishell.state import ShellState

PROMPT = "minishell> "

try:
    import readline as _readline
except ImportError:  # pragma: no cover - platform without readline
    _readline = None


def _remember(line: str) -> None:
    if _readline is not None and line.strip(" \t\n"):
        _readline.add_history(line)


def run(state: ShellState, lines: Iterable[str], out: TextIO) -> int:
    """Run each line in turn; return the final exit status.

    On end of input ``exit`` is written to ``out``. The ``exit`` builtin
    ends the loop early.
    """
    for line in lines:
        _remember(line)
        parser = Parser(state.env, state.exit_status)
        try:
            node = parser.parse(line)
        except ParseSyntaxError as exc:
            sys.stderr.write(f"{exc}\n")
            continue
        except OSError as exc:
            sys.stderr.write(f"minishell: {os.strerror(exc.errno or 0)}\n")
            continue
        if node is None:
            continue
        state.executing = True
        try:
            execute(node, state)
        except ShellExit as exc:
            return exc.status & 0xFF
        except OSError as exc:
            sys.stderr.write(f"minishell: {os.strerror(exc.errno or 0)}\n")
            state.exit_status = 1
        finally:
            state.executing = False
            cleanup_tree(node)
    out.write("exit\n")
    return state.exit_status


def _install_signals(state: ShellState) -> None:
    def on_interrupt(signum, frame):
        if state.executing:
            sys.stdout.write("\n")
            sys.stdout.flush()
            return
        raise KeyboardInterrupt

    def on_quit(signum, frame):
        if state.executing:
            sys.stdout.write(f"Quit: {signum}\n")
            sys.stdout.flush()

    signal.signal(signal.SIGINT, on_interrupt)
    with contextlib.suppress(AttributeError):
        signal.signal(signal.SIGQUIT, on_quit)


def _prompt_lines(state: ShellState) -> Iterator[str]:
    while True:
        try:
            yield input(PROMPT)
        except KeyboardInterrupt:
            sys.stdout.write("\n")
            state.exit_status = 128 + signal.SIGINT
            yield ""
        except EOFError:
            return


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Start the interactive shell and return its exit status."""
    args = list(argv) if argv else list(sys.argv[:1] or ["minishell"])
    try:
        state = ShellState.from_environ(args, os.environ)
    except ValueError as exc:
        sys.stderr.write(f"minishell: {exc}\n")
        return 1
    _install_signals(state)
    return run(state, _prompt_lines(state), sys.stdout)


if __name__ == "__main__":
    sys.exit(main())