"""Process-wide shell state: arguments, variables and last exit status."""

from __future__ import annotations

import re
from collections.abc import Iterable, Mapping, Sequence
from typing import Optional, Union

from minishell.environment import Environment

_ATOI = re.compile(r"[ \t\n\v\f\r]*([+-]?)([0-9]*)")


def _wrap_int(value: int) -> int:
    return ((value + 2**31) % 2**32) - 2**31


def _atoi(text: str) -> int:
    """Parse a leading decimal integer the way a C ``int`` accumulator does."""
    match = _ATOI.match(text)
    sign, digits = match.group(1), match.group(2)
    if not digits:
        return 0
    value = int(digits)
    return _wrap_int(-value if sign == "-" else value)


class ShellState:
    """Everything the shell keeps between command lines."""

    def __init__(
        self,
        argv: Sequence[str] = (),
        env: Optional[Environment] = None,
        exit_status: int = 0,
    ) -> None:
        self.argv = list(argv)
        self.env = env if env is not None else Environment()
        self.exit_status = exit_status
        self.executing = False
        self.interrupted = False

    @property
    def exit_status(self) -> int:
        """Status of the last command, always in 0..255."""
        return self._exit_status

    @exit_status.setter
    def exit_status(self, value: int) -> None:
        self._exit_status = value & 0xFF

    @classmethod
    def from_environ(
        cls,
        argv: Sequence[str],
        environ: Union[Mapping[str, str], Iterable[str]],
    ) -> "ShellState":
        """Build the start-up state from the program arguments and environment.

        ``environ`` is either a mapping or ``NAME=value`` strings. SHLVL is
        incremented and SHELL is set to the program name.
        """
        if not argv:
            raise ValueError("argv must hold the program name")
        if isinstance(environ, Mapping):
            env = Environment((name, value) for name, value in environ.items() if name)
        else:
            env = Environment.from_strings(
                entry for entry in environ if not entry.startswith("=")
            )
        state = cls(argv, env)
        state.bump_shlvl()
        state.env.set("SHELL", argv[0])
        return state

    def bump_shlvl(self) -> None:
        """Increment SHLVL, starting it at 1 when it has no value."""
        value = self.env.get("SHLVL")
        if value is None:
            self.env.set("SHLVL", "1")
        else:
            self.env.set("SHLVL", str(_wrap_int(_atoi(value) + 1)))