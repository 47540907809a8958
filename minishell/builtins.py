"""Commands the shell runs itself instead of starting a program."""

from __future__ import annotations

import os
import re
from typing import Callable, Optional, Sequence, TextIO

from minishell.environment import is_valid_name
from minishell.state import ShellState

Builtin = Callable[[ShellState, Sequence[str], TextIO, TextIO], int]

_LLONG_MAX = 2**63 - 1
_LLONG_MIN = -(2**63)
_ECHO_OPTION = re.compile(r"-n+")
_LEADING_NUMBER = re.compile(r"[\t\n\v\f\r ]*([+-]?)([0-9]*)")
_NUMERIC = re.compile(r"[+-]?[0-9]*")


class ShellExit(Exception):
    """Raised by ``exit`` to end the shell with ``status``."""

    def __init__(self, status: int) -> None:
        super().__init__(status)
        self.status = status


def _wrap64(value: int) -> int:
    return ((value + 2**63) % 2**64) - 2**63


def _c_div(a: int, b: int) -> int:
    quotient = abs(a) // abs(b)
    return quotient if (a >= 0) == (b > 0) else -quotient


def _atoll(text: str) -> tuple[int, bool]:
    """Parse a leading integer; return the value and whether it overflowed.

    Overflow is detected by the accumulator check used throughout the shell,
    evaluated with 64-bit wrap-around.
    """
    match = _LEADING_NUMBER.match(text)
    sign = -1 if match.group(1) == "-" else 1
    result = 0
    for digit in match.group(2):
        if sign == 1 and _c_div(_LLONG_MAX - result, 10) < result:
            return _LLONG_MAX, True
        if sign == -1 and _c_div(_wrap64(_LLONG_MIN + result), 10) > result:
            return _LLONG_MIN, True
        result = result * 10 + int(digit) * sign
    return result, False


def _is_numeric(text: str) -> bool:
    _, overflowed = _atoll(text)
    return not overflowed and _NUMERIC.fullmatch(text) is not None


def builtin_echo(state: ShellState, argv: Sequence[str], out: TextIO, err: TextIO) -> int:
    """Print the arguments; leading ``-n``, ``-nn``... options drop the newline."""
    words = list(argv[1:])
    newline = True
    while words and _ECHO_OPTION.fullmatch(words[0]):
        newline = False
        words.pop(0)
    out.write(" ".join(words))
    if newline:
        out.write("\n")
    return 0


def builtin_cd(state: ShellState, argv: Sequence[str], out: TextIO, err: TextIO) -> int:
    """Change directory to the argument or to HOME, updating PWD and OLDPWD."""
    if len(argv) == 1:
        target = state.env.get("HOME")
        if target is None:
            err.write("minishell: cd: HOME not set\n")
            return 1
    else:
        target = argv[1]
    try:
        old_pwd = os.getcwd()
    except OSError:
        old_pwd = ""
    try:
        os.chdir(target)
    except OSError as exc:
        err.write(f"minishell: cd: {target} : {os.strerror(exc.errno or 0)}\n")
        return 1
    try:
        new_pwd = os.getcwd()
    except OSError as exc:
        err.write(
            "minishell: cd: error retieving current directory: "
            "getcwd: cannot access parent directories: "
            f"{os.strerror(exc.errno or 0)}\n"
        )
        return 1
    if not old_pwd and state.env.get("PWD") is not None:
        old_pwd = state.env.get("PWD")
    state.env.set("OLDPWD", old_pwd)
    state.env.set("PWD", new_pwd)
    return 0


def builtin_pwd(state: ShellState, argv: Sequence[str], out: TextIO, err: TextIO) -> int:
    """Print the current directory."""
    try:
        cwd = os.getcwd()
    except OSError as exc:
        err.write(f"minishell: pwd: {os.strerror(exc.errno or 0)}\n")
        return 1
    out.write(cwd + "\n")
    return 0


def builtin_env(state: ShellState, argv: Sequence[str], out: TextIO, err: TextIO) -> int:
    """Print every variable that has a value, as ``NAME=value``."""
    for arg in argv[1:]:
        if not arg.startswith("env"):
            err.write(f"env: {arg}: No such file or directory\n")
            return 1
    for name in state.env:
        value = state.env.get(name)
        if value is not None:
            out.write(f"{name}={value}\n")
    return 0


def _print_export(state: ShellState, out: TextIO) -> None:
    for name in state.env:
        value = state.env.get(name)
        line = f"declare -x {name}"
        if value is not None:
            line += f'="{value}"'
        out.write(line + "\n")


def _export_one(state: ShellState, arg: str, err: TextIO) -> bool:
    name, sep, raw = arg.partition("=")
    value: Optional[str] = raw if sep else None
    identifier = name[:-1] if name.endswith("+") else name
    if not is_valid_name(identifier):
        err.write(
            f"minishell: export: '{name}={value or ''}': not a valid identifier\n"
        )
        return False
    if identifier != name:
        current = state.env.get(identifier)
        if current is not None and value is not None:
            value = current + value
    state.env.set(identifier, value)
    return True


def builtin_export(state: ShellState, argv: Sequence[str], out: TextIO, err: TextIO) -> int:
    """Define variables, or list them all when called without arguments.

    ``NAME+=text`` appends to an existing value.
    """
    if len(argv) == 1:
        _print_export(state, out)
        return 0
    results = [_export_one(state, arg, err) for arg in argv[1:]]
    return 0 if all(results) else 1


def builtin_unset(state: ShellState, argv: Sequence[str], out: TextIO, err: TextIO) -> int:
    """Remove variables; invalid names are reported but the status stays 0."""
    for arg in argv[1:]:
        if not arg or not (arg[0].isascii() and (arg[0].isalpha() or arg[0] == "_")):
            err.write(f"minishell: unset: '{arg}': not a valid identifier\n")
        elif not is_valid_name(arg):
            err.write(f"minishell: unset: '{arg}': not a valid identifier")
        else:
            state.env.unset(arg)
    return 0


def builtin_exit(state: ShellState, argv: Sequence[str], out: TextIO, err: TextIO) -> int:
    """Leave the shell by raising ShellExit.

    With too many arguments nothing happens and 1 is returned.
    """
    out.write("exit\n")
    if len(argv) == 1:
        raise ShellExit(state.exit_status)
    if len(argv) > 2:
        err.write("minishell: exit: too many arguments\n")
        return 1
    arg = argv[1]
    if not _is_numeric(arg):
        err.write(f"minishell: exit: {arg}: numeric argument required\n")
        raise ShellExit(255)
    value, _ = _atoll(arg)
    raise ShellExit(value & 0xFF)


_BUILTINS: dict[str, Builtin] = {
    "echo": builtin_echo,
    "cd": builtin_cd,
    "pwd": builtin_pwd,
    "export": builtin_export,
    "unset": builtin_unset,
    "env": builtin_env,
    "exit": builtin_exit,
}


def find_builtin(argv: Sequence[str]) -> Optional[Builtin]:
    """Return the builtin named by ``argv[0]``, or None."""
    if not argv:
        return None
    return _BUILTINS.get(argv[0])