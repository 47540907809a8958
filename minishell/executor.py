"""Running parsed command trees: builtins, programs and pipelines."""

from __future__ import annotations

import contextlib
import errno
import os
import signal
import subprocess
import sys
import threading
from typing import Optional, TextIO, Union

from minishell.builtins import ShellExit, find_builtin
from minishell.environment import Environment
from minishell.parser import Command, Node, Pipe, Redirection, RedirectionType
from minishell.state import ShellState

_OPEN_FLAGS = {
    RedirectionType.HEREDOC: os.O_RDONLY,
    RedirectionType.INPUT: os.O_RDONLY,
    RedirectionType.APPEND: os.O_WRONLY | os.O_APPEND | os.O_CREAT,
    RedirectionType.OUTPUT: os.O_WRONLY | os.O_TRUNC | os.O_CREAT,
}
_READS = (RedirectionType.HEREDOC, RedirectionType.INPUT)


def find_program(name: str, env: Environment) -> str:
    """Resolve a command name to the path of the program to run.

    A name holding ``/`` is used as given. Otherwise every directory of PATH
    is searched, an empty entry meaning the current directory. Raises
    FileNotFoundError when nothing is found and PermissionError when only
    non-executable candidates exist.
    """
    if not name:
        raise FileNotFoundError(errno.ENOENT, os.strerror(errno.ENOENT), name)
    if "/" in name:
        return name
    search = env.get("PATH")
    if search is None:
        raise FileNotFoundError(errno.ENOENT, os.strerror(errno.ENOENT), name)
    denied = False
    for directory in search.split(":"):
        candidate = os.path.join(directory or ".", name)
        if not os.path.exists(candidate):
            continue
        if os.path.isfile(candidate) and os.access(candidate, os.X_OK):
            return candidate
        denied = True
    if denied:
        raise PermissionError(errno.EACCES, os.strerror(errno.EACCES), name)
    raise FileNotFoundError(errno.ENOENT, os.strerror(errno.ENOENT), name)


def _open_redirections(
    redirections: list[Redirection], stack: contextlib.ExitStack, err: TextIO
) -> Optional[tuple[Optional[int], Optional[int]]]:
    """Open redirections in order; return the last input and output fds."""
    stdin: Optional[int] = None
    stdout: Optional[int] = None
    for redirection in redirections:
        try:
            fd = os.open(redirection.target, _OPEN_FLAGS[redirection.type], 0o664)
        except OSError as exc:
            err.write(
                f"minishell:{redirection.target}:{os.strerror(exc.errno or 0)}\n"
            )
            return None
        stack.callback(os.close, fd)
        if redirection.type in _READS:
            stdin = fd
        else:
            stdout = fd
    return stdin, stdout


def _run_builtin(
    command: Command, state: ShellState, stdout: Optional[int], err: TextIO
) -> int:
    builtin = find_builtin(command.argv)
    with contextlib.ExitStack() as stack:
        fds = _open_redirections(command.redirections, stack, err)
        if fds is None:
            return 1
        target = fds[1] if fds[1] is not None else stdout
        if target is None:
            out: TextIO = sys.stdout
        else:
            out = stack.enter_context(open(target, "w", closefd=False))
        try:
            return builtin(state, command.argv, out, err)
        finally:
            with contextlib.suppress(OSError):
                out.flush()


def _failure_status(name: str, exc: OSError, err: TextIO) -> int:
    code = exc.errno or 0
    if code == errno.ENOENT and "/" not in name:
        err.write(f"minishell: {name}: command not found\n")
    else:
        err.write(f"minishell: {name}: {os.strerror(code)}\n")
    if code == errno.EACCES:
        return 126
    if code == errno.ENOENT:
        return 127
    return 1


def _spawn(
    command: Command,
    state: ShellState,
    stdin: Optional[int],
    stdout: Optional[int],
    err: TextIO,
) -> Union[subprocess.Popen, int]:
    """Start an external command, or return a status if it cannot start."""
    with contextlib.ExitStack() as stack:
        fds = _open_redirections(command.redirections, stack, err)
        if fds is None:
            return 1
        if not command.argv:
            return 0
        name = command.argv[0]
        env = dict(entry.split("=", 1) for entry in state.env.to_envp())
        try:
            path = find_program(name, state.env)
            return subprocess.Popen(
                command.argv,
                executable=path,
                stdin=fds[0] if fds[0] is not None else stdin,
                stdout=fds[1] if fds[1] is not None else stdout,
                env=env,
            )
        except OSError as exc:
            err.write("")
            return _failure_status(name, exc, err)


def _wait(process: Union[subprocess.Popen, int]) -> int:
    if isinstance(process, int):
        return process
    code = process.wait()
    return -code if code < 0 else code


def _copy_state(state: ShellState) -> ShellState:
    env = Environment((name, state.env.get(name)) for name in state.env)
    return ShellState(state.argv, env, state.exit_status)


def _stages(node: Node) -> list[Command]:
    stages = []
    while isinstance(node, Pipe):
        stages.append(node.left)
        node = node.right
    stages.append(node)
    return stages


def _pipeline_builtin(
    command: Command, state: ShellState, stdout: Optional[int], owned: list[int],
    results: dict[int, int], index: int,
) -> None:
    cwd = os.getcwd()
    try:
        results[index] = _run_builtin(command, _copy_state(state), stdout, sys.stderr)
    except ShellExit as exc:
        results[index] = exc.status & 0xFF
    except BrokenPipeError:
        results[index] = 1
    finally:
        with contextlib.suppress(OSError):
            os.chdir(cwd)
        for fd in owned:
            with contextlib.suppress(OSError):
                os.close(fd)


def _execute_pipeline(
    node: Pipe, state: ShellState, stdin: Optional[int], stdout: Optional[int]
) -> int:
    stages = _stages(node)
    results: dict[int, int] = {}
    running: list[tuple[int, Union[subprocess.Popen, int, threading.Thread]]] = []
    in_fd = stdin
    in_owned = False
    for index, command in enumerate(stages):
        owned = [in_fd] if in_owned and in_fd is not None else []
        if index < len(stages) - 1:
            read_end, write_end = os.pipe()
            out_fd: Optional[int] = write_end
            owned.append(write_end)
        else:
            read_end, out_fd = None, stdout
        if find_builtin(command.argv):
            thread = threading.Thread(
                target=_pipeline_builtin,
                args=(command, state, out_fd, owned, results, index),
            )
            thread.start()
            running.append((index, thread))
        else:
            running.append((index, _spawn(command, state, in_fd, out_fd, sys.stderr)))
            for fd in owned:
                os.close(fd)
        in_fd, in_owned = read_end, read_end is not None
    for index, item in running:
        if isinstance(item, threading.Thread):
            item.join()
        else:
            results[index] = _wait(item)
    return results[len(stages) - 1]


def execute(
    node: Node,
    state: ShellState,
    stdin: Optional[int] = None,
    stdout: Optional[int] = None,
) -> int:
    """Run a parsed tree and return its exit status, also stored in ``state``.

    ``stdin`` and ``stdout`` are file descriptors; None means the shell's
    own. A builtin run outside a pipeline may raise ShellExit.
    """
    if isinstance(node, Pipe):
        state.exit_status = _execute_pipeline(node, state, stdin, stdout)
        return state.exit_status
    if find_builtin(node.argv):
        state.exit_status = _run_builtin(node, state, stdout, sys.stderr)
        return state.exit_status
    process = _spawn(node, state, stdin, stdout, sys.stderr)
    ignore = bool(node.argv and state.argv and node.argv[0] == state.argv[0])
    saved = []
    if ignore and threading.current_thread() is threading.main_thread():
        for signum in (signal.SIGINT, signal.SIGQUIT):
            saved.append((signum, signal.signal(signum, signal.SIG_IGN)))
    try:
        state.exit_status = _wait(process)
    finally:
        for signum, handler in saved:
            signal.signal(signum, handler)
    return state.exit_status