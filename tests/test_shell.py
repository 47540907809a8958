import io
import os

from minishell.environment import Environment
from minishell.shell import run
from minishell.state import ShellState


def _state():
    return ShellState(["minishell"], Environment([("PATH", os.environ.get("PATH", ""))]))


def test_end_of_input_writes_exit():
    out = io.StringIO()
    assert run(_state(), [], out) == 0
    assert out.getvalue() == "exit\n"


def test_exit_builtin_stops_loop(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    out = io.StringIO()
    assert run(_state(), ["exit 5", "echo later > f"], out) == 5
    assert not (tmp_path / "f").exists()
    assert out.getvalue() == ""


def test_redirected_echo_and_status(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    state = _state()
    run(state, ["echo hi > f"], io.StringIO())
    assert (tmp_path / "f").read_text() == "hi\n"
    assert state.exit_status == 0


def test_status_expands_in_next_line(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    state = _state()
    status = run(state, ["no-such-command-xyz", "echo $? > f"], io.StringIO())
    assert (tmp_path / "f").read_text() == "127\n"
    assert status == 0


def test_syntax_error_keeps_status(capsys):
    state = _state()
    state.exit_status = 3
    assert run(state, ["echo |"], io.StringIO()) == 3
    assert "syntax error" in capsys.readouterr().err


def test_export_persists_between_lines(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    state = _state()
    run(state, ["export NAME=value", "echo $NAME > f"], io.StringIO())
    assert state.env.get("NAME") == "value"
    assert (tmp_path / "f").read_text() == "value\n"