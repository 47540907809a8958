import io
import os

import pytest

from minishell.builtins import (
    ShellExit,
    builtin_cd,
    builtin_echo,
    builtin_env,
    builtin_exit,
    builtin_export,
    builtin_pwd,
    builtin_unset,
    find_builtin,
)
from minishell.environment import Environment
from minishell.state import ShellState


def make_state(**variables):
    return ShellState(["minishell"], Environment(variables.items()))


def call(builtin, state, *args):
    out, err = io.StringIO(), io.StringIO()
    status = builtin(state, list(args), out, err)
    return status, out.getvalue(), err.getvalue()


@pytest.mark.parametrize(
    "args, expected",
    [
        (["echo", "a", "b"], "a b\n"),
        (["echo", "-n", "a"], "a"),
        (["echo", "-nnn", "-n", "x"], "x"),
        (["echo", "-nx", "y"], "-nx y\n"),
        (["echo"], "\n"),
        (["echo", "-n"], ""),
        (["echo", "a", "-n"], "a -n\n"),
    ],
)
def test_echo(args, expected):
    status, out, _ = call(builtin_echo, make_state(), *args)
    assert status == 0
    assert out == expected


def test_cd_changes_directory_and_updates_pwd(tmp_path, monkeypatch):
    start = tmp_path / "start"
    dest = tmp_path / "dest"
    start.mkdir()
    dest.mkdir()
    monkeypatch.chdir(start)
    state = make_state()
    status, _, err = call(builtin_cd, state, "cd", str(dest))
    assert status == 0
    assert err == ""
    assert os.getcwd() == os.path.realpath(dest)
    assert state.env.get("PWD") == os.getcwd()
    assert state.env.get("OLDPWD") == os.path.realpath(start)


def test_cd_without_home(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    status, _, err = call(builtin_cd, make_state(), "cd")
    assert status == 1
    assert err == "minishell: cd: HOME not set\n"
    assert os.getcwd() == os.path.realpath(tmp_path)


def test_cd_goes_home(tmp_path, monkeypatch):
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.chdir(tmp_path)
    state = make_state(HOME=str(home))
    status, _, _ = call(builtin_cd, state, "cd")
    assert status == 0
    assert os.getcwd() == os.path.realpath(home)


def test_cd_missing_directory(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    missing = str(tmp_path / "missing")
    state = make_state()
    status, _, err = call(builtin_cd, state, "cd", missing)
    assert status == 1
    assert err.startswith("minishell: cd: " + missing + " : ")
    assert "PWD" not in state.env
    assert os.getcwd() == os.path.realpath(tmp_path)


def test_pwd(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    status, out, _ = call(builtin_pwd, make_state(), "pwd")
    assert status == 0
    assert out == os.getcwd() + "\n"


def test_env_prints_valued_variables_sorted():
    state = make_state(B="2", A="1", C=None)
    status, out, _ = call(builtin_env, state, "env")
    assert status == 0
    assert out == "A=1\nB=2\n"


def test_env_rejects_arguments():
    status, out, err = call(builtin_env, make_state(A="1"), "env", "foo")
    assert status == 1
    assert out == ""
    assert err == "env: foo: No such file or directory\n"


def test_env_accepts_env_arguments():
    status, out, _ = call(builtin_env, make_state(A="1"), "env", "env")
    assert status == 0
    assert out == "A=1\n"


def test_export_lists_variables():
    state = make_state(B=None, A="1")
    status, out, _ = call(builtin_export, state, "export")
    assert status == 0
    assert out == 'declare -x A="1"\ndeclare -x B\n'


def test_export_sets_variable():
    state = make_state()
    status, _, _ = call(builtin_export, state, "export", "X=hello", "Y")
    assert status == 0
    assert state.env.get("X") == "hello"
    assert "Y" in state.env
    assert state.env.get("Y") is None


def test_export_invalid_identifier():
    state = make_state()
    status, _, err = call(builtin_export, state, "export", "1A=2", "OK=yes")
    assert status == 1
    assert err == "minishell: export: '1A=2': not a valid identifier\n"
    assert state.env.get("OK") == "yes"
    assert "1A" not in state.env


def test_export_append():
    state = make_state(A="foo")
    status, _, _ = call(builtin_export, state, "export", "A+=bar", "B+=new")
    assert status == 0
    assert state.env.get("A") == "foobar"
    assert state.env.get("B") == "new"


def test_export_without_value_keeps_existing():
    state = make_state(A="keep")
    call(builtin_export, state, "export", "A")
    assert state.env.get("A") == "keep"


def test_unset_removes_and_reports_invalid():
    state = make_state(A="1", B="2")
    status, _, err = call(builtin_unset, state, "unset", "A", "9x")
    assert status == 0
    assert "A" not in state.env
    assert state.env.get("B") == "2"
    assert err == "minishell: unset: '9x': not a valid identifier\n"


def test_exit_without_argument_uses_last_status():
    state = make_state()
    state.exit_status = 3
    out, err = io.StringIO(), io.StringIO()
    with pytest.raises(ShellExit) as info:
        builtin_exit(state, ["exit"], out, err)
    assert info.value.status == 3
    assert out.getvalue() == "exit\n"


def test_exit_with_number():
    with pytest.raises(ShellExit) as info:
        call(builtin_exit, make_state(), "exit", "42")
    assert info.value.status == 42


def test_exit_too_many_arguments():
    status, out, err = call(builtin_exit, make_state(), "exit", "1", "2")
    assert status == 1
    assert out == "exit\n"
    assert err == "minishell: exit: too many arguments\n"


@pytest.mark.parametrize("arg", ["abc", "12a", " 5", "9223372036854775807"])
def test_exit_non_numeric(arg):
    state = make_state()
    out, err = io.StringIO(), io.StringIO()
    with pytest.raises(ShellExit) as info:
        builtin_exit(state, ["exit", arg], out, err)
    assert info.value.status == 255
    assert err.getvalue() == f"minishell: exit: {arg}: numeric argument required\n"


def test_exit_minus_one():
    with pytest.raises(ShellExit) as info:
        call(builtin_exit, make_state(), "exit", "-1")
    assert info.value.status == 255


@pytest.mark.parametrize(
    "argv, expected",
    [
        (["echo", "x"], builtin_echo),
        (["cd"], builtin_cd),
        (["pwd"], builtin_pwd),
        (["export"], builtin_export),
        (["unset"], builtin_unset),
        (["env"], builtin_env),
        (["exit"], builtin_exit),
        (["ls"], None),
        ([], None),
    ],
)
def test_find_builtin(argv, expected):
    assert find_builtin(argv) is expected