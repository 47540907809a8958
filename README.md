# minishell

minishell is a small interactive command shell. It reads command lines,
expands variables and wildcards, and runs commands. Commands can be joined
by pipes and can use file redirections and here-documents.

## Installation

```
pip install .
```

## Usage

Start the shell:

```
minishell
```

The shell shows the prompt `minishell> ` and runs each line read from
standard input. Ctrl-C at the prompt discards the line and sets the status
to 130. At end of input (Ctrl-D) the shell prints `exit` and stops with the
status of the last command. At startup it raises `SHLVL` by one and sets
`SHELL` to the program name.

### What a command line may contain

- Words separated by spaces. Single quotes keep text exactly as written.
  Double quotes keep text as part of one word, but `$` expansions still
  happen inside them. The quote characters themselves are removed.
- `$NAME` is replaced by the value of a variable. An unset variable gives
  an empty string. `$?` is replaced by the status of the last command. A
  `$` that is not followed by a name stays as it is.
- An unquoted `*` is matched against the entries of the current directory.
  The matches come out in sorted order. A `*` at the start of a pattern
  does not match names that begin with a dot. If nothing matches, the word
  is kept as written.
- Pipes: `cmd1 | cmd2 | cmd3`.
- Redirections: `< file`, `> file` (truncate), `>> file` (append) and
  `<< DELIM` (here-document). A redirection word that contains a wildcard
  must match exactly one file. The lines of a here-document are expanded
  unless the delimiter contains quotes. The text of a here-document is kept
  in a temporary file named `minishell-heredoc-N`, which is removed once the
  command has run.

Syntax errors are reported on standard error, and the line is skipped.

### Builtins

| Command | What it does |
|---|---|
| `echo [-n...] args` | Prints its arguments. Leading `-n`, `-nn`, ... options suppress the newline. |
| `cd [dir]` | Changes directory, to `HOME` if no directory is given. Updates `PWD` and `OLDPWD`. |
| `pwd` | Prints the current directory. |
| `env` | Prints every variable that has a value, as `NAME=value`. |
| `export` | With no arguments, lists all variables as `declare -x NAME="value"`. `NAME=value` sets a variable, `NAME` declares it without a value, and `NAME+=text` appends to it. |
| `unset NAME...` | Removes variables. Invalid names are reported, but the status stays 0. |
| `exit [status]` | Leaves the shell. A non-numeric argument gives status 255. With more than one argument it prints an error and returns 1. |

When a builtin runs inside a pipeline, it works on a copy of the shell's
state. Changes it makes to variables or to the directory do not last, and
`exit` there does not end the shell.

Any other command is looked up in `PATH`, where an empty entry means the
current directory. A name containing `/` is used as given. A command that
is not found gives status 127. A command that cannot be executed gives
status 126. A command killed by a signal gives the signal number as its
status.

## Using it from Python

```python
import io
from minishell.state import ShellState
from minishell.shell import run

state = ShellState.from_environ(["minishell"], {"PATH": "/usr/bin:/bin"})
out = io.StringIO()
status = run(state, ["export GREETING=hello", "echo $GREETING"], out)
# "hello" goes to the process's standard output.
# out receives only the closing "exit\n".
```

Lower-level pieces:

- `minishell.parser.parse(line, env)` returns a tree of `Command` and `Pipe`
  nodes, or `None` for an empty line. It raises `ParseSyntaxError` on
  malformed input. `minishell.parser.cleanup_tree(node)` removes the
  here-document files the tree refers to.
- `minishell.executor.execute(node, state)` runs a tree and returns its
  status. `minishell.executor.find_program(name, env)` resolves a command
  through `PATH`.
- `minishell.environment.Environment` is the variable table, and
  `minishell.builtins.find_builtin(argv)` looks up a builtin by name.

## What it does not do

The shell has no command lists (`;`, `&&`, `||`), no subshells or grouping,
and no background jobs or job control. The characters `&`, `(` and `)` are
reported as unrecognized tokens. It has no redirections on numbered file
descriptors and no script files or `-c` option. It does not save history
across sessions.