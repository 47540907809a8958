"""Variable and exit-status expansion of encoded command lines."""

from __future__ import annotations

import re

from minishell.environment import Environment
from minishell.quoting import QuoteMode, encoded_switch_mode

_PIECE = re.compile(r"\$\?|\$[A-Za-z_][A-Za-z0-9_]*|.", re.DOTALL)


def expand(line: str, env: Environment, exit_status: int) -> str:
    """Replace ``$?`` and ``$NAME`` outside single quotes.

    ``line`` must already have its quotes encoded. An unset variable expands
    to the empty string; a ``$`` not followed by a name is kept.
    """
    mode = QuoteMode.UNQUOTED
    out = []
    for match in _PIECE.finditer(line):
        piece = match.group()
        mode = encoded_switch_mode(mode, piece[0])
        if len(piece) == 1 or mode is QuoteMode.S_QUOTED:
            out.append(piece)
        elif piece == "$?":
            out.append(str(exit_status))
        else:
            out.append(env.get(piece[1:]) or "")
    return "".join(out)