"""An interactive command shell with pipelines, redirections, here-documents, wildcards and builtins."""

__version__ = "0.1.0"
__all__ = [
    "builtins",
    "environment",
    "executor",
    "expand",
    "lexer",
    "parser",
    "quoting",
    "shell",
    "state",
    "wildcard",
]