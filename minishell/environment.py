"""The shell's variable table, kept in name order."""

from __future__ import annotations

import re
from typing import Iterable, Iterator, Optional, Tuple

_IDENTIFIER = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")


def is_valid_name(name: str) -> bool:
    """Return True if ``name`` is a valid shell identifier."""
    return _IDENTIFIER.fullmatch(name) is not None


def _check_name(name: str) -> None:
    if not name or "=" in name:
        raise ValueError(f"invalid variable name: {name!r}")


class Environment:
    """Shell variables; a variable may exist without a value."""

    def __init__(self, items: Iterable[Tuple[str, Optional[str]]] = ()) -> None:
        self._vars: dict[str, Optional[str]] = {}
        for name, value in items:
            _check_name(name)
            # With duplicate names the first entry is the one that is seen.
            self._vars.setdefault(name, value)

    @classmethod
    def from_strings(cls, entries: Iterable[str]) -> "Environment":
        """Build from ``NAME=value`` strings; an entry without ``=`` has no value."""
        items = []
        for entry in entries:
            name, sep, value = entry.partition("=")
            items.append((name, value if sep else None))
        return cls(items)

    def get(self, name: str) -> Optional[str]:
        """Return the value of ``name``, or None if unset or value-less."""
        _check_name(name)
        return self._vars.get(name)

    def set(self, name: str, value: Optional[str]) -> None:
        """Create or update a variable.

        Setting an existing variable that has a value to None leaves it as is.
        """
        _check_name(name)
        if name in self._vars and self._vars[name] is not None and value is None:
            return
        self._vars[name] = value

    def unset(self, name: str) -> None:
        """Remove a variable; removing a missing one is not an error."""
        _check_name(name)
        self._vars.pop(name, None)

    def __contains__(self, name: object) -> bool:
        return name in self._vars

    def __iter__(self) -> Iterator[str]:
        return iter(sorted(self._vars))

    def __len__(self) -> int:
        return len(self._vars)

    def to_envp(self) -> list[str]:
        """Return ``NAME=value`` strings for every variable that has a value."""
        return [
            f"{name}={self._vars[name]}"
            for name in self
            if self._vars[name] is not None
        ]