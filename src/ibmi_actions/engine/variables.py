"""Variable namespace for Action commands.

An ordered ``name -> value`` map with single-pass expansion. Names are
literal, case-sensitive tokens such as ``&CURLIB``, ``*CURLIB`` or
``{filename}``.
"""

from __future__ import annotations

import re
from collections.abc import Iterator, Mapping

_PASE_KEY = re.compile(r"^[A-Za-z&]")


class Variables:
    """Ordered variable namespace.

    ``set`` is fluent and last-write-wins; a name keeps the position of its
    first ``set``. ``expand`` replaces every occurrence of every registered
    name in one left-to-right pass, so values are never rescanned.

    Example::

        v = Variables().set("&OPENLIB", "LIB1").set("&OPENMBR", "PGM1")
        v.expand("PGM(&OPENLIB/&OPENMBR)")  # "PGM(LIB1/PGM1)"
    """

    def __init__(self, initial: Mapping[str, str] | None = None) -> None:
        self._values: dict[str, str] = {}
        self._pattern: re.Pattern[str] | None = None
        if initial:
            for name, value in initial.items():
                self.set(name, value)

    def set(self, name: str, value: str) -> Variables:
        if not name:
            raise ValueError("Variable name cannot be empty")
        self._values[name] = value
        self._pattern = None
        return self

    def get(self, name: str) -> str | None:
        return self._values.get(name)

    def __contains__(self, name: object) -> bool:
        return name in self._values

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def items(self) -> list[tuple[str, str]]:
        return list(self._values.items())

    def copy(self) -> Variables:
        return Variables(self._values)

    def update(self, other: Mapping[str, str] | Variables) -> Variables:
        for name, value in other.items():
            self.set(name, value)
        return self

    def _compiled(self) -> re.Pattern[str] | None:
        if self._pattern is None and self._values:
            # Longest first so &NAMEL wins over &NAME at the same position
            names = sorted(self._values, key=len, reverse=True)
            self._pattern = re.compile("|".join(re.escape(name) for name in names))
        return self._pattern

    def expand(self, template: str) -> str:
        """Replace registered names in *template*; unknown tokens stay verbatim."""
        pattern = self._compiled()
        if pattern is None:
            return template
        return pattern.sub(lambda m: self._values[m.group(0)], template)

    def to_pase_environment(self, extra: Mapping[str, str] | None = None) -> dict[str, str]:
        """Build a PASE shell environment from the namespace plus *extra*.

        Only names starting with a letter or ``&`` are kept; a leading ``&``
        is stripped (``&CURLIB`` becomes ``CURLIB``).
        """
        merged = dict(self._values)
        if extra:
            merged.update(extra)
        env: dict[str, str] = {}
        for name, value in merged.items():
            if _PASE_KEY.match(name):
                env[name[1:] if name.startswith("&") else name] = value
        return env

    def __repr__(self) -> str:
        return f"Variables({self._values!r})"
