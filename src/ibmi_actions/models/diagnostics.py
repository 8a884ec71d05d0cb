"""Compiler diagnostic models.

CompileError is one row of an EVFEVENT listing (1-based, as reported).
Diagnostic is the editor-facing, 0-based form produced after placement.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass

from ibmi_actions.models.action import Workspace


class Severity(str, enum.Enum):
    """Editor severity of a diagnostic."""

    ERROR = "error"
    WARNING = "warning"
    INFORMATION = "information"

    @classmethod
    def from_compiler(cls, sev: int) -> Severity:
        """Map a compiler severity (0-50) to an editor severity."""
        if sev == 20:
            return cls.WARNING
        if sev in (30, 40, 50):
            return cls.ERROR
        return cls.INFORMATION


@dataclass(frozen=True)
class CompileError:
    """One diagnostic line from an event listing."""

    code: str
    severity: int
    text: str
    line_num: int
    to_line_num: int
    column: int
    to_column: int


@dataclass(frozen=True)
class Position:
    line: int
    character: int


@dataclass(frozen=True)
class Range:
    """A 0-based, end-exclusive span in a document."""

    start: Position
    end: Position

    @classmethod
    def of(cls, line: int, column: int, to_line: int, to_column: int) -> Range:
        return cls(Position(line, column), Position(to_line, to_column))

    def intersects(self, other: Range) -> bool:
        if self.end.line < other.start.line or other.end.line < self.start.line:
            return False
        if self.end.line == other.start.line and self.end.character < other.start.character:
            return False
        if other.end.line == self.start.line and other.end.character < self.start.character:
            return False
        return True


@dataclass(frozen=True)
class Diagnostic:
    """A diagnostic placed on an editor resource."""

    range: Range
    message: str
    severity: Severity
    code: str


@dataclass(frozen=True)
class EvfEventInfo:
    """Where diagnostics for a run are fetched from and attached to."""

    library: str
    object: str
    extension: str | None = None
    asp: str | None = None
    workspace: Workspace | None = None

    def with_object(self, library: str, object: str) -> EvfEventInfo:
        return EvfEventInfo(library, object, self.extension, self.asp, self.workspace)
