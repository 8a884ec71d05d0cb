"""EVFEVENT listing parser.

Compilers on IBM i write an event file (``*EVENTF``) with fixed-column
records::

    PROCESSOR  0 999 1
    FILEID     0 001 000000 026 LIAMA/QRPGLESRC(EMPLOYEES) 20230516152429 0
    ERROR      0 001 1 000044 000044 000 000044 000 SQL1001 S 30 048 External file ...
    EXPANSION  0 001 000000 000000 999 000049 000113
    FILEEND    0 001 000151

When the SQL precompiler runs first, the compiler reports errors against
the generated source. ``EXPANSION`` records describe which generated lines
were inserted, so those errors are mapped back to the original source
lines through a line map.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field

from ibmi_actions.models.diagnostics import CompileError

logger = logging.getLogger(__name__)

LINE_WIDTH = 150
MAX_NAME_CHUNK = 255
# File id the SQL precompiler uses for its generated output
GENERATED_FILE_ID = 999


@dataclass
class _ListedError:
    error: CompileError
    post_expansion: bool


@dataclass
class _Expansion:
    on: int
    defined_start: int
    defined_end: int
    range_start: int
    range_end: int


@dataclass
class _SourceFile:
    id: int
    starts_at: int
    raw_name: str
    name_length: int
    parent: int | None = None
    length: int = 0
    path: str = ""
    expansions: list[_Expansion] = field(default_factory=list)
    errors: list[_ListedError] = field(default_factory=list)


@dataclass
class _Processor:
    files: list[_SourceFile] = field(default_factory=list)

    def find(self, file_id: int | None) -> _SourceFile | None:
        for source in self.files:
            if source.id == file_id:
                return source
        return None


@dataclass(frozen=True)
class _MappedLine:
    path: str
    line: int
    is_sql: bool = False


def format_name(name: str) -> str:
    """Normalize a listing file name.

    ``LIB/FILE(MBR)`` becomes ``LIB/FILE/MBR``; ``.`` segments are removed
    from IFS paths.
    """
    if name.endswith(")") and "(" in name:
        library, _, rest = name.partition("/")
        file, _, member = rest[:-1].partition("(")
        return "/".join([library, file, member])
    return "/".join(piece for piece in name.split("/") if piece != ".")


def is_sql_noise(error: CompileError) -> bool:
    """RPG info messages about precompiler-generated ``SQ*`` names."""
    return error.code.startswith("RNF") and error.severity == 0 and "name or indicator SQ" in error.text


def _name_chunk(line: str, length: int) -> str:
    # Names are space-padded; a chunk may end in a meaningful space
    return line.ljust(28 + MAX_NAME_CHUNK)[28 : 28 + min(length, MAX_NAME_CHUNK)]


def _parse_error(line: str) -> CompileError:
    return CompileError(
        code=line[48:55].strip(),
        severity=int(line[58:60]),
        text=line[65:].strip(),
        line_num=int(line[26:32]),
        to_line_num=int(line[37:43]),
        column=int(line[33:36]),
        to_column=int(line[44:47]),
    )


def _read_processors(lines: Iterable[str]) -> list[_Processor]:
    processors: list[_Processor] = []
    current: _Processor | None = None
    parents: list[int] = []
    continuing: _SourceFile | None = None
    expanded = False

    for number, raw in enumerate(lines, start=1):
        if not raw.strip():
            continue
        line = raw.rstrip("\r\n").ljust(LINE_WIDTH)
        record = line[0:10].strip()
        try:
            file_id = int(line[13:16])
            pieces = line.split()

            if record == "PROCESSOR":
                expanded = False
                current = _Processor()
                processors.append(current)
                parents = []
                continuing = None

            elif current is None:
                continue

            elif record == "FILEID":
                name_length = int(pieces[4])
                source = _SourceFile(
                    id=file_id,
                    starts_at=int(pieces[3]) - 1,
                    raw_name=_name_chunk(line, name_length),
                    name_length=name_length,
                    parent=parents[-1] if parents else None,
                )
                current.files.append(source)
                parents.append(file_id)
                continuing = source if name_length > MAX_NAME_CHUNK else None

            elif record == "FILEIDCONT":
                if continuing is not None:
                    remaining = continuing.name_length - len(continuing.raw_name)
                    continuing.raw_name += _name_chunk(line, remaining)
                    if len(continuing.raw_name) >= continuing.name_length:
                        continuing = None

            elif record == "FILEEND":
                source = current.find(file_id)
                if source is not None:
                    source.length = int(pieces[3])
                if parents:
                    parents.pop()

            elif record == "EXPANSION":
                expanded = True
                source = current.find(file_id)
                if source is None and parents:
                    source = current.find(parents[-1])
                if source is not None:
                    source.expansions.append(
                        _Expansion(
                            on=int(pieces[5]),
                            defined_start=int(pieces[3]) - 1,
                            defined_end=int(pieces[4]) - 1,
                            range_start=int(pieces[6]) - 1,
                            range_end=int(pieces[7]) - 1,
                        )
                    )

            elif record == "ERROR":
                source = current.find(file_id)
                if source is not None:
                    source.errors.append(_ListedError(_parse_error(line), expanded))

        except (ValueError, IndexError):
            logger.debug("Skipping malformed EVFEVENT line %d: %r", number, raw)

    return processors


def _assign_paths(processors: list[_Processor]) -> dict[int, str]:
    """Format every file name and return the first path seen per file id."""
    true_paths: dict[int, str] = {}
    for processor in processors:
        for source in processor.files:
            source.path = format_name(source.raw_name[: source.name_length].strip())
            true_paths.setdefault(source.id, source.path)
    return true_paths


def _collect(result: dict[str, list[CompileError]], path: str, error: CompileError) -> None:
    if is_sql_noise(error):
        return
    result.setdefault(path, []).append(error)


def _remap(error: CompileError, mapped: _MappedLine) -> CompileError:
    span = max(error.to_line_num - error.line_num, 0)
    return CompileError(
        code=error.code,
        severity=error.severity,
        text=error.text,
        line_num=mapped.line,
        to_line_num=mapped.line + span,
        column=error.column,
        to_column=error.to_column,
    )


def _lookup(generated: list[_MappedLine], line_num: int) -> _MappedLine | None:
    index = line_num - 1
    if 0 <= index < len(generated):
        return generated[index]
    return None


def _map_through_expansions(processors: list[_Processor], true_paths: dict[int, str]) -> dict[str, list[CompileError]]:
    result: dict[str, list[CompileError]] = {}
    generated: list[_MappedLine] = []
    done_parent = False

    for processor in processors:
        for source in processor.files:
            # The first processor's file list describes the original source,
            # with includes spliced in at their true offsets.
            if not done_parent and source.id != GENERATED_FILE_ID:
                start = source.starts_at + 1
                parent = processor.find(source.parent)
                while parent is not None and parent.starts_at >= 0:
                    start += parent.starts_at + 1
                    parent = processor.find(parent.parent)
                generated[start:start] = [_MappedLine(source.path, i + 1) for i in range(source.length)]

            for listed in source.errors:
                if listed.post_expansion:
                    continue
                if len(processor.files) == 1 or source.id == 1:
                    mapped = _lookup(generated, listed.error.line_num)
                    if mapped is not None and not mapped.is_sql:
                        _collect(result, mapped.path, _remap(listed.error, mapped))
                else:
                    _collect(result, true_paths[source.id], listed.error)

        for source in processor.files:
            for expansion in source.expansions:
                if expansion.range_start >= 0 and expansion.range_end >= 0:
                    into = processor.find(expansion.on)
                    if into is not None:
                        at = into.starts_at + expansion.range_start + 1
                        count = expansion.range_end - expansion.range_start + 1
                        generated[at:at] = [_MappedLine(into.path, i + 1, is_sql=True) for i in range(count)]
                elif expansion.defined_start >= 0 and expansion.defined_end >= 0:
                    at = source.starts_at + expansion.defined_start + 1
                    del generated[at : at + expansion.defined_end - expansion.defined_start + 1]

            for listed in source.errors:
                if not listed.post_expansion:
                    continue
                mapped = _lookup(generated, listed.error.line_num)
                if mapped is not None and not mapped.is_sql:
                    _collect(result, mapped.path, _remap(listed.error, mapped))

        done_parent = True

    return result


def parse_evfevent(lines: Iterable[str]) -> dict[str, list[CompileError]]:
    """Parse EVFEVENT lines into ``{file key: [CompileError]}``.

    Line and column numbers stay 1-based, as listed. Only files with at
    least one error appear in the result. Malformed lines are skipped;
    this function never raises on bad input.
    """
    processors = _read_processors(lines)
    true_paths = _assign_paths(processors)

    if any(source.expansions for processor in processors for source in processor.files):
        return _map_through_expansions(processors, true_paths)

    result: dict[str, list[CompileError]] = {}
    for processor in processors:
        for source in processor.files:
            for listed in source.errors:
                _collect(result, true_paths[source.id], listed.error)
    return result
