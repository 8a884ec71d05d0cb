"""Per-target context derivation.

Turns a target locator into an EvfEventInfo plus the variables specific to
its Action type, and builds the generic variables every command sees
(current library, user, host, library list, custom variables, ``.env``
overrides).
"""

from __future__ import annotations

import logging
import posixpath
import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from pathlib import Path

from ibmi_actions.engine.variables import Variables
from ibmi_actions.exceptions import InvalidPathError
from ibmi_actions.models.action import ActionType, Target
from ibmi_actions.models.diagnostics import EvfEventInfo

logger = logging.getLogger(__name__)

_VARIANT_CHARS = "#@$"
_QSYS_NAME = re.compile(rf"^[A-Z0-9{re.escape(_VARIANT_CHARS)}][A-Z0-9_{re.escape(_VARIANT_CHARS)}.]{{0,9}}$")

# Secondary extensions added by build tools (``hello.pgm.rpgle``)
_OBJECT_TYPE_EXTENSIONS = (".PGM", ".SRVPGM")

TEMP_SOURCE_FILE = "QTMPSRC"
DEFAULT_LIBRARY = "QGPL"
_LIBRARY_PLACEHOLDERS = ("&CURLIB", "&BUILDLIB", "*CURLIB")


@dataclass(frozen=True)
class MemberPath:
    """A parsed ``[asp/]library/file/member.ext`` locator."""

    library: str
    file: str
    name: str
    extension: str
    asp: str | None = None

    @property
    def basename(self) -> str:
        return f"{self.name}.{self.extension}"


@dataclass
class DerivedContext:
    """Variables and diagnostics location derived for one target."""

    evf_info: EvfEventInfo
    variables: dict[str, str] = field(default_factory=dict)


def parse_member_path(path: str) -> MemberPath:
    """Parse a member locator, validating each part as a QSYS name.

    Raises:
        InvalidPathError: If any part is missing or not a valid name.
    """
    parts = path.lstrip("/").upper().split("/")
    if len(parts) < 3 or not all(parts[-3:]):
        raise InvalidPathError(path, "use format LIB/SPF/NAME.ext")
    basename, file, library = parts[-1], parts[-2], parts[-3]
    asp = parts[-4] if len(parts) >= 4 else None

    if asp and not _QSYS_NAME.match(asp):
        raise InvalidPathError(path, f"invalid ASP name {asp}")
    if not _QSYS_NAME.match(library):
        raise InvalidPathError(path, f"invalid library name {library}")
    if not _QSYS_NAME.match(file):
        raise InvalidPathError(path, f"invalid source file name {file}")
    if "." not in basename:
        raise InvalidPathError(path, "source type extension is required")

    name, extension = basename.rsplit(".", 1)
    extension = extension.strip()
    if not _QSYS_NAME.match(name):
        raise InvalidPathError(path, f"invalid member name {name}")
    if extension and not _QSYS_NAME.match(extension):
        raise InvalidPathError(path, f"invalid member extension {extension}")
    return MemberPath(library, file, name, extension, asp or None)


def qualify_path(library: str, file: str, member: str | None = None, asp: str | None = None) -> str:
    """IFS path of a library object, e.g. ``/QSYS.LIB/LIB.LIB/QTMPSRC.FILE/A.MBR``."""
    library_path = "QSYS.LIB" if library == "QSYS" else f"QSYS.LIB/{library}.LIB"
    member_path = f"/{member}.MBR" if member else ""
    prefix = f"/{asp}" if asp else ""
    return f"{prefix}/{library_path}/{file}.FILE{member_path}"


def object_name_from_file(basename: str) -> str:
    """Derive the object name from a stream file's base name.

    ``hello.pgm.rpgle`` and ``hello-display.rpgle`` both give ``hello``.
    """
    stem = basename.rsplit(".", 1)[0] if "." in basename else basename
    inner_stem, dot, inner_ext = stem.rpartition(".")
    if dot and f".{inner_ext.upper()}" in _OBJECT_TYPE_EXTENSIONS:
        stem = inner_stem
    if "-" in stem:
        stem = stem[: stem.index("-")]
    return stem


def build_library_list(libraries: Iterable[str], current_library: str) -> list[str]:
    """Prepare a configured library list for ``liblist -a``.

    Duplicates are removed, placeholder entries are replaced with
    *current_library*, and the list is reversed because ``liblist -a``
    always inserts at the head.

    Example::

        build_library_list(["A", "&CURLIB", "B"], "C")  # ["B", "C", "A"]
    """
    resolved: list[str] = []
    for library in libraries:
        if not library:
            continue
        if library.upper() in _LIBRARY_PLACEHOLDERS:
            library = current_library
        if library not in resolved:
            resolved.append(library)
    resolved.reverse()
    return resolved


def generic_variables(
    *,
    current_library: str,
    library_list: Iterable[str],
    current_user: str,
    current_host: str,
    home_directory: str,
    custom_variables: Iterable[tuple[str, str]] = (),
    overrides: Mapping[str, str] | None = None,
) -> Variables:
    """Build the variables every command sees, regardless of Action type.

    *overrides* (workspace ``.env`` values, keyed ``&NAME``) are applied
    last and win over the built-ins, including ``&CURLIB`` and ``&LIBL``.
    """
    overrides = dict(overrides or {})
    curlib = overrides.get("&CURLIB") or current_library or DEFAULT_LIBRARY
    if "&LIBL" in overrides:
        configured = overrides["&LIBL"].split()
    else:
        configured = list(library_list)
    libl = build_library_list(configured, curlib)

    variables = Variables()
    variables.set("&CURLIB", curlib).set("*CURLIB", curlib).set("&BUILDLIB", curlib)
    variables.set("&USERNAME", current_user).set("{usrprf}", current_user)
    variables.set("&HOST", current_host).set("{host}", current_host)
    variables.set("&HOME", home_directory).set("&WORKDIR", home_directory)
    variables.set("&LIBL", " ".join(configured))
    variables.set("&LIBLC", ",".join(libl)).set("&LIBLS", " ".join(libl))
    for name, value in custom_variables:
        variables.set(f"&{name.upper()}", value)
    for name, value in overrides.items():
        variables.set(name, value)
    return variables


def derive_context(
    action_type: ActionType,
    target: Target,
    *,
    command: str,
    current_library: str,
    home_directory: str,
    deploy_directory: str | None = None,
    branch: str | None = None,
    branch_library: str | None = None,
) -> DerivedContext:
    """Derive the EvfEventInfo and type-specific variables for *target*.

    Raises:
        InvalidPathError: If the locator does not fit *action_type*.
    """
    match action_type:
        case ActionType.MEMBER:
            return _member_context(target)
        case ActionType.STREAMFILE | ActionType.FILE:
            return _file_context(
                action_type,
                target,
                command=command,
                current_library=current_library,
                home_directory=home_directory,
                deploy_directory=deploy_directory,
                branch=branch,
                branch_library=branch_library,
            )
        case ActionType.OBJECT:
            return _object_context(target)
    raise ValueError(f"Unknown action type: {action_type}")


def _member_context(target: Target) -> DerivedContext:
    member = parse_member_path(target.uri.path)
    info = EvfEventInfo(
        member.library, member.name, member.extension, member.asp, target.workspace
    )
    variables = {
        "&OPENLIBL": member.library.lower(),
        "&OPENLIB": member.library,
        "&OPENSPFL": member.file.lower(),
        "&OPENSPF": member.file,
        "&OPENMBRL": member.name.lower(),
        "&OPENMBR": member.name,
        "&EXTL": member.extension.lower(),
        "&EXT": member.extension,
    }
    return DerivedContext(info, variables)


def _file_context(
    action_type: ActionType,
    target: Target,
    *,
    command: str,
    current_library: str,
    home_directory: str,
    deploy_directory: str | None,
    branch: str | None,
    branch_library: str | None,
) -> DerivedContext:
    path = target.uri.path
    basename = posixpath.basename(path)
    parent = posixpath.basename(posixpath.dirname(path))
    name = object_name_from_file(basename)
    extension = target.extension or target.uri.extension

    library = (current_library or DEFAULT_LIBRARY).upper()
    # the listing lookup matches open documents by the extension as written
    info = EvfEventInfo(library, name.upper(), target.uri.extension, None, target.workspace)
    variables: dict[str, str] = {}

    if "&SRCFILE" in command:
        variables["&SRCLIB"] = library
        variables["&SRCPF"] = TEMP_SOURCE_FILE
        variables["&SRCFILE"] = f"{library}/{TEMP_SOURCE_FILE}"

    if action_type is ActionType.FILE:
        variables["&LOCALPATH"] = str(Path(path))
        if target.workspace is not None and deploy_directory:
            try:
                relative = Path(path).resolve().relative_to(target.workspace.path.resolve()).as_posix()
            except ValueError:
                raise InvalidPathError(path, f"not inside workspace {target.workspace.name}") from None
            full_path = posixpath.join(deploy_directory, relative)
            variables["&RELATIVEPATH"] = relative
            variables["&FULLPATH"] = full_path
            variables["{path}"] = full_path
            variables["&WORKDIR"] = deploy_directory
            variables["&FILEDIR"] = posixpath.dirname(full_path)
            if branch:
                variables["&BRANCHLIB"] = branch_library or ""
                variables["&BRANCH"] = branch
                variables["{branch}"] = branch
        else:
            logger.debug("No workspace deploy directory for %s", path)
    else:
        variables["&RELATIVEPATH"] = posixpath.relpath(path, home_directory)
        variables["&FULLPATH"] = path
        variables["&FILEDIR"] = posixpath.dirname(path)

    variables["&PARENT"] = parent
    variables["&BASENAME"] = basename
    variables["{filename}"] = basename
    variables["&NAMEL"] = name.lower()
    variables["&NAME"] = name
    variables["&EXTL"] = extension.lower()
    variables["&EXT"] = extension
    return DerivedContext(info, variables)


def _object_context(target: Target) -> DerivedContext:
    parts = target.uri.path.upper().strip("/").split("/")
    if len(parts) != 2 or "." not in parts[1]:
        raise InvalidPathError(target.uri.path, "use format /LIBRARY/NAME.TYPE")
    library, full_name = parts
    name, object_type = full_name.rsplit(".", 1)
    info = EvfEventInfo(library, name, object_type, None, target.workspace)
    variables = {
        "&LIBRARYL": library.lower(),
        "&LIBRARY": library,
        "&NAMEL": name.lower(),
        "&NAME": name,
        "&TYPEL": object_type.lower(),
        "&TYPE": object_type,
        "&EXTL": object_type.lower(),
        "&EXT": object_type,
    }
    return DerivedContext(info, variables)
