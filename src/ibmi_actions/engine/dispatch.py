"""Environment-specific command dispatch.

Wraps expanded command text for ILE, QSH or PASE, prepends the library
list setup where the environment needs it, and issues one batch through
the remote session.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable, Iterable, Mapping

from ibmi_actions.engine.context import DEFAULT_LIBRARY
from ibmi_actions.engine.variables import Variables
from ibmi_actions.models.action import Environment
from ibmi_actions.models.results import DID_NOT_RUN, ExecutionResult
from ibmi_actions.protocols import Session

logger = logging.getLogger(__name__)

_OBJECT_PARAMETER = re.compile(r"(PNLGRP|OBJ|PGM|MODULE)\((?P<object>.+?)\)")
_SHELL_SPECIAL = re.compile(r'([\\"$`])')


def escape_for_shell(command: str) -> str:
    """Escape *command* for use inside a double-quoted shell string."""
    return _SHELL_SPECIAL.sub(r"\\\1", command)


def sanitize_library_names(libraries: Iterable[str]) -> list[str]:
    """Quote names starting with ``#`` and escape ``$`` for the PASE shell."""
    sanitized = []
    for library in libraries:
        library = library.replace("$", "\\$")
        sanitized.append(f'"{library}"' if library.startswith("#") else library)
    return sanitized


def library_list_commands(default_libraries: Iterable[str], current_library: str, library_list: Iterable[str]) -> list[str]:
    """The three ``liblist`` statements that set up an ILE job.

    *library_list* must already be reversed and placeholder-substituted.
    """
    return [
        f"liblist -d {' '.join(sanitize_library_names(default_libraries))}",
        f"liblist -c {sanitize_library_names([current_library])[0]}",
        f"liblist -a {' '.join(sanitize_library_names(library_list))}",
    ]


def wrap_ile_command(command: str, *, silent: bool = True) -> str:
    """Wrap one CL command so a failure stops the rest of the batch."""
    flag = "-s " if silent else ""
    return f'system {flag}"{escape_for_shell(command)}"; if [[ $? -ne 0 ]]; then exit 1; fi'


def get_object_from_command(command: str) -> tuple[str | None, str] | None:
    """Find the object a CL command creates, e.g. ``PGM(LIB/NAME)``.

    Returns ``(library, object)``; library is None when unqualified.
    """
    match = _OBJECT_PARAMETER.search(command.upper())
    if match is None:
        return None
    parts = match.group("object").split("/")
    if len(parts) == 2:
        return parts[0], parts[1]
    return None, parts[0]


class Dispatcher:
    """Issues expanded commands through a Session.

    Args:
        session: The remote session. Only one batch is in flight at a time.
        log_compile_output: When True, ILE commands run without ``-s`` so
            their spooled output is returned.
    """

    def __init__(self, session: Session, *, log_compile_output: bool = False) -> None:
        self._session = session
        self._log_compile_output = log_compile_output

    async def run(
        self,
        command: str,
        *,
        environment: Environment,
        variables: Variables,
        cwd: str | None = None,
        extra_env: Mapping[str, str] | None = None,
        no_library_list: bool = False,
        write: Callable[[str], None] | None = None,
    ) -> ExecutionResult:
        """Dispatch *command* and return its result.

        Blank lines are dropped. When nothing is left, returns DID_NOT_RUN
        without touching the session. Non-zero exit codes are returned, not
        raised; transport exceptions propagate to the caller.
        """
        commands = [line for line in command.splitlines() if line.strip()]
        if not commands:
            return ExecutionResult(DID_NOT_RUN, "", "Command execution failed. (No command)", command)

        current_library = variables.get("&CURLIB") or DEFAULT_LIBRARY
        library_list = (variables.get("&LIBLS") or "").split()

        if write is not None:
            if environment is Environment.ILE and not no_library_list:
                write(f"Current library: {current_library}")
                write(f"Library list: {' '.join(library_list)}")
            if cwd:
                write(f"Working directory: {cwd}")
            write("Commands:\n" + "\n".join(f"\t{line}" for line in commands))

        setup: list[str] = []
        if not no_library_list:
            setup = library_list_commands(
                self._session.default_user_libraries, current_library, library_list
            )

        env: dict[str, str] | None = None
        match environment:
            case Environment.PASE:
                batch = " && ".join(commands)
                env = variables.to_pase_environment(extra_env)
            case Environment.QSH:
                batch = " && ".join([*setup, *commands])
            case _:
                silent = not self._log_compile_output
                batch = "; ".join([*setup, *(wrap_ile_command(line, silent=silent) for line in commands)])

        logger.debug("Dispatching %s batch: %s", environment.value, batch)
        result = await self._session.exec(batch, environment=environment, cwd=cwd, env=env)

        if write is not None:
            if result.stdout:
                write(result.stdout)
            if result.stderr:
                write(result.stderr)
        return ExecutionResult(result.exit_code, result.stdout, result.stderr, "\n".join(commands))
