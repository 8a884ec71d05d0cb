"""Compiler diagnostics: normalization, placement and the collection.

Parsed EVFEVENT errors are converted to 0-based editor diagnostics and
placed on the resource they belong to: a workspace file when the compile
came from a deployed workspace, otherwise a ``member:`` or ``streamfile:``
identity, preferring a document that is already open.
"""

from __future__ import annotations

import logging
import posixpath
from collections.abc import Iterable, Iterator
from pathlib import Path

from ibmi_actions.diagnostics.evfevent import parse_evfevent
from ibmi_actions.local.actions import get_evfevent_files
from ibmi_actions.models.action import ResourceUri
from ibmi_actions.models.diagnostics import (
    CompileError,
    Diagnostic,
    EvfEventInfo,
    Range,
    Severity,
)
from ibmi_actions.protocols import Catalog, ConfigStore, Deployer, UserInterface

logger = logging.getLogger(__name__)

# Span used when a message carries no column information
FULL_LINE_COLUMNS = 100


class DiagnosticCollection:
    """Diagnostics per resource. Setting a resource replaces its list."""

    def __init__(self) -> None:
        self._entries: dict[ResourceUri, list[Diagnostic]] = {}

    def set(self, uri: ResourceUri, diagnostics: Iterable[Diagnostic]) -> None:
        self._entries[uri] = list(diagnostics)

    def get(self, uri: ResourceUri) -> list[Diagnostic]:
        return list(self._entries.get(uri, []))

    def has(self, uri: ResourceUri) -> bool:
        return uri in self._entries

    def delete(self, uri: ResourceUri) -> None:
        self._entries.pop(uri, None)

    def clear(self) -> None:
        self._entries.clear()

    def clear_range(self, uri: ResourceUri, changed: Range) -> None:
        """Drop diagnostics of *uri* that overlap an edited range."""
        current = self._entries.get(uri)
        if current is not None:
            self._entries[uri] = [d for d in current if not d.range.intersects(changed)]

    def __iter__(self) -> Iterator[tuple[ResourceUri, list[Diagnostic]]]:
        return iter(list(self._entries.items()))

    def __len__(self) -> int:
        return len(self._entries)


def to_diagnostic(error: CompileError) -> Diagnostic:
    """Convert a 1-based listing error to a 0-based diagnostic."""
    line = max(error.line_num - 1, 0)
    to_line = max(error.to_line_num - 1, 0)
    column = max(error.column - 1, 0)
    to_column = error.to_column
    if column == 0 and to_column == 0:
        to_column = FULL_LINE_COLUMNS
    return Diagnostic(
        range=Range.of(line, column, to_line, to_column),
        message=f"{error.text} ({error.severity})",
        severity=Severity.from_compiler(error.severity),
        code=error.code,
    )


def to_diagnostics(errors: Iterable[CompileError], hidden_codes: Iterable[str] = ()) -> list[Diagnostic]:
    hidden = set(hidden_codes)
    return [to_diagnostic(error) for error in errors if error.code not in hidden]


class DiagnosticsExtractor:
    """Fetches event listings and places their diagnostics.

    Args:
        collection: Where diagnostics are stored.
        config: Supplies ``hide_compile_errors`` and
            ``clear_errors_before_build``.
        catalog: Source of server-side event listings.
        ui: Used to find documents that are already open.
        deployer: Resolves a workspace's remote deploy directory.
    """

    def __init__(
        self,
        collection: DiagnosticCollection,
        *,
        config: ConfigStore,
        catalog: Catalog | None = None,
        ui: UserInterface | None = None,
        deployer: Deployer | None = None,
    ) -> None:
        self.collection = collection
        self._config = config
        self._catalog = catalog
        self._ui = ui
        self._deployer = deployer

    async def refresh_from_server(self, info: EvfEventInfo) -> None:
        if self._catalog is None:
            raise RuntimeError("No catalog available to fetch event listings")
        lines = await self._catalog.get_event_listing(info.library, info.object)
        if self._config.get("clear_errors_before_build", False):
            self.collection.clear()
        self.handle_lines(lines, info)

    async def refresh_from_local(self, info: EvfEventInfo) -> None:
        """Apply every ``.evfevent`` file downloaded into the workspace."""
        if info.workspace is None:
            return
        files = get_evfevent_files(info.workspace)
        if not files:
            self.collection.clear()
            return
        if self._config.get("clear_errors_before_build", False):
            self.collection.clear()
        for path in files:
            self.handle_lines(_read_lines(path), info)

    def handle_lines(self, lines: Iterable[str], info: EvfEventInfo) -> None:
        """Parse *lines* and replace the diagnostics of each file listed.

        An empty listing clears the whole collection.
        """
        errors_by_file = parse_evfevent(lines)
        if not errors_by_file:
            self.collection.clear()
            return

        hidden = self._config.get("hide_compile_errors", None) or []
        for file, errors in errors_by_file.items():
            diagnostics = to_diagnostics(errors, hidden)
            uri = self.place(file, info)
            if uri is None:
                logger.warning("Couldn't place compile errors for %s", file)
                continue
            self.collection.set(uri, diagnostics)

    def place(self, file: str, info: EvfEventInfo) -> ResourceUri | None:
        """Find the resource a listing file key belongs to."""
        if info.workspace is not None:
            local = self._workspace_file(file, info)
            if local is not None:
                return local
            # Compiled from a temporary member; try an open document
            if info.extension:
                name = f"{posixpath.basename(file)}.{info.extension}"
                opened = self._open_document_named(name)
                if opened is not None:
                    return opened

        if file.startswith("/"):
            candidate = ResourceUri("streamfile", file)
        else:
            asp = f"{info.asp}/" if info.asp else ""
            extension = f".{info.extension}" if info.extension else ""
            candidate = ResourceUri("member", f"/{asp}{file}{extension}")
        return self._existing_document(candidate)

    def _workspace_file(self, file: str, info: EvfEventInfo) -> ResourceUri | None:
        if self._deployer is None or info.workspace is None:
            return None
        deploy_path = self._deployer.get_remote_deploy_directory(info.workspace)
        if not deploy_path:
            return None
        index = file.lower().find(deploy_path.lower())
        if index == -1:
            return None
        relative = file[:index] + file[index + len(deploy_path) :]
        if not relative:
            return None

        # Deploy directories can be symlinked into an IASP
        for asp_name in self._catalog.get_iasp_names() if self._catalog else []:
            asp_root = f"/{asp_name}"
            if relative.startswith(asp_root):
                relative = relative[len(asp_root) :]
                break

        return ResourceUri.for_file(Path(info.workspace.path) / relative.lstrip("/"))

    def _open_documents(self) -> list[ResourceUri]:
        return self._ui.open_documents() if self._ui is not None else []

    def _open_document_named(self, name: str) -> ResourceUri | None:
        for uri in self._open_documents():
            if uri.basename.upper() == name.upper():
                return uri
        return None

    def _existing_document(self, candidate: ResourceUri) -> ResourceUri:
        for uri in self._open_documents():
            if candidate.same_resource(uri):
                return uri
        return candidate


def _read_lines(path: Path) -> list[str]:
    return path.read_text(encoding="utf-8", errors="replace").splitlines()
