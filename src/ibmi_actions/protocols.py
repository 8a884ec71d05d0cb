"""Protocol definitions for the Action pipeline.

Defines the collaborator interfaces the pipeline consumes (Session, Catalog,
UserInterface, ConfigStore, Deployer, UsageRanking, ResourceNode) and the
CancellationToken shared between the UI and the runner.

The pipeline never talks to the remote host, the editor or configuration
storage directly -- only through these protocols.
"""

from __future__ import annotations

import threading
from pathlib import Path
from typing import TYPE_CHECKING, Any, Optional, Protocol, runtime_checkable

if TYPE_CHECKING:
    from ibmi_actions.models.action import Action, Environment, ResourceUri, Workspace
    from ibmi_actions.models.config import CustomVariable
    from ibmi_actions.models.results import ExecutionResult


class CancellationToken:
    """Cooperative cancellation flag.

    Checked by the runner at target boundaries only; an in-flight remote
    command is never interrupted.
    """

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()


@runtime_checkable
class Session(Protocol):
    """A single, stateful command session on the remote host.

    Only one command runs at a time; the library list and temporary
    library state persist between calls.
    """

    current_user: str
    current_host: str
    default_user_libraries: list[str]

    async def exec(
        self,
        command: str,
        *,
        environment: Environment,
        cwd: str | None = None,
        env: dict[str, str] | None = None,
    ) -> ExecutionResult:
        """Run *command* and return its exit code and output.

        Transport failures raise; a non-zero exit code does not.
        """
        ...

    async def upload_file(self, local: Path, remote: str) -> None:
        ...

    async def download_file(self, local: Path, remote: str) -> None:
        ...

    async def download_directory(self, local: Path, remote: str) -> None:
        ...

    async def is_directory(self, remote: str) -> bool:
        ...


@runtime_checkable
class Catalog(Protocol):
    """Object/library metadata service on the remote host."""

    async def get_event_listing(self, library: str, object: str) -> list[str]:
        """Return the raw EVFEVENT lines for *library*/*object*.

        Returns an empty list when no listing exists.
        """
        ...

    def get_iasp_names(self) -> list[str]:
        ...


@runtime_checkable
class UserInterface(Protocol):
    """The editor/UI surface used for prompts, progress and refresh."""

    async def choose(self, title: str, options: list[str], *, default: str | None = None) -> str | None:
        """Ask the user to pick one option. Returns None when cancelled."""
        ...

    async def prompt(self, title: str, *, default: str = "", label: str | None = None) -> str | None:
        """Ask the user for free text. Returns None when cancelled."""
        ...

    def show_progress(self, title: str, total: int, *, cancellable: bool = True) -> CancellationToken:
        ...

    def invalidate(self, scope: str) -> None:
        """Invalidate a UI scope (``"browser"`` refreshes the whole tree)."""
        ...

    async def show_message(self, level: str, text: str, *choices: str) -> str | None:
        """Show a message with optional choices; returns the chosen one."""
        ...

    def show_output(self, text: str) -> None:
        ...

    def open_documents(self) -> list[ResourceUri]:
        """Locators of the documents currently open in the editor."""
        ...


@runtime_checkable
class ConfigStore(Protocol):
    """Read-only view of persisted connection configuration."""

    def get_actions(self, workspace: Optional[Workspace] = None) -> list[Action]:
        """Global Actions, or the workspace-local ones when *workspace* is given."""
        ...

    def get_custom_variables(self) -> list[CustomVariable]:
        ...

    def get_current_library(self) -> str:
        ...

    def get_library_list(self) -> list[str]:
        ...

    def get_home_directory(self) -> str:
        ...

    def get(self, key: str, default: Any = None) -> Any:
        ...


@runtime_checkable
class Deployer(Protocol):
    """Copies a local workspace to its remote deploy directory."""

    async def launch_deploy(self, workspace: Workspace) -> bool:
        """Deploy *workspace*. Returns False when the user cancelled."""
        ...

    def get_remote_deploy_directory(self, workspace: Workspace) -> str | None:
        ...


@runtime_checkable
class UsageRanking(Protocol):
    """Last-used timestamps for Actions, keyed by Action name."""

    def last_used(self, name: str) -> float:
        """Epoch seconds of the last use, 0.0 when never used."""
        ...

    def mark_used(self, name: str) -> None:
        ...


@runtime_checkable
class ResourceNode(Protocol):
    """A node in the resource browser that an Action was triggered from."""

    parent: Any

    def refresh(self) -> None:
        ...
