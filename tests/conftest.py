"""Shared test fixtures for ibmi-actions.

Provides in-memory fakes for the Session, Catalog, UserInterface and
Deployer protocols, plus an in-memory SQLite engine.
"""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

import pytest

from ibmi_actions.models import (
    Action,
    ConnectionSettings,
    Environment,
    ExecutionResult,
    ResourceUri,
    StaticConfigStore,
    Workspace,
)
from ibmi_actions.protocols import CancellationToken
from ibmi_actions.storage.engine import create_usage_engine, init_db

FIXTURES = Path(__file__).parent / "fixtures"


def load_fixture(name: str) -> list[str]:
    """Read an EVFEVENT fixture, keeping trailing padding."""
    return (FIXTURES / name).read_text(encoding="utf-8").split("\n")


# ---------------------------------------------------------------------------
# Fakes
# ---------------------------------------------------------------------------


class FakeSession:
    """Session that records every batch and replies from a handler.

    *handler* receives ``(command, environment)`` and returns an
    ExecutionResult; by default every batch succeeds.
    """

    def __init__(self, handler: Callable[[str, Environment], ExecutionResult] | None = None) -> None:
        self.current_user = "TESTUSER"
        self.current_host = "ibmi.example.com"
        self.default_user_libraries = ["QGPL", "QTEMP"]
        self.handler = handler
        self.calls: list[dict] = []
        self.remote_files: dict[str, str] = {}
        self.downloads: list[tuple[Path, str]] = []

    async def exec(self, command, *, environment, cwd=None, env=None):
        self.calls.append({"command": command, "environment": environment, "cwd": cwd, "env": env})
        if self.handler is not None:
            return self.handler(command, environment)
        return ExecutionResult(0, "done", "")

    async def upload_file(self, local, remote):
        self.remote_files[remote] = Path(local).read_text(encoding="utf-8")

    async def download_file(self, local, remote):
        self.downloads.append((Path(local), remote))
        Path(local).parent.mkdir(parents=True, exist_ok=True)
        Path(local).write_text(self.remote_files.get(remote, ""), encoding="utf-8")

    async def download_directory(self, local, remote):
        self.downloads.append((Path(local), remote))
        prefix = remote.rstrip("/") + "/"
        for path, content in self.remote_files.items():
            if path.startswith(prefix):
                destination = Path(local) / path[len(prefix) :]
                destination.parent.mkdir(parents=True, exist_ok=True)
                destination.write_text(content, encoding="utf-8")

    async def is_directory(self, remote):
        prefix = remote.rstrip("/") + "/"
        return any(path.startswith(prefix) for path in self.remote_files)


class FakeCatalog:
    """Catalog serving event listings from a dict keyed ``(library, object)``."""

    def __init__(self, listings: dict[tuple[str, str], list[str]] | None = None, iasps: list[str] | None = None) -> None:
        self.listings = listings or {}
        self.iasps = iasps or []
        self.requests: list[tuple[str, str]] = []

    async def get_event_listing(self, library, object):
        self.requests.append((library, object))
        return list(self.listings.get((library, object), []))

    def get_iasp_names(self):
        return list(self.iasps)


class FakeUI:
    """UserInterface with scripted answers.

    ``choices`` and ``prompts`` are queues; when a queue is empty the
    default is returned. Put ``None`` in a queue to simulate a cancel.
    """

    def __init__(self, *, choices: list | None = None, prompts: list | None = None, documents: list[ResourceUri] | None = None) -> None:
        self.choices = list(choices or [])
        self.prompts = list(prompts or [])
        self.documents = list(documents or [])
        self.choose_calls: list[tuple[str, list[str], str | None]] = []
        self.prompt_calls: list[tuple[str, str, str | None]] = []
        self.messages: list[tuple[str, str, tuple[str, ...]]] = []
        self.invalidated: list[str] = []
        self.outputs: list[str] = []
        self.token = CancellationToken()
        self.message_answer: str | None = None

    async def choose(self, title, options, *, default=None):
        self.choose_calls.append((title, list(options), default))
        if self.choices:
            return self.choices.pop(0)
        return default

    async def prompt(self, title, *, default="", label=None):
        self.prompt_calls.append((title, default, label))
        if self.prompts:
            return self.prompts.pop(0)
        return default

    def show_progress(self, title, total, *, cancellable=True):
        return self.token

    def invalidate(self, scope):
        self.invalidated.append(scope)

    async def show_message(self, level, text, *choices):
        self.messages.append((level, text, choices))
        return self.message_answer

    def show_output(self, text):
        self.outputs.append(text)

    def open_documents(self):
        return list(self.documents)


class FakeDeployer:
    """Deployer with a fixed deploy directory per workspace."""

    def __init__(self, directories: dict[str, str] | None = None, *, succeed: bool = True) -> None:
        self.directories = directories or {}
        self.succeed = succeed
        self.deployed: list[Workspace] = []

    async def launch_deploy(self, workspace):
        self.deployed.append(workspace)
        return self.succeed

    def get_remote_deploy_directory(self, workspace):
        return self.directories.get(workspace.name)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def engine():
    """In-memory SQLite engine with all tables created."""
    eng = create_usage_engine(":memory:")
    init_db(eng)
    yield eng
    eng.dispose()


@pytest.fixture
def session() -> FakeSession:
    return FakeSession()


@pytest.fixture
def ui() -> FakeUI:
    return FakeUI()


@pytest.fixture
def catalog() -> FakeCatalog:
    return FakeCatalog()


@pytest.fixture
def settings() -> ConnectionSettings:
    return ConnectionSettings(
        current_library="DEVLIB",
        library_list=["A", "B", "&CURLIB"],
        home_directory="/home/TESTUSER",
    )


@pytest.fixture
def compile_action() -> Action:
    return Action(
        name="Compile",
        command="CRTBNDRPG PGM(&OPENLIB/&OPENMBR) SRCFILE(&OPENLIB/&OPENSPF) OPTION(*EVENTF)",
        type="member",
        environment=Environment.ILE,
        extensions=["RPGLE"],
    )


@pytest.fixture
def config(settings: ConnectionSettings, compile_action: Action) -> StaticConfigStore:
    settings.actions = [compile_action]
    return StaticConfigStore(settings)


@pytest.fixture
def workspace(tmp_path: Path) -> Workspace:
    root = tmp_path / "project"
    root.mkdir()
    return Workspace("project", root)
