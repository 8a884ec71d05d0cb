"""Action, target and resource locator models.

Action is the immutable, user-configurable command template. Target and
ResourceUri describe the concrete resources an Action run is applied to.
"""

from __future__ import annotations

import enum
import posixpath
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field, field_validator


class ActionType(str, enum.Enum):
    """Kind of resource an Action applies to (also the locator scheme)."""

    MEMBER = "member"
    STREAMFILE = "streamfile"
    FILE = "file"
    OBJECT = "object"


class Environment(str, enum.Enum):
    """Remote execution environment for an Action's command."""

    ILE = "ile"
    QSH = "qsh"
    PASE = "pase"


class RefreshPolicy(str, enum.Enum):
    """What to invalidate in the resource browser after a run."""

    NO = "no"
    PARENT = "parent"
    FILTER = "filter"
    BROWSER = "browser"


class Action(BaseModel):
    """A named command template bound to a resource type and extension filter.

    Actions are identified by ``(name, type)``. Field aliases match the
    camelCase keys used in stored Action records, so JSON loads as-is.
    """

    model_config = {"frozen": True, "populate_by_name": True}

    name: str
    command: str
    type: ActionType = ActionType.MEMBER
    environment: Environment = Environment.ILE
    extensions: Optional[list[str]] = None
    run_on_protected: bool = Field(default=False, alias="runOnProtected")
    deploy_first: bool = Field(default=False, alias="deployFirst")
    post_download: Optional[list[str]] = Field(default=None, alias="postDownload")
    output_to_file: Optional[str] = Field(default=None, alias="outputToFile")
    refresh: RefreshPolicy = RefreshPolicy.NO

    @field_validator("environment", mode="before")
    @classmethod
    def _lower_environment(cls, v: object) -> object:
        if isinstance(v, str):
            return v.lower()
        return v

    @property
    def key(self) -> tuple[str, ActionType]:
        return (self.name, self.type)


@dataclass(frozen=True)
class ResourceUri:
    """A ``scheme:path#fragment`` resource locator.

    ``member:/LIB/QRPGLESRC/PGM1.RPGLE``, ``streamfile:/home/me/a.rpgle``,
    ``file:///work/project/src/a.rpgle`` and ``object:/LIB/PGM1.PGM`` are
    all valid locators.
    """

    scheme: str
    path: str
    fragment: str = ""

    @classmethod
    def parse(cls, text: str) -> ResourceUri:
        scheme, sep, rest = text.partition(":")
        if not sep or len(scheme) < 2:
            # Bare paths (including drive letters) are local files
            return cls("file", text)
        rest, _, fragment = rest.partition("#")
        if rest.startswith("//"):
            # Drop the authority of file://host/path
            authority_and_path = rest[2:]
            slash = authority_and_path.find("/")
            rest = authority_and_path[slash:] if slash >= 0 else "/"
        return cls(scheme.lower(), rest, fragment)

    @classmethod
    def for_file(cls, path: str | Path) -> ResourceUri:
        return cls("file", Path(path).as_posix())

    @property
    def basename(self) -> str:
        return posixpath.basename(self.path)

    @property
    def extension(self) -> str:
        """Extension of the last path segment, without the dot."""
        name = self.basename
        return name.rsplit(".", 1)[1] if "." in name else ""

    def same_resource(self, other: ResourceUri) -> bool:
        """Compare two locators, ignoring case except under ``/QOpenSys``."""
        if self.scheme != other.scheme:
            return False
        if self.scheme == "streamfile" and self.path.upper().startswith("/QOPENSYS/"):
            return self.path == other.path
        return self.path.upper() == other.path.upper()

    def __str__(self) -> str:
        text = f"{self.scheme}:{self.path}"
        if self.fragment:
            text += f"#{self.fragment}"
        return text


@dataclass(frozen=True)
class Workspace:
    """A local workspace folder that can be deployed to the remote host."""

    name: str
    path: Path

    def contains(self, path: str | Path) -> bool:
        try:
            Path(path).resolve().relative_to(self.path.resolve())
        except ValueError:
            return False
        return True


@dataclass(frozen=True)
class Target:
    """One concrete resource an Action run is applied to."""

    uri: ResourceUri
    extension: str = ""
    is_protected: bool = False
    workspace: Workspace | None = None

    @classmethod
    def from_uri(
        cls,
        uri: ResourceUri | str,
        *,
        is_protected: bool = False,
        workspace: Workspace | None = None,
    ) -> Target:
        if isinstance(uri, str):
            uri = ResourceUri.parse(uri)
        return cls(uri, uri.extension.upper(), is_protected, workspace)

    @property
    def type(self) -> ActionType:
        try:
            return ActionType(self.uri.scheme)
        except ValueError:
            return ActionType.FILE


@dataclass
class BrowserNode:
    """Minimal view of a resource-browser node used for refresh policies.

    ``refresh`` is called when the node itself must be reloaded.
    """

    label: str
    parent: BrowserNode | None = None
    refresh_count: int = field(default=0, compare=False)

    def refresh(self) -> None:
        self.refresh_count += 1

    def root(self) -> BrowserNode:
        node = self
        while node.parent is not None:
            node = node.parent
        return node
