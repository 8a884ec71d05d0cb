"""Connection settings for the Action pipeline.

ConnectionSettings holds the per-connection values the pipeline reads:
library list, current library, home directory, custom variables and the
diagnostic toggles. StaticConfigStore serves them through the ConfigStore
protocol.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Optional

from pydantic import BaseModel, Field

from ibmi_actions.models.action import Action, Workspace


class CustomVariable(BaseModel):
    """A user-declared ``&NAME`` variable."""

    name: str
    value: str


class ConnectionSettings(BaseModel):
    """Per-connection configuration."""

    model_config = {"populate_by_name": True}

    current_library: str = Field(default="QGPL", alias="currentLibrary")
    library_list: list[str] = Field(default_factory=list, alias="libraryList")
    home_directory: str = Field(default="/home", alias="homeDirectory")
    custom_variables: list[CustomVariable] = Field(default_factory=list, alias="customVariables")
    hide_compile_errors: list[str] = Field(default_factory=list, alias="hideCompileErrors")
    log_compile_output: bool = Field(default=False, alias="logCompileOutput")
    clear_errors_before_build: bool = Field(default=False, alias="clearErrorsBeforeBuild")
    clear_diagnostic_on_edit: bool = Field(default=True, alias="clearDiagnosticOnEdit")
    read_only_mode: bool = Field(default=False, alias="readOnlyMode")
    actions: list[Action] = Field(default_factory=list)

    @classmethod
    def from_file(cls, path: str | Path) -> ConnectionSettings:
        return cls.model_validate(json.loads(Path(path).read_text(encoding="utf-8")))


class StaticConfigStore:
    """ConfigStore backed by a ConnectionSettings instance.

    Workspace-local Actions are provided by *workspace_actions*, a callable
    taking a Workspace; by default workspaces have no local Actions.
    """

    def __init__(self, settings: ConnectionSettings | None = None, workspace_actions: Any = None) -> None:
        self.settings = settings or ConnectionSettings()
        self._workspace_actions = workspace_actions

    def get_actions(self, workspace: Optional[Workspace] = None) -> list[Action]:
        if workspace is None:
            return list(self.settings.actions)
        if self._workspace_actions is None:
            return []
        return list(self._workspace_actions(workspace))

    def get_custom_variables(self) -> list[CustomVariable]:
        return list(self.settings.custom_variables)

    def get_current_library(self) -> str:
        return self.settings.current_library

    def get_library_list(self) -> list[str]:
        return list(self.settings.library_list)

    def get_home_directory(self) -> str:
        return self.settings.home_directory

    def get(self, key: str, default: Any = None) -> Any:
        return getattr(self.settings, key, default)
