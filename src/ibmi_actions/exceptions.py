"""Action pipeline exception hierarchy.

All ibmi-actions exceptions inherit from ActionsError.
"""

from __future__ import annotations


class ActionsError(Exception):
    """Base exception for all ibmi-actions errors."""


class NoSuitableActionError(ActionsError):
    """Raised when no configured Action applies to the selected resources."""

    def __init__(self, type_: str, extension: str | None = None, *, read_only: bool = False) -> None:
        self.type = type_
        self.extension = extension
        self.read_only = read_only
        if read_only:
            message = "Action cannot be applied on a read only resource."
        else:
            message = f"No compile commands found for {type_}-{extension or ''}."
        super().__init__(message)


class ActionCancelledError(ActionsError):
    """Raised when the user cancels an Action before anything was dispatched."""

    def __init__(self, action_name: str) -> None:
        self.action_name = action_name
        super().__init__(f"Action {action_name} was cancelled.")


class PromptCancelledError(ActionsError):
    """Raised when the user dismisses a required ``${name|label|default}`` prompt."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Prompt for {name} was cancelled.")


class InvalidPathError(ActionsError):
    """Raised when a resource locator cannot be parsed for its Action type.

    Path errors abort the current target only; the rest of the run continues.
    """

    def __init__(self, path: str, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Invalid path {path!r}: {reason}")


class ActionDefinitionError(ActionsError):
    """Raised when an Action definition file cannot be loaded."""


class NotConnectedError(ActionsError):
    """Raised when an Action is run without an active remote session."""

    def __init__(self) -> None:
        super().__init__("Please connect to an IBM i before running an action.")


class DeployError(ActionsError):
    """Raised when a workspace cannot be deployed before a ``file`` Action."""

    def __init__(self, workspace: str, reason: str) -> None:
        self.workspace = workspace
        self.reason = reason
        super().__init__(f"Unable to deploy {workspace}: {reason}")


class TargetTypeError(ActionsError):
    """Raised when an Action's targets do not share one type.

    Also raised when an explicitly given Action does not match that type.
    The run is aborted before anything is dispatched.
    """

    def __init__(self, types: list[str], action_name: str | None = None) -> None:
        self.types = types
        self.action_name = action_name
        if action_name is None:
            message = f"Cannot run one Action against resources of different types: {', '.join(types)}."
        else:
            message = f"Action {action_name} cannot be run on {', '.join(types)} resources."
        super().__init__(message)
