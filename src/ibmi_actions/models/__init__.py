"""Domain models for the Action pipeline."""

from ibmi_actions.models.action import (
    Action,
    ActionType,
    BrowserNode,
    Environment,
    RefreshPolicy,
    ResourceUri,
    Target,
    Workspace,
)
from ibmi_actions.models.config import ConnectionSettings, CustomVariable, StaticConfigStore
from ibmi_actions.models.diagnostics import (
    CompileError,
    Diagnostic,
    EvfEventInfo,
    Position,
    Range,
    Severity,
)
from ibmi_actions.models.results import (
    DID_NOT_RUN,
    ExecutionResult,
    RunOutcome,
    RunResult,
    TargetRunState,
    TargetStatus,
)

__all__ = [
    "Action",
    "ActionType",
    "BrowserNode",
    "CompileError",
    "ConnectionSettings",
    "CustomVariable",
    "DID_NOT_RUN",
    "Diagnostic",
    "Environment",
    "EvfEventInfo",
    "ExecutionResult",
    "Position",
    "Range",
    "RefreshPolicy",
    "ResourceUri",
    "RunOutcome",
    "RunResult",
    "Severity",
    "StaticConfigStore",
    "Target",
    "TargetRunState",
    "TargetStatus",
    "Workspace",
]
