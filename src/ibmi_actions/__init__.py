"""ibmi-actions: Action execution and compiler diagnostics for IBM i.

Runs user-defined command templates against members, stream files, local
workspace files and objects, then turns the compiler's event listing into
editor diagnostics.
"""

from ibmi_actions._version import __version__

# Core entry points
from ibmi_actions.orchestrator import ActionRunner, RunnerConfig
from ibmi_actions.resolver import ActionResolver

# Models
from ibmi_actions.models import (
    DID_NOT_RUN,
    Action,
    ActionType,
    BrowserNode,
    CompileError,
    ConnectionSettings,
    CustomVariable,
    Diagnostic,
    Environment,
    EvfEventInfo,
    ExecutionResult,
    Position,
    Range,
    RefreshPolicy,
    ResourceUri,
    RunOutcome,
    RunResult,
    Severity,
    StaticConfigStore,
    Target,
    TargetRunState,
    TargetStatus,
    Workspace,
)

# Engine
from ibmi_actions.engine import Dispatcher, PromptExpander, Variables, derive_context, generic_variables

# Diagnostics
from ibmi_actions.diagnostics import DiagnosticCollection, DiagnosticsExtractor, parse_evfevent

# Protocols
from ibmi_actions.protocols import (
    CancellationToken,
    Catalog,
    ConfigStore,
    Deployer,
    ResourceNode,
    Session,
    UsageRanking,
    UserInterface,
)

# Storage
from ibmi_actions.storage import InMemoryUsageRanking, SqliteUsageRanking

# Exceptions
from ibmi_actions.exceptions import (
    ActionCancelledError,
    ActionDefinitionError,
    ActionsError,
    DeployError,
    InvalidPathError,
    NoSuitableActionError,
    NotConnectedError,
    PromptCancelledError,
    TargetTypeError,
)

__all__ = [
    "__version__",
    # Core
    "ActionResolver",
    "ActionRunner",
    "RunnerConfig",
    # Models
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
    # Engine
    "Dispatcher",
    "PromptExpander",
    "Variables",
    "derive_context",
    "generic_variables",
    # Diagnostics
    "DiagnosticCollection",
    "DiagnosticsExtractor",
    "parse_evfevent",
    # Protocols
    "CancellationToken",
    "Catalog",
    "ConfigStore",
    "Deployer",
    "ResourceNode",
    "Session",
    "UsageRanking",
    "UserInterface",
    # Storage
    "InMemoryUsageRanking",
    "SqliteUsageRanking",
    # Exceptions
    "ActionCancelledError",
    "ActionDefinitionError",
    "ActionsError",
    "DeployError",
    "InvalidPathError",
    "NoSuitableActionError",
    "NotConnectedError",
    "PromptCancelledError",
    "TargetTypeError",
]
