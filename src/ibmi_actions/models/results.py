"""Execution and run result models.

Provides ExecutionResult, TargetStatus, TargetRunState, RunOutcome and
RunResult for the multi-target Action runner.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ibmi_actions.models.action import Action, Target
    from ibmi_actions.models.diagnostics import EvfEventInfo

# Exit code reported when there was nothing to run.
DID_NOT_RUN = -123


@dataclass(frozen=True)
class ExecutionResult:
    """Result of one dispatched command batch.

    Frozen: results are immutable records of what the session returned.
    A ``None`` exit code means the session did not report one, which is
    treated as success.
    """

    exit_code: int | None
    stdout: str = ""
    stderr: str = ""
    command: str = ""

    @property
    def ok(self) -> bool:
        return self.exit_code is None or self.exit_code == 0


class TargetStatus(str, enum.Enum):
    """Lifecycle states of a single target within a run."""

    PENDING = "pending"
    CANCELLED = "cancelled"
    DONE = "done"
    FAILED = "failed"


@dataclass
class TargetRunState:
    """Mutable per-target state, owned by the runner for that target only."""

    target: Target
    has_run: bool = False
    execution_ok: bool = False
    processed: bool = False
    status: TargetStatus = TargetStatus.PENDING
    output_lines: list[str] = field(default_factory=list)
    result: ExecutionResult | None = None
    evf_info: EvfEventInfo | None = None

    def log(self, *lines: str) -> None:
        for line in lines:
            self.output_lines.extend(line.splitlines() or [""])

    @property
    def output(self) -> str:
        return "\n".join(self.output_lines)


class RunOutcome(str, enum.Enum):
    """Aggregated outcome of a whole Action run."""

    SUCCESSFUL = "successful"
    PARTIALLY_FAILED = "partially_failed"
    CANCELLED = "cancelled"
    ABORTED = "aborted"


@dataclass(frozen=True)
class RunResult:
    """Final result of an Action run.

    Frozen: the result is immutable once the run completes.
    """

    outcome: RunOutcome
    targets: list[TargetRunState] = field(default_factory=list)
    action: Action | None = None
    message: str = ""

    @property
    def failure_count(self) -> int:
        return sum(1 for t in self.targets if t.processed and not t.execution_ok)

    @property
    def succeeded(self) -> list[TargetRunState]:
        """Return all targets that ran successfully."""
        return [t for t in self.targets if t.execution_ok]

    @property
    def output(self) -> str:
        """Consolidated output of every processed target."""
        return "\n\n".join(t.output for t in self.targets if t.output_lines)
