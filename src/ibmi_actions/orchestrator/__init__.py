"""Orchestrator package -- the multi-target Action runner and its configuration."""

from ibmi_actions.orchestrator.config import RunnerConfig
from ibmi_actions.orchestrator.runner import ActionRunner

__all__ = [
    "ActionRunner",
    "RunnerConfig",
]
